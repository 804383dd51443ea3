"""
Class discovery for controller packages.

    discoverer = ClassDiscoverer()
    classes = discoverer.discover("shop.controllers")

Every module of the package (submodules included) is imported and the
classes defined in it are collected. Results are memoized per package name.
"""

import importlib
import inspect
import logging
import pkgutil
import threading
from collections import defaultdict
from types import ModuleType
from typing import Dict, FrozenSet, Iterator, List

from ..exceptions import ControllerScanError

logger = logging.getLogger(__name__)


class ClassDiscoverer:
    """
    Enumerates the classes defined under a package.

    A package that cannot be found yields an empty set (logged as a warning)
    so that a missing or empty scan scope does not abort startup. A module
    that exists but fails to import raises ControllerScanError.
    """

    def __init__(self):
        self._cache: Dict[str, FrozenSet[type]] = {}
        self._locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    def discover(self, package_name: str) -> FrozenSet[type]:
        package_name = (package_name or "").strip()
        if not package_name:
            return frozenset()

        cached = self._cache.get(package_name)
        if cached is not None:
            return cached

        with self._lock_for(package_name):
            cached = self._cache.get(package_name)
            if cached is None:
                cached = frozenset(self._scan(package_name))
                self._cache[package_name] = cached
                logger.debug(
                    "Discovered %d classes under package '%s'", len(cached), package_name
                )
        return cached

    def _lock_for(self, package_name: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks[package_name]

    def _scan(self, package_name: str) -> List[type]:
        root = self._import_root(package_name)
        if root is None:
            return []

        classes: Dict[str, type] = {}
        for module in self._iter_modules(root):
            for _, member in inspect.getmembers(module, inspect.isclass):
                # Only classes defined in this module, not imported into it
                if member.__module__ != module.__name__:
                    continue
                classes.setdefault(f"{member.__module__}.{member.__qualname__}", member)

        return list(classes.values())

    @staticmethod
    def _import_root(package_name: str):
        try:
            return importlib.import_module(package_name)
        except ModuleNotFoundError as e:
            # Only a missing scan scope is soft; a missing dependency inside it is not
            if e.name is not None and (
                package_name == e.name or package_name.startswith(e.name + ".")
            ):
                logger.warning("Package '%s' cannot be resolved, nothing to scan", package_name)
                return None
            raise ControllerScanError(package_name, e) from e
        except Exception as e:  # noqa: BLE001 - any import-time failure
            raise ControllerScanError(package_name, e) from e

    @staticmethod
    def _iter_modules(root: ModuleType) -> Iterator[ModuleType]:
        yield root

        search_path = getattr(root, "__path__", None)
        if search_path is None:
            return

        def on_error(name: str) -> None:
            raise ControllerScanError(name, ImportError(f"cannot import {name}"))

        for info in pkgutil.walk_packages(
            search_path, prefix=root.__name__ + ".", onerror=on_error
        ):
            try:
                yield importlib.import_module(info.name)
            except Exception as e:  # noqa: BLE001 - any import-time failure
                raise ControllerScanError(info.name, e) from e
