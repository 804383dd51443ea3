"""
Route registry for Foyer framework.

The registry is built once by a RegistryBuilder and then only read:

    builder = RegistryBuilder()
    builder.scan_packages("shop.controllers, admin.controllers")
    builder.register(HealthController)
    registry = builder.build()

    route = registry.lookup_static("/about")
    for route in registry.dynamic_routes:
        ...
"""

import inspect
import logging
import threading
from collections import defaultdict
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

from ..annotations import is_controller
from .extractor import ControllerDescriptor, RouteExtractor
from .route import RouteDescriptor, qualified_name
from .scanner import ClassDiscoverer

logger = logging.getLogger(__name__)


class RouteRegistry:
    """
    Immutable route table.

    Attributes:
        static_routes: Read-only mapping of exact path -> route.
        dynamic_routes: Placeholder routes in registration order; the first
                        registered route that matches is tried first.
    """

    def __init__(
        self,
        static_routes: Mapping[str, RouteDescriptor],
        dynamic_routes: Iterable[RouteDescriptor],
    ):
        self.static_routes: Mapping[str, RouteDescriptor] = MappingProxyType(
            dict(static_routes)
        )
        self.dynamic_routes: Tuple[RouteDescriptor, ...] = tuple(dynamic_routes)

    def lookup_static(self, path: str) -> Optional[RouteDescriptor]:
        return self.static_routes.get(path)

    @property
    def routes(self) -> Tuple[RouteDescriptor, ...]:
        """Every route, static first, then dynamic in matching order."""
        return tuple(self.static_routes.values()) + self.dynamic_routes

    def __len__(self) -> int:
        return len(self.static_routes) + len(self.dynamic_routes)

    def __repr__(self) -> str:
        return (
            f"<RouteRegistry static={len(self.static_routes)} "
            f"dynamic={len(self.dynamic_routes)}>"
        )


class RegistryBuilder:
    """
    Collects routes from controllers and seals them into a RouteRegistry.

    Routes are merged by canonical path: a new path is inserted; a path
    already declared by the same controller gains the incoming handlers; a
    path declared by a different controller raises ConflictingRoute.

    Scanning the same package twice is a no-op. Scans of a given package are
    serialized by a per-package lock.
    """

    def __init__(
        self,
        discoverer: Optional[ClassDiscoverer] = None,
        extractor: Optional[RouteExtractor] = None,
    ):
        self.discoverer = discoverer or ClassDiscoverer()
        self.extractor = extractor or RouteExtractor()
        self._routes: Dict[str, RouteDescriptor] = {}
        self._dynamic_order: List[str] = []
        self._controllers: Dict[type, ControllerDescriptor] = {}
        self._scanned_packages: Set[str] = set()
        self._package_locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        self._lock = threading.RLock()

    @property
    def controllers(self) -> Tuple[ControllerDescriptor, ...]:
        with self._lock:
            return tuple(self._controllers.values())

    @property
    def scanned_packages(self) -> frozenset:
        with self._lock:
            return frozenset(self._scanned_packages)

    def scan_packages(self, packages) -> "RegistryBuilder":
        """
        Scan several package scopes in order.

        Args:
            packages: Comma-separated string or iterable of package names.
                      Blank entries are skipped.
        """
        if isinstance(packages, str):
            packages = packages.split(",")
        for package in packages:
            if package and package.strip():
                self.scan(package.strip())
        return self

    def scan(self, package_name: str) -> "RegistryBuilder":
        """Discover the controllers of a package and merge their routes."""
        with self._lock:
            package_lock = self._package_locks[package_name]

        with package_lock:
            with self._lock:
                if package_name in self._scanned_packages:
                    return self

            controllers = [
                cls for cls in self.discoverer.discover(package_name) if is_controller(cls)
            ]
            controllers.sort(key=self._registration_key)

            with self._lock:
                for controller in controllers:
                    self._register(controller)
                self._scanned_packages.add(package_name)

            logger.info(
                "Scanned package '%s': %d controller(s)", package_name, len(controllers)
            )
        return self

    def register(self, *controllers: type) -> "RegistryBuilder":
        """Register controller classes explicitly, in the given order."""
        with self._lock:
            for controller in controllers:
                self._register(controller)
        return self

    def build(self) -> RouteRegistry:
        """Seal the collected routes into an immutable registry."""
        with self._lock:
            static_routes = {}
            dynamic_routes = []
            for path, route in self._routes.items():
                sealed = route.copy().seal()
                if sealed.is_dynamic:
                    continue
                static_routes[path] = sealed
            for path in self._dynamic_order:
                dynamic_routes.append(self._routes[path].copy().seal())

        registry = RouteRegistry(static_routes, dynamic_routes)
        logger.info(
            "Routes registered: %s",
            ", ".join(route.path for route in registry.routes) or "(none)",
        )
        return registry

    def _register(self, controller: type) -> None:
        descriptor = self._controllers.get(controller)
        if descriptor is None:
            descriptor = self.extractor.extract(controller)
            self._controllers[controller] = descriptor
            logger.debug("Registered controller %s", descriptor.name)

        for route in descriptor.routes:
            self._merge(route)

    def _merge(self, route: RouteDescriptor) -> None:
        existing = self._routes.get(route.path)
        if existing is None:
            merged = route.copy()
            self._routes[route.path] = merged
            if merged.is_dynamic:
                self._dynamic_order.append(route.path)
            return

        existing.merge(route)

    @staticmethod
    def _registration_key(cls: type) -> Tuple[str, int, str]:
        try:
            line = inspect.getsourcelines(cls)[1]
        except (OSError, TypeError):
            line = 0
        return cls.__module__, line, qualified_name(cls)
