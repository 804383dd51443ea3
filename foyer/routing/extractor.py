"""
Route extraction: turn a controller class into route descriptors.
"""

import inspect
import logging
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, List, Optional, Tuple

from ..annotations import HttpMethod, MappingDeclaration, is_controller, mapping_declarations
from ..exceptions import ConfigurationError, ConflictingPathDeclaration
from .binding import build_parameter_plan
from .route import HandlerDescriptor, RouteDescriptor, normalize_path, qualified_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ControllerDescriptor:
    """A controller class with its handlers and the routes they declare."""

    controller: type
    handlers: Tuple[HandlerDescriptor, ...]
    routes: Tuple[RouteDescriptor, ...]

    @property
    def name(self) -> str:
        return qualified_name(self.controller)


class RouteExtractor:
    """
    Finds the handler methods of a controller class and groups them by
    canonical path.

    Handlers are the functions defined in the class body that carry at least
    one mapping decorator, taken in definition order. Inherited methods are
    not considered.
    """

    def extract(self, controller: type) -> ControllerDescriptor:
        if not is_controller(controller):
            raise ConfigurationError(
                f"{qualified_name(controller)} is not marked with @controller"
            )

        routes: Dict[str, RouteDescriptor] = {}
        handlers: List[HandlerDescriptor] = []

        for name, member in controller.__dict__.items():
            func, is_static = self._unwrap_member(member)
            if func is None:
                continue

            declarations = mapping_declarations(func)
            if not declarations:
                continue

            label = f"{qualified_name(controller)}.{name}"
            path = self.resolve_path(declarations, label)
            handler = HandlerDescriptor(
                controller=controller,
                name=name,
                function=func,
                parameters=build_parameter_plan(func, label, skip_first=not is_static),
                http_methods=self.resolve_http_methods(declarations),
            )
            handlers.append(handler)

            route = routes.get(path)
            if route is None:
                route = routes[path] = RouteDescriptor(controller, path)
            route.add_handler(handler)
            logger.debug("Mapped %r on %s", handler, path)

        return ControllerDescriptor(controller, tuple(handlers), tuple(routes.values()))

    @staticmethod
    def _unwrap_member(member: object) -> Tuple[Optional[Callable], bool]:
        if isinstance(member, staticmethod):
            return member.__func__, True
        # the first parameter of a classmethod is cls, skipped like self
        if isinstance(member, classmethod):
            return member.__func__, False
        if inspect.isfunction(member):
            return member, False
        return None, False

    @staticmethod
    def resolve_path(declarations: List[MappingDeclaration], handler: str) -> str:
        """
        Canonical path of a handler. Blank declarations do not take part; the
        remaining ones must agree once normalized.

        Raises:
            ConflictingPathDeclaration: If two declarations name different paths.
        """
        resolved = None
        seen = []
        for declaration in declarations:
            if declaration.path is None or not declaration.path.strip():
                continue
            normalized = normalize_path(declaration.path)
            seen.append(normalized)
            if resolved is None:
                resolved = normalized
            elif resolved != normalized:
                raise ConflictingPathDeclaration(handler, seen)

        return resolved if resolved is not None else "/"

    @staticmethod
    def resolve_http_methods(declarations: List[MappingDeclaration]) -> FrozenSet[HttpMethod]:
        """Union of every declared verb; empty means any supported verb."""
        methods = frozenset()
        for declaration in declarations:
            methods |= declaration.methods
        return methods
