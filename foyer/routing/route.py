"""
Route descriptors for Foyer framework.

A RouteDescriptor is one path template owned by one controller, with the
handler methods of that controller attached to it.
"""

import inspect
import re
from dataclasses import dataclass
from typing import Callable, FrozenSet, List, Optional, Tuple

from ..annotations import HttpMethod
from ..exceptions import ConflictingRoute, InvalidRouteTemplate
from .binding import ParameterSpec


def normalize_path(value: Optional[str]) -> str:
    """
    Canonical form of a path template: blank -> '/', otherwise trimmed and
    prefixed with '/' when missing.
    """
    if value is None or not value.strip():
        return "/"
    value = value.strip()
    return value if value.startswith("/") else "/" + value


def qualified_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


@dataclass(frozen=True)
class HandlerDescriptor:
    """
    One invocable handler method of a controller.

    Attributes:
        controller: The controller class declaring the method.
        name: Attribute name of the method on the controller.
        function: The underlying function.
        parameters: Binding plan, one entry per parameter (``self`` excluded).
        http_methods: Accepted verbs. Empty means every supported verb.
    """

    controller: type
    name: str
    function: Callable
    parameters: Tuple[ParameterSpec, ...]
    http_methods: FrozenSet[HttpMethod] = frozenset()

    @property
    def qualified_name(self) -> str:
        return f"{qualified_name(self.controller)}.{self.name}"

    @property
    def is_coroutine(self) -> bool:
        return inspect.iscoroutinefunction(self.function)

    def accepts(self, method: Optional[HttpMethod]) -> bool:
        if not self.http_methods:
            return True
        return method is not None and method in self.http_methods

    def with_methods(self, additional: FrozenSet[HttpMethod]) -> "HandlerDescriptor":
        """
        Fold another declaration's verbs into this handler.

        An unconditional handler stays unconditional; folding an
        unconditional declaration makes the handler unconditional.
        """
        if not self.http_methods:
            return self
        if not additional:
            methods = frozenset()
        else:
            methods = self.http_methods | additional
        return HandlerDescriptor(
            self.controller, self.name, self.function, self.parameters, methods
        )

    def __repr__(self) -> str:
        verbs = ",".join(sorted(m.value for m in self.http_methods)) or "*"
        return f"<Handler {verbs} {self.qualified_name}>"


class RouteDescriptor:
    """
    One path template and the handlers attached to it.

    Static templates (no placeholder) match by string equality. Dynamic
    templates are compiled into an anchored regex where every ``{name}``
    segment captures one non-empty segment of the request path.

    Attributes:
        controller: Owning controller class. Every handler belongs to it.
        template: Template as declared (trimmed).
        path: Normalized template, always starting with '/'.
        parameter_names: Placeholder names, left to right. Empty if static.
        route_regex: Compiled matcher, or None for static templates.
        segment_count: Number of '/'-separated segments in the template.

    Example:
        >>> route = RouteDescriptor(ItemController, "/items/{id}")
        >>> route.match("/items/42")
        ['42']
        >>> route.match("/items/42/edit") is None
        True
    """

    def __init__(self, controller: type, template: Optional[str]):
        if controller is None:
            raise ValueError("controller is required")

        self.controller = controller
        self.template = "/" if template is None else template.strip()
        self.path = normalize_path(self.template)
        self.parameter_names: Tuple[str, ...] = ()
        self.route_regex: Optional[re.Pattern] = None
        self.segment_count = self._count_path_segments(self.path)
        self._handlers: List[HandlerDescriptor] = []
        self._sealed = False

        self.route_regex, self.parameter_names = self._compile_route_pattern()

    @property
    def is_dynamic(self) -> bool:
        return self.route_regex is not None

    @property
    def handlers(self) -> Tuple[HandlerDescriptor, ...]:
        return tuple(self._handlers)

    def _compile_route_pattern(self) -> Tuple[Optional[re.Pattern], Tuple[str, ...]]:
        """
        Compile the normalized template into a regex.

        Returns:
            Tuple of (compiled regex or None when static, placeholder names)
        """
        segments = self.path[1:].split("/")
        if segments == [""]:
            return None, ()

        names: List[str] = []
        regex_parts: List[str] = []
        for segment in segments:
            if self._is_placeholder(segment):
                name = segment[1:-1].strip()
                if not name:
                    raise InvalidRouteTemplate(self.path, "placeholder name cannot be empty")
                names.append(name)
                regex_parts.append("([^/]+)")
            else:
                regex_parts.append(re.escape(segment))

        if not names:
            return None, ()

        return re.compile("^/" + "/".join(regex_parts) + "$"), tuple(names)

    @staticmethod
    def _is_placeholder(segment: str) -> bool:
        return segment.startswith("{") and segment.endswith("}") and len(segment) >= 2

    @staticmethod
    def _count_path_segments(path: str) -> int:
        """Count the number of path segments by counting '/' characters."""
        return path.count("/")

    def match(self, request_path: Optional[str]) -> Optional[List[str]]:
        """
        Match a request path against this template.

        Returns:
            Extracted placeholder values in template order (empty for a
            static route), or None when the path does not match.
        """
        if request_path is None:
            return None

        if self.route_regex is None:
            return [] if request_path == self.path else None

        # Quick segment count check before regex matching
        if self._count_path_segments(request_path) != self.segment_count:
            return None

        match = self.route_regex.match(request_path)
        if not match:
            return None
        return list(match.groups())

    # --- Build-time mutation, refused once sealed ---

    def add_handler(self, handler: HandlerDescriptor) -> None:
        """Attach a handler, folding verb sets when the method is already attached."""
        self._check_mutable()
        if handler.controller is not self.controller:
            raise ConflictingRoute(
                self.path, qualified_name(self.controller), qualified_name(handler.controller)
            )

        for index, existing in enumerate(self._handlers):
            if existing.function is handler.function:
                self._handlers[index] = existing.with_methods(handler.http_methods)
                return

        self._handlers.append(handler)

    def merge(self, other: "RouteDescriptor") -> None:
        """Merge the handlers of a descriptor declared for the same path."""
        self._check_mutable()
        if other.controller is not self.controller:
            raise ConflictingRoute(
                self.path, qualified_name(self.controller), qualified_name(other.controller)
            )
        for handler in other.handlers:
            self.add_handler(handler)

    def seal(self) -> "RouteDescriptor":
        self._sealed = True
        return self

    def copy(self) -> "RouteDescriptor":
        """Unsealed copy sharing the compiled matcher."""
        clone = RouteDescriptor.__new__(RouteDescriptor)
        clone.__dict__.update(self.__dict__)
        clone._handlers = list(self._handlers)
        clone._sealed = False
        return clone

    def _check_mutable(self) -> None:
        if self._sealed:
            raise RuntimeError(f"Route {self.path} is sealed and cannot be modified")

    def __repr__(self) -> str:
        kind = "dynamic" if self.is_dynamic else "static"
        return f"<Route {kind} {self.path} handlers={len(self._handlers)}>"
