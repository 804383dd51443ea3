"""
Declarative decorators for controllers and handlers.

    @controller
    class ItemController:

        @get_mapping("/items/{id}")
        def show(self, id: int):
            return f"item {id}"

        @request_mapping("/items", methods={HttpMethod.GET, HttpMethod.POST})
        def listing(self, page: Annotated[int, RequestParam("p")]):
            ...

Decorators only attach metadata; routes are resolved later by the route
extractor. Several declarations may be stacked on the same function.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, FrozenSet, Iterable, List, Optional, TypeVar, Union

T = TypeVar("T", bound=type)
F = TypeVar("F", bound=Callable)

CONTROLLER_ATTR = "__foyer_controller__"
MAPPINGS_ATTR = "__foyer_mappings__"


class HttpMethod(Enum):
    """HTTP verbs the front controller dispatches."""

    GET = "GET"
    POST = "POST"

    @classmethod
    def from_request_method(cls, method: Optional[str]) -> Optional["HttpMethod"]:
        """Return the verb for a request method string, or None if unsupported."""
        if method is None:
            return None
        try:
            return cls(method.upper())
        except ValueError:
            return None


@dataclass(frozen=True)
class MappingDeclaration:
    """One handler declaration as written on a function."""

    kind: str
    path: Optional[str]
    methods: FrozenSet[HttpMethod]


@dataclass(frozen=True)
class RequestParam:
    """
    Explicit binding name for a handler parameter.

    Used as ``Annotated`` metadata::

        def search(self, query: Annotated[str, RequestParam("q")]): ...
    """

    name: str

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("RequestParam name cannot be blank")


def controller(cls: T) -> T:
    """Class decorator marking a class as a routable controller."""
    setattr(cls, CONTROLLER_ATTR, True)
    return cls


def is_controller(candidate: object) -> bool:
    return isinstance(candidate, type) and candidate.__dict__.get(CONTROLLER_ATTR, False)


def mapping_declarations(func: Callable) -> List[MappingDeclaration]:
    """Declarations attached to a function, in decoration order (innermost first)."""
    return list(getattr(func, MAPPINGS_ATTR, ()))


def _coerce_methods(methods: Iterable[Union[HttpMethod, str]]) -> FrozenSet[HttpMethod]:
    resolved = set()
    for method in methods:
        if method is None:
            continue
        if isinstance(method, HttpMethod):
            resolved.add(method)
            continue
        verb = HttpMethod.from_request_method(method)
        if verb is None:
            raise ValueError(f"Unsupported HTTP method: {method}")
        resolved.add(verb)
    return frozenset(resolved)


def _declare(kind: str, path: Optional[str], methods: Iterable) -> Callable[[F], F]:
    declaration = MappingDeclaration(kind, path, _coerce_methods(methods))

    def decorator(func: F) -> F:
        # staticmethod/classmethod wrappers carry the function in __func__
        target = getattr(func, "__func__", func)
        existing = getattr(target, MAPPINGS_ATTR, ())
        setattr(target, MAPPINGS_ATTR, (*existing, declaration))
        return func

    return decorator


def handle_path(path: Optional[str] = "") -> Callable[[F], F]:
    """Route a handler on a path, accepting any supported verb."""
    return _declare("handle_path", path, ())


def request_mapping(
    path: Optional[str] = "",
    methods: Iterable[Union[HttpMethod, str]] = (),
) -> Callable[[F], F]:
    """Route a handler on a path, restricted to ``methods`` when given."""
    return _declare("request_mapping", path, methods)


def get_mapping(path: Optional[str] = "") -> Callable[[F], F]:
    """Decorator for GET handlers."""
    return _declare("get_mapping", path, (HttpMethod.GET,))


def post_mapping(path: Optional[str] = "") -> Callable[[F], F]:
    """Decorator for POST handlers."""
    return _declare("post_mapping", path, (HttpMethod.POST,))
