"""
Handler argument binding.

A handler's signature is turned into a parameter plan once, when routes are
extracted. Per request, the binder walks that plan and either produces the
call arguments (``Bound``) or explains why the handler cannot serve the
request (``Rejected``), in which case the dispatcher tries the next
candidate.
"""

import inspect
import types
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Annotated,
    Any,
    Callable,
    Dict,
    List,
    Optional,
    Sequence,
    Tuple,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

from pydantic import BaseModel, ValidationError

from ..annotations import RequestParam
from ..exceptions import UnsupportedParameterType
from ..request import Request
from ..response import Response
from .converters import convert_value, is_supported_type, zero_value

EMPTY = inspect.Parameter.empty


class SourceKind(Enum):
    """Where a parameter's value comes from."""

    REQUEST = "request"
    RESPONSE = "response"
    VALUE = "value"
    MODEL = "model"


@dataclass(frozen=True)
class ParameterSpec:
    """
    Precomputed binding plan for one handler parameter.

    Attributes:
        name: Parameter name in the handler signature.
        kind: Binding source.
        target_type: Declared type with Optional/Annotated wrappers removed.
        explicit_name: Name given through RequestParam, if any.
        optional: True for Optional[T] annotations.
        default: Python default value, or inspect.Parameter.empty.
        keyword_only: Parameter must be passed by keyword.
    """

    name: str
    kind: SourceKind
    target_type: Any = str
    explicit_name: Optional[str] = None
    optional: bool = False
    default: Any = EMPTY
    keyword_only: bool = False

    @property
    def candidate_names(self) -> Tuple[str, ...]:
        """Names tried when looking the value up, explicit name first."""
        if self.explicit_name is None:
            return (self.name,)
        if self.explicit_name == self.name:
            return (self.explicit_name,)
        return (self.explicit_name, self.name)

    def absent_value(self) -> Any:
        """Value bound when the request carries nothing usable."""
        if self.default is not EMPTY:
            return self.default
        if self.optional:
            return None
        return zero_value(self.target_type)


@dataclass
class PathVariable:
    """A value captured from a placeholder segment of the request path."""

    name: Optional[str]
    value: str
    consumed: bool = False


@dataclass(frozen=True)
class Bound:
    """Arguments ready for the handler call."""

    args: Tuple[Any, ...] = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Rejected:
    """The handler cannot serve this request."""

    reason: str


BindingResult = Union[Bound, Rejected]

_MISSING = object()


# ------------------ PLAN ------------------


def build_parameter_plan(
    func: Callable, handler_name: str, skip_first: bool = True
) -> Tuple[ParameterSpec, ...]:
    """
    Inspect a handler function and describe how to bind each parameter.

    Args:
        func: The plain function (not bound to an instance)
        handler_name: Qualified name used in error messages
        skip_first: Skip the first parameter (``self``)

    Raises:
        UnsupportedParameterType: If a parameter can never be bound.
    """
    sig = inspect.signature(func)
    try:
        hints = get_type_hints(func, include_extras=True)
    except Exception:  # noqa: BLE001 - unresolvable forward references
        hints = {}

    parameters = list(sig.parameters.values())
    if skip_first and parameters:
        parameters = parameters[1:]

    plan = []
    for param in parameters:
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            raise UnsupportedParameterType(handler_name, param.name, str(param))

        annotation = hints.get(param.name, param.annotation)
        plan.append(_plan_parameter(param, annotation, handler_name))

    return tuple(plan)


def _plan_parameter(
    param: inspect.Parameter, annotation: Any, handler_name: str
) -> ParameterSpec:
    explicit_name = None
    if get_origin(annotation) is Annotated:
        annotation, *metadata = get_args(annotation)
        for item in metadata:
            if isinstance(item, RequestParam):
                explicit_name = item.name.strip()

    optional = _is_optional_type(annotation)
    target_type = _unwrap_type(annotation)
    if target_type is _MISSING:
        raise UnsupportedParameterType(handler_name, param.name, annotation)

    keyword_only = param.kind == param.KEYWORD_ONLY

    if isinstance(target_type, type) and issubclass(target_type, Request):
        kind = SourceKind.REQUEST
    elif isinstance(target_type, type) and issubclass(target_type, Response):
        kind = SourceKind.RESPONSE
    elif isinstance(target_type, type) and issubclass(target_type, BaseModel):
        kind = SourceKind.MODEL
    elif is_supported_type(target_type):
        kind = SourceKind.VALUE
    else:
        raise UnsupportedParameterType(handler_name, param.name, annotation)

    return ParameterSpec(
        name=param.name,
        kind=kind,
        target_type=target_type,
        explicit_name=explicit_name,
        optional=optional,
        default=param.default,
        keyword_only=keyword_only,
    )


def _is_optional_type(annotation: Any) -> bool:
    """Check if a type annotation is Optional[T], Union[T, None] or T | None."""
    origin = get_origin(annotation)
    return origin in (Union, types.UnionType) and type(None) in get_args(annotation)


def _unwrap_type(annotation: Any) -> Any:
    """
    Get the non-None type from an annotation.

    Unannotated parameters and ``Any`` bind as text. Unions of several
    concrete types cannot be bound.
    """
    if annotation is EMPTY or annotation is Any:
        return str

    if get_origin(annotation) in (Union, types.UnionType):
        non_none_args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(non_none_args) == 1:
            return _unwrap_type(non_none_args[0])
        return _MISSING

    return annotation


# ------------------ BINDING ------------------


class ArgumentBinder:
    """
    Binds request data to a handler's parameter plan.

    Resolution for a value parameter, first success wins:
        1. an unconsumed path variable whose name matches (case-insensitive)
        2. a query-string or form field with exactly that name
        3. the next unconsumed path variable, for parameters without an
           explicit RequestParam name

    Steps 1-2 run for every parameter before any parameter falls back to
    step 3. Every path variable must end up consumed.
    """

    def bind(
        self,
        plan: Sequence[ParameterSpec],
        path_variables: List[PathVariable],
        request: Request,
        response: Response,
    ) -> BindingResult:
        raw_values: List[Any] = []

        for spec in plan:
            if spec.kind is SourceKind.VALUE:
                raw_values.append(self._find_named_value(spec, path_variables, request))
            else:
                raw_values.append(_MISSING)

        for index, spec in enumerate(plan):
            if spec.kind is not SourceKind.VALUE or spec.explicit_name is not None:
                continue
            if raw_values[index] is _MISSING:
                raw_values[index] = self._take_positional(path_variables)

        args: List[Any] = []
        kwargs: Dict[str, Any] = {}
        for spec, raw in zip(plan, raw_values):
            try:
                value = self._resolve(spec, raw, request, response)
            except ValidationError as e:
                return Rejected(
                    f"parameter '{spec.name}': {e.error_count()} validation error(s)"
                )
            except (ValueError, TypeError) as e:
                return Rejected(f"parameter '{spec.name}': {e}")

            if spec.keyword_only:
                kwargs[spec.name] = value
            else:
                args.append(value)

        unconsumed = [variable for variable in path_variables if not variable.consumed]
        if unconsumed:
            names = ", ".join(variable.name or variable.value for variable in unconsumed)
            return Rejected(f"path variables not bound by any parameter: {names}")

        return Bound(tuple(args), kwargs)

    def _find_named_value(
        self, spec: ParameterSpec, path_variables: List[PathVariable], request: Request
    ) -> Any:
        for candidate in spec.candidate_names:
            lowered = candidate.lower()
            for variable in path_variables:
                if variable.consumed or variable.name is None:
                    continue
                if variable.name.lower() == lowered:
                    variable.consumed = True
                    return variable.value

        for candidate in spec.candidate_names:
            value = request.get_parameter(candidate)
            if value is not None:
                return value

        return _MISSING

    @staticmethod
    def _take_positional(path_variables: List[PathVariable]) -> Any:
        for variable in path_variables:
            if not variable.consumed:
                variable.consumed = True
                return variable.value
        return _MISSING

    @staticmethod
    def _resolve(
        spec: ParameterSpec, raw: Any, request: Request, response: Response
    ) -> Any:
        if spec.kind is SourceKind.REQUEST:
            return request
        if spec.kind is SourceKind.RESPONSE:
            return response
        if spec.kind is SourceKind.MODEL:
            return spec.target_type.model_validate(request.parameters)

        if raw is _MISSING:
            return spec.absent_value()
        if raw == "":
            return "" if spec.target_type is str else spec.absent_value()
        return convert_value(raw, spec.target_type)
