"""
Exception hierarchy for Foyer.

Configuration errors are raised while the route table is built and abort
startup. HTTP exceptions carry a status already shaped for the client and
are passed through the dispatcher untouched.
"""

from typing import Optional

from foyer.status import HTTPStatus, phrase_for


class FoyerError(Exception):
    """Base class for every error raised by the framework."""


# ------------------ BUILD TIME ------------------


class ConfigurationError(FoyerError):
    """The route table cannot be built from the declared controllers."""


class ConflictingPathDeclaration(ConfigurationError):
    def __init__(self, handler: str, paths: list[str]):
        super().__init__(
            f"Conflicting path declarations on handler {handler}: {', '.join(paths)}"
        )
        self.handler = handler
        self.paths = paths


class ConflictingRoute(ConfigurationError):
    def __init__(self, path: str, existing: str, incoming: str):
        super().__init__(
            f"Conflicting controllers for path {path}: {existing} vs {incoming}"
        )
        self.path = path
        self.existing = existing
        self.incoming = incoming


class InvalidRouteTemplate(ConfigurationError):
    def __init__(self, template: str, reason: str):
        super().__init__(f"Invalid route template '{template}': {reason}")
        self.template = template


class UnsupportedParameterType(ConfigurationError):
    def __init__(self, handler: str, parameter: str, annotation: object):
        super().__init__(
            f"Parameter '{parameter}' of handler {handler} has unsupported type {annotation!r}"
        )
        self.handler = handler
        self.parameter = parameter
        self.annotation = annotation


class ControllerScanError(ConfigurationError):
    def __init__(self, module: str, cause: BaseException):
        super().__init__(f"Failed to import controller module {module}: {cause}")
        self.module = module


# ------------------ REQUEST TIME ------------------


class HTTPException(FoyerError):
    """An error that maps directly onto an HTTP response."""

    status_code: int = HTTPStatus.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self, message: Optional[str] = None, status_code: Optional[int] = None
    ):
        if status_code is not None:
            self.status_code = int(status_code)
        self.message = message or phrase_for(self.status_code)
        super().__init__(self.message)


class BadRequestException(HTTPException):
    status_code = HTTPStatus.HTTP_400_BAD_REQUEST


class NotFoundException(HTTPException):
    status_code = HTTPStatus.HTTP_404_NOT_FOUND


class MethodNotAllowedException(HTTPException):
    status_code = HTTPStatus.HTTP_405_METHOD_NOT_ALLOWED


class HandlerInvocationError(FoyerError):
    """A handler (or its controller constructor) raised while running."""

    def __init__(self, handler: str, cause: BaseException):
        super().__init__(f"Error while executing handler {handler}: {cause}")
        self.handler = handler
        self.cause = cause


class ViewResolutionError(FoyerError):
    """A ModelView result cannot be turned into a view."""
