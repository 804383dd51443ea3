from .foyer import Foyer
from .annotations import (
    HttpMethod,
    RequestParam,
    controller,
    get_mapping,
    handle_path,
    post_mapping,
    request_mapping,
)
from .config import Settings
from .exceptions import (
    BadRequestException,
    ConfigurationError,
    ConflictingPathDeclaration,
    ConflictingRoute,
    FoyerError,
    HTTPException,
    NotFoundException,
)
from .model_view import ModelView
from .request import Request
from .response import Response
from .status import HTTPStatus

__version__ = "0.1.0"
__all__ = [
    "Foyer",
    "Settings",
    "Request",
    "Response",
    "ModelView",
    "HTTPStatus",
    "HttpMethod",
    "RequestParam",
    "controller",
    "handle_path",
    "request_mapping",
    "get_mapping",
    "post_mapping",
    "FoyerError",
    "ConfigurationError",
    "ConflictingPathDeclaration",
    "ConflictingRoute",
    "HTTPException",
    "BadRequestException",
    "NotFoundException",
]
