"""
Foyer Testing Package.

Utilities for exercising Foyer applications in-process:
- TestClient: Runs requests through the ASGI application
- TestRequest: Builder for query parameters, form data, headers and bodies
- TestResponse: Response examination utilities
"""

from .client import TestClient
from .request import TestRequest
from .response import TestResponse

__all__ = ["TestClient", "TestRequest", "TestResponse"]
