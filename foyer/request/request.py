"""
Request class for Foyer framework.
"""

import urllib.parse
from typing import Dict, Any, Optional, List, Callable, Awaitable

from ..exceptions import BadRequestException


class Request:
    """
    Request object that wraps an ASGI scope for easier access to HTTP request data.

    Provides convenient access to:
    - HTTP method, path (relative to the application root), headers
    - Query parameters and URL-encoded form fields
    - Per-request attributes handed to the view renderer
    """

    def __init__(
        self,
        scope: Dict[str, Any],
        receive: Optional[Callable[[], Awaitable[Dict[str, Any]]]] = None,
    ):
        """
        Initialize Request object from ASGI scope and receive callable.

        Args:
            scope: ASGI scope dictionary containing request metadata
            receive: ASGI receive callable for reading request body
        """
        self._scope = scope
        self._receive = receive
        self._body: Optional[bytes] = None
        self._form: Optional[Dict[str, List[str]]] = None
        self._query_params: Dict[str, str] | None = None
        self._query_params_multi_values: Dict[str, List[str]] | None = None
        self._headers: Dict[str, str] | None = None
        self._body_loaded = False
        self.attributes: Dict[str, Any] = {}

    @classmethod
    async def from_asgi(
        cls, scope: Dict[str, Any], receive: Callable[[], Awaitable[Dict[str, Any]]]
    ) -> "Request":
        """
        Create a Request from ASGI 'scope' and 'receive' and load its body.

        Loading the body awaits on 'receive', so it cannot happen in __init__.
        """
        request = cls(scope, receive)
        await request.load_body()
        return request

    async def load_body(self) -> None:
        """
        Load the request body from the ASGI 'receive' callable and parse
        URL-encoded form content.
        """
        if self._body_loaded:
            return

        if self._receive is None:
            self._body = b""
        else:
            self._body = await self._receive_complete_message(self._receive)

        if self.is_form():
            self._parse_form_data()

        self._body_loaded = True

    def body(self) -> bytes:
        """Raw request body as bytes"""
        if self._body is None:
            raise RuntimeError(
                "Request body has not been loaded. Call 'await request.load_body()' first."
            )
        return self._body

    def text(self) -> str:
        """Request body decoded as UTF-8 text"""
        return self.body().decode("utf-8")

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get a header value by name (case-insensitive)."""
        return self.headers.get(name.lower(), default)

    def is_form(self) -> bool:
        """Check if the request has form content type"""
        content_type = self.content_type
        return (
            content_type is not None
            and "application/x-www-form-urlencoded" in content_type.lower()
        )

    def get_parameter(self, name: str) -> Optional[str]:
        """
        First value of a request parameter, looking at the query string first
        and then at the form body. Returns None when the parameter is absent.
        """
        values = self.query_params_multi_values.get(name)
        if values:
            return values[0]
        values = self.form_multi_values.get(name)
        if values:
            return values[0]
        return None

    @property
    def parameters(self) -> Dict[str, str]:
        """All request parameters (first value each); query string wins over form."""
        merged = {name: values[0] for name, values in self.form_multi_values.items() if values}
        merged.update(self.query_params)
        return merged

    # Attributes exposed to views

    def set_attribute(self, name: str, value: Any) -> None:
        self.attributes[name] = value

    def get_attribute(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)

    @property
    def content_type(self) -> Optional[str]:
        """Content-Type header value, or None if not present"""
        return self.headers.get("content-type")

    @property
    def form(self) -> Dict[str, str]:
        """Parsed form fields from the request body (first value each)."""
        return {name: values[0] if values else "" for name, values in self.form_multi_values.items()}

    @property
    def form_multi_values(self) -> Dict[str, List[str]]:
        return self._form or {}

    @property
    def headers(self) -> Dict[str, str]:
        """
        Request headers as a case-insensitive dictionary.

        Returns:
            Dictionary with lowercase header names as keys
        """
        if self._headers is None:
            self._headers = {}
            for name, value in self._scope.get("headers", []):
                self._headers[name.decode().lower()] = value.decode()
        return self._headers

    @property
    def method(self) -> str:
        """HTTP method (GET, POST, ...)"""
        return self._scope.get("method", "GET")

    @property
    def root_path(self) -> str:
        """Mount point of the application (the servlet 'context path')."""
        return self._scope.get("root_path", "").rstrip("/")

    @property
    def path(self) -> str:
        """
        Request path relative to the application root, always starting with '/'.

        Example: root_path '/shop' and path '/shop/items/7' -> '/items/7'
        """
        full_path = self._scope.get("path", "/")
        root_path = self.root_path
        if root_path and (full_path == root_path or full_path.startswith(root_path + "/")):
            full_path = full_path[len(root_path):]

        if not full_path:
            return "/"
        return full_path if full_path.startswith("/") else "/" + full_path

    @property
    def query_params(self) -> Dict[str, str]:
        """
        Query parameters parsed as a dictionary.

        For duplicate parameters, only the first value is kept.

        Example: '?page=1&tags=python&tags=web' -> {'page': '1', 'tags': 'python'}
        """
        if self._query_params is None:
            self._query_params = {
                key: value_list[0] if value_list else ""
                for key, value_list in self.query_params_multi_values.items()
            }
        return self._query_params

    @property
    def query_params_multi_values(self) -> Dict[str, List[str]]:
        """
        Query parameters with every value preserved.

        Example: '?page=1&tags=python&tags=web' -> {'page': ['1'], 'tags': ['python', 'web']}
        """
        if self._query_params_multi_values is None:
            self._query_params_multi_values = {}
            if self.query_string:
                self._query_params_multi_values = urllib.parse.parse_qs(
                    self.query_string, keep_blank_values=True
                )
        return self._query_params_multi_values

    @property
    def query_string(self) -> str:
        """Raw query string as decoded string (e.g., 'page=1&limit=10')"""
        return self._scope.get("query_string", b"").decode("utf-8")

    def _parse_form_data(self) -> None:
        """Parse URL-encoded form data from the request body."""
        self._form = {}
        if self._body:
            try:
                body_str = self._body.decode("utf-8")
            except UnicodeDecodeError as e:
                raise BadRequestException("Malformed form body: not valid UTF-8") from e
            self._form = urllib.parse.parse_qs(body_str, keep_blank_values=True)

    async def _receive_complete_message(
        self,
        receive: Callable[[], Awaitable[Dict[str, Any]]],
    ) -> bytes:
        """
        Receive the complete HTTP request body from the ASGI receive callable.

        The body may arrive in several 'http.request' messages.
        """
        body_parts: List[bytes] = []
        while True:
            message = await receive()
            if message["type"] == "http.request":
                body_part = message.get("body", b"")
                if body_part:
                    body_parts.append(body_part)
                if not message.get("more_body", False):
                    break
            elif message["type"] == "http.disconnect":
                break
        return b"".join(body_parts)

    def __repr__(self) -> str:
        return f"<Request {self.method} {self.path}>"
