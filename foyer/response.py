"""
Response class for Foyer framework.
"""

from typing import Dict, Any, List, Optional, Union

from .status import HTTPStatus, phrase_for

TEXT_PLAIN = "text/plain; charset=utf-8"
TEXT_HTML = "text/html; charset=utf-8"


class Response:
    """
    Outbound response handed to handlers and filled in by the dispatcher.

    A handler that declares a ``Response`` parameter may write to it
    directly; once a body has been written, a redirect issued or an error
    sent, the response is committed and the handler's return value is
    ignored.

    Supports:
    - Status code, content type and custom headers
    - Incremental body writes (str or bytes)
    - Redirects and error responses
    - Conversion to ASGI response format
    """

    def __init__(
        self,
        status_code: Union[int, HTTPStatus] = HTTPStatus.HTTP_200_OK,
        headers: Optional[Dict[str, str]] = None,
        content_type: Optional[str] = None,
    ):
        self.status_code = int(status_code)
        self.headers: Dict[str, str] = {
            name.lower(): value for name, value in (headers or {}).items()
        }
        if content_type:
            self.headers["content-type"] = content_type
        self._chunks: List[bytes] = []
        self._committed = False

    @property
    def content_type(self) -> Optional[str]:
        return self.headers.get("content-type")

    @content_type.setter
    def content_type(self, value: str) -> None:
        self.headers["content-type"] = value

    @property
    def committed(self) -> bool:
        """True once a body, redirect or error has been produced."""
        return self._committed

    @property
    def body(self) -> bytes:
        return b"".join(self._chunks)

    def set_header(self, name: str, value: str) -> "Response":
        """Set a response header (supports method chaining)."""
        self.headers[name.lower()] = value
        return self

    def set_status(self, status_code: Union[int, HTTPStatus]) -> "Response":
        self.status_code = int(status_code)
        return self

    def write(self, content: Union[str, bytes]) -> "Response":
        """
        Append content to the body and commit the response.

        Text defaults the content type to text/plain.
        """
        if isinstance(content, str):
            content = content.encode("utf-8")
            self.headers.setdefault("content-type", TEXT_PLAIN)
        else:
            self.headers.setdefault("content-type", "application/octet-stream")
        self._chunks.append(content)
        self._committed = True
        return self

    def send_redirect(
        self,
        location: str,
        status_code: Union[int, HTTPStatus] = HTTPStatus.HTTP_302_FOUND,
    ) -> "Response":
        """Replace the response with a redirect to ``location``."""
        self._chunks.clear()
        self.status_code = int(status_code)
        self.headers["location"] = location
        self.headers.pop("content-type", None)
        self._committed = True
        return self

    def send_error(
        self, status_code: Union[int, HTTPStatus], message: Optional[str] = None
    ) -> "Response":
        """Replace the response with a plain-text error."""
        self.status_code = int(status_code)
        self._chunks = [(message or phrase_for(self.status_code)).encode("utf-8")]
        self.headers["content-type"] = TEXT_PLAIN
        self._committed = True
        return self

    def reset(self) -> None:
        """Discard anything written so far (status, headers and body)."""
        self.status_code = int(HTTPStatus.HTTP_200_OK)
        self.headers.clear()
        self._chunks.clear()
        self._committed = False

    def to_asgi_response(self) -> Dict[str, Any]:
        """
        Convert to ASGI response format.

        Returns:
            Dictionary with 'status', 'headers', and 'body' keys
        """
        body = self.body
        headers = dict(self.headers)
        headers["content-length"] = str(len(body))

        asgi_headers = []
        for name, value in headers.items():
            asgi_headers.append(
                [name.lower().encode("utf-8"), str(value).encode("utf-8")]
            )

        return {"status": self.status_code, "headers": asgi_headers, "body": body}

    def __repr__(self) -> str:
        return f"<Response {self.status_code}>"
