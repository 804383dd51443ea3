"""
HTTP status codes used by Foyer.
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """Status codes the front controller can produce."""

    HTTP_200_OK = 200
    HTTP_302_FOUND = 302
    HTTP_303_SEE_OTHER = 303
    HTTP_304_NOT_MODIFIED = 304
    HTTP_400_BAD_REQUEST = 400
    HTTP_403_FORBIDDEN = 403
    HTTP_404_NOT_FOUND = 404
    HTTP_405_METHOD_NOT_ALLOWED = 405
    HTTP_500_INTERNAL_SERVER_ERROR = 500

    @property
    def phrase(self) -> str:
        """Reason phrase, e.g. 'Not Found' for HTTP_404_NOT_FOUND."""
        words = self.name.split("_")[2:]
        return " ".join(word.capitalize() for word in words)


def phrase_for(status_code: int) -> str:
    """Reason phrase for any status code; codes outside HTTPStatus get their number."""
    try:
        return HTTPStatus(int(status_code)).phrase
    except ValueError:
        return str(int(status_code))
