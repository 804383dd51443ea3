"""
Unit tests for the Foyer Request class.
"""

from typing import Any, Dict, Optional

import pytest

from foyer.exceptions import BadRequestException
from foyer.request import Request


def create_mock_receive(body=b"", more_body=False):
    """Helper to create mock receive callable for tests."""

    async def mock_receive():
        return {"type": "http.request", "body": body, "more_body": more_body}

    return mock_receive


def create_chunked_receive(*chunks):
    """Receive callable delivering the body in several messages."""
    messages = [
        {"type": "http.request", "body": chunk, "more_body": index < len(chunks) - 1}
        for index, chunk in enumerate(chunks)
    ]

    async def mock_receive():
        return messages.pop(0)

    return mock_receive


def create_scope(
    method: str = "GET",
    path: str = "/",
    query_string: str = "",
    headers: Optional[Dict[str, str]] = None,
    **kwargs,
) -> Dict[str, Any]:
    """
    Create a flexible ASGI scope for testing with full control over all parameters.
    """
    headers_list = []
    if headers:
        headers_list = [[k.encode(), v.encode()] for k, v in headers.items()]

    scope = {
        "type": "http",
        "method": method,
        "path": path,
        "query_string": query_string.encode(),
        "headers": headers_list,
        "server": ("localhost", 8000),
        "scheme": "http",
    }
    scope.update(kwargs)
    return scope


FORM_HEADERS = {"Content-Type": "application/x-www-form-urlencoded"}


class TestRequestBasics:
    def test_method_and_path(self):
        request = Request(create_scope(method="POST", path="/items"))
        assert request.method == "POST"
        assert request.path == "/items"
        assert repr(request) == "<Request POST /items>"

    def test_headers_are_case_insensitive(self):
        request = Request(create_scope(headers={"X-Token": "abc"}))
        assert request.headers["x-token"] == "abc"
        assert request.get_header("X-TOKEN") == "abc"
        assert request.get_header("missing", "none") == "none"

    def test_body_must_be_loaded(self):
        request = Request(create_scope())
        with pytest.raises(RuntimeError):
            request.body()


class TestRootPath:
    def test_path_is_relative_to_root_path(self):
        request = Request(create_scope(path="/shop/items/7", root_path="/shop"))
        assert request.root_path == "/shop"
        assert request.path == "/items/7"

    def test_root_path_itself_is_slash(self):
        request = Request(create_scope(path="/shop", root_path="/shop/"))
        assert request.root_path == "/shop"
        assert request.path == "/"

    def test_similar_prefix_is_not_stripped(self):
        request = Request(create_scope(path="/shopping", root_path="/shop"))
        assert request.path == "/shopping"

    def test_missing_root_path(self):
        request = Request(create_scope(path="/items"))
        assert request.root_path == ""


class TestParameters:
    def test_query_params(self):
        request = Request(create_scope(query_string="page=1&tags=a&tags=b&empty="))
        assert request.query_params == {"page": "1", "tags": "a", "empty": ""}
        assert request.query_params_multi_values["tags"] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_form_body(self):
        request = await Request.from_asgi(
            create_scope(method="POST", headers=FORM_HEADERS),
            create_mock_receive(b"name=Lamp&price=9.5&tag=x&tag=y"),
        )
        assert request.is_form()
        assert request.form == {"name": "Lamp", "price": "9.5", "tag": "x"}
        assert request.form_multi_values["tag"] == ["x", "y"]

    @pytest.mark.asyncio
    async def test_body_in_several_messages(self):
        request = await Request.from_asgi(
            create_scope(method="POST", headers=FORM_HEADERS),
            create_chunked_receive(b"name=La", b"mp"),
        )
        assert request.body() == b"name=Lamp"
        assert request.form["name"] == "Lamp"

    @pytest.mark.asyncio
    async def test_form_body_not_utf8_is_bad_request(self):
        with pytest.raises(BadRequestException) as exc_info:
            await Request.from_asgi(
                create_scope(method="POST", headers=FORM_HEADERS),
                create_mock_receive(b"name=\xff\xfe"),
            )
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_non_form_body_is_not_parsed(self):
        request = await Request.from_asgi(
            create_scope(method="POST", headers={"Content-Type": "text/plain"}),
            create_mock_receive(b"name=Lamp"),
        )
        assert request.text() == "name=Lamp"
        assert request.form == {}

    @pytest.mark.asyncio
    async def test_get_parameter_prefers_query(self):
        request = await Request.from_asgi(
            create_scope(method="POST", query_string="color=red", headers=FORM_HEADERS),
            create_mock_receive(b"color=blue&size=L"),
        )
        assert request.get_parameter("color") == "red"
        assert request.get_parameter("size") == "L"
        assert request.get_parameter("missing") is None
        assert request.parameters == {"color": "red", "size": "L"}


class TestAttributes:
    def test_set_and_get(self):
        request = Request(create_scope())
        request.set_attribute("title", "Lamp")
        assert request.get_attribute("title") == "Lamp"
        assert request.get_attribute("missing", 0) == 0
        assert request.attributes == {"title": "Lamp"}
