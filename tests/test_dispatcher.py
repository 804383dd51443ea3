"""
Tests for request dispatch over a route registry.
"""

import asyncio
import threading
from typing import Optional

import pytest

from foyer import (
    ModelView,
    NotFoundException,
    Request,
    Response,
    controller,
    get_mapping,
    handle_path,
    post_mapping,
)
from foyer.dispatcher import Dispatcher
from foyer.exceptions import HandlerInvocationError, ViewResolutionError
from foyer.routing import RegistryBuilder


def create_request(method="GET", path="/", query_string="", root_path=""):
    scope = {
        "type": "http",
        "method": method,
        "path": root_path + path,
        "root_path": root_path,
        "query_string": query_string.encode(),
        "headers": [],
    }
    return Request(scope)


async def dispatch(dispatcher, method="GET", path="/", query_string="", root_path=""):
    request = create_request(method, path, query_string, root_path)
    response = Response()
    await dispatcher.dispatch(request, response)
    return request, response


class RecordingRenderer:
    def __init__(self, known=("item.html",)):
        self.known = set(known)
        self.rendered = []

    async def render(self, view, request, response):
        if view not in self.known:
            return False
        self.rendered.append((view, dict(request.attributes)))
        response.write(f"rendered {view}")
        return True


class StubStatic:
    def __init__(self, files):
        self.files = files

    def exists(self, path):
        return path in self.files

    async def serve(self, path, request, response):
        response.write(self.files[path])


instances = []


@controller
class ItemController:

    def __init__(self):
        instances.append(self)

    @get_mapping("/items/{id}")
    def f(self, id: int):
        return f"item {id}"

    @get_mapping("/items/{name}")
    def by_name(self, name: str):
        return f"named {name}"

    @get_mapping("/products/{id}")
    def g(self, name: str, id: int):
        return f"{name}|{id}"

    @get_mapping("/about")
    def about_get(self):
        return "about (get)"

    @post_mapping("/about")
    def about_post(self):
        return "about (post)"

    @get_mapping("/typed")
    def typed(self, count: int):
        return f"count {count}"

    @get_mapping("/threads")
    def thread_name(self):
        return threading.current_thread().name

    @get_mapping("/async")
    async def async_handler(self, q: Optional[str]):
        await asyncio.sleep(0)
        return f"async {q}"

    @get_mapping("/direct")
    def direct(self, response: Response):
        response.set_status(201)
        response.write("written by handler")
        return "ignored"

    @get_mapping("/view")
    def view(self):
        return ModelView("item.html").add_object("title", "Lamp")

    @get_mapping("/unknown-view")
    def unknown_view(self):
        return ModelView("nope.html")

    @get_mapping("/blank-view")
    def blank_view(self):
        return ModelView("  ")

    @get_mapping("/redirect")
    def redirect(self):
        return ModelView("redirect:/home").add_object("flash", "saved")

    @get_mapping("/redirect-relative")
    def redirect_relative(self):
        return ModelView.redirect("home")

    @get_mapping("/none")
    def none(self):
        return None

    @get_mapping("/number")
    def number(self):
        return 42

    @get_mapping("/missing")
    def missing(self):
        raise NotFoundException("gone")

    @get_mapping("/crash")
    def crash(self):
        raise KeyError("boom")


@controller
class FailingConstructor:

    def __init__(self):
        raise RuntimeError("cannot build")

    @handle_path("/failing")
    def handler(self):
        return "never"


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def dispatcher(renderer):
    registry = RegistryBuilder().register(ItemController, FailingConstructor).build()
    return Dispatcher(
        registry,
        static_resources=StubStatic({"/robots.txt": "User-agent: *"}),
        view_renderer=renderer,
    )


class TestResolution:
    @pytest.mark.asyncio
    async def test_dynamic_route_binds_int(self, dispatcher):
        _, response = await dispatch(dispatcher, path="/items/7")
        assert response.body == b"item 7"

    @pytest.mark.asyncio
    async def test_failed_binding_moves_to_next_dynamic_route(self, dispatcher):
        _, response = await dispatch(dispatcher, path="/items/abc")
        assert response.body == b"named abc"

    @pytest.mark.asyncio
    async def test_query_and_path_variable(self, dispatcher):
        _, response = await dispatch(dispatcher, path="/products/7", query_string="name=foo")
        assert response.body == b"foo|7"

        _, response = await dispatch(dispatcher, path="/products/7")
        assert response.body == b"|7"

    @pytest.mark.asyncio
    async def test_unbindable_request_is_not_found(self, dispatcher):
        _, response = await dispatch(dispatcher, path="/products/abc")
        assert response.status_code == 404
        assert response.body == b"Error 404: /products/abc not found."

    @pytest.mark.asyncio
    async def test_static_hit_with_bad_value_falls_through(self, dispatcher):
        _, response = await dispatch(dispatcher, path="/typed", query_string="count=x")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_verb_selects_handler(self, dispatcher):
        _, response = await dispatch(dispatcher, method="GET", path="/about")
        assert response.body == b"about (get)"
        _, response = await dispatch(dispatcher, method="POST", path="/about")
        assert response.body == b"about (post)"

    @pytest.mark.asyncio
    async def test_verb_mismatch_is_not_found(self, dispatcher):
        _, response = await dispatch(dispatcher, method="POST", path="/items/7")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_static_resource_after_routing_miss(self, dispatcher):
        _, response = await dispatch(dispatcher, path="/robots.txt")
        assert response.status_code == 200
        assert response.body == b"User-agent: *"

    @pytest.mark.asyncio
    async def test_not_found(self, dispatcher):
        _, response = await dispatch(dispatcher, path="/nowhere")
        assert response.status_code == 404
        assert response.body == b"Error 404: /nowhere not found."

    @pytest.mark.asyncio
    async def test_not_found_without_static_resources(self):
        registry = RegistryBuilder().register(ItemController).build()
        _, response = await dispatch(Dispatcher(registry), path="/robots.txt")
        assert response.status_code == 404


class TestInvocation:
    @pytest.mark.asyncio
    async def test_fresh_controller_per_dispatch(self, dispatcher):
        instances.clear()
        await dispatch(dispatcher, path="/items/1")
        await dispatch(dispatcher, path="/items/2")
        assert len(instances) == 2
        assert instances[0] is not instances[1]

    @pytest.mark.asyncio
    async def test_plain_handlers_run_off_the_event_loop(self, dispatcher):
        _, response = await dispatch(dispatcher, path="/threads")
        assert response.body.decode() != threading.current_thread().name

    @pytest.mark.asyncio
    async def test_async_handler(self, dispatcher):
        _, response = await dispatch(dispatcher, path="/async", query_string="q=x")
        assert response.body == b"async x"

    @pytest.mark.asyncio
    async def test_http_exception_passes_through(self, dispatcher):
        with pytest.raises(NotFoundException):
            await dispatch(dispatcher, path="/missing")

    @pytest.mark.asyncio
    async def test_handler_error_is_wrapped(self, dispatcher):
        with pytest.raises(HandlerInvocationError) as exc_info:
            await dispatch(dispatcher, path="/crash")
        assert isinstance(exc_info.value.cause, KeyError)
        assert exc_info.value.handler.endswith("ItemController.crash")

    @pytest.mark.asyncio
    async def test_constructor_error_is_wrapped(self, dispatcher):
        with pytest.raises(HandlerInvocationError):
            await dispatch(dispatcher, path="/failing")


class TestResults:
    @pytest.mark.asyncio
    async def test_text_result(self, dispatcher):
        _, response = await dispatch(dispatcher, path="/items/3")
        assert response.content_type == "text/plain; charset=utf-8"

    @pytest.mark.asyncio
    async def test_committed_response_ignores_result(self, dispatcher):
        _, response = await dispatch(dispatcher, path="/direct")
        assert response.status_code == 201
        assert response.body == b"written by handler"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/none", "/number"])
    async def test_other_results_write_nothing(self, dispatcher, path):
        _, response = await dispatch(dispatcher, path=path)
        assert response.status_code == 200
        assert response.body == b""
        assert not response.committed

    @pytest.mark.asyncio
    async def test_view_forward(self, dispatcher, renderer):
        request, response = await dispatch(dispatcher, path="/view")
        assert response.body == b"rendered item.html"
        assert renderer.rendered == [("item.html", {"title": "Lamp"})]
        assert request.get_attribute("title") == "Lamp"

    @pytest.mark.asyncio
    async def test_unknown_view(self, dispatcher):
        _, response = await dispatch(dispatcher, path="/unknown-view")
        assert response.status_code == 500
        assert response.body == b"View not found for result: nope.html"

    @pytest.mark.asyncio
    async def test_view_without_renderer(self):
        registry = RegistryBuilder().register(ItemController).build()
        _, response = await dispatch(Dispatcher(registry), path="/view")
        assert response.status_code == 500

    @pytest.mark.asyncio
    async def test_blank_view(self, dispatcher):
        with pytest.raises(ViewResolutionError):
            await dispatch(dispatcher, path="/blank-view")

    @pytest.mark.asyncio
    async def test_redirect_under_root_path(self, dispatcher):
        request, response = await dispatch(dispatcher, path="/redirect", root_path="/shop")
        assert response.status_code == 302
        assert response.headers["location"] == "/shop/home"
        assert request.get_attribute("flash") == "saved"

    @pytest.mark.asyncio
    async def test_redirect_adds_leading_slash(self, dispatcher):
        _, response = await dispatch(dispatcher, path="/redirect-relative")
        assert response.headers["location"] == "/home"


class TestModelView:
    def test_add_object_chains(self):
        model_view = ModelView("a.html").add_object("x", 1).add_object("y", 2)
        assert model_view.model == {"x": 1, "y": 2}
        assert not model_view.is_redirect

    def test_redirect_target(self):
        assert ModelView("redirect:/home").redirect_target == "/home"
        assert ModelView.redirect("home").redirect_target == "/home"
        assert ModelView.redirect("home").is_redirect
