"""
Tests for decorators and route extraction from controller classes.
"""

from typing import Annotated, Any, List, Optional, Union

import pytest

from foyer import (
    HttpMethod,
    ModelView,
    Request,
    RequestParam,
    Response,
    controller,
    get_mapping,
    handle_path,
    post_mapping,
    request_mapping,
)
from foyer.annotations import is_controller, mapping_declarations
from foyer.exceptions import (
    ConfigurationError,
    ConflictingPathDeclaration,
    UnsupportedParameterType,
)
from foyer.routing import RouteExtractor, SourceKind


@controller
class BlogController:

    @get_mapping("/posts")
    def list_posts(self, page: int = 1):
        return "posts"

    @post_mapping("posts")
    def create_post(self, title: str):
        return "created"

    @request_mapping("/posts/{slug}", methods=[HttpMethod.GET, "post"])
    def show_post(self, slug: str):
        return ModelView("post.html")

    @get_mapping("/feed")
    @post_mapping("/feed")
    def feed(self):
        return "feed"

    @handle_path("  ")
    def index(self):
        return "home"

    @staticmethod
    @get_mapping("/ping")
    def ping(value: Optional[int]):
        return "pong"

    def helper(self):
        return "not a handler"


class TestDecorators:
    def test_controller_marker(self):
        assert is_controller(BlogController)
        assert not is_controller(object)
        assert not is_controller(BlogController())

    def test_subclass_is_not_a_controller_by_inheritance(self):
        class Derived(BlogController):
            pass

        assert not is_controller(Derived)

    def test_declarations_are_stacked(self):
        declarations = mapping_declarations(BlogController.feed)
        assert [d.kind for d in declarations] == ["post_mapping", "get_mapping"]

    def test_string_verbs_are_accepted(self):
        declaration = mapping_declarations(BlogController.show_post)[0]
        assert declaration.methods == {HttpMethod.GET, HttpMethod.POST}

    def test_unsupported_verb_is_rejected(self):
        with pytest.raises(ValueError, match="PUT"):
            request_mapping("/x", methods=["PUT"])

    def test_blank_request_param_is_rejected(self):
        with pytest.raises(ValueError):
            RequestParam("  ")


class TestRouteExtractor:
    def setup_method(self):
        self.descriptor = RouteExtractor().extract(BlogController)
        self.routes = {route.path: route for route in self.descriptor.routes}

    def test_handlers_in_definition_order(self):
        names = [handler.name for handler in self.descriptor.handlers]
        assert names == ["list_posts", "create_post", "show_post", "feed", "index", "ping"]

    def test_handlers_sharing_a_path_share_a_route(self):
        route = self.routes["/posts"]
        assert [h.name for h in route.handlers] == ["list_posts", "create_post"]
        assert route.handlers[0].http_methods == {HttpMethod.GET}
        assert route.handlers[1].http_methods == {HttpMethod.POST}

    def test_stacked_declarations_union_verbs(self):
        feed = self.routes["/feed"].handlers[0]
        assert feed.http_methods == {HttpMethod.GET, HttpMethod.POST}

    def test_blank_path_is_root(self):
        index = self.routes["/"].handlers[0]
        assert index.name == "index"
        assert index.http_methods == frozenset()

    def test_dynamic_route(self):
        route = self.routes["/posts/{slug}"]
        assert route.is_dynamic
        assert route.parameter_names == ("slug",)

    def test_static_method_has_no_self(self):
        ping = self.routes["/ping"].handlers[0]
        assert [p.name for p in ping.parameters] == ["value"]
        assert ping.parameters[0].optional

    def test_class_method_has_no_cls(self):
        @controller
        class ArchiveController:

            @get_mapping("/archive/{year}")
            @classmethod
            def by_year(cls, year: int):
                return f"{cls.__name__} {year}"

        descriptor = RouteExtractor().extract(ArchiveController)
        handler = descriptor.routes[0].handlers[0]
        assert descriptor.routes[0].path == "/archive/{year}"
        assert handler.name == "by_year"
        assert [p.name for p in handler.parameters] == ["year"]

    def test_undecorated_method_is_ignored(self):
        assert all(h.name != "helper" for h in self.descriptor.handlers)

    def test_parameter_plan_is_precomputed(self):
        plan = self.routes["/posts"].handlers[0].parameters
        assert len(plan) == 1
        assert plan[0].name == "page"
        assert plan[0].kind is SourceKind.VALUE
        assert plan[0].target_type is int
        assert plan[0].default == 1

    def test_not_a_controller(self):
        class Plain:
            @get_mapping("/x")
            def x(self):
                pass

        with pytest.raises(ConfigurationError):
            RouteExtractor().extract(Plain)

    def test_inherited_handlers_are_not_extracted(self):
        @controller
        class Derived(BlogController):
            @get_mapping("/derived")
            def own(self):
                return "own"

        descriptor = RouteExtractor().extract(Derived)
        assert [h.name for h in descriptor.handlers] == ["own"]

    def test_conflicting_paths_on_one_method(self):
        @controller
        class Broken:
            @get_mapping("/a")
            @post_mapping("/b")
            def both(self):
                pass

        with pytest.raises(ConflictingPathDeclaration) as exc_info:
            RouteExtractor().extract(Broken)
        assert exc_info.value.paths == ["/b", "/a"]

    def test_equivalent_paths_do_not_conflict(self):
        @controller
        class Tolerant:
            @get_mapping("/a")
            @post_mapping(" a ")
            @handle_path("")
            def both(self):
                pass

        descriptor = RouteExtractor().extract(Tolerant)
        assert descriptor.routes[0].path == "/a"
        assert descriptor.handlers[0].http_methods == {HttpMethod.GET, HttpMethod.POST}


class TestParameterPlans:
    def extract_single(self, func):
        cls = controller(type("Generated", (), {"handler": get_mapping("/g")(func)}))
        return RouteExtractor().extract(cls).handlers[0].parameters

    def test_request_and_response_kinds(self):
        def handler(self, request: Request, response: Response):
            pass

        plan = self.extract_single(handler)
        assert [p.kind for p in plan] == [SourceKind.REQUEST, SourceKind.RESPONSE]

    def test_unannotated_and_any_bind_as_text(self):
        def handler(self, a, b: Any):
            pass

        plan = self.extract_single(handler)
        assert [p.target_type for p in plan] == [str, str]

    def test_explicit_name(self):
        def handler(self, query: Annotated[str, RequestParam(" q ")]):
            pass

        plan = self.extract_single(handler)
        assert plan[0].explicit_name == "q"
        assert plan[0].candidate_names == ("q", "query")

    def test_keyword_only_parameters(self):
        def handler(self, *, page: int):
            pass

        plan = self.extract_single(handler)
        assert plan[0].keyword_only

    @pytest.mark.parametrize(
        "annotation",
        [List[int], dict, Union[int, str], object],
    )
    def test_unsupported_types(self, annotation):
        def handler(self, value):
            pass

        handler.__annotations__["value"] = annotation
        with pytest.raises(UnsupportedParameterType) as exc_info:
            self.extract_single(handler)
        assert exc_info.value.parameter == "value"

    def test_var_args_are_unsupported(self):
        def handler(self, *values):
            pass

        with pytest.raises(UnsupportedParameterType):
            self.extract_single(handler)
