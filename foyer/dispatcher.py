"""
Request dispatching for Foyer framework.

The dispatcher resolves a request against an immutable RouteRegistry:

    exact lookup -> dynamic scan (registration order) -> static resources -> 404

On every matched route the handlers are tried in declaration order; the
first one whose arguments bind is invoked and its result ends the dispatch.
A matched route whose handlers all refuse the request does not stop the
search: the next matching dynamic route is tried.
"""

import asyncio
import inspect
import logging
from typing import Any, List, Optional

from .annotations import HttpMethod
from .exceptions import HandlerInvocationError, HTTPException, ViewResolutionError
from .model_view import ModelView
from .request import Request
from .resources import StaticResources, ViewRenderer
from .response import Response, TEXT_PLAIN
from .routing.binding import ArgumentBinder, Bound, PathVariable, Rejected
from .routing.registry import RouteRegistry
from .routing.route import HandlerDescriptor, RouteDescriptor
from .status import HTTPStatus

logger = logging.getLogger(__name__)


class Dispatcher:
    """
    Front-controller dispatch over a route registry.

    The dispatcher holds no per-request state and may serve concurrent
    requests. Controllers are instantiated for every invocation.

    Args:
        registry: Route table to dispatch against
        static_resources: Probed when no handler accepts the request
        view_renderer: Receives forwards for ModelView results
        binder: Argument binder (default: ArgumentBinder())
    """

    def __init__(
        self,
        registry: RouteRegistry,
        static_resources: Optional[StaticResources] = None,
        view_renderer: Optional[ViewRenderer] = None,
        binder: Optional[ArgumentBinder] = None,
    ):
        self.registry = registry
        self.static_resources = static_resources
        self.view_renderer = view_renderer
        self.binder = binder or ArgumentBinder()

    async def dispatch(self, request: Request, response: Response) -> None:
        """
        Handle one request, leaving the outcome in ``response``.

        Raises:
            HTTPException: Raised by a handler, passed through unchanged.
            HandlerInvocationError: A handler or controller constructor failed.
            ViewResolutionError: A ModelView result has no view.
        """
        path = request.path
        verb = HttpMethod.from_request_method(request.method)

        route = self.registry.lookup_static(path)
        if route is not None and await self._try_handlers(route, [], verb, request, response):
            return

        for route in self.registry.dynamic_routes:
            values = route.match(path)
            if values is None:
                continue
            if await self._try_handlers(route, values, verb, request, response):
                return

        if self.static_resources is not None and self.static_resources.exists(path):
            logger.debug("Serving static resource %s", path, extra={"request_path": path})
            await self.static_resources.serve(path, request, response)
            return

        logger.debug("No route for %s %s", request.method, path, extra={"request_path": path})
        response.send_error(HTTPStatus.HTTP_404_NOT_FOUND, f"Error 404: {path} not found.")

    async def _try_handlers(
        self,
        route: RouteDescriptor,
        values: List[str],
        verb: Optional[HttpMethod],
        request: Request,
        response: Response,
    ) -> bool:
        for handler in route.handlers:
            if not handler.accepts(verb):
                continue

            path_variables = [
                PathVariable(name, value) for name, value in zip(route.parameter_names, values)
            ]
            result = self.binder.bind(handler.parameters, path_variables, request, response)
            if isinstance(result, Rejected):
                logger.debug(
                    "Handler rejected: %s",
                    result.reason,
                    extra={"request_path": request.path, "handler": handler.qualified_name},
                )
                continue

            value = await self._invoke(handler, result)
            await self._interpret_result(handler, value, request, response)
            return True

        return False

    async def _invoke(self, handler: HandlerDescriptor, bound: Bound) -> Any:
        try:
            if handler.is_coroutine:
                instance = handler.controller()
                return await getattr(instance, handler.name)(*bound.args, **bound.kwargs)

            # Plain handlers run in a worker thread so they do not block the loop
            result = await asyncio.to_thread(self._call_sync, handler, bound)
            if inspect.isawaitable(result):
                result = await result
            return result
        except HTTPException:
            raise
        except Exception as e:
            raise HandlerInvocationError(handler.qualified_name, e) from e

    @staticmethod
    def _call_sync(handler: HandlerDescriptor, bound: Bound) -> Any:
        instance = handler.controller()
        return getattr(instance, handler.name)(*bound.args, **bound.kwargs)

    async def _interpret_result(
        self, handler: HandlerDescriptor, result: Any, request: Request, response: Response
    ) -> None:
        if response.committed:
            return

        if isinstance(result, ModelView):
            await self._render_model_view(handler, result, request, response)
        elif isinstance(result, str):
            response.content_type = TEXT_PLAIN
            response.write(result)
        else:
            logger.debug(
                "Handler returned %s, no body written",
                type(result).__name__,
                extra={"handler": handler.qualified_name},
            )

    async def _render_model_view(
        self, handler: HandlerDescriptor, result: ModelView, request: Request, response: Response
    ) -> None:
        view = result.view
        if view is None or not view.strip():
            raise ViewResolutionError(
                f"Handler {handler.qualified_name} returned a ModelView without a view"
            )

        for key, value in result.model.items():
            request.set_attribute(key, value)

        if result.is_redirect:
            response.send_redirect(request.root_path + result.redirect_target)
            return

        if self.view_renderer is None or not await self.view_renderer.render(
            view, request, response
        ):
            response.send_error(
                HTTPStatus.HTTP_500_INTERNAL_SERVER_ERROR,
                f"View not found for result: {view}",
            )

