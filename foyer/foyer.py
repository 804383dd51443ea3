"""
Foyer - a front-controller web framework.
"""

import logging
import threading
from typing import Any, Callable, Dict, Iterable, Optional

from .annotations import HttpMethod
from .config import Settings
from .dispatcher import Dispatcher
from .exceptions import HTTPException, MethodNotAllowedException
from .logger import Logger
from .request import Request
from .resources import (
    DirectoryStaticResources,
    StaticResources,
    TemplateViewRenderer,
    ViewRenderer,
)
from .response import Response
from .routing import RegistryBuilder, RouteRegistry
from .status import HTTPStatus

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ", ".join(method.value for method in HttpMethod)


class Foyer:
    """
    ASGI front controller. Every HTTP request enters through this object and
    is dispatched to a controller handler.

    Routes come from the packages named in ``settings.controllers_packages``
    plus any controller registered through ``register``. The route table is
    built once, at ASGI lifespan startup or on the first request, and is
    read-only afterwards.

    Example:
        app = Foyer(Settings(controllers_packages="shop.controllers"))
        # uvicorn main:app
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        controllers: Iterable[type] = (),
        static_resources: Optional[StaticResources] = None,
        view_renderer: Optional[ViewRenderer] = None,
        configure_logging: bool = False,
    ):
        """
        Initialize the Foyer application.

        Args:
            settings: Startup configuration (default: read from FOYER_* environment variables)
            controllers: Controller classes registered in addition to the scanned packages
            static_resources: Static file collaborator (default: settings.static_dir, if set)
            view_renderer: View collaborator (default: settings.views_dir, if set)
            configure_logging: Install the framework log handlers from the settings
        """
        self.settings = settings or Settings.from_env()

        if configure_logging:
            Logger(
                level=getattr(logging, self.settings.log_level),
                json_logs=self.settings.json_logs,
                environment=self.settings.environment,
                log_file=self.settings.log_file,
            )

        if static_resources is None and self.settings.static_dir:
            static_resources = DirectoryStaticResources(self.settings.static_dir)
        if view_renderer is None and self.settings.views_dir:
            view_renderer = TemplateViewRenderer(self.settings.views_dir)

        self.static_resources = static_resources
        self.view_renderer = view_renderer

        self._builder = RegistryBuilder()
        self._controllers = list(controllers)
        self._dispatcher: Optional[Dispatcher] = None
        self._build_lock = threading.Lock()

    def register(self, *controllers: type) -> None:
        """
        Register controller classes explicitly.

        Raises:
            RuntimeError: If the route table has already been built
        """
        if self._dispatcher is not None:
            raise RuntimeError(
                "Cannot register controllers after the route table has been built."
            )
        self._controllers.extend(controllers)

    @property
    def registry(self) -> RouteRegistry:
        return self.build().registry

    def build(self) -> Dispatcher:
        """Build the route table once and return the dispatcher serving it."""
        if self._dispatcher is not None:
            return self._dispatcher

        with self._build_lock:
            if self._dispatcher is None:
                self._builder.scan_packages(self.settings.controllers_packages)
                self._builder.register(*self._controllers)
                self._dispatcher = Dispatcher(
                    self._builder.build(),
                    static_resources=self.static_resources,
                    view_renderer=self.view_renderer,
                )
        return self._dispatcher

    async def __call__(self, scope: Dict[str, Any], receive: Callable, send: Callable):
        """
        ASGI application entrypoint.
        This method is called by the ASGI server (uvicorn for example) for each incoming connection.

        Args:
            scope: Connection scope information
            receive: Callable to receive messages from the client
            send: Callable to send messages to the client
        """
        if scope["type"] == "http":
            await self._handle_http(scope, receive, send)
        elif scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
        else:
            await self._handle_unsupported_protocol(send)

    async def _handle_lifespan(
        self, scope: Dict[str, Any], receive: Callable, send: Callable
    ):
        """
        Handle ASGI lifespan protocol: the route table is built on startup so
        that configuration errors stop the server before it accepts requests.
        """
        while True:
            message = await receive()

            if message["type"] == "lifespan.startup":
                try:
                    self.build()
                    await send({"type": "lifespan.startup.complete"})
                except Exception as e:
                    logger.exception("Failed to build the route table")
                    await send({"type": "lifespan.startup.failed", "message": str(e)})
                    return
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return

    async def _handle_unsupported_protocol(self, send: Callable):
        """
        Handle unsupported protocol types.
        """
        await send({"type": "websocket.close", "code": 1000})

    async def _handle_http(
        self, scope: Dict[str, Any], receive: Callable, send: Callable
    ):
        """
        Handle HTTP requests: build the Request, dispatch, map errors to responses.
        """
        response = Response()
        method = scope.get("method", "GET")
        path = scope.get("path", "/")

        try:
            request = await Request.from_asgi(scope, receive)
            if HttpMethod.from_request_method(request.method) is None:
                raise MethodNotAllowedException(
                    f"Method {request.method} not allowed on path {request.path}"
                )
            await self.build().dispatch(request, response)

        except HTTPException as e:
            response.reset()
            response.send_error(e.status_code, e.message)
            if isinstance(e, MethodNotAllowedException):
                response.set_header("allow", ALLOWED_METHODS)

        except Exception as e:
            logger.exception(
                "Error while handling %s %s",
                method,
                path,
                extra={"request_path": path},
            )
            response.reset()
            response.send_error(
                HTTPStatus.HTTP_500_INTERNAL_SERVER_ERROR,
                f"Internal Server Error: {str(e)}",
            )

        await self._send_response(send, response.to_asgi_response())

    async def _send_response(self, send: Callable, asgi_response: Dict[str, Any]):
        """
        Send an ASGI HTTP response.
        """
        await send(
            {
                "type": "http.response.start",
                "status": asgi_response["status"],
                "headers": asgi_response["headers"],
            }
        )

        await send(
            {
                "type": "http.response.body",
                "body": asgi_response["body"],
                "more_body": False,
            }
        )
