"""
Main Switchyard application class.
The composition root tying the registry, dispatcher, router and ASGI
middleware together.
"""

import logging
from collections.abc import Callable, Sequence
from typing import Any

from switchyard.dispatcher import Dispatcher
from switchyard.handlers import RouteHandler
from switchyard.middleware import ErrorHandlerMiddleware, MiddlewareStack
from switchyard.middleware.base import MiddlewareFactory
from switchyard.registry import RouteRegistry
from switchyard.routing import Router
from switchyard.types import ASGIApp, Receive, RouteMiddleware, Scope, Send

logger = logging.getLogger("switchyard.app")

LOG_FORMAT: str = "%(asctime)s %(levelname)-8s %(name)s  %(message)s"
LOG_DATE_FORMAT: str = "%Y-%m-%dT%H:%M:%S%z"


class Switchyard:
    """
    The Switchyard application.

    Usage:
        app = Switchyard()
        routes = app.routes

        routes.get("/", home)
        routes.group("/api", api_routes, [bearer_auth(SECRET)])

        # Run with: uvicorn main:app

    Routes registered on ``app.routes`` are mounted on the router the
    first time the app serves a request, or when ``build()`` is called.
    """

    def __init__(
        self,
        debug: bool = False,
        title: str = "Switchyard",
        version: str = "0.1.0",
        registry: RouteRegistry | None = None,
    ) -> None:
        self.debug = debug
        self.title = title
        self.version = version

        self.routes = registry if registry is not None else RouteRegistry()
        self.router = Router()
        self.dispatcher = Dispatcher(self.routes)
        self._middleware_stack = MiddlewareStack(self.router)
        self._middleware_stack.add(ErrorHandlerMiddleware, debug=debug)

        self._app: ASGIApp | None = None

    # -------------------------------------------------------------------------
    # ASGI Interface
    # -------------------------------------------------------------------------

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI application entry point."""
        scope["app"] = self

        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return
        if scope["type"] != "http":
            raise RuntimeError(f"Unsupported ASGI scope type: {scope['type']}")

        await self.build()(scope, receive, send)

    def build(self) -> ASGIApp:
        """Mount pending routes and return the middleware-wrapped app."""
        if self.dispatcher.has_pending(self.router):
            self.dispatcher.apply(self.router)
        if self._app is None:
            self._app = self._middleware_stack.build()
        return self._app

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                self.build()
                logger.info("%s %s ready with %d route(s)", self.title, self.version, len(self.router.routes))
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -------------------------------------------------------------------------
    # Routing shortcuts
    # -------------------------------------------------------------------------

    def route(
        self,
        path: str,
        methods: str | Sequence[str] = "get",
        middlewares: Sequence[RouteMiddleware] = (),
    ) -> Callable[[RouteHandler], RouteHandler]:
        """Decorator form of ``app.routes.add``."""
        def decorator(handler: RouteHandler) -> RouteHandler:
            self.routes.add(methods, path, handler, middlewares)
            return handler
        return decorator

    # -------------------------------------------------------------------------
    # Middleware
    # -------------------------------------------------------------------------

    def add_middleware(self, middleware_class: MiddlewareFactory, **options: Any) -> None:
        """Add ASGI middleware; the first added runs outermost after error handling."""
        self._middleware_stack.add(middleware_class, **options)
        self._app = None

    # -------------------------------------------------------------------------
    # Serving
    # -------------------------------------------------------------------------

    def run(
        self,
        host: str = "localhost",
        port: int = 8000,
        reload: bool = False,
        workers: int = 1,
        log_level: str = "info",
    ) -> None:
        """Run the application using uvicorn."""
        import uvicorn

        logging.basicConfig(
            level=logging.DEBUG if self.debug else logging.INFO,
            format=LOG_FORMAT,
            datefmt=LOG_DATE_FORMAT,
        )
        uvicorn.run(
            self,
            host=host,
            port=port,
            reload=reload,
            workers=workers,
            log_level=log_level,
        )
