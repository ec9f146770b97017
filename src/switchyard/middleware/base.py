"""
ASGI middleware base classes for Switchyard.
Application-wide middleware wraps the router; per-route middleware lives
in route chains instead (see ``switchyard.middleware.auth``).
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from switchyard.types import ASGIApp, Receive, Scope, Send


class Middleware(ABC):
    """
    Abstract base ASGI middleware.

    Non-HTTP scopes pass straight through to the wrapped app.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI interface - called by the server."""
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        await self.process(scope, receive, send)

    @abstractmethod
    async def process(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Process the request. Must be implemented by subclasses."""
        ...


MiddlewareFactory = type[Middleware] | Callable[..., ASGIApp]


class MiddlewareStack:
    """Ordered ASGI middleware around an endpoint; first added is outermost."""

    def __init__(self, app: ASGIApp) -> None:
        self._app = app
        self._middleware: list[tuple[MiddlewareFactory, dict[str, Any]]] = []

    def __len__(self) -> int:
        return len(self._middleware)

    def add(self, middleware_class: MiddlewareFactory, **options: Any) -> None:
        """Add middleware to the stack."""
        self._middleware.append((middleware_class, options))

    def build(self) -> ASGIApp:
        """Build the middleware chain."""
        app = self._app
        for middleware_class, options in reversed(self._middleware):
            app = middleware_class(app, **options)
        return app
