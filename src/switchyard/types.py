"""
Type definitions for the Switchyard route layer.
"""

from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any, Literal, Protocol, TypeAlias

# ASGI Types
Scope: TypeAlias = MutableMapping[str, Any]
Message: TypeAlias = MutableMapping[str, Any]
Receive: TypeAlias = Callable[[], Awaitable[Message]]
Send: TypeAlias = Callable[[Message], Awaitable[None]]
ASGIApp: TypeAlias = Callable[[Scope, Receive, Send], Awaitable[None]]

# HTTP method tokens accepted by the registry ("all" expands at apply time)
RouteMethod: TypeAlias = Literal[
    "get", "post", "put", "delete", "patch", "options", "head", "all"
]

# Continuation handed to every chain callable: next() or next(error)
NextFunction: TypeAlias = Callable[..., None]

# (request, response, next) -> None | Awaitable[None]
RouteMiddleware: TypeAlias = Callable[[Any, Any, NextFunction], Any]
ChainHandler: TypeAlias = RouteMiddleware

# ctx -> Any | Awaitable[Any]
ContextHandler: TypeAlias = Callable[[Any], Any]

# State Types
State: TypeAlias = MutableMapping[str, Any]


class RouteTarget(Protocol):
    """
    Anything routes can be mounted on.

    ``handlers`` are chain callables: route middlewares first, the
    final request handler last.
    """

    def mount(self, method: str, path: str, *handlers: ChainHandler) -> None: ...
