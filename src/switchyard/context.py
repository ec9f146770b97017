"""
Per-request invocation context handed to route handlers.
"""

from dataclasses import dataclass

from switchyard.request import Request
from switchyard.response import ResponseWriter
from switchyard.types import NextFunction


@dataclass(frozen=True, slots=True)
class HttpContext:
    """The ``(request, response, next)`` triple of one matched request."""

    request: Request
    response: ResponseWriter
    next: NextFunction

    async def respond(self, value: object = None) -> None:
        """Shortcut for ``ctx.response.send(value)``."""
        await self.response.send(value)
