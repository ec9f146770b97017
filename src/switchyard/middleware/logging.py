"""
Request logging middleware.
"""

import logging
import time
from typing import Any

from switchyard.middleware.base import Middleware
from switchyard.types import ASGIApp, Receive, Scope, Send


class RequestLoggingMiddleware(Middleware):
    """
    Logs one access line per request with status and duration.

    Requests that raise are logged with status 500 before the
    exception continues outward.
    """

    def __init__(
        self,
        app: ASGIApp,
        logger: logging.Logger | None = None,
        log_level: int = logging.INFO,
    ) -> None:
        super().__init__(app)
        self._logger = logger or logging.getLogger("switchyard.access")
        self._log_level = log_level

    async def process(self, scope: Scope, receive: Receive, send: Send) -> None:
        start_time = time.perf_counter()
        status_code = 0

        async def capture_send(message: dict[str, Any]) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
            await send(message)

        try:
            # pyrefly: ignore [bad-argument-type]
            await self.app(scope, receive, capture_send)
        except Exception:
            status_code = status_code or 500
            raise
        finally:
            duration = (time.perf_counter() - start_time) * 1000
            client = scope.get("client")
            self._logger.log(
                self._log_level,
                "%s %s %d %.2fms request_id=%s client=%s",
                scope.get("method", "-"),
                scope.get("path", "-"),
                status_code,
                duration,
                scope.get("request_id", "-"),
                client[0] if client else "-",
            )
