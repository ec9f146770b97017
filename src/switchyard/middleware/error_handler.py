"""
Error handling middleware.
"""

import logging
import uuid
from typing import Any

from switchyard.exceptions import HTTPException
from switchyard.middleware.base import Middleware
from switchyard.response import JSONResponse
from switchyard.types import ASGIApp, Receive, Scope, Send


class ErrorHandlerMiddleware(Middleware):
    """
    Turns exceptions escaping the router into JSON error responses.

    ``HTTPException`` keeps its status and detail; anything else becomes
    a generic 500 with nothing internal exposed.  Every response carries
    an ``X-Request-ID`` header, and error bodies repeat it.
    """

    def __init__(
        self,
        app: ASGIApp,
        debug: bool = False,
    ) -> None:
        super().__init__(app)
        self.debug = debug
        self._logger = logging.getLogger("switchyard.errors")

    async def process(self, scope: Scope, receive: Receive, send: Send) -> None:
        request_id = scope.setdefault("request_id", str(uuid.uuid4()))
        started = False

        async def send_with_request_id(message: dict[str, Any]) -> None:
            nonlocal started
            if message["type"] == "http.response.start":
                started = True
                headers = list(message.get("headers", []))
                headers.append((b"x-request-id", request_id.encode()))
                message["headers"] = headers
            await send(message)

        try:
            # pyrefly: ignore [bad-argument-type]
            await self.app(scope, receive, send_with_request_id)
        except HTTPException as exc:
            if exc.status_code >= 500:
                self._logger.error(
                    "request_id=%s status=%d detail=%s",
                    request_id, exc.status_code, exc.detail,
                    exc_info=True,
                )
            else:
                self._logger.warning(
                    "request_id=%s status=%d detail=%s",
                    request_id, exc.status_code, exc.detail,
                )
            if started:
                return
            response = JSONResponse(
                content={
                    "error": exc.detail,
                    "status_code": exc.status_code,
                    "request_id": request_id,
                },
                status_code=exc.status_code,
                headers=exc.headers,
            )
            # pyrefly: ignore [bad-argument-type]
            await response(send_with_request_id)
        except Exception as exc:
            self._logger.exception(
                "Unhandled exception request_id=%s: %s",
                request_id, exc,
            )
            if started:
                return
            content: dict[str, Any] = {
                "error": "Internal Server Error",
                "status_code": 500,
                "request_id": request_id,
            }
            if self.debug:
                content["exception"] = type(exc).__name__
            response = JSONResponse(content=content, status_code=500)
            # pyrefly: ignore [bad-argument-type]
            await response(send_with_request_id)
