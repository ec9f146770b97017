"""Tests for switchyard.middleware: ErrorHandler, RequestLogging, MiddlewareStack."""

import json
import logging

import pytest

from switchyard.exceptions import BadRequest, Unauthorized
from switchyard.middleware import (
    ErrorHandlerMiddleware,
    Middleware,
    MiddlewareStack,
    RequestLoggingMiddleware,
)

from tests.conftest import ResponseCapture, make_receive, make_scope


async def ok_app(scope, receive, send):
    await send({"type": "http.response.start", "status": 200, "headers": []})
    await send({"type": "http.response.body", "body": b"ok"})


# ---------------------------------------------------------------------------
# ErrorHandlerMiddleware
# ---------------------------------------------------------------------------

class TestErrorHandlerMiddleware:
    async def test_catches_http_exception(self) -> None:
        async def app(scope, receive, send):
            raise BadRequest("oops")

        mw = ErrorHandlerMiddleware(app, debug=False)
        cap = ResponseCapture()
        await mw(make_scope(), make_receive(), cap)

        assert cap.status == 400
        body = json.loads(cap.body)
        assert body["error"] == "oops"
        assert body["request_id"] == cap.headers["x-request-id"]

    async def test_exception_headers_forwarded(self) -> None:
        async def app(scope, receive, send):
            raise Unauthorized()

        cap = ResponseCapture()
        await ErrorHandlerMiddleware(app)(make_scope(), make_receive(), cap)
        assert cap.status == 401
        assert cap.headers["www-authenticate"] == "Bearer"

    async def test_never_leaks_internal_details(self, caplog: pytest.LogCaptureFixture) -> None:
        async def app(scope, receive, send):
            raise RuntimeError("secret database password 1234")

        cap = ResponseCapture()
        with caplog.at_level(logging.ERROR, logger="switchyard.errors"):
            await ErrorHandlerMiddleware(app, debug=True)(make_scope(), make_receive(), cap)

        assert cap.status == 500
        body = json.loads(cap.body)
        assert "secret" not in json.dumps(body)
        assert body["exception"] == "RuntimeError"
        assert "secret database password" in caplog.text

    async def test_error_after_response_started(self) -> None:
        async def app(scope, receive, send):
            await send({"type": "http.response.start", "status": 200, "headers": []})
            raise RuntimeError("late")

        cap = ResponseCapture()
        await ErrorHandlerMiddleware(app)(make_scope(), make_receive(), cap)
        assert [m["type"] for m in cap.messages] == ["http.response.start"]

    async def test_injects_request_id_header(self) -> None:
        cap = ResponseCapture()
        await ErrorHandlerMiddleware(ok_app)(make_scope(), make_receive(), cap)
        assert len(cap.headers["x-request-id"]) > 0

    async def test_passes_non_http_scopes(self) -> None:
        seen: list[str] = []

        async def app(scope, receive, send):
            seen.append(scope["type"])

        await ErrorHandlerMiddleware(app)(make_scope(scope_type="lifespan"), make_receive(), ResponseCapture())
        assert seen == ["lifespan"]


# ---------------------------------------------------------------------------
# RequestLoggingMiddleware
# ---------------------------------------------------------------------------

class TestRequestLoggingMiddleware:
    async def test_logs_access_line(self, caplog: pytest.LogCaptureFixture) -> None:
        cap = ResponseCapture()
        with caplog.at_level(logging.INFO, logger="switchyard.access"):
            await RequestLoggingMiddleware(ok_app)(make_scope(path="/things"), make_receive(), cap)

        assert cap.status == 200
        assert "GET /things 200" in caplog.text

    async def test_logs_failures_and_reraises(self, caplog: pytest.LogCaptureFixture) -> None:
        async def app(scope, receive, send):
            raise RuntimeError("boom")

        with caplog.at_level(logging.INFO, logger="switchyard.access"):
            with pytest.raises(RuntimeError):
                await RequestLoggingMiddleware(app)(make_scope(path="/x"), make_receive(), ResponseCapture())

        assert "GET /x 500" in caplog.text


# ---------------------------------------------------------------------------
# MiddlewareStack
# ---------------------------------------------------------------------------

class TestMiddlewareStack:
    async def test_first_added_is_outermost(self) -> None:
        order: list[str] = []

        class Tag(Middleware):
            def __init__(self, app, name: str) -> None:
                super().__init__(app)
                self.name = name

            async def process(self, scope, receive, send):
                order.append(self.name)
                await self.app(scope, receive, send)

        stack = MiddlewareStack(ok_app)
        stack.add(Tag, name="outer")
        stack.add(Tag, name="inner")
        await stack.build()(make_scope(), make_receive(), ResponseCapture())

        assert order == ["outer", "inner"]
        assert len(stack) == 2
