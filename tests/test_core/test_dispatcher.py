"""Tests for switchyard.dispatcher: apply, method filtering, error forwarding."""

import logging

import pytest

from switchyard.context import HttpContext
from switchyard.dispatcher import Dispatcher, bind_handler, expand_methods
from switchyard.registry import HTTP_METHODS, RouteRegistry
from switchyard.request import Request
from switchyard.response import ResponseWriter

from tests.conftest import RecordingRouter, ResponseCapture, make_receive, make_scope


def auth_mw(request, response, next) -> None:
    next()


class UserController:
    constructed = 0

    def __init__(self) -> None:
        type(self).constructed += 1

    @staticmethod
    def list(ctx: HttpContext):
        return {"users": []}

    def show(self, ctx: HttpContext):
        return {"user": 1}


class Broken:
    pass


class LazyController:
    @property
    def show(self):
        raise RuntimeError("settings not loaded")


def make_call() -> tuple[Request, ResponseWriter, ResponseCapture, list]:
    capture = ResponseCapture()
    request = Request(make_scope(), make_receive())
    response = ResponseWriter(capture)
    forwarded: list = []
    return request, response, capture, forwarded


class TestExpandMethods:
    def test_lowercases_and_dedupes(self) -> None:
        assert expand_methods(["GET", "get", "Post"]) == ["get", "post"]

    def test_all_expands_to_vocabulary(self) -> None:
        assert expand_methods(["all"]) == list(HTTP_METHODS)

    def test_all_merges_with_explicit(self) -> None:
        assert expand_methods(["post", "all"]) == ["post", "get", "put", "delete", "patch", "options", "head"]

    def test_unknown_tokens_kept_for_validation(self) -> None:
        assert expand_methods(["get", "banana"]) == ["get", "banana"]


class TestApply:
    def test_mounts_middleware_chain_then_endpoint(self) -> None:
        routes = RouteRegistry()
        routes.get("/users", UserController.list, [auth_mw])
        router = RecordingRouter()

        mounted = Dispatcher(routes).apply(router)

        assert mounted == [("GET", "/users")]
        handlers = router.find("get", "/users")
        assert handlers[0] is auth_mw
        assert len(handlers) == 2

    def test_static_handler_not_instantiated(self) -> None:
        UserController.constructed = 0
        routes = RouteRegistry()
        routes.get("/users", (UserController, "list"))
        Dispatcher(routes).apply(RecordingRouter())
        assert UserController.constructed == 0

    def test_instance_handler_instantiated(self) -> None:
        UserController.constructed = 0
        routes = RouteRegistry()
        routes.get("/users/1", (UserController, "show"))
        Dispatcher(routes).apply(RecordingRouter())
        assert UserController.constructed == 1

    def test_unresolvable_handler_logged_and_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        routes = RouteRegistry()
        routes.get("/bad", (Broken, "missing"))
        routes.get("/good", UserController.list)
        router = RecordingRouter()

        with caplog.at_level(logging.ERROR, logger="switchyard.routes"):
            mounted = Dispatcher(routes).apply(router)

        assert mounted == [("GET", "/good")]
        assert "Invalid handler for route /bad" in caplog.text

    def test_unknown_method_logged_and_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        routes = RouteRegistry()
        routes.add(["get", "banana"], "/fruit", UserController.list)
        router = RecordingRouter()

        with caplog.at_level(logging.ERROR, logger="switchyard.routes"):
            mounted = Dispatcher(routes).apply(router)

        assert mounted == [("GET", "/fruit")]
        assert [m[0] for m in router.mounts] == ["get"]
        assert "Invalid method 'banana' for route /fruit" in caplog.text

    def test_failing_member_lookup_logged_and_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        routes = RouteRegistry()
        routes.get("/lazy", (LazyController, "show"))
        routes.get("/good", UserController.list)
        dispatcher = Dispatcher(routes)
        router = RecordingRouter()

        with caplog.at_level(logging.ERROR, logger="switchyard.routes"):
            mounted = dispatcher.apply(router)

        assert mounted == [("GET", "/good")]
        assert not dispatcher.has_pending(router)
        assert "Invalid handler for route /lazy" in caplog.text

    def test_empty_methods_logged_and_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        routes = RouteRegistry()
        routes.add([], "/nothing", UserController.list)
        routes.get("/good", UserController.list)
        router = RecordingRouter()

        with caplog.at_level(logging.ERROR, logger="switchyard.routes"):
            mounted = Dispatcher(routes).apply(router)

        assert mounted == [("GET", "/good")]
        assert "ROUTES - No methods given for route /nothing" in caplog.text

    def test_all_mounts_every_method(self) -> None:
        routes = RouteRegistry()
        routes.all("/any", UserController.list)
        router = RecordingRouter()
        Dispatcher(routes).apply(router)
        assert [m[0] for m in router.mounts] == list(HTTP_METHODS)

    def test_second_apply_mounts_only_new_routes(self) -> None:
        routes = RouteRegistry()
        routes.get("/a", UserController.list)
        dispatcher = Dispatcher(routes)
        router = RecordingRouter()

        assert dispatcher.apply(router) == [("GET", "/a")]
        routes.get("/b", UserController.list)
        assert dispatcher.has_pending(router)
        assert dispatcher.apply(router) == [("GET", "/b")]
        assert dispatcher.apply(router) == []
        assert [m[1] for m in router.mounts] == ["/a", "/b"]

    def test_each_router_tracked_separately(self) -> None:
        routes = RouteRegistry()
        routes.get("/a", UserController.list)
        dispatcher = Dispatcher(routes)
        first, second = RecordingRouter(), RecordingRouter()

        dispatcher.apply(first)
        assert dispatcher.apply(second) == [("GET", "/a")]


class TestBoundEndpoint:
    async def test_sync_return_value_is_sent(self) -> None:
        request, response, capture, _ = make_call()
        endpoint = bind_handler(lambda ctx: {"ok": True}, "get", "/x")

        await endpoint(request, response, lambda error=None: None)

        assert capture.status == 200
        assert capture.body == b'{"ok":true}'

    async def test_async_handler_awaited(self) -> None:
        request, response, capture, _ = make_call()

        async def handler(ctx: HttpContext) -> None:
            await ctx.response.text("done", status_code=201)

        await bind_handler(handler, "post", "/x")(request, response, lambda error=None: None)

        assert capture.status == 201
        assert capture.body == b"done"

    async def test_handler_receives_context(self) -> None:
        request, response, _, _ = make_call()
        seen: list[HttpContext] = []

        def next_fn(error=None) -> None: ...

        await bind_handler(seen.append, "get", "/x")(request, response, next_fn)

        assert seen[0].request is request
        assert seen[0].response is response
        assert seen[0].next is next_fn

    async def test_sync_error_forwarded_to_next(self, caplog: pytest.LogCaptureFixture) -> None:
        request, response, _, forwarded = make_call()
        boom = RuntimeError("sync boom")

        def handler(ctx):
            raise boom

        with caplog.at_level(logging.ERROR, logger="switchyard.routes"):
            await bind_handler(handler, "get", "/x")(request, response, forwarded.append)

        assert forwarded == [boom]
        assert "Unhandled error in GET /x" in caplog.text

    async def test_async_error_forwarded_to_next(self, caplog: pytest.LogCaptureFixture) -> None:
        request, response, _, forwarded = make_call()
        boom = ValueError("async boom")

        async def handler(ctx):
            raise boom

        with caplog.at_level(logging.ERROR, logger="switchyard.routes"):
            await bind_handler(handler, "get", "/x")(request, response, forwarded.append)

        assert forwarded == [boom]
        assert "async boom" in caplog.text

    async def test_keeps_handler_name(self) -> None:
        def list_users(ctx): ...
        assert bind_handler(list_users, "get", "/x").__name__ == "list_users"
