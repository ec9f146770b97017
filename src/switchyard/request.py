"""
Request handling for Switchyard.
Wraps the ASGI scope and receive channel of one inbound HTTP request.
"""

import json
from collections.abc import Mapping
from functools import cached_property
from typing import Any
from urllib.parse import parse_qs

from switchyard.cookies import parse_cookies
from switchyard.types import Receive, Scope, State


class Request:
    """
    HTTP Request wrapper ("req" in a route chain).

    ``state`` is a per-request scratch mapping shared by every middleware
    and the final handler of the chain.
    """

    def __init__(self, scope: Scope, receive: Receive) -> None:
        self._scope = scope
        self._receive = receive
        self._body: bytes | None = None
        self.state: State = scope.setdefault("request_state", {})

    @property
    def scope(self) -> Scope:
        return self._scope

    @property
    def method(self) -> str:
        """HTTP method (GET, POST, etc.)."""
        return self._scope.get("method", "GET")

    @property
    def path(self) -> str:
        return self._scope.get("path", "/")

    @property
    def query_string(self) -> str:
        return self._scope.get("query_string", b"").decode("utf-8")

    @cached_property
    def query_params(self) -> Mapping[str, str | list[str]]:
        """Parsed query parameters; repeated keys become lists."""
        params: dict[str, str | list[str]] = {}
        for key, values in parse_qs(self.query_string, keep_blank_values=True).items():
            params[key] = values[0] if len(values) == 1 else values
        return params

    @cached_property
    def headers(self) -> Mapping[str, str]:
        """Request headers, lower-cased names."""
        headers: dict[str, str] = {}
        for name, value in self._scope.get("headers", []):
            headers[name.decode("latin-1").lower()] = value.decode("latin-1")
        return headers

    @cached_property
    def cookies(self) -> Mapping[str, str]:
        return parse_cookies(self.headers.get("cookie", ""))

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "")

    @property
    def client(self) -> tuple[str, int] | None:
        """Client address as (host, port) tuple."""
        client = self._scope.get("client")
        if client:
            return (client[0], client[1])
        return None

    @property
    def path_params(self) -> dict[str, Any]:
        """Path parameters captured by the matched route."""
        return self._scope.get("path_params", {})

    @property
    def request_id(self) -> str | None:
        return self._scope.get("request_id")

    async def body(self) -> bytes:
        """Read and cache the full request body."""
        if self._body is not None:
            return self._body

        chunks: list[bytes] = []
        while True:
            message = await self._receive()
            if message["type"] == "http.disconnect":
                break
            chunks.append(message.get("body", b""))
            if not message.get("more_body", False):
                break

        self._body = b"".join(chunks)
        return self._body

    async def text(self) -> str:
        body = await self.body()
        return body.decode("utf-8")

    async def json(self) -> Any:
        """Parse body as JSON; an empty body yields ``None``."""
        text = await self.text()
        return json.loads(text) if text else None

    def get_header(self, name: str, default: str | None = None) -> str | None:
        return self.headers.get(name.lower(), default)

    def get_query(self, name: str, default: str | None = None) -> str | None:
        """Get a single query parameter (first value when repeated)."""
        value = self.query_params.get(name, default)
        if isinstance(value, list):
            return value[0] if value else default
        return value

    def get_cookie(self, name: str, default: str | None = None) -> str | None:
        return self.cookies.get(name, default)
