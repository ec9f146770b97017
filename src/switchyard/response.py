"""
Response handling for Switchyard.

``Response`` subclasses are immutable-ish values rendered onto the ASGI
send channel.  ``ResponseWriter`` is the mutable outbound response handed
to route chains ("res"): it collects status, headers and cookies and
sends exactly one response.
"""

import json
from abc import ABC, abstractmethod
from typing import Any

from switchyard.cookies import CookieOptions, format_set_cookie
from switchyard.types import Send


class Response(ABC):
    """Abstract base response class."""

    media_type: str = "text/plain"
    charset: str = "utf-8"

    def __init__(
        self,
        content: Any = None,
        status_code: int = 200,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.status_code = status_code
        self._headers: dict[str, str] = dict(headers or {})
        self._cookies: list[str] = []
        self._content = content

    @property
    def content_type(self) -> str:
        """Full content type with charset."""
        if self.media_type.startswith("text/") or "json" in self.media_type:
            return f"{self.media_type}; charset={self.charset}"
        return self.media_type

    @property
    def headers(self) -> dict[str, str]:
        return self._headers

    @abstractmethod
    def render(self) -> bytes:
        """Render the response body. Must be implemented by subclasses."""
        ...

    def set_header(self, name: str, value: str) -> "Response":
        """Set a response header. Returns self for chaining."""
        self._headers[name] = value
        return self

    def set_cookie(
        self,
        name: str,
        value: str,
        options: CookieOptions | None = None,
    ) -> "Response":
        """Set a cookie. Returns self for chaining."""
        self._cookies.append(format_set_cookie(name, value, options))
        return self

    def _build_headers(self) -> list[tuple[bytes, bytes]]:
        headers: list[tuple[bytes, bytes]] = [
            (b"content-type", self.content_type.encode("latin-1")),
        ]
        for name, value in self._headers.items():
            headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))
        for cookie in self._cookies:
            headers.append((b"set-cookie", cookie.encode("latin-1")))
        return headers

    async def __call__(self, send: Send) -> None:
        """Send the response via ASGI."""
        body = self.render()

        await send({
            "type": "http.response.start",
            "status": self.status_code,
            "headers": self._build_headers(),
        })
        await send({
            "type": "http.response.body",
            "body": body,
        })


class TextResponse(Response):
    """Plain text response."""

    media_type = "text/plain"

    def render(self) -> bytes:
        if self._content is None:
            return b""
        if isinstance(self._content, bytes):
            return self._content
        return str(self._content).encode(self.charset)


class HTMLResponse(TextResponse):
    """HTML response."""

    media_type = "text/html"


class JSONResponse(Response):
    """JSON response with automatic serialization."""

    media_type = "application/json"

    def render(self) -> bytes:
        return json.dumps(
            self._content,
            ensure_ascii=False,
            allow_nan=False,
            separators=(",", ":"),
            default=str,
        ).encode(self.charset)


class RedirectResponse(Response):
    """HTTP redirect response."""

    def __init__(
        self,
        url: str,
        status_code: int = 302,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(None, status_code, headers)
        self._headers["location"] = url

    def render(self) -> bytes:
        return b""


def to_response(value: Any, status_code: int = 200) -> Response:
    """
    Convert a handler return value into a Response.

    dict/list -> JSON, str/bytes -> text, ``None`` -> empty 204,
    Response -> unchanged, anything else -> JSON.
    """
    if isinstance(value, Response):
        return value
    if value is None:
        return TextResponse("", status_code=204)
    if isinstance(value, (str, bytes)):
        return TextResponse(value, status_code=status_code)
    return JSONResponse(value, status_code=status_code)


class ResponseWriter:
    """
    Outbound response for one request.

    Status, headers and cookies set on the writer are merged into
    whatever is finally sent.  A second send raises ``RuntimeError``.
    """

    def __init__(self, send: Send) -> None:
        self._send = send
        self.status_code: int | None = None
        self._headers: dict[str, str] = {}
        self._cookies: list[tuple[str, str, CookieOptions | None]] = []
        self.sent = False

    def status(self, code: int) -> "ResponseWriter":
        self.status_code = code
        return self

    def set_header(self, name: str, value: str) -> "ResponseWriter":
        self._headers[name] = value
        return self

    def set_cookie(
        self,
        name: str,
        value: str,
        options: CookieOptions | None = None,
    ) -> "ResponseWriter":
        self._cookies.append((name, value, options))
        return self

    def clear_cookie(self, name: str, path: str = "/") -> "ResponseWriter":
        options = CookieOptions(
            max_age=0,
            path=path,
            expires="Thu, 01 Jan 1970 00:00:00 GMT",
        )
        return self.set_cookie(name, "", options)

    async def send(self, value: Any = None) -> None:
        """Send ``value`` (converted with ``to_response``) as the response."""
        if self.sent:
            raise RuntimeError("Response already sent")

        response = to_response(value, self.status_code or 200)
        if value is None and self.status_code is not None:
            response.status_code = self.status_code

        for name, header_value in self._headers.items():
            response.headers.setdefault(name, header_value)
        for name, cookie_value, options in self._cookies:
            response.set_cookie(name, cookie_value, options)

        self.sent = True
        await response(self._send)

    async def json(self, data: Any, status_code: int | None = None) -> None:
        if status_code is not None:
            self.status_code = status_code
        await self.send(JSONResponse(data, self.status_code or 200))

    async def text(self, content: str, status_code: int | None = None) -> None:
        if status_code is not None:
            self.status_code = status_code
        await self.send(TextResponse(content, self.status_code or 200))

    async def html(self, content: str, status_code: int | None = None) -> None:
        if status_code is not None:
            self.status_code = status_code
        await self.send(HTMLResponse(content, self.status_code or 200))

    async def redirect(self, url: str, status_code: int = 302) -> None:
        self.status_code = status_code
        await self.send(RedirectResponse(url, status_code))

    async def envelope(
        self,
        status: bool,
        code: int,
        message: str,
        result: Any = None,
        **custom: Any,
    ) -> None:
        """
        Send the standard JSON envelope with HTTP status ``code``.

        Body: ``{"status", "code", "message", "result", **custom}``.
        """
        body: dict[str, Any] = {
            "status": status,
            "code": code,
            "message": message,
            "result": result,
        }
        body.update(custom)
        await self.json(body, status_code=code)
