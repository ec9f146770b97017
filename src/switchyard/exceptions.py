"""
Switchyard exceptions.
HTTP errors travel through the ASGI error path; routing errors are raised
while routes are applied and never escape the dispatcher.
"""


class SwitchyardException(Exception):
    """Base exception for all Switchyard errors."""

    def __init__(self, message: str = "An error occurred") -> None:
        self.message = message
        super().__init__(self.message)


class HTTPException(SwitchyardException):
    """HTTP-related exceptions with status codes."""

    def __init__(
        self,
        status_code: int = 500,
        detail: str = "Internal Server Error",
        headers: dict[str, str] | None = None,
    ) -> None:
        self.status_code = status_code
        self.detail = detail
        self.headers = headers or {}
        super().__init__(detail)


class BadRequest(HTTPException):
    """400 Bad Request."""

    def __init__(self, detail: str = "Bad Request") -> None:
        super().__init__(400, detail)


class Unauthorized(HTTPException):
    """401 Unauthorized."""

    def __init__(
        self,
        detail: str = "Unauthorized",
        headers: dict[str, str] | None = None,
    ) -> None:
        default_headers = {"WWW-Authenticate": "Bearer"}
        if headers:
            default_headers.update(headers)
        super().__init__(401, detail, default_headers)


class Forbidden(HTTPException):
    """403 Forbidden."""

    def __init__(self, detail: str = "Forbidden") -> None:
        super().__init__(403, detail)


class NotFound(HTTPException):
    """404 Not Found."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(404, detail)


class MethodNotAllowed(HTTPException):
    """405 Method Not Allowed."""

    def __init__(self, detail: str = "Method Not Allowed") -> None:
        super().__init__(405, detail)


class InternalServerError(HTTPException):
    """500 Internal Server Error."""

    def __init__(self, detail: str = "Internal Server Error") -> None:
        super().__init__(500, detail)


class RoutingError(SwitchyardException):
    """Routing-related errors."""
    pass


class HandlerResolutionError(RoutingError):
    """A route handler reference did not resolve to something callable."""

    def __init__(self, path: str, handler: object) -> None:
        self.path = path
        self.handler = handler
        super().__init__(f"Invalid handler for route {path}: {handler!r}")


class UnsupportedMethodError(RoutingError):
    """A route declared a method token outside the supported vocabulary."""

    def __init__(self, path: str, method: str) -> None:
        self.path = path
        self.method = method
        super().__init__(f"Invalid method '{method}' for route {path}")
