"""
Switchyard - route registration and dispatch for ASGI applications

Routes are declared on a registry during startup (with nested groups,
path prefixes and scoped middleware), then applied onto a live router.
"""

from switchyard.app import Switchyard
from switchyard.context import HttpContext
from switchyard.dispatcher import Dispatcher
from switchyard.handlers import BoundMethodHandler, FunctionHandler, resolve_handler
from switchyard.registry import HTTP_METHODS, RouteDefinition, RouteRegistry, normalize_path
from switchyard.request import Request
from switchyard.response import (
    HTMLResponse,
    JSONResponse,
    RedirectResponse,
    Response,
    ResponseWriter,
    TextResponse,
)
from switchyard.routing import Route, Router

__version__ = "0.1.0"
__all__ = [
    "Switchyard",
    "HttpContext",
    "Dispatcher",
    "BoundMethodHandler",
    "FunctionHandler",
    "resolve_handler",
    "HTTP_METHODS",
    "RouteDefinition",
    "RouteRegistry",
    "normalize_path",
    "Request",
    "Response",
    "ResponseWriter",
    "TextResponse",
    "HTMLResponse",
    "JSONResponse",
    "RedirectResponse",
    "Route",
    "Router",
]
