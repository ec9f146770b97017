"""
Middleware package for Switchyard.
"""

from switchyard.middleware.auth import bearer_auth, require_scopes
from switchyard.middleware.base import Middleware, MiddlewareStack
from switchyard.middleware.error_handler import ErrorHandlerMiddleware
from switchyard.middleware.logging import RequestLoggingMiddleware

__all__ = [
    "Middleware",
    "MiddlewareStack",
    "ErrorHandlerMiddleware",
    "RequestLoggingMiddleware",
    "bearer_auth",
    "require_scopes",
]
