"""
Bearer-token route middleware.

These are chain middlewares, mounted per route or per group:

    auth = bearer_auth(secret_key=SECRET)
    routes.group("/admin", admin_routes, [auth, require_scopes("admin")])
"""

from dataclasses import dataclass, field
from typing import Any

import jwt

from switchyard.exceptions import Forbidden, Unauthorized
from switchyard.request import Request
from switchyard.response import ResponseWriter
from switchyard.types import NextFunction, RouteMiddleware

USER_STATE_KEY: str = "user"


@dataclass
class User:
    """Identity decoded from a verified token."""

    id: str
    username: str | None = None
    scopes: list[str] = field(default_factory=list)
    claims: dict[str, Any] = field(default_factory=dict)

    def has_scope(self, scope: str) -> bool:
        return scope in self.scopes


def _bearer_token(request: Request, token_prefix: str) -> str | None:
    auth_header = request.get_header("authorization")
    if not auth_header:
        return None
    try:
        scheme, token = auth_header.split(" ", 1)
    except ValueError:
        return None
    if scheme.lower() != token_prefix.lower():
        return None
    return token.strip() or None


def bearer_auth(
    secret_key: str,
    algorithm: str = "HS256",
    token_prefix: str = "Bearer",
) -> RouteMiddleware:
    """
    Build a middleware that verifies ``Authorization: Bearer <jwt>``.

    On success the decoded ``User`` is stored in
    ``request.state["user"]`` and the chain continues; otherwise the
    chain stops with ``Unauthorized``.
    """

    def authenticate(request: Request, response: ResponseWriter, next: NextFunction) -> None:
        token = _bearer_token(request, token_prefix)
        if token is None:
            next(Unauthorized("Authentication required"))
            return

        try:
            payload: dict[str, Any] = jwt.decode(token, secret_key, algorithms=[algorithm])
        except jwt.ExpiredSignatureError:
            next(Unauthorized("Token expired"))
            return
        except jwt.InvalidTokenError:
            next(Unauthorized("Invalid token"))
            return

        if "sub" not in payload:
            next(Unauthorized("Invalid token"))
            return

        request.state[USER_STATE_KEY] = User(
            id=str(payload["sub"]),
            username=payload.get("username"),
            scopes=list(payload.get("scopes", [])),
            claims=payload,
        )
        next()

    return authenticate


def require_scopes(*required_scopes: str) -> RouteMiddleware:
    """Build a middleware that needs an authenticated user holding every scope."""

    def check(request: Request, response: ResponseWriter, next: NextFunction) -> None:
        user = request.state.get(USER_STATE_KEY)
        if not isinstance(user, User):
            next(Unauthorized("Authentication required"))
            return

        for scope in required_scopes:
            if not user.has_scope(scope):
                next(Forbidden(f"Missing required scope: {scope}"))
                return
        next()

    return check
