"""
Route registry for Switchyard.

Collects route definitions while the application starts up.  Paths are
resolved against the active group prefix and middleware chains are
assembled (global -> group -> per-route) at the moment a route is added,
so later scope changes never touch routes already registered.
"""

from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field

from switchyard.handlers import RouteHandler
from switchyard.types import RouteMiddleware

# Methods a route can be mounted under; "all" expands to every one of them
HTTP_METHODS: tuple[str, ...] = ("get", "post", "put", "delete", "patch", "options", "head")
ALL_METHODS: str = "all"


def normalize_path(path: str) -> str:
    """
    Collapse a path to ``/seg/seg``: one leading slash, no empty segments,
    no trailing slash.  ``normalize_path("")`` is ``"/"``.
    """
    return "/" + "/".join(segment for segment in path.split("/") if segment)


@dataclass(frozen=True, slots=True)
class RouteDefinition:
    """One planned route, fully resolved at registration time."""

    methods: tuple[str, ...]
    path: str
    handler: RouteHandler
    middlewares: tuple[RouteMiddleware, ...] = field(default_factory=tuple)


class RouteRegistry:
    """
    Accumulates route definitions.

    Usage:
        routes = RouteRegistry()

        routes.get("/", home)

        def api() -> None:
            routes.get("/users", (UserController, "index"))
            routes.post("/users", (UserController, "store"), [auth])

        routes.group("/api", api, [cors])

    Registration is single-threaded startup work; nothing here is
    guarded against concurrent mutation.
    """

    def __init__(self) -> None:
        self._routes: list[RouteDefinition] = []
        self._prefix: str = ""
        self._group_middlewares: tuple[RouteMiddleware, ...] = ()
        self._global_middlewares: tuple[RouteMiddleware, ...] = ()

    def __len__(self) -> int:
        return len(self._routes)

    def __iter__(self) -> Iterator[RouteDefinition]:
        return iter(self._routes)

    @property
    def routes(self) -> list[RouteDefinition]:
        """Registered definitions, in registration order."""
        return list(self._routes)

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def group_middlewares(self) -> tuple[RouteMiddleware, ...]:
        return self._group_middlewares

    @property
    def global_middlewares(self) -> tuple[RouteMiddleware, ...]:
        return self._global_middlewares

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def add(
        self,
        methods: str | Sequence[str],
        path: str,
        handler: RouteHandler,
        middlewares: Sequence[RouteMiddleware] = (),
    ) -> None:
        """
        Register ``handler`` under one or more method tokens.

        Method tokens are not validated here; unknown tokens are
        reported and skipped when the routes are applied.
        """
        method_list = (methods,) if isinstance(methods, str) else tuple(methods)

        self._routes.append(RouteDefinition(
            methods=method_list,
            path=normalize_path(f"{self._prefix}/{path}"),
            handler=handler,
            middlewares=(
                *self._global_middlewares,
                *self._group_middlewares,
                *middlewares,
            ),
        ))

    def get(self, path: str, handler: RouteHandler, middlewares: Sequence[RouteMiddleware] = ()) -> None:
        self.add("get", path, handler, middlewares)

    def post(self, path: str, handler: RouteHandler, middlewares: Sequence[RouteMiddleware] = ()) -> None:
        self.add("post", path, handler, middlewares)

    def put(self, path: str, handler: RouteHandler, middlewares: Sequence[RouteMiddleware] = ()) -> None:
        self.add("put", path, handler, middlewares)

    def delete(self, path: str, handler: RouteHandler, middlewares: Sequence[RouteMiddleware] = ()) -> None:
        self.add("delete", path, handler, middlewares)

    def patch(self, path: str, handler: RouteHandler, middlewares: Sequence[RouteMiddleware] = ()) -> None:
        self.add("patch", path, handler, middlewares)

    def options(self, path: str, handler: RouteHandler, middlewares: Sequence[RouteMiddleware] = ()) -> None:
        self.add("options", path, handler, middlewares)

    def head(self, path: str, handler: RouteHandler, middlewares: Sequence[RouteMiddleware] = ()) -> None:
        self.add("head", path, handler, middlewares)

    def all(self, path: str, handler: RouteHandler, middlewares: Sequence[RouteMiddleware] = ()) -> None:
        """Register under every supported method."""
        self.add(ALL_METHODS, path, handler, middlewares)

    # ------------------------------------------------------------------
    # Scoping
    # ------------------------------------------------------------------

    @contextmanager
    def prefixed(
        self,
        prefix: str,
        middlewares: Sequence[RouteMiddleware] = (),
    ) -> Iterator["RouteRegistry"]:
        """
        Scope a path prefix and group middlewares over a ``with`` block.

        Nested scopes compose; the previous scope is restored on exit,
        including when the block raises.
        """
        previous_prefix = self._prefix
        previous_group = self._group_middlewares

        self._prefix = normalize_path(f"{previous_prefix}/{prefix}")
        self._group_middlewares = (*previous_group, *middlewares)
        try:
            yield self
        finally:
            self._prefix = previous_prefix
            self._group_middlewares = previous_group

    @contextmanager
    def using(self, middlewares: Sequence[RouteMiddleware]) -> Iterator["RouteRegistry"]:
        """Scope global middlewares over a ``with`` block."""
        previous_global = self._global_middlewares

        self._global_middlewares = (*previous_global, *middlewares)
        try:
            yield self
        finally:
            self._global_middlewares = previous_global

    def group(
        self,
        prefix: str,
        callback: Callable[[], object],
        middlewares: Sequence[RouteMiddleware] = (),
    ) -> None:
        """Run ``callback`` with ``prefix`` and ``middlewares`` in scope."""
        with self.prefixed(prefix, middlewares):
            callback()

    def middleware(
        self,
        middlewares: Sequence[RouteMiddleware],
        callback: Callable[[], object],
    ) -> None:
        """Run ``callback`` with ``middlewares`` prepended to every route it adds."""
        with self.using(middlewares):
            callback()
