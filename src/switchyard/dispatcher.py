"""
Dispatcher: mounts registered routes onto a router.

``apply`` walks the registry, resolves each handler, validates each
method token and mounts one binding per (route, method).  Bad handlers
and unknown methods are logged and skipped; they never abort the pass.
The mounted binding runs the handler with an ``HttpContext`` and routes
any failure, synchronous or awaited, into ``next(error)``.
"""

import inspect
import logging
from collections.abc import Sequence

from switchyard.context import HttpContext
from switchyard.exceptions import RoutingError, UnsupportedMethodError
from switchyard.handlers import resolve_handler
from switchyard.registry import ALL_METHODS, HTTP_METHODS, RouteDefinition, RouteRegistry
from switchyard.request import Request
from switchyard.response import ResponseWriter
from switchyard.types import ChainHandler, ContextHandler, NextFunction, RouteTarget

logger = logging.getLogger("switchyard.routes")


def expand_methods(methods: Sequence[str]) -> list[str]:
    """Lower-case, expand ``all`` and drop duplicates, keeping order."""
    expanded: list[str] = []
    for method in methods:
        token = str(method).lower()
        for candidate in (HTTP_METHODS if token == ALL_METHODS else (token,)):
            if candidate not in expanded:
                expanded.append(candidate)
    return expanded


def bind_handler(handler: ContextHandler, method: str, path: str) -> ChainHandler:
    """Wrap a context handler as the final callable of a route chain."""

    async def endpoint(request: Request, response: ResponseWriter, next: NextFunction) -> None:
        try:
            result = handler(HttpContext(request, response, next))
            if inspect.isawaitable(result):
                result = await result
            if result is not None and not response.sent:
                await response.send(result)
        except Exception as exc:
            logger.exception("Unhandled error in %s %s", method.upper(), path)
            next(exc)

    endpoint.__name__ = getattr(handler, "__name__", endpoint.__name__)
    endpoint.__qualname__ = getattr(handler, "__qualname__", endpoint.__qualname__)
    return endpoint


class Dispatcher:
    """
    Applies a registry's routes to one or more routers.

    Each router remembers how far into the registry it has been
    applied; applying again mounts only definitions added since.
    """

    def __init__(self, registry: RouteRegistry) -> None:
        self.registry = registry
        # id(router) -> (router, definitions already applied)
        self._applied: dict[int, tuple[RouteTarget, int]] = {}

    def has_pending(self, router: RouteTarget) -> bool:
        _, count = self._applied.get(id(router), (router, 0))
        return count < len(self.registry)

    def pending(self, router: RouteTarget) -> list[RouteDefinition]:
        """Definitions not yet applied to ``router``."""
        _, count = self._applied.get(id(router), (router, 0))
        return self.registry.routes[count:]

    def apply(self, router: RouteTarget) -> list[tuple[str, str]]:
        """
        Mount pending definitions on ``router``.

        Returns the ``(METHOD, path)`` pairs mounted by this call.
        """
        definitions = self.pending(router)
        mounted: list[tuple[str, str]] = []

        for definition in definitions:
            mounted.extend(self._apply_definition(router, definition))

        _, count = self._applied.get(id(router), (router, 0))
        self._applied[id(router)] = (router, count + len(definitions))

        logger.debug("Applied %d route definition(s), %d binding(s)", len(definitions), len(mounted))
        return mounted

    def _apply_definition(
        self,
        router: RouteTarget,
        definition: RouteDefinition,
    ) -> list[tuple[str, str]]:
        try:
            handler = resolve_handler(definition.handler, definition.path)
        except RoutingError as exc:
            logger.error("ROUTES - %s", exc)
            return []

        methods = expand_methods(definition.methods)
        if not methods:
            logger.error("ROUTES - No methods given for route %s", definition.path)
            return []

        mounted: list[tuple[str, str]] = []
        for method in methods:
            if method not in HTTP_METHODS:
                logger.error("ROUTES - %s", UnsupportedMethodError(definition.path, method))
                continue

            endpoint = bind_handler(handler, method, definition.path)
            try:
                router.mount(method, definition.path, *definition.middlewares, endpoint)
            except RoutingError as exc:
                logger.error("ROUTES - Could not mount %s %s: %s", method.upper(), definition.path, exc)
                continue
            mounted.append((method.upper(), definition.path))

        return mounted
