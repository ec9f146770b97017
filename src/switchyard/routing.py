"""
Request router for Switchyard.

The live route table that resolved routes are mounted on.  Each mounted
binding is a chain of ``(request, response, next)`` callables: route
middlewares first, the request handler last.

Uses a radix tree (compact trie) for O(path-length) route lookup
instead of linear scanning through all mounted routes.
"""

import inspect
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Pattern

from switchyard.exceptions import InternalServerError, MethodNotAllowed, NotFound, RoutingError
from switchyard.request import Request
from switchyard.response import ResponseWriter
from switchyard.types import ChainHandler, Receive, Scope, Send

logger = logging.getLogger("switchyard.routes")

# Pattern for path parameters: {param} or {param:type}
PATH_PARAM_PATTERN: Pattern[str] = re.compile(r"\{(\w+)(?::(\w+))?\}")

# Type patterns for path parameter matching (one segment each)
TYPE_PATTERNS: dict[str, str] = {
    "int": r"\d+",
    "str": r"[^/]+",
    "path": r".+",
    "uuid": r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}",
    "slug": r"[a-z0-9]+(?:-[a-z0-9]+)*",
}

TYPE_CONVERTERS: dict[str, Callable[[str], Any]] = {
    "int": int,
    "str": str,
    "path": str,
    "uuid": str,
    "slug": str,
}


@dataclass(frozen=True, slots=True)
class Route:
    """A binding mounted under one method."""

    method: str
    path: str
    handlers: tuple[ChainHandler, ...]


# ---------------------------------------------------------------------------
# Radix tree
# ---------------------------------------------------------------------------


class _RadixNode:
    """A single node in the radix tree."""

    __slots__ = ("segment", "children", "param_child", "param_name", "param_type", "routes")

    def __init__(self, segment: str = "") -> None:
        self.segment: str = segment
        # Static children keyed by their segment
        self.children: dict[str, "_RadixNode"] = {}
        # At most one parametric child (covers {param} / {param:type})
        self.param_child: "_RadixNode | None" = None
        self.param_name: str = ""
        self.param_type: str = "str"
        # Routes that terminate at this node, keyed by method
        self.routes: dict[str, Route] = {}


class RadixTree:
    """
    Compact prefix tree for route lookup.

    Static path segments are resolved via dictionary lookup.
    Parametric segments are stored as a single child per node and
    matched against their type pattern at lookup time.
    """

    def __init__(self) -> None:
        self._root = _RadixNode()

    def insert(self, route: Route) -> bool:
        """Insert a route. Returns False if the method/path is already taken."""
        node = self._root

        for seg in self._split(route.path):
            param = PATH_PARAM_PATTERN.fullmatch(seg)
            if param is None:
                node = node.children.setdefault(seg, _RadixNode(seg))
                continue

            name, type_name = param.group(1), param.group(2) or "str"
            if type_name not in TYPE_PATTERNS:
                raise RoutingError(f"Unknown parameter type: {type_name}")
            if node.param_child is None:
                node.param_child = _RadixNode(seg)
                node.param_child.param_name = name
                node.param_child.param_type = type_name
            elif node.param_child.segment != seg:
                raise RoutingError(
                    f"Conflicting path parameter {seg} in {route.path}; "
                    f"already mounted as {node.param_child.segment}"
                )
            node = node.param_child

        if route.method in node.routes:
            return False
        node.routes[route.method] = route
        return True

    def search(self, path: str, method: str) -> tuple[Route, dict[str, Any]]:
        """
        Find a matching route.

        Returns ``(route, params)`` on success.
        Raises ``NotFound`` or ``MethodNotAllowed``.
        """
        segments = self._split(path)
        # (node, segment_index, accumulated_params)
        stack: list[tuple[_RadixNode, int, dict[str, Any]]] = [(self._root, 0, {})]
        path_matched = False

        while stack:
            node, idx, params = stack.pop()

            if idx == len(segments):
                if not node.routes:
                    continue
                route = node.routes.get(method)
                if route is None and method == "HEAD":
                    route = node.routes.get("GET")
                if route is not None:
                    return route, params
                path_matched = True
                continue

            seg_value = segments[idx]

            # Param pushed first so the static child is popped first
            pnode = node.param_child
            if pnode is not None:
                # A path param swallows every remaining segment
                if pnode.param_type == "path":
                    raw, next_idx = "/".join(segments[idx:]), len(segments)
                else:
                    raw, next_idx = seg_value, idx + 1
                if re.fullmatch(TYPE_PATTERNS[pnode.param_type], raw):
                    try:
                        value = TYPE_CONVERTERS[pnode.param_type](raw)
                    except (ValueError, TypeError):
                        pass
                    else:
                        stack.append((pnode, next_idx, {**params, pnode.param_name: value}))

            if seg_value in node.children:
                stack.append((node.children[seg_value], idx + 1, dict(params)))

        if path_matched:
            raise MethodNotAllowed(f"Method {method} not allowed for {path}")
        raise NotFound(f"No route found for {path}")

    @staticmethod
    def _split(path: str) -> list[str]:
        """Split a path into non-empty segments."""
        return [s for s in path.split("/") if s]


# ---------------------------------------------------------------------------
# Chain execution
# ---------------------------------------------------------------------------


class Chain:
    """
    Runs a mounted binding's callables in order.

    Each callable gets ``next``.  ``next()`` lets the chain move on once
    the callable returns (awaiting it first when it returns an
    awaitable); ``next(error)`` stops the chain and raises ``error``.
    Returning without calling ``next`` ends the chain.
    """

    def __init__(
        self,
        handlers: tuple[ChainHandler, ...],
        request: Request,
        response: ResponseWriter,
    ) -> None:
        self._handlers = handlers
        self.request = request
        self.response = response
        self.error: Any = None
        self._advance = False

    def next(self, error: Any = None) -> None:
        if error is not None:
            self.error = error
        else:
            self._advance = True

    async def run(self) -> bool:
        """Run the chain. Returns True if every callable passed control on."""
        for handler in self._handlers:
            self._advance = False
            result = handler(self.request, self.response, self.next)
            if inspect.isawaitable(result):
                await result

            if self.error is not None:
                if isinstance(self.error, BaseException):
                    raise self.error
                raise InternalServerError(str(self.error))
            if not self._advance:
                return False
        return True


# ---------------------------------------------------------------------------
# Router
# ---------------------------------------------------------------------------


def _without_body(send: Send) -> Send:
    """Wrap ``send`` so response bodies go out empty (HEAD requests)."""

    async def send_headers_only(message: dict[str, Any]) -> None:
        if message["type"] == "http.response.body":
            message = {**message, "body": b""}
        await send(message)

    return send_headers_only


class Router:
    """
    Live route table and ASGI endpoint.

    Implements ``RouteTarget``: ``mount(method, path, *handlers)``.
    The first binding mounted for a method/path wins; later duplicates
    are logged and ignored.
    """

    def __init__(self) -> None:
        self._routes: list[Route] = []
        self._tree = RadixTree()

    @property
    def routes(self) -> list[Route]:
        """Mounted routes, in mount order."""
        return list(self._routes)

    def mount(self, method: str, path: str, *handlers: ChainHandler) -> None:
        """Mount a chain of handlers under ``method`` and ``path``."""
        if not handlers:
            raise RoutingError(f"No handlers given for {method.upper()} {path}")

        route = Route(method=method.upper(), path=path, handlers=tuple(handlers))
        if not self._tree.insert(route):
            logger.warning("%s %s is already mounted; keeping the first binding", route.method, path)
            return
        self._routes.append(route)

    def match(self, path: str, method: str) -> tuple[Route, dict[str, Any]]:
        """
        Find the route for ``method`` and ``path``.

        Raises NotFound or MethodNotAllowed if no match.
        """
        return self._tree.search(path, method.upper())

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Handle one HTTP request."""
        request = Request(scope, receive)
        route, path_params = self.match(request.path, request.method)
        scope["path_params"] = path_params

        response = ResponseWriter(_without_body(send) if request.method == "HEAD" else send)
        fell_through = await Chain(route.handlers, request, response).run()

        if response.sent:
            return
        if fell_through:
            raise NotFound(f"No handler answered {request.method} {request.path}")
        await response.send(None)
