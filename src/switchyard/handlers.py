"""
Route handler references and their resolution.

A route handler can be declared three ways:

* a plain callable taking an ``HttpContext``;
* ``FunctionHandler(fn)``, the explicit form of the above;
* ``BoundMethodHandler(reference, method)`` or the shorthand pair
  ``(reference, "method_name")``, resolved when routes are applied.

For a bound method, a static or class method on ``reference`` is used
as-is.  Otherwise ``reference`` (a class or zero-argument factory) is
called once and the method is looked up on the new instance.  When
``reference`` is already an object, its bound method is used.
"""

import inspect
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeAlias

from switchyard.exceptions import HandlerResolutionError
from switchyard.types import ContextHandler


@dataclass(frozen=True, slots=True)
class FunctionHandler:
    """A free function of the request context."""

    fn: ContextHandler


@dataclass(frozen=True, slots=True)
class BoundMethodHandler:
    """
    A method resolved on ``reference`` at apply time.

    ``method`` is either the function itself (``UserController.show``)
    or its name.
    """

    reference: Any
    method: Callable[..., Any] | str

    @property
    def method_name(self) -> str:
        if isinstance(self.method, str):
            return self.method
        return getattr(self.method, "__name__", "")


RouteHandler: TypeAlias = (
    ContextHandler | FunctionHandler | BoundMethodHandler | tuple[Any, str] | list[Any]
)


def as_handler(handler: RouteHandler) -> FunctionHandler | BoundMethodHandler | None:
    """Normalize any accepted handler shape into a tagged variant."""
    if isinstance(handler, (FunctionHandler, BoundMethodHandler)):
        return handler
    if isinstance(handler, (tuple, list)):
        if len(handler) == 2 and isinstance(handler[1], str):
            return BoundMethodHandler(handler[0], handler[1])
        return None
    if callable(handler):
        return FunctionHandler(handler)
    return None


def _is_static_member(reference: type, name: str) -> bool:
    try:
        member = inspect.getattr_static(reference, name)
    except AttributeError:
        return False
    return isinstance(member, (staticmethod, classmethod))


def _member(target: Any, name: str, path: str, handler: RouteHandler) -> Any:
    """``getattr(target, name, None)``, with lookup failures as resolution errors."""
    try:
        return getattr(target, name, None)
    except Exception as exc:
        raise HandlerResolutionError(path, handler) from exc


def resolve_handler(handler: RouteHandler, path: str = "") -> ContextHandler:
    """
    Turn a handler reference into a callable of the request context.

    Raises:
        HandlerResolutionError: If nothing callable can be resolved.
    """
    variant = as_handler(handler)

    if isinstance(variant, FunctionHandler):
        if callable(variant.fn):
            return variant.fn
        raise HandlerResolutionError(path, handler)

    if isinstance(variant, BoundMethodHandler):
        reference = variant.reference
        name = variant.method_name
        if not name:
            raise HandlerResolutionError(path, handler)

        if not inspect.isclass(reference):
            # An object instance, or a module-like namespace
            bound = _member(reference, name, path, handler)
            if callable(bound):
                return bound
            if not callable(reference):
                raise HandlerResolutionError(path, handler)
        elif _is_static_member(reference, name):
            return _member(reference, name, path, handler)

        try:
            instance = reference()
        except Exception as exc:
            raise HandlerResolutionError(path, handler) from exc

        bound = _member(instance, name, path, handler)
        if callable(bound):
            return bound

    raise HandlerResolutionError(path, handler)
