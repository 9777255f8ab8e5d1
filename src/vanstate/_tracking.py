"""Dependency tracking — records which State cells a function touches.

Uses contextvars to hold the Dependencies record of the call currently
being tracked. State.get() adds the cell to its getters, State.set() to its
setters. run_tracked() swaps the record in and restores the outer one, so a
derive() nested inside a bind() tracks into its own record.
"""

from __future__ import annotations

import contextvars
import inspect
import logging
from typing import TYPE_CHECKING, Any, Callable, TypeVar

if TYPE_CHECKING:
    from vanstate.binding import Listener
    from vanstate.cell import State

logger = logging.getLogger("vanstate.tracking")

A = TypeVar("A")
R = TypeVar("R")


class Dependencies:
    """Getters and setters recorded during one tracked call.

    Dicts are used as insertion-ordered sets.
    """

    __slots__ = ("getters", "setters")

    def __init__(self) -> None:
        self.getters: dict[State, None] = {}
        self.setters: dict[State, None] = {}

    def subscriptions(self) -> list[State]:
        """Cells read but not written by the call."""
        return [s for s in self.getters if s not in self.setters]


current_deps: contextvars.ContextVar[Dependencies | None] = contextvars.ContextVar(
    "current_deps", default=None
)

# Listeners created by derive() while a bind() is rendering. bind() gives
# them its resulting node as anchor once it is known.
current_new_derives: contextvars.ContextVar[list[Listener] | None] = contextvars.ContextVar(
    "current_new_derives", default=None
)


def track_get(cell: State) -> None:
    deps = current_deps.get()
    if deps is not None:
        deps.getters[cell] = None


def track_set(cell: State) -> None:
    deps = current_deps.get()
    if deps is not None:
        deps.setters[cell] = None


def run_tracked(fn: Callable[[A], R], deps: Dependencies | None, arg: A) -> R | A:
    """Call fn(arg) with deps as the current record.

    A failure is logged and arg is returned unchanged, so one broken
    binding cannot abort the whole update cycle.
    """
    token = current_deps.set(deps)
    try:
        return fn(arg)
    except Exception:
        logger.exception("Reactive function %s failed", _describe(fn))
        return arg
    finally:
        current_deps.reset(token)


def with_optional_arg(fn: Callable[..., R]) -> Callable[[Any], R]:
    """Adapt a zero-or-one argument function to always take one argument."""
    if _accepts_arg(fn):
        return fn
    adapted = lambda _arg: fn()  # noqa: E731
    adapted.__wrapped__ = fn  # type: ignore[attr-defined]
    return adapted


def _accepts_arg(fn: Callable) -> bool:
    try:
        params = inspect.signature(fn, follow_wrapped=False).parameters.values()
    except (TypeError, ValueError):
        # Builtins without a signature: assume they take the argument.
        return True
    for p in params:
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD, p.VAR_POSITIONAL):
            return True
    return False


def _describe(fn: Callable) -> str:
    fn = getattr(fn, "__wrapped__", fn)
    return getattr(fn, "__qualname__", None) or repr(fn)
