"""State cells — values that track their readers.

Reading a State inside bind() or derive() registers it as a dependency of
that call. Writing a different value marks the cell changed; if anything
observes it, the owning Runtime batches the change into the next update
cycle, otherwise old_val is committed at once.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Generic, TypeVar

from vanstate._tracking import track_get, track_set

if TYPE_CHECKING:
    from vanstate.binding import Binding, Listener
    from vanstate.runtime import Runtime

T = TypeVar("T")

_PRIMITIVES = (str, int, float, complex, bytes, type(None))


def same_value(a: object, b: object) -> bool:
    """Strict equality: identity, or value equality between primitives.

    bool only equals itself, so True and 1 are different values. Containers
    and other objects compare by identity; a derivation that wants deep
    comparison has to do it itself. NaN never equals anything, itself
    included.
    """
    if isinstance(a, float) and a != a:
        return False
    if a is b:
        return True
    if isinstance(a, bool) or isinstance(b, bool):
        return False
    if isinstance(a, _PRIMITIVES) and isinstance(b, _PRIMITIVES):
        return a == b
    return False


class State(Generic[T]):
    """A single mutable value with automatic dependency tracking."""

    __slots__ = ("_runtime", "_raw", "_old", "_bindings", "_listeners", "__weakref__")

    def __init__(self, value: T | None = None, *, runtime: Runtime | None = None) -> None:
        if runtime is None:
            from vanstate.runtime import get_runtime

            runtime = get_runtime()
        self._runtime = runtime
        self._raw = value
        self._old = value
        self._bindings: list[Binding] = []
        self._listeners: list[Listener] = []

    @property
    def runtime(self) -> Runtime:
        return self._runtime

    def get(self) -> T:
        """Read the value. If inside a tracked call, registers the dependency."""
        track_get(self)
        return self._raw

    def set(self, value: T) -> None:
        """Write a new value. Observed cells defer the old_val commit to the next flush."""
        track_set(self)
        with self._runtime.lock:
            if same_value(value, self._raw):
                return
            self._raw = value
            if self._bindings or self._listeners:
                self._runtime._mark_changed(self)
            else:
                self._old = value

    val = property(get, set)

    @property
    def old_val(self) -> T:
        """Value as of the last completed update cycle (tracked)."""
        track_get(self)
        return self._old

    @property
    def raw_val(self) -> T:
        """Current value without registering a dependency."""
        return self._raw

    @property
    def bindings(self) -> tuple[Binding, ...]:
        return tuple(self._bindings)

    @property
    def listeners(self) -> tuple[Listener, ...]:
        return tuple(self._listeners)

    def _is_dirty(self) -> bool:
        return not same_value(self._raw, self._old)

    def __repr__(self) -> str:
        return f"State({self._raw!r})"
