"""Runtime — owns batching, the update flush and liveness sweeps.

Mutating an observed State adds it to the pending batch and, on the first
insertion of a tick, schedules update_all() on a zero-delay timer. All
mutations of one synchronous turn therefore land in a single flush:

1. Derivation phase: re-run the listeners of every changed cell. Cells the
   derivations write join the next pass; passes repeat until nothing new
   changes or MAX_DERIVE_ITERATIONS is hit.
2. Binding phase: re-render every live binding of the changed cells and
   patch its new node over the old one.
3. Commit: old_val := raw_val for every changed cell.

Derivations settle fully before any binding renders, so a binding never
sees an intermediate derived value.

Subscribing to a cell also slates it for a liveness sweep gc_interval
seconds later, which drops bindings and listeners whose anchor node has
left the live tree.

The default timer is loop-bound (AsyncioTimer): flushes run when the caller
yields to the event loop, never in the middle of a synchronous turn.

Thread safety: every entry point takes the runtime's re-entrant lock. With
a thread-based timer, wrap each turn in `with runtime.batch():` so the
flush waits until the whole turn has been applied.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator, TypeVar

from vanstate._tracking import (
    Dependencies,
    current_new_derives,
    run_tracked,
    with_optional_arg,
)
from vanstate.binding import ALWAYS_CONNECTED, Binding, Listener, keep_connected
from vanstate.cell import State
from vanstate.timers import AsyncioTimer, Timer
from vanstate.tree import Backend, TreeBackend

logger = logging.getLogger("vanstate.runtime")

T = TypeVar("T")

# Upper bound on derivation passes per flush. Hitting it means the
# derivation graph has a cycle or never settles.
MAX_DERIVE_ITERATIONS = 100

GC_CYCLE_SECONDS = 1.0


class Runtime:
    """Process-wide reactive state: pending batches, timer, tree backend.

    Usage:
        rt = Runtime(timer=ManualTimer())
        count = rt.state(0)
        label = rt.bind(lambda: f"count: {count.val}")
        document.append(label)
        count.val = 1   # batched
        rt.timer.advance()  # flush: label is replaced by "count: 1"
    """

    def __init__(
        self,
        *,
        timer: Timer | None = None,
        backend: Backend | None = None,
        gc_interval: float = GC_CYCLE_SECONDS,
    ) -> None:
        self.timer = timer if timer is not None else AsyncioTimer()
        self.backend = backend if backend is not None else TreeBackend()
        self.gc_interval = gc_interval
        self.lock = threading.RLock()
        # Batches are None until their first insertion in a cycle.
        self._changed: dict[State, None] | None = None
        self._derived: dict[State, None] | None = None
        self._gc_candidates: dict[State, None] | None = None

    def state(self, value: T | None = None) -> State[T]:
        return State(value, runtime=self)

    @contextmanager
    def batch(self) -> Iterator[None]:
        """Hold the runtime lock for a group of mutations.

        A flush fired by a thread-based timer waits until the block exits,
        so it sees every mutation of the block or none of them.

        Usage:
            with runtime.batch():
                first.val = "Grace"
                last.val = "Hopper"
        """
        with self.lock:
            yield

    # --- Scheduling ---

    def _add_and_schedule_on_first(
        self,
        batch: dict[State, None] | None,
        cell: State,
        fn: Callable[[], None],
        delay: float,
    ) -> dict[State, None]:
        if batch is None:
            self.timer(delay, fn)
            batch = {}
        batch[cell] = None
        return batch

    def _mark_changed(self, cell: State) -> None:
        """Called by State.set() for a cell that has subscribers."""
        if self._derived is not None:
            self._derived[cell] = None
        self._changed = self._add_and_schedule_on_first(self._changed, cell, self.update_all, 0)

    def _slate_for_gc(self, cell: State) -> None:
        self._gc_candidates = self._add_and_schedule_on_first(
            self._gc_candidates, cell, self.collect, self.gc_interval
        )

    # --- Liveness ---

    def is_live(self, node: Any) -> bool:
        if node is ALWAYS_CONNECTED:
            return True
        return node is not None and self.backend.is_attached(node)

    def collect(self) -> None:
        """Drop subscriptions anchored to detached nodes on every slated cell."""
        with self.lock:
            cells = self._gc_candidates or {}
            self._gc_candidates = None
            dropped = 0
            for cell in cells:
                before = len(cell._bindings) + len(cell._listeners)
                cell._bindings = keep_connected(cell._bindings, self.is_live)
                cell._listeners = keep_connected(cell._listeners, self.is_live)
                dropped += before - len(cell._bindings) - len(cell._listeners)
            logger.debug("Collected %d stale subscriptions from %d states", dropped, len(cells))

    # --- Binder / Deriver ---

    def _to_node(self, value: Any) -> Any:
        if value is None or self.backend.is_node(value):
            return value
        return self.backend.text(value)

    def bind(self, render: Callable[..., Any], node: Any = None) -> Any:
        """Render once under tracking and subscribe the result to what it read.

        render may take the node being re-rendered as its only argument.
        Non-node results are wrapped as text nodes; None means "no node".
        """
        render = with_optional_arg(render)
        deps = Dependencies()
        binding = Binding(render)
        new_derives: list[Listener] = []
        with self.lock:
            token = current_new_derives.set(new_derives)
            try:
                new_node = self._to_node(run_tracked(render, deps, node))
                for cell in deps.subscriptions():
                    self._slate_for_gc(cell)
                    cell._bindings.append(binding)
                for listener in new_derives:
                    listener.node = new_node
            finally:
                current_new_derives.reset(token)
            binding.node = new_node
        return new_node

    def derive(
        self,
        compute: Callable[..., T],
        target: State[T] | None = None,
        anchor: Any = None,
    ) -> State[T]:
        """Compute into target (a fresh State if omitted) and keep it current.

        compute may take the target's previous value as its only argument.
        The listener is anchored to `anchor`, else to the node of the
        enclosing bind() once rendered, else it is never collected.
        """
        compute = with_optional_arg(compute)
        if target is None:
            target = self.state()
        with self.lock:
            deps = Dependencies()
            listener = Listener(compute, target)
            if anchor is not None:
                listener.node = anchor
            else:
                new_derives = current_new_derives.get()
                if new_derives is not None:
                    new_derives.append(listener)
                else:
                    listener.node = ALWAYS_CONNECTED
            target.set(run_tracked(compute, deps, target.raw_val))
            for cell in deps.subscriptions():
                self._slate_for_gc(cell)
                cell._listeners.append(listener)
        return target

    # --- Update scheduler ---

    def update_all(self) -> None:
        """Flush the pending batch: derive, then bind, then commit."""
        with self.lock:
            dirty = [s for s in (self._changed or {}) if s._is_dirty()]
            passes = 0
            while dirty:
                self._derived = {}
                listeners: dict[Listener, None] = {}
                for cell in dirty:
                    cell._listeners = keep_connected(cell._listeners, self.is_live)
                    listeners.update(dict.fromkeys(cell._listeners))
                for listener in listeners:
                    self.derive(listener.compute, listener.target, listener.node)
                    listener.node = None
                passes += 1
                dirty = list(self._derived)
                if dirty and passes >= MAX_DERIVE_ITERATIONS:
                    logger.error(
                        "Derivations did not settle after %d passes, abandoning cascade "
                        "with %d states pending (likely a cycle): %r",
                        passes,
                        len(dirty),
                        dirty,
                    )
                    break
            self._derived = None

            changed = [s for s in (self._changed or {}) if s._is_dirty()]
            self._changed = None
            bindings: dict[Binding, None] = {}
            for cell in changed:
                cell._bindings = keep_connected(cell._bindings, self.is_live)
                bindings.update(dict.fromkeys(cell._bindings))
            for binding in bindings:
                if binding.node is None:
                    continue
                self.replace_node(binding.node, self.bind(binding.render, binding.node))
                binding.node = None

            for cell in changed:
                cell._old = cell._raw
            logger.debug(
                "Flushed %d states (%d derivation passes, %d bindings)",
                len(changed),
                passes,
                len(bindings),
            )

    # --- Tree patch ---

    def replace_node(self, old: Any, new: Any) -> None:
        """Swap new in for old; a None new removes old. Same node is a no-op."""
        if new is None:
            self.backend.remove(old)
        elif new is not old:
            self.backend.replace_with(old, new)

    def hydrate(self, node: Any, render: Callable[..., Any]) -> Any:
        """Attach reactivity to an existing node: bind render to it and patch in place."""
        new_node = self.bind(render, node)
        self.replace_node(node, new_node)
        return new_node


# ─── Default runtime ─────────────────────────────────────────────────────────
_default: Runtime | None = None
_default_lock = threading.Lock()


def get_runtime() -> Runtime:
    """The process-wide runtime, created on first use."""
    global _default
    if _default is None:
        with _default_lock:
            if _default is None:
                _default = Runtime()
    return _default


def set_runtime(runtime: Runtime) -> None:
    """Make runtime the default used by state(), derive(), bind() and hydrate().

    Cells already created keep the runtime they were created with.
    """
    global _default
    _default = runtime


def reset_runtime(**kwargs: Any) -> Runtime:
    """Install and return a fresh default Runtime(**kwargs)."""
    runtime = Runtime(**kwargs)
    set_runtime(runtime)
    return runtime


def state(value: T | None = None) -> State[T]:
    return get_runtime().state(value)


def derive(compute: Callable[..., T], target: State[T] | None = None, anchor: Any = None) -> State[T]:
    runtime = target.runtime if target is not None else get_runtime()
    return runtime.derive(compute, target, anchor)


def bind(render: Callable[..., Any], node: Any = None) -> Any:
    return get_runtime().bind(render, node)


def hydrate(node: Any, render: Callable[..., Any]) -> Any:
    return get_runtime().hydrate(node, render)


def replace_node(old: Any, new: Any) -> None:
    get_runtime().replace_node(old, new)


def batch():
    """Context manager: runtime.batch() on the default runtime."""
    return get_runtime().batch()
