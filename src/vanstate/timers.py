"""Timers — how a Runtime defers its update flush and liveness sweep.

A timer is any callable taking (delay_seconds, fn) that arranges for fn()
to run once after the delay. Nothing is ever cancelled: a scheduled flush
always runs to completion once it fires.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import threading
from typing import Callable

Timer = Callable[[float, Callable[[], None]], None]


def thread_timer(delay: float, fn: Callable[[], None]) -> None:
    """Run fn on a daemon thread after delay seconds.

    Opt-in: the flush can fire between two set() calls of the caller, so
    a render may see a half-updated turn. Group related mutations in
    `with runtime.batch():`, which holds the runtime lock until the block
    exits and keeps the flush waiting.
    """
    t = threading.Timer(delay, fn)
    t.daemon = True
    t.start()


class AsyncioTimer:
    """Schedule callbacks on an asyncio event loop. The Runtime default.

    Without an explicit loop, uses the loop running at scheduling time.
    Callbacks only run once the caller yields to the loop, so every
    mutation of one synchronous turn lands in the same flush.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def __call__(self, delay: float, fn: Callable[[], None]) -> None:
        loop = self._loop or asyncio.get_running_loop()
        loop.call_later(delay, fn)


class ManualTimer:
    """A virtual clock that only moves when advance() is called.

    Usage:
        timer = ManualTimer()
        rt = Runtime(timer=timer)
        count = rt.state(0)
        ...
        count.val = 1
        timer.advance()      # runs the zero-delay update flush
        timer.advance(1.0)   # also runs the liveness sweep
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: list[tuple[float, int, Callable[[], None]]] = []
        self._seq = itertools.count()

    def __call__(self, delay: float, fn: Callable[[], None]) -> None:
        heapq.heappush(self._queue, (self.now + delay, next(self._seq), fn))

    @property
    def pending(self) -> int:
        """Number of callbacks waiting to fire. Useful for testing."""
        return len(self._queue)

    def advance(self, seconds: float = 0.0) -> int:
        """Move the clock forward, firing every callback that comes due.

        Callbacks scheduled while advancing fire too if they fall inside the
        window. Returns the number of callbacks fired.
        """
        target = self.now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, fn = heapq.heappop(self._queue)
            self.now = max(self.now, due)
            fn()
            fired += 1
        self.now = target
        return fired
