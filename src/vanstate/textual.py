"""Textual integration for vanstate. Opt-in — requires textual.

Widgets are the nodes: bind() render functions return widgets (or
primitives, shown as Static), liveness comes from Widget.is_attached, and
patches mount the new widget next to the old one before removing it.
Flushes run on the app's own timers, so they happen on the app thread.
"""

from __future__ import annotations

import threading
from typing import Any, Callable

from textual.app import App
from textual.widget import Widget
from textual.widgets import Static

from vanstate.runtime import Runtime, set_runtime


class TextualBackend:
    """Backend that treats Textual widgets as UI nodes."""

    def is_node(self, value: Any) -> bool:
        return isinstance(value, Widget)

    def text(self, value: Any) -> Static:
        return Static(str(value), markup=False)

    def is_attached(self, node: Widget) -> bool:
        return node.is_attached

    def replace_with(self, old: Widget, new: Widget) -> None:
        parent = old.parent
        if parent is None:
            return
        parent.mount(new, after=old)
        old.remove()

    def remove(self, old: Widget) -> None:
        old.remove()


def app_timer(app: App) -> Callable[[float, Callable[[], None]], None]:
    """Timer that schedules on app.set_timer.

    Calls from a background thread are marshaled with call_from_thread.
    """
    _main = threading.get_ident()

    def _schedule(delay: float, fn: Callable[[], None]) -> None:
        if threading.get_ident() != _main:
            app.call_from_thread(app.set_timer, delay, fn)
        else:
            app.set_timer(delay, fn)

    return _schedule


def install(app: App, **kwargs: Any) -> Runtime:
    """Make a Textual-backed Runtime the default. Call from the app thread.

    Usage:
        class CounterApp(App):
            def on_mount(self) -> None:
                vanstate.textual.install(self)
                count = vanstate.state(0)
                self.mount(vanstate.bind(lambda: f"Count: {count.val}"))
    """
    runtime = Runtime(timer=app_timer(app), backend=TextualBackend(), **kwargs)
    set_runtime(runtime)
    return runtime
