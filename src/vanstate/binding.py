"""Subscription records held by State cells.

A Binding ties a render function to the node it last produced; a Listener
ties a derivation to the State it writes. Cells hold them in plain lists and
never own their lifetime: a record whose anchor node has left the live tree
is dropped by the next liveness sweep.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Iterable, TypeVar

if TYPE_CHECKING:
    from vanstate.cell import State

S = TypeVar("S", "Binding", "Listener")


class _AlwaysConnected:
    """Anchor for derivations created outside any render. Never collected."""

    __slots__ = ()
    is_attached = True

    def __repr__(self) -> str:
        return "ALWAYS_CONNECTED"


ALWAYS_CONNECTED = _AlwaysConnected()


class Binding:
    __slots__ = ("render", "node")

    def __init__(self, render: Callable[[Any], Any]) -> None:
        self.render = render
        self.node: Any = None

    def __repr__(self) -> str:
        return f"Binding(node={self.node!r})"


class Listener:
    __slots__ = ("compute", "target", "node")

    def __init__(self, compute: Callable[[Any], Any], target: State, node: Any = None) -> None:
        self.compute = compute
        self.target = target
        self.node = node

    def __repr__(self) -> str:
        return f"Listener(target={self.target!r}, node={self.node!r})"


def keep_connected(subscribers: Iterable[S], is_live: Callable[[Any], bool]) -> list[S]:
    """Subscribers whose anchor node is still attached."""
    return [s for s in subscribers if is_live(s.node)]
