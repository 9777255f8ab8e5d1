"""vanstate: reactive state cells bound to a live UI tree."""

from importlib.metadata import version as _version

__version__ = _version("vanstate")

from vanstate.cell import State, same_value
from vanstate.binding import ALWAYS_CONNECTED, Binding, Listener
from vanstate.runtime import (
    GC_CYCLE_SECONDS,
    MAX_DERIVE_ITERATIONS,
    Runtime,
    batch,
    bind,
    derive,
    get_runtime,
    hydrate,
    replace_node,
    reset_runtime,
    set_runtime,
    state,
)
from vanstate.timers import AsyncioTimer, ManualTimer, thread_timer
from vanstate.tree import Document, Element, Node, Text, TreeBackend
from vanstate.builder import add, tags
# textual NOT auto-imported — opt-in only

__all__ = [
    "State",
    "same_value",
    "Binding",
    "Listener",
    "ALWAYS_CONNECTED",
    "Runtime",
    "MAX_DERIVE_ITERATIONS",
    "GC_CYCLE_SECONDS",
    "state",
    "derive",
    "batch",
    "bind",
    "hydrate",
    "replace_node",
    "get_runtime",
    "set_runtime",
    "reset_runtime",
    "ManualTimer",
    "AsyncioTimer",
    "thread_timer",
    "Node",
    "Text",
    "Element",
    "Document",
    "TreeBackend",
    "add",
    "tags",
]
