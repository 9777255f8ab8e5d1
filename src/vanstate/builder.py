"""Element construction for the in-memory tree.

    from vanstate import state, tags, add

    count = state(0)
    button = tags.button({"onclick": lambda e: count.set(count.get() + 1)}, "+1")
    panel = tags.div({"class": "counter"}, "Count: ", count, button)

State values and zero/one-argument functions are auto-bound: a State child
renders its value and updates in place, a function child is a render
function, a State or function prop keeps the attribute current.
"""

from __future__ import annotations

import functools
from typing import Any, Callable, Iterable, Union

from vanstate.runtime import Runtime, get_runtime
from vanstate.cell import State
from vanstate.tree import Element, Node, Text

# None | State | render function | Node | literal | nested list/tuple of these
ChildValue = Union[None, State, Callable[..., Any], Node, str, int, float, bool, list, tuple]


def _flatten(children: Iterable[ChildValue]) -> Iterable[ChildValue]:
    for child in children:
        if isinstance(child, (list, tuple)):
            yield from _flatten(child)
        else:
            yield child


def _resolve_child(child: ChildValue, runtime: Runtime) -> Node | None:
    if child is None:
        return None
    if isinstance(child, State):
        return child.runtime.bind(lambda: child.val)
    if isinstance(child, Node):
        return child
    if callable(child):
        return runtime.bind(child)
    return Text(str(child))


def add(node: Element, *children: ChildValue) -> Element:
    """Append children to node, flattening sequences and binding reactive ones."""
    runtime = get_runtime()
    for child in _flatten(children):
        resolved = _resolve_child(child, runtime)
        if resolved is not None:
            node.append(resolved)
    return node


def _prop_setter(element: Element, key: str) -> Callable[[Any, Any], None]:
    if key.startswith("on"):
        event = key[2:]

        def set_handler(handler: Any, old_handler: Any) -> None:
            element.remove_event_listener(event, old_handler)
            element.add_event_listener(event, handler)

        return set_handler
    return lambda value, _old: element.set_attribute(key, value)


def _apply_prop(element: Element, key: str, value: Any, runtime: Runtime) -> None:
    setter = _prop_setter(element, key)
    if not key.startswith("on") and callable(value) and not isinstance(value, State):
        value = runtime.derive(value)
    if isinstance(value, State):
        cell = value

        def render() -> Element:
            setter(cell.val, cell._old)
            return element

        runtime.bind(render)
    else:
        setter(value, None)


def _tag(namespace: str | None, name: str, *args: Any) -> Element:
    if args and isinstance(args[0], dict):
        props, children = args[0], args[1:]
    else:
        props, children = {}, args
    element = Element(name, namespace)
    runtime = get_runtime()
    for key, value in props.items():
        _apply_prop(element, key, value, runtime)
    return add(element, *children)


class Tags:
    """Attribute access yields element factories: tags.div(props?, *children).

    Call with a namespace URI for namespaced elements:
        svg = tags("http://www.w3.org/2000/svg")
        svg.circle({"r": 4})
    """

    def __init__(self, namespace: str | None = None) -> None:
        self._namespace = namespace

    def __getattr__(self, name: str) -> Callable[..., Element]:
        if name.startswith("__"):
            raise AttributeError(name)
        return functools.partial(_tag, self._namespace, name)

    def __call__(self, namespace: str) -> Tags:
        return Tags(namespace)

    def __repr__(self) -> str:
        return f"Tags({self._namespace!r})"


tags = Tags()
