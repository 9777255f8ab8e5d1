"""In-memory UI tree — a small DOM-like node model.

The Runtime never touches nodes directly; it goes through a backend that
knows how to wrap primitives as text, test liveness, and swap nodes.
TreeBackend is that backend for the nodes defined here. A node counts as
attached when its parent chain ends at a Document.
"""

from __future__ import annotations

from typing import Any, Callable, Protocol


class Node:
    """Base of the tree: a parent link and the liveness capability."""

    def __init__(self) -> None:
        self.parent: Element | None = None

    @property
    def is_attached(self) -> bool:
        node = self.parent
        while node is not None:
            if isinstance(node, Document):
                return True
            node = node.parent
        return False

    def replace_with(self, new: Node) -> None:
        """Put new where self is. No-op if self has no parent."""
        parent = self.parent
        if parent is None or new is self:
            return
        new.remove()
        index = parent.children.index(self)
        parent.children[index] = new
        new.parent = parent
        self.parent = None

    def remove(self) -> None:
        if self.parent is not None:
            self.parent.children.remove(self)
            self.parent = None

    @property
    def text_content(self) -> str:
        return ""


class Text(Node):
    def __init__(self, data: str) -> None:
        super().__init__()
        self.data = data

    @property
    def text_content(self) -> str:
        return self.data

    def __repr__(self) -> str:
        return f"Text({self.data!r})"


class Element(Node):
    """An element with attributes, event handlers and ordered children."""

    def __init__(self, tag: str, namespace: str | None = None) -> None:
        super().__init__()
        self.tag = tag
        self.namespace = namespace
        self.attributes: dict[str, Any] = {}
        self.handlers: dict[str, list[Callable]] = {}
        self.children: list[Node] = []

    def append(self, *nodes: Node | str) -> Element:
        for node in nodes:
            if isinstance(node, str):
                node = Text(node)
            if not isinstance(node, Node):
                raise TypeError(f"cannot append {type(node).__name__} to {self.tag}")
            node.remove()
            node.parent = self
            self.children.append(node)
        return self

    def set_attribute(self, name: str, value: Any) -> None:
        self.attributes[name] = value

    def get_attribute(self, name: str) -> Any:
        return self.attributes.get(name)

    def add_event_listener(self, event: str, handler: Callable) -> None:
        self.handlers.setdefault(event, []).append(handler)

    def remove_event_listener(self, event: str, handler: Callable | None) -> None:
        handlers = self.handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def dispatch(self, event: str, payload: Any = None) -> None:
        for handler in list(self.handlers.get(event, [])):
            handler(payload)

    @property
    def text_content(self) -> str:
        return "".join(c.text_content for c in self.children)

    def __repr__(self) -> str:
        return f"Element({self.tag!r}, children={len(self.children)})"


class Document(Element):
    """Root of a live tree. Everything under it is attached."""

    def __init__(self) -> None:
        super().__init__("#document")

    @property
    def is_attached(self) -> bool:
        return True


class Backend(Protocol):
    """What the Runtime needs from a UI tree."""

    def is_node(self, value: Any) -> bool: ...

    def text(self, value: Any) -> Any: ...

    def is_attached(self, node: Any) -> bool: ...

    def replace_with(self, old: Any, new: Any) -> None: ...

    def remove(self, old: Any) -> None: ...


class TreeBackend:
    """Backend for the in-memory tree."""

    def is_node(self, value: Any) -> bool:
        return isinstance(value, Node)

    def text(self, value: Any) -> Text:
        return Text(str(value))

    def is_attached(self, node: Any) -> bool:
        return node.is_attached

    def replace_with(self, old: Node, new: Node) -> None:
        old.replace_with(new)

    def remove(self, old: Node) -> None:
        old.remove()
