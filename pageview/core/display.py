"""
Retained display tree that the viewer renders into.

The viewer never touches widgets directly. It creates, updates and removes
nodes here; a UI layer listens for changes and repaints.
"""

import itertools
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional


@dataclass(eq=False)
class DisplayNode:
    """A node in the display tree."""

    node_id: int
    kind: str
    parent: Optional["DisplayNode"] = None
    children: List["DisplayNode"] = field(default_factory=list)
    style: Dict[str, object] = field(default_factory=dict)
    data: Dict[str, object] = field(default_factory=dict)
    attached: bool = True

    @property
    def visible(self) -> bool:
        return self.style.get("display", "block") != "none"

    def walk(self, kind: Optional[str] = None) -> Iterator["DisplayNode"]:
        """Yield this node's descendants depth-first, optionally by kind."""
        for child in self.children:
            if kind is None or child.kind == kind:
                yield child
            yield from child.walk(kind)

    def __repr__(self) -> str:
        return f"DisplayNode(id={self.node_id}, kind={self.kind!r})"


# (node, change) where change is "create", "update" or "remove"
ChangeListener = Callable[[DisplayNode, str], None]


class DisplayTree(ABC):
    """Interface for whatever UI layer displays the viewer."""

    @abstractmethod
    def create_node(
        self,
        kind: str,
        parent: Optional[DisplayNode] = None,
        style: Optional[dict] = None,
        data: Optional[dict] = None,
    ) -> DisplayNode:
        ...

    @abstractmethod
    def update_node(
        self, node: DisplayNode, style: Optional[dict] = None, data: Optional[dict] = None
    ) -> None:
        ...

    @abstractmethod
    def remove_node(self, node: DisplayNode) -> None:
        ...

    def set_style(self, node: DisplayNode, **style) -> None:
        self.update_node(node, style=style)


class SceneTree(DisplayTree):
    """In-memory display tree with change notification."""

    def __init__(self):
        self.root = DisplayNode(node_id=0, kind="root")
        self._ids = itertools.count(1)
        self._listeners: List[ChangeListener] = []

    def add_listener(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, node: DisplayNode, change: str) -> None:
        for listener in list(self._listeners):
            listener(node, change)

    def create_node(self, kind, parent=None, style=None, data=None) -> DisplayNode:
        parent = parent or self.root
        node = DisplayNode(
            node_id=next(self._ids),
            kind=kind,
            parent=parent,
            style=dict(style or {}),
            data=dict(data or {}),
        )
        parent.children.append(node)
        self._notify(node, "create")
        return node

    def update_node(self, node, style=None, data=None) -> None:
        if style:
            node.style.update(style)
        if data:
            node.data.update(data)
        self._notify(node, "update")

    def remove_node(self, node) -> None:
        if not node.attached:
            return
        if node.parent is not None and node in node.parent.children:
            node.parent.children.remove(node)
        node.attached = False
        for child in list(node.walk()):
            child.attached = False
        self._notify(node, "remove")

    def clear(self) -> None:
        """Remove every node below the root."""
        for child in list(self.root.children):
            self.remove_node(child)

    def find(self, kind: str) -> List[DisplayNode]:
        return list(self.root.walk(kind))
