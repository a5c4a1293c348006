"""Depth-first traversal of a document tree with enter and exit events."""

from __future__ import annotations

import enum
from typing import Iterator, Optional, Tuple

from gfmdown.node import Node, NodeType

_LEAF_TYPES = frozenset(
    {
        NodeType.HTML_BLOCK,
        NodeType.THEMATIC_BREAK,
        NodeType.CODE_BLOCK,
        NodeType.TEXT,
        NodeType.SOFTBREAK,
        NodeType.LINEBREAK,
        NodeType.CODE,
        NodeType.HTML_INLINE,
    }
)


class EventType(enum.IntEnum):
    NONE = 0
    DONE = 1
    ENTER = 2
    EXIT = 3


def _is_leaf(node: Node) -> bool:
    return node.type in _LEAF_TYPES


class NodeIterator:
    """Walk a subtree, yielding ``(event, node)`` pairs.

    Container nodes are reported twice, on entry and on exit; leaf nodes
    are reported once, on entry. The walk never leaves ``root``.
    """

    def __init__(self, root: Node) -> None:
        if root is None:
            raise ValueError("cannot iterate over a missing root node")
        self.root = root
        self.event_type = EventType.NONE
        self.node: Optional[Node] = None
        self._next_event = EventType.ENTER
        self._next_node: Optional[Node] = root

    def __iter__(self) -> NodeIterator:
        return self

    def _advance(self) -> EventType:
        event = self._next_event
        node = self._next_node
        self.event_type = event
        self.node = node

        if event is EventType.DONE:
            return event

        assert node is not None
        if event is EventType.ENTER and not _is_leaf(node):
            if node.first_child is None:
                self._next_event = EventType.EXIT
            else:
                self._next_event = EventType.ENTER
                self._next_node = node.first_child
        elif node is self.root:
            self._next_event = EventType.DONE
            self._next_node = None
        elif node.next is not None:
            self._next_event = EventType.ENTER
            self._next_node = node.next
        elif node.parent is not None:
            self._next_event = EventType.EXIT
            self._next_node = node.parent
        else:
            self._next_event = EventType.DONE
            self._next_node = None
        return event

    def __next__(self) -> Tuple[EventType, Node]:
        event = self._advance()
        if event is EventType.DONE:
            raise StopIteration
        assert self.node is not None
        return event, self.node

    def reset(self, node: Node, event_type: EventType) -> None:
        """Make ``(event_type, node)`` the current position of the walk."""
        self._next_event = EventType(event_type)
        self._next_node = node
        self._advance()


def walk(root: Node) -> Iterator[Tuple[EventType, Node]]:
    """Yield every ``(event, node)`` pair of a depth-first walk of ``root``."""
    yield from NodeIterator(root)


def consolidate_text_nodes(root: Optional[Node]) -> None:
    """Merge runs of adjacent text nodes into the first node of each run."""
    if root is None:
        return
    iterator = NodeIterator(root)
    for event, cur in iterator:
        if event is not EventType.ENTER or cur.type is not NodeType.TEXT:
            continue
        following = cur.next
        if following is None or following.type is not NodeType.TEXT:
            continue
        parts = [cur.literal]
        while following is not None and following.type is NodeType.TEXT:
            next(iterator)
            parts.append(following.literal)
            cur.end_column = following.end_column
            after = following.next
            following.unlink()
            following = after
        cur.literal = "".join(parts)