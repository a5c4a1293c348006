"""Document tree nodes and the rules for how they may be nested."""

from __future__ import annotations

import enum
from typing import IO, Any, Iterator, Optional

_TYPE_MASK = 0xC000
_TYPE_BLOCK = 0x8000
_TYPE_INLINE = 0xC000


class NodeType(enum.IntEnum):
    """Kinds of node; block and inline kinds are told apart by their high bits."""

    NONE = 0x0000

    DOCUMENT = _TYPE_BLOCK | 0x0001
    BLOCK_QUOTE = _TYPE_BLOCK | 0x0002
    LIST = _TYPE_BLOCK | 0x0003
    ITEM = _TYPE_BLOCK | 0x0004
    CODE_BLOCK = _TYPE_BLOCK | 0x0005
    HTML_BLOCK = _TYPE_BLOCK | 0x0006
    CUSTOM_BLOCK = _TYPE_BLOCK | 0x0007
    PARAGRAPH = _TYPE_BLOCK | 0x0008
    HEADING = _TYPE_BLOCK | 0x0009
    THEMATIC_BREAK = _TYPE_BLOCK | 0x000A
    FOOTNOTE_DEFINITION = _TYPE_BLOCK | 0x000B

    TEXT = _TYPE_INLINE | 0x0001
    SOFTBREAK = _TYPE_INLINE | 0x0002
    LINEBREAK = _TYPE_INLINE | 0x0003
    CODE = _TYPE_INLINE | 0x0004
    HTML_INLINE = _TYPE_INLINE | 0x0005
    CUSTOM_INLINE = _TYPE_INLINE | 0x0006
    EMPH = _TYPE_INLINE | 0x0007
    STRONG = _TYPE_INLINE | 0x0008
    LINK = _TYPE_INLINE | 0x0009
    IMAGE = _TYPE_INLINE | 0x000A
    FOOTNOTE_REFERENCE = _TYPE_INLINE | 0x000B

    @property
    def is_block(self) -> bool:
        return (self & _TYPE_MASK) == _TYPE_BLOCK

    @property
    def is_inline(self) -> bool:
        return (self & _TYPE_MASK) == _TYPE_INLINE


class ListType(enum.IntEnum):
    NO_LIST = 0
    BULLET = 1
    ORDERED = 2


class DelimType(enum.IntEnum):
    NO_DELIM = 0
    PERIOD = 1
    PAREN = 2


class Option(enum.IntFlag):
    """Parsing and rendering options."""

    DEFAULT = 0
    SOURCEPOS = 1 << 1
    HARDBREAKS = 1 << 2
    SAFE = 1 << 3
    NOBREAKS = 1 << 4
    NORMALIZE = 1 << 8
    VALIDATE_UTF8 = 1 << 9
    SMART = 1 << 10
    GITHUB_PRE_LANG = 1 << 11
    LIBERAL_HTML_TAG = 1 << 12
    FOOTNOTES = 1 << 13
    STRIKETHROUGH_DOUBLE_TILDE = 1 << 14
    TABLE_PREFER_STYLE_ATTRIBUTES = 1 << 15
    FULL_INFO_STRING = 1 << 16
    UNSAFE = 1 << 17


_TYPE_NAMES = {
    NodeType.NONE: "none",
    NodeType.DOCUMENT: "document",
    NodeType.BLOCK_QUOTE: "block_quote",
    NodeType.LIST: "list",
    NodeType.ITEM: "item",
    NodeType.CODE_BLOCK: "code_block",
    NodeType.HTML_BLOCK: "html_block",
    NodeType.CUSTOM_BLOCK: "custom_block",
    NodeType.PARAGRAPH: "paragraph",
    NodeType.HEADING: "heading",
    NodeType.THEMATIC_BREAK: "thematic_break",
    NodeType.TEXT: "text",
    NodeType.SOFTBREAK: "softbreak",
    NodeType.LINEBREAK: "linebreak",
    NodeType.CODE: "code",
    NodeType.HTML_INLINE: "html_inline",
    NodeType.CUSTOM_INLINE: "custom_inline",
    NodeType.EMPH: "emph",
    NodeType.STRONG: "strong",
    NodeType.LINK: "link",
    NodeType.IMAGE: "image",
}

_BLOCK_CONTAINERS = frozenset(
    {
        NodeType.DOCUMENT,
        NodeType.BLOCK_QUOTE,
        NodeType.FOOTNOTE_DEFINITION,
        NodeType.ITEM,
    }
)

_INLINE_CONTAINERS = frozenset(
    {
        NodeType.PARAGRAPH,
        NodeType.HEADING,
        NodeType.EMPH,
        NodeType.STRONG,
        NodeType.LINK,
        NodeType.IMAGE,
        NodeType.CUSTOM_INLINE,
    }
)


class Node:
    """A node of the document tree, linked to its parent, siblings and children."""

    def __init__(self, node_type: NodeType) -> None:
        self.type = NodeType(node_type)

        self.parent: Optional[Node] = None
        self.prev: Optional[Node] = None
        self.next: Optional[Node] = None
        self.first_child: Optional[Node] = None
        self.last_child: Optional[Node] = None

        self.content = ""
        self.user_data: Any = None
        self.extension: Any = None

        self.start_line = 0
        self.start_column = 0
        self.end_line = 0
        self.end_column = 0
        self.internal_offset = 0

        # Payload; which fields matter depends on the node type.
        self.literal = ""
        self.url = ""
        self.title = ""
        self.info = ""
        self.on_enter = ""
        self.on_exit = ""

        self.fenced = False
        self.fence_length = 0
        self.fence_offset = 0
        self.fence_char = ""

        self.level = 1 if self.type is NodeType.HEADING else 0
        self.setext = False

        self.list_type = ListType.BULLET if self.type is NodeType.LIST else ListType.NO_LIST
        self.list_start = 0
        self.tight = False
        self.delimiter = DelimType.NO_DELIM
        self.bullet_char = ""
        self.marker_offset = 0
        self.padding = 0

        self.html_block_type = 0

    def __repr__(self) -> str:
        return f"Node({self.type.name}, {self.start_line}:{self.start_column})"

    # -- containment ------------------------------------------------------

    def can_contain_type(self, child_type: NodeType) -> bool:
        """Whether a child of ``child_type`` may be placed under this node."""
        child_type = NodeType(child_type)
        if child_type is NodeType.DOCUMENT:
            return False
        if self.type in _BLOCK_CONTAINERS:
            return child_type.is_block and child_type is not NodeType.ITEM
        if self.type is NodeType.LIST:
            return child_type is NodeType.ITEM
        if self.type is NodeType.CUSTOM_BLOCK:
            return True
        if self.type in _INLINE_CONTAINERS:
            return child_type.is_inline
        return False

    def _can_contain(self, child: Node) -> bool:
        cur: Optional[Node] = self
        while cur is not None:
            if cur is child:
                return False
            cur = cur.parent
        return self.can_contain_type(child.type)

    def _check_can_contain(self, child: Node) -> None:
        if not self._can_contain(child):
            raise ValueError(
                f"a {self.type_string()} node cannot contain a {child.type_string()} node"
            )

    # -- type -------------------------------------------------------------

    def set_type(self, node_type: NodeType) -> None:
        """Change the node's type; the parent must accept the new type."""
        node_type = NodeType(node_type)
        if node_type is self.type:
            return
        initial = self.type
        self.type = node_type
        if self.parent is None or not self.parent._can_contain(self):
            self.type = initial
            raise ValueError(f"cannot change node type to {node_type.name} here")
        self.literal = ""
        self.url = ""
        self.title = ""
        self.info = ""
        self.on_enter = ""
        self.on_exit = ""

    def type_string(self) -> str:
        return _TYPE_NAMES.get(self.type, "<unknown>")

    # -- navigation -------------------------------------------------------

    def children(self) -> Iterator[Node]:
        """Yield the direct children in order."""
        child = self.first_child
        while child is not None:
            following = child.next
            yield child
            child = following

    # -- tree surgery -----------------------------------------------------

    def _detach(self) -> None:
        """Unlink from siblings and parent without clearing own pointers."""
        if self.prev is not None:
            self.prev.next = self.next
        if self.next is not None:
            self.next.prev = self.prev
        parent = self.parent
        if parent is not None:
            if parent.first_child is self:
                parent.first_child = self.next
            if parent.last_child is self:
                parent.last_child = self.prev

    def unlink(self) -> None:
        """Remove this node (with its children) from the tree."""
        self._detach()
        self.next = None
        self.prev = None
        self.parent = None

    def insert_before(self, sibling: Node) -> None:
        """Place ``sibling`` immediately before this node."""
        if self.parent is None:
            raise ValueError("cannot insert a sibling next to a detached node")
        self.parent._check_can_contain(sibling)
        sibling._detach()
        old_prev = self.prev
        if old_prev is not None:
            old_prev.next = sibling
        sibling.prev = old_prev
        sibling.next = self
        self.prev = sibling
        sibling.parent = self.parent
        if old_prev is None:
            self.parent.first_child = sibling

    def insert_after(self, sibling: Node) -> None:
        """Place ``sibling`` immediately after this node."""
        if self.parent is None:
            raise ValueError("cannot insert a sibling next to a detached node")
        self.parent._check_can_contain(sibling)
        sibling._detach()
        old_next = self.next
        if old_next is not None:
            old_next.prev = sibling
        sibling.next = old_next
        sibling.prev = self
        self.next = sibling
        sibling.parent = self.parent
        if old_next is None:
            self.parent.last_child = sibling

    def replace(self, new_node: Node) -> None:
        """Put ``new_node`` where this node is and unlink this node."""
        self.insert_before(new_node)
        self.unlink()

    def prepend_child(self, child: Node) -> None:
        self._check_can_contain(child)
        child._detach()
        old_first = self.first_child
        child.next = old_first
        child.prev = None
        child.parent = self
        self.first_child = child
        if old_first is not None:
            old_first.prev = child
        else:
            self.last_child = child

    def append_child(self, child: Node) -> None:
        self._check_can_contain(child)
        child._detach()
        old_last = self.last_child
        child.next = None
        child.prev = old_last
        child.parent = self
        self.last_child = child
        if old_last is not None:
            old_last.next = child
        else:
            self.first_child = child

    # -- validated setters ------------------------------------------------

    def set_heading_level(self, level: int) -> None:
        if level < 1 or level > 6:
            raise ValueError(f"heading level must be between 1 and 6, not {level}")
        if self.type is not NodeType.HEADING:
            raise TypeError(f"a {self.type_string()} node has no heading level")
        self.level = level

    def set_list_start(self, start: int) -> None:
        if start < 0:
            raise ValueError(f"list start must not be negative, not {start}")
        if self.type is not NodeType.LIST:
            raise TypeError(f"a {self.type_string()} node has no list start")
        self.list_start = start

    # -- consistency ------------------------------------------------------

    def _report(self, out: Optional[IO[str]], elem: str) -> None:
        if out is not None:
            out.write(
                f"Invalid '{elem}' in node type {self.type_string()} "
                f"at {self.start_line}:{self.start_column}\n"
            )

    def check(self, out: Optional[IO[str]]) -> int:
        """Repair broken links in the subtree, reporting each to ``out``.

        Returns the number of problems found.
        """
        errors = 0
        cur = self
        while True:
            first = cur.first_child
            if first is not None:
                if first.prev is not None:
                    first._report(out, "prev")
                    first.prev = None
                    errors += 1
                if first.parent is not cur:
                    first._report(out, "parent")
                    first.parent = cur
                    errors += 1
                cur = first
                continue

            while True:
                if cur is self:
                    return errors
                following = cur.next
                if following is not None:
                    if following.prev is not cur:
                        following._report(out, "prev")
                        following.prev = cur
                        errors += 1
                    if following.parent is not cur.parent:
                        following._report(out, "parent")
                        following.parent = cur.parent
                        errors += 1
                    cur = following
                    break
                parent = cur.parent
                if parent.last_child is not cur:
                    parent._report(out, "last_child")
                    parent.last_child = cur
                    errors += 1
                cur = parent