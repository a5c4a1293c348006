"""The cursor over inline text that the inline parser works through."""

from __future__ import annotations

import string
from typing import Callable, List, Optional

from gfmdown.escaping import unescape_entity
from gfmdown.node import Node, NodeType, Option
from gfmdown.refmap import ReferenceMap

MAX_BACKTICKS = 80

_ASCII_PUNCT = frozenset(string.punctuation)


def _is_ascii_punct(char: str) -> bool:
    return char in _ASCII_PUNCT


def normalize_code(text: str) -> str:
    """Turn line endings into spaces and strip one space from each end.

    The outer spaces are kept if the span holds nothing but spaces.
    """
    out: List[str] = []
    size = len(text)
    for index, char in enumerate(text):
        if char == "\r":
            if index + 1 >= size or text[index + 1] != "\n":
                out.append(" ")
        elif char == "\n":
            out.append(" ")
        else:
            out.append(char)
    result = "".join(out)
    contains_nonspace = any(char != " " for char in result)
    if contains_nonspace and result.startswith(" ") and result.endswith(" "):
        return result[1:-1]
    return result


class Subject:
    """Inline text with a read position and the state of an inline parse."""

    def __init__(
        self,
        text: str,
        line: int = 1,
        block_offset: int = 0,
        refmap: Optional[ReferenceMap] = None,
    ) -> None:
        self.text = text
        self.line = line
        self.pos = 0
        self.block_offset = block_offset
        self.column_offset = 0
        self.refmap = refmap
        self.last_delim = None
        self.last_bracket = None
        self.backslash_ispunct: Callable[[str], bool] = _is_ascii_punct
        self._backticks = [0] * (MAX_BACKTICKS + 1)
        self._scanned_for_backticks = False

    # -- reading ----------------------------------------------------------

    def peek(self, n: int = 0) -> str:
        """The character ``n`` places ahead, or "" past the end."""
        index = self.pos + n
        if 0 <= index < len(self.text):
            return self.text[index]
        return ""

    def is_eof(self) -> bool:
        return self.pos >= len(self.text)

    def skip_spaces(self) -> bool:
        """Skip spaces and tabs; report whether any were skipped."""
        skipped = False
        while self.peek() in (" ", "\t") and self.peek():
            self.pos += 1
            skipped = True
        return skipped

    def skip_line_end(self) -> bool:
        """Skip one line ending; true if one was skipped or the end is reached."""
        seen = False
        if self.peek() == "\r":
            self.pos += 1
            seen = True
        if self.peek() == "\n":
            self.pos += 1
            seen = True
        return seen or self.is_eof()

    def take_while(self, predicate: Callable[[str], bool]) -> str:
        """Consume and return characters for as long as ``predicate`` holds."""
        start = self.pos
        while True:
            char = self.peek()
            if not char or not predicate(char):
                break
            self.pos += 1
        return self.text[start:self.pos]

    # -- node construction ------------------------------------------------

    def _make_literal(
        self, node_type: NodeType, start_column: int, end_column: int, literal: str
    ) -> Node:
        node = Node(node_type)
        node.literal = literal
        node.start_line = node.end_line = self.line
        offset = 1 + self.column_offset + self.block_offset
        node.start_column = start_column + offset
        node.end_column = end_column + offset
        return node

    def make_text(self, start_column: int, end_column: int, literal: str) -> Node:
        """A text node spanning the given zero-based positions of this line."""
        return self._make_literal(NodeType.TEXT, start_column, end_column, literal)

    def _adjust_node_newlines(
        self, node: Node, matchlen: int, extra: int, options: Option
    ) -> None:
        if not options & Option.SOURCEPOS:
            return
        start = self.pos - matchlen - extra
        span = self.text[start:start + matchlen]
        newlines = span.count("\n")
        if not newlines:
            return
        since_newline = len(span) - span.rfind("\n") - 1
        self.line += newlines
        node.end_line += newlines
        node.end_column = since_newline
        self.column_offset = -self.pos + since_newline + extra

    # -- handlers ---------------------------------------------------------

    def _scan_to_closing_backticks(self, open_length: int) -> int:
        if open_length > MAX_BACKTICKS:
            return 0
        if self._scanned_for_backticks and self._backticks[open_length] <= self.pos:
            return 0
        while True:
            while self.peek() and self.peek() != "`":
                self.pos += 1
            if self.is_eof():
                break
            numticks = 0
            while self.peek() == "`":
                self.pos += 1
                numticks += 1
            if numticks <= MAX_BACKTICKS:
                self._backticks[numticks] = self.pos - numticks
            if numticks == open_length:
                return self.pos
        self._scanned_for_backticks = True
        return 0

    def handle_backticks(self, options: Option = Option.DEFAULT) -> Node:
        """Parse a code span, or the run of backticks as text if it is unclosed."""
        openticks = self.take_while(lambda char: char == "`")
        start = self.pos
        end = self._scan_to_closing_backticks(len(openticks))
        if end == 0:
            self.pos = start
            return self.make_text(self.pos, self.pos, openticks)
        code = normalize_code(self.text[start:end - len(openticks)])
        node = self._make_literal(
            NodeType.CODE, start, end - len(openticks) - 1, code
        )
        self._adjust_node_newlines(node, end - start, len(openticks), Option(options))
        return node

    def handle_backslash(self) -> Node:
        """Parse a backslash escape, a hard line break, or a lone backslash."""
        self.pos += 1
        nextchar = self.peek()
        if nextchar and self.backslash_ispunct(nextchar):
            self.pos += 1
            return self.make_text(self.pos - 2, self.pos - 1, self.text[self.pos - 1])
        if not self.is_eof() and self.skip_line_end():
            return Node(NodeType.LINEBREAK)
        return self.make_text(self.pos - 1, self.pos - 1, "\\")

    def handle_entity(self) -> Node:
        """Parse an entity reference, or a plain ``&``."""
        self.pos += 1
        decoded, length = unescape_entity(self.text[self.pos:])
        if length == 0:
            return self.make_text(self.pos - 1, self.pos - 1, "&")
        self.pos += length
        return self.make_text(self.pos - 1 - length, self.pos - 1, decoded)

    def handle_newline(self) -> Node:
        """Parse a line ending into a hard or soft break."""
        nlpos = self.pos
        if self.peek() == "\r":
            self.pos += 1
        if self.peek() == "\n":
            self.pos += 1
        self.line += 1
        self.column_offset = -self.pos
        self.skip_spaces()
        if nlpos > 1 and self.text[nlpos - 1] == " " and self.text[nlpos - 2] == " ":
            return Node(NodeType.LINEBREAK)
        return Node(NodeType.SOFTBREAK)