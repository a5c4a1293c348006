"""Delimiter runs, brackets and the resolution of emphasis and smart quotes."""

from __future__ import annotations

import string
import unicodedata
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from gfmdown.node import Node, NodeType
from gfmdown.subject import Subject

EMDASH = "\u2014"
ENDASH = "\u2013"
ELLIPSES = "\u2026"
LEFTDOUBLEQUOTE = "\u201c"
RIGHTDOUBLEQUOTE = "\u201d"
LEFTSINGLEQUOTE = "\u2018"
RIGHTSINGLEQUOTE = "\u2019"

_QUOTES = ("'", '"')
_EMPHASIS_CHARS = ("*", "_")
_ASCII_PUNCT = frozenset(string.punctuation)
_UNICODE_SPACES = frozenset(
    chr(code)
    for code in (9, 10, 12, 13, 32, 160, 5760, 8239, 8287, 12288, *range(8192, 8203))
)


def _is_space(char: str) -> bool:
    return char in _UNICODE_SPACES


def _is_punctuation(char: str) -> bool:
    if char in _ASCII_PUNCT:
        return True
    return ord(char) > 127 and unicodedata.category(char).startswith("P")


@dataclass(eq=False)
class Delimiter:
    """An entry of the delimiter stack: a run of ``*``, ``_`` or a quote."""

    delim_char: str
    can_open: bool
    can_close: bool
    inl_text: Node
    length: int
    previous: Optional[Delimiter] = None
    next: Optional[Delimiter] = None


@dataclass(eq=False)
class Bracket:
    """An entry of the bracket stack: a ``[`` or ``![`` that may open a link."""

    inl_text: Node
    position: int
    image: bool
    previous: Optional[Bracket] = None
    previous_delimiter: Optional[Delimiter] = None
    active: bool = True
    bracket_after: bool = False


def scan_delims(subject: Subject, char: str) -> Tuple[int, bool, bool]:
    """Consume a delimiter run at the current position.

    Returns the number of delimiters and whether the run can open and close.
    Quotes are always taken one at a time.
    """
    text = subject.text
    before = text[subject.pos - 1] if subject.pos > 0 else "\n"

    if char in _QUOTES:
        numdelims = 1
        subject.pos += 1
    else:
        numdelims = 0
        while subject.peek() == char:
            numdelims += 1
            subject.pos += 1

    after = text[subject.pos] if subject.pos < len(text) else "\n"

    left_flanking = (
        numdelims > 0
        and not _is_space(after)
        and (not _is_punctuation(after) or _is_space(before) or _is_punctuation(before))
    )
    right_flanking = (
        numdelims > 0
        and not _is_space(before)
        and (not _is_punctuation(before) or _is_space(after) or _is_punctuation(after))
    )

    if char == "_":
        can_open = left_flanking and (not right_flanking or _is_punctuation(before))
        can_close = right_flanking and (not left_flanking or _is_punctuation(after))
    elif char in _QUOTES:
        can_open = left_flanking and not right_flanking and before not in ("]", ")")
        can_close = right_flanking
    else:
        can_open = left_flanking
        can_close = right_flanking
    return numdelims, can_open, can_close


def _push_delimiter(
    subject: Subject, char: str, can_open: bool, can_close: bool, node: Node
) -> Delimiter:
    delim = Delimiter(
        delim_char=char,
        can_open=can_open,
        can_close=can_close,
        inl_text=node,
        length=len(node.literal),
        previous=subject.last_delim,
    )
    if delim.previous is not None:
        delim.previous.next = delim
    subject.last_delim = delim
    return delim


def _remove_delimiter(subject: Subject, delim: Optional[Delimiter]) -> None:
    if delim is None:
        return
    if delim.next is None:
        subject.last_delim = delim.previous
    else:
        delim.next.previous = delim.previous
    if delim.previous is not None:
        delim.previous.next = delim.next


def _pop_bracket(subject: Subject) -> None:
    if subject.last_bracket is not None:
        subject.last_bracket = subject.last_bracket.previous


def push_bracket(subject: Subject, image: bool, node: Node) -> Bracket:
    """Push a ``[`` (or ``![`` when ``image``) whose text node is ``node``."""
    if subject.last_bracket is not None:
        subject.last_bracket.bracket_after = True
    bracket = Bracket(
        inl_text=node,
        position=subject.pos,
        image=image,
        previous=subject.last_bracket,
        previous_delimiter=subject.last_delim,
    )
    subject.last_bracket = bracket
    return bracket


def handle_delim(subject: Subject, char: str, smart: bool) -> Node:
    """Parse a run of ``char`` into a text node, stacking it if it may pair up."""
    numdelims, can_open, can_close = scan_delims(subject, char)

    if char == "'" and smart:
        contents = RIGHTSINGLEQUOTE
    elif char == '"' and smart:
        contents = RIGHTDOUBLEQUOTE if can_close else LEFTDOUBLEQUOTE
    else:
        contents = subject.text[subject.pos - numdelims:subject.pos]

    node = subject.make_text(subject.pos - numdelims, subject.pos - 1, contents)

    if (can_open or can_close) and (char not in _QUOTES or smart):
        _push_delimiter(subject, char, can_open, can_close, node)
    return node


def handle_hyphen(subject: Subject, smart: bool) -> Node:
    """Parse hyphens; with ``smart`` a run of two or more becomes dashes."""
    start = subject.pos
    subject.pos += 1

    if not smart or subject.peek() != "-":
        return subject.make_text(subject.pos - 1, subject.pos - 1, "-")

    while subject.peek() == "-":
        subject.pos += 1

    count = subject.pos - start
    if count % 3 == 0:
        em_count, en_count = count // 3, 0
    elif count % 2 == 0:
        em_count, en_count = 0, count // 2
    elif count % 3 == 2:
        em_count, en_count = (count - 2) // 3, 1
    else:
        em_count, en_count = (count - 4) // 3, 2

    return subject.make_text(
        start, subject.pos - 1, EMDASH * em_count + ENDASH * en_count
    )


def handle_period(subject: Subject, smart: bool) -> Node:
    """Parse a period; with ``smart`` three of them become an ellipsis."""
    subject.pos += 1
    if smart and subject.peek() == ".":
        subject.pos += 1
        if subject.peek() == ".":
            subject.pos += 1
            return subject.make_text(subject.pos - 3, subject.pos - 1, ELLIPSES)
        return subject.make_text(subject.pos - 2, subject.pos - 1, "..")
    return subject.make_text(subject.pos - 1, subject.pos - 1, ".")


def _insert_emph(
    subject: Subject, opener: Delimiter, closer: Delimiter
) -> Optional[Delimiter]:
    opener_inl = opener.inl_text
    closer_inl = closer.inl_text
    opener_chars = len(opener_inl.literal)
    closer_chars = len(closer_inl.literal)

    use_delims = 2 if closer_chars >= 2 and opener_chars >= 2 else 1
    opener_chars -= use_delims
    closer_chars -= use_delims
    opener_inl.literal = opener_inl.literal[:opener_chars]
    closer_inl.literal = closer_inl.literal[:closer_chars]

    delim = closer.previous
    while delim is not None and delim is not opener:
        earlier = delim.previous
        _remove_delimiter(subject, delim)
        delim = earlier

    emph = Node(NodeType.EMPH if use_delims == 1 else NodeType.STRONG)
    node = opener_inl.next
    while node is not None and node is not closer_inl:
        following = node.next
        emph.append_child(node)
        node = following
    opener_inl.insert_after(emph)

    emph.start_line = opener_inl.start_line
    emph.end_line = closer_inl.end_line
    emph.start_column = opener_inl.start_column
    emph.end_column = closer_inl.end_column

    if opener_chars == 0:
        opener_inl.unlink()
        _remove_delimiter(subject, opener)

    result: Optional[Delimiter] = closer
    if closer_chars == 0:
        closer_inl.unlink()
        result = closer.next
        _remove_delimiter(subject, closer)
    return result


def process_emphasis(subject: Subject, stack_bottom: Optional[Delimiter]) -> None:
    """Pair up the delimiters above ``stack_bottom`` and clear them off the stack."""
    openers_bottom: Dict[Tuple[int, str], Optional[Delimiter]] = {
        (mod, char): stack_bottom
        for mod in range(3)
        for char in ("*", "_", "'", '"')
    }

    closer = subject.last_delim
    while closer is not None and closer.previous is not stack_bottom:
        closer = closer.previous

    while closer is not None:
        if not closer.can_close:
            closer = closer.next
            continue

        key = (closer.length % 3, closer.delim_char)
        bottom = openers_bottom.get(key)
        opener = closer.previous
        opener_found = False
        while opener is not None and opener is not stack_bottom and opener is not bottom:
            if opener.can_open and opener.delim_char == closer.delim_char:
                if (
                    not (closer.can_open or opener.can_close)
                    or closer.length % 3 == 0
                    or (opener.length + closer.length) % 3 != 0
                ):
                    opener_found = True
                    break
            opener = opener.previous

        old_closer = closer
        if closer.delim_char in _EMPHASIS_CHARS:
            if opener_found:
                assert opener is not None
                closer = _insert_emph(subject, opener, closer)
            else:
                closer = closer.next
        elif closer.delim_char == "'":
            closer.inl_text.literal = RIGHTSINGLEQUOTE
            if opener_found:
                assert opener is not None
                opener.inl_text.literal = LEFTSINGLEQUOTE
            closer = closer.next
        elif closer.delim_char == '"':
            closer.inl_text.literal = RIGHTDOUBLEQUOTE
            if opener_found:
                assert opener is not None
                opener.inl_text.literal = LEFTDOUBLEQUOTE
            closer = closer.next
        else:
            closer = closer.next

        if not opener_found:
            openers_bottom[(old_closer.length % 3, old_closer.delim_char)] = (
                old_closer.previous
            )
            if not old_closer.can_open:
                _remove_delimiter(subject, old_closer)

    while subject.last_delim is not None and subject.last_delim is not stack_bottom:
        _remove_delimiter(subject, subject.last_delim)