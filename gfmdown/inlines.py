"""Inline parsing: links, images, autolinks, raw HTML and reference definitions."""

from __future__ import annotations

import re
import string
from typing import Optional, Tuple

from gfmdown.emphasis import (
    handle_delim,
    handle_hyphen,
    handle_period,
    process_emphasis,
    push_bracket,
)
from gfmdown.escaping import unescape_html
from gfmdown.node import Node, NodeType, Option
from gfmdown.refmap import MAX_LINK_LABEL_LENGTH, ReferenceMap
from gfmdown.subject import Subject

_SPACES = " \t\n\v\f\r"
_ASCII_PUNCT = frozenset(string.punctuation)
_PUNCT_CLASS = re.escape(string.punctuation)

_BACKSLASH_ESCAPE = re.compile(rf"\\([{_PUNCT_CLASS}])")
_SPACECHARS = re.compile(r"[ \t\n\v\f\r]*")

_LINK_TITLE = re.compile(
    r'"(?:\\[\s\S]|[^"\\\x00])*\\?"'
    r"|'(?:\\[\s\S]|[^'\\\x00])*\\?'"
    r"|\((?:\\[\s\S]|[^()\\\x00])*\\?\)"
)

_AUTOLINK_URI = re.compile(r"[A-Za-z][A-Za-z0-9.+-]{1,31}:[^\x00-\x20<>]*>")
_AUTOLINK_EMAIL = re.compile(
    r"[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@"
    r"[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*>"
)

_SP = r"[ \t\n\v\f\r]"
_ATTRIBUTE = (
    rf"{_SP}+[a-zA-Z_:][a-zA-Z0-9_.:-]*"
    rf"(?:{_SP}*={_SP}*(?:[^\"'=<>`\x00-\x20]+|'[^'\x00]*'|\"[^\"\x00]*\"))?"
)
_HTML_TAG = re.compile(
    rf"[A-Za-z][A-Za-z0-9-]*(?:{_ATTRIBUTE})*{_SP}*/?>"
    rf"|/[A-Za-z][A-Za-z0-9-]*{_SP}*>"
    r"|!---->|!--(?:-?[^\x00>-])(?:-?[^\x00-])*-->"
    r"|\?[^\x00]*?\?>"
    rf"|![A-Z]+{_SP}+[^>\x00]*>"
    r"|!\[CDATA\[[^\x00]*?\]\]>"
)
_LIBERAL_HTML_TAG = re.compile(r"[^>\x00]*>")

_SPECIAL_CHARS = re.compile(r"[\r\n\\`&_*\[\]<!]")
_SMART_SPECIAL_CHARS = re.compile(r"[\r\n\\`&_*\[\]<!\"'.-]")

_MAX_NESTED_PARENS = 32


def _is_punct(char: str) -> bool:
    return char in _ASCII_PUNCT


def _unescape_backslashes(text: str) -> str:
    return _BACKSLASH_ESCAPE.sub(r"\1", text)


def _scan_spacechars(text: str, pos: int) -> int:
    match = _SPACECHARS.match(text, pos)
    return match.end() - pos if match else 0


def _scan(pattern: re.Pattern, text: str, pos: int) -> int:
    match = pattern.match(text, pos)
    return match.end() - pos if match else 0


def _char_at(text: str, pos: int) -> str:
    return text[pos] if 0 <= pos < len(text) else ""


def clean_url(url: str) -> str:
    """Trim a link destination, decode entities and drop backslash escapes."""
    url = url.strip(_SPACES)
    if not url:
        return ""
    return _unescape_backslashes(unescape_html(url))


def clean_title(title: str) -> str:
    """Strip a title's delimiters, decode entities and drop backslash escapes."""
    if not title:
        return ""
    first, last = title[0], title[-1]
    if (first, last) in (("'", "'"), ("(", ")"), ('"', '"')):
        title = title[1:-1]
    return _unescape_backslashes(unescape_html(title))


def _clean_autolink(url: str, is_email: bool) -> str:
    url = url.strip(_SPACES)
    if not url:
        return ""
    return ("mailto:" if is_email else "") + unescape_html(url)


def _make_autolink(
    subject: Subject, start_column: int, end_column: int, url: str, is_email: bool
) -> Node:
    link = Node(NodeType.LINK)
    link.url = _clean_autolink(url, is_email)
    link.title = ""
    link.start_line = link.end_line = subject.line
    link.start_column = start_column + 1
    link.end_column = end_column + 1
    trimmed = url.strip(_SPACES)
    link.append_child(
        subject.make_text(start_column + 1, end_column - 1, unescape_html(trimmed))
    )
    return link


def _make_raw_html(
    subject: Subject, matchlen: int, options: Option
) -> Node:
    contents = subject.text[subject.pos - 1:subject.pos + matchlen]
    subject.pos += matchlen
    node = subject.make_text(subject.pos - matchlen - 1, subject.pos - 1, contents)
    node.type = NodeType.HTML_INLINE
    subject._adjust_node_newlines(node, matchlen, 1, options)
    return node


def _handle_pointy_brace(subject: Subject, options: Option) -> Node:
    subject.pos += 1
    text = subject.text

    for pattern, is_email in ((_AUTOLINK_URI, False), (_AUTOLINK_EMAIL, True)):
        matchlen = _scan(pattern, text, subject.pos)
        if matchlen > 0:
            contents = text[subject.pos:subject.pos + matchlen - 1]
            subject.pos += matchlen
            return _make_autolink(
                subject, subject.pos - 1 - matchlen, subject.pos - 1, contents, is_email
            )

    matchlen = _scan(_HTML_TAG, text, subject.pos)
    if matchlen > 0:
        return _make_raw_html(subject, matchlen, options)

    if options & Option.LIBERAL_HTML_TAG:
        matchlen = _scan(_LIBERAL_HTML_TAG, text, subject.pos)
        if matchlen > 0:
            return _make_raw_html(subject, matchlen, options)

    return subject.make_text(subject.pos - 1, subject.pos - 1, "<")


def _link_label(subject: Subject) -> Optional[str]:
    """Parse ``[label]`` at the current position; rewind and return None if absent."""
    start = subject.pos
    if subject.peek() != "[":
        return None
    subject.pos += 1
    length = 0
    while True:
        char = subject.peek()
        if not char or char in "[]":
            break
        subject.pos += 1
        length += len(char.encode("utf-8"))
        if char == "\\" and _is_punct(subject.peek()):
            length += 1
            subject.pos += 1
        if length > MAX_LINK_LABEL_LENGTH:
            subject.pos = start
            return None
    if char == "]":
        label = subject.text[start + 1:subject.pos].strip(_SPACES)
        subject.pos += 1
        return label
    subject.pos = start
    return None


def _scan_bare_url(text: str, offset: int) -> Optional[Tuple[int, str]]:
    size = len(text)
    i = offset
    depth = 0
    while i < size:
        char = text[i]
        if char == "\\" and i + 1 < size and _is_punct(text[i + 1]):
            i += 2
        elif char == "(":
            depth += 1
            i += 1
            if depth > _MAX_NESTED_PARENS:
                return None
        elif char == ")":
            if depth == 0:
                break
            depth -= 1
            i += 1
        elif char in _SPACES:
            if i == offset:
                return None
            break
        else:
            i += 1
    if i >= size:
        return None
    return i - offset, text[offset:i]


def _scan_link_url(text: str, offset: int) -> Optional[Tuple[int, str]]:
    """Scan a link destination; return its length and its text, or None."""
    size = len(text)
    i = offset
    if i < size and text[i] == "<":
        i += 1
        while i < size:
            char = text[i]
            if char == ">":
                i += 1
                break
            if char == "\\":
                i += 2
            elif char in "\n<":
                return None
            else:
                i += 1
    else:
        return _scan_bare_url(text, offset)
    if i >= size:
        return None
    return i - offset, text[offset + 1:i - 1]


def _try_inline_link(subject: Subject) -> Optional[Tuple[str, str]]:
    """Parse ``(url "title")`` after a closing bracket, moving past it on success."""
    text = subject.text
    if subject.peek() != "(":
        return None
    spaces = _scan_spacechars(text, subject.pos + 1)
    scanned = _scan_link_url(text, subject.pos + 1 + spaces)
    if scanned is None:
        return None
    length, url_chunk = scanned
    endurl = subject.pos + 1 + spaces + length
    starttitle = endurl + _scan_spacechars(text, endurl)
    if starttitle == endurl:
        endtitle = starttitle
    else:
        endtitle = starttitle + _scan(_LINK_TITLE, text, starttitle)
    endall = endtitle + _scan_spacechars(text, endtitle)
    if _char_at(text, endall) != ")":
        return None
    subject.pos = endall + 1
    return clean_url(url_chunk), clean_title(text[starttitle:endtitle])


def _try_footnote(subject: Subject, opener, options: Option) -> bool:
    first = opener.inl_text.next
    if not (
        options & Option.FOOTNOTES
        and first is not None
        and first.type is NodeType.TEXT
        and first.next is None
    ):
        return False
    literal = first.literal
    if len(literal) <= 1 or literal[0] != "^":
        return False
    ref = Node(NodeType.FOOTNOTE_REFERENCE)
    ref.literal = literal[1:]
    ref.start_line = ref.end_line = subject.line
    ref.start_column = opener.inl_text.start_column
    ref.end_column = subject.pos + subject.column_offset + subject.block_offset
    opener.inl_text.insert_before(ref)
    first.unlink()
    opener.inl_text.unlink()
    process_emphasis(subject, opener.previous_delimiter)
    subject.last_bracket = opener.previous
    return True


def _handle_close_bracket(subject: Subject, options: Option) -> Optional[Node]:
    subject.pos += 1
    initial_pos = subject.pos
    opener = subject.last_bracket

    if opener is None:
        return subject.make_text(subject.pos - 1, subject.pos - 1, "]")
    if not opener.active:
        subject.last_bracket = opener.previous
        return subject.make_text(subject.pos - 1, subject.pos - 1, "]")

    is_image = opener.image
    target = _try_inline_link(subject)
    if target is None:
        subject.pos = initial_pos
        raw_label = _link_label(subject)
        if raw_label is None:
            subject.pos = initial_pos
        if not raw_label and not opener.bracket_after:
            raw_label = subject.text[opener.position:initial_pos - 1]
        ref = None
        if raw_label is not None and subject.refmap is not None:
            ref = subject.refmap.lookup(raw_label)
        if ref is not None:
            target = ref.url, ref.title

    if target is None:
        if _try_footnote(subject, opener, options):
            return None
        subject.last_bracket = opener.previous
        subject.pos = initial_pos
        return subject.make_text(subject.pos - 1, subject.pos - 1, "]")

    link = Node(NodeType.IMAGE if is_image else NodeType.LINK)
    link.url, link.title = target
    link.start_line = link.end_line = subject.line
    link.start_column = opener.inl_text.start_column
    link.end_column = subject.pos + subject.column_offset + subject.block_offset
    opener.inl_text.insert_before(link)
    node = opener.inl_text.next
    while node is not None:
        following = node.next
        link.append_child(node)
        node = following
    opener.inl_text.unlink()

    process_emphasis(subject, opener.previous_delimiter)
    subject.last_bracket = opener.previous

    if not is_image:
        earlier = subject.last_bracket
        while earlier is not None:
            if not earlier.image:
                if not earlier.active:
                    break
                earlier.active = False
            earlier = earlier.previous
    return None


def _find_special_char(subject: Subject, options: Option) -> int:
    pattern = _SMART_SPECIAL_CHARS if options & Option.SMART else _SPECIAL_CHARS
    match = pattern.search(subject.text, subject.pos + 1)
    return match.start() if match else len(subject.text)


def _parse_inline(subject: Subject, parent: Node, options: Option) -> None:
    char = subject.peek()
    smart = bool(options & Option.SMART)
    node: Optional[Node]

    if char in ("\r", "\n"):
        node = subject.handle_newline()
    elif char == "`":
        node = subject.handle_backticks(options)
    elif char == "\\":
        node = subject.handle_backslash()
    elif char == "&":
        node = subject.handle_entity()
    elif char == "<":
        node = _handle_pointy_brace(subject, options)
    elif char in ("*", "_", "'", '"'):
        node = handle_delim(subject, char, smart)
    elif char == "-":
        node = handle_hyphen(subject, smart)
    elif char == ".":
        node = handle_period(subject, smart)
    elif char == "[":
        subject.pos += 1
        node = subject.make_text(subject.pos - 1, subject.pos - 1, "[")
        push_bracket(subject, False, node)
    elif char == "]":
        node = _handle_close_bracket(subject, options)
    elif char == "!":
        subject.pos += 1
        if subject.peek() == "[" and subject.peek(1) != "^":
            subject.pos += 1
            node = subject.make_text(subject.pos - 2, subject.pos - 1, "![")
            push_bracket(subject, True, node)
        else:
            node = subject.make_text(subject.pos - 1, subject.pos - 1, "!")
    else:
        end = _find_special_char(subject, options)
        contents = subject.text[subject.pos:end]
        start = subject.pos
        subject.pos = end
        if subject.peek() in ("\r", "\n") and subject.peek():
            contents = contents.rstrip(_SPACES)
        node = subject.make_text(start, end - 1, contents)

    if node is not None:
        parent.append_child(node)


def parse_inlines(
    parent: Node,
    refmap: Optional[ReferenceMap] = None,
    options: Option = Option.DEFAULT,
) -> None:
    """Parse ``parent.content`` and append the inline nodes as its children."""
    options = Option(options)
    subject = Subject(
        parent.content.rstrip(_SPACES),
        parent.start_line,
        parent.start_column - 1 + parent.internal_offset,
        refmap,
    )
    while not subject.is_eof():
        _parse_inline(subject, parent, options)
    process_emphasis(subject, None)
    subject.last_delim = None
    subject.last_bracket = None


def _skip_space_and_newline(subject: Subject) -> None:
    subject.skip_spaces()
    if subject.skip_line_end():
        subject.skip_spaces()


def parse_reference(text: str, refmap: ReferenceMap) -> int:
    """Parse a link reference definition at the start of ``text``.

    Adds it to ``refmap`` and returns the number of characters consumed,
    or 0 if ``text`` does not start with a definition.
    """
    subject = Subject(text, -1, 0, None)

    label = _link_label(subject)
    if not label:
        return 0
    if subject.peek() != ":":
        return 0
    subject.pos += 1

    _skip_space_and_newline(subject)
    scanned = _scan_link_url(text, subject.pos)
    if scanned is None:
        return 0
    length, url = scanned
    subject.pos += length

    before_title = subject.pos
    _skip_space_and_newline(subject)
    matchlen = 0 if subject.pos == before_title else _scan(_LINK_TITLE, text, subject.pos)
    if matchlen:
        title = text[subject.pos:subject.pos + matchlen]
        subject.pos += matchlen
    else:
        subject.pos = before_title
        title = ""

    subject.skip_spaces()
    if not subject.skip_line_end():
        if not matchlen:
            return 0
        subject.pos = before_title
        subject.skip_spaces()
        if not subject.skip_line_end():
            return 0

    refmap.add(label, clean_url(url), clean_title(title))
    return subject.pos