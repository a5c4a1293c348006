"""HTML escaping and entity decoding."""

from __future__ import annotations

from html.entities import html5
from typing import Tuple

_HTML_ESCAPES = {
    '"': "&quot;",
    "&": "&amp;",
    "'": "&#39;",
    "/": "&#47;",
    "<": "&lt;",
    ">": "&gt;",
}
_SECURE_ONLY = frozenset("'/")

_NAMED_ENTITIES = {
    name[:-1]: value for name, value in html5.items() if name.endswith(";")
}
_ENTITY_MIN_LENGTH = min(map(len, _NAMED_ENTITIES))
_ENTITY_MAX_LENGTH = max(map(len, _NAMED_ENTITIES)) + 1

_DIGITS = frozenset("0123456789")
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_MAX_CODEPOINT = 0x110000
_REPLACEMENT = "\ufffd"


def escape_html(text: str, secure: bool = True) -> str:
    """Escape HTML special characters.

    Single quotes and forward slashes are escaped only in secure mode.
    """
    out = []
    for char in text:
        escaped = _HTML_ESCAPES.get(char)
        if escaped is None or (char in _SECURE_ONLY and not secure):
            out.append(char)
        else:
            out.append(escaped)
    return "".join(out)


def _numeric_entity(text: str, pos: int) -> Tuple[str, int]:
    size = len(text)
    codepoint = 0
    num_digits = 0
    i = pos + 1
    if i < size and text[i] in _DIGITS:
        while i < size and text[i] in _DIGITS:
            codepoint = min(codepoint * 10 + int(text[i]), _MAX_CODEPOINT)
            i += 1
        num_digits = i - pos - 1
    elif i < size and text[i] in "xX":
        i += 1
        while i < size and text[i] in _HEX_DIGITS:
            codepoint = min(codepoint * 16 + int(text[i], 16), _MAX_CODEPOINT)
            i += 1
        num_digits = i - pos - 2

    if 1 <= num_digits <= 8 and i < size and text[i] == ";":
        if codepoint == 0 or 0xD800 <= codepoint < 0xE000 or codepoint >= _MAX_CODEPOINT:
            return _REPLACEMENT, i + 1 - pos
        return chr(codepoint), i + 1 - pos
    return "", 0


def _named_entity(text: str, pos: int) -> Tuple[str, int]:
    limit = min(len(text), pos + _ENTITY_MAX_LENGTH)
    for i in range(pos + _ENTITY_MIN_LENGTH, limit):
        char = text[i]
        if char == " ":
            break
        if char == ";":
            value = _NAMED_ENTITIES.get(text[pos:i])
            if value is not None:
                return value, i + 1 - pos
            break
    return "", 0


def _unescape_entity_at(text: str, pos: int) -> Tuple[str, int]:
    if len(text) - pos >= 3 and text[pos] == "#":
        return _numeric_entity(text, pos)
    return _named_entity(text, pos)


def unescape_entity(text: str) -> Tuple[str, int]:
    """Decode the entity that ``text`` starts with (the part after ``&``).

    Returns the decoded text and the number of characters consumed,
    or ``("", 0)`` if ``text`` does not start with a valid entity.
    """
    return _unescape_entity_at(text, 0)


def unescape_html(text: str) -> str:
    """Replace every valid entity reference in ``text`` with what it stands for."""
    out = []
    pos = 0
    size = len(text)
    while pos < size:
        amp = text.find("&", pos)
        if amp < 0:
            out.append(text[pos:])
            break
        out.append(text[pos:amp])
        pos = amp + 1
        decoded, consumed = _unescape_entity_at(text, pos)
        if consumed:
            out.append(decoded)
            pos += consumed
        else:
            out.append("&")
    return "".join(out)