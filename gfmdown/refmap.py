"""Link reference definitions keyed by normalized label."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Optional

MAX_LINK_LABEL_LENGTH = 1000

_SPACE_RUN = re.compile(r"[ \t\n\v\f\r]+")
_SPACE_CHARS = " \t\n\v\f\r"


def normalize_label(label: Optional[str]) -> Optional[str]:
    """Case-fold ``label``, trim it and collapse inner whitespace.

    Returns None if nothing but whitespace is left.
    """
    if not label:
        return None
    normalized = _SPACE_RUN.sub(" ", label.casefold().strip(_SPACE_CHARS))
    return normalized or None


@dataclass(frozen=True)
class Reference:
    label: str
    url: str
    title: str = ""


class ReferenceMap:
    """Reference definitions; the first definition of a label wins."""

    def __init__(self) -> None:
        self._refs: Dict[str, Reference] = {}

    def add(self, label: str, url: str, title: str = "") -> Optional[Reference]:
        """Record a definition and return the one now in force for its label."""
        key = normalize_label(label)
        if key is None:
            return None
        existing = self._refs.get(key)
        if existing is not None:
            return existing
        ref = Reference(key, url, title)
        self._refs[key] = ref
        return ref

    def lookup(self, label: str) -> Optional[Reference]:
        """Find the definition for ``label``, or None."""
        length = len(label.encode("utf-8"))
        if length < 1 or length > MAX_LINK_LABEL_LENGTH:
            return None
        if not self._refs:
            return None
        key = normalize_label(label)
        if key is None:
            return None
        return self._refs.get(key)

    def __len__(self) -> int:
        return len(self._refs)