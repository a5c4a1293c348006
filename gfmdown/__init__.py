"""GitHub Flavored Markdown document tree, inline parser and HTML renderer."""

__version__ = "0.29.0"
__all__ = [
    "node",
    "iterator",
    "escaping",
    "refmap",
    "html",
    "subject",
    "emphasis",
    "inlines",
]