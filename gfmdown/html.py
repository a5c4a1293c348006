"""Rendering of a document tree to HTML."""

from __future__ import annotations

import re
from typing import Callable, Iterable, List, Optional

from gfmdown.escaping import escape_html
from gfmdown.iterator import EventType, NodeIterator
from gfmdown.node import ListType, Node, NodeType, Option

HtmlFilter = Callable[[str], bool]

_RAW_HTML_OMITTED = "<!-- raw HTML omitted -->"
_SPACE_CHARS = " \t\n\v\f\r"

_DANGEROUS_URL = re.compile(
    r"(?:javascript:|vbscript:|file:|data:(?!image/(?:png|gif|jpeg|webp)))",
    re.IGNORECASE,
)
_HREF_SAFE = frozenset(
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
    "-_.~!*();:@=+$,/?#%"
)


def _is_dangerous_url(url: str) -> bool:
    return _DANGEROUS_URL.match(url) is not None


def _escape_href(url: str) -> str:
    out = []
    for char in url:
        if char in _HREF_SAFE:
            out.append(char)
        elif char == "&":
            out.append("&amp;")
        elif char == "'":
            out.append("&#x27;")
        else:
            out.extend(f"%{byte:02X}" for byte in char.encode("utf-8"))
    return "".join(out)


def _escape(text: str) -> str:
    return escape_html(text, secure=False)


class HtmlRenderer:
    """Turns a document tree into HTML.

    ``filters`` are callables given raw HTML starting at a ``<``; a filter
    returning False causes that ``<`` to be written as ``&lt;``.
    Nodes whose ``extension`` has a ``render_html(node, event, options)``
    method are rendered by that method, whose returned text is written out.
    """

    def __init__(
        self,
        options: Option = Option.DEFAULT,
        filters: Iterable[HtmlFilter] = (),
    ) -> None:
        self.options = Option(options)
        self.filters: List[HtmlFilter] = [f for f in filters if f is not None]
        self._reset()

    def _reset(self) -> None:
        self._parts: List[str] = []
        self._last_char = ""
        self._plain: Optional[Node] = None
        self.footnote_ix = 0
        self.written_footnote_ix = 0

    # -- output helpers ---------------------------------------------------

    def _put(self, text: str) -> None:
        if text:
            self._parts.append(text)
            self._last_char = text[-1]

    def _cr(self) -> None:
        if self._parts and self._last_char != "\n":
            self._put("\n")

    def _sourcepos(self, node: Node) -> None:
        if self.options & Option.SOURCEPOS:
            self._put(
                f' data-sourcepos="{node.start_line}:{node.start_column}'
                f'-{node.end_line}:{node.end_column}"'
            )

    def _is_filtered(self, text: str) -> bool:
        return any(not allowed(text) for allowed in self.filters)

    def _filter_html_block(self, data: str) -> None:
        pos = 0
        while True:
            match = data.find("<", pos)
            if match < 0:
                break
            self._put(data[pos:match])
            self._put("&lt;" if self._is_filtered(data[match:]) else "<")
            pos = match + 1
        self._put(data[pos:])

    def _put_footnote_backref(self) -> bool:
        if self.written_footnote_ix >= self.footnote_ix:
            return False
        self.written_footnote_ix = self.footnote_ix
        self._put(
            f'<a href="#fnref{self.footnote_ix}" class="footnote-backref">↩</a>'
        )
        return True

    # -- rendering --------------------------------------------------------

    def render(self, root: Node) -> str:
        """Render ``root`` and everything under it."""
        self._reset()
        for event, node in NodeIterator(root):
            self._render_node(node, event)
        if self.footnote_ix:
            self._put("</ol>\n</section>\n")
        result = "".join(self._parts)
        self._reset()
        return result

    def _render_plain(self, node: Node) -> None:
        if node.type in (NodeType.TEXT, NodeType.CODE, NodeType.HTML_INLINE):
            self._put(_escape(node.literal))
        elif node.type in (NodeType.LINEBREAK, NodeType.SOFTBREAK):
            self._put(" ")

    def _render_node(self, node: Node, event: EventType) -> None:
        if self._plain is node:
            self._plain = None
        if self._plain is not None:
            self._render_plain(node)
            return

        hook = getattr(node.extension, "render_html", None)
        if hook is not None:
            self._put(hook(node, event, self.options) or "")
            return

        entering = event is EventType.ENTER
        options = self.options
        kind = node.type

        if kind is NodeType.DOCUMENT:
            return

        if kind is NodeType.BLOCK_QUOTE:
            self._cr()
            if entering:
                self._put("<blockquote")
                self._sourcepos(node)
                self._put(">\n")
            else:
                self._put("</blockquote>\n")

        elif kind is NodeType.LIST:
            bullet = node.list_type is ListType.BULLET
            if entering:
                self._cr()
                if bullet:
                    self._put("<ul")
                elif node.list_start == 1:
                    self._put("<ol")
                else:
                    self._put(f'<ol start="{node.list_start}"')
                self._sourcepos(node)
                self._put(">\n")
            else:
                self._put("</ul>\n" if bullet else "</ol>\n")

        elif kind is NodeType.ITEM:
            if entering:
                self._cr()
                self._put("<li")
                self._sourcepos(node)
                self._put(">")
            else:
                self._put("</li>\n")

        elif kind is NodeType.HEADING:
            if entering:
                self._cr()
                self._put(f"<h{node.level}")
                self._sourcepos(node)
                self._put(">")
            else:
                self._put(f"</h{node.level}>\n")

        elif kind is NodeType.CODE_BLOCK:
            self._render_code_block(node)

        elif kind is NodeType.HTML_BLOCK:
            self._cr()
            if not options & Option.UNSAFE:
                self._put(_RAW_HTML_OMITTED)
            elif self.filters:
                self._filter_html_block(node.literal)
            else:
                self._put(node.literal)
            self._cr()

        elif kind is NodeType.CUSTOM_BLOCK:
            self._cr()
            self._put(node.on_enter if entering else node.on_exit)
            self._cr()

        elif kind is NodeType.THEMATIC_BREAK:
            self._cr()
            self._put("<hr")
            self._sourcepos(node)
            self._put(" />\n")

        elif kind is NodeType.PARAGRAPH:
            self._render_paragraph(node, entering)

        elif kind is NodeType.TEXT:
            self._put(_escape(node.literal))

        elif kind is NodeType.LINEBREAK:
            self._put("<br />\n")

        elif kind is NodeType.SOFTBREAK:
            if options & Option.HARDBREAKS:
                self._put("<br />\n")
            elif options & Option.NOBREAKS:
                self._put(" ")
            else:
                self._put("\n")

        elif kind is NodeType.CODE:
            self._put("<code>")
            self._put(_escape(node.literal))
            self._put("</code>")

        elif kind is NodeType.HTML_INLINE:
            if not options & Option.UNSAFE:
                self._put(_RAW_HTML_OMITTED)
            elif self._is_filtered(node.literal):
                self._put("&lt;")
                self._put(node.literal[1:])
            else:
                self._put(node.literal)

        elif kind is NodeType.CUSTOM_INLINE:
            self._put(node.on_enter if entering else node.on_exit)

        elif kind is NodeType.STRONG:
            self._put("<strong>" if entering else "</strong>")

        elif kind is NodeType.EMPH:
            self._put("<em>" if entering else "</em>")

        elif kind is NodeType.LINK:
            if entering:
                self._put('<a href="')
                self._put_url(node.url)
                if node.title:
                    self._put('" title="')
                    self._put(_escape(node.title))
                self._put('">')
            else:
                self._put("</a>")

        elif kind is NodeType.IMAGE:
            if entering:
                self._put('<img src="')
                self._put_url(node.url)
                self._put('" alt="')
                self._plain = node
            else:
                if node.title:
                    self._put('" title="')
                    self._put(_escape(node.title))
                self._put('" />')

        elif kind is NodeType.FOOTNOTE_DEFINITION:
            if entering:
                if self.footnote_ix == 0:
                    self._put('<section class="footnotes">\n<ol>\n')
                self.footnote_ix += 1
                self._put(f'<li id="fn{self.footnote_ix}">\n')
            else:
                if self._put_footnote_backref():
                    self._put("\n")
                self._put("</li>\n")

        elif kind is NodeType.FOOTNOTE_REFERENCE:
            if entering:
                label = node.literal
                self._put(
                    f'<sup class="footnote-ref"><a href="#fn{label}" '
                    f'id="fnref{label}">{label}</a></sup>'
                )

        else:
            raise ValueError(f"cannot render a {node.type_string()} node as HTML")

    def _put_url(self, url: str) -> None:
        if self.options & Option.UNSAFE or not _is_dangerous_url(url):
            self._put(_escape_href(url))

    def _render_code_block(self, node: Node) -> None:
        self._cr()
        info = node.info
        if not info:
            self._put("<pre")
            self._sourcepos(node)
            self._put("><code>")
        else:
            first_tag = len(info)
            for index, char in enumerate(info):
                if char in _SPACE_CHARS:
                    first_tag = index
                    break
            with_meta = first_tag < len(info) and self.options & Option.FULL_INFO_STRING
            self._put("<pre")
            self._sourcepos(node)
            if self.options & Option.GITHUB_PRE_LANG:
                self._put(' lang="')
            else:
                self._put('><code class="language-')
            self._put(_escape(info[:first_tag]))
            if with_meta:
                self._put('" data-meta="')
                self._put(_escape(info[first_tag + 1:]))
            if self.options & Option.GITHUB_PRE_LANG:
                self._put('"><code>')
            else:
                self._put('">')
        self._put(_escape(node.literal))
        self._put("</code></pre>\n")

    def _render_paragraph(self, node: Node, entering: bool) -> None:
        parent = node.parent
        grandparent = parent.parent if parent is not None else None
        tight = (
            grandparent is not None
            and grandparent.type is NodeType.LIST
            and grandparent.tight
        )
        if tight:
            return
        if entering:
            self._cr()
            self._put("<p")
            self._sourcepos(node)
            self._put(">")
        else:
            if (
                parent is not None
                and parent.type is NodeType.FOOTNOTE_DEFINITION
                and node.next is None
            ):
                self._put(" ")
                self._put_footnote_backref()
            self._put("</p>\n")


def render_html(
    root: Node,
    options: Option = Option.DEFAULT,
    filters: Iterable[HtmlFilter] = (),
) -> str:
    """Render the tree under ``root`` to an HTML string."""
    return HtmlRenderer(options, filters).render(root)