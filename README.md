# gfmdown

A pure-Python library for the inline half of GitHub Flavored Markdown. It
provides a mutable document tree and an inline parser. The parser handles
emphasis, links, images, code spans, autolinks, raw HTML and footnote
references. The library also provides link reference definitions, HTML
entity handling and an HTML renderer.

## Installation

```
pip install gfmdown
```

The package has no runtime dependencies.

## The document tree

Documents are trees of `Node` objects (`gfmdown.node`). Each node has a
`NodeType`. Block types and inline types can be told apart with
`NodeType.is_block` and `NodeType.is_inline`. If a node cannot hold the
type of child it is given, it raises `ValueError`.

```python
from gfmdown.node import Node, NodeType

doc = Node(NodeType.DOCUMENT)
para = Node(NodeType.PARAGRAPH)
doc.append_child(para)
print(para.type_string())        # paragraph
print(list(doc.children()))      # [Node(PARAGRAPH, 0:0)]
```

### Changing the tree

These `Node` methods move nodes around:

- `prepend_child`
- `insert_before`
- `insert_after`
- `replace`
- `unlink`

### Changing a node

`set_type` changes a node's type. It raises `ValueError` if the node's
parent cannot hold the new type.

`set_heading_level` accepts levels 1 to 6. `set_list_start` rejects
negative numbers. Both raise `TypeError` when called on a node of the
wrong kind.

### Other node data

Each node also has:

- payload attributes: `literal`, `url`, `title`, `info`, `level`,
  `list_type`, `list_start` and `tight`
- source positions: `start_line`, `start_column`, `end_line` and
  `end_column`

### Repairing links

`check(out)` walks a subtree and repairs broken parent and sibling links.
It writes a line about each repair to `out`, or writes nothing when `out`
is `None`. It returns the number of problems found.

The enums `ListType`, `DelimType` and `Option` live in the same module.

## Walking a tree

`gfmdown.iterator.walk(root)` yields `(EventType, node)` pairs in document
order. Container nodes come up twice, once on `EventType.ENTER` and once on
`EventType.EXIT`. Leaf nodes come up only on `ENTER`.

`NodeIterator` gives the same walk. Its `reset(node, event_type)` method
moves the walk to another position.

`consolidate_text_nodes(root)` merges each run of adjacent text nodes into
its first node.

## Inline parsing

`gfmdown.inlines.parse_inlines(parent, refmap, options)` parses
`parent.content` and appends the resulting inline nodes to `parent`.

`parse_reference(text, refmap)` reads a link reference definition at the
start of `text`. It adds the definition to a `ReferenceMap` and returns the
number of characters consumed, or 0 if there was no definition.

```python
from gfmdown.html import render_html
from gfmdown.inlines import parse_inlines, parse_reference
from gfmdown.node import Node, NodeType, Option
from gfmdown.refmap import ReferenceMap

refs = ReferenceMap()
parse_reference('[home]: /index.html "Start"\n', refs)

doc = Node(NodeType.DOCUMENT)
para = Node(NodeType.PARAGRAPH)
doc.append_child(para)
para.content = "Go *now* to [home] or `run it`"
parse_inlines(para, refs, Option.DEFAULT)

print(render_html(doc))
# <p>Go <em>now</em> to <a href="/index.html" title="Start">home</a> or <code>run it</code></p>
```

Options for `parse_inlines`:

- `Option.SMART` turns on typographic quotes, dashes and ellipses.
- `Option.FOOTNOTES` turns on footnote references such as `[^1]`.
- `Option.LIBERAL_HTML_TAG` accepts looser inline HTML tags.
- `Option.SOURCEPOS` keeps line and column positions right across line
  breaks inside code spans and raw HTML.

`clean_url` and `clean_title` normalise link destinations and titles. They
trim whitespace, strip title quotes, decode entities and drop backslash
escapes.

The lower-level pieces of the parser are public as well:

- `gfmdown.subject.Subject` is the cursor over the inline text, together
  with its handlers for code spans, backslashes, entities and line breaks.
- `normalize_code` lives in the same module.
- `gfmdown.emphasis` holds the delimiter and bracket stacks (`Delimiter`,
  `Bracket`, `scan_delims`, `handle_delim`, `push_bracket`) and
  `process_emphasis`.

## Reference definitions

`gfmdown.refmap.ReferenceMap` stores `Reference` records keyed by
normalised label. The first definition of a label wins. `lookup` returns
`None` for unknown labels and for labels longer than 1000 bytes.

`normalize_label` applies the matching rules: case folding, trimming and
collapsing runs of whitespace.

## Rendering HTML

`render_html(root, options, filters)` renders a tree to a string. For
repeated renders, create an `HtmlRenderer(options, filters)` and call its
`render` method.

What the renderer does:

- Raw HTML blocks and inline HTML become `<!-- raw HTML omitted -->`
  unless `Option.UNSAFE` is set.
- Link and image URLs with `javascript:`, `vbscript:`, `file:` or
  non-image `data:` schemes are dropped unless `Option.UNSAFE` is set.
- `Option.SOURCEPOS` adds `data-sourcepos` attributes to block elements.
- `Option.HARDBREAKS` renders soft line breaks as `<br />`, and
  `Option.NOBREAKS` renders them as spaces.
- `Option.GITHUB_PRE_LANG` puts a code block's language on the `<pre>`
  element. `Option.FULL_INFO_STRING` adds the rest of the info string as
  `data-meta`.
- Footnote definitions in the tree are gathered into a
  `<section class="footnotes">` with back-references.

Filters are callables that are given raw HTML starting at a `<`. When a
filter returns `False`, that `<` is written as `&lt;`.

A node whose `extension` attribute has a `render_html(node, event, options)`
method is rendered by that method instead.

## Escaping helpers

`gfmdown.escaping` provides three functions:

- `escape_html(text, secure=True)` escapes HTML special characters.
  Single quotes and slashes are escaped only in secure mode.
- `unescape_html(text)` decodes every valid entity reference in `text`.
- `unescape_entity(text)` decodes one entity at the start of `text`,
  which is the part after the `&`. It returns the decoded text and the
  number of characters consumed.

## What the package does not do

There is no block-level parser. Nothing turns a whole Markdown document into
paragraphs, headings, lists, block quotes or code blocks. You build those
block nodes yourself, set their `content`, and let `parse_inlines` fill in
the inline children.

Tables, strikethrough and other syntax extensions are not included. HTML is
the only output format. There is no command-line program.

## Running the tests

```
pip install -e ".[test]"
pytest
```