import pytest

from gfmdown.html import HtmlRenderer, render_html
from gfmdown.node import ListType, Node, NodeType, Option


def make(node_type, *children, **attrs):
    node = Node(node_type)
    for key, value in attrs.items():
        setattr(node, key, value)
    for child in children:
        node.append_child(child)
    return node


def text(value):
    return make(NodeType.TEXT, literal=value)


def doc(*children):
    return make(NodeType.DOCUMENT, *children)


def para(*children):
    return make(NodeType.PARAGRAPH, *children)


def test_paragraph_escapes_text():
    out = render_html(doc(para(text("a < b & c"))))
    assert out == "<p>a &lt; b &amp; c</p>\n"


def test_quote_and_slash_not_escaped_in_text():
    out = render_html(doc(para(text("it's a/b"))))
    assert "it's a/b" in out


@pytest.mark.parametrize("level", [1, 2, 3, 4, 5, 6])
def test_heading_levels(level):
    heading = make(NodeType.HEADING, text("x"))
    heading.set_heading_level(level)
    out = render_html(doc(heading))
    assert out == f"<h{level}>x</h{level}>\n"


def test_thematic_break_and_blockquote():
    out = render_html(doc(make(NodeType.BLOCK_QUOTE, para(text("q"))), make(NodeType.THEMATIC_BREAK)))
    assert out.startswith("<blockquote>\n")
    assert "</blockquote>\n" in out
    assert out.endswith(" />\n")


def test_output_does_not_start_with_newline():
    out = render_html(doc(make(NodeType.THEMATIC_BREAK)))
    assert not out.startswith("\n")


def test_raw_html_omitted_by_default():
    block = make(NodeType.HTML_BLOCK, literal="<div>hi</div>")
    inline = make(NodeType.HTML_INLINE, literal="<b>")
    out = render_html(doc(block, para(inline)))
    assert out.count("<!-- raw HTML omitted -->") == 2
    assert "<div>" not in out


def test_raw_html_passes_through_when_unsafe():
    block = make(NodeType.HTML_BLOCK, literal="<div>hi</div>")
    out = render_html(doc(block), Option.UNSAFE)
    assert "<div>hi</div>" in out


def test_filters_escape_rejected_tags():
    def no_script(data):
        return not data.startswith("<script")

    block = make(NodeType.HTML_BLOCK, literal="<p><script>x</script></p>")
    inline = make(NodeType.HTML_INLINE, literal="<script>")
    out = render_html(doc(block, para(inline)), Option.UNSAFE, [no_script])
    assert "&lt;script>x" in out
    assert "<script" not in out
    assert "<p>" in out


def test_softbreak_options():
    def tree():
        return doc(para(text("a"), make(NodeType.SOFTBREAK), text("b")))

    assert "a\nb" in render_html(tree())
    assert "a<br />\nb" in render_html(tree(), Option.HARDBREAKS)
    assert "a b" in render_html(tree(), Option.NOBREAKS)


def test_linebreak_and_code_and_emphasis():
    out = render_html(
        doc(
            para(
                make(NodeType.EMPH, text("e")),
                make(NodeType.LINEBREAK),
                make(NodeType.STRONG, text("s")),
                make(NodeType.CODE, literal="<x>"),
            )
        )
    )
    assert "<em>e</em><br />\n<strong>s</strong>" in out
    assert "<code>&lt;x&gt;</code>" in out


def test_image_alt_text_is_plain():
    image = make(
        NodeType.IMAGE,
        text("hi "),
        make(NodeType.EMPH, text("there")),
        url="x.png",
    )
    out = render_html(doc(para(image)))
    assert '<img src="x.png" alt="hi there" />' in out


def test_image_title_after_alt():
    image = make(NodeType.IMAGE, text("a"), url="x.png", title='t"t')
    out = render_html(doc(para(image)))
    assert 'alt="a" title="t&quot;t" />' in out


def test_dangerous_link_url_dropped_unless_unsafe():
    def tree():
        return doc(para(make(NodeType.LINK, text("x"), url="javascript:alert(1)")))

    assert '<a href="">x</a>' in render_html(tree())
    assert "javascript:alert(1)" in render_html(tree(), Option.UNSAFE)


def test_link_title_escaped():
    link = make(NodeType.LINK, text("x"), url="/a", title='say "hi"')
    out = render_html(doc(para(link)))
    assert 'title="say &quot;hi&quot;"' in out
    assert "</a>" in out


def test_code_block_info_string():
    def tree():
        return doc(make(NodeType.CODE_BLOCK, literal="a<b\n", info="python extra"))

    plain = render_html(tree())
    assert '<code class="language-python">' in plain
    assert "a&lt;b\n</code></pre>\n" in plain
    assert "data-meta" not in plain

    full = render_html(tree(), Option.FULL_INFO_STRING)
    assert 'data-meta="extra"' in full

    pre_lang = render_html(tree(), Option.GITHUB_PRE_LANG)
    assert '<pre lang="python"><code>' in pre_lang


def test_code_block_without_info():
    out = render_html(doc(make(NodeType.CODE_BLOCK, literal="x\n")))
    assert out.startswith("<pre><code>")


def test_lists():
    ordered = make(NodeType.LIST, make(NodeType.ITEM, para(text("a"))), list_type=ListType.ORDERED)
    ordered.set_list_start(3)
    out = render_html(doc(ordered))
    assert '<ol start="3">' in out
    assert out.endswith("</ol>\n")

    ordered_one = make(NodeType.LIST, make(NodeType.ITEM), list_type=ListType.ORDERED)
    ordered_one.set_list_start(1)
    assert "<ol>\n" in render_html(doc(ordered_one))


def test_tight_list_omits_paragraph_tags():
    tight = make(NodeType.LIST, make(NodeType.ITEM, para(text("item"))), tight=True)
    out = render_html(doc(tight))
    assert "<p>" not in out
    assert "<li>item</li>\n" in out
    assert out.startswith("<ul>\n")

    loose = make(NodeType.LIST, make(NodeType.ITEM, para(text("item"))))
    assert "<p>item</p>" in render_html(doc(loose))


def test_sourcepos():
    hr = make(NodeType.THEMATIC_BREAK, start_line=1, start_column=2, end_line=3, end_column=4)
    out = render_html(doc(hr), Option.SOURCEPOS)
    assert ' data-sourcepos="1:2-3:4"' in out
    assert "data-sourcepos" not in render_html(doc(make(NodeType.THEMATIC_BREAK)))


def test_footnotes():
    ref = make(NodeType.FOOTNOTE_REFERENCE, literal="1")
    definition = make(NodeType.FOOTNOTE_DEFINITION, para(text("note")))
    out = render_html(doc(para(text("x"), ref), definition))
    assert '<sup class="footnote-ref"><a href="#fn1" id="fnref1">1</a></sup>' in out
    assert '<section class="footnotes">\n<ol>\n' in out
    assert out.count("footnote-backref") == 1
    assert out.endswith("</ol>\n</section>\n")


def test_renderer_is_reusable():
    renderer = HtmlRenderer(Option.DEFAULT, [])
    definition = make(NodeType.FOOTNOTE_DEFINITION, para(text("n")))
    tree = doc(definition)
    first = renderer.render(tree)
    assert renderer.render(tree) == first


def test_custom_nodes():
    block = make(NodeType.CUSTOM_BLOCK, on_enter="<x>", on_exit="</x>")
    inline = make(NodeType.CUSTOM_INLINE, text("t"), on_enter="[", on_exit="]")
    out = render_html(doc(block, para(inline)))
    assert "<x>\n</x>\n" in out
    assert "[t]" in out


def test_extension_renders_node():
    class Shout:
        def render_html(self, node, event, options):
            return node.literal.upper()

    node = make(NodeType.TEXT, literal="hey", extension=Shout())
    out = render_html(doc(para(node)))
    assert "<p>HEY</p>" in out