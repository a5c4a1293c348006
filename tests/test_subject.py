import pytest

from gfmdown.node import NodeType, Option
from gfmdown.subject import Subject, normalize_code


def test_peek_and_eof():
    subj = Subject("ab")
    assert subj.peek() == "a"
    assert subj.peek(1) == "b"
    assert subj.peek(2) == ""
    assert not subj.is_eof()
    subj.pos = 2
    assert subj.is_eof()
    assert subj.peek() == ""


def test_skip_spaces():
    subj = Subject(" \t x")
    assert subj.skip_spaces() is True
    assert subj.peek() == "x"
    assert subj.skip_spaces() is False


def test_skip_line_end():
    subj = Subject("\r\nx")
    assert subj.skip_line_end() is True
    assert subj.peek() == "x"
    assert subj.skip_line_end() is False
    subj.pos = 3
    assert subj.skip_line_end() is True


def test_take_while():
    subj = Subject("123abc")
    assert subj.take_while(str.isdigit) == "123"
    assert subj.peek() == "a"
    assert subj.take_while(str.isdigit) == ""


def test_make_text_span():
    subj = Subject("abc", line=3, block_offset=4)
    node = subj.make_text(0, 2, "abc")
    assert node.type is NodeType.TEXT
    assert node.literal == "abc"
    assert node.start_line == node.end_line == 3
    assert node.end_column - node.start_column == 2
    assert subj.make_text(1, 1, "b").start_column == node.start_column + 1


def test_code_span():
    subj = Subject("`code` rest")
    node = subj.handle_backticks()
    assert node.type is NodeType.CODE
    assert node.literal == "code"
    assert subj.text[subj.pos:] == " rest"


def test_code_span_with_inner_backtick():
    subj = Subject("`` foo ` bar ``")
    node = subj.handle_backticks()
    assert node.literal == "foo ` bar"
    assert subj.is_eof()


def test_unclosed_backticks_become_text():
    subj = Subject("``a`")
    node = subj.handle_backticks()
    assert node.type is NodeType.TEXT
    assert node.literal == "``"
    assert subj.peek() == "a"


def test_sourcepos_follows_newlines_in_code():
    subj = Subject("`a\nb`", line=5)
    node = subj.handle_backticks(Option.SOURCEPOS)
    assert node.literal == "a b"
    assert subj.line == 6
    assert node.end_line == 6


def test_no_line_adjustment_without_sourcepos():
    subj = Subject("`a\nb`", line=5)
    node = subj.handle_backticks()
    assert subj.line == 5
    assert node.end_line == 5


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("foo\nbar", "foo bar"),
        ("a\r\nb", "a b"),
        (" foo ", "foo"),
        (" ", " "),
        ("  ", "  "),
        ("", ""),
    ],
)
def test_normalize_code(raw, expected):
    assert normalize_code(raw) == expected


def test_backslash_escape():
    subj = Subject("\\*x")
    node = subj.handle_backslash()
    assert node.type is NodeType.TEXT
    assert node.literal == "*"
    assert subj.peek() == "x"


def test_backslash_line_break():
    subj = Subject("\\\nfoo")
    node = subj.handle_backslash()
    assert node.type is NodeType.LINEBREAK
    assert subj.peek() == "f"


def test_lone_backslash():
    subj = Subject("\\a")
    node = subj.handle_backslash()
    assert node.literal == "\\"
    assert subj.peek() == "a"


def test_backslash_at_end():
    subj = Subject("\\")
    node = subj.handle_backslash()
    assert node.type is NodeType.TEXT
    assert node.literal == "\\"


def test_named_entity():
    subj = Subject("&amp;x")
    node = subj.handle_entity()
    assert node.literal == "&"
    assert subj.peek() == "x"


def test_numeric_entity():
    subj = Subject("&#35;")
    node = subj.handle_entity()
    assert node.literal == "#"
    assert subj.is_eof()


def test_not_an_entity():
    subj = Subject("&nope")
    node = subj.handle_entity()
    assert node.literal == "&"
    assert subj.peek() == "n"


def test_hard_break_after_two_spaces():
    subj = Subject("a  \n  foo", line=1)
    subj.pos = 3
    node = subj.handle_newline()
    assert node.type is NodeType.LINEBREAK
    assert subj.line == 2
    assert subj.peek() == "f"


def test_soft_break():
    subj = Subject("a\r\n  b")
    subj.pos = 1
    node = subj.handle_newline()
    assert node.type is NodeType.SOFTBREAK
    assert subj.peek() == "b"
    assert subj.column_offset == -3