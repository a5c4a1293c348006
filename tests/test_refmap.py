import pytest

from gfmdown.refmap import MAX_LINK_LABEL_LENGTH, Reference, ReferenceMap, normalize_label


def test_normalize_collapses_and_folds():
    assert normalize_label("  Foo \t\n  Bar ") == "foo bar"


@pytest.mark.parametrize("label", ["", "   ", "\t\n", None])
def test_normalize_blank_is_none(label):
    assert normalize_label(label) is None


def test_normalize_is_idempotent():
    once = normalize_label("  MiXeD   Case\tLabel ")
    assert normalize_label(once) == once


def test_lookup_is_case_and_space_insensitive():
    refs = ReferenceMap()
    refs.add("Foo Bar", "/url", "Title")
    found = refs.lookup("  FOO\n   bar ")
    assert found == Reference(normalize_label("Foo Bar"), "/url", "Title")


def test_first_definition_wins():
    refs = ReferenceMap()
    first = refs.add("link", "/first")
    second = refs.add("LINK", "/second")
    assert second is first
    assert refs.lookup("link").url == "/first"
    assert len(refs) == 1


def test_len_counts_distinct_labels():
    refs = ReferenceMap()
    for label in ["a", "b", "A", " b "]:
        refs.add(label, "/u")
    assert len(refs) == 2


def test_blank_label_not_added():
    refs = ReferenceMap()
    assert refs.add("   ", "/u") is None
    assert len(refs) == 0


def test_lookup_missing_returns_none():
    refs = ReferenceMap()
    refs.add("present", "/u")
    assert refs.lookup("absent") is None


def test_lookup_on_empty_map():
    assert ReferenceMap().lookup("anything") is None


def test_lookup_blank_and_empty_labels():
    refs = ReferenceMap()
    refs.add("x", "/u")
    assert refs.lookup("") is None
    assert refs.lookup("   ") is None


def test_overlong_label_rejected():
    refs = ReferenceMap()
    label = "a" * (MAX_LINK_LABEL_LENGTH + 1)
    refs.add(label, "/u")
    assert refs.lookup(label) is None


def test_label_at_limit_accepted():
    refs = ReferenceMap()
    label = "a" * MAX_LINK_LABEL_LENGTH
    refs.add(label, "/u")
    assert refs.lookup(label).url == "/u"


def test_unicode_case_folding():
    refs = ReferenceMap()
    refs.add("Straße", "/street")
    assert refs.lookup("STRASSE").url == "/street"


def test_default_title_is_empty():
    refs = ReferenceMap()
    refs.add("t", "/u")
    assert refs.lookup("T").title == ""