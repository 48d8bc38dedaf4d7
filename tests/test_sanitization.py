# tests/test_sanitization.py
from utils.sanitization import clean_text, is_nonempty_text, normalize_whitespace


def test_normalize_whitespace_keeps_paragraphs():
    raw = "Title\r\n\r\n\r\n\r\nAbstract:  We\tshow  X.  \r\nNext line"
    assert normalize_whitespace(raw) == "Title\n\nAbstract: We show X.\nNext line"


def test_normalize_whitespace_drops_control_and_zero_width():
    raw = "Sparse\u200b atten\x07tion\ufeff"
    assert normalize_whitespace(raw) == "Sparse attention"


def test_normalize_whitespace_none_is_empty():
    assert normalize_whitespace(None) == ""


def test_clean_text_is_single_line():
    assert clean_text("  A\n\nmulti   line\ttitle ") == "A multi line title"


def test_is_nonempty_text():
    assert is_nonempty_text(" x ")
    assert not is_nonempty_text(" \n\t")
    assert not is_nonempty_text(None)
