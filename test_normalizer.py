"""
Tests for text normalization over (text, character_meta) pairs.
"""

from html_blocks.normalizer import (
    SOFT_BREAK_PLACEHOLDER,
    TextFragment,
    collapse_white_space,
    concat_fragments,
    replace_text_with_meta,
    trim_leading_newline,
)
from html_blocks.schemas import CharacterMeta

NONE = CharacterMeta()
BOLD = CharacterMeta(style=("BOLD",))


def metas(pattern):
    """'nbn' → [NONE, BOLD, NONE]."""
    return [BOLD if c == "b" else NONE for c in pattern]


# --- replace_text_with_meta ---

def test_replace_handles_empty_source():
    result = replace_text_with_meta(TextFragment("", []), "a", "b")
    assert result == ("", [])


def test_replace_handles_not_found():
    result = replace_text_with_meta(TextFragment("abc", metas("bbb")), "d", "e")
    assert result == ("abc", metas("bbb"))


def test_replace_handles_one_occurrence():
    result = replace_text_with_meta(TextFragment("abc", metas("nbn")), "b", "xx")
    assert result == ("axxc", metas("nbbn"))


def test_replace_handles_multiple_occurrences():
    result = replace_text_with_meta(TextFragment("abcba", metas("nbnnn")), "b", "xx")
    assert result == ("axxcxxa", metas("nbbnnnn"))


def test_replace_shrinking_uses_first_replaced_character():
    result = replace_text_with_meta(TextFragment("a b", metas("nbn")), " b", "_")
    assert result == ("a_", metas("nb"))


# --- trim_leading_newline ---

def test_trim_leading_newline_removes_exactly_one():
    assert trim_leading_newline("\n\n x", metas("bnnn")) == ("\n x", metas("nnn"))


def test_trim_leading_newline_leaves_other_text():
    assert trim_leading_newline(" \nx", metas("nnn")) == (" \nx", metas("nnn"))


# --- collapse_white_space ---

def test_collapse_trims_and_collapses():
    text = " \t a \n\n b  "
    result = collapse_white_space(text, metas("n" * len(text)))
    assert result.text == "a b"
    assert len(result.character_meta) == 3


def test_collapse_keeps_metadata_in_lockstep():
    text = "x  \t y"
    result = collapse_white_space(text, metas("nbnnnn"))
    assert result == ("x y", metas("nbn"))


def test_collapse_removes_spaces_around_soft_break():
    text = f"a {SOFT_BREAK_PLACEHOLDER} b"
    result = collapse_white_space(text, metas("nnnnn"))
    assert result.text == f"a{SOFT_BREAK_PLACEHOLDER}b"
    assert len(result.character_meta) == 3


def test_collapse_keeps_consecutive_soft_breaks():
    text = f"a {SOFT_BREAK_PLACEHOLDER} {SOFT_BREAK_PLACEHOLDER} b"
    result = collapse_white_space(text, metas("n" * len(text)))
    assert result.text == f"a{SOFT_BREAK_PLACEHOLDER}{SOFT_BREAK_PLACEHOLDER}b"


def test_collapse_does_not_touch_non_breaking_space():
    result = collapse_white_space("a\u00a0\u00a0b", metas("nnnn"))
    assert result.text == "a\u00a0\u00a0b"


def test_collapse_is_idempotent():
    samples = [
        "  hello   world ",
        f"one {SOFT_BREAK_PLACEHOLDER}  two",
        f"\t{SOFT_BREAK_PLACEHOLDER} \n {SOFT_BREAK_PLACEHOLDER}x  ",
        "",
        "   ",
    ]
    for text in samples:
        once = collapse_white_space(text, metas("b" * len(text)))
        twice = collapse_white_space(*once)
        assert once == twice
        assert len(once.text) == len(once.character_meta)


def test_collapse_all_whitespace_is_empty():
    assert collapse_white_space(" \n\t ", metas("nnnn")) == ("", [])


# --- concat_fragments ---

def test_concat_fragments_keeps_lengths_aligned():
    result = concat_fragments([
        TextFragment("ab", metas("nn")),
        TextFragment("", []),
        TextFragment("c", metas("b")),
    ])
    assert result == ("abc", metas("nnb"))
