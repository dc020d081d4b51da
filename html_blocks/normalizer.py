"""
Text normalization over text plus parallel per-character metadata.

Every function here takes and returns a (text, character_meta) pair whose
lengths match; anything removed from the text is removed from the metadata at
the same offset.
"""

import re
from typing import NamedTuple

from .schemas import CharacterMeta

# "\r" never survives into text nodes (line breaks are normalized to "\n"
# first), so it is free to mark soft breaks until normalization is done.
SOFT_BREAK_PLACEHOLDER = "\r"

_WHITESPACE_CHAR = re.compile(r"[ \t\n]")


class TextFragment(NamedTuple):
    text: str
    character_meta: list[CharacterMeta]


def concat_fragments(fragments: list[TextFragment]) -> TextFragment:
    text_parts = []
    character_meta: list[CharacterMeta] = []
    for fragment in fragments:
        text_parts.append(fragment.text)
        character_meta.extend(fragment.character_meta)
    return TextFragment("".join(text_parts), character_meta)


def replace_text_with_meta(subject: TextFragment, search_text: str, replace_text: str) -> TextFragment:
    """
    Replace every occurrence of search_text.

    Replacement characters take the metadata of the first character they
    replace.
    """
    text, character_meta = subject
    if not search_text:
        return TextFragment(text, list(character_meta))

    text_parts = []
    result_meta: list[CharacterMeta] = []
    last_end = 0
    index = text.find(search_text)
    while index != -1:
        text_parts.append(text[last_end:index] + replace_text)
        result_meta.extend(character_meta[last_end:index])
        result_meta.extend(character_meta[index:index + 1] * len(replace_text))
        last_end = index + len(search_text)
        index = text.find(search_text, last_end)
    text_parts.append(text[last_end:])
    result_meta.extend(character_meta[last_end:])
    return TextFragment("".join(text_parts), result_meta)


def trim_leading_newline(text: str, character_meta: list[CharacterMeta]) -> TextFragment:
    """Remove exactly one leading newline (code blocks keep everything else)."""
    if text.startswith("\n"):
        return TextFragment(text[1:], character_meta[1:])
    return TextFragment(text, character_meta)


def trim_leading_space(text: str, character_meta: list[CharacterMeta]) -> TextFragment:
    trimmed = text.lstrip(" ")
    return TextFragment(trimmed, character_meta[len(text) - len(trimmed):])


def trim_trailing_space(text: str, character_meta: list[CharacterMeta]) -> TextFragment:
    trimmed = text.rstrip(" ")
    return TextFragment(trimmed, character_meta[:len(trimmed)])


def collapse_white_space(text: str, character_meta: list[CharacterMeta]) -> TextFragment:
    """
    Collapse whitespace the way a browser renders normal flow text.

    Spaces, tabs and newlines become single spaces, ends are trimmed, and a
    space directly next to a soft break is dropped since the break already
    separates the words. Within a run of spaces the first one's metadata is kept.
    """
    text = _WHITESPACE_CHAR.sub(" ", text)
    text, character_meta = trim_leading_space(text, character_meta)
    text, character_meta = trim_trailing_space(text, character_meta)

    chars = []
    kept_meta = []
    previous = ""
    for char, meta in zip(text, character_meta):
        if char == " " and previous == " ":
            continue
        chars.append(char)
        kept_meta.append(meta)
        previous = char
    fragment = TextFragment("".join(chars), kept_meta)

    # There could still be one space on either side of a soft break
    fragment = replace_text_with_meta(fragment, SOFT_BREAK_PLACEHOLDER + " ", SOFT_BREAK_PLACEHOLDER)
    fragment = replace_text_with_meta(fragment, " " + SOFT_BREAK_PLACEHOLDER, SOFT_BREAK_PLACEHOLDER)
    return fragment
