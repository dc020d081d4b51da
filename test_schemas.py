"""
Tests for the document model: range encoding, raw export and options.
"""

import pytest
from pydantic import ValidationError

from html_blocks.exceptions import InvalidConfigurationError
from html_blocks.schemas import (
    CharacterMeta,
    ContentBlock,
    ContentState,
    ConverterOptions,
    CustomBlock,
    Entity,
    EntityRange,
    StyleRange,
    encode_entity_ranges,
    encode_style_ranges,
)

PLAIN = CharacterMeta()
BOLD = CharacterMeta(style=("BOLD",))
BOLD_ITALIC = CharacterMeta(style=("BOLD", "ITALIC"))
ITALIC_BOLD = CharacterMeta(style=("ITALIC", "BOLD"))


def test_style_ranges_grouped_by_first_seen_style():
    ranges = encode_style_ranges([PLAIN, BOLD, BOLD_ITALIC, PLAIN, ITALIC_BOLD])
    assert [(r.style, r.offset, r.length) for r in ranges] == [
        ("BOLD", 1, 2),
        ("BOLD", 4, 1),
        ("ITALIC", 2, 1),
        ("ITALIC", 4, 1),
    ]


def test_entity_ranges_split_on_key_change():
    metas = [
        CharacterMeta(entity="1"),
        CharacterMeta(entity="1"),
        CharacterMeta(entity="2"),
        PLAIN,
        CharacterMeta(entity="1"),
    ]
    assert [(r.key, r.offset, r.length) for r in encode_entity_ranges(metas)] == [
        ("1", 0, 2),
        ("2", 2, 1),
        ("1", 4, 1),
    ]


def test_create_rejects_mismatched_lengths():
    with pytest.raises(ValueError):
        ContentBlock.create(text="abc", character_list=[PLAIN])


def test_ranges_must_fit_text():
    with pytest.raises(ValidationError):
        ContentBlock(text="ab", style_ranges=[StyleRange(offset=1, length=2, style="BOLD")])


def test_from_block_array_rekeys_duplicates():
    blocks = [ContentBlock(key="same", text="a"), ContentBlock(key="same", text="b")]
    content_state = ContentState.from_block_array(blocks)
    keys = [block.key for block in content_state.blocks]
    assert keys[0] == "same"
    assert len(set(keys)) == 2


def test_content_state_is_never_empty():
    with pytest.raises(ValidationError):
        ContentState(blocks=[])


def test_to_raw_renumbers_entities_by_first_use():
    blocks = [
        ContentBlock(key="a", text="xy", entity_ranges=[
            EntityRange(offset=0, length=1, key="7"),
            EntityRange(offset=1, length=1, key="3"),
        ]),
        ContentBlock(key="b", text="z", type="header-one", data={"k": 1}, entity_ranges=[
            EntityRange(offset=0, length=1, key="7"),
        ]),
    ]
    entities = {
        "3": Entity(type="IMAGE", data={"src": "/i"}),
        "7": Entity(type="LINK", data={"url": "/u"}),
        "9": Entity(type="LINK", data={"url": "/unused"}),
    }
    raw = ContentState.from_block_array(blocks, entities).to_raw()
    assert raw["entityMap"] == {
        "0": {"type": "LINK", "mutability": "MUTABLE", "data": {"url": "/u"}},
        "1": {"type": "IMAGE", "mutability": "MUTABLE", "data": {"src": "/i"}},
    }
    assert raw["blocks"][0]["entityRanges"] == [
        {"offset": 0, "length": 1, "key": 0},
        {"offset": 1, "length": 1, "key": 1},
    ]
    assert raw["blocks"][1] == {
        "key": "b",
        "text": "z",
        "type": "header-one",
        "depth": 0,
        "inlineStyleRanges": [],
        "entityRanges": [{"offset": 0, "length": 1, "key": 0}],
        "data": {"k": 1},
    }


def test_plain_text_joins_blocks():
    content_state = ContentState(blocks=[ContentBlock(text="a"), ContentBlock(text="b")])
    assert content_state.get_plain_text() == "a\nb"


def test_options_accept_aliases_and_field_names():
    by_alias = ConverterOptions.coerce({"elementStyles": {"sup": "SUP"}})
    by_name = ConverterOptions.coerce({"element_styles": {"sup": "SUP"}})
    assert by_alias.element_styles == by_name.element_styles == {"sup": "SUP"}


def test_options_coerce_passthrough_and_default():
    options = ConverterOptions(customStyleMap={"RED": {"color": "red"}})
    assert ConverterOptions.coerce(options) is options
    assert ConverterOptions.coerce(None).custom_block_fn is None


def test_options_errors_are_wrapped():
    with pytest.raises(InvalidConfigurationError) as excinfo:
        ConverterOptions.coerce({"elementStyles": {"sup": 5}})
    assert excinfo.value.details["errors"]
    assert excinfo.value.to_response()["error"] == "InvalidConfigurationError"


def test_custom_block_accepts_enum_type():
    from html_blocks.schemas import BlockType
    assert CustomBlock(type=BlockType.ATOMIC).type == "atomic"
