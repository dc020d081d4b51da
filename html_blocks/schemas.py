"""
Pydantic schemas for the rich document model and the converter options.

ConverterOptions: caller configuration handed to the BlockGenerator
ContentBlock / ContentState: the document model the converter builds

Data flow:
  ElementNode + ConverterOptions → BlockGenerator → list[ContentBlock]
  list[ContentBlock] + EntityMap → ContentState.from_block_array → to_raw() JSON
"""

import uuid
from enum import Enum
from typing import Any, Callable, Mapping, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .exceptions import InvalidConfigurationError


# --- Closed vocabularies ---

class BlockType(str, Enum):
    """Block types the converter derives from tag names."""
    UNSTYLED = "unstyled"
    HEADER_ONE = "header-one"
    HEADER_TWO = "header-two"
    HEADER_THREE = "header-three"
    HEADER_FOUR = "header-four"
    HEADER_FIVE = "header-five"
    HEADER_SIX = "header-six"
    UNORDERED_LIST_ITEM = "unordered-list-item"
    ORDERED_LIST_ITEM = "ordered-list-item"
    BLOCKQUOTE = "blockquote"
    CODE = "code-block"
    ATOMIC = "atomic"


class InlineStyle(str, Enum):
    """Built-in inline styles attached by tag name."""
    BOLD = "BOLD"
    ITALIC = "ITALIC"
    UNDERLINE = "UNDERLINE"
    CODE = "CODE"
    STRIKETHROUGH = "STRIKETHROUGH"


class EntityType(str, Enum):
    LINK = "LINK"
    IMAGE = "IMAGE"


class Mutability(str, Enum):
    MUTABLE = "MUTABLE"
    IMMUTABLE = "IMMUTABLE"
    SEGMENTED = "SEGMENTED"


# --- Per-character metadata ---
# One of these exists for every character of every block while the converter
# works; a NamedTuple keeps that cheap and hashable.

class CharacterMeta(NamedTuple):
    """Style set (insertion ordered, no duplicates) and entity key of one character."""
    style: tuple[str, ...] = ()
    entity: Optional[str] = None


EMPTY_META = CharacterMeta()


# --- Document model ---

class StyleRange(BaseModel):
    offset: int = Field(ge=0)
    length: int = Field(gt=0)
    style: str


class EntityRange(BaseModel):
    offset: int = Field(ge=0)
    length: int = Field(gt=0)
    key: str


class Entity(BaseModel):
    """A link or image referenced from entity ranges by key."""
    type: str
    mutability: str = Mutability.MUTABLE.value
    data: dict[str, Any] = Field(default_factory=dict)


def gen_key() -> str:
    """Random block key; uniqueness within a document is enforced by ContentState."""
    return uuid.uuid4().hex[:5]


class ContentBlock(BaseModel):
    """
    One paragraph-equivalent unit of the document.

    Ranges are derived from per-character metadata by ``create``; every range
    lies inside ``[0, len(text))``.
    """
    key: str = Field(default_factory=gen_key)
    type: str = BlockType.UNSTYLED.value
    text: str = ""
    depth: int = Field(default=0, ge=0)
    style_ranges: list[StyleRange] = Field(default_factory=list)
    entity_ranges: list[EntityRange] = Field(default_factory=list)
    data: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _ranges_within_text(self) -> "ContentBlock":
        size = len(self.text)
        for item in [*self.style_ranges, *self.entity_ranges]:
            if item.offset + item.length > size:
                raise ValueError(
                    f"Range {item.offset}+{item.length} exceeds text length {size}"
                )
        return self

    @classmethod
    def create(
        cls,
        text: str,
        character_list: list[CharacterMeta],
        type: str = BlockType.UNSTYLED.value,
        depth: int = 0,
        data: Optional[Mapping[str, Any]] = None,
    ) -> "ContentBlock":
        """Build a block from text and its parallel per-character metadata."""
        if len(text) != len(character_list):
            raise ValueError(
                f"Metadata length {len(character_list)} does not match text length {len(text)}"
            )
        return cls(
            type=type,
            text=text,
            depth=depth,
            style_ranges=encode_style_ranges(character_list),
            entity_ranges=encode_entity_ranges(character_list),
            data=dict(data or {}),
        )


def encode_style_ranges(character_list: list[CharacterMeta]) -> list[StyleRange]:
    """
    Coalesce per-character style sets into ranges.

    Ranges are grouped by style, styles in the order they are first seen,
    each range a maximal contiguous run.
    """
    styles: list[str] = []
    for meta in character_list:
        for style in meta.style:
            if style not in styles:
                styles.append(style)

    ranges = []
    for style in styles:
        start = None
        for index, meta in enumerate(character_list):
            if style in meta.style:
                if start is None:
                    start = index
            elif start is not None:
                ranges.append(StyleRange(offset=start, length=index - start, style=style))
                start = None
        if start is not None:
            ranges.append(StyleRange(offset=start, length=len(character_list) - start, style=style))
    return ranges


def encode_entity_ranges(character_list: list[CharacterMeta]) -> list[EntityRange]:
    """Coalesce per-character entity keys into maximal runs of one key."""
    ranges = []
    start = None
    current = None
    for index, meta in enumerate(character_list):
        if meta.entity != current:
            if current is not None:
                ranges.append(EntityRange(offset=start, length=index - start, key=current))
            start, current = index, meta.entity
    if current is not None:
        ranges.append(EntityRange(offset=start, length=len(character_list) - start, key=current))
    return ranges


class ContentState(BaseModel):
    """The converted document: blocks in order plus the entities they reference."""
    blocks: list[ContentBlock] = Field(min_length=1)
    entity_map: dict[str, Entity] = Field(default_factory=dict)

    @classmethod
    def from_block_array(
        cls,
        blocks: list[ContentBlock],
        entity_map: Optional[Mapping[str, Entity]] = None,
    ) -> "ContentState":
        """Build a document, re-keying any block whose key is already taken."""
        seen = set()
        keyed = []
        for block in blocks:
            if block.key in seen:
                block = block.model_copy(update={"key": gen_key()})
                while block.key in seen:
                    block = block.model_copy(update={"key": gen_key()})
            seen.add(block.key)
            keyed.append(block)
        return cls(blocks=keyed, entity_map=dict(entity_map or {}))

    def get_entity(self, key: str) -> Entity:
        return self.entity_map[key]

    def get_plain_text(self, delimiter: str = "\n") -> str:
        return delimiter.join(block.text for block in self.blocks)

    def to_raw(self) -> dict:
        """
        Serialize to the raw JSON layout used by rich text editors.

        Entity keys are renumbered 0..n-1 in order of first appearance; the
        entityMap is keyed by the string form, ranges carry the integer.
        """
        storage_keys: dict[str, int] = {}
        raw_blocks = []
        for block in self.blocks:
            entity_ranges = []
            for item in block.entity_ranges:
                if item.key not in storage_keys:
                    storage_keys[item.key] = len(storage_keys)
                entity_ranges.append({
                    "offset": item.offset,
                    "length": item.length,
                    "key": storage_keys[item.key],
                })
            raw_blocks.append({
                "key": block.key,
                "text": block.text,
                "type": block.type,
                "depth": block.depth,
                "inlineStyleRanges": [item.model_dump() for item in block.style_ranges],
                "entityRanges": entity_ranges,
                "data": dict(block.data),
            })

        entity_map = {
            str(index): self.entity_map[key].model_dump()
            for key, index in storage_keys.items()
        }
        return {"blocks": raw_blocks, "entityMap": entity_map}


# --- Converter configuration ---

class CustomBlock(BaseModel):
    """What a custom block hook may return: a type override and/or block data."""
    type: Optional[str] = None
    data: Optional[dict[str, Any]] = None

    @field_validator("type", mode="before")
    @classmethod
    def _enum_to_value(cls, value: Any) -> Any:
        # Hooks may return BlockType.ATOMIC rather than "atomic"
        if isinstance(value, Enum):
            return value.value
        return value


class ConverterOptions(BaseModel):
    """
    Optional caller configuration, read-only for the duration of a conversion.

    Accepts snake_case names or the camelCase aliases (elementStyles,
    customStyleMap, customBlockFn).
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="forbid")

    # tag name → style identifier, used when no built-in tag style applies
    element_styles: dict[str, str] = Field(default_factory=dict, alias="elementStyles")
    # style identifier → declarations, e.g. {"RED": {"color": "red"}}
    custom_style_map: dict[str, dict[str, Any]] = Field(default_factory=dict, alias="customStyleMap")
    # element → None | CustomBlock | {"type": ..., "data": ...}
    custom_block_fn: Optional[Callable[[Any], Any]] = Field(default=None, alias="customBlockFn")

    @classmethod
    def coerce(cls, options: Any) -> "ConverterOptions":
        """Turn None, a mapping or an instance into validated options."""
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        if not isinstance(options, Mapping):
            raise InvalidConfigurationError(
                f"Options must be a mapping, got {type(options).__name__}",
                details={"received_type": type(options).__name__}
            )
        try:
            return cls.model_validate(dict(options))
        except ValidationError as e:
            raise InvalidConfigurationError(
                "Invalid converter options",
                details={"errors": e.errors(include_url=False, include_context=False,
                                            include_input=False)}
            ) from e
