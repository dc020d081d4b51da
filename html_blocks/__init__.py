"""
html_blocks

Converts HTML element trees into a rich document: ordered blocks of text with
inline style ranges and link/image entity ranges.
- Preprocessor: HTML string → ElementNode tree
- BlockGenerator: ElementNode tree → ContentBlocks
- HTMLImporter: both stages behind one object

Public API surface:
  Entry points   — state_from_element, state_from_html, state_from_html_file, HTMLImporter
  Node variant   — ElementNode, TextNode, from_soup, from_lxml
  Document model — ContentState, ContentBlock, Entity, StyleRange, EntityRange
  Configuration  — ConverterOptions, CustomBlock, BlockType, InlineStyle
  Error types    — InvalidInputError, InvalidConfigurationError
"""

from .converter import BlockGenerator, state_from_element
from .main import HTMLImporter, state_from_html, state_from_html_file
from .preprocessor import Preprocessor, parse_html

from .nodes import ElementNode, TextNode, from_soup, from_lxml

from .schemas import (
    BlockType,
    ContentBlock,
    ContentState,
    ConverterOptions,
    CustomBlock,
    Entity,
    EntityRange,
    EntityType,
    InlineStyle,
    StyleRange,
)

from .exceptions import (
    HTMLBlocksError,
    InvalidConfigurationError,
    InvalidInputError,
    PreprocessorError,
)

__version__ = "0.1.0"
__all__ = [
    "BlockGenerator",
    "state_from_element",
    "HTMLImporter",
    "state_from_html",
    "state_from_html_file",
    "Preprocessor",
    "parse_html",
    "ElementNode",
    "TextNode",
    "from_soup",
    "from_lxml",
    "BlockType",
    "ContentBlock",
    "ContentState",
    "ConverterOptions",
    "CustomBlock",
    "Entity",
    "EntityRange",
    "EntityType",
    "InlineStyle",
    "StyleRange",
    "HTMLBlocksError",
    "InvalidConfigurationError",
    "InvalidInputError",
    "PreprocessorError",
]
