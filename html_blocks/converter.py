"""
Block generator: walks an element tree and builds the rich document.

Every element is either block-level (starts a new ParsedBlock) or inline
(adds styles/entities to the text below it). Text nodes append fragments to
the innermost open block using that block's current inline scope. After the
walk each block's fragments are concatenated, whitespace-normalized and
turned into ContentBlocks.

Pipeline position: ElementNode tree (from nodes.py / preprocessor.py) in,
ContentState out.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Mapping, NamedTuple, Optional

from pydantic import ValidationError

from .entities import EntityMap, create_entity_for_element
from .exceptions import InvalidConfigurationError, InvalidInputError
from .logger import get_module_logger
from .nodes import ElementNode, Node, TextNode, as_node
from .normalizer import (
    SOFT_BREAK_PLACEHOLDER,
    TextFragment,
    collapse_white_space,
    concat_fragments,
    trim_leading_newline,
)
from .schemas import (
    BlockType,
    CharacterMeta,
    ContentBlock,
    ContentState,
    ConverterOptions,
    CustomBlock,
)
from .styles import (
    NO_STYLE,
    StyleSet,
    add_style_from_tag_name,
    add_styles_from_style_attribute,
    build_css_style_map,
)

logger = get_module_logger("converter")

NO_ENTITY = None

LINE_BREAKS = re.compile(r"\r\n|\r|\n")
# Markdown importers use a zero-width space where they mean a soft break
ZERO_WIDTH_SPACE = "\u200b"
# Self-closing elements still take up one character so an entity can attach
SELF_CLOSING_PLACEHOLDER = "~"

INLINE_ELEMENTS = frozenset([
    "a", "abbr", "area", "audio", "b", "bdi", "bdo", "br", "button",
    "canvas", "cite", "code", "command", "datalist", "del", "dfn", "em",
    "embed", "i", "iframe", "img", "input", "ins", "kbd", "keygen",
    "label", "map", "mark", "meter", "noscript", "object", "output",
    "progress", "q", "ruby", "s", "samp", "script", "select", "small",
    "span", "strong", "sub", "sup", "textarea", "time", "u", "var",
    "video", "wbr", "acronym", "applet", "basefont", "big", "font",
    "isindex", "strike", "style", "tt",
])

# Block-level elements that can't hold text as a direct child (some can't
# have children at all). They still open a block context but never render.
SPECIAL_ELEMENTS = frozenset([
    "area", "base", "br", "col", "colgroup", "command", "dl", "embed",
    "head", "hgroup", "hr", "iframe", "img", "input", "keygen", "link",
    "meta", "ol", "optgroup", "option", "param", "script", "select",
    "source", "style", "table", "tbody", "textarea", "tfoot", "thead",
    "title", "tr", "track", "ul", "wbr", "basefont", "dialog", "dir",
    "isindex",
])

SELF_CLOSING_ELEMENTS = frozenset(["img"])

TAG_BLOCK_TYPES = {
    "blockquote": BlockType.BLOCKQUOTE.value,
    "h1": BlockType.HEADER_ONE.value,
    "h2": BlockType.HEADER_TWO.value,
    "h3": BlockType.HEADER_THREE.value,
    "h4": BlockType.HEADER_FOUR.value,
    "h5": BlockType.HEADER_FIVE.value,
    "h6": BlockType.HEADER_SIX.value,
    "pre": BlockType.CODE.value,
    "figure": BlockType.ATOMIC.value,
}

DEPTH_BLOCK_TYPES = frozenset([
    BlockType.UNORDERED_LIST_ITEM.value,
    BlockType.ORDERED_LIST_ITEM.value,
])


class Scope(NamedTuple):
    """
    One level of inline scope: the styles and entity applied to text below it.

    push() returns a new scope pointing back at this one, so sibling subtrees
    can never see each other's styles.
    """
    style: StyleSet
    entity: Optional[str]
    parent: Optional["Scope"]

    def push(self, style: StyleSet, entity: Optional[str]) -> "Scope":
        return Scope(style, entity, self)


ROOT_SCOPE = Scope(NO_STYLE, NO_ENTITY, None)


@dataclass
class ParsedBlock:
    """
    A block while it is being parsed.

    Holds the block's own data (tag, type, depth, fragments) and the parser
    state for its contents (the current inline scope).
    """
    tag_name: str
    type: str
    depth: int = 0
    data: Optional[dict[str, Any]] = None
    text_fragments: list[TextFragment] = field(default_factory=list)
    scope: Scope = ROOT_SCOPE


# Work stack actions; the walk is iterative so depth is bounded by memory only
_VISIT = 0
_EXIT_BLOCK = 1
_EXIT_INLINE = 2


class BlockGenerator:
    """Converts one element tree into a list of ContentBlocks."""

    def __init__(self, options: Optional[Any] = None):
        self.options = ConverterOptions.coerce(options)
        self.element_styles = self.options.element_styles
        # Built once; compared against each style="" declaration
        self.css_style_map = build_css_style_map(self.options.custom_style_map)
        self._reset()

    def _reset(self):
        # The ancestor block context, e.g. [body, ul, li]; an li needs to know
        # whether its parent is ul or ol.
        self.block_stack: list[ParsedBlock] = []
        # The blocks that will form the output in order, e.g. [p, li, li, blockquote]
        self.block_list: list[ParsedBlock] = []
        self.depth = 0
        self.entity_map = EntityMap()

    def convert(self, element: Node) -> ContentState:
        """Walk element and return its blocks together with their entities."""
        blocks = self.process(element)
        return ContentState.from_block_array(blocks, self.entity_map.to_dict())

    def process(self, element: Node) -> list[ContentBlock]:
        """
        Walk element and return its blocks.

        The root is always treated as a block element. A bare TextNode root is
        wrapped in an unstyled block.

        Entity keys in the blocks refer to self.entity_map, which the next
        call replaces; use convert() to keep the two together.
        """
        if not isinstance(element, (ElementNode, TextNode)):
            raise InvalidInputError(
                f"Expected an element or text node, got {type(element).__name__}",
                received_type=type(element).__name__
            )
        if isinstance(element, TextNode):
            element = ElementNode("div", child_nodes=[element])

        self._reset()
        logger.info(f"Converting <{element.tag_name}>")
        self._walk(element)

        content_blocks = []
        for block in self.block_list:
            content_block = self._finish_block(block)
            if content_block is not None:
                content_blocks.append(content_block)

        if not content_blocks:
            # The document may never be empty
            content_blocks.append(ContentBlock.create(text="", character_list=[]))

        logger.info(
            f"Converted {len(content_blocks)} blocks, {len(self.entity_map)} entities"
        )
        return content_blocks

    def _finish_block(self, block: ParsedBlock) -> Optional[ContentBlock]:
        text, character_meta = concat_fragments(block.text_fragments)
        include_empty_block = False
        # A block holding only a soft break is kept, minus the break
        if text == SOFT_BREAK_PLACEHOLDER:
            include_empty_block = True
            text, character_meta = "", []

        if block.type == BlockType.CODE.value:
            text, character_meta = trim_leading_newline(text, character_meta)
        else:
            text, character_meta = collapse_white_space(text, character_meta)

        # Whitespace is settled, so soft breaks can become real newlines
        text = text.replace(SOFT_BREAK_PLACEHOLDER, "\n")

        if not text and not include_empty_block:
            logger.debug(f"Dropping empty <{block.tag_name}> block")
            return None

        return ContentBlock.create(
            text=text,
            character_list=character_meta,
            type=block.type,
            depth=block.depth,
            data=block.data,
        )

    # --- Traversal ---

    def _walk(self, root: ElementNode):
        stack: list[tuple] = [(_VISIT, root, True)]
        while stack:
            action, *payload = stack.pop()
            if action == _VISIT:
                node, is_root = payload
                if is_root:
                    self._enter_block_element(node, stack)
                else:
                    self._visit_node(node, stack)
            elif action == _EXIT_BLOCK:
                self._exit_block_element(*payload)
            else:
                self._exit_inline_element(*payload)

    def _push_children(self, element: ElementNode, stack: list):
        for child in reversed(element.child_nodes):
            stack.append((_VISIT, child, False))

    def _visit_node(self, node: Node, stack: list):
        if isinstance(node, TextNode):
            self._process_text_node(node)
        elif isinstance(node, ElementNode):
            if node.tag_name in INLINE_ELEMENTS:
                self._enter_inline_element(node, stack)
            else:
                self._enter_block_element(node, stack)
        else:
            raise InvalidInputError(
                f"Expected an element or text node, got {type(node).__name__}",
                received_type=type(node).__name__
            )

    def _enter_block_element(self, element: ElementNode, stack: list):
        tag_name = element.tag_name
        block_type, data = self._custom_block(element)
        if not block_type:
            block_type = self.get_block_type_from_tag_name(tag_name)

        has_depth = block_type in DEPTH_BLOCK_TYPES
        allow_render = tag_name not in SPECIAL_ELEMENTS
        block = ParsedBlock(
            tag_name=tag_name,
            type=block_type,
            depth=self.depth if has_depth else 0,
            data=data,
        )
        incremented = False
        if allow_render:
            self.block_list.append(block)
            if has_depth:
                self.depth += 1
                incremented = True
        self.block_stack.append(block)

        stack.append((_EXIT_BLOCK, incremented))
        self._push_children(element, stack)

    def _exit_block_element(self, incremented: bool):
        self.block_stack.pop()
        if incremented:
            self.depth -= 1

    def _enter_inline_element(self, element: ElementNode, stack: list):
        tag_name = element.tag_name
        if tag_name == "br":
            self._process_text(SOFT_BREAK_PLACEHOLDER)
            return

        block = self.block_stack[-1]
        style = add_style_from_tag_name(block.scope.style, tag_name, self.element_styles)
        style_attribute = element.get_attribute("style")
        if style_attribute:
            style = add_styles_from_style_attribute(style, style_attribute, self.css_style_map)

        # Without an entity of its own the element keeps the enclosing one
        entity_key = create_entity_for_element(tag_name, element, self.entity_map)
        if entity_key is None:
            entity_key = block.scope.entity

        block.scope = block.scope.push(style, entity_key)
        stack.append((_EXIT_INLINE, block, tag_name))
        self._push_children(element, stack)

    def _exit_inline_element(self, block: ParsedBlock, tag_name: str):
        if tag_name in SELF_CLOSING_ELEMENTS:
            self._process_text(SELF_CLOSING_PLACEHOLDER)
        block.scope = block.scope.parent

    def _process_text_node(self, node: TextNode):
        # \r is reserved for the soft break placeholder
        text = LINE_BREAKS.sub("\n", node.value)
        text = text.replace(ZERO_WIDTH_SPACE, SOFT_BREAK_PLACEHOLDER)
        self._process_text(text)

    def _process_text(self, text: str):
        if not text:
            return
        block = self.block_stack[-1]
        meta = CharacterMeta(style=block.scope.style, entity=block.scope.entity)
        block.text_fragments.append(TextFragment(text, [meta] * len(text)))

    # --- Block types ---

    def _custom_block(self, element: ElementNode) -> tuple[Optional[str], Optional[dict]]:
        custom_block_fn = self.options.custom_block_fn
        if custom_block_fn is None:
            return None, None

        result = custom_block_fn(element)
        if result is None:
            return None, None
        if not isinstance(result, CustomBlock):
            if not isinstance(result, Mapping):
                raise InvalidConfigurationError(
                    f"customBlockFn must return None or a mapping, got {type(result).__name__}",
                    details={"tag_name": element.tag_name}
                )
            try:
                result = CustomBlock.model_validate(dict(result))
            except ValidationError as e:
                raise InvalidConfigurationError(
                    "customBlockFn returned an invalid block",
                    details={
                        "tag_name": element.tag_name,
                        "errors": e.errors(include_url=False, include_context=False,
                                           include_input=False)
                    }
                ) from e

        logger.debug(f"Custom block for <{element.tag_name}>: type={result.type!r}")
        return result.type, result.data

    def get_block_type_from_tag_name(self, tag_name: str) -> str:
        if tag_name == "li":
            parent = self.block_stack[-1] if self.block_stack else None
            if parent is not None and parent.tag_name == "ol":
                return BlockType.ORDERED_LIST_ITEM.value
            return BlockType.UNORDERED_LIST_ITEM.value
        return TAG_BLOCK_TYPES.get(tag_name, BlockType.UNSTYLED.value)


def state_from_element(element: Any, options: Optional[Any] = None) -> ContentState:
    """
    Convert an element tree to a ContentState.

    element may be an ElementNode/TextNode or a BeautifulSoup / lxml element,
    which is adapted first.
    """
    return BlockGenerator(options).convert(as_node(element))
