"""
The Node variant the converter walks, plus adapters from parsed trees.

The converter only ever sees ElementNode and TextNode. Trees produced by
BeautifulSoup or lxml are turned into that shape up front by from_soup() and
from_lxml(); tests build synthetic trees by hand.

Both adapters walk with an explicit stack so very deep documents don't hit
the interpreter's recursion limit.
"""

from typing import Any, Iterable, Mapping, Optional, Union

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString
from lxml import etree

from .exceptions import InvalidInputError


class TextNode:
    """A run of character data."""

    __slots__ = ("value",)

    def __init__(self, value: str):
        if not isinstance(value, str):
            raise InvalidInputError(
                f"Text node value must be a string, got {type(value).__name__}",
                received_type=type(value).__name__
            )
        self.value = value

    def __repr__(self) -> str:
        return f"TextNode({self.value!r})"


class ElementNode:
    """
    An element with a lower-cased tag name, ordered attributes and ordered children.

    Attributes may be given as a mapping or as (name, value) pairs; duplicate
    names are kept in order and get_attribute() returns the first.
    """

    __slots__ = ("tag_name", "attributes", "child_nodes")

    def __init__(
        self,
        tag_name: str,
        attributes: Optional[Union[Mapping[str, str], Iterable[tuple[str, str]]]] = None,
        child_nodes: Optional[Iterable["Node"]] = None
    ):
        if not isinstance(tag_name, str) or not tag_name:
            raise InvalidInputError(
                "Element tag name must be a non-empty string",
                received_type=type(tag_name).__name__
            )
        self.tag_name = tag_name.lower()

        if isinstance(attributes, Mapping):
            attributes = attributes.items()
        self.attributes: list[tuple[str, str]] = [
            (str(name), value) for name, value in (attributes or [])
        ]

        self.child_nodes: list[Node] = []
        for child in child_nodes or []:
            self.append_child(child)

    def append_child(self, child: "Node") -> "Node":
        if not isinstance(child, (ElementNode, TextNode)):
            raise InvalidInputError(
                f"Child of <{self.tag_name}> is not a node: {type(child).__name__}",
                received_type=type(child).__name__
            )
        self.child_nodes.append(child)
        return child

    def get_attribute(self, name: str) -> Optional[str]:
        for attr_name, value in self.attributes:
            if attr_name == name:
                return value
        return None

    def __repr__(self) -> str:
        return f"ElementNode({self.tag_name!r}, {len(self.child_nodes)} children)"


Node = Union[ElementNode, TextNode]


# --- BeautifulSoup adapter ---

def _soup_attributes(tag: Tag) -> list[tuple[str, str]]:
    attributes = []
    for name, value in tag.attrs.items():
        # Multi-valued attributes (class, rel) come back as lists
        if isinstance(value, (list, tuple)):
            value = " ".join(value)
        attributes.append((name, value))
    return attributes


def from_soup(root: Any) -> Node:
    """
    Convert a BeautifulSoup tag (or string) into an ElementNode tree.

    Comments, doctypes, CDATA and processing instructions are dropped. Every
    other string becomes a text node, including the typed strings bs4 keeps
    under <rt>, <rp>, <script>, <style> and <template>.
    """
    if isinstance(root, NavigableString):
        if isinstance(root, PreformattedString):
            raise InvalidInputError(
                f"Cannot convert {type(root).__name__} to a node",
                received_type=type(root).__name__
            )
        return TextNode(str(root))
    if not isinstance(root, Tag):
        raise InvalidInputError(
            f"Expected a BeautifulSoup Tag, got {type(root).__name__}",
            received_type=type(root).__name__
        )

    # BeautifulSoup objects are tags named "[document]"
    name = "html" if isinstance(root, BeautifulSoup) else root.name
    top = ElementNode(name, _soup_attributes(root))
    stack = [(root, top)]
    while stack:
        tag, node = stack.pop()
        for child in tag.children:
            if isinstance(child, Tag):
                element = ElementNode(child.name, _soup_attributes(child))
                node.child_nodes.append(element)
                stack.append((child, element))
            elif isinstance(child, NavigableString) and not isinstance(child, PreformattedString):
                node.child_nodes.append(TextNode(str(child)))
    return top


# --- lxml adapter ---

def _local_name(tag: str) -> str:
    # "{http://www.w3.org/1999/xhtml}p" → "p"
    return tag.rsplit("}", 1)[-1]


def from_lxml(root: Any) -> ElementNode:
    """
    Convert an lxml element into an ElementNode tree.

    lxml keeps character data in .text and .tail; both become TextNodes in
    document order. Comments and processing instructions are skipped but their
    tails are kept.
    """
    if not isinstance(root, etree._Element) or not isinstance(root.tag, str):
        raise InvalidInputError(
            f"Expected an lxml element, got {type(root).__name__}",
            received_type=type(root).__name__
        )

    top = ElementNode(_local_name(root.tag), root.attrib.items())
    stack = [(root, top)]
    while stack:
        elem, node = stack.pop()
        if elem.text:
            node.child_nodes.append(TextNode(elem.text))
        for child in elem:
            if isinstance(child.tag, str):
                element = ElementNode(_local_name(child.tag), child.attrib.items())
                node.child_nodes.append(element)
                stack.append((child, element))
            if child.tail:
                node.child_nodes.append(TextNode(child.tail))
    return top


def as_node(obj: Any) -> Node:
    """Return obj as a Node, converting BeautifulSoup and lxml trees."""
    if isinstance(obj, (ElementNode, TextNode)):
        return obj
    if isinstance(obj, (Tag, NavigableString)):
        return from_soup(obj)
    if isinstance(obj, etree._Element):
        return from_lxml(obj)
    raise InvalidInputError(
        f"Expected an element or text node, got {type(obj).__name__}",
        received_type=type(obj).__name__
    )
