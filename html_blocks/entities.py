"""
Entity resolution: anchors become LINK entities, images become IMAGE entities.

Entities live in an EntityMap owned by one conversion, never in a
process-wide registry.
"""

import re
from types import MappingProxyType
from typing import Any, Optional

from .nodes import ElementNode
from .schemas import Entity, EntityType, Mutability

DATA_ATTRIBUTE = re.compile(r"^data-[a-z0-9-]+$")

# Element attribute → entity data key
ELEM_ATTR_MAP = MappingProxyType({
    "a": MappingProxyType({"href": "url", "rel": "rel", "target": "target", "title": "title"}),
    "img": MappingProxyType({"src": "src", "alt": "alt"}),
})


class EntityMap:
    """Creates entities and hands out their keys ("1", "2", ...)."""

    def __init__(self):
        self._entities: dict[str, Entity] = {}
        self._last_key = 0

    def create(self, entity_type: str, mutability: str, data: Optional[dict[str, Any]] = None) -> str:
        self._last_key += 1
        key = str(self._last_key)
        self._entities[key] = Entity(type=entity_type, mutability=mutability, data=data or {})
        return key

    def get(self, key: str) -> Entity:
        return self._entities[key]

    def to_dict(self) -> dict[str, Entity]:
        return dict(self._entities)

    def __contains__(self, key: object) -> bool:
        return key in self._entities

    def __len__(self) -> int:
        return len(self._entities)


def get_entity_data(tag_name: str, element: ElementNode) -> dict[str, Any]:
    """Collect mapped attributes plus data-* attributes; the first duplicate wins."""
    data: dict[str, Any] = {}
    attr_map = ELEM_ATTR_MAP.get(tag_name)
    if attr_map is None:
        return data

    for name, value in element.attributes:
        if value is None:
            continue
        if name in attr_map:
            data.setdefault(attr_map[name], value)
        elif DATA_ATTRIBUTE.match(name):
            data.setdefault(name, value)
    return data


def _link_entity(tag_name: str, element: ElementNode, entity_map: EntityMap) -> Optional[str]:
    data = get_entity_data(tag_name, element)
    # Don't add <a> elements with no href
    if data.get("url") is None:
        return None
    return entity_map.create(EntityType.LINK.value, Mutability.MUTABLE.value, data)


def _image_entity(tag_name: str, element: ElementNode, entity_map: EntityMap) -> Optional[str]:
    data = get_entity_data(tag_name, element)
    # Don't add <img> elements with no src
    if data.get("src") is None:
        return None
    return entity_map.create(EntityType.IMAGE.value, Mutability.MUTABLE.value, data)


ELEM_TO_ENTITY = MappingProxyType({
    "a": _link_entity,
    "img": _image_entity,
})


def create_entity_for_element(tag_name: str, element: ElementNode, entity_map: EntityMap) -> Optional[str]:
    """Entity key for element, or None when the tag carries no entity."""
    factory = ELEM_TO_ENTITY.get(tag_name)
    if factory is None:
        return None
    return factory(tag_name, element, entity_map)
