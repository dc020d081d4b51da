"""
Inline style resolution.

Two sources add styles to the set active for an inline element:
  - the tag name (b/strong, i/em, ins, code, del, or a caller elementStyles entry)
  - the inline style="" attribute, matched declaration by declaration against
    the caller's customStyleMap rendered to CSS

Style sets are tuples kept in insertion order with no duplicates, so adding a
style twice is a no-op and ranges come out in first-seen order.
"""

import re
from typing import Any, Mapping, Optional

from .schemas import InlineStyle

StyleSet = tuple[str, ...]

NO_STYLE: StyleSet = ()

TAG_STYLES = {
    "b": InlineStyle.BOLD.value,
    "strong": InlineStyle.BOLD.value,
    "i": InlineStyle.ITALIC.value,
    "em": InlineStyle.ITALIC.value,
    "ins": InlineStyle.UNDERLINE.value,
    "code": InlineStyle.CODE.value,
    "del": InlineStyle.STRIKETHROUGH.value,
}

# CSS properties that take bare numbers; every other numeric value gets "px".
# Vendor-prefixed spellings (WebkitFlex, msFlexGrow, ...) are included below.
_UNITLESS_BASE = frozenset([
    "animationIterationCount", "borderImageOutset", "borderImageSlice",
    "borderImageWidth", "boxFlex", "boxFlexGroup", "boxOrdinalGroup",
    "columnCount", "flex", "flexGrow", "flexPositive", "flexShrink",
    "flexNegative", "flexOrder", "gridRow", "gridColumn", "fontWeight",
    "lineClamp", "lineHeight", "opacity", "order", "orphans", "tabSize",
    "widows", "zIndex", "zoom",
    # SVG
    "fillOpacity", "floodOpacity", "stopOpacity", "strokeDasharray",
    "strokeDashoffset", "strokeMiterlimit", "strokeOpacity", "strokeWidth",
])
UNITLESS_PROPERTIES = _UNITLESS_BASE | frozenset(
    prefix + name[0].upper() + name[1:]
    for prefix in ("Webkit", "ms", "Moz", "O")
    for name in _UNITLESS_BASE
)

# Values of the CSS "content" property that must stay unquoted
_UNQUOTED_CONTENT = re.compile(
    r"^(normal|none|(\b(url\([^)]*\)|chapter_counter|attr\([^)]*\)|(no-)?(open|close)-quote|inherit)((\b\s*)|$|\s+))+)$"
)
_UPPERCASE = re.compile(r"([A-Z])")
_MS_PREFIX = re.compile(r"^ms-")


def add_style(styles: StyleSet, style: str) -> StyleSet:
    """Return styles with style appended unless already present."""
    if style in styles:
        return styles
    return styles + (style,)


def add_style_from_tag_name(
    styles: StyleSet,
    tag_name: str,
    element_styles: Optional[Mapping[str, str]] = None
) -> StyleSet:
    """Add the built-in style for tag_name, falling back to element_styles."""
    style = TAG_STYLES.get(tag_name)
    if style is None and element_styles:
        style = element_styles.get(tag_name)
    if not style:
        return styles
    return add_style(styles, style)


def hyphenate_style_name(name: str) -> str:
    """camelCase → kebab-case; msTransition → -ms-transition."""
    return _MS_PREFIX.sub("-ms-", _UPPERCASE.sub(r"-\1", name).lower())


def _format_value(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


def _build_rule(key: str, value: Any) -> str:
    is_number = isinstance(value, (int, float)) and not isinstance(value, bool)
    if is_number and key not in UNITLESS_PROPERTIES:
        value = f"{_format_value(value)}px"
    else:
        value = _format_value(value)
        if key == "content" and not _UNQUOTED_CONTENT.match(value):
            value = "'" + value.replace("'", "\\'") + "'"
    return f"{hyphenate_style_name(key)}: {value};  "


def style_to_css_string(rules: Optional[Mapping[str, Any]]) -> str:
    """
    Render a structured declaration set as a CSS string.

    {"fontSize": 12, "color": "red"} → "font-size: 12px;  color: red;"
    List values emit one declaration per item.
    """
    if not rules:
        return ""

    result = ""
    for key, value in rules.items():
        if isinstance(value, (list, tuple)):
            for item in value:
                result += _build_rule(key, item)
        else:
            result += _build_rule(key, value)
    return result.strip()


def normalize_css(text: str) -> str:
    """Drop spaces and semicolons so declarations compare by content only."""
    return text.replace(" ", "").replace(";", "")


def build_css_style_map(custom_style_map: Optional[Mapping[str, Mapping[str, Any]]]) -> dict[str, str]:
    """Reverse customStyleMap: normalized CSS string → style identifier."""
    css_map = {}
    for style_name, rules in (custom_style_map or {}).items():
        css_map[normalize_css(style_to_css_string(rules))] = style_name
    return css_map


def add_styles_from_style_attribute(
    styles: StyleSet,
    style_attribute: str,
    css_style_map: Mapping[str, str]
) -> StyleSet:
    """Add every custom style whose CSS equals one declaration of style_attribute."""
    for declaration in style_attribute.split(";"):
        normalized = normalize_css(declaration)
        if normalized and normalized in css_style_map:
            styles = add_style(styles, css_style_map[normalized])
    return styles
