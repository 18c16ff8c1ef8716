"""Style rules: a tag selector plus visual properties."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Mapping, Optional


HEX_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")

SHAPES = (
    "Box",
    "RoundedBox",
    "Circle",
    "Ellipse",
    "Hexagon",
    "Diamond",
    "Cylinder",
    "Bucket",
    "Pipe",
    "Person",
    "Robot",
    "Folder",
    "WebBrowser",
    "Window",
    "Terminal",
    "Shell",
    "MobileDevicePortrait",
    "MobileDeviceLandscape",
    "Component",
)
_SHAPE_LOOKUP = {s.lower(): s for s in SHAPES}

ELEMENT_PROPERTIES = (
    "shape",
    "background",
    "color",
    "stroke",
    "border",
    "icon",
    "width",
    "height",
    "font_size",
    "opacity",
    "metadata",
    "description",
)
RELATIONSHIP_PROPERTIES = (
    "thickness",
    "color",
    "dashed",
    "routing",
    "font_size",
    "width",
    "opacity",
)

# Theme documents use camelCase keys.
_THEME_KEYS = {"fontSize": "font_size", "strokeWidth": "thickness"}

DEFAULT_ELEMENT_STYLE: Dict[str, Any] = {
    "shape": "Box",
    "background": "#dddddd",
    "color": "#000000",
    "stroke": "#9a9a9a",
    "border": "solid",
    "icon": None,
    "width": 450,
    "height": 300,
    "font_size": 24,
    "opacity": 100,
    "metadata": True,
    "description": True,
}

DEFAULT_RELATIONSHIP_STYLE: Dict[str, Any] = {
    "thickness": 2,
    "color": "#707070",
    "dashed": True,
    "routing": "direct",
    "font_size": 24,
    "width": 200,
    "opacity": 100,
}

RuleTarget = Literal["element", "relationship"]


def normalise_shape(value: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"Invalid shape: {value!r}")
    key = re.sub(r"[^a-z]", "", value.lower())
    try:
        return _SHAPE_LOOKUP[key]
    except KeyError:
        raise ValueError(f"Unknown shape: {value}") from None


def normalise_color(value: str) -> str:
    if not isinstance(value, str) or not HEX_COLOR_RE.match(value):
        raise ValueError(f"Invalid color: {value}")
    value = value.lower()
    if len(value) == 4:
        value = "#" + "".join(ch * 2 for ch in value[1:])
    return value


@dataclass(frozen=True)
class StyleRule:
    selector: str
    target: RuleTarget = "element"
    properties: Dict[str, Any] = field(default_factory=dict, hash=False)
    source: str = "local"

    def matches(self, tags) -> bool:
        return self.selector in tags

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any],
        *,
        target: RuleTarget = "element",
        source: str = "local",
    ) -> "StyleRule":
        """Build a rule from a style declaration or a theme entry.

        Unset (None) properties are dropped so they never override earlier rules.
        """
        selector = data.get("tag")
        if not isinstance(selector, str) or not selector:
            raise ValueError("Style rule requires a tag selector")
        allowed = ELEMENT_PROPERTIES if target == "element" else RELATIONSHIP_PROPERTIES
        properties: Dict[str, Any] = {}
        for key, value in data.items():
            key = _THEME_KEYS.get(key, key)
            if key not in allowed or value is None:
                continue
            if key == "shape":
                value = normalise_shape(value)
            elif key in ("background", "color", "stroke"):
                value = normalise_color(value)
            elif key in ("border", "routing"):
                if not isinstance(value, str):
                    raise ValueError(f"Invalid {key}: {value!r}")
                value = value.lower()
            properties[key] = value
        return cls(selector=selector, target=target, properties=properties, source=source)


def element_rule(tag: str, source: str = "local", **properties: Optional[Any]) -> StyleRule:
    return StyleRule.from_mapping({"tag": tag, **properties}, target="element", source=source)


def relationship_rule(tag: str, source: str = "local", **properties: Optional[Any]) -> StyleRule:
    return StyleRule.from_mapping({"tag": tag, **properties}, target="relationship", source=source)
