"""Theme loading.

A theme is a JSON document in the Structurizr theme format::

    {"name": "...", "elements": [{"tag": "Person", "shape": "Person"}],
     "relationships": [{"tag": "Relationship", "dashed": false}]}

Each declared theme is fetched once, synchronously, with no retry. Any
failure is fatal to the build.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin, urlparse
from urllib.request import url2pathname

import requests
from jsonschema import Draft202012Validator, ValidationError

from archcode.errors import ThemeLoadFailure
from archcode.styles.rules import StyleRule
from archcode.utils.config import settings
from archcode.utils.file_utils import read_text_file


logger = logging.getLogger(__name__)

DEFAULT_THEME = "default"

_RULE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["tag"],
    "properties": {"tag": {"type": "string", "minLength": 1}},
}

THEME_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "description": {"type": "string"},
        "elements": {"type": "array", "items": _RULE_SCHEMA},
        "relationships": {"type": "array", "items": _RULE_SCHEMA},
    },
}

_VALIDATOR = Draft202012Validator(THEME_SCHEMA)

BUILTIN_THEMES: Dict[str, Dict[str, Any]] = {
    DEFAULT_THEME: {
        "name": "Default",
        "elements": [
            {"tag": "Element", "shape": "RoundedBox", "color": "#ffffff"},
            {"tag": "Person", "shape": "Person", "background": "#08427b"},
            {"tag": "Software System", "background": "#1168bd"},
            {"tag": "Container", "background": "#438dd5"},
            {"tag": "Component", "background": "#85bbf0", "color": "#000000"},
            {"tag": "Deployment Node", "background": "#ffffff", "color": "#000000"},
            {"tag": "Infrastructure Node", "background": "#ffffff", "color": "#000000"},
            {"tag": "Database", "shape": "Cylinder"},
        ],
        "relationships": [
            {"tag": "Relationship", "dashed": False},
        ],
    },
}


def _fetch(url: str) -> str:
    try:
        response = requests.get(url, timeout=settings.theme_timeout)
    except requests.RequestException as exc:
        raise ThemeLoadFailure(f"Unable to fetch theme: {exc}", identifiers=[url]) from exc
    if response.status_code >= 400:
        raise ThemeLoadFailure(
            f"Theme fetch failed ({response.status_code})",
            identifiers=[url],
        )
    return response.text


def _read(location: str) -> str:
    path = url2pathname(urlparse(location).path) if location.startswith("file://") else location
    try:
        return read_text_file(path)
    except (FileNotFoundError, ValueError) as exc:
        raise ThemeLoadFailure(str(exc), identifiers=[location]) from exc


def fetch_theme_document(url: str) -> Dict[str, Any]:
    if url.lstrip(":") in BUILTIN_THEMES:
        return BUILTIN_THEMES[url.lstrip(":")]
    scheme = urlparse(url).scheme
    text = _fetch(url) if scheme in ("http", "https") else _read(url)
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ThemeLoadFailure(f"Theme is not valid JSON: {exc.msg}", identifiers=[url]) from exc
    try:
        _VALIDATOR.validate(document)
    except ValidationError as exc:
        raise ThemeLoadFailure(f"Theme validation failed: {exc.message}", identifiers=[url]) from exc
    return document


def _resolve_icon(entry: Dict[str, Any], base: Optional[str]) -> Dict[str, Any]:
    icon = entry.get("icon")
    if not icon or not base or urlparse(icon).scheme or icon.startswith("data:"):
        return entry
    return {**entry, "icon": urljoin(base, icon)}


def load_theme(url: str) -> List[StyleRule]:
    """Load one theme as an ordered list of element rules followed by relationship rules."""
    document = fetch_theme_document(url)
    base = url if urlparse(url).scheme in ("http", "https", "file") else None
    source = f"theme:{document.get('name') or url}"
    rules: List[StyleRule] = []
    try:
        for entry in document.get("elements", []):
            rules.append(StyleRule.from_mapping(_resolve_icon(entry, base), target="element", source=source))
        for entry in document.get("relationships", []):
            rules.append(StyleRule.from_mapping(entry, target="relationship", source=source))
    except ValueError as exc:
        raise ThemeLoadFailure(f"Invalid theme rule: {exc}", identifiers=[url]) from exc
    logger.info("loaded theme %s with %d rules", url, len(rules))
    return rules
