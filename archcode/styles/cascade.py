"""Style and theme cascade.

Rules are applied in cascade order: built-in defaults, then every loaded
theme in load order, then workspace-local rules in declaration order, then
view-local overrides. For each visual property the last matching rule wins.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from archcode.model.elements import Element, Instance, Relationship, merge_tags
from archcode.model.graph import ModelGraph
from archcode.styles.rules import DEFAULT_ELEMENT_STYLE, DEFAULT_RELATIONSHIP_STYLE, StyleRule
from archcode.styles.themes import load_theme


logger = logging.getLogger(__name__)

Styled = Union[Element, Relationship]


def style_tags(target: Styled, graph: Optional[ModelGraph] = None) -> Tuple[str, ...]:
    """Tags used for matching; instances also carry their definition's tags."""
    if isinstance(target, Instance) and graph is not None and target.definition in graph:
        return merge_tags(graph.get(target.definition).tags, target.tags)
    return target.tags


def apply_styles(
    target: Styled,
    rules: Iterable[StyleRule],
    graph: Optional[ModelGraph] = None,
) -> Dict[str, Any]:
    """Merge every matching rule over the built-in defaults."""
    if isinstance(target, Relationship):
        kind, style = "relationship", dict(DEFAULT_RELATIONSHIP_STYLE)
    else:
        kind, style = "element", dict(DEFAULT_ELEMENT_STYLE)
    tags = style_tags(target, graph)
    for rule in rules:
        if rule.target == kind and rule.matches(tags):
            style.update(rule.properties)
    return style


class StyleCascade:
    def __init__(self, loader: Callable[[str], List[StyleRule]] = load_theme) -> None:
        self._loader = loader
        self._themes: Dict[str, List[StyleRule]] = {}
        self._local: List[StyleRule] = []

    @property
    def themes(self) -> List[str]:
        return list(self._themes)

    def load_theme(self, url: str) -> List[StyleRule]:
        """Fetch a theme once; later declarations of the same URL reuse it."""
        if url not in self._themes:
            self._themes[url] = self._loader(url)
        return self._themes[url]

    def add_local(self, rule: StyleRule) -> None:
        self._local.append(rule)

    def rules(self, overrides: Sequence[StyleRule] = ()) -> List[StyleRule]:
        ordered: List[StyleRule] = []
        for theme_rules in self._themes.values():
            ordered.extend(theme_rules)
        ordered.extend(self._local)
        ordered.extend(overrides)
        return ordered

    def resolve(
        self,
        target: Styled,
        graph: Optional[ModelGraph] = None,
        overrides: Sequence[StyleRule] = (),
    ) -> Dict[str, Any]:
        return apply_styles(target, self.rules(overrides), graph)

    def resolve_many(
        self,
        targets: Iterable[Styled],
        graph: Optional[ModelGraph] = None,
        overrides: Sequence[StyleRule] = (),
    ) -> Dict[str, Dict[str, Any]]:
        rules = self.rules(overrides)
        return {t.id: apply_styles(t, rules, graph) for t in targets}
