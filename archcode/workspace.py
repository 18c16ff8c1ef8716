"""Workspace build: declarations in, render payload out.

One build owns one BuildContext. The model is built and frozen first; views,
styles and animation are resolved against the frozen graph afterwards. The
first error aborts the build and nothing partial is returned.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

from archcode.animation.sequencer import AnimationSequencer
from archcode.builder.context import BuildContext
from archcode.builder.scoped_builder import ScopedBuilder
from archcode.dsl import ast
from archcode.dsl.loader import load_workspace, loads_workspace, parse_workspace
from archcode.errors import BuildError, UnresolvedElement
from archcode.layout.resolver import LayoutResolver
from archcode.model.identifiers import IdentifierMode
from archcode.render.payload import (
    Position,
    RenderAnimationStep,
    RenderElement,
    RenderLayout,
    RenderModel,
    RenderPayload,
    RenderRelationship,
    RenderView,
)
from archcode.styles.rules import StyleRule
from archcode.styles.themes import load_theme
from archcode.utils.config import settings
from archcode.views.registry import ViewRegistry
from archcode.views.view import LayoutDirective, View, ViewFilter, ViewKind


logger = logging.getLogger(__name__)

Source = Union[ast.WorkspaceDecl, Dict[str, Any], str]


@contextmanager
def _phase(context: BuildContext, name: str) -> Iterator[None]:
    context.phase = name
    try:
        yield
    except BuildError as exc:
        if exc.phase is None:
            exc.phase = name
        raise


def _style_rules(styles: ast.StylesDecl, source: str) -> List[StyleRule]:
    rules = [
        StyleRule.from_mapping(s.model_dump(exclude={"line"}), target="element", source=source)
        for s in styles.elements
    ]
    rules.extend(
        StyleRule.from_mapping(s.model_dump(exclude={"line"}), target="relationship", source=source)
        for s in styles.relationships
    )
    return rules


def _layout(auto_layout: Optional[ast.AutoLayoutDecl]) -> LayoutDirective:
    if auto_layout is None:
        return LayoutDirective()
    return LayoutDirective(
        strategy=auto_layout.direction,
        rank_separation=(
            auto_layout.rank_separation
            if auto_layout.rank_separation is not None
            else settings.rank_separation
        ),
        node_separation=(
            auto_layout.node_separation
            if auto_layout.node_separation is not None
            else settings.node_separation
        ),
    )


def _coerce(source: Source) -> ast.WorkspaceDecl:
    if isinstance(source, ast.WorkspaceDecl):
        return source
    if isinstance(source, str):
        return loads_workspace(source)
    return parse_workspace(source)


class WorkspaceBuilder:
    def __init__(self, context: BuildContext) -> None:
        self.context = context
        self.views = ViewRegistry(context.graph, context.registry)
        self.layout = LayoutResolver()

    def build(self, decl: ast.WorkspaceDecl) -> RenderPayload:
        with _phase(self.context, "model"):
            ScopedBuilder(self.context).build(decl.model)

        with _phase(self.context, "views"):
            for view_decl in decl.views.views:
                self.define_view(view_decl)

        with _phase(self.context, "styles"):
            for url in decl.views.themes:
                self.context.styles.load_theme(url)
            for rule in _style_rules(decl.views.styles, "local"):
                self.context.styles.add_local(rule)
            return self.payload(decl)

    def define_view(self, decl: ast.ViewDecl) -> View:
        try:
            view = self.views.define_view(
                ViewKind(decl.kind),
                decl.subject,
                ViewFilter(include=tuple(decl.include), exclude=tuple(decl.exclude)),
                _layout(decl.auto_layout),
                key=decl.key,
                title=decl.title,
                description=decl.description,
                environment=decl.environment,
                styles=_style_rules(decl.styles, f"view:{decl.key or decl.subject}"),
            )
            sequencer = AnimationSequencer(view, self.context.graph)
            for step in decl.animation:
                sequencer.add_step([self._animation_target(view, reference) for reference in step])
        except BuildError as exc:
            if exc.line is None:
                exc.line = decl.line
            raise
        return view

    def _animation_target(self, view: View, reference: str) -> str:
        """Resolve a step reference, preferring elements included in the view."""
        try:
            return self.views.lookup(reference, accept=lambda e: view.includes(e.id)).id
        except UnresolvedElement:
            # not in the view; let the sequencer report it as an invalid step
            return self.views.lookup(reference).id

    # ---------- payload ----------

    def render_view(self, view: View) -> RenderView:
        graph = self.context.graph
        styles = self.context.styles
        elements = [graph.get(e) for e in view.elements]
        relationships = [graph.get_relationship(r) for r in view.relationships]
        placements = self.layout.resolve(elements, relationships, view.layout)
        element_styles = styles.resolve_many(elements, graph, view.styles)
        relationship_styles = styles.resolve_many(relationships, graph, view.styles)

        rendered_elements = []
        for placement in placements:
            element = graph.get(placement.element)
            rendered_elements.append(
                RenderElement(
                    id=element.id,
                    type=element.TYPE,
                    name=element.name,
                    description=element.description,
                    technology=element.technology,
                    parent=element.parent,
                    tags=list(element.tags),
                    position=Position(**placement.to_dict()),
                    style=element_styles[element.id],
                )
            )
        rendered_relationships = [
            RenderRelationship(
                id=r.id,
                source=r.source,
                destination=r.destination,
                label=r.label,
                technology=r.technology,
                tags=list(r.tags),
                implied=r.implied,
                style=relationship_styles[r.id],
            )
            for r in relationships
        ]
        return RenderView(
            key=view.key,
            kind=view.kind.value,
            title=view.title,
            description=view.description,
            subject=view.subject,
            environment=view.environment,
            layout=RenderLayout(**view.layout.to_dict()),
            elements=rendered_elements,
            relationships=rendered_relationships,
            animation=[RenderAnimationStep(**step.to_dict()) for step in view.animation],
        )

    def payload(self, decl: ast.WorkspaceDecl) -> RenderPayload:
        graph = self.context.graph
        return RenderPayload(
            name=decl.name,
            description=decl.description,
            identifiers=self.context.registry.mode,
            themes=self.context.styles.themes,
            model=RenderModel(
                elements=[e.to_dict() for e in graph.elements.values()],
                relationships=[r.to_dict() for r in graph.relationships],
                environments=[{"id": e.id, "name": e.name} for e in graph.environments.values()],
            ),
            views=[self.render_view(view) for view in self.views],
        )


def build_workspace(
    source: Source,
    identifiers: Optional[IdentifierMode] = None,
    theme_loader: Callable[[str], List[StyleRule]] = load_theme,
) -> RenderPayload:
    """Build a workspace into its render payload.

    ``source`` may be a parsed declaration, a decoded JSON document or JSON
    text. The identifier mode is taken from the argument, then the
    workspace's own ``identifiers`` setting, then configuration.
    """
    decl = _coerce(source)
    context = BuildContext.create(identifiers or decl.identifiers, theme_loader)
    payload = WorkspaceBuilder(context).build(decl)
    logger.info("workspace %s built with %d views", decl.name, len(payload.views))
    return payload


def build_workspace_file(
    path: str,
    identifiers: Optional[IdentifierMode] = None,
    theme_loader: Callable[[str], List[StyleRule]] = load_theme,
) -> RenderPayload:
    return build_workspace(load_workspace(path), identifiers, theme_loader)
