"""View registry: defines views and resolves their included element sets.

``:all`` expands per view kind:

- system context: the subject plus people and software systems directly
  connected to it;
- container: the subject's containers plus the people, software systems and
  other containers directly connected to them (never components);
- component: the subject container's components plus the people, software
  systems and containers directly connected to them;
- deployment: every deployment node, infrastructure node and instance of the
  environment, narrowed to one software system's instances when the subject
  is a system.
"""
from __future__ import annotations

import logging
import re
from typing import Callable, Dict, List, Optional, Sequence, Set, Type

from archcode.dsl.ast import ALL
from archcode.errors import DuplicateIdentifier, EmptyView, UnresolvedElement
from archcode.model.elements import (
    Component,
    Container,
    DeploymentGroup,
    Element,
    InfrastructureNode,
    Instance,
    Person,
    SoftwareSystem,
)
from archcode.model.graph import DeploymentEnvironment, ModelGraph
from archcode.model.identifiers import IdentifierRegistry
from archcode.styles.rules import StyleRule
from archcode.views.view import LayoutDirective, View, ViewFilter, ViewKind


logger = logging.getLogger(__name__)

_SUBJECT_TYPES: Dict[ViewKind, Type[Element]] = {
    ViewKind.SYSTEM_CONTEXT: SoftwareSystem,
    ViewKind.CONTAINER: SoftwareSystem,
    ViewKind.COMPONENT: Container,
    ViewKind.DEPLOYMENT: SoftwareSystem,
}


def _key_part(text: str) -> str:
    return re.sub(r"\s+", "", text)


class ViewRegistry:
    def __init__(self, graph: ModelGraph, registry: IdentifierRegistry) -> None:
        self.graph = graph
        self.registry = registry
        self._views: Dict[str, View] = {}

    def __iter__(self):
        return iter(self._views.values())

    def __len__(self) -> int:
        return len(self._views)

    def get(self, key: str) -> View:
        return self._views[key]

    # ---------- references ----------

    def lookup(self, reference: str, accept: Optional[Callable[[Element], bool]] = None) -> Element:
        accept = accept or (lambda _element: True)
        element_id = self.registry.lookup(
            reference,
            accept=lambda i: i in self.graph.elements and accept(self.graph.elements[i]),
        )
        return self.graph.get(element_id)

    def _subject(self, kind: ViewKind, subject: str) -> Optional[Element]:
        if kind is ViewKind.DEPLOYMENT and subject == ALL:
            return None
        cls = _SUBJECT_TYPES[kind]
        try:
            return self.lookup(subject, accept=lambda e: isinstance(e, cls))
        except UnresolvedElement as exc:
            exc.message = f"{kind.label} view subject '{subject}' is not a {cls.TYPE}"
            raise

    def _environment(self, reference: Optional[str]) -> DeploymentEnvironment:
        environment = self.graph.find_environment(reference or "")
        if environment is None:
            raise UnresolvedElement(
                f"Deployment environment '{reference}' does not exist",
                identifiers=[reference or ""],
            )
        return environment

    # ---------- reachability ----------

    def universe(
        self,
        kind: ViewKind,
        subject: Optional[Element],
        environment: Optional[DeploymentEnvironment] = None,
    ) -> List[str]:
        """Every element a view of this kind and subject may contain."""
        graph = self.graph
        if kind is ViewKind.SYSTEM_CONTEXT:
            return [e.id for e in graph.elements.values() if isinstance(e, (Person, SoftwareSystem))]
        if kind is ViewKind.CONTAINER:
            return [
                e.id
                for e in graph.elements.values()
                if isinstance(e, (Person, SoftwareSystem, Container)) and e.id != subject.id
            ]
        if kind is ViewKind.COMPONENT:
            return [
                e.id
                for e in graph.elements.values()
                if (isinstance(e, (Person, SoftwareSystem, Container)) and e.id != subject.id)
                or (isinstance(e, Component) and e.parent == subject.id)
            ]
        return [
            e.id
            for e in graph.in_environment(environment.id)
            if not isinstance(e, DeploymentGroup)
        ]

    def default_elements(
        self,
        kind: ViewKind,
        subject: Optional[Element],
        environment: Optional[DeploymentEnvironment] = None,
    ) -> List[str]:
        graph = self.graph
        if kind is ViewKind.DEPLOYMENT:
            return self._deployment_elements(subject, environment)

        allowed = set(self.universe(kind, subject, environment))
        if kind is ViewKind.SYSTEM_CONTEXT:
            core = [subject.id]
        elif kind is ViewKind.CONTAINER:
            core = [e.id for e in graph.children(subject.id) if isinstance(e, Container)]
        else:
            core = [e.id for e in graph.children(subject.id) if isinstance(e, Component)]

        out = list(core)
        for element_id in core:
            for other in graph.neighbours(element_id):
                if other in allowed and other not in out:
                    out.append(other)
        return out

    def _deployment_elements(
        self,
        subject: Optional[Element],
        environment: DeploymentEnvironment,
    ) -> List[str]:
        members = [e for e in self.graph.in_environment(environment.id) if not isinstance(e, DeploymentGroup)]
        if subject is None:
            return [e.id for e in members]

        def belongs(instance: Instance) -> bool:
            return instance.definition == subject.id or self.graph.is_ancestor(subject.id, instance.definition)

        leaves = {
            e.id
            for e in members
            if isinstance(e, InfrastructureNode) or (isinstance(e, Instance) and belongs(e))
        }
        hosts = {a.id for leaf in leaves for a in self.graph.ancestors(leaf)}
        return [e.id for e in members if e.id in leaves or e.id in hosts]

    # ---------- definition ----------

    def _default_key(self, kind: ViewKind, subject: Optional[Element], environment) -> str:
        if kind is ViewKind.DEPLOYMENT:
            name = subject.name if subject is not None else "All"
            return f"{_key_part(name)}-{_key_part(environment.name)}-Deployment"
        return f"{_key_part(subject.name)}-{_key_part(kind.label)}"

    def _default_title(self, kind: ViewKind, subject: Optional[Element], environment) -> str:
        if kind is ViewKind.DEPLOYMENT:
            name = subject.name if subject is not None else "All Software Systems"
            return f"[Deployment] {name} ({environment.name})"
        if kind is ViewKind.COMPONENT and subject.parent is not None:
            return f"[Component] {self.graph.get(subject.parent).name} - {subject.name}"
        return f"[{kind.label}] {subject.name}"

    def define_view(
        self,
        kind: ViewKind,
        subject: str,
        filter: ViewFilter,
        layout: Optional[LayoutDirective] = None,
        *,
        key: Optional[str] = None,
        title: str = "",
        description: str = "",
        environment: Optional[str] = None,
        styles: Sequence[StyleRule] = (),
    ) -> View:
        kind = ViewKind(kind)
        subject_element = self._subject(kind, subject)
        env = self._environment(environment) if kind is ViewKind.DEPLOYMENT else None
        key = key or self._default_key(kind, subject_element, env)
        if key in self._views:
            raise DuplicateIdentifier(f"View key '{key}' is already defined", identifiers=[key])

        elements = self._resolve_filter(kind, subject_element, env, filter, key)
        if not elements:
            raise EmptyView(
                f"View '{key}' resolves to no elements",
                scope=[key],
                identifiers=[subject],
            )
        relationships = tuple(r.id for r in self.graph.relationships_between(elements))

        view = View(
            key=key,
            kind=kind,
            subject=subject_element.id if subject_element is not None else ALL,
            title=title or self._default_title(kind, subject_element, env),
            description=description,
            environment=env.id if env is not None else None,
            elements=tuple(elements),
            relationships=relationships,
            layout=layout or LayoutDirective(),
            filter=filter,
            styles=tuple(styles),
        )
        self._views[key] = view
        logger.info(
            "defined %s view %s with %d elements and %d relationships",
            kind.value,
            key,
            len(view.elements),
            len(view.relationships),
        )
        return view

    def _resolve_filter(
        self,
        kind: ViewKind,
        subject: Optional[Element],
        environment: Optional[DeploymentEnvironment],
        filter: ViewFilter,
        key: str,
    ) -> List[str]:
        allowed: Set[str] = set(self.universe(kind, subject, environment))
        included: List[str] = []

        def add(element_id: str) -> None:
            if element_id not in included:
                included.append(element_id)

        for reference in filter.include:
            if reference == ALL:
                for element_id in self.default_elements(kind, subject, environment):
                    add(element_id)
                continue
            element = self._permitted(reference, allowed, key)
            if kind is ViewKind.DEPLOYMENT:
                for host in reversed(self.graph.ancestors(element.id)):
                    add(host.id)
            add(element.id)

        excluded = {self._permitted(reference, allowed, key).id for reference in filter.exclude}
        if kind is ViewKind.DEPLOYMENT and excluded:
            excluded |= {d.id for e in excluded for d in self.graph.descendants(e)}
        return [e for e in included if e not in excluded]

    def _permitted(self, reference: str, allowed: Set[str], key: str) -> Element:
        try:
            return self.lookup(reference, accept=lambda e: e.id in allowed)
        except UnresolvedElement as exc:
            exc.scope = (key,)
            exc.message = f"'{reference}' is not declared or not reachable from the subject of view '{key}'"
            raise
