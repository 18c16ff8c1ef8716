"""Scoped builder: interprets model declarations into the model graph.

The build runs in two passes:

1. *declare*: walk the declaration tree, push a scope frame for every
   container-like block (software system, container, deployment environment,
   deployment node), register identifiers and create elements in order.
   Relationship declarations are queued together with the scope they were
   written in and the declaration sequence at that point.
2. *link*: resolve every queued relationship through its scope's lookup
   chain. An endpoint must have been declared before the relationship itself.

Instances are the exception to scope-limited resolution: they link to their
container/component definition anywhere in the model.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Type

from archcode.builder.context import BuildContext
from archcode.builder.scope import ScopeStack
from archcode.dsl import ast
from archcode.errors import BuildError, CyclicScopeReference, UnresolvedElement
from archcode.model.elements import (
    Component,
    ComponentInstance,
    Container,
    ContainerInstance,
    DeploymentGroup,
    DeploymentNode,
    Element,
    InfrastructureNode,
    Instance,
    Person,
    SoftwareSystem,
)
from archcode.model.graph import DeploymentEnvironment, ModelGraph
from archcode.model.implied import create_implied_relationships, replicate_instance_relationships


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingRelationship:
    decl: ast.RelationshipDecl
    scope: Tuple[str, ...]
    owner: Optional[str]
    sequence: int


def _annotate(exc: BuildError, scope: Tuple[str, ...], line: Optional[int]) -> BuildError:
    if not exc.scope:
        exc.scope = scope
    if exc.line is None:
        exc.line = line
    return exc


class ScopedBuilder:
    def __init__(self, context: BuildContext) -> None:
        self.context = context
        self.scopes = ScopeStack()
        self._pending: List[PendingRelationship] = []
        self._dispatch: Dict[str, Callable[[ast.Node], None]] = {
            "person": self._declare_person,
            "software_system": self._declare_software_system,
            "container": self._declare_container,
            "component": self._declare_component,
            "deployment_environment": self._declare_environment,
            "deployment_group": self._declare_group,
            "deployment_node": self._declare_deployment_node,
            "infrastructure_node": self._declare_infrastructure_node,
            "container_instance": self._declare_container_instance,
            "component_instance": self._declare_component_instance,
            "relationship": self._queue_relationship,
        }

    @property
    def graph(self) -> ModelGraph:
        return self.context.graph

    @property
    def registry(self):
        return self.context.registry

    # ---------- entry points ----------

    def build(self, declarations: Iterable[ast.Node]) -> ModelGraph:
        self.declare_all(declarations)
        self.link()
        create_implied_relationships(self.graph)
        replicate_instance_relationships(self.graph)
        self.graph.freeze()
        logger.info(
            "model built: %d elements, %d relationships",
            len(self.graph.elements),
            len(self.graph.relationships),
        )
        return self.graph

    def declare_all(self, declarations: Iterable[ast.Node]) -> None:
        for node in declarations:
            self.declare(node)

    def declare(self, node: ast.Node) -> None:
        handler = self._dispatch.get(getattr(node, "kind", ""))
        if handler is None:
            raise TypeError(f"No builder for declaration {type(node).__name__}")
        try:
            handler(node)
        except BuildError as exc:
            raise _annotate(exc, self.scopes.path, node.line)

    def link(self) -> None:
        for pending in self._pending:
            try:
                self.point_to(pending)
            except BuildError as exc:
                raise _annotate(exc, pending.scope, pending.decl.line)
        self._pending.clear()

    # ---------- identifiers ----------

    def _identify(self, identifier: Optional[str], name: str) -> str:
        if identifier:
            element_id = self.registry.declare(identifier, self.scopes.path)
        else:
            element_id = self.registry.allocate(name, self.scopes.path)
        self.scopes.record(element_id)
        return element_id

    def _add(self, cls: Type[Element], decl: ast.ElementDecl, **extra) -> Element:
        element_id = self._identify(decl.identifier, decl.name)
        element = cls(
            id=element_id,
            name=decl.name,
            description=decl.description,
            technology=decl.technology,
            tags=tuple(decl.tags),
            url=decl.url,
            properties=dict(decl.properties),
            **extra,
        )
        return self.graph.add_element(element)

    def _body(self, element: Element, body: Iterable[ast.Node], environment: Optional[str] = None) -> None:
        with self.scopes.enter(
            self.registry.frame_path(element.id),
            element=element.id,
            environment=environment,
        ):
            self.declare_all(body)

    # ---------- static structure ----------

    def _declare_person(self, decl: ast.PersonDecl) -> None:
        self._add(Person, decl)

    def _declare_software_system(self, decl: ast.SoftwareSystemDecl) -> None:
        system = self._add(SoftwareSystem, decl)
        self._body(system, decl.body)

    def _declare_container(self, decl: ast.ContainerDecl) -> None:
        container = self._add(Container, decl, parent=self.scopes.element)
        self._body(container, decl.body)

    def _declare_component(self, decl: ast.ComponentDecl) -> None:
        self._add(Component, decl, parent=self.scopes.element)

    # ---------- deployment ----------

    def _declare_environment(self, decl: ast.DeploymentEnvironmentDecl) -> None:
        environment_id = self._identify(decl.identifier, decl.name)
        self.graph.add_environment(DeploymentEnvironment(id=environment_id, name=decl.name))
        with self.scopes.enter(self.registry.frame_path(environment_id), environment=environment_id):
            self.declare_all(decl.body)

    def _declare_group(self, decl: ast.DeploymentGroupDecl) -> None:
        group_id = self._identify(decl.identifier, decl.name)
        self.graph.add_element(
            DeploymentGroup(id=group_id, name=decl.name, environment=self.scopes.environment or "")
        )

    def _declare_deployment_node(self, decl: ast.DeploymentNodeDecl) -> None:
        environment = self.scopes.environment or ""
        node = self._add(
            DeploymentNode,
            decl,
            parent=self.scopes.element,
            environment=environment,
            instances=decl.instances,
        )
        self._body(node, decl.body)

    def _declare_infrastructure_node(self, decl: ast.InfrastructureNodeDecl) -> None:
        self._add(
            InfrastructureNode,
            decl,
            parent=self.scopes.element,
            environment=self.scopes.environment or "",
        )

    def _declare_container_instance(self, decl: ast.ContainerInstanceDecl) -> None:
        self._declare_instance(ContainerInstance, Container, decl)

    def _declare_component_instance(self, decl: ast.ComponentInstanceDecl) -> None:
        self._declare_instance(ComponentInstance, Component, decl)

    def _declare_instance(
        self,
        cls: Type[Instance],
        definition_cls: Type[Element],
        decl: ast.InstanceDecl,
    ) -> None:
        definition = self.linked(decl.element, definition_cls)
        environment = self.scopes.environment or ""
        groups = tuple(self._resolve_group(g) for g in decl.groups)
        count = sum(1 for i in self.graph.instances_of(definition.id) if i.environment == environment)
        element_id = self._identify(decl.identifier, self.registry.local_name(definition.id))
        self.graph.add_element(
            cls(
                id=element_id,
                name=definition.name,
                description=decl.description or definition.description,
                technology=definition.technology,
                parent=self.scopes.element,
                tags=tuple(decl.tags),
                environment=environment,
                definition=definition.id,
                groups=groups,
                instance_id=count + 1,
            )
        )

    def linked(self, reference: str, definition_cls: Type[Element]) -> Element:
        """Look up an instance's definition across the whole model."""
        definition_id = self.registry.lookup(
            reference,
            accept=lambda i: isinstance(self.graph.elements.get(i), definition_cls),
        )
        return self.graph.get(definition_id)

    def _resolve_group(self, reference: str) -> str:
        group_id = self.registry.resolve(reference, self.scopes.path)
        group = self.graph.elements.get(group_id)
        if not isinstance(group, DeploymentGroup) or group.environment != self.scopes.environment:
            raise UnresolvedElement(
                f"'{reference}' is not a deployment group of this environment",
                identifiers=[reference],
            )
        return group_id

    # ---------- relationships ----------

    def _queue_relationship(self, decl: ast.RelationshipDecl) -> None:
        self._pending.append(
            PendingRelationship(
                decl=decl,
                scope=self.scopes.path,
                owner=self.scopes.element,
                sequence=self.registry.sequence,
            )
        )

    def point_to(self, pending: PendingRelationship):
        decl = pending.decl
        source = self._resolve_endpoint(pending, decl.source)
        destination = self._resolve_endpoint(pending, decl.destination)
        relationship = self.graph.add_relationship(
            source,
            destination,
            decl.label,
            decl.technology,
            interaction=decl.interaction,
            tags=decl.tags,
            parallel=decl.parallel,
        )
        logger.debug("linked %s -> %s (%s)", source, destination, decl.label)
        return relationship

    def _resolve_endpoint(self, pending: PendingRelationship, reference: str) -> str:
        if reference == ast.THIS:
            if pending.owner is None:
                raise UnresolvedElement(
                    "'this' used outside an element block",
                    identifiers=[reference],
                )
            return pending.owner

        element_id = self.registry.resolve(reference, pending.scope)
        element = self.graph.elements.get(element_id)
        if element is None or isinstance(element, DeploymentGroup):
            raise UnresolvedElement(
                f"'{reference}' does not name a model element",
                identifiers=[reference, element_id],
            )
        if self.registry.sequence_of(element_id) > pending.sequence:
            if pending.owner is not None and self.graph.is_ancestor(pending.owner, element_id):
                raise CyclicScopeReference(
                    f"'{reference}' is a descendant of '{pending.owner}' declared after the reference",
                    identifiers=[pending.owner, element_id],
                )
            raise UnresolvedElement(
                f"'{reference}' is not declared yet at this point",
                identifiers=[reference, element_id],
            )
        return element_id
