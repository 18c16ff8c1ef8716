"""Model graph: the element and relationship store for one workspace."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Type, TypeVar

from archcode.errors import DuplicateIdentifier, DuplicateRelationship, UnresolvedElement
from archcode.model.elements import (
    DeploymentElement,
    Element,
    Instance,
    Relationship,
)


logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Element)


@dataclass(frozen=True)
class DeploymentEnvironment:
    id: str
    name: str


@dataclass
class ModelGraph:
    elements: Dict[str, Element] = field(default_factory=dict)
    relationships: List[Relationship] = field(default_factory=list)
    environments: Dict[str, DeploymentEnvironment] = field(default_factory=dict)
    frozen: bool = False
    _children: Dict[Optional[str], List[str]] = field(default_factory=dict, repr=False)
    _by_key: Dict[Tuple[str, str, str], Relationship] = field(default_factory=dict, repr=False)

    def _check_mutable(self) -> None:
        if self.frozen:
            raise RuntimeError("Model graph is frozen; the model-build phase has completed")

    def freeze(self) -> None:
        self.frozen = True
        logger.debug(
            "model frozen with %d elements and %d relationships",
            len(self.elements),
            len(self.relationships),
        )

    # ---------- elements ----------

    def add_environment(self, environment: DeploymentEnvironment) -> DeploymentEnvironment:
        self._check_mutable()
        if environment.id in self.environments:
            raise DuplicateIdentifier(
                f"Deployment environment '{environment.name}' already exists",
                identifiers=[environment.id],
            )
        self.environments[environment.id] = environment
        return environment

    def add_element(self, element: E) -> E:
        self._check_mutable()
        if element.id in self.elements:
            raise DuplicateIdentifier(
                f"Element '{element.id}' already exists",
                identifiers=[element.id],
            )
        if element.parent is not None and element.parent not in self.elements:
            raise UnresolvedElement(
                f"Parent '{element.parent}' of '{element.id}' is not in the model",
                identifiers=[element.parent, element.id],
            )
        self.elements[element.id] = element
        self._children.setdefault(element.parent, []).append(element.id)
        return element

    def __contains__(self, element_id: str) -> bool:
        return element_id in self.elements

    def get(self, element_id: str) -> Element:
        try:
            return self.elements[element_id]
        except KeyError:
            raise UnresolvedElement(
                f"Element '{element_id}' is not in the model",
                identifiers=[element_id],
            ) from None

    def find_environment(self, reference: str) -> Optional[DeploymentEnvironment]:
        if reference in self.environments:
            return self.environments[reference]
        for environment in self.environments.values():
            if environment.name == reference:
                return environment
        return None

    def of_type(self, cls: Type[E]) -> List[E]:
        return [e for e in self.elements.values() if isinstance(e, cls)]

    def children(self, element_id: Optional[str]) -> List[Element]:
        return [self.elements[c] for c in self._children.get(element_id, [])]

    def descendants(self, element_id: str) -> Iterator[Element]:
        for child in self.children(element_id):
            yield child
            yield from self.descendants(child.id)

    def ancestors(self, element_id: str) -> List[Element]:
        """Ancestors from the immediate parent outward."""
        out: List[Element] = []
        parent = self.get(element_id).parent
        while parent is not None:
            element = self.elements[parent]
            out.append(element)
            parent = element.parent
        return out

    def is_ancestor(self, ancestor_id: str, element_id: str) -> bool:
        return any(a.id == ancestor_id for a in self.ancestors(element_id))

    def in_environment(self, environment_id: str) -> List[DeploymentElement]:
        return [
            e
            for e in self.elements.values()
            if isinstance(e, DeploymentElement) and e.environment == environment_id
        ]

    def instances_of(self, definition_id: str) -> List[Instance]:
        return [e for e in self.of_type(Instance) if e.definition == definition_id]

    # ---------- relationships ----------

    def add_relationship(
        self,
        source: str,
        destination: str,
        label: str = "",
        technology: str = "",
        *,
        interaction: Optional[str] = None,
        tags: Iterable[str] = (),
        parallel: bool = False,
        implied: bool = False,
        linked_to: Optional[str] = None,
    ) -> Relationship:
        self._check_mutable()
        for endpoint in (source, destination):
            if endpoint not in self.elements:
                raise UnresolvedElement(
                    f"Relationship endpoint '{endpoint}' is not in the model",
                    identifiers=[source, destination],
                )
        key = (source, destination, label)
        if key in self._by_key and not parallel:
            raise DuplicateRelationship(
                f"Relationship '{label}' from '{source}' to '{destination}' already exists",
                identifiers=[source, destination],
            )
        relationship = Relationship(
            id=f"r{len(self.relationships) + 1}",
            source=source,
            destination=destination,
            label=label,
            technology=technology,
            interaction=interaction,
            tags=tuple(tags),
            implied=implied,
            parallel=parallel,
            linked_to=linked_to,
        )
        self.relationships.append(relationship)
        self._by_key.setdefault(key, relationship)
        return relationship

    def get_relationship(self, relationship_id: str) -> Relationship:
        for relationship in self.relationships:
            if relationship.id == relationship_id:
                return relationship
        raise UnresolvedElement(
            f"Relationship '{relationship_id}' is not in the model",
            identifiers=[relationship_id],
        )

    def has_relationship(self, source: str, destination: str, label: Optional[str] = None) -> bool:
        """Any relationship between the pair, or only one with the given label."""
        if label is not None:
            return (source, destination, label) in self._by_key
        return any(r.source == source and r.destination == destination for r in self.relationships)

    def relationships_between(self, element_ids: Iterable[str]) -> List[Relationship]:
        included = set(element_ids)
        return [r for r in self.relationships if r.source in included and r.destination in included]

    def neighbours(self, element_id: str) -> List[str]:
        """Ids directly connected to the element, in relationship order."""
        out: List[str] = []
        for r in self.relationships:
            other = None
            if r.source == element_id:
                other = r.destination
            elif r.destination == element_id:
                other = r.source
            if other is not None and other not in out:
                out.append(other)
        return out
