"""Model elements and relationships (no layout, no styling)."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Iterable, Optional, Tuple


def merge_tags(*groups: Iterable[str]) -> Tuple[str, ...]:
    """Ordered, de-duplicated union of tag groups."""
    seen: list[str] = []
    for group in groups:
        for tag in group:
            tag = tag.strip()
            if tag and tag not in seen:
                seen.append(tag)
    return tuple(seen)


@dataclass(frozen=True)
class Element:
    TYPE: ClassVar[str] = "Element"
    STATIC: ClassVar[bool] = True

    id: str
    name: str
    description: str = ""
    technology: str = ""
    parent: Optional[str] = None
    tags: Tuple[str, ...] = ()
    url: str = ""
    properties: Dict[str, str] = field(default_factory=dict, hash=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", merge_tags(self.default_tags(), self.tags))

    @classmethod
    def default_tags(cls) -> Tuple[str, ...]:
        return ("Element", cls.TYPE)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.TYPE,
            "name": self.name,
            "description": self.description,
            "technology": self.technology,
            "parent": self.parent,
            "tags": list(self.tags),
            "url": self.url,
            "properties": dict(sorted(self.properties.items())),
        }


@dataclass(frozen=True)
class Person(Element):
    TYPE: ClassVar[str] = "Person"


@dataclass(frozen=True)
class SoftwareSystem(Element):
    TYPE: ClassVar[str] = "Software System"


@dataclass(frozen=True)
class Container(Element):
    TYPE: ClassVar[str] = "Container"


@dataclass(frozen=True)
class Component(Element):
    TYPE: ClassVar[str] = "Component"


@dataclass(frozen=True)
class DeploymentElement(Element):
    """Base for everything that lives inside a deployment environment."""

    STATIC: ClassVar[bool] = False

    environment: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["environment"] = self.environment
        return data


@dataclass(frozen=True)
class DeploymentNode(DeploymentElement):
    TYPE: ClassVar[str] = "Deployment Node"

    instances: int = 1

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["instances"] = self.instances
        return data


@dataclass(frozen=True)
class InfrastructureNode(DeploymentElement):
    TYPE: ClassVar[str] = "Infrastructure Node"


@dataclass(frozen=True)
class DeploymentGroup(DeploymentElement):
    TYPE: ClassVar[str] = "Deployment Group"


@dataclass(frozen=True)
class Instance(DeploymentElement):
    """A definition bound to a deployment node (the instance's parent)."""

    definition: str = ""
    groups: Tuple[str, ...] = ()
    instance_id: int = 1

    def shares_group_with(self, other: "Instance") -> bool:
        if not self.groups or not other.groups:
            return True
        return bool(set(self.groups) & set(other.groups))

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["definition"] = self.definition
        data["groups"] = list(self.groups)
        data["instance_id"] = self.instance_id
        return data


@dataclass(frozen=True)
class ContainerInstance(Instance):
    TYPE: ClassVar[str] = "Container Instance"


@dataclass(frozen=True)
class ComponentInstance(Instance):
    TYPE: ClassVar[str] = "Component Instance"


@dataclass(frozen=True)
class Relationship:
    id: str
    source: str
    destination: str
    label: str = ""
    technology: str = ""
    interaction: Optional[str] = None
    tags: Tuple[str, ...] = ()
    implied: bool = False
    parallel: bool = False
    linked_to: Optional[str] = None  # relationship this one was derived from

    def __post_init__(self) -> None:
        defaults = ["Relationship"]
        if self.interaction == "asynchronous":
            defaults.append("Asynchronous")
        elif self.interaction == "synchronous":
            defaults.append("Synchronous")
        object.__setattr__(self, "tags", merge_tags(defaults, self.tags))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "destination": self.destination,
            "label": self.label,
            "technology": self.technology,
            "interaction": self.interaction,
            "tags": list(self.tags),
            "implied": self.implied,
            "parallel": self.parallel,
            "linked_to": self.linked_to,
        }
