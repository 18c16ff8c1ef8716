"""Model graph, elements and identifier registry."""
from archcode.model.elements import (
    Component,
    ComponentInstance,
    Container,
    ContainerInstance,
    DeploymentElement,
    DeploymentGroup,
    DeploymentNode,
    Element,
    InfrastructureNode,
    Instance,
    Person,
    Relationship,
    SoftwareSystem,
)
from archcode.model.graph import DeploymentEnvironment, ModelGraph
from archcode.model.identifiers import IdentifierRegistry

__all__ = [
    "Component",
    "ComponentInstance",
    "Container",
    "ContainerInstance",
    "DeploymentElement",
    "DeploymentEnvironment",
    "DeploymentGroup",
    "DeploymentNode",
    "Element",
    "IdentifierRegistry",
    "InfrastructureNode",
    "Instance",
    "ModelGraph",
    "Person",
    "Relationship",
    "SoftwareSystem",
]
