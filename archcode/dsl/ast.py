"""Declaration AST handed over by the DSL front-end.

Each node is a tagged variant (``kind``) so the scoped builder can dispatch on
it without inspecting shapes. Nodes optionally carry the source ``line`` the
front-end parsed them from.
"""
from __future__ import annotations

from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from archcode.styles.rules import normalise_color, normalise_shape


ALL = ":all"
THIS = "this"

LayoutDirection = Literal["tb", "bt", "lr", "rl", "grid", "circular"]


class Node(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    line: Optional[int] = None


class IdentifiedDecl(Node):
    identifier: Optional[str] = None

    @field_validator("identifier")
    @classmethod
    def _plain_identifier(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and (not value or "." in value):
            raise ValueError("identifier must be a non-empty name without dots")
        return value


class ElementDecl(IdentifiedDecl):
    name: str
    description: str = ""
    technology: str = ""
    tags: List[str] = Field(default_factory=list)
    url: str = ""
    properties: Dict[str, str] = Field(default_factory=dict)


class RelationshipDecl(Node):
    kind: Literal["relationship"] = "relationship"
    source: str
    destination: str
    label: str = ""
    technology: str = ""
    interaction: Optional[Literal["synchronous", "asynchronous"]] = None
    tags: List[str] = Field(default_factory=list)
    parallel: bool = False


class PersonDecl(ElementDecl):
    kind: Literal["person"] = "person"


class ComponentDecl(ElementDecl):
    kind: Literal["component"] = "component"


class ContainerDecl(ElementDecl):
    kind: Literal["container"] = "container"
    body: List[Annotated[Union[ComponentDecl, RelationshipDecl], Field(discriminator="kind")]] = Field(
        default_factory=list
    )


class SoftwareSystemDecl(ElementDecl):
    kind: Literal["software_system"] = "software_system"
    body: List[Annotated[Union[ContainerDecl, RelationshipDecl], Field(discriminator="kind")]] = Field(
        default_factory=list
    )


class InfrastructureNodeDecl(ElementDecl):
    kind: Literal["infrastructure_node"] = "infrastructure_node"


class InstanceDecl(IdentifiedDecl):
    element: str
    groups: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    description: str = ""


class ContainerInstanceDecl(InstanceDecl):
    kind: Literal["container_instance"] = "container_instance"


class ComponentInstanceDecl(InstanceDecl):
    kind: Literal["component_instance"] = "component_instance"


class DeploymentNodeDecl(ElementDecl):
    kind: Literal["deployment_node"] = "deployment_node"
    instances: int = Field(default=1, ge=1)
    body: List[
        Annotated[
            Union[
                "DeploymentNodeDecl",
                InfrastructureNodeDecl,
                ContainerInstanceDecl,
                ComponentInstanceDecl,
                RelationshipDecl,
            ],
            Field(discriminator="kind"),
        ]
    ] = Field(default_factory=list)


class DeploymentGroupDecl(IdentifiedDecl):
    kind: Literal["deployment_group"] = "deployment_group"
    name: str


class DeploymentEnvironmentDecl(IdentifiedDecl):
    kind: Literal["deployment_environment"] = "deployment_environment"
    name: str
    body: List[
        Annotated[
            Union[DeploymentGroupDecl, DeploymentNodeDecl, RelationshipDecl],
            Field(discriminator="kind"),
        ]
    ] = Field(default_factory=list)


ModelMember = Annotated[
    Union[PersonDecl, SoftwareSystemDecl, DeploymentEnvironmentDecl, RelationshipDecl],
    Field(discriminator="kind"),
]


# ---------- views ----------


class ElementStyleDecl(Node):
    tag: str
    shape: Optional[str] = None
    background: Optional[str] = None
    color: Optional[str] = None
    stroke: Optional[str] = None
    border: Optional[Literal["solid", "dashed", "dotted"]] = None
    icon: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    font_size: Optional[int] = None
    opacity: Optional[int] = Field(default=None, ge=0, le=100)
    metadata: Optional[bool] = None
    description: Optional[bool] = None

    @field_validator("shape")
    @classmethod
    def _known_shape(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else normalise_shape(value)

    @field_validator("background", "color", "stroke")
    @classmethod
    def _hex_color(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else normalise_color(value)


class RelationshipStyleDecl(Node):
    tag: str
    thickness: Optional[int] = None
    color: Optional[str] = None
    dashed: Optional[bool] = None
    routing: Optional[Literal["direct", "orthogonal", "curved"]] = None
    font_size: Optional[int] = None
    width: Optional[int] = None
    opacity: Optional[int] = Field(default=None, ge=0, le=100)

    @field_validator("color")
    @classmethod
    def _hex_color(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else normalise_color(value)


class StylesDecl(Node):
    elements: List[ElementStyleDecl] = Field(default_factory=list)
    relationships: List[RelationshipStyleDecl] = Field(default_factory=list)


class AutoLayoutDecl(Node):
    direction: LayoutDirection = "tb"
    rank_separation: Optional[int] = Field(default=None, ge=0)
    node_separation: Optional[int] = Field(default=None, ge=0)


class ViewDecl(Node):
    kind: Literal["system_context", "container", "component", "deployment"]
    subject: str
    environment: Optional[str] = None
    key: Optional[str] = None
    title: str = ""
    description: str = ""
    include: List[str] = Field(default_factory=list)
    exclude: List[str] = Field(default_factory=list)
    auto_layout: Optional[AutoLayoutDecl] = None
    animation: List[List[str]] = Field(default_factory=list)
    styles: StylesDecl = Field(default_factory=StylesDecl)

    @field_validator("subject")
    @classmethod
    def _normalise_subject(cls, value: str) -> str:
        return ALL if value in ("*", ALL, "all") else value

    @field_validator("include", mode="before")
    @classmethod
    def _normalise_include(cls, value):
        if isinstance(value, str):
            value = [value]
        return [ALL if item in ("*", ALL) else item for item in value or []]

    @field_validator("auto_layout", mode="before")
    @classmethod
    def _direction_shorthand(cls, value):
        if isinstance(value, str):
            return {"direction": value.lstrip(":")}
        if value is True:
            return {}
        return value

    @model_validator(mode="after")
    def _check_subject(self) -> "ViewDecl":
        if self.kind == "deployment" and not self.environment:
            raise ValueError("deployment views require an environment")
        if self.kind != "deployment" and self.subject == ALL:
            raise ValueError(f"{self.kind} views require a specific subject")
        return self


class ViewsDecl(Node):
    views: List[ViewDecl] = Field(default_factory=list)
    styles: StylesDecl = Field(default_factory=StylesDecl)
    themes: List[str] = Field(default_factory=list)


class WorkspaceDecl(Node):
    name: str = "Workspace"
    description: str = ""
    identifiers: Optional[Literal["flat", "hierarchical"]] = None
    model: List[ModelMember] = Field(default_factory=list)
    views: ViewsDecl = Field(default_factory=ViewsDecl)


DeploymentNodeDecl.model_rebuild()
