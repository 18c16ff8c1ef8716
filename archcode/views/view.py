"""View definitions."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from archcode.styles.rules import StyleRule
from archcode.utils.config import settings


class ViewKind(str, Enum):
    """Kinds of view, each with its own reachability rule."""
    SYSTEM_CONTEXT = "system_context"
    CONTAINER = "container"
    COMPONENT = "component"
    DEPLOYMENT = "deployment"

    @property
    def label(self) -> str:
        return {
            ViewKind.SYSTEM_CONTEXT: "System Context",
            ViewKind.CONTAINER: "Container",
            ViewKind.COMPONENT: "Component",
            ViewKind.DEPLOYMENT: "Deployment",
        }[self]


@dataclass(frozen=True)
class LayoutDirective:
    strategy: str = "grid"
    rank_separation: int = field(default_factory=lambda: settings.rank_separation)
    node_separation: int = field(default_factory=lambda: settings.node_separation)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy,
            "rank_separation": self.rank_separation,
            "node_separation": self.node_separation,
        }


@dataclass(frozen=True)
class ViewFilter:
    include: Tuple[str, ...] = ()
    exclude: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AnimationStep:
    order: int
    elements: Tuple[str, ...]
    relationships: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "order": self.order,
            "elements": list(self.elements),
            "relationships": list(self.relationships),
        }


@dataclass
class View:
    """A filtered projection of the model graph.

    ``elements`` and ``relationships`` hold the resolved included set; the
    model graph itself is only referenced, never mutated.
    """

    key: str
    kind: ViewKind
    subject: str
    title: str
    elements: Tuple[str, ...]
    relationships: Tuple[str, ...]
    layout: LayoutDirective = field(default_factory=LayoutDirective)
    filter: ViewFilter = field(default_factory=ViewFilter)
    description: str = ""
    environment: Optional[str] = None
    styles: Tuple[StyleRule, ...] = ()
    animation: List[AnimationStep] = field(default_factory=list)

    def includes(self, element_id: str) -> bool:
        return element_id in self.elements
