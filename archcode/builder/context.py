from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional

from archcode.model.graph import ModelGraph
from archcode.model.identifiers import IdentifierMode, IdentifierRegistry
from archcode.styles.cascade import StyleCascade
from archcode.styles.rules import StyleRule
from archcode.styles.themes import load_theme
from archcode.utils.config import settings


@dataclass
class BuildContext:
    """Everything one workspace build owns. Created fresh per build, then discarded."""

    registry: IdentifierRegistry
    graph: ModelGraph = field(default_factory=ModelGraph)
    styles: StyleCascade = field(default_factory=StyleCascade)
    phase: str = "model"

    @classmethod
    def create(
        cls,
        mode: Optional[IdentifierMode] = None,
        theme_loader: Callable[[str], List[StyleRule]] = load_theme,
    ) -> "BuildContext":
        return cls(
            registry=IdentifierRegistry(mode or settings.identifiers),
            styles=StyleCascade(theme_loader),
        )
