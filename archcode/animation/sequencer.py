"""Animation sequencer: ordered reveal steps over a view's included set."""
from __future__ import annotations

import logging
from typing import Iterable, List, Set

from archcode.errors import InvalidAnimationStep
from archcode.model.graph import ModelGraph
from archcode.views.view import AnimationStep, View


logger = logging.getLogger(__name__)


class AnimationSequencer:
    """Appends reveal steps to a view.

    A step must name at least one element, every element must be part of the
    view and no element may appear in two steps. Each step also reveals the
    view relationships whose endpoints are both visible once it has played.
    """

    def __init__(self, view: View, graph: ModelGraph) -> None:
        self.view = view
        self.graph = graph
        self._revealed: Set[str] = {e for step in view.animation for e in step.elements}
        self._shown: Set[str] = {r for step in view.animation for r in step.relationships}

    @property
    def steps(self) -> List[AnimationStep]:
        return list(self.view.animation)

    def add_step(self, element_ids: Iterable[str]) -> AnimationStep:
        ids: List[str] = []
        for element_id in element_ids:
            if element_id not in ids:
                ids.append(element_id)
        order = len(self.view.animation) + 1

        if not ids:
            raise InvalidAnimationStep(
                f"Animation step {order} of view '{self.view.key}' is empty",
                scope=[self.view.key],
            )
        outside = [e for e in ids if not self.view.includes(e)]
        if outside:
            raise InvalidAnimationStep(
                f"Animation step {order} of view '{self.view.key}' references elements outside the view",
                scope=[self.view.key],
                identifiers=outside,
            )
        repeated = [e for e in ids if e in self._revealed]
        if repeated:
            raise InvalidAnimationStep(
                f"Animation step {order} of view '{self.view.key}' repeats elements from an earlier step",
                scope=[self.view.key],
                identifiers=repeated,
            )

        self._revealed.update(ids)
        relationships = []
        for relationship_id in self.view.relationships:
            if relationship_id in self._shown:
                continue
            relationship = self.graph.get_relationship(relationship_id)
            if relationship.source in self._revealed and relationship.destination in self._revealed:
                relationships.append(relationship_id)
        self._shown.update(relationships)

        step = AnimationStep(order=order, elements=tuple(ids), relationships=tuple(relationships))
        self.view.animation.append(step)
        logger.debug("view %s: step %d reveals %d elements", self.view.key, order, len(ids))
        return step
