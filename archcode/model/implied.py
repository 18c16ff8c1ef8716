"""Derived relationships created once the declared model is linked.

- Implied relationships lift a declared relationship to the ancestors of its
  endpoints (a person using a container also uses the container's system).
- Instance replication copies relationships between definitions onto their
  deployment instances within one environment, honouring deployment groups.
"""
from __future__ import annotations

import logging
from typing import List

from archcode.model.elements import Instance, Relationship
from archcode.model.graph import ModelGraph


logger = logging.getLogger(__name__)


def _lineage(graph: ModelGraph, element_id: str) -> List[str]:
    return [element_id] + [a.id for a in graph.ancestors(element_id)]


def create_implied_relationships(graph: ModelGraph) -> List[Relationship]:
    """Add implied relationships unless any relationship already connects the pair."""
    created: List[Relationship] = []
    for rel in list(graph.relationships):
        if rel.implied:
            continue
        source = graph.get(rel.source)
        destination = graph.get(rel.destination)
        if not (source.STATIC and destination.STATIC):
            continue
        for s in _lineage(graph, rel.source):
            for d in _lineage(graph, rel.destination):
                if s == d or (s, d) == (rel.source, rel.destination):
                    continue
                if graph.is_ancestor(s, d) or graph.is_ancestor(d, s):
                    continue
                if graph.has_relationship(s, d):
                    continue
                created.append(
                    graph.add_relationship(
                        s,
                        d,
                        rel.label,
                        rel.technology,
                        interaction=rel.interaction,
                        tags=rel.tags,
                        implied=True,
                        linked_to=rel.id,
                    )
                )
    logger.debug("created %d implied relationships", len(created))
    return created


def replicate_instance_relationships(graph: ModelGraph) -> List[Relationship]:
    """Copy definition-level relationships, implied ones included, onto instances.

    Only instances in the same environment are linked, and only when they
    share a deployment group or either has none.
    """
    created: List[Relationship] = []
    instances = graph.of_type(Instance)
    if not instances:
        return created
    for rel in list(graph.relationships):
        if not (graph.get(rel.source).STATIC and graph.get(rel.destination).STATIC):
            continue
        sources = [i for i in instances if i.definition == rel.source]
        destinations = [i for i in instances if i.definition == rel.destination]
        for s in sources:
            for d in destinations:
                if s.environment != d.environment or not s.shares_group_with(d):
                    continue
                if not rel.parallel and graph.has_relationship(s.id, d.id, rel.label):
                    continue
                created.append(
                    graph.add_relationship(
                        s.id,
                        d.id,
                        rel.label,
                        rel.technology,
                        interaction=rel.interaction,
                        tags=rel.tags,
                        parallel=rel.parallel,
                        implied=rel.implied,
                        linked_to=rel.id,
                    )
                )
    logger.debug("replicated %d relationships onto instances", len(created))
    return created
