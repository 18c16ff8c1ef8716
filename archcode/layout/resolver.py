"""Layout resolver: deterministic ordering and positions for a view.

Strategies are pluggable and looked up by name. Every strategy sees the
element ids and edges already sorted, so the result only depends on the
included set and the directive, never on declaration order.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

import networkx as nx

from archcode.model.elements import Element, Relationship
from archcode.views.view import LayoutDirective


logger = logging.getLogger(__name__)

Edge = Tuple[str, str]
# (element id, rank, order, x, y)
Cell = Tuple[str, int, int, int, int]
Strategy = Callable[[Sequence[str], Sequence[Edge], LayoutDirective], List[Cell]]

_STRATEGIES: Dict[str, Strategy] = {}


@dataclass(frozen=True)
class Placement:
    element: str
    rank: int
    order: int
    x: int
    y: int
    group: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "rank": self.rank,
            "order": self.order,
            "x": self.x,
            "y": self.y,
            "group": self.group,
        }


def register_strategy(name: str, strategy: Optional[Strategy] = None):
    """Register a layout strategy; usable as a decorator."""
    def _register(fn: Strategy) -> Strategy:
        _STRATEGIES[name] = fn
        return fn

    if strategy is not None:
        return _register(strategy)
    return _register


def available_strategies() -> List[str]:
    return sorted(_STRATEGIES)


# ---------- layered strategies ----------


def _break_cycles(nodes: Sequence[str], edges: Sequence[Edge]) -> List[Edge]:
    """Drop back edges found by a DFS visiting nodes and successors in sorted order."""
    successors: Dict[str, List[str]] = {n: [] for n in nodes}
    for s, d in edges:
        successors[s].append(d)
    state: Dict[str, int] = {}  # 1 = on stack, 2 = done
    kept: List[Edge] = []
    for root in nodes:
        if root in state:
            continue
        stack = [(root, iter(successors[root]))]
        state[root] = 1
        while stack:
            node, children = stack[-1]
            child = next(children, None)
            if child is None:
                state[node] = 2
                stack.pop()
                continue
            if state.get(child) == 1:
                continue
            kept.append((node, child))
            if child not in state:
                state[child] = 1
                stack.append((child, iter(successors[child])))
    return sorted(kept)


def _ranks(nodes: Sequence[str], edges: Sequence[Edge]) -> Dict[str, int]:
    """Longest-path layering over an acyclic edge set."""
    graph = nx.DiGraph()
    graph.add_nodes_from(nodes)
    graph.add_edges_from(edges)
    rank: Dict[str, int] = {}
    for node in nx.lexicographical_topological_sort(graph):
        rank[node] = max((rank[p] + 1 for p in graph.predecessors(node)), default=0)
    return rank


def _order_within_ranks(rank: Dict[str, int], edges: Sequence[Edge]) -> Dict[str, int]:
    """Order each rank by the barycenter of predecessors, ties broken by id."""
    predecessors: Dict[str, List[str]] = {n: [] for n in rank}
    for s, d in edges:
        predecessors[d].append(s)
    order: Dict[str, int] = {}
    for level in sorted(set(rank.values())):
        members = sorted(n for n in rank if rank[n] == level)

        def barycenter(node: str) -> float:
            placed = [order[p] for p in predecessors[node] if p in order]
            return sum(placed) / len(placed) if placed else -1.0

        for index, node in enumerate(sorted(members, key=lambda n: (barycenter(n), n))):
            order[node] = index
    return order


def _layered(direction: str) -> Strategy:
    def strategy(nodes: Sequence[str], edges: Sequence[Edge], directive: LayoutDirective) -> List[Cell]:
        acyclic = _break_cycles(nodes, edges)
        rank = _ranks(nodes, acyclic)
        order = _order_within_ranks(rank, acyclic)
        last = max(rank.values(), default=0)
        cells: List[Cell] = []
        for node in nodes:
            r, o = rank[node], order[node]
            along = (last - r if direction in ("bt", "rl") else r) * directive.rank_separation
            across = o * directive.node_separation
            if direction in ("tb", "bt"):
                cells.append((node, r, o, across, along))
            else:
                cells.append((node, r, o, along, across))
        return cells

    return strategy


for _direction in ("tb", "bt", "lr", "rl"):
    register_strategy(_direction, _layered(_direction))


@register_strategy("grid")
def grid_layout(nodes: Sequence[str], edges: Sequence[Edge], directive: LayoutDirective) -> List[Cell]:
    columns = max(1, math.ceil(math.sqrt(len(nodes))))
    cells: List[Cell] = []
    for index, node in enumerate(nodes):
        row, column = divmod(index, columns)
        cells.append((node, row, column, column * directive.node_separation, row * directive.rank_separation))
    return cells


@register_strategy("circular")
def circular_layout(nodes: Sequence[str], edges: Sequence[Edge], directive: LayoutDirective) -> List[Cell]:
    count = len(nodes)
    radius = max(directive.rank_separation, count * directive.node_separation / (2 * math.pi))
    cells: List[Cell] = []
    for index, node in enumerate(nodes):
        angle = 2 * math.pi * index / count
        cells.append((node, 0, index, round(radius * math.cos(angle)), round(radius * math.sin(angle))))
    return cells


# ---------- resolver ----------


class LayoutResolver:
    def resolve(
        self,
        elements: Iterable[Element],
        relationships: Iterable[Relationship],
        directive: LayoutDirective,
    ) -> List[Placement]:
        """Place the view's elements; output is sorted by (rank, order, id)."""
        try:
            strategy = _STRATEGIES[directive.strategy]
        except KeyError:
            raise ValueError(f"Unknown layout strategy: {directive.strategy}") from None

        by_id = {e.id: e for e in elements}
        nodes = sorted(by_id)
        included: Set[str] = set(nodes)
        edges = sorted(
            {
                (r.source, r.destination)
                for r in relationships
                if r.source in included and r.destination in included and r.source != r.destination
            }
        )
        placements = [
            Placement(
                element=node,
                rank=rank,
                order=order,
                x=x,
                y=y,
                group=by_id[node].parent if by_id[node].parent in included else None,
            )
            for node, rank, order, x, y in strategy(nodes, edges, directive)
        ]
        placements.sort(key=lambda p: (p.rank, p.order, p.element))
        logger.debug("laid out %d elements with %s", len(placements), directive.strategy)
        return placements
