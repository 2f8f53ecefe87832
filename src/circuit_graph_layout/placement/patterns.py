"""
Circuit pattern recognition for hierarchical placement.

Recognizes four textbook sub-circuits and gives each an ideal shape on a
100 x 100 template box:

    BRIDGE   two non-adjacent nodes joined by two 2-branch paths (diamond)
    PI       three nodes joined pairwise by single branches (triangle)
    T        a degree-3 centre whose three neighbours touch only it (T shape)
    SERIES   a chain from a degree-1 node through degree-2 nodes (line)

Patterns are searched in that order and never share a node or a branch.
Each match can be collapsed into one super node, the reduced graph laid
out, and the super nodes expanded back into their templates.

Example:
    matches = find_patterns(nodes, branches)
    reduced = collapse_patterns(nodes, branches, matches)
    coarse = ForceRelaxation(reduced.node_ids, reduced.branches).run()
    seed = expand_patterns(reduced, coarse.positions, scale=1.5)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from itertools import combinations
from typing import Iterable, Mapping, Optional, Sequence

from ..preprocessing import build_adjacency
from ..types import Branch, BranchId, ElectricalNode, NodeId, Point

# Template box side; expanded shapes are centred on the box centre
TEMPLATE_SIZE = 100.0


class PatternType(Enum):
    """Kind of recognized sub-circuit."""

    BRIDGE = "bridge"
    PI = "pi"
    T = "t"
    SERIES = "series"


@dataclass(frozen=True)
class PatternMatch:
    """
    A recognized sub-circuit.

    Attributes:
        type: Pattern kind
        nodes: Node ids; ``nodes[i]`` is drawn at ``template[i]``
        branches: Branches forming the pattern
        template: Ideal node positions on the template box
    """

    type: PatternType
    nodes: tuple[NodeId, ...]
    branches: tuple[BranchId, ...]
    template: tuple[Point, ...]


@dataclass(frozen=True)
class ExternalConnection:
    """A branch leaving a pattern: one end inside, one end outside."""

    external_id: NodeId
    internal_id: NodeId
    branch_id: BranchId


@dataclass(frozen=True)
class SuperNode:
    """A pattern collapsed to a single node."""

    id: NodeId
    match: PatternMatch
    connections: tuple[ExternalConnection, ...] = ()


@dataclass(frozen=True)
class SimplifiedGraph:
    """
    Graph with every pattern collapsed.

    Attributes:
        nodes: Nodes that belong to no pattern, in input order
        branches: Branches outside the patterns, with pattern endpoints
            rewired to their super node. Branches whose both ends fall in
            the same pattern are dropped.
        super_nodes: One per pattern, in match order
    """

    nodes: tuple[ElectricalNode, ...] = ()
    branches: tuple[Branch, ...] = ()
    super_nodes: tuple[SuperNode, ...] = ()

    @property
    def node_ids(self) -> list[NodeId]:
        """Regular node ids followed by super node ids."""
        return [n.id for n in self.nodes] + [s.id for s in self.super_nodes]


# =============================================================================
# Templates
# =============================================================================


def bridge_template() -> tuple[Point, ...]:
    """Start left, the two middle nodes top and bottom, end right."""
    return (Point(0, 50), Point(50, 0), Point(50, 100), Point(100, 50))


def pi_template() -> tuple[Point, ...]:
    return (Point(50, 0), Point(0, 86.6), Point(100, 86.6))


def t_template() -> tuple[Point, ...]:
    """Centre first, then left, right and top arms."""
    return (Point(50, 50), Point(0, 50), Point(100, 50), Point(50, 0))


def series_template(count: int) -> tuple[Point, ...]:
    """``count`` evenly spaced points along the horizontal midline."""
    spacing = TEMPLATE_SIZE / (count - 1)
    return tuple(Point(i * spacing, 50) for i in range(count))


# =============================================================================
# Detection
# =============================================================================


class _Search:
    """Shared state of one find_patterns call."""

    def __init__(self, nodes: Sequence[ElectricalNode], branches: Sequence[Branch]):
        self.node_ids = [n.id for n in nodes]
        self.branches = [b for b in branches if not b.is_self_loop]
        self.adjacency = build_adjacency(self.node_ids, self.branches)
        self.used_nodes: set[NodeId] = set()
        self.used_branches: set[BranchId] = set()

    def free(self, node_ids: Iterable[NodeId]) -> bool:
        return not any(n in self.used_nodes for n in node_ids)

    def branch_between(self, a: NodeId, b: NodeId) -> Optional[Branch]:
        """First unused branch joining a and b, in input order."""
        for branch in self.branches:
            if branch.id in self.used_branches:
                continue
            if {branch.source_id, branch.target_id} == {a, b}:
                return branch
        return None

    def branches_within(self, node_ids: Iterable[NodeId]) -> list[Branch]:
        inside = set(node_ids)
        return [b for b in self.branches if b.source_id in inside and b.target_id in inside]

    def claim(self, match: PatternMatch) -> PatternMatch:
        self.used_nodes.update(match.nodes)
        self.used_branches.update(match.branches)
        return match


def _within_degrees(node_ids: Sequence[NodeId], branches: Sequence[Branch]) -> list[int]:
    return [sum(1 for b in branches if n in (b.source_id, b.target_id)) for n in node_ids]


def _find_bridges(search: _Search) -> list[PatternMatch]:
    matches = []
    for start, end in combinations(search.node_ids, 2):
        if not search.free((start, end)) or end in search.adjacency[start]:
            continue
        middles = [
            m
            for m in dict.fromkeys(search.adjacency[start])
            if m in search.adjacency[end] and search.free((m,))
        ]
        if len(middles) < 2:
            continue
        top, bottom = middles[0], middles[1]
        legs = [
            search.branch_between(start, top),
            search.branch_between(top, end),
            search.branch_between(start, bottom),
            search.branch_between(bottom, end),
        ]
        if any(leg is None for leg in legs):
            continue
        matches.append(
            search.claim(
                PatternMatch(
                    PatternType.BRIDGE,
                    (start, top, bottom, end),
                    tuple(leg.id for leg in legs if leg is not None),
                    bridge_template(),
                )
            )
        )
    return matches


def _find_pis(search: _Search) -> list[PatternMatch]:
    matches = []
    for triple in combinations(search.node_ids, 3):
        if not search.free(triple):
            continue
        inner = search.branches_within(triple)
        if len(inner) != 3 or _within_degrees(triple, inner) != [2, 2, 2]:
            continue
        if any(b.id in search.used_branches for b in inner):
            continue
        matches.append(
            search.claim(
                PatternMatch(PatternType.PI, triple, tuple(b.id for b in inner), pi_template())
            )
        )
    return matches


def _find_ts(search: _Search) -> list[PatternMatch]:
    matches = []
    for center in search.node_ids:
        neighbors = search.adjacency[center]
        if len(neighbors) != 3 or len(set(neighbors)) != 3:
            continue
        members = (center, *neighbors)
        if not search.free(members):
            continue
        inner = search.branches_within(members)
        if len(inner) != 3 or _within_degrees(members, inner) != [3, 1, 1, 1]:
            continue
        if any(b.id in search.used_branches for b in inner):
            continue
        matches.append(
            search.claim(
                PatternMatch(PatternType.T, members, tuple(b.id for b in inner), t_template())
            )
        )
    return matches


def _trace_chain(search: _Search, start: NodeId) -> tuple[list[NodeId], list[BranchId]]:
    chain = [start]
    links: list[BranchId] = []
    previous: Optional[NodeId] = None
    current = start

    while True:
        step = None
        for neighbor in search.adjacency[current]:
            if neighbor == previous or neighbor in search.used_nodes or neighbor in chain:
                continue
            branch = search.branch_between(current, neighbor)
            if branch is not None:
                step = (neighbor, branch)
                break
        if step is None:
            break

        neighbor, branch = step
        degree = len(search.adjacency[neighbor])
        if degree > 2:
            break
        chain.append(neighbor)
        links.append(branch.id)
        previous, current = current, neighbor
        if degree == 1:
            break

    return chain, links


def _find_series(search: _Search) -> list[PatternMatch]:
    matches = []
    for start in search.node_ids:
        if start in search.used_nodes or len(search.adjacency[start]) != 1:
            continue
        chain, links = _trace_chain(search, start)
        if len(chain) < 3:
            continue
        matches.append(
            search.claim(
                PatternMatch(
                    PatternType.SERIES, tuple(chain), tuple(links), series_template(len(chain))
                )
            )
        )
    return matches


def find_patterns(
    nodes: Sequence[ElectricalNode], branches: Sequence[Branch]
) -> list[PatternMatch]:
    """
    Find bridge, pi, T and series patterns.

    Larger patterns are searched first; a node or branch claimed by one
    match is not available to later ones.

    Args:
        nodes: Electrical nodes
        branches: Branches (current sources already removed)

    Returns:
        Matches in search order
    """
    search = _Search(nodes, branches)
    return [
        *_find_bridges(search),
        *_find_pis(search),
        *_find_ts(search),
        *_find_series(search),
    ]


# =============================================================================
# Collapse / Expand
# =============================================================================


def _super_ids(count: int, taken: set[NodeId]) -> list[NodeId]:
    ids = []
    for i in range(count):
        candidate = f"pattern_{i}"
        while candidate in taken:
            candidate += "_"
        taken.add(candidate)
        ids.append(candidate)
    return ids


def collapse_patterns(
    nodes: Sequence[ElectricalNode],
    branches: Sequence[Branch],
    matches: Sequence[PatternMatch],
) -> SimplifiedGraph:
    """
    Replace every matched pattern by one super node.

    Super node ids are ``pattern_<i>``, suffixed with underscores when a
    real node already has that id.
    """
    ids = _super_ids(len(matches), {n.id for n in nodes})
    owner: dict[NodeId, NodeId] = {}
    for super_id, match in zip(ids, matches):
        for node_id in match.nodes:
            owner[node_id] = super_id
    pattern_branches = {b for match in matches for b in match.branches}

    connections: dict[NodeId, list[ExternalConnection]] = {super_id: [] for super_id in ids}
    reduced: list[Branch] = []
    for branch in branches:
        if branch.id in pattern_branches:
            continue
        source = owner.get(branch.source_id, branch.source_id)
        target = owner.get(branch.target_id, branch.target_id)
        if source == target and (branch.source_id in owner or branch.target_id in owner):
            continue
        if branch.source_id in owner:
            connections[source].append(
                ExternalConnection(branch.target_id, branch.source_id, branch.id)
            )
        if branch.target_id in owner:
            connections[target].append(
                ExternalConnection(branch.source_id, branch.target_id, branch.id)
            )
        reduced.append(replace(branch, source_id=source, target_id=target))

    return SimplifiedGraph(
        nodes=tuple(n for n in nodes if n.id not in owner),
        branches=tuple(reduced),
        super_nodes=tuple(
            SuperNode(super_id, match, tuple(connections[super_id]))
            for super_id, match in zip(ids, matches)
        ),
    )


def expand_patterns(
    graph: SimplifiedGraph,
    positions: Mapping[NodeId, Point],
    scale: float = 1.0,
) -> dict[NodeId, Point]:
    """
    Place pattern nodes on their templates around their super node.

    The template box centre lands on the super node position and template
    units are multiplied by ``scale``. Regular nodes keep their position.

    Returns:
        Positions of regular nodes, then pattern nodes in match order
    """
    half = TEMPLATE_SIZE / 2
    result = {n.id: positions[n.id] for n in graph.nodes if n.id in positions}
    for super_node in graph.super_nodes:
        anchor = positions.get(super_node.id)
        if anchor is None:
            continue
        for node_id, t in zip(super_node.match.nodes, super_node.match.template):
            result[node_id] = Point(
                anchor.x + (t.x - half) * scale, anchor.y + (t.y - half) * scale
            )
    return result


__all__ = [
    "PatternType",
    "PatternMatch",
    "ExternalConnection",
    "SuperNode",
    "SimplifiedGraph",
    "bridge_template",
    "pi_template",
    "t_template",
    "series_template",
    "find_patterns",
    "collapse_patterns",
    "expand_patterns",
]
