"""
Circuit graph preprocessing utilities.

This module provides the topology queries shared by the pipeline stages:
- Current-source filtering
- Adjacency and degree
- Connected component detection
- Parallel branch groups
- Star (hub and leaves) detection

Self-loop branches are ignored by adjacency and degree: they do not pull
their node toward any other node.
"""

from __future__ import annotations

from collections import Counter, deque
from typing import Sequence

from .types import Branch, NodeId

# =============================================================================
# Filtering
# =============================================================================


def filter_current_sources(branches: Sequence[Branch]) -> tuple[Branch, ...]:
    """
    Drop current-source branches.

    Current sources are excluded from tree/co-tree analysis and are never
    drawn.

    Example:
        >>> b = [Branch("r", "resistor", 1.0, "a", "b"),
        ...      Branch("i", "currentSource", 1.0, "a", "b")]
        >>> [x.id for x in filter_current_sources(b)]
        ['r']
    """
    return tuple(branch for branch in branches if not branch.is_current_source)


# =============================================================================
# Adjacency
# =============================================================================


def build_adjacency(
    node_ids: Sequence[NodeId], branches: Sequence[Branch]
) -> dict[NodeId, list[NodeId]]:
    """
    Build an undirected adjacency list.

    Parallel branches contribute one neighbour entry each, so the list
    length is the node's degree in the multigraph.

    Args:
        node_ids: Node ids, in output order
        branches: Branches between those nodes

    Returns:
        Mapping from node id to neighbour ids (with multiplicity).
    """
    adj: dict[NodeId, list[NodeId]] = {node_id: [] for node_id in node_ids}
    for branch in branches:
        if branch.is_self_loop:
            continue
        if branch.source_id not in adj or branch.target_id not in adj:
            continue
        adj[branch.source_id].append(branch.target_id)
        adj[branch.target_id].append(branch.source_id)
    return adj


def node_degrees(node_ids: Sequence[NodeId], branches: Sequence[Branch]) -> dict[NodeId, int]:
    """Degree of every node in the multigraph, self-loops excluded."""
    adj = build_adjacency(node_ids, branches)
    return {node_id: len(neighbors) for node_id, neighbors in adj.items()}


def pair_multiplicity(branches: Sequence[Branch]) -> Counter[tuple[NodeId, NodeId]]:
    """Number of branches joining each unordered node pair."""
    return Counter(branch.node_pair for branch in branches if not branch.is_self_loop)


def parallel_groups(branches: Sequence[Branch]) -> dict[tuple[NodeId, NodeId], list[Branch]]:
    """
    Group branches that share the same unordered node pair.

    Returns:
        Mapping from canonical node pair to its branches (input order),
        only for pairs joined by two or more branches.
    """
    groups: dict[tuple[NodeId, NodeId], list[Branch]] = {}
    for branch in branches:
        if branch.is_self_loop:
            continue
        groups.setdefault(branch.node_pair, []).append(branch)
    return {pair: group for pair, group in groups.items() if len(group) >= 2}


# =============================================================================
# Connected Components
# =============================================================================


def connected_components(
    node_ids: Sequence[NodeId], branches: Sequence[Branch]
) -> list[list[NodeId]]:
    """
    Find connected components of the circuit graph.

    Args:
        node_ids: Node ids
        branches: Branches between those nodes

    Returns:
        List of components in order of their first node, each a list of
        node ids in BFS order.
    """
    adj = build_adjacency(node_ids, branches)

    visited: set[NodeId] = set()
    components: list[list[NodeId]] = []

    for start in node_ids:
        if start in visited:
            continue

        # BFS to find all nodes in this component
        component: list[NodeId] = []
        queue: deque[NodeId] = deque([start])
        visited.add(start)

        while queue:
            node = queue.popleft()
            component.append(node)

            for neighbor in adj[node]:
                if neighbor not in visited:
                    visited.add(neighbor)
                    queue.append(neighbor)

        components.append(component)

    return components


def is_connected(node_ids: Sequence[NodeId], branches: Sequence[Branch]) -> bool:
    """Check if the graph has at most one component."""
    return len(connected_components(node_ids, branches)) <= 1


# =============================================================================
# Star Detection
# =============================================================================


def find_stars(
    node_ids: Sequence[NodeId],
    branches: Sequence[Branch],
    min_leaves: int,
) -> list[tuple[NodeId, list[NodeId]]]:
    """
    Find hubs with at least ``min_leaves`` leaf neighbours.

    A leaf is a node of degree 1, i.e. attached to its hub by a single
    branch and to nothing else.

    Returns:
        List of (hub, leaves) in node order.
    """
    adj = build_adjacency(node_ids, branches)

    stars: list[tuple[NodeId, list[NodeId]]] = []
    for hub in node_ids:
        if len(adj[hub]) == 1:
            continue
        leaves = [n for n in dict.fromkeys(adj[hub]) if len(adj[n]) == 1]
        if len(leaves) >= min_leaves:
            stars.append((hub, leaves))
    return stars


__all__ = [
    "filter_current_sources",
    "build_adjacency",
    "node_degrees",
    "pair_multiplicity",
    "parallel_groups",
    "connected_components",
    "is_connected",
    "find_stars",
]
