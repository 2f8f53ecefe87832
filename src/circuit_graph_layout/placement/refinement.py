"""
Deterministic refinement passes applied after force relaxation.

- Grid snapping and axis alignment
- Star distribution around hub nodes
- Centering on the canvas
- Crowding detection and rest-length relief
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Iterable, Mapping, Optional, Sequence

from ..config import CrowdingConfig
from ..geometry import bounds_of, distance
from ..preprocessing import pair_multiplicity
from ..types import Branch, NodeId, Point

if TYPE_CHECKING:
    from .placer import NodePlacement


# =============================================================================
# Grid
# =============================================================================


def snap_to_grid(positions: Mapping[NodeId, Point], grid_size: float) -> dict[NodeId, Point]:
    """Round every coordinate to the nearest multiple of ``grid_size``."""
    return {
        node_id: Point(round(p.x / grid_size) * grid_size, round(p.y / grid_size) * grid_size)
        for node_id, p in positions.items()
    }


def _align_axis(values: dict[NodeId, float], tolerance: float) -> dict[NodeId, float]:
    # Chain sorted coordinates into clusters of near-equal values
    clusters: list[list[tuple[NodeId, float]]] = []
    for node_id, value in sorted(values.items(), key=lambda item: item[1]):
        if clusters and value - clusters[-1][-1][1] < tolerance:
            clusters[-1].append((node_id, value))
        else:
            clusters.append([(node_id, value)])

    result: dict[NodeId, float] = {}
    for cluster in clusters:
        mean = sum(v for _, v in cluster) / len(cluster)
        for node_id, _ in cluster:
            result[node_id] = mean
    return result


def align_axes(positions: Mapping[NodeId, Point], tolerance: float) -> dict[NodeId, Point]:
    """
    Give nodes with nearly equal x (or y) coordinates the same value.

    Coordinates closer than ``tolerance`` are chained into one cluster and
    replaced by the cluster mean.
    """
    if tolerance <= 0:
        return dict(positions)
    xs = _align_axis({n: p.x for n, p in positions.items()}, tolerance)
    ys = _align_axis({n: p.y for n, p in positions.items()}, tolerance)
    return {node_id: Point(xs[node_id], ys[node_id]) for node_id in positions}


# =============================================================================
# Stars
# =============================================================================


def _angle(origin: Point, p: Point) -> float:
    return math.atan2(p.y - origin.y, p.x - origin.x) % (2 * math.pi)


def distribute_star(
    positions: Mapping[NodeId, Point],
    hub: NodeId,
    leaves: Sequence[NodeId],
    neighbors: Sequence[NodeId],
    link_length: float,
    start_angle: float = 0.0,
) -> dict[NodeId, Point]:
    """
    Spread the leaves of a hub evenly.

    Args:
        positions: Current positions
        hub: Hub node
        leaves: Degree-1 neighbours of the hub
        neighbors: All neighbours of the hub
        link_length: Minimum leaf distance
        start_angle: First leaf angle in degrees, for a pure star

    Returns:
        New positions. For a pure star the k leaves sit at
        ``start_angle + i * 360 / k``; otherwise they are spread over the
        largest angular gap between the hub's other neighbours. Leaves keep
        their current angular order.
    """
    result = dict(positions)
    if not leaves:
        return result

    center = positions[hub]
    mean_distance = sum(distance(center, positions[leaf]) for leaf in leaves) / len(leaves)
    radius = max(link_length, mean_distance)
    order = {node_id: i for i, node_id in enumerate(leaves)}
    ordered = sorted(
        leaves, key=lambda leaf: (round(_angle(center, positions[leaf]), 9), order[leaf])
    )
    k = len(ordered)

    leaf_set = set(leaves)
    others = [n for n in dict.fromkeys(neighbors) if n not in leaf_set]
    if not others:
        base = math.radians(start_angle)
        angles = [base + 2 * math.pi * i / k for i in range(k)]
    else:
        other_angles = sorted(_angle(center, positions[n]) for n in others)
        best_start, best_gap = other_angles[0], 0.0
        for i, a in enumerate(other_angles):
            nxt = other_angles[(i + 1) % len(other_angles)]
            gap = 2 * math.pi if len(other_angles) == 1 else (nxt - a) % (2 * math.pi)
            if gap > best_gap + 1e-9:
                best_start, best_gap = a, gap
        angles = [best_start + best_gap * (i + 1) / (k + 1) for i in range(k)]

    for leaf, angle in zip(ordered, angles):
        result[leaf] = Point(center.x + radius * math.cos(angle), center.y + radius * math.sin(angle))
    return result


# =============================================================================
# Centering
# =============================================================================


def center_positions(
    positions: Mapping[NodeId, Point], canvas_size: tuple[float, float]
) -> dict[NodeId, Point]:
    """Translate positions so their bounding-box centre is the canvas centre."""
    if not positions:
        return {}
    box = bounds_of(positions.values())
    dx = canvas_size[0] / 2 - box.center.x
    dy = canvas_size[1] / 2 - box.center.y
    return {node_id: p.translated(dx, dy) for node_id, p in positions.items()}


# =============================================================================
# Crowding
# =============================================================================


def _projection(point: Point, a: Point, b: Point) -> tuple[float, float]:
    """Parameter along a-b and distance from the line through a and b."""
    dx = b.x - a.x
    dy = b.y - a.y
    length = math.hypot(dx, dy)
    if length == 0:
        return 0.0, distance(point, a)
    t = ((point.x - a.x) * dx + (point.y - a.y) * dy) / (length * length)
    offset = abs((point.x - a.x) * dy - (point.y - a.y) * dx) / length
    return t, offset


def find_crowded_pairs(
    placement: NodePlacement,
    edges: Sequence[Branch],
    labels: Iterable[Point],
    config: Optional[CrowdingConfig] = None,
) -> list[tuple[NodeId, NodeId]]:
    """
    Find connected node pairs too close for what must be drawn between them.

    A pair is crowded when
    ``(branch count + labels inside its corridor) * crowding_unit``
    exceeds the pair's distance. A label is inside the corridor when its
    projection falls strictly within the middle of the segment
    (0.15 < t < 0.85) and it lies within ``corridor_width`` of the axis.

    Returns:
        Canonical node pairs, in first-branch order.
    """
    config = config or CrowdingConfig()
    label_points = list(labels)
    positions = placement.positions

    crowded: list[tuple[NodeId, NodeId]] = []
    for (a, b), count in pair_multiplicity(edges).items():
        pa, pb = positions[a], positions[b]
        interior = 0
        for label in label_points:
            t, offset = _projection(label, pa, pb)
            if 0.15 < t < 0.85 and offset <= config.corridor_width:
                interior += 1
        needed = (count + interior) * config.crowding_unit
        if needed > distance(pa, pb):
            crowded.append((a, b))
    return crowded


def relax_rest_lengths(
    rest_lengths: Mapping[tuple[NodeId, NodeId], float],
    crowded: Iterable[tuple[NodeId, NodeId]],
    link_length: float,
    expansion: float,
) -> dict[tuple[NodeId, NodeId], float]:
    """Multiply the rest length of every crowded pair by ``expansion``."""
    result = dict(rest_lengths)
    for pair in crowded:
        result[pair] = result.get(pair, link_length) * expansion
    return result


__all__ = [
    "snap_to_grid",
    "align_axes",
    "distribute_star",
    "center_positions",
    "find_crowded_pairs",
    "relax_rest_lengths",
]
