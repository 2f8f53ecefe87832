"""
Layout quality metrics.

Provides quantitative measures of a finished circuit drawing:
- Edge crossings: Number of edge pairs whose drawn paths intersect
- Label overlaps: Number of label boxes colliding with other elements
- Edge length variance and uniformity
- Angular resolution: Minimum angle between edges at each node
- Minimum node distance

All metrics work on a RenderableGraph; paths are parsed back from their
SVG data, so the metrics see exactly what a renderer draws.
"""

from __future__ import annotations

import math
from itertools import combinations
from typing import Any, List, Mapping, Optional, Sequence

from .config import LabelConfig
from .geometry import bounding_box_intersects, distance, line_intersection
from .routing.paths import PathGeometry, parse_path
from .types import BoundingBox, LayoutEdge, Point, RenderableGraph

_SAMPLES = 16


def _polyline(edge: LayoutEdge) -> List[Point]:
    geometry: PathGeometry = parse_path(edge.path)
    return geometry.sample(_SAMPLES)


def _paths_cross(a: List[Point], b: List[Point], shared: List[Point], radius: float) -> bool:
    for p1, p2 in zip(a, a[1:]):
        for p3, p4 in zip(b, b[1:]):
            hit = line_intersection(p1, p2, p3, p4)
            if hit is None:
                continue
            if any(distance(hit, s) <= radius for s in shared):
                continue
            return True
    return False


def path_crossings(
    edges: Sequence[Any],
    polylines: Mapping[str, List[Point]],
    positions: Mapping[str, Point],
    node_radius: float = 5.0,
) -> int:
    """
    Count crossing pairs among already sampled edge paths.

    Args:
        edges: Objects with ``id``, ``source_id`` and ``target_id``
            (branches or layout edges)
        polylines: Sampled path per edge id
        positions: Node positions
        node_radius: Radius around shared nodes where contact is allowed

    Returns:
        Number of crossing edge pairs
    """
    crossings = 0
    for e1, e2 in combinations(edges, 2):
        shared_ids = {e1.source_id, e1.target_id} & {e2.source_id, e2.target_id}
        shared = [positions[n] for n in sorted(shared_ids)]
        if _paths_cross(polylines[e1.id], polylines[e2.id], shared, node_radius):
            crossings += 1
    return crossings


def edge_crossings(graph: RenderableGraph, node_radius: float = 5.0) -> int:
    """
    Count the number of crossing edge pairs.

    Two edges cross if their drawn paths intersect anywhere except within
    ``node_radius`` of a node they share.

    Args:
        graph: Laid-out circuit
        node_radius: Radius around shared nodes where contact is allowed

    Returns:
        Number of crossing edge pairs

    Time Complexity: O(m^2 * s^2) where m = number of edges, s = samples
    """
    polylines = {edge.id: _polyline(edge) for edge in graph.edges}
    positions = {node.id: node.position for node in graph.nodes}
    return path_crossings(graph.edges, polylines, positions, node_radius)


def _label_boxes(graph: RenderableGraph, config: LabelConfig) -> List[tuple[str, BoundingBox]]:
    boxes = []
    for node in graph.nodes:
        width = len(node.label) * config.char_width
        boxes.append(
            ("node:" + node.id, BoundingBox.centered(node.label_pos, width, config.line_height))
        )
    for edge in graph.edges:
        width = len(edge.label) * config.char_width
        boxes.append(
            ("edge:" + edge.id, BoundingBox.centered(edge.label_pos, width, config.line_height))
        )
    return boxes


def label_overlaps(graph: RenderableGraph, config: Optional[LabelConfig] = None) -> int:
    """
    Count label boxes that intersect another label or a node.

    Each colliding pair is counted once. A node label touching its own
    node does not count.
    """
    config = config or LabelConfig()
    labels = _label_boxes(graph, config)

    overlaps = 0
    for (_, a), (_, b) in combinations(labels, 2):
        if bounding_box_intersects(a, b):
            overlaps += 1

    size = 2 * config.node_radius
    for owner, box in labels:
        for node in graph.nodes:
            if owner == "node:" + node.id:
                continue
            if bounding_box_intersects(box, BoundingBox.centered(node.position, size, size)):
                overlaps += 1
    return overlaps


def _edge_lengths(graph: RenderableGraph) -> List[float]:
    positions = {node.id: node.position for node in graph.nodes}
    return [
        distance(positions[e.source_id], positions[e.target_id])
        for e in graph.edges
        if e.source_id != e.target_id
    ]


def edge_length_variance(graph: RenderableGraph) -> float:
    """
    Compute the variance of node-to-node edge lengths.

    Lower variance indicates more uniform edge lengths.
    """
    lengths = _edge_lengths(graph)
    if not lengths:
        return 0.0

    mean = sum(lengths) / len(lengths)
    return sum((length - mean) ** 2 for length in lengths) / len(lengths)


def edge_length_uniformity(graph: RenderableGraph) -> float:
    """
    Compute edge length uniformity (0-1, higher is better).

    Returns:
        1 - (std_dev / mean), clamped to [0, 1]
    """
    lengths = _edge_lengths(graph)
    if not lengths:
        return 1.0

    mean = sum(lengths) / len(lengths)
    if mean == 0:
        return 0.0

    std_dev = math.sqrt(sum((length - mean) ** 2 for length in lengths) / len(lengths))
    return max(0.0, min(1.0, 1.0 - std_dev / mean))


def angular_resolution(graph: RenderableGraph) -> float:
    """
    Compute minimum angular resolution at any node.

    Angles are taken from each edge's direction as it leaves the node, so
    parallel curves leaving at different angles are told apart.

    Returns:
        Minimum angle (in degrees) between adjacent edges at any node.
        Returns 360.0 if no node has multiple edges.
    """
    incident: dict[str, List[float]] = {node.id: [] for node in graph.nodes}
    for edge in graph.edges:
        if edge.source_id == edge.target_id:
            continue
        geometry = parse_path(edge.path)
        start_dir = geometry.tangent_angle(0.0)
        end_dir = geometry.tangent_angle(1.0) + math.pi
        incident[edge.source_id].append(start_dir)
        incident[edge.target_id].append(end_dir)

    min_angle = 360.0
    for angles in incident.values():
        if len(angles) < 2:
            continue
        normalized = sorted(a % (2 * math.pi) for a in angles)
        for i, angle in enumerate(normalized):
            nxt = normalized[(i + 1) % len(normalized)]
            diff = (nxt - angle) % (2 * math.pi)
            min_angle = min(min_angle, math.degrees(diff))
    return min_angle


def min_node_distance(graph: RenderableGraph) -> float:
    """Smallest distance between two nodes (inf for fewer than two nodes)."""
    return min(
        (distance(a.position, b.position) for a, b in combinations(graph.nodes, 2)),
        default=math.inf,
    )


def layout_quality_summary(
    graph: RenderableGraph,
    label_config: Optional[LabelConfig] = None,
) -> dict[str, Any]:
    """
    Compute a summary of layout quality metrics.

    Returns:
        Dictionary with all metrics:
        - edge_crossings: Number of crossing edge pairs
        - label_overlaps: Number of label collisions
        - curved_edges: Number of curved edges
        - edge_length_variance: Variance of edge lengths
        - edge_length_uniformity: Uniformity score (0-1)
        - angular_resolution: Minimum angle in degrees
        - min_node_distance: Smallest node separation
    """
    return {
        "edge_crossings": edge_crossings(graph),
        "label_overlaps": label_overlaps(graph, label_config),
        "curved_edges": sum(1 for e in graph.edges if e.is_curved),
        "edge_length_variance": edge_length_variance(graph),
        "edge_length_uniformity": edge_length_uniformity(graph),
        "angular_resolution": angular_resolution(graph),
        "min_node_distance": min_node_distance(graph),
    }


__all__ = [
    "edge_crossings",
    "path_crossings",
    "label_overlaps",
    "edge_length_variance",
    "edge_length_uniformity",
    "angular_resolution",
    "min_node_distance",
    "layout_quality_summary",
]
