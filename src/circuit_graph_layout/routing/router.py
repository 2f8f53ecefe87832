"""
Multi-candidate edge routing.

Every branch gets one path. Parallel branches (two or more on one node
pair) and self-loops have forced shapes; every other branch picks the
cheapest of four candidates:

    STRAIGHT      direct segment
    LOW_ARC_CW    curve bulging +low_arc_height along the canonical normal
    LOW_ARC_CCW   curve bulging -low_arc_height
    HIGH_ARC      curve bulging +high_arc_height

The canonical normal is computed from the node pair in sorted id order,
so both directions of travel agree on which side is which.

Score (lower is better):
    intersection_penalty * (edge crossings + node circles hit)
  + proximity_weight * threshold / max(clearance, 1), per close element
  + curvature_penalty (curves) + high_arc_penalty (HIGH_ARC)
  - symmetry_bonus, when the candidate mirrors a routed partner edge

Ties break toward straight, then low arcs, then the high arc.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from ..config import RouterConfig
from ..geometry import (
    bounds_of,
    distance,
    line_circle_intersection,
    line_intersection,
    point_to_segment_distance,
    reflect_point,
)
from ..preprocessing import parallel_groups
from ..types import ArrowPoint, Branch, BranchId, NodeId, Point
from .paths import (
    PathGeometry,
    PathKind,
    arc_path,
    self_loop_path,
    straight_path,
    unit_normal,
)

# Preference order among equal scores
_RANK = {
    PathKind.STRAIGHT: 0,
    PathKind.LOW_ARC_CW: 1,
    PathKind.LOW_ARC_CCW: 2,
    PathKind.HIGH_ARC: 3,
}


@dataclass(frozen=True)
class EdgeRoute:
    """
    Routing result for one branch.

    Attributes:
        geometry: Chosen path
        arrow_point: Arrowhead pose at t = 0.5
        kind: Candidate the path came from
        score: Penalty score of the chosen path
    """

    geometry: PathGeometry
    arrow_point: ArrowPoint
    kind: PathKind
    score: float

    @property
    def is_curved(self) -> bool:
        return self.geometry.is_curved


def parallel_offsets(count: int, spacing: float) -> list[float]:
    """
    Signed curve offsets for ``count`` parallel branches.

    Offsets alternate sides with magnitudes spacing * 1, 1, 2, 2, ...
    An even count is symmetric about the chord. An odd count leaves the
    last branch unpaired on the positive side, outermost, so that no
    branch of the group is drawn straight.

    Example:
        >>> parallel_offsets(4, 40)
        [40, -40, 80, -80]
    """
    return [spacing * (i // 2 + 1) * (1 if i % 2 == 0 else -1) for i in range(count)]


class _Obstacle:
    """A path other candidates are scored against."""

    __slots__ = ("branch", "geometry", "polyline", "routed")

    def __init__(self, branch: Branch, geometry: PathGeometry, samples: int, routed: bool):
        self.branch = branch
        self.geometry = geometry
        self.polyline = geometry.sample(samples)
        self.routed = routed


class EdgeRouter:
    """
    Route every branch between placed nodes.

    Example:
        router = EdgeRouter(RouterConfig())
        routes = router.route(branches, placement.positions)
        svg_d = routes["R1"].geometry.to_svg()
    """

    def __init__(
        self,
        config: Optional[RouterConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._config = config or RouterConfig()
        self._logger = logger or logging.getLogger(__name__)

    @property
    def config(self) -> RouterConfig:
        return self._config

    def route(
        self,
        branches: Sequence[Branch],
        positions: Mapping[NodeId, Point],
    ) -> dict[BranchId, EdgeRoute]:
        """
        Route all branches.

        Args:
            branches: Branches to route (current sources already removed)
            positions: Node positions

        Returns:
            One EdgeRoute per branch, in input order
        """
        cfg = self._config
        routes: dict[BranchId, EdgeRoute] = {}
        obstacles: dict[BranchId, _Obstacle] = {}
        center = layout_center(positions)

        # Forced shapes first, so free branches are scored against them
        forced: dict[BranchId, tuple[PathGeometry, PathKind]] = {}
        for group in parallel_groups(branches).values():
            a, b = group[0].node_pair
            normal = unit_normal(positions[a], positions[b])
            for branch, offset in zip(group, parallel_offsets(len(group), cfg.parallel_spacing)):
                start, end = positions[branch.source_id], positions[branch.target_id]
                if normal is None:
                    forced[branch.id] = (straight_path(start, end), PathKind.STRAIGHT)
                else:
                    forced[branch.id] = (arc_path(start, end, offset, normal), PathKind.PARALLEL)
        for branch in branches:
            if branch.is_self_loop:
                node = positions[branch.source_id]
                forced[branch.id] = (self_loop_path(node, cfg.self_loop_size), PathKind.SELF_LOOP)

        for branch in branches:
            if branch.id in forced:
                geometry, _ = forced[branch.id]
                obstacles[branch.id] = _Obstacle(branch, geometry, cfg.samples, routed=True)
            else:
                geometry = straight_path(
                    positions[branch.source_id], positions[branch.target_id]
                )
                obstacles[branch.id] = _Obstacle(branch, geometry, cfg.samples, routed=False)

        for branch in branches:
            if branch.id in forced:
                geometry, kind = forced[branch.id]
                score = self.score(branch, geometry, kind, positions, obstacles, center)
            else:
                kind, geometry, score = self._choose(branch, positions, obstacles, center)
                obstacles[branch.id] = _Obstacle(branch, geometry, cfg.samples, routed=True)

            if score > cfg.acceptable_score:
                self._logger.debug(
                    "No acceptable route for branch %r (best score %.1f)", branch.id, score
                )
            routes[branch.id] = EdgeRoute(
                geometry=geometry,
                arrow_point=geometry.arrow_point(0.5),
                kind=kind,
                score=score,
            )

        return routes

    # -------------------------------------------------------------------------
    # Candidates
    # -------------------------------------------------------------------------

    def candidates(
        self, branch: Branch, positions: Mapping[NodeId, Point]
    ) -> list[tuple[PathKind, PathGeometry]]:
        """Candidate paths of a free branch, in preference order."""
        cfg = self._config
        start, end = positions[branch.source_id], positions[branch.target_id]
        a, b = branch.node_pair
        normal = unit_normal(positions[a], positions[b])

        result = [(PathKind.STRAIGHT, straight_path(start, end))]
        if normal is None:
            return result
        result.append((PathKind.LOW_ARC_CW, arc_path(start, end, cfg.low_arc_height, normal)))
        result.append((PathKind.LOW_ARC_CCW, arc_path(start, end, -cfg.low_arc_height, normal)))
        result.append((PathKind.HIGH_ARC, arc_path(start, end, cfg.high_arc_height, normal)))
        return result

    def _choose(
        self,
        branch: Branch,
        positions: Mapping[NodeId, Point],
        obstacles: Mapping[BranchId, _Obstacle],
        center: Point,
    ) -> tuple[PathKind, PathGeometry, float]:
        scored = [
            (
                self.score(branch, geometry, kind, positions, obstacles, center),
                _RANK[kind],
                kind,
                geometry,
            )
            for kind, geometry in self.candidates(branch, positions)
        ]
        best = min(scored, key=lambda item: (item[0], item[1]))
        return best[2], best[3], best[0]

    # -------------------------------------------------------------------------
    # Scoring
    # -------------------------------------------------------------------------

    def score(
        self,
        branch: Branch,
        geometry: PathGeometry,
        kind: PathKind,
        positions: Mapping[NodeId, Point],
        obstacles: Mapping[BranchId, _Obstacle],
        center: Optional[Point] = None,
    ) -> float:
        """
        Penalty score of one candidate path for a branch.

        ``center`` is the point the symmetry bonus mirrors about; by default
        the centre of the bounding box of ``positions``.
        """
        cfg = self._config
        if center is None:
            center = layout_center(positions)
        polyline = geometry.sample(cfg.samples)
        own_nodes = {branch.source_id, branch.target_id}
        own_points = [positions[n] for n in own_nodes]

        penalty = 0.0

        # Node circles hit
        for node_id, center in positions.items():
            if node_id in own_nodes:
                continue
            if _polyline_hits_circle(polyline, center, cfg.node_radius):
                penalty += cfg.intersection_penalty

        # Crossings with other edges
        for other_id, other in obstacles.items():
            if other_id == branch.id:
                continue
            crossings = _count_crossings(polyline, other.polyline, own_points, cfg.node_radius)
            penalty += crossings * cfg.intersection_penalty

        # Proximity, measured on the interior of the path
        interior = [geometry.point_at(t) for t in _interior_params(cfg.samples)]
        if cfg.proximity_threshold > 0 and interior:
            for node_id, center in positions.items():
                if node_id in own_nodes:
                    continue
                clearance = min(distance(p, center) for p in interior) - cfg.node_radius
                penalty += self._proximity(clearance)
            for other_id, other in obstacles.items():
                if other_id == branch.id:
                    continue
                if {other.branch.source_id, other.branch.target_id} & own_nodes:
                    continue
                clearance = _polyline_clearance(interior, other.polyline)
                penalty += self._proximity(clearance)

        if geometry.is_curved:
            penalty += cfg.curvature_penalty
        if kind is PathKind.HIGH_ARC:
            penalty += cfg.high_arc_penalty

        if self._mirrors_partner(branch, geometry, positions, obstacles, center):
            penalty -= cfg.symmetry_bonus

        return penalty

    def _proximity(self, clearance: float) -> float:
        cfg = self._config
        if clearance >= cfg.proximity_threshold:
            return 0.0
        return cfg.proximity_weight * cfg.proximity_threshold / max(clearance, 1.0)

    def _mirrors_partner(
        self,
        branch: Branch,
        geometry: PathGeometry,
        positions: Mapping[NodeId, Point],
        obstacles: Mapping[BranchId, _Obstacle],
        center: Point,
    ) -> bool:
        """True if some routed edge is this candidate's mirror image."""
        tol = self._config.symmetry_tolerance
        cx, cy = center.x, center.y
        reflections = (
            lambda p: Point(2 * cx - p.x, p.y),
            lambda p: Point(p.x, 2 * cy - p.y),
        )
        samples = geometry.sample(self._config.samples)

        for other_id, other in obstacles.items():
            if other_id == branch.id or not other.routed:
                continue
            if other.branch.node_pair == branch.node_pair and not branch.is_self_loop:
                if _same_shape_mirrored(samples, other.polyline, tol, branch, positions):
                    return True
                continue
            for reflect in reflections:
                ends = {reflect(geometry.start), reflect(geometry.end)}
                other_ends = (other.geometry.start, other.geometry.end)
                if not all(any(distance(p, q) <= tol for q in ends) for p in other_ends):
                    continue
                if all(_distance_to_polyline(reflect(p), other.polyline) <= tol for p in samples):
                    return True
        return False


def layout_center(positions: Mapping[NodeId, Point]) -> Point:
    """Centre of the bounding box of the node positions."""
    if not positions:
        return Point(0.0, 0.0)
    return bounds_of(positions.values()).center


def _interior_params(samples: int) -> list[float]:
    # t in [0.1, 0.9]
    steps = max(samples, 2)
    return [0.1 + 0.8 * i / steps for i in range(steps + 1)]


def _segments(polyline: Sequence[Point]) -> list[tuple[Point, Point]]:
    return list(zip(polyline, polyline[1:]))


def _polyline_hits_circle(polyline: Sequence[Point], center: Point, radius: float) -> bool:
    for a, b in _segments(polyline):
        if line_circle_intersection(a, b, center, radius):
            return True
        if point_to_segment_distance(center, a, b) < radius:
            return True
    return False


def _count_crossings(
    polyline: Sequence[Point],
    other: Sequence[Point],
    exclude: Sequence[Point],
    radius: float,
) -> int:
    """Unique intersection points, ignoring those at the excluded endpoints."""
    found: list[Point] = []
    for a, b in _segments(polyline):
        for c, d in _segments(other):
            hit = line_intersection(a, b, c, d)
            if hit is None:
                continue
            if any(distance(hit, e) <= radius for e in exclude):
                continue
            if any(distance(hit, f) < 1e-6 for f in found):
                continue
            found.append(hit)
    return len(found)


def _distance_to_polyline(point: Point, polyline: Sequence[Point]) -> float:
    if len(polyline) == 1:
        return distance(point, polyline[0])
    return min(point_to_segment_distance(point, a, b) for a, b in _segments(polyline))


def _polyline_clearance(points: Sequence[Point], polyline: Sequence[Point]) -> float:
    return min(_distance_to_polyline(p, polyline) for p in points)


def _same_shape_mirrored(
    samples: Sequence[Point],
    other: Sequence[Point],
    tol: float,
    branch: Branch,
    positions: Mapping[NodeId, Point],
) -> bool:
    """True if a path on the same node pair is the reflection across the chord."""
    a, b = positions[branch.source_id], positions[branch.target_id]
    if distance(a, b) < tol:
        return False
    return all(_distance_to_polyline(reflect_point(p, a, b), other) <= tol for p in samples)


__all__ = [
    "EdgeRoute",
    "EdgeRouter",
    "layout_center",
    "parallel_offsets",
]
