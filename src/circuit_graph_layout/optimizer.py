"""
Multi-candidate layout selection.

Runs node placement and edge routing once per LayoutVariant (a different
seed or grid size) and keeps the candidate with the lowest total score:

    total = crossings * crossing_penalty
            - spacing * spacing_weight
            - symmetry * symmetry_weight
            - planar_bonus (when there are no crossings)

Spacing is the mean distance between the arrow points of all branch
pairs; symmetry is the share of nodes whose reflection about the vertical
line through the mean x lands on a node.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from itertools import combinations
from typing import Mapping, Optional, Sequence

from .config import LayoutConfig, LayoutVariant
from .geometry import distance
from .metrics import path_crossings
from .placement.placer import NodePlacement, NodePlacer
from .routing.router import EdgeRoute, EdgeRouter
from .types import Branch, BranchId, ElectricalNode, NodeId, Point

# Spacing reported when fewer than two branches exist
_DEFAULT_SPACING = 100.0


def variant_config(config: LayoutConfig, variant: LayoutVariant) -> LayoutConfig:
    """``config`` with the variant's overrides applied."""
    if variant.random_seed is not None:
        config = replace(config, random_seed=variant.random_seed)
    if variant.grid_size is not None:
        config = replace(config, grid=replace(config.grid, grid_size=variant.grid_size))
    return config


@dataclass(frozen=True)
class CandidateScore:
    """Score components of one candidate; lower ``total`` is better."""

    crossings: int
    average_spacing: float
    symmetry: float
    total: float

    @property
    def is_planar(self) -> bool:
        return self.crossings == 0


@dataclass(frozen=True)
class LayoutCandidate:
    variant: LayoutVariant
    placement: NodePlacement
    routes: dict[BranchId, EdgeRoute]
    score: CandidateScore


class LayoutOptimizer:
    """
    Pick the best of several placement and routing runs.

    Example:
        optimizer = LayoutOptimizer(LayoutConfig())
        best = optimizer.select(nodes, branches)
        best.variant.name, best.score.total
    """

    def __init__(
        self,
        config: Optional[LayoutConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._config = config or LayoutConfig()
        self._logger = logger or logging.getLogger(__name__)

    @property
    def config(self) -> LayoutConfig:
        return self._config

    def generate(
        self,
        nodes: Sequence[ElectricalNode],
        branches: Sequence[Branch],
        rest_lengths: Optional[Mapping[tuple[NodeId, NodeId], float]] = None,
    ) -> list[LayoutCandidate]:
        """
        Place and route once per configured variant.

        Returns:
            One scored candidate per variant, in variant order
        """
        candidates = []
        for variant in self._config.optimizer.variants:
            config = variant_config(self._config, variant)
            placement = NodePlacer(config, self._logger).place(nodes, branches, rest_lengths)
            routes = EdgeRouter(config.router, self._logger).route(
                branches, placement.positions
            )
            score = self.score(branches, placement.positions, routes)
            candidates.append(LayoutCandidate(variant, placement, routes, score))
        return candidates

    def select(
        self,
        nodes: Sequence[ElectricalNode],
        branches: Sequence[Branch],
        rest_lengths: Optional[Mapping[tuple[NodeId, NodeId], float]] = None,
    ) -> LayoutCandidate:
        """The lowest-scoring candidate; the earliest variant wins ties."""
        candidates = self.generate(nodes, branches, rest_lengths)
        best = min(range(len(candidates)), key=lambda i: (candidates[i].score.total, i))
        chosen = candidates[best]
        self._logger.debug(
            "Layout variant %r chosen (score %.1f, %d crossings) among %d",
            chosen.variant.name,
            chosen.score.total,
            chosen.score.crossings,
            len(candidates),
        )
        return chosen

    def score(
        self,
        branches: Sequence[Branch],
        positions: Mapping[NodeId, Point],
        routes: Mapping[BranchId, EdgeRoute],
    ) -> CandidateScore:
        cfg = self._config.optimizer
        router = self._config.router
        polylines = {b.id: routes[b.id].geometry.sample(router.samples) for b in branches}
        crossings = path_crossings(branches, polylines, positions, router.node_radius)
        spacing = average_spacing([routes[b.id].arrow_point.point for b in branches])
        symmetry = mirror_symmetry(positions, cfg.mirror_tolerance)

        total = (
            crossings * cfg.crossing_penalty
            - spacing * cfg.spacing_weight
            - symmetry * cfg.symmetry_weight
        )
        if crossings == 0:
            total -= cfg.planar_bonus
        return CandidateScore(crossings, spacing, symmetry, total)


def average_spacing(points: Sequence[Point]) -> float:
    """Mean pairwise distance, or a fixed default for fewer than two points."""
    if len(points) < 2:
        return _DEFAULT_SPACING
    distances = [distance(a, b) for a, b in combinations(points, 2)]
    return sum(distances) / len(distances)


def mirror_symmetry(positions: Mapping[NodeId, Point], tolerance: float) -> float:
    """
    Share of nodes mirrored about the vertical line through the mean x.

    A node on the axis mirrors onto itself.

    Returns:
        Fraction in [0, 1]; 0 for an empty layout
    """
    points = list(positions.values())
    if not points:
        return 0.0
    axis = sum(p.x for p in points) / len(points)
    mirrored = 0
    for p in points:
        reflected = Point(2 * axis - p.x, p.y)
        if any(distance(reflected, q) <= tolerance for q in points):
            mirrored += 1
    return mirrored / len(points)


__all__ = [
    "CandidateScore",
    "LayoutCandidate",
    "LayoutOptimizer",
    "average_spacing",
    "mirror_symmetry",
    "variant_config",
]
