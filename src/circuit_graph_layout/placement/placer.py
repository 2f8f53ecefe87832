"""
Node placement: force relaxation followed by deterministic refinement.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field, replace
from typing import Mapping, Optional, Sequence

from ..config import LayoutConfig
from ..geometry import bounds_of
from ..preprocessing import build_adjacency, find_stars
from ..types import BoundingBox, Branch, ElectricalNode, NodeId, Point
from .annealing import PlanarityAnnealer, count_straight_crossings, unique_pairs
from .force import ForceRelaxation
from .patterns import collapse_patterns, expand_patterns, find_patterns
from .refinement import (
    align_axes,
    center_positions,
    distribute_star,
    snap_to_grid,
)
from .symmetry import (
    AxisOrientation,
    MirrorAxis,
    enforce_mirror_symmetry,
    structural_classes,
)


@dataclass(frozen=True)
class NodePlacement:
    """
    Result of node placement.

    Attributes:
        positions: One position per node, in input node order
        bounds: Bounding box of the positions
        converged: Whether force relaxation converged before its cap
        iterations: Force relaxation ticks performed
        mirror_axis: Axis the layout was made symmetric about, if any
    """

    positions: dict[NodeId, Point] = field(default_factory=dict)
    bounds: BoundingBox = BoundingBox(0.0, 0.0, 0.0, 0.0)
    converged: bool = True
    iterations: int = 0
    mirror_axis: Optional[MirrorAxis] = None


class NodePlacer:
    """
    Compute node positions for a circuit graph.

    Pipeline:
    0. Pattern seeding: bridge, pi, T and series sub-circuits are collapsed,
       the reduced graph is relaxed and the patterns expanded into their
       template shapes as starting positions
    1. Force relaxation (springs, repulsion, degree-weighted centering),
       shortened to a refinement run when seeded
    2. Planarity annealing, when the straight-line drawing has crossings
    3. Grid snapping
    4. Axis alignment
    5. Mirror symmetry over structurally equivalent nodes
    6. Star distribution around hubs
    7. Centering on the canvas

    Example:
        placer = NodePlacer(LayoutConfig())
        placement = placer.place(graph.nodes, branches)
        for node_id, p in placement.positions.items():
            print(node_id, p.x, p.y)
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

    def place(
        self,
        nodes: Sequence[ElectricalNode],
        branches: Sequence[Branch],
        rest_lengths: Optional[Mapping[tuple[NodeId, NodeId], float]] = None,
    ) -> NodePlacement:
        """
        Place every node.

        Args:
            nodes: Electrical nodes
            branches: Branches to draw (current sources already removed)
            rest_lengths: Spring rest length per canonical node pair

        Returns:
            NodePlacement with one position per node
        """
        cfg = self._config
        node_ids = [node.id for node in nodes]
        if not node_ids:
            return NodePlacement()

        rng = random.Random(cfg.random_seed)
        canvas_w, canvas_h = cfg.canvas_size
        center = Point(canvas_w / 2, canvas_h / 2)

        force_config = cfg.force
        seed = self._seed_from_patterns(nodes, branches, center, rng)
        if seed:
            force_config = replace(
                cfg.force,
                max_iterations=min(cfg.patterns.refine_iterations, cfg.force.max_iterations),
                max_step=min(cfg.patterns.refine_step, cfg.force.max_step),
            )

        force = ForceRelaxation(
            node_ids,
            branches,
            config=force_config,
            center=center,
            rest_lengths=rest_lengths,
            rng=rng,
            initial_positions=seed,
        ).run()
        if not force.converged:
            self._logger.debug(
                "Force relaxation did not converge after %d iterations", force.iteration
            )
        positions = force.positions

        if cfg.annealing.enabled:
            positions = self._anneal(positions, branches, rng)

        positions = snap_to_grid(positions, cfg.grid.grid_size)
        positions = align_axes(positions, cfg.grid.align_tolerance)

        axis: Optional[MirrorAxis] = None
        if cfg.symmetry.enabled:
            classes = structural_classes(node_ids, branches, cfg.symmetry.refinement_rounds)
            positions, axis = enforce_mirror_symmetry(
                positions, branches, classes, cfg.symmetry.tolerance
            )

        if cfg.star.enabled:
            adjacency = build_adjacency(node_ids, branches)
            for hub, leaves in find_stars(node_ids, branches, cfg.star.min_leaves):
                positions = distribute_star(
                    positions,
                    hub,
                    leaves,
                    adjacency[hub],
                    cfg.force.link_length,
                    cfg.star.start_angle,
                )

        before = bounds_of(positions.values()).center
        positions = center_positions(positions, cfg.canvas_size)
        if axis is not None:
            shift = center.x - before.x
            if axis.orientation is AxisOrientation.HORIZONTAL:
                shift = center.y - before.y
            axis = MirrorAxis(axis.orientation, axis.coordinate + shift)

        return NodePlacement(
            positions=positions,
            bounds=bounds_of(positions.values()),
            converged=force.converged,
            iterations=force.iteration,
            mirror_axis=axis,
        )

    def _seed_from_patterns(
        self,
        nodes: Sequence[ElectricalNode],
        branches: Sequence[Branch],
        center: Point,
        rng: random.Random,
    ) -> dict[NodeId, Point]:
        """Lay out the pattern-collapsed graph and expand it into templates."""
        cfg = self._config
        if not cfg.patterns.enabled:
            return {}
        matches = find_patterns(nodes, branches)
        if not matches:
            return {}

        reduced = collapse_patterns(nodes, branches, matches)
        coarse = ForceRelaxation(
            reduced.node_ids,
            reduced.branches,
            config=cfg.force,
            center=center,
            rng=rng,
        ).run()
        self._logger.debug(
            "Seeding placement from patterns: %s",
            ", ".join(f"{m.type.value}({' '.join(m.nodes)})" for m in matches),
        )
        return expand_patterns(reduced, coarse.positions, cfg.patterns.template_scale)

    def _anneal(
        self,
        positions: dict[NodeId, Point],
        branches: Sequence[Branch],
        rng: random.Random,
    ) -> dict[NodeId, Point]:
        crossings = count_straight_crossings(positions, unique_pairs(branches))
        if crossings == 0:
            return positions

        annealer = PlanarityAnnealer(
            positions, branches, config=self._config.annealing, rng=rng
        ).run()
        self._logger.debug(
            "Annealing reduced %d crossings to %d",
            crossings,
            count_straight_crossings(annealer.best_positions, unique_pairs(branches)),
        )
        return annealer.best_positions


__all__ = [
    "NodePlacement",
    "NodePlacer",
]
