"""
Circuit graph layout engine.

Runs the three-stage pipeline and assembles the renderer-facing result:

    AnalysisGraph -> NodePlacer -> EdgeRouter -> LabelOptimizer -> RenderableGraph

Current-source branches are dropped before placement. When the crowding
check finds connected node pairs too close for their branches and labels,
their rest lengths are raised and the whole pipeline runs again, up to
``CrowdingConfig.max_relief_passes`` times. Label fallbacks are reported
once, for the pass that is kept.

With ``OptimizerConfig.enabled`` each pass places and routes once per
layout variant and keeps the best-scoring candidate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from .config import LayoutConfig
from .geometry import bounds_of
from .labels import EdgeAnchor, LabelOptimizer, LabelPlacement, NodeAnchor
from .optimizer import LayoutOptimizer
from .placement.placer import NodePlacement, NodePlacer
from .placement.refinement import find_crowded_pairs, relax_rest_lengths
from .preprocessing import connected_components, filter_current_sources
from .routing.router import EdgeRoute, EdgeRouter
from .types import (
    AnalysisGraph,
    Branch,
    BranchId,
    ElectricalNode,
    LayoutEdge,
    LayoutNode,
    NodeId,
    Point,
    RenderableGraph,
)
from .validation import validate_topology


@dataclass(frozen=True)
class _PipelineResult:
    placement: NodePlacement
    routes: dict[BranchId, EdgeRoute]
    labels: LabelPlacement


class GraphLayoutEngine:
    """
    Lay out a circuit graph for rendering.

    Example:
        engine = GraphLayoutEngine(LayoutConfig(random_seed=7))
        graph = engine.layout(analysis_graph)
        json.dumps(graph.to_dict())
    """

    def __init__(
        self,
        config: Optional[LayoutConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._config = config or LayoutConfig()
        self._logger = logger or logging.getLogger(__name__)
        self._placer = NodePlacer(self._config, self._logger)
        self._router = EdgeRouter(self._config.router, self._logger)
        self._labels = LabelOptimizer(self._config.labels, self._logger)
        self._optimizer: Optional[LayoutOptimizer] = None
        if self._config.optimizer.enabled:
            self._optimizer = LayoutOptimizer(self._config, self._logger)

    @property
    def config(self) -> LayoutConfig:
        return self._config

    def layout(self, graph: AnalysisGraph) -> RenderableGraph:
        """
        Compute the complete geometric representation of a circuit.

        Args:
            graph: Circuit topology

        Returns:
            RenderableGraph translated so that everything lies within the
            margin-padded canvas

        Raises:
            InvalidTopologyError: If a branch references a missing node or
                node/branch ids are not unique
        """
        cfg = self._config
        validate_topology(graph.nodes, graph.branches, strict=True)

        nodes = graph.nodes
        branches = filter_current_sources(graph.branches)
        if not nodes:
            return RenderableGraph(width=2 * cfg.margin, height=2 * cfg.margin)

        components = connected_components([n.id for n in nodes], branches)
        if len(components) > 1:
            self._logger.info(
                "Circuit graph has %d disconnected components", len(components)
            )

        rest_lengths: dict[tuple[NodeId, NodeId], float] = {}
        result = self._run_pipeline(nodes, branches, rest_lengths)

        if cfg.crowding.enabled:
            for relief_pass in range(cfg.crowding.max_relief_passes):
                label_points = list(result.labels.node_labels.values())
                label_points.extend(result.labels.edge_labels.values())
                crowded = find_crowded_pairs(
                    result.placement, branches, label_points, cfg.crowding
                )
                if not crowded:
                    break
                self._logger.debug(
                    "Relief pass %d: expanding %d crowded node pairs",
                    relief_pass + 1,
                    len(crowded),
                )
                rest_lengths = relax_rest_lengths(
                    rest_lengths, crowded, cfg.force.link_length, cfg.crowding.expansion
                )
                result = self._run_pipeline(nodes, branches, rest_lengths)

        self._labels.report(result.labels)
        return self._assemble(nodes, branches, result)

    def _run_pipeline(
        self,
        nodes: Sequence[ElectricalNode],
        branches: Sequence[Branch],
        rest_lengths: dict[tuple[NodeId, NodeId], float],
    ) -> _PipelineResult:
        if self._optimizer is not None:
            best = self._optimizer.select(nodes, branches, rest_lengths)
            placement, routes = best.placement, best.routes
        else:
            placement = self._placer.place(nodes, branches, rest_lengths)
            routes = self._router.route(branches, placement.positions)
        labels = self._labels.optimize(
            [NodeAnchor(n.id, n.display_label, placement.positions[n.id]) for n in nodes],
            [
                EdgeAnchor(
                    b.id, b.display_label, routes[b.id].arrow_point, routes[b.id].geometry
                )
                for b in branches
            ],
            report=False,
        )
        return _PipelineResult(placement=placement, routes=routes, labels=labels)

    def _assemble(
        self,
        nodes: Sequence[ElectricalNode],
        branches: Sequence[Branch],
        result: _PipelineResult,
    ) -> RenderableGraph:
        cfg = self._config
        positions = result.placement.positions
        routes = result.routes
        labels = result.labels

        # Everything that will be drawn: nodes, path points, label boxes
        extent: list[Point] = list(positions.values())
        for route in routes.values():
            extent.extend(route.geometry.points)
            extent.extend(route.geometry.sample(self._config.router.samples))
        for node in nodes:
            box = self._labels.label_box(node.display_label, labels.node_labels[node.id])
            extent.extend((Point(box.x, box.y), Point(box.right, box.bottom)))
        for branch in branches:
            box = self._labels.label_box(branch.display_label, labels.edge_labels[branch.id])
            extent.extend((Point(box.x, box.y), Point(box.right, box.bottom)))

        box = bounds_of(extent)
        dx = cfg.margin - box.x
        dy = cfg.margin - box.y

        layout_nodes = tuple(
            LayoutNode(
                id=node.id,
                x=positions[node.id].x + dx,
                y=positions[node.id].y + dy,
                label=node.display_label,
                label_pos=labels.node_labels[node.id].translated(dx, dy),
            )
            for node in nodes
        )
        layout_edges = tuple(
            LayoutEdge(
                id=branch.id,
                source_id=branch.source_id,
                target_id=branch.target_id,
                path=routes[branch.id].geometry.translated(dx, dy).to_svg(cfg.precision),
                arrow_point=routes[branch.id].arrow_point.translated(dx, dy),
                label=branch.display_label,
                label_pos=labels.edge_labels[branch.id].translated(dx, dy),
                is_curved=routes[branch.id].is_curved,
            )
            for branch in branches
        )

        return RenderableGraph(
            width=box.width + 2 * cfg.margin,
            height=box.height + 2 * cfg.margin,
            nodes=layout_nodes,
            edges=layout_edges,
        )


def layout_circuit(
    graph: AnalysisGraph,
    config: Optional[LayoutConfig] = None,
    logger: Optional[logging.Logger] = None,
) -> RenderableGraph:
    """Lay out a circuit graph with a one-off engine."""
    return GraphLayoutEngine(config, logger).layout(graph)


__all__ = [
    "GraphLayoutEngine",
    "layout_circuit",
]
