"""
Label placement by collision search.

Each label goes through up to three states:

    INITIAL               offset above its node or edge arrow
    ALTERNATIVE_SEARCH    fixed list of alternative positions
    FALLBACK_MIN_OVERLAP  the candidate overlapping placed labels least,
                          then other elements least

A candidate is accepted when its box intersects no node box, no edge box
and no previously placed label box, ignoring the element the label
belongs to. Node labels are placed before edge labels.

Label positions are box centres; boxes are estimated from the text length.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from .config import LabelConfig
from .geometry import bounding_box_intersects, overlap_area
from .routing.paths import PathGeometry
from .types import (
    ArrowPoint,
    BoundingBox,
    BranchId,
    ElementKind,
    NodeId,
    PlacedElement,
    Point,
)


class LabelState(Enum):
    """Stage at which a label found its position."""

    INITIAL = "initial"
    ALTERNATIVE_SEARCH = "alternative_search"
    FALLBACK_MIN_OVERLAP = "fallback_min_overlap"


@dataclass(frozen=True)
class NodeAnchor:
    """A node label request: text anchored at the node position."""

    id: NodeId
    text: str
    position: Point


@dataclass(frozen=True)
class EdgeAnchor:
    """An edge label request: text anchored at the edge's arrow point."""

    id: BranchId
    text: str
    arrow_point: ArrowPoint
    geometry: PathGeometry


@dataclass(frozen=True)
class LabelFallback:
    """A label left overlapping other elements."""

    kind: ElementKind
    owner_id: str
    overlap_area: float


@dataclass(frozen=True)
class LabelPlacement:
    """
    Result of label optimization.

    Attributes:
        node_labels: Label centre per node id
        edge_labels: Label centre per branch id
        fallback_ids: Ids of labels that could not avoid every collision
        states: Final state per label id
        fallbacks: Details of every fallback, in placement order
    """

    node_labels: dict[NodeId, Point] = field(default_factory=dict)
    edge_labels: dict[BranchId, Point] = field(default_factory=dict)
    fallback_ids: tuple[str, ...] = ()
    states: dict[str, LabelState] = field(default_factory=dict)
    fallbacks: tuple[LabelFallback, ...] = ()


class LabelOptimizer:
    """
    Place node and edge labels without overlaps where possible.

    Example:
        optimizer = LabelOptimizer(LabelConfig())
        placement = optimizer.optimize(
            [NodeAnchor("n1", "n1", Point(100, 100))],
            [EdgeAnchor("R1", "R1", route.arrow_point, route.geometry)],
        )
        placement.node_labels["n1"]  # Point(x=100, y=86)
    """

    def __init__(
        self,
        config: Optional[LabelConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._config = config or LabelConfig()
        self._logger = logger or logging.getLogger(__name__)

    @property
    def config(self) -> LabelConfig:
        return self._config

    # -------------------------------------------------------------------------
    # Boxes
    # -------------------------------------------------------------------------

    def label_size(self, text: str) -> tuple[float, float]:
        """Estimated (width, height) of a one-line label."""
        return len(text) * self._config.char_width, self._config.line_height

    def label_box(self, text: str, center: Point) -> BoundingBox:
        width, height = self.label_size(text)
        return BoundingBox.centered(center, width, height)

    def node_box(self, position: Point) -> BoundingBox:
        size = 2 * self._config.node_radius
        return BoundingBox.centered(position, size, size)

    def edge_box(self, arrow_point: ArrowPoint) -> BoundingBox:
        size = self._config.edge_box_size
        return BoundingBox.centered(arrow_point.point, size, size)

    # -------------------------------------------------------------------------
    # Candidates
    # -------------------------------------------------------------------------

    def node_candidates(self, anchor: NodeAnchor) -> list[Point]:
        """Initial position first, then below, left and right."""
        off = self._config.label_offset
        width, _ = self.label_size(anchor.text)
        p = anchor.position
        return [
            Point(p.x, p.y - off),
            Point(p.x, p.y + off),
            Point(p.x - off - width / 2, p.y),
            Point(p.x + off + width / 2, p.y),
        ]

    def edge_candidates(self, anchor: EdgeAnchor) -> list[Point]:
        """Initial position first, then below, then path points at 1/3 and 2/3."""
        off = self._config.label_offset
        a = anchor.arrow_point
        third = anchor.geometry.point_at(1 / 3)
        two_thirds = anchor.geometry.point_at(2 / 3)
        return [
            Point(a.x, a.y - off),
            Point(a.x, a.y + off),
            Point(third.x, third.y - off),
            Point(two_thirds.x, two_thirds.y - off),
        ]

    # -------------------------------------------------------------------------
    # Optimization
    # -------------------------------------------------------------------------

    def optimize(
        self,
        nodes: Sequence[NodeAnchor],
        edges: Sequence[EdgeAnchor],
        *,
        report: bool = True,
    ) -> LabelPlacement:
        """
        Place every label.

        Args:
            nodes: Node label requests, in output order
            edges: Edge label requests, in output order
            report: Log a warning per fallback label. Pass False for
                placements that may be discarded and call ``report`` on
                the one that is kept.

        Returns:
            LabelPlacement with one position per node and per edge
        """
        elements: list[PlacedElement] = [
            PlacedElement(ElementKind.NODE, n.id, self.node_box(n.position)) for n in nodes
        ]
        elements.extend(
            PlacedElement(ElementKind.EDGE, e.id, self.edge_box(e.arrow_point)) for e in edges
        )

        node_labels: dict[NodeId, Point] = {}
        edge_labels: dict[BranchId, Point] = {}
        fallbacks: list[LabelFallback] = []
        states: dict[str, LabelState] = {}

        for node in nodes:
            center, state, area = self._place(
                node.id, ElementKind.NODE, node.text, self.node_candidates(node), elements
            )
            node_labels[node.id] = center
            states[node.id] = state
            if state is LabelState.FALLBACK_MIN_OVERLAP:
                fallbacks.append(LabelFallback(ElementKind.NODE, node.id, area))
            elements.append(
                PlacedElement(ElementKind.LABEL, node.id, self.label_box(node.text, center))
            )

        for edge in edges:
            center, state, area = self._place(
                edge.id, ElementKind.EDGE, edge.text, self.edge_candidates(edge), elements
            )
            edge_labels[edge.id] = center
            states[edge.id] = state
            if state is LabelState.FALLBACK_MIN_OVERLAP:
                fallbacks.append(LabelFallback(ElementKind.EDGE, edge.id, area))
            elements.append(
                PlacedElement(ElementKind.LABEL, edge.id, self.label_box(edge.text, center))
            )

        placement = LabelPlacement(
            node_labels=node_labels,
            edge_labels=edge_labels,
            fallback_ids=tuple(f.owner_id for f in fallbacks),
            states=states,
            fallbacks=tuple(fallbacks),
        )
        if report:
            self.report(placement)
        return placement

    def report(self, placement: LabelPlacement) -> None:
        """Log one warning per label of ``placement`` that fell back."""
        for fallback in placement.fallbacks:
            self._logger.warning(
                "Label of %s %r overlaps other elements (overlap area %.1f)",
                fallback.kind.value,
                fallback.owner_id,
                fallback.overlap_area,
            )

    def _place(
        self,
        owner_id: str,
        owner_kind: ElementKind,
        text: str,
        candidates: Sequence[Point],
        elements: Sequence[PlacedElement],
    ) -> tuple[Point, LabelState, float]:
        others = [
            e for e in elements if not (e.kind is owner_kind and e.owner_id == owner_id)
        ]

        for i, center in enumerate(candidates):
            box = self.label_box(text, center)
            if not any(bounding_box_intersects(box, e.box) for e in others):
                state = LabelState.INITIAL if i == 0 else LabelState.ALTERNATIVE_SEARCH
                return center, state, 0.0

        # Overlap with placed labels counts first, then total overlap;
        # the first candidate wins among equals
        label_overlaps = []
        total_overlaps = []
        for c in candidates:
            box = self.label_box(text, c)
            areas = [(e.kind, overlap_area(box, e.box)) for e in others]
            label_overlaps.append(sum(a for kind, a in areas if kind is ElementKind.LABEL))
            total_overlaps.append(sum(a for _, a in areas))
        best = min(
            range(len(candidates)), key=lambda i: (label_overlaps[i], total_overlaps[i], i)
        )
        return candidates[best], LabelState.FALLBACK_MIN_OVERLAP, total_overlaps[best]


__all__ = [
    "LabelState",
    "NodeAnchor",
    "EdgeAnchor",
    "LabelFallback",
    "LabelPlacement",
    "LabelOptimizer",
]
