"""
Common types for circuit graph layout.

This module provides the data contract shared by all pipeline stages:
- ElectricalNode, Branch, SpanningTree, AnalysisGraph: circuit topology input
- Point, ArrowPoint, BoundingBox: geometric primitives
- LayoutNode, LayoutEdge, RenderableGraph: renderer-facing output
- ElementKind, PlacedElement: tagged union used for collision checks
- EventType, Event: iterative relaxation lifecycle events
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Mapping, Optional, TypedDict

NodeId = str
BranchId = str
TreeId = str


class EventType(IntEnum):
    """
    Relaxation lifecycle events.

    - start: Iterations have begun
    - tick: Fired once per iteration
    - end: Iterations converged or hit the iteration cap
    """

    start = 0
    tick = 1
    end = 2


class Event(TypedDict, total=False):
    """Event payload passed to event listeners."""

    type: EventType
    alpha: float
    iteration: int
    displacement: Optional[float]
    energy: Optional[float]


# =============================================================================
# Geometric primitives
# =============================================================================


@dataclass(frozen=True)
class Point:
    """2D point in layout space (y grows downward, as in SVG)."""

    x: float
    y: float

    def translated(self, dx: float, dy: float) -> Point:
        return Point(self.x + dx, self.y + dy)


@dataclass(frozen=True)
class ArrowPoint:
    """Arrowhead anchor with its rotation angle in radians."""

    x: float
    y: float
    angle: float

    @property
    def point(self) -> Point:
        return Point(self.x, self.y)

    def translated(self, dx: float, dy: float) -> ArrowPoint:
        return ArrowPoint(self.x + dx, self.y + dy, self.angle)


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned rectangle; (x, y) is the top-left corner."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)

    @classmethod
    def centered(cls, center: Point, width: float, height: float) -> BoundingBox:
        """Create a box of the given size centered on a point."""
        return cls(center.x - width / 2, center.y - height / 2, width, height)


# =============================================================================
# Circuit topology (input)
# =============================================================================


class BranchType(Enum):
    """Kind of two-terminal component a branch represents."""

    RESISTOR = "resistor"
    VOLTAGE_SOURCE = "voltageSource"
    CURRENT_SOURCE = "currentSource"


@dataclass(frozen=True)
class ElectricalNode:
    """
    A junction point in the circuit.

    Attributes:
        id: Unique, stable node identifier
        label: Display string (defaults to the id)
    """

    id: NodeId
    label: Optional[str] = None

    @property
    def display_label(self) -> str:
        return self.label if self.label is not None else self.id


@dataclass(frozen=True)
class Branch:
    """
    A two-terminal circuit component between two nodes.

    Direction is implied by endpoint order: source -> target.
    """

    id: BranchId
    type: BranchType
    value: float
    source_id: NodeId
    target_id: NodeId
    label: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.type, BranchType):
            object.__setattr__(self, "type", BranchType(self.type))

    @property
    def display_label(self) -> str:
        return self.label if self.label is not None else self.id

    @property
    def is_current_source(self) -> bool:
        return self.type is BranchType.CURRENT_SOURCE

    @property
    def is_self_loop(self) -> bool:
        return self.source_id == self.target_id

    @property
    def node_pair(self) -> tuple[NodeId, NodeId]:
        """Endpoints in canonical (sorted) order, independent of direction."""
        if self.source_id <= self.target_id:
            return (self.source_id, self.target_id)
        return (self.target_id, self.source_id)


@dataclass(frozen=True)
class SpanningTree:
    """
    A spanning tree of the circuit graph.

    Twigs are the tree branches, links the co-tree branches. The selected
    tree only affects styling in the renderer, never geometry.
    """

    id: TreeId
    twig_branch_ids: tuple[BranchId, ...] = ()
    link_branch_ids: tuple[BranchId, ...] = ()
    description: Optional[str] = None


@dataclass(frozen=True)
class AnalysisGraph:
    """
    Circuit topology handed to the layout engine.

    Attributes:
        nodes: Electrical nodes
        branches: Branches between nodes
        all_spanning_trees: Known spanning trees
        selected_tree_id: Id of the tree selected for analysis, if any
        reference_node_id: Ground node, if any
    """

    nodes: tuple[ElectricalNode, ...] = ()
    branches: tuple[Branch, ...] = ()
    all_spanning_trees: tuple[SpanningTree, ...] = ()
    selected_tree_id: Optional[TreeId] = None
    reference_node_id: Optional[NodeId] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "nodes", tuple(self.nodes))
        object.__setattr__(self, "branches", tuple(self.branches))
        object.__setattr__(self, "all_spanning_trees", tuple(self.all_spanning_trees))

    @property
    def selected_tree(self) -> Optional[SpanningTree]:
        """The selected spanning tree, or None if none is selected or known."""
        for tree in self.all_spanning_trees:
            if tree.id == self.selected_tree_id:
                return tree
        return None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AnalysisGraph:
        """
        Build a graph from its camelCase wire form.

        Branch endpoints may be given as ``fromNodeId``/``toNodeId`` or
        ``sourceId``/``targetId``.
        """
        nodes = tuple(
            ElectricalNode(id=str(n["id"]), label=n.get("label")) for n in data.get("nodes", ())
        )
        branches = tuple(
            Branch(
                id=str(b["id"]),
                type=BranchType(b["type"]),
                value=float(b.get("value", 0.0)),
                source_id=str(b.get("fromNodeId", b.get("sourceId"))),
                target_id=str(b.get("toNodeId", b.get("targetId"))),
                label=b.get("label"),
            )
            for b in data.get("branches", ())
        )
        trees = tuple(
            SpanningTree(
                id=str(t["id"]),
                twig_branch_ids=tuple(t.get("twigBranchIds", ())),
                link_branch_ids=tuple(t.get("linkBranchIds", ())),
                description=t.get("description"),
            )
            for t in data.get("allSpanningTrees", ())
        )
        return cls(
            nodes=nodes,
            branches=branches,
            all_spanning_trees=trees,
            selected_tree_id=data.get("selectedTreeId"),
            reference_node_id=data.get("referenceNodeId"),
        )


# =============================================================================
# Layout output
# =============================================================================


@dataclass(frozen=True)
class LayoutNode:
    """Positioned node ready for rendering."""

    id: NodeId
    x: float
    y: float
    label: str
    label_pos: Point

    @property
    def position(self) -> Point:
        return Point(self.x, self.y)


@dataclass(frozen=True)
class LayoutEdge:
    """
    Routed edge ready for rendering.

    ``path`` is SVG path data: a single ``L`` segment when ``is_curved`` is
    False, a cubic ``C`` segment otherwise.
    """

    id: BranchId
    source_id: NodeId
    target_id: NodeId
    path: str
    arrow_point: ArrowPoint
    label: str
    label_pos: Point
    is_curved: bool


def _round(value: float, precision: int) -> float:
    rounded = round(value, precision)
    # avoid "-0.0" in serialized output
    return rounded + 0.0


@dataclass(frozen=True)
class RenderableGraph:
    """
    Complete geometric representation of a circuit graph.

    All coordinates lie within [0, width] x [0, height].
    """

    width: float
    height: float
    nodes: tuple[LayoutNode, ...] = ()
    edges: tuple[LayoutEdge, ...] = ()

    def node(self, node_id: NodeId) -> LayoutNode:
        for node in self.nodes:
            if node.id == node_id:
                return node
        raise KeyError(node_id)

    def edge(self, edge_id: BranchId) -> LayoutEdge:
        for edge in self.edges:
            if edge.id == edge_id:
                return edge
        raise KeyError(edge_id)

    def to_dict(self, precision: int = 3) -> dict[str, Any]:
        """Serialize to the renderer's camelCase contract."""

        def pt(p: Point) -> dict[str, float]:
            return {"x": _round(p.x, precision), "y": _round(p.y, precision)}

        return {
            "width": _round(self.width, precision),
            "height": _round(self.height, precision),
            "nodes": [
                {
                    "id": n.id,
                    "x": _round(n.x, precision),
                    "y": _round(n.y, precision),
                    "label": n.label,
                    "labelPos": pt(n.label_pos),
                }
                for n in self.nodes
            ],
            "edges": [
                {
                    "id": e.id,
                    "sourceId": e.source_id,
                    "targetId": e.target_id,
                    "path": e.path,
                    "arrowPoint": {
                        "x": _round(e.arrow_point.x, precision),
                        "y": _round(e.arrow_point.y, precision),
                        "angle": _round(e.arrow_point.angle, precision),
                    },
                    "label": e.label,
                    "labelPos": pt(e.label_pos),
                    "isCurved": e.is_curved,
                }
                for e in self.edges
            ],
        }


# =============================================================================
# Collision elements
# =============================================================================


class ElementKind(Enum):
    """Discriminant for elements taking part in collision checks."""

    NODE = "node"
    EDGE = "edge"
    LABEL = "label"


@dataclass(frozen=True)
class PlacedElement:
    """An occupied area tagged with the kind and id of its owner."""

    kind: ElementKind
    owner_id: str
    box: BoundingBox


__all__ = [
    "NodeId",
    "BranchId",
    "TreeId",
    "EventType",
    "Event",
    "Point",
    "ArrowPoint",
    "BoundingBox",
    "BranchType",
    "ElectricalNode",
    "Branch",
    "SpanningTree",
    "AnalysisGraph",
    "LayoutNode",
    "LayoutEdge",
    "RenderableGraph",
    "ElementKind",
    "PlacedElement",
]
