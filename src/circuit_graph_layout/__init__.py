"""
circuit-graph-layout: Textbook-style layout of electrical circuit graphs.

Given the topology of a circuit (electrical nodes and branches), computes
node positions, edge paths and label positions for rendering.

Pipeline stages:
- placement: Pattern seeding, force relaxation, annealing, grid, symmetry
  and star refinement
- routing: Multi-candidate edge routing with penalty scoring
- labels: Collision search for node and edge labels
- optimizer: Picks the best of several seed and grid variants
- engine: Runs the stages and assembles a RenderableGraph
"""

import logging

__version__ = "0.1.0"

# Configuration
from .config import (
    AnnealingConfig,
    CrowdingConfig,
    ForceConfig,
    GridConfig,
    LabelConfig,
    LayoutConfig,
    LayoutVariant,
    OptimizerConfig,
    PatternConfig,
    RouterConfig,
    StarConfig,
    SymmetryConfig,
)

# Layout engine
from .engine import GraphLayoutEngine, layout_circuit

# Label placement
from .labels import EdgeAnchor, LabelOptimizer, LabelPlacement, NodeAnchor

# Metrics for layout quality evaluation
from .metrics import (
    angular_resolution,
    edge_crossings,
    edge_length_uniformity,
    edge_length_variance,
    label_overlaps,
    layout_quality_summary,
    min_node_distance,
    path_crossings,
)

# Multi-candidate selection
from .optimizer import LayoutOptimizer

# Node placement
from .placement import MirrorAxis, NodePlacement, NodePlacer, PatternType, find_patterns

# Edge routing
from .routing import EdgeRoute, EdgeRouter, PathGeometry, PathKind, parse_path

# Shared types
from .types import (
    AnalysisGraph,
    ArrowPoint,
    BoundingBox,
    Branch,
    BranchType,
    ElectricalNode,
    ElementKind,
    Event,
    EventType,
    LayoutEdge,
    LayoutNode,
    PlacedElement,
    Point,
    RenderableGraph,
    SpanningTree,
)

# Validation
from .validation import (
    InvalidConfigError,
    InvalidTopologyError,
    ValidationError,
    validate_topology,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "__version__",
    # Configuration
    "AnnealingConfig",
    "CrowdingConfig",
    "ForceConfig",
    "GridConfig",
    "LabelConfig",
    "LayoutConfig",
    "LayoutVariant",
    "OptimizerConfig",
    "PatternConfig",
    "RouterConfig",
    "StarConfig",
    "SymmetryConfig",
    # Engine
    "GraphLayoutEngine",
    "layout_circuit",
    # Stages
    "NodePlacer",
    "NodePlacement",
    "MirrorAxis",
    "PatternType",
    "find_patterns",
    "LayoutOptimizer",
    "EdgeRouter",
    "EdgeRoute",
    "PathGeometry",
    "PathKind",
    "parse_path",
    "LabelOptimizer",
    "LabelPlacement",
    "NodeAnchor",
    "EdgeAnchor",
    # Metrics
    "angular_resolution",
    "edge_crossings",
    "path_crossings",
    "edge_length_uniformity",
    "edge_length_variance",
    "label_overlaps",
    "layout_quality_summary",
    "min_node_distance",
    # Types
    "AnalysisGraph",
    "ArrowPoint",
    "BoundingBox",
    "Branch",
    "BranchType",
    "ElectricalNode",
    "ElementKind",
    "Event",
    "EventType",
    "LayoutEdge",
    "LayoutNode",
    "PlacedElement",
    "Point",
    "RenderableGraph",
    "SpanningTree",
    # Validation
    "ValidationError",
    "InvalidTopologyError",
    "InvalidConfigError",
    "validate_topology",
]
