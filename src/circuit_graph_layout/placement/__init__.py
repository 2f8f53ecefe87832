"""
Node placement.

This package provides the first pipeline stage:
- Pattern recognition: bridge, pi, T and series sub-circuits as seeds
- ForceRelaxation: spring/repulsion/centering relaxation
- PlanarityAnnealer: crossing reduction by simulated annealing
- Refinement passes: grid snapping, axis alignment, stars, centering
- Mirror symmetry over structurally equivalent nodes
- NodePlacer: runs all of the above in order
"""

from .annealing import PlanarityAnnealer, count_straight_crossings
from .force import ForceRelaxation
from .patterns import (
    PatternMatch,
    PatternType,
    SimplifiedGraph,
    collapse_patterns,
    expand_patterns,
    find_patterns,
)
from .placer import NodePlacement, NodePlacer
from .refinement import find_crowded_pairs, relax_rest_lengths
from .symmetry import AxisOrientation, MirrorAxis, structural_classes

__all__ = [
    "ForceRelaxation",
    "PlanarityAnnealer",
    "count_straight_crossings",
    "PatternMatch",
    "PatternType",
    "SimplifiedGraph",
    "collapse_patterns",
    "expand_patterns",
    "find_patterns",
    "NodePlacement",
    "NodePlacer",
    "find_crowded_pairs",
    "relax_rest_lengths",
    "AxisOrientation",
    "MirrorAxis",
    "structural_classes",
]
