"""
Edge routing.

- PathGeometry: straight and cubic Bezier paths, SVG serialization
- EdgeRouter: picks the best path per branch by penalty score
"""

from .paths import (
    PathGeometry,
    PathKind,
    arc_path,
    format_number,
    parse_path,
    self_loop_path,
    straight_path,
)
from .router import EdgeRoute, EdgeRouter, parallel_offsets

__all__ = [
    "PathGeometry",
    "PathKind",
    "arc_path",
    "format_number",
    "parse_path",
    "self_loop_path",
    "straight_path",
    "EdgeRoute",
    "EdgeRouter",
    "parallel_offsets",
]
