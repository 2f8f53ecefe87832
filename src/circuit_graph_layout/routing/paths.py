"""
Edge path geometry.

A path is either one straight segment or one cubic Bezier segment. Curves
are built from a quadratic control point so that the curve midpoint (t =
0.5) sits exactly ``offset`` away from the chord midpoint, along the
chord's normal. Paths serialize to SVG path data with fixed precision and
parse back from it.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..geometry import EPSILON, bezier_point, bezier_tangent_angle
from ..types import ArrowPoint, Point


class PathKind(Enum):
    """How an edge path was produced."""

    STRAIGHT = "straight"
    LOW_ARC_CW = "low_arc_cw"
    LOW_ARC_CCW = "low_arc_ccw"
    HIGH_ARC = "high_arc"
    PARALLEL = "parallel"
    SELF_LOOP = "self_loop"


@dataclass(frozen=True)
class PathGeometry:
    """
    A straight segment (no control points) or a cubic Bezier curve.

    Attributes:
        start: Path start (the branch source)
        end: Path end (the branch target)
        c1: First control point, None for straight paths
        c2: Second control point, None for straight paths
    """

    start: Point
    end: Point
    c1: Optional[Point] = None
    c2: Optional[Point] = None

    @property
    def is_curved(self) -> bool:
        return self.c1 is not None and self.c2 is not None

    @property
    def points(self) -> tuple[Point, ...]:
        """All defining points: endpoints and control points, in path order."""
        if self.c1 is not None and self.c2 is not None:
            return (self.start, self.c1, self.c2, self.end)
        return (self.start, self.end)

    def point_at(self, t: float) -> Point:
        if self.c1 is not None and self.c2 is not None:
            return bezier_point(self.start, self.c1, self.c2, self.end, t)
        return Point(
            self.start.x + t * (self.end.x - self.start.x),
            self.start.y + t * (self.end.y - self.start.y),
        )

    def tangent_angle(self, t: float) -> float:
        """Direction of travel at t, in radians."""
        if self.c1 is not None and self.c2 is not None:
            return bezier_tangent_angle(self.start, self.c1, self.c2, self.end, t)
        return math.atan2(self.end.y - self.start.y, self.end.x - self.start.x)

    def arrow_point(self, t: float = 0.5) -> ArrowPoint:
        p = self.point_at(t)
        return ArrowPoint(p.x, p.y, self.tangent_angle(t))

    def sample(self, segments: int) -> list[Point]:
        """
        Polyline approximation.

        Straight paths return their two endpoints; curves return
        ``segments + 1`` points evenly spaced in t.
        """
        if not self.is_curved:
            return [self.start, self.end]
        return [self.point_at(i / segments) for i in range(segments + 1)]

    def translated(self, dx: float, dy: float) -> PathGeometry:
        return PathGeometry(
            self.start.translated(dx, dy),
            self.end.translated(dx, dy),
            self.c1.translated(dx, dy) if self.c1 is not None else None,
            self.c2.translated(dx, dy) if self.c2 is not None else None,
        )

    def to_svg(self, precision: int = 3) -> str:
        """
        Serialize to SVG path data.

        Example:
            >>> PathGeometry(Point(0, 0), Point(150, 0)).to_svg()
            'M 0 0 L 150 0'
        """

        def fmt(p: Point) -> str:
            return f"{format_number(p.x, precision)} {format_number(p.y, precision)}"

        if self.c1 is not None and self.c2 is not None:
            return f"M {fmt(self.start)} C {fmt(self.c1)} {fmt(self.c2)} {fmt(self.end)}"
        return f"M {fmt(self.start)} L {fmt(self.end)}"


def format_number(value: float, precision: int = 3) -> str:
    """Fixed-precision number without trailing zeros or negative zero."""
    text = f"{round(value, precision) + 0.0:.{precision}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        text = "0"
    return text


# =============================================================================
# Construction
# =============================================================================


def straight_path(start: Point, end: Point) -> PathGeometry:
    return PathGeometry(start, end)


def unit_normal(a: Point, b: Point) -> Optional[Point]:
    """
    Unit vector perpendicular to a -> b (rotated +90 degrees).

    Returns None when a and b coincide.
    """
    dx = b.x - a.x
    dy = b.y - a.y
    length = math.hypot(dx, dy)
    if length < EPSILON:
        return None
    return Point(-dy / length, dx / length)


def arc_path(start: Point, end: Point, offset: float, normal: Point) -> PathGeometry:
    """
    Cubic curve from start to end bulging ``offset`` along ``normal``.

    The curve is the degree elevation of a quadratic whose control point is
    the chord midpoint moved ``2 * offset`` along the normal, so the curve
    midpoint lies ``offset`` from the chord midpoint.
    """
    mid_x = (start.x + end.x) / 2
    mid_y = (start.y + end.y) / 2
    q = Point(mid_x + 2 * offset * normal.x, mid_y + 2 * offset * normal.y)
    c1 = Point(start.x + 2 / 3 * (q.x - start.x), start.y + 2 / 3 * (q.y - start.y))
    c2 = Point(end.x + 2 / 3 * (q.x - end.x), end.y + 2 / 3 * (q.y - end.y))
    return PathGeometry(start, end, c1, c2)


def self_loop_path(node: Point, size: float) -> PathGeometry:
    """Teardrop loop starting and ending at a node, reaching ``size`` above it."""
    lift = 4 * size / 3
    half = size / 2
    return PathGeometry(
        node,
        node,
        Point(node.x - half, node.y - lift),
        Point(node.x + half, node.y - lift),
    )


# =============================================================================
# Parsing
# =============================================================================

_TOKEN = re.compile(r"[MLC]|-?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


def parse_path(data: str) -> PathGeometry:
    """
    Parse SVG path data produced by ``PathGeometry.to_svg``.

    Supports ``M x y L x y`` and ``M x y C x1 y1 x2 y2 x y`` with absolute
    coordinates, separated by whitespace or commas.

    Raises:
        ValueError: If the data has any other shape
    """
    tokens = _TOKEN.findall(data)
    if len(tokens) < 3 or tokens[0] != "M":
        raise ValueError(f"Unsupported path data: {data!r}")

    try:
        start = Point(float(tokens[1]), float(tokens[2]))
        command = tokens[3] if len(tokens) > 3 else None
        values = [float(v) for v in tokens[4:]]
    except ValueError as e:
        raise ValueError(f"Unsupported path data: {data!r}") from e

    if command == "L" and len(values) == 2:
        return PathGeometry(start, Point(values[0], values[1]))
    if command == "C" and len(values) == 6:
        return PathGeometry(
            start,
            Point(values[4], values[5]),
            Point(values[0], values[1]),
            Point(values[2], values[3]),
        )
    raise ValueError(f"Unsupported path data: {data!r}")


__all__ = [
    "PathKind",
    "PathGeometry",
    "format_number",
    "straight_path",
    "unit_normal",
    "arc_path",
    "self_loop_path",
    "parse_path",
]
