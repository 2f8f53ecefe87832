"""
Geometry utilities.

Pure functions on points, segments, cubic Bezier curves and axis-aligned
boxes used by placement, routing and label optimization. All functions are
total: degenerate input yields an empty or neutral result, never an
exception.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional

from .types import BoundingBox, Point

EPSILON = 1e-10


def distance(a: Point, b: Point) -> float:
    """Euclidean distance between two points."""
    return math.hypot(b.x - a.x, b.y - a.y)


def line_intersection(p1: Point, p2: Point, p3: Point, p4: Point) -> Optional[Point]:
    """
    Intersection of segments p1-p2 and p3-p4.

    Args:
        p1, p2: Endpoints of the first segment
        p3, p4: Endpoints of the second segment

    Returns:
        Intersection point, or None if the segments are parallel, collinear
        or do not meet within both parameter ranges [0, 1].

    Example:
        >>> line_intersection(Point(0, 0), Point(10, 10), Point(0, 10), Point(10, 0))
        Point(x=5.0, y=5.0)
    """
    denom = (p1.x - p2.x) * (p3.y - p4.y) - (p1.y - p2.y) * (p3.x - p4.x)
    if abs(denom) < EPSILON:
        return None

    t = ((p1.x - p3.x) * (p3.y - p4.y) - (p1.y - p3.y) * (p3.x - p4.x)) / denom
    u = -((p1.x - p2.x) * (p1.y - p3.y) - (p1.y - p2.y) * (p1.x - p3.x)) / denom

    if t < 0 or t > 1 or u < 0 or u > 1:
        return None

    return Point(p1.x + t * (p2.x - p1.x), p1.y + t * (p2.y - p1.y))


def line_circle_intersection(
    start: Point, end: Point, center: Point, radius: float
) -> list[Point]:
    """
    Points where segment start-end crosses a circle.

    Returns:
        Zero, one or two points, ordered along the segment. A zero-length
        segment yields an empty list.
    """
    dx = end.x - start.x
    dy = end.y - start.y
    a = dx * dx + dy * dy
    if a < EPSILON:
        return []

    fx = start.x - center.x
    fy = start.y - center.y
    b = 2 * (fx * dx + fy * dy)
    c = fx * fx + fy * fy - radius * radius

    disc = b * b - 4 * a * c
    if disc < 0:
        return []

    root = math.sqrt(disc)
    params = [(-b - root) / (2 * a)]
    if root > EPSILON:
        params.append((-b + root) / (2 * a))

    return [
        Point(start.x + t * dx, start.y + t * dy) for t in params if 0 <= t <= 1
    ]


def bezier_point(p0: Point, p1: Point, p2: Point, p3: Point, t: float) -> Point:
    """Evaluate a cubic Bezier curve at parameter t."""
    mt = 1 - t
    a = mt * mt * mt
    b = 3 * mt * mt * t
    c = 3 * mt * t * t
    d = t * t * t
    return Point(
        a * p0.x + b * p1.x + c * p2.x + d * p3.x,
        a * p0.y + b * p1.y + c * p2.y + d * p3.y,
    )


def bezier_tangent_angle(p0: Point, p1: Point, p2: Point, p3: Point, t: float) -> float:
    """
    Direction of a cubic Bezier curve at parameter t, in radians.

    Falls back to the chord direction p0 -> p3 where the derivative vanishes.
    """
    mt = 1 - t
    a = 3 * mt * mt
    b = 6 * mt * t
    c = 3 * t * t
    dx = a * (p1.x - p0.x) + b * (p2.x - p1.x) + c * (p3.x - p2.x)
    dy = a * (p1.y - p0.y) + b * (p2.y - p1.y) + c * (p3.y - p2.y)
    if abs(dx) < EPSILON and abs(dy) < EPSILON:
        return math.atan2(p3.y - p0.y, p3.x - p0.x)
    return math.atan2(dy, dx)


def point_to_segment_distance(point: Point, start: Point, end: Point) -> float:
    """Shortest distance from a point to the segment start-end."""
    dx = end.x - start.x
    dy = end.y - start.y
    length_sq = dx * dx + dy * dy
    if length_sq < EPSILON:
        return distance(point, start)

    t = ((point.x - start.x) * dx + (point.y - start.y) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    return distance(point, Point(start.x + t * dx, start.y + t * dy))


def bounding_box_intersects(a: BoundingBox, b: BoundingBox) -> bool:
    """Strict overlap test; boxes that only touch do not intersect."""
    return a.x < b.right and b.x < a.right and a.y < b.bottom and b.y < a.bottom


def overlap_area(a: BoundingBox, b: BoundingBox) -> float:
    """Area of the intersection of two boxes (0 when disjoint)."""
    w = min(a.right, b.right) - max(a.x, b.x)
    h = min(a.bottom, b.bottom) - max(a.y, b.y)
    if w <= 0 or h <= 0:
        return 0.0
    return w * h


def bounds_of(points: Iterable[Point]) -> BoundingBox:
    """Bounding box of a set of points (empty box at the origin if none)."""
    pts = list(points)
    if not pts:
        return BoundingBox(0.0, 0.0, 0.0, 0.0)
    min_x = min(p.x for p in pts)
    max_x = max(p.x for p in pts)
    min_y = min(p.y for p in pts)
    max_y = max(p.y for p in pts)
    return BoundingBox(min_x, min_y, max_x - min_x, max_y - min_y)


def reflect_point(point: Point, a: Point, b: Point) -> Point:
    """
    Mirror a point across the line through a and b.

    If a and b coincide, the point is reflected through a.
    """
    dx = b.x - a.x
    dy = b.y - a.y
    length_sq = dx * dx + dy * dy
    if length_sq < EPSILON:
        return Point(2 * a.x - point.x, 2 * a.y - point.y)

    t = ((point.x - a.x) * dx + (point.y - a.y) * dy) / length_sq
    foot_x = a.x + t * dx
    foot_y = a.y + t * dy
    return Point(2 * foot_x - point.x, 2 * foot_y - point.y)


__all__ = [
    "EPSILON",
    "distance",
    "line_intersection",
    "line_circle_intersection",
    "bezier_point",
    "bezier_tangent_angle",
    "point_to_segment_distance",
    "bounding_box_intersects",
    "overlap_area",
    "bounds_of",
    "reflect_point",
]
