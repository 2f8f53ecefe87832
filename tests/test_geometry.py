"""Tests for geometry utilities."""

import math

import pytest

from circuit_graph_layout.geometry import (
    bezier_point,
    bezier_tangent_angle,
    bounding_box_intersects,
    bounds_of,
    distance,
    line_circle_intersection,
    line_intersection,
    overlap_area,
    point_to_segment_distance,
    reflect_point,
)
from circuit_graph_layout.types import BoundingBox, Point


class TestLineIntersection:
    """Tests for segment intersection."""

    def test_crossing_diagonals(self):
        """Diagonals of a square meet at its centre."""
        hit = line_intersection(Point(0, 0), Point(10, 10), Point(0, 10), Point(10, 0))
        assert hit is not None
        assert hit.x == pytest.approx(5)
        assert hit.y == pytest.approx(5)

    def test_symmetric_under_swap(self):
        """Swapping the two segments gives the same point."""
        a = line_intersection(Point(0, 0), Point(10, 4), Point(2, 8), Point(6, -2))
        b = line_intersection(Point(2, 8), Point(6, -2), Point(0, 0), Point(10, 4))
        assert a is not None and b is not None
        assert a.x == pytest.approx(b.x)
        assert a.y == pytest.approx(b.y)

    def test_parallel_returns_none(self):
        """Parallel segments never intersect."""
        assert line_intersection(Point(0, 0), Point(10, 0), Point(0, 5), Point(10, 5)) is None

    def test_collinear_returns_none(self):
        """Collinear overlapping segments report no single point."""
        assert line_intersection(Point(0, 0), Point(10, 0), Point(5, 0), Point(15, 0)) is None

    def test_outside_parameter_range(self):
        """Lines that meet beyond a segment end do not intersect."""
        assert line_intersection(Point(0, 0), Point(1, 1), Point(0, 10), Point(10, 0)) is None

    def test_touching_endpoints(self):
        """Segments sharing an endpoint intersect there."""
        hit = line_intersection(Point(0, 0), Point(10, 0), Point(10, 0), Point(10, 10))
        assert hit == Point(10, 0)


class TestLineCircleIntersection:
    """Tests for segment/circle intersection."""

    def test_two_points(self):
        """A segment through a circle hits it twice."""
        hits = line_circle_intersection(Point(-10, 0), Point(10, 0), Point(0, 0), 5)
        assert len(hits) == 2
        assert hits[0].x == pytest.approx(-5)
        assert hits[1].x == pytest.approx(5)

    def test_tangent_single_point(self):
        """A tangent segment touches once."""
        hits = line_circle_intersection(Point(-10, 5), Point(10, 5), Point(0, 0), 5)
        assert len(hits) == 1
        assert hits[0].x == pytest.approx(0)

    def test_miss(self):
        """A far segment returns an empty list, never None."""
        assert line_circle_intersection(Point(-10, 20), Point(10, 20), Point(0, 0), 5) == []

    def test_segment_inside_circle(self):
        """A segment fully inside the circle does not cross it."""
        assert line_circle_intersection(Point(-1, 0), Point(1, 0), Point(0, 0), 5) == []

    def test_degenerate_segment(self):
        """Zero-length segments return an empty list."""
        assert line_circle_intersection(Point(0, 5), Point(0, 5), Point(0, 0), 5) == []


class TestBezier:
    """Tests for cubic Bezier evaluation."""

    def setup_method(self):
        self.p0 = Point(0, 0)
        self.p1 = Point(0, 40)
        self.p2 = Point(100, 40)
        self.p3 = Point(100, 0)

    def test_endpoints(self):
        """t=0 gives p0 and t=1 gives p3."""
        assert bezier_point(self.p0, self.p1, self.p2, self.p3, 0) == self.p0
        assert bezier_point(self.p0, self.p1, self.p2, self.p3, 1) == self.p3

    def test_midpoint(self):
        """Symmetric controls put the midpoint at 3/4 of the control height."""
        mid = bezier_point(self.p0, self.p1, self.p2, self.p3, 0.5)
        assert mid.x == pytest.approx(50)
        assert mid.y == pytest.approx(30)

    def test_tangent_at_midpoint(self):
        """Tangent at the apex of a symmetric arch is horizontal."""
        angle = bezier_tangent_angle(self.p0, self.p1, self.p2, self.p3, 0.5)
        assert angle == pytest.approx(0.0)

    def test_tangent_falls_back_to_chord(self):
        """A vanishing derivative uses the chord direction."""
        p = Point(0, 0)
        q = Point(0, 10)
        angle = bezier_tangent_angle(p, p, q, q, 0.0)
        assert angle == pytest.approx(math.pi / 2)


class TestDistances:
    """Tests for distance helpers."""

    def test_distance(self):
        assert distance(Point(0, 0), Point(3, 4)) == pytest.approx(5)

    def test_point_to_segment_perpendicular(self):
        """Perpendicular foot inside the segment."""
        assert point_to_segment_distance(Point(5, 3), Point(0, 0), Point(10, 0)) == pytest.approx(3)

    def test_point_to_segment_clamped(self):
        """Foot beyond the end clamps to the endpoint."""
        d = point_to_segment_distance(Point(13, 4), Point(0, 0), Point(10, 0))
        assert d == pytest.approx(5)

    def test_point_to_degenerate_segment(self):
        assert point_to_segment_distance(Point(3, 4), Point(0, 0), Point(0, 0)) == pytest.approx(5)


class TestBoxes:
    """Tests for bounding box helpers."""

    def test_overlapping(self):
        a = BoundingBox(0, 0, 10, 10)
        b = BoundingBox(5, 5, 10, 10)
        assert bounding_box_intersects(a, b)
        assert overlap_area(a, b) == pytest.approx(25)

    def test_touching_is_not_intersecting(self):
        """Boxes sharing an edge do not intersect."""
        a = BoundingBox(0, 0, 10, 10)
        b = BoundingBox(10, 0, 10, 10)
        assert not bounding_box_intersects(a, b)
        assert overlap_area(a, b) == 0.0

    def test_disjoint(self):
        a = BoundingBox(0, 0, 10, 10)
        b = BoundingBox(50, 50, 10, 10)
        assert not bounding_box_intersects(a, b)

    def test_bounds_of(self):
        box = bounds_of([Point(1, 2), Point(5, -3), Point(-2, 4)])
        assert box == BoundingBox(-2, -3, 7, 7)

    def test_bounds_of_empty(self):
        assert bounds_of([]) == BoundingBox(0, 0, 0, 0)


class TestReflectPoint:
    """Tests for mirroring across a line."""

    def test_vertical_line(self):
        p = reflect_point(Point(3, 7), Point(10, 0), Point(10, 100))
        assert p.x == pytest.approx(17)
        assert p.y == pytest.approx(7)

    def test_diagonal_line(self):
        p = reflect_point(Point(1, 0), Point(0, 0), Point(1, 1))
        assert p.x == pytest.approx(0)
        assert p.y == pytest.approx(1)

    def test_reflection_is_involution(self):
        """Reflecting twice returns the original point."""
        a, b = Point(2, 3), Point(-4, 9)
        p = Point(11, -5)
        back = reflect_point(reflect_point(p, a, b), a, b)
        assert back.x == pytest.approx(p.x)
        assert back.y == pytest.approx(p.y)
