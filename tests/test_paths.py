"""Tests for edge path geometry and SVG path data."""

import math

import pytest

from circuit_graph_layout.routing import (
    PathGeometry,
    arc_path,
    format_number,
    parse_path,
    self_loop_path,
    straight_path,
)
from circuit_graph_layout.routing.paths import unit_normal
from circuit_graph_layout.types import Point


class TestFormatNumber:
    """Tests for fixed-precision number formatting."""

    def test_integers_have_no_decimals(self):
        assert format_number(150.0) == "150"

    def test_trailing_zeros_stripped(self):
        assert format_number(1.5) == "1.5"

    def test_rounding(self):
        assert format_number(1.23456, 3) == "1.235"

    def test_negative_zero(self):
        """Values that round to zero never print as -0."""
        assert format_number(-0.0) == "0"
        assert format_number(-0.0001) == "0"

    def test_negative(self):
        assert format_number(-12.5) == "-12.5"


class TestPathGeometry:
    """Tests for PathGeometry."""

    def test_straight_svg(self):
        assert straight_path(Point(0, 0), Point(150, 0)).to_svg() == "M 0 0 L 150 0"

    def test_curve_svg(self):
        path = PathGeometry(Point(0, 0), Point(100, 0), Point(10, 20), Point(90, 20))
        assert path.to_svg() == "M 0 0 C 10 20 90 20 100 0"

    def test_straight_is_not_curved(self):
        path = straight_path(Point(0, 0), Point(10, 0))
        assert not path.is_curved
        assert path.points == (Point(0, 0), Point(10, 0))

    def test_sample_straight(self):
        """Straight paths sample to their endpoints."""
        assert straight_path(Point(0, 0), Point(10, 0)).sample(16) == [Point(0, 0), Point(10, 0)]

    def test_sample_curve(self):
        path = arc_path(Point(0, 0), Point(100, 0), 30, Point(0, 1))
        samples = path.sample(8)
        assert len(samples) == 9
        assert samples[0] == Point(0, 0)
        assert samples[-1] == Point(100, 0)

    def test_arrow_point_straight(self):
        """Arrow sits at the midpoint facing the target."""
        arrow = straight_path(Point(0, 0), Point(0, 100)).arrow_point()
        assert arrow.x == pytest.approx(0)
        assert arrow.y == pytest.approx(50)
        assert arrow.angle == pytest.approx(math.pi / 2)

    def test_translated(self):
        path = PathGeometry(Point(0, 0), Point(10, 0), Point(2, 5), Point(8, 5))
        moved = path.translated(100, -5)
        assert moved.points == (Point(100, -5), Point(102, 0), Point(108, 0), Point(110, -5))


class TestPathConstruction:
    """Tests for path builders."""

    def test_unit_normal(self):
        normal = unit_normal(Point(0, 0), Point(100, 0))
        assert normal.x == pytest.approx(0)
        assert normal.y == pytest.approx(1)

    def test_unit_normal_coincident(self):
        assert unit_normal(Point(5, 5), Point(5, 5)) is None

    def test_arc_midpoint_offset(self):
        """The curve midpoint sits exactly ``offset`` from the chord midpoint."""
        path = arc_path(Point(0, 0), Point(100, 0), 30, Point(0, 1))
        mid = path.point_at(0.5)
        assert mid.x == pytest.approx(50)
        assert mid.y == pytest.approx(30)

    def test_arc_negative_offset(self):
        path = arc_path(Point(0, 0), Point(100, 0), -40, Point(0, 1))
        assert path.point_at(0.5).y == pytest.approx(-40)

    def test_arc_midpoint_tangent_parallel_to_chord(self):
        path = arc_path(Point(0, 0), Point(100, 0), 30, Point(0, 1))
        assert path.tangent_angle(0.5) == pytest.approx(0)

    def test_self_loop(self):
        """Self-loops start and end on the node and reach ``size`` above it."""
        node = Point(200, 200)
        loop = self_loop_path(node, 40)
        assert loop.is_curved
        assert loop.start == node
        assert loop.end == node
        top = loop.point_at(0.5)
        assert top.x == pytest.approx(200)
        assert top.y == pytest.approx(160)


class TestParsePath:
    """Tests for SVG path data parsing."""

    def test_parse_line(self):
        path = parse_path("M 0 0 L 150 -20.5")
        assert path == PathGeometry(Point(0, 0), Point(150, -20.5))

    def test_parse_curve(self):
        path = parse_path("M 0 0 C 33.333 40 66.667 40 100 0")
        assert path.c1 == Point(33.333, 40)
        assert path.c2 == Point(66.667, 40)
        assert path.end == Point(100, 0)

    def test_parse_commas(self):
        path = parse_path("M0,0 L10,5")
        assert path.end == Point(10, 5)

    def test_parses_serialized_curve(self):
        path = arc_path(Point(0, 0), Point(100, 0), 30, Point(0, 1))
        parsed = parse_path(path.to_svg())
        assert parsed.is_curved
        assert parsed.point_at(0.5).y == pytest.approx(30, abs=1e-3)

    @pytest.mark.parametrize(
        "data",
        ["", "L 0 0", "M 0 0 L 1", "M 0 0 Q 1 1 2 2", "M 0 0 C 1 1 2 2"],
    )
    def test_invalid(self, data):
        with pytest.raises(ValueError):
            parse_path(data)
