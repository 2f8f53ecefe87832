"""Tests for multi-candidate edge routing."""

import logging
import math
from concurrent.futures import ThreadPoolExecutor

import pytest

from circuit_graph_layout.config import RouterConfig
from circuit_graph_layout.routing import EdgeRouter, PathKind, parallel_offsets
from circuit_graph_layout.routing.router import layout_center
from circuit_graph_layout.types import Branch, Point


def resistor(branch_id, source, target):
    return Branch(branch_id, "resistor", 1.0, source, target)


def create_blocked_chord():
    """Node 'c' sits on the straight chord between 'a' and 'b'."""
    positions = {"a": Point(0, 0), "b": Point(200, 0), "c": Point(100, 0)}
    return positions, [resistor("R1", "a", "b")]


class TestParallelOffsets:
    """Tests for parallel branch offsets."""

    def test_even(self):
        assert parallel_offsets(4, 40) == [40, -40, 80, -80]

    def test_odd(self):
        assert parallel_offsets(3, 40) == [40, -40, 80]

    def test_single(self):
        assert parallel_offsets(1, 25) == [25]


class TestFreeBranches:
    """Tests for candidate selection on ordinary branches."""

    def test_unobstructed_is_straight(self):
        """With nothing in the way the straight candidate wins the tie-break."""
        positions = {"a": Point(0, 0), "b": Point(150, 0)}
        routes = EdgeRouter().route([resistor("R1", "a", "b")], positions)
        route = routes["R1"]
        assert route.kind is PathKind.STRAIGHT
        assert not route.is_curved
        assert route.score == 0

    def test_arrow_at_midpoint(self):
        positions = {"a": Point(0, 0), "b": Point(150, 0)}
        route = EdgeRouter().route([resistor("R1", "b", "a")], positions)["R1"]
        assert route.arrow_point.x == pytest.approx(75)
        assert route.arrow_point.y == pytest.approx(0)
        assert abs(route.arrow_point.angle) == pytest.approx(math.pi)

    def test_path_follows_branch_direction(self):
        positions = {"a": Point(0, 0), "b": Point(150, 0)}
        route = EdgeRouter().route([resistor("R1", "b", "a")], positions)["R1"]
        assert route.geometry.start == Point(150, 0)
        assert route.geometry.end == Point(0, 0)

    def test_curves_around_node(self):
        """A node on the chord forces a low arc."""
        positions, branches = create_blocked_chord()
        route = EdgeRouter().route(branches, positions)["R1"]
        assert route.kind is PathKind.LOW_ARC_CW
        assert route.is_curved
        assert route.score == pytest.approx(RouterConfig().curvature_penalty)

    def test_coincident_nodes_straight_only(self):
        positions = {"a": Point(10, 10), "b": Point(10, 10)}
        router = EdgeRouter()
        branch = resistor("R1", "a", "b")
        assert [kind for kind, _ in router.candidates(branch, positions)] == [PathKind.STRAIGHT]
        assert router.route([branch], positions)["R1"].kind is PathKind.STRAIGHT

    def test_four_candidates(self):
        positions = {"a": Point(0, 0), "b": Point(150, 0)}
        kinds = [k for k, _ in EdgeRouter().candidates(resistor("R1", "a", "b"), positions)]
        assert kinds == [
            PathKind.STRAIGHT,
            PathKind.LOW_ARC_CW,
            PathKind.LOW_ARC_CCW,
            PathKind.HIGH_ARC,
        ]

    def test_route_order_and_determinism(self):
        positions = {
            "a": Point(0, 0),
            "b": Point(150, 0),
            "c": Point(150, 150),
            "d": Point(0, 150),
        }
        branches = [
            resistor("R3", "a", "c"),
            resistor("R1", "a", "b"),
            resistor("R2", "b", "d"),
        ]
        first = EdgeRouter().route(branches, positions)
        second = EdgeRouter().route(branches, positions)
        assert list(first) == ["R3", "R1", "R2"]
        assert {k: v.geometry for k, v in first.items()} == {
            k: v.geometry for k, v in second.items()
        }

    def test_crossing_diagonal_is_curved_or_penalized(self):
        """The second diagonal of a square cannot cross the first for free."""
        positions = {
            "a": Point(0, 0),
            "b": Point(150, 0),
            "c": Point(150, 150),
            "d": Point(0, 150),
        }
        branches = [resistor("R1", "a", "c"), resistor("R2", "b", "d")]
        routes = EdgeRouter().route(branches, positions)
        assert routes["R1"].score > 0 or routes["R2"].score > 0


class TestForcedShapes:
    """Tests for parallel branches and self-loops."""

    def test_parallel_pair_mirrored(self):
        """Two parallel branches bulge equally to opposite sides."""
        positions = {"a": Point(0, 0), "b": Point(150, 0)}
        branches = [resistor("R1", "a", "b"), resistor("R2", "b", "a")]
        routes = EdgeRouter().route(branches, positions)
        assert routes["R1"].kind is PathKind.PARALLEL
        assert routes["R2"].kind is PathKind.PARALLEL
        mid1 = routes["R1"].geometry.point_at(0.5)
        mid2 = routes["R2"].geometry.point_at(0.5)
        assert mid1.x == pytest.approx(75)
        assert mid2.x == pytest.approx(75)
        assert mid1.y == pytest.approx(-mid2.y)
        assert abs(mid1.y) == pytest.approx(40)

    def test_three_parallel_distinct(self):
        positions = {"a": Point(0, 0), "b": Point(150, 0)}
        branches = [resistor(f"R{i}", "a", "b") for i in range(3)]
        routes = EdgeRouter().route(branches, positions)
        mids = sorted(round(r.geometry.point_at(0.5).y, 6) for r in routes.values())
        assert mids == pytest.approx([-40, 40, 80])

    def test_odd_parallel_count(self):
        """Three branches: one mirrored pair, the third outermost and still curved."""
        positions = {"a": Point(0, 0), "b": Point(150, 0)}
        branches = [resistor(f"R{i}", "a", "b") for i in range(3)]
        routes = EdgeRouter().route(branches, positions)
        mid = {branch_id: r.geometry.point_at(0.5) for branch_id, r in routes.items()}
        assert mid["R0"].y == pytest.approx(-mid["R1"].y)
        assert abs(mid["R2"].y) == pytest.approx(2 * abs(mid["R0"].y))
        assert all(r.is_curved for r in routes.values())

    def test_parallel_coincident_nodes_straight(self):
        positions = {"a": Point(5, 5), "b": Point(5, 5)}
        branches = [resistor("R1", "a", "b"), resistor("R2", "a", "b")]
        routes = EdgeRouter().route(branches, positions)
        assert all(r.kind is PathKind.STRAIGHT for r in routes.values())

    def test_self_loop(self):
        positions = {"a": Point(100, 100), "b": Point(250, 100)}
        branches = [resistor("R1", "a", "a"), resistor("R2", "a", "b")]
        routes = EdgeRouter().route(branches, positions)
        loop = routes["R1"]
        assert loop.kind is PathKind.SELF_LOOP
        assert loop.geometry.start == Point(100, 100)
        assert loop.geometry.end == Point(100, 100)
        assert loop.is_curved


def create_vee():
    """Two branches mirrored across the vertical line through 'b'."""
    positions = {"a": Point(0, 0), "b": Point(100, 100), "c": Point(200, 0)}
    return positions, [resistor("R1", "a", "b"), resistor("R2", "c", "b")]


def summarize(routes):
    return {branch_id: (route.kind, route.score) for branch_id, route in routes.items()}


class TestRouterState:
    """Tests for one router shared between layouts."""

    def test_route_keeps_no_per_call_state(self):
        router = EdgeRouter()
        router.route([resistor("R1", "a", "b")], {"a": Point(0, 0), "b": Point(1000, 0)})
        assert set(vars(router)) == {"_config", "_logger"}

    def test_reused_router_matches_fresh_router(self):
        positions, branches = create_vee()
        shared = EdgeRouter()
        shared.route([resistor("X1", "x", "y")], {"x": Point(5000, 5000), "y": Point(6000, 5000)})
        assert summarize(shared.route(branches, positions)) == summarize(
            EdgeRouter().route(branches, positions)
        )

    def test_concurrent_routes_match_sequential(self):
        """Layouts routed from several threads score as if routed alone."""
        positions, branches = create_vee()
        layouts = [
            {node_id: p.translated(700 * i, 300 * i) for node_id, p in positions.items()}
            for i in range(8)
        ]
        expected = [summarize(EdgeRouter().route(branches, layout)) for layout in layouts]

        router = EdgeRouter()
        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(lambda layout: router.route(branches, layout), layouts))
        assert [summarize(routes) for routes in results] == expected

    def test_score_defaults_to_layout_center(self):
        positions, branches = create_vee()
        router = EdgeRouter()
        routes = router.route(branches, positions)
        geometry = routes["R1"].geometry
        assert layout_center(positions) == Point(100, 50)
        obstacles = {}
        assert router.score(
            branches[0], geometry, PathKind.STRAIGHT, positions, obstacles
        ) == router.score(
            branches[0], geometry, PathKind.STRAIGHT, positions, obstacles, Point(100, 50)
        )


class TestRouterLogging:
    """Tests for degraded-route reporting."""

    def test_unacceptable_score_logged(self, caplog):
        positions, branches = create_blocked_chord()
        router = EdgeRouter(RouterConfig(acceptable_score=5))
        with caplog.at_level(logging.DEBUG, logger="circuit_graph_layout"):
            router.route(branches, positions)
        assert "No acceptable route for branch 'R1'" in caplog.text

    def test_acceptable_score_silent(self, caplog):
        positions = {"a": Point(0, 0), "b": Point(150, 0)}
        with caplog.at_level(logging.DEBUG, logger="circuit_graph_layout"):
            EdgeRouter().route([resistor("R1", "a", "b")], positions)
        assert "No acceptable route" not in caplog.text
