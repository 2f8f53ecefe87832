"""End-to-end tests for the layout engine."""

import json
import logging
import math
from itertools import combinations

import pytest

from circuit_graph_layout import (
    AnalysisGraph,
    Branch,
    ElectricalNode,
    GraphLayoutEngine,
    InvalidTopologyError,
    LabelOptimizer,
    LayoutConfig,
    OptimizerConfig,
    label_overlaps,
    layout_circuit,
    parse_path,
)
from circuit_graph_layout.geometry import bounding_box_intersects


def create_nodes(*ids):
    return [ElectricalNode(node_id) for node_id in ids]


def create_single_resistor():
    return AnalysisGraph(
        nodes=create_nodes("n1", "n2"),
        branches=[Branch("R1", "resistor", 100.0, "n1", "n2")],
    )


def create_parallel_resistors():
    return AnalysisGraph(
        nodes=create_nodes("n1", "n2"),
        branches=[
            Branch("R1", "resistor", 100.0, "n1", "n2"),
            Branch("R2", "resistor", 200.0, "n1", "n2"),
        ],
    )


def create_star(leaves=4):
    nodes = create_nodes("hub", *[f"l{i}" for i in range(leaves)])
    branches = [Branch(f"R{i}", "resistor", 1.0, "hub", f"l{i}") for i in range(leaves)]
    return AnalysisGraph(nodes=nodes, branches=branches)


def create_bridge():
    """Wheatstone bridge with a voltage source."""
    nodes = create_nodes("top", "left", "right", "bottom")
    branches = [
        Branch("R1", "resistor", 1.0, "top", "left"),
        Branch("R2", "resistor", 1.0, "top", "right"),
        Branch("R3", "resistor", 1.0, "left", "bottom"),
        Branch("R4", "resistor", 1.0, "right", "bottom"),
        Branch("R5", "resistor", 1.0, "left", "right"),
        Branch("V1", "voltageSource", 5.0, "bottom", "top"),
    ]
    return AnalysisGraph(nodes=nodes, branches=branches)


def create_dense_parallel(count=8):
    """Many parallel branches with long labels, more than fits between two nodes."""
    branches = [
        Branch(f"R{i}", "resistor", 1.0, "n1", "n2", label=f"LONG_RESISTOR_LABEL_{i}")
        for i in range(count)
    ]
    return AnalysisGraph(nodes=create_nodes("n1", "n2"), branches=branches)


def create_series_loop(resistors=3):
    """A voltage source closing a chain of resistors into one loop."""
    nodes = create_nodes(*[f"n{i}" for i in range(resistors + 1)])
    branches = [Branch("V1", "voltageSource", 5.0, "n0", f"n{resistors}")]
    branches += [
        Branch(f"R{i}", "resistor", 1.0, f"n{i}", f"n{i + 1}") for i in range(resistors)
    ]
    return AnalysisGraph(nodes=nodes, branches=branches)


def output_label_boxes(graph, config):
    optimizer = LabelOptimizer(config.labels)
    boxes = [(f"node:{n.id}", optimizer.label_box(n.label, n.label_pos)) for n in graph.nodes]
    boxes += [(f"edge:{e.id}", optimizer.label_box(e.label, e.label_pos)) for e in graph.edges]
    return boxes


class TestBasicLayouts:
    """Tests for simple circuits."""

    def test_single_resistor(self):
        """Two nodes and one straight edge."""
        graph = GraphLayoutEngine().layout(create_single_resistor())
        assert [n.id for n in graph.nodes] == ["n1", "n2"]
        assert len(graph.edges) == 1
        edge = graph.edge("R1")
        assert not edge.is_curved
        assert edge.path.startswith("M ")
        assert " L " in edge.path

    def test_current_sources_dropped(self):
        analysis = AnalysisGraph(
            nodes=create_nodes("n1", "n2"),
            branches=[
                Branch("R1", "resistor", 1.0, "n1", "n2"),
                Branch("I1", "currentSource", 1.0, "n2", "n1"),
            ],
        )
        graph = GraphLayoutEngine().layout(analysis)
        assert [e.id for e in graph.edges] == ["R1"]

    def test_empty_graph(self):
        """No nodes gives an empty drawing of margin size."""
        config = LayoutConfig(margin=25)
        graph = GraphLayoutEngine(config).layout(AnalysisGraph())
        assert graph.nodes == ()
        assert graph.edges == ()
        assert graph.width == 50
        assert graph.height == 50

    def test_labels_default_to_ids(self):
        graph = GraphLayoutEngine().layout(create_single_resistor())
        assert graph.node("n1").label == "n1"
        assert graph.edge("R1").label == "R1"

    def test_layout_circuit(self):
        """The convenience function matches the engine."""
        expected = GraphLayoutEngine().layout(create_single_resistor()).to_dict()
        assert layout_circuit(create_single_resistor()).to_dict() == expected


class TestStructuredLayouts:
    """Tests for parallel branches and stars."""

    def test_parallel_resistors_curved_and_mirrored(self):
        graph = GraphLayoutEngine().layout(create_parallel_resistors())
        r1, r2 = graph.edge("R1"), graph.edge("R2")
        assert r1.is_curved and r2.is_curved
        a = graph.node("n1").position
        b = graph.node("n2").position
        mid1 = parse_path(r1.path).point_at(0.5)
        mid2 = parse_path(r2.path).point_at(0.5)
        # Curve midpoints mirror each other across the chord midpoint
        assert (mid1.x + mid2.x) / 2 == pytest.approx((a.x + b.x) / 2, abs=0.01)
        assert (mid1.y + mid2.y) / 2 == pytest.approx((a.y + b.y) / 2, abs=0.01)
        assert math.dist((mid1.x, mid1.y), (mid2.x, mid2.y)) == pytest.approx(80, abs=0.01)

    def test_star_leaves_at_right_angles(self):
        graph = GraphLayoutEngine().layout(create_star(4))
        hub = graph.node("hub")
        angles = sorted(
            math.degrees(math.atan2(n.y - hub.y, n.x - hub.x)) % 360
            for n in graph.nodes
            if n.id != "hub"
        )
        gaps = [b - a for a, b in zip(angles, angles[1:])]
        gaps.append(360 - angles[-1] + angles[0])
        for gap in gaps:
            assert gap == pytest.approx(90, abs=10)

    def test_bridge_routes_every_branch(self):
        graph = GraphLayoutEngine().layout(create_bridge())
        assert {e.id for e in graph.edges} == {"R1", "R2", "R3", "R4", "R5", "V1"}


class TestOutputContract:
    """Tests for the renderer-facing guarantees."""

    def test_deterministic(self):
        """Same input and seed serialize to the same JSON."""
        first = json.dumps(GraphLayoutEngine().layout(create_bridge()).to_dict())
        second = json.dumps(GraphLayoutEngine().layout(create_bridge()).to_dict())
        assert first == second

    def test_referential_integrity(self):
        graph = GraphLayoutEngine().layout(create_bridge())
        node_ids = {n.id for n in graph.nodes}
        for edge in graph.edges:
            assert edge.source_id in node_ids
            assert edge.target_id in node_ids

    def test_everything_inside_canvas(self):
        """Nodes, path points and labels lie within the returned size."""
        graph = GraphLayoutEngine().layout(create_bridge())
        points = [(n.x, n.y) for n in graph.nodes]
        points.extend((n.label_pos.x, n.label_pos.y) for n in graph.nodes)
        for edge in graph.edges:
            points.extend((p.x, p.y) for p in parse_path(edge.path).sample(16))
            points.append((edge.label_pos.x, edge.label_pos.y))
        for x, y in points:
            assert -0.01 <= x <= graph.width + 0.01
            assert -0.01 <= y <= graph.height + 0.01

    def test_margin_respected(self):
        config = LayoutConfig(margin=40)
        graph = GraphLayoutEngine(config).layout(create_single_resistor())
        assert min(n.x for n in graph.nodes) >= 40 - 0.01
        assert min(n.y for n in graph.nodes) >= 40 - 0.01

    def test_paths_start_and_end_at_nodes(self):
        graph = GraphLayoutEngine().layout(create_bridge())
        for edge in graph.edges:
            path = parse_path(edge.path)
            source = graph.node(edge.source_id)
            target = graph.node(edge.target_id)
            assert path.start.x == pytest.approx(source.x, abs=1e-3)
            assert path.start.y == pytest.approx(source.y, abs=1e-3)
            assert path.end.x == pytest.approx(target.x, abs=1e-3)
            assert path.end.y == pytest.approx(target.y, abs=1e-3)

    def test_single_resistor_labels_do_not_overlap(self):
        config = LayoutConfig()
        graph = GraphLayoutEngine(config).layout(create_single_resistor())
        assert label_overlaps(graph, config.labels) == 0


class TestErrorsAndLogging:
    """Tests for invalid input and reported degradations."""

    def test_dangling_branch_raises(self):
        analysis = AnalysisGraph(
            nodes=create_nodes("n1"),
            branches=[Branch("R1", "resistor", 1.0, "n1", "missing")],
        )
        with pytest.raises(InvalidTopologyError, match="missing"):
            GraphLayoutEngine().layout(analysis)

    def test_disconnected_components_logged(self, caplog):
        analysis = AnalysisGraph(
            nodes=create_nodes("a", "b", "c", "d"),
            branches=[
                Branch("R1", "resistor", 1.0, "a", "b"),
                Branch("R2", "resistor", 1.0, "c", "d"),
            ],
        )
        with caplog.at_level(logging.INFO, logger="circuit_graph_layout"):
            graph = GraphLayoutEngine().layout(analysis)
        assert "2 disconnected components" in caplog.text
        assert len(graph.nodes) == 4

    def test_dense_labels_fall_back_with_warning(self, caplog):
        """Unavoidable label collisions are logged and still placed."""
        with caplog.at_level(logging.WARNING, logger="circuit_graph_layout"):
            graph = GraphLayoutEngine().layout(create_dense_parallel())
        assert "overlaps other elements" in caplog.text
        assert len(graph.edges) == 8
        assert all(edge.is_curved for edge in graph.edges)

    def test_custom_logger(self, caplog):
        logger = logging.getLogger("test.engine")
        analysis = AnalysisGraph(
            nodes=create_nodes("a", "b"),
            branches=[],
        )
        with caplog.at_level(logging.INFO, logger="test.engine"):
            GraphLayoutEngine(logger=logger).layout(analysis)
        assert any(r.name == "test.engine" for r in caplog.records)

    def test_fallback_warnings_not_repeated(self, caplog):
        """Relief passes re-place labels; only the returned placement is reported."""
        with caplog.at_level(logging.DEBUG, logger="circuit_graph_layout"):
            GraphLayoutEngine().layout(create_dense_parallel())
        assert "Relief pass 1" in caplog.text
        owners = [
            record.args[1]
            for record in caplog.records
            if record.levelno == logging.WARNING and "overlaps other elements" in record.msg
        ]
        assert owners
        assert len(owners) == len(set(owners))


SMALL_CIRCUITS = {
    "parallel": create_parallel_resistors,
    "star": create_star,
    "series_loop": create_series_loop,
    "bridge": create_bridge,
}


class TestLabelSeparation:
    """Tests for label boxes on small circuits."""

    @pytest.mark.parametrize("name", sorted(SMALL_CIRCUITS))
    def test_no_two_labels_intersect(self, name):
        config = LayoutConfig()
        graph = GraphLayoutEngine(config).layout(SMALL_CIRCUITS[name]())
        colliding = [
            (a, b)
            for (a, box_a), (b, box_b) in combinations(output_label_boxes(graph, config), 2)
            if bounding_box_intersects(box_a, box_b)
        ]
        assert colliding == []

    @pytest.mark.parametrize("name", sorted(SMALL_CIRCUITS))
    def test_one_label_per_element(self, name):
        graph = GraphLayoutEngine().layout(SMALL_CIRCUITS[name]())
        analysis = SMALL_CIRCUITS[name]()
        assert [n.id for n in graph.nodes] == [n.id for n in analysis.nodes]
        assert [e.id for e in graph.edges] == [b.id for b in analysis.branches]


class TestOptimizedLayouts:
    """Tests for multi-candidate layout selection in the engine."""

    def test_optimizer_layout_is_complete(self):
        config = LayoutConfig(optimizer=OptimizerConfig(enabled=True))
        graph = GraphLayoutEngine(config).layout(create_bridge())
        assert {e.id for e in graph.edges} == {"R1", "R2", "R3", "R4", "R5", "V1"}
        assert len(graph.nodes) == 4

    def test_optimizer_deterministic(self):
        config = LayoutConfig(optimizer=OptimizerConfig(enabled=True))
        first = GraphLayoutEngine(config).layout(create_bridge()).to_dict()
        second = GraphLayoutEngine(config).layout(create_bridge()).to_dict()
        assert first == second

    def test_optimizer_logs_choice(self, caplog):
        config = LayoutConfig(optimizer=OptimizerConfig(enabled=True))
        with caplog.at_level(logging.DEBUG, logger="circuit_graph_layout"):
            GraphLayoutEngine(config).layout(create_single_resistor())
        chosen = [r for r in caplog.records if r.msg.startswith("Layout variant")]
        assert chosen
        names = {v.name for v in config.optimizer.variants}
        assert all(r.args[0] in names for r in chosen)
