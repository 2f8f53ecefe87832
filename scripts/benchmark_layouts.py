#!/usr/bin/env python3
"""
Benchmark the circuit layout engine on sample circuits.

Usage:
    python scripts/benchmark_layouts.py [--circuits PATTERN] [--seed N] [--optimize]

Examples:
    python scripts/benchmark_layouts.py
    python scripts/benchmark_layouts.py --circuits "ladder_*"
    python scripts/benchmark_layouts.py --circuits bridge --seed 7 --output results.json
    python scripts/benchmark_layouts.py --circuits "ladder_*" --optimize
"""

from __future__ import annotations

import argparse
import json
import logging
import time
from fnmatch import fnmatch
from typing import Any, Callable

from circuit_graph_layout import (
    AnalysisGraph,
    Branch,
    ElectricalNode,
    GraphLayoutEngine,
    LayoutConfig,
    OptimizerConfig,
    layout_quality_summary,
)


def series(n: int) -> AnalysisGraph:
    """Voltage source driving n resistors in a loop."""
    nodes = [ElectricalNode(f"n{i}") for i in range(n + 1)]
    branches = [Branch("V1", "voltageSource", 5.0, "n0", f"n{n}")]
    branches += [Branch(f"R{i}", "resistor", 1.0, f"n{i}", f"n{i + 1}") for i in range(n)]
    return AnalysisGraph(nodes=nodes, branches=branches)


def parallel(n: int) -> AnalysisGraph:
    """Voltage source with n resistors across the same node pair."""
    nodes = [ElectricalNode("a"), ElectricalNode("b")]
    branches = [Branch("V1", "voltageSource", 5.0, "a", "b")]
    branches += [Branch(f"R{i}", "resistor", 1.0, "a", "b") for i in range(n)]
    return AnalysisGraph(nodes=nodes, branches=branches)


def bridge() -> AnalysisGraph:
    """Wheatstone bridge."""
    nodes = [ElectricalNode(n) for n in ("top", "left", "right", "bottom")]
    branches = [
        Branch("R1", "resistor", 1.0, "top", "left"),
        Branch("R2", "resistor", 1.0, "top", "right"),
        Branch("R3", "resistor", 1.0, "left", "bottom"),
        Branch("R4", "resistor", 1.0, "right", "bottom"),
        Branch("R5", "resistor", 1.0, "left", "right"),
        Branch("V1", "voltageSource", 5.0, "bottom", "top"),
        Branch("I1", "currentSource", 0.1, "left", "right"),
    ]
    return AnalysisGraph(nodes=nodes, branches=branches)


def ladder(rungs: int) -> AnalysisGraph:
    """Resistor ladder with a ground rail."""
    nodes = [ElectricalNode("gnd")] + [ElectricalNode(f"n{i}") for i in range(rungs + 1)]
    branches = [Branch("V1", "voltageSource", 5.0, "n0", "gnd")]
    for i in range(rungs):
        branches.append(Branch(f"Rs{i}", "resistor", 1.0, f"n{i}", f"n{i + 1}"))
        branches.append(Branch(f"Rp{i}", "resistor", 1.0, f"n{i + 1}", "gnd"))
    return AnalysisGraph(nodes=nodes, branches=branches)


def star(leaves: int) -> AnalysisGraph:
    """Hub node with resistor leaves."""
    nodes = [ElectricalNode("hub")] + [ElectricalNode(f"l{i}") for i in range(leaves)]
    branches = [Branch(f"R{i}", "resistor", 1.0, "hub", f"l{i}") for i in range(leaves)]
    return AnalysisGraph(nodes=nodes, branches=branches)


CIRCUITS: dict[str, Callable[[], AnalysisGraph]] = {
    "series_3": lambda: series(3),
    "series_8": lambda: series(8),
    "parallel_2": lambda: parallel(2),
    "parallel_5": lambda: parallel(5),
    "bridge": bridge,
    "ladder_3": lambda: ladder(3),
    "ladder_6": lambda: ladder(6),
    "star_4": lambda: star(4),
    "star_7": lambda: star(7),
}


def benchmark_circuit(graph: AnalysisGraph, config: LayoutConfig) -> dict[str, Any]:
    """
    Lay out one circuit and measure it.

    Returns:
        Dict with timing, size and quality metrics
    """
    engine = GraphLayoutEngine(config)

    start = time.perf_counter()
    result = engine.layout(graph)
    elapsed = time.perf_counter() - start

    return {
        "time_seconds": elapsed,
        "num_nodes": len(result.nodes),
        "num_edges": len(result.edges),
        "width": result.width,
        "height": result.height,
        **layout_quality_summary(result, config.labels),
    }


def run_benchmarks(
    circuit_pattern: str = "*", seed: int = 42, optimize: bool = False
) -> list[dict]:
    """Run the engine on every matching sample circuit."""
    config = LayoutConfig(random_seed=seed, optimizer=OptimizerConfig(enabled=optimize))
    matching = [name for name in CIRCUITS if fnmatch(name, circuit_pattern)]
    if not matching:
        print(f"No circuits matching pattern '{circuit_pattern}'")
        return []

    mode = "best of variants" if optimize else "single run"
    print(f"\nBenchmarking {len(matching)} circuits (seed {seed}, {mode})")
    print("=" * 80)

    results = []
    for name in matching:
        result = benchmark_circuit(CIRCUITS[name](), config)
        print(
            f"  {name:12s}: {result['time_seconds']:.4f}s  "
            f"crossings={result['edge_crossings']}  "
            f"label_overlaps={result['label_overlaps']}  "
            f"curved={result['curved_edges']}"
        )
        results.append({"circuit": name, **result})

    return results


def main():
    parser = argparse.ArgumentParser(description="Benchmark the circuit layout engine")
    parser.add_argument("--circuits", default="*", help="Circuit name pattern (e.g., 'ladder_*')")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument("--output", help="Output JSON file for results")
    parser.add_argument(
        "--optimize", action="store_true", help="Pick the best of several seed/grid variants"
    )
    parser.add_argument("--verbose", action="store_true", help="Show engine debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    results = run_benchmarks(
        circuit_pattern=args.circuits, seed=args.seed, optimize=args.optimize
    )

    if results:
        print("\n" + json.dumps(results, indent=2, default=str))

    if args.output and results:
        with open(args.output, "w") as f:
            json.dump(results, f, indent=2, default=str)
        print(f"\nResults saved to {args.output}")


if __name__ == "__main__":
    main()
