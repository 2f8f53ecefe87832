"""
Structural equivalence and mirror symmetry.

Structurally equivalent nodes are found by colour refinement: every node
starts with its degree as colour, and each round recolours a node by its
colour plus the multiset of (neighbour colour, branch count) pairs. Nodes
sharing the final colour are candidates for mirror pairs.

A mirror axis is accepted when nodes of equal colour pair up across it
and the pairing maps every branch among paired nodes onto a branch with
the same multiplicity. The pairs are then made exact mirror images.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Sequence

from ..geometry import bounds_of, distance
from ..preprocessing import pair_multiplicity
from ..types import Branch, NodeId, Point


class AxisOrientation(Enum):
    """Orientation of a mirror axis."""

    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"


@dataclass(frozen=True)
class MirrorAxis:
    """
    A mirror axis through the layout.

    Attributes:
        orientation: VERTICAL mirrors left/right, HORIZONTAL mirrors top/bottom
        coordinate: x of a vertical axis, y of a horizontal one
    """

    orientation: AxisOrientation
    coordinate: float

    def reflect(self, p: Point) -> Point:
        if self.orientation is AxisOrientation.VERTICAL:
            return Point(2 * self.coordinate - p.x, p.y)
        return Point(p.x, 2 * self.coordinate - p.y)

    def project(self, p: Point) -> Point:
        """Closest point on the axis."""
        if self.orientation is AxisOrientation.VERTICAL:
            return Point(self.coordinate, p.y)
        return Point(p.x, self.coordinate)


# =============================================================================
# Structural Classes
# =============================================================================


def structural_classes(
    node_ids: Sequence[NodeId],
    branches: Sequence[Branch],
    rounds: Optional[int] = None,
) -> dict[NodeId, int]:
    """
    Colour refinement on the circuit multigraph.

    Args:
        node_ids: Node ids
        branches: Branches between the nodes (self-loops ignored)
        rounds: Maximum refinement rounds. If None, one per node.

    Returns:
        Mapping from node id to class number. Equal numbers mean the nodes
        cannot be told apart by their neighbourhoods.

    Example:
        >>> branches = [Branch("r1", "resistor", 1, "a", "b"),
        ...             Branch("r2", "resistor", 1, "b", "c")]
        >>> classes = structural_classes(["a", "b", "c"], branches)
        >>> classes["a"] == classes["c"] != classes["b"]
        True
    """
    multiplicity = pair_multiplicity(branches)
    neighbors: dict[NodeId, list[tuple[NodeId, int]]] = {n: [] for n in node_ids}
    for (a, b), count in multiplicity.items():
        if a in neighbors and b in neighbors:
            neighbors[a].append((b, count))
            neighbors[b].append((a, count))

    colours: dict[NodeId, int] = {
        n: sum(count for _, count in neighbors[n]) for n in node_ids
    }
    max_rounds = rounds if rounds is not None else max(1, len(node_ids))

    for _ in range(max_rounds):
        signatures = {
            n: (colours[n], tuple(sorted((colours[m], count) for m, count in neighbors[n])))
            for n in node_ids
        }
        palette = {sig: i for i, sig in enumerate(sorted(set(signatures.values())))}
        refined = {n: palette[signatures[n]] for n in node_ids}
        stable = len(set(refined.values())) == len(set(colours.values()))
        colours = refined
        if stable:
            break

    return colours


# =============================================================================
# Mirror Pairing
# =============================================================================


def _pair_across(
    positions: Mapping[NodeId, Point],
    classes: Mapping[NodeId, int],
    axis: MirrorAxis,
    tolerance: float,
) -> dict[NodeId, NodeId]:
    """Greedy nearest-first pairing of same-class nodes across an axis."""
    order = {node_id: i for i, node_id in enumerate(positions)}
    candidates: list[tuple[float, int, int, NodeId, NodeId]] = []
    for a, pa in positions.items():
        mirrored = axis.reflect(pa)
        for b, pb in positions.items():
            if order[b] < order[a] or classes[a] != classes[b]:
                continue
            d = distance(mirrored, pb)
            if d <= tolerance:
                candidates.append((d, order[a], order[b], a, b))
    candidates.sort()

    mapping: dict[NodeId, NodeId] = {}
    for _, _, _, a, b in candidates:
        if a in mapping or b in mapping:
            continue
        mapping[a] = b
        mapping[b] = a
    return mapping


def _preserves_branches(
    mapping: Mapping[NodeId, NodeId], branches: Sequence[Branch]
) -> bool:
    multiplicity = pair_multiplicity(branches)
    for (a, b), count in multiplicity.items():
        if a not in mapping or b not in mapping:
            continue
        image = tuple(sorted((mapping[a], mapping[b])))
        if multiplicity.get(image, 0) != count:
            return False
    return True


def find_mirror_symmetry(
    positions: Mapping[NodeId, Point],
    branches: Sequence[Branch],
    classes: Mapping[NodeId, int],
    tolerance: float,
) -> Optional[tuple[MirrorAxis, dict[NodeId, NodeId]]]:
    """
    Find a mirror axis through the bounding-box centre.

    The axis across the wider spread is tried first, then the other one.

    Returns:
        (axis, mapping) for the first accepted axis, where mapping sends
        every paired node to its partner (self for on-axis nodes), or None.
    """
    if len(positions) < 2:
        return None

    box = bounds_of(positions.values())
    vertical = MirrorAxis(AxisOrientation.VERTICAL, box.center.x)
    horizontal = MirrorAxis(AxisOrientation.HORIZONTAL, box.center.y)
    axes = [vertical, horizontal] if box.width >= box.height else [horizontal, vertical]

    for axis in axes:
        mapping = _pair_across(positions, classes, axis, tolerance)
        if not any(a != b for a, b in mapping.items()):
            continue
        if _preserves_branches(mapping, branches):
            return axis, mapping
    return None


def enforce_mirror_symmetry(
    positions: Mapping[NodeId, Point],
    branches: Sequence[Branch],
    classes: Mapping[NodeId, int],
    tolerance: float,
) -> tuple[dict[NodeId, Point], Optional[MirrorAxis]]:
    """
    Make mirror pairs exact.

    Each pair gets the average of one node and the reflection of the other,
    and its mirror image; self-mapped nodes are moved onto the axis.
    Unpaired nodes keep their positions.

    Returns:
        (positions, axis), with axis None when no symmetry was found.
    """
    found = find_mirror_symmetry(positions, branches, classes, tolerance)
    result = dict(positions)
    if found is None:
        return result, None

    axis, mapping = found
    done: set[NodeId] = set()
    for a in positions:
        if a not in mapping or a in done:
            continue
        b = mapping[a]
        if a == b:
            result[a] = axis.project(positions[a])
        else:
            pa = positions[a]
            pb = axis.reflect(positions[b])
            averaged = Point((pa.x + pb.x) / 2, (pa.y + pb.y) / 2)
            result[a] = averaged
            result[b] = axis.reflect(averaged)
        done.update((a, b))
    return result, axis


__all__ = [
    "AxisOrientation",
    "MirrorAxis",
    "structural_classes",
    "find_mirror_symmetry",
    "enforce_mirror_symmetry",
]
