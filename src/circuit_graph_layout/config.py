"""
Configuration for the circuit layout pipeline.

Every tunable constant of the pipeline lives here as a frozen dataclass
field. Values are validated on construction; use ``dataclasses.replace``
to derive variants.

Example:
    config = LayoutConfig(
        force=ForceConfig(link_length=120, max_iterations=500),
        random_seed=7,
    )
    graph = GraphLayoutEngine(config).layout(analysis_graph)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .validation import (
    InvalidConfigError,
    validate_canvas_size,
    validate_fraction,
    validate_iterations,
    validate_non_negative,
    validate_positive,
)


@dataclass(frozen=True)
class ForceConfig:
    """
    Force relaxation parameters.

    Attributes:
        link_length: Rest length of the spring between connected nodes
        repulsion_strength: Inverse-square many-body repulsion constant
        spring_strength: Spring stiffness (force per unit of stretch)
        centering_strength: Pull toward the canvas center
        centrality_weight: Extra centering weight for the highest-degree node
        damping: Velocity retained between iterations (0 to 1)
        max_step: Largest displacement per iteration at full temperature
        max_iterations: Iteration cap
        convergence_epsilon: Largest displacement considered converged
        initial_radius: Radius of the starting circle. If None, derived
            from node count and link length.
    """

    link_length: float = 150.0
    repulsion_strength: float = 20000.0
    spring_strength: float = 0.1
    centering_strength: float = 0.005
    centrality_weight: float = 0.5
    damping: float = 0.6
    max_step: float = 50.0
    max_iterations: int = 300
    convergence_epsilon: float = 0.05
    initial_radius: Optional[float] = None

    def __post_init__(self) -> None:
        validate_positive(self.link_length, "link_length")
        validate_non_negative(self.repulsion_strength, "repulsion_strength")
        validate_non_negative(self.spring_strength, "spring_strength")
        validate_non_negative(self.centering_strength, "centering_strength")
        validate_non_negative(self.centrality_weight, "centrality_weight")
        validate_fraction(self.damping, "damping")
        validate_positive(self.max_step, "max_step")
        validate_iterations(self.max_iterations, "max_iterations")
        validate_non_negative(self.convergence_epsilon, "convergence_epsilon")
        if self.initial_radius is not None:
            validate_positive(self.initial_radius, "initial_radius")


@dataclass(frozen=True)
class AnnealingConfig:
    """
    Planarity annealing parameters.

    Attributes:
        enabled: Run annealing when the force layout has edge crossings
        iterations: Number of perturbation steps
        initial_temperature: Starting temperature (also the perturbation scale)
        cooling_rate: Multiplicative temperature decay per step
        crossing_penalty: Cost per edge crossing and per too-close node pair
        length_weight: Cost per unit of total edge length
        min_node_distance: Node pairs closer than this count as too close
    """

    enabled: bool = True
    iterations: int = 400
    initial_temperature: float = 50.0
    cooling_rate: float = 0.99
    crossing_penalty: float = 1000.0
    length_weight: float = 1.0
    min_node_distance: float = 60.0

    def __post_init__(self) -> None:
        validate_iterations(self.iterations)
        validate_positive(self.initial_temperature, "initial_temperature")
        validate_fraction(self.cooling_rate, "cooling_rate")
        validate_non_negative(self.crossing_penalty, "crossing_penalty")
        validate_non_negative(self.length_weight, "length_weight")
        validate_non_negative(self.min_node_distance, "min_node_distance")


@dataclass(frozen=True)
class GridConfig:
    """Grid snapping and axis alignment."""

    grid_size: float = 50.0
    align_tolerance: float = 20.0

    def __post_init__(self) -> None:
        validate_positive(self.grid_size, "grid_size")
        validate_non_negative(self.align_tolerance, "align_tolerance")


@dataclass(frozen=True)
class SymmetryConfig:
    """
    Mirror symmetry enforcement.

    Attributes:
        enabled: Run the mirror pass
        tolerance: Largest distance between a node and the reflection of
            its partner for the two to be paired
        refinement_rounds: Colour refinement rounds. If None, one round per node.
    """

    enabled: bool = True
    tolerance: float = 75.0
    refinement_rounds: Optional[int] = None

    def __post_init__(self) -> None:
        validate_non_negative(self.tolerance, "tolerance")
        if self.refinement_rounds is not None:
            validate_iterations(self.refinement_rounds, "refinement_rounds")


@dataclass(frozen=True)
class StarConfig:
    """
    Star distribution.

    Attributes:
        enabled: Run the star pass
        min_leaves: Fewest leaves for a hub to count as a star
        start_angle: Angle in degrees of the first leaf of a pure star
    """

    enabled: bool = True
    min_leaves: int = 3
    start_angle: float = 0.0

    def __post_init__(self) -> None:
        validate_iterations(self.min_leaves, "min_leaves")


@dataclass(frozen=True)
class CrowdingConfig:
    """
    Crowding relief feedback.

    A connected node pair is crowded when
    ``(branches + interior labels) * crowding_unit`` exceeds its distance.

    Attributes:
        enabled: Run relief passes
        crowding_unit: Space each branch or label needs along the pair
        corridor_width: Distance from the pair's axis within which labels count
        expansion: Rest length multiplier applied to crowded pairs
        max_relief_passes: Cap on pipeline re-runs
    """

    enabled: bool = True
    crowding_unit: float = 40.0
    corridor_width: float = 20.0
    expansion: float = 1.5
    max_relief_passes: int = 2

    def __post_init__(self) -> None:
        validate_positive(self.crowding_unit, "crowding_unit")
        validate_non_negative(self.corridor_width, "corridor_width")
        if self.expansion < 1:
            raise InvalidConfigError(f"expansion must be >= 1, got {self.expansion}")
        validate_non_negative(self.max_relief_passes, "max_relief_passes")


@dataclass(frozen=True)
class RouterConfig:
    """
    Edge routing parameters.

    Attributes:
        low_arc_height: Perpendicular offset of the curve midpoint, low arcs
        high_arc_height: Perpendicular offset of the curve midpoint, high arc
        parallel_spacing: Offset step between curves of parallel branches
        intersection_penalty: Cost per crossing with a node or another edge
        proximity_threshold: Clearance below which proximity is penalized
        proximity_weight: Proximity cost scale
        curvature_penalty: Flat cost of any curved candidate
        high_arc_penalty: Extra flat cost of the high arc
        symmetry_bonus: Reward for mirroring a partner edge
        acceptable_score: Best scores above this are reported as degraded
        node_radius: Node circle radius used for intersection tests
        samples: Polyline samples per curve for scoring
        self_loop_size: Extent of a self-loop above its node
        symmetry_tolerance: Distance within which two paths count as mirrored
    """

    low_arc_height: float = 30.0
    high_arc_height: float = 60.0
    parallel_spacing: float = 40.0
    intersection_penalty: float = 1000.0
    proximity_threshold: float = 12.0
    proximity_weight: float = 100.0
    curvature_penalty: float = 10.0
    high_arc_penalty: float = 5.0
    symmetry_bonus: float = 50.0
    acceptable_score: float = 1000.0
    node_radius: float = 5.0
    samples: int = 16
    self_loop_size: float = 40.0
    symmetry_tolerance: float = 1.0

    def __post_init__(self) -> None:
        validate_positive(self.low_arc_height, "low_arc_height")
        validate_positive(self.high_arc_height, "high_arc_height")
        validate_positive(self.parallel_spacing, "parallel_spacing")
        validate_non_negative(self.intersection_penalty, "intersection_penalty")
        validate_non_negative(self.proximity_threshold, "proximity_threshold")
        validate_non_negative(self.proximity_weight, "proximity_weight")
        validate_non_negative(self.curvature_penalty, "curvature_penalty")
        validate_non_negative(self.high_arc_penalty, "high_arc_penalty")
        validate_non_negative(self.symmetry_bonus, "symmetry_bonus")
        validate_non_negative(self.node_radius, "node_radius")
        validate_iterations(self.samples, "samples")
        validate_positive(self.self_loop_size, "self_loop_size")
        validate_non_negative(self.symmetry_tolerance, "symmetry_tolerance")


@dataclass(frozen=True)
class LabelConfig:
    """
    Label placement parameters.

    Attributes:
        label_offset: Distance of a label from its anchor
        char_width: Estimated width of one character
        line_height: Height of one text line
        node_radius: Half-size of the box occupied by a node
        edge_box_size: Side of the square occupied by an edge around its arrow
    """

    label_offset: float = 14.0
    char_width: float = 8.0
    line_height: float = 14.0
    node_radius: float = 5.0
    edge_box_size: float = 60.0

    def __post_init__(self) -> None:
        validate_non_negative(self.label_offset, "label_offset")
        validate_positive(self.char_width, "char_width")
        validate_positive(self.line_height, "line_height")
        validate_non_negative(self.node_radius, "node_radius")
        validate_non_negative(self.edge_box_size, "edge_box_size")


@dataclass(frozen=True)
class PatternConfig:
    """
    Pattern-seeded placement.

    Attributes:
        enabled: Seed the force layout from recognized bridge, pi, T and
            series patterns
        template_scale: Layout units per template unit when expanding a pattern
        refine_iterations: Iteration cap of the force run after expansion
        refine_step: Displacement cap of the force run after expansion
    """

    enabled: bool = True
    template_scale: float = 1.5
    refine_iterations: int = 50
    refine_step: float = 10.0

    def __post_init__(self) -> None:
        validate_positive(self.template_scale, "template_scale")
        validate_iterations(self.refine_iterations, "refine_iterations")
        validate_positive(self.refine_step, "refine_step")


@dataclass(frozen=True)
class LayoutVariant:
    """
    One candidate setting tried by the layout optimizer.

    Fields left as None keep the base configuration's value.
    """

    name: str
    random_seed: Optional[int] = None
    grid_size: Optional[float] = None

    def __post_init__(self) -> None:
        if self.grid_size is not None:
            validate_positive(self.grid_size, "grid_size")


def _default_variants() -> tuple[LayoutVariant, ...]:
    return (
        LayoutVariant("default"),
        LayoutVariant("fine-grid", grid_size=25.0),
        LayoutVariant("coarse-grid", grid_size=100.0),
        LayoutVariant("alt-seed-1", random_seed=123),
        LayoutVariant("alt-seed-2", random_seed=456),
    )


@dataclass(frozen=True)
class OptimizerConfig:
    """
    Multi-candidate layout selection.

    Each variant runs placement and routing; the candidate with the lowest
    ``crossings * crossing_penalty - spacing * spacing_weight
    - symmetry * symmetry_weight - planar_bonus`` wins.

    Attributes:
        enabled: Try every variant instead of the base configuration only
        variants: Settings to try, in tie-break order
        crossing_penalty: Cost per crossing pair of edges
        spacing_weight: Reward per unit of mean distance between arrow points
        symmetry_weight: Reward for a fully mirror-symmetric node set
        planar_bonus: Reward for a candidate with no crossings
        mirror_tolerance: Distance within which a reflected node finds its mirror
    """

    enabled: bool = False
    variants: tuple[LayoutVariant, ...] = field(default_factory=_default_variants)
    crossing_penalty: float = 1000.0
    spacing_weight: float = 10.0
    symmetry_weight: float = 100.0
    planar_bonus: float = 500.0
    mirror_tolerance: float = 10.0

    def __post_init__(self) -> None:
        if not self.variants:
            raise InvalidConfigError("variants must not be empty")
        validate_non_negative(self.crossing_penalty, "crossing_penalty")
        validate_non_negative(self.spacing_weight, "spacing_weight")
        validate_non_negative(self.symmetry_weight, "symmetry_weight")
        validate_non_negative(self.planar_bonus, "planar_bonus")
        validate_non_negative(self.mirror_tolerance, "mirror_tolerance")


@dataclass(frozen=True)
class LayoutConfig:
    """
    Complete pipeline configuration.

    Attributes:
        canvas_size: Viewport the node placement is centered in
        margin: Space kept around the final drawing
        random_seed: Seed for every random choice of one layout run
        precision: Decimal places used when serializing path data
    """

    force: ForceConfig = field(default_factory=ForceConfig)
    annealing: AnnealingConfig = field(default_factory=AnnealingConfig)
    grid: GridConfig = field(default_factory=GridConfig)
    symmetry: SymmetryConfig = field(default_factory=SymmetryConfig)
    star: StarConfig = field(default_factory=StarConfig)
    crowding: CrowdingConfig = field(default_factory=CrowdingConfig)
    router: RouterConfig = field(default_factory=RouterConfig)
    labels: LabelConfig = field(default_factory=LabelConfig)
    patterns: PatternConfig = field(default_factory=PatternConfig)
    optimizer: OptimizerConfig = field(default_factory=OptimizerConfig)
    canvas_size: tuple[float, float] = (800.0, 600.0)
    margin: float = 40.0
    random_seed: int = 42
    precision: int = 3

    def __post_init__(self) -> None:
        object.__setattr__(self, "canvas_size", validate_canvas_size(self.canvas_size))
        validate_non_negative(self.margin, "margin")
        validate_non_negative(self.precision, "precision")


__all__ = [
    "ForceConfig",
    "AnnealingConfig",
    "GridConfig",
    "SymmetryConfig",
    "StarConfig",
    "CrowdingConfig",
    "RouterConfig",
    "LabelConfig",
    "PatternConfig",
    "LayoutVariant",
    "OptimizerConfig",
    "LayoutConfig",
]
