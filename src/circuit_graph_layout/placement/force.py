"""
Force relaxation for circuit node placement.

The relaxation simulates a physical system where:
- Connected node pairs are joined by springs with a per-pair rest length
- All nodes repel each other with an inverse-square force
- Every node is pulled toward the canvas center, high-degree nodes harder
- Movement is damped and capped by a temperature that cools linearly
"""

from __future__ import annotations

import math
import random
from typing import Callable, Mapping, Optional, Sequence

import numpy as np

from ..base import IterativeRelaxation
from ..config import ForceConfig
from ..preprocessing import node_degrees
from ..types import Branch, Event, EventType, NodeId, Point

# Pairwise distances are floored at this value to bound the repulsion
_MIN_DISTANCE = 1.0


class ForceRelaxation(IterativeRelaxation):
    """
    Spring, repulsion and centering relaxation.

    Nodes start on a circle around the center, in input order, with a
    small seeded jitter so that no two nodes coincide, unless given
    initial positions. Each tick applies
    spring, repulsion and degree-weighted centering forces, damps the
    velocity and caps every step at ``max_step * alpha``. The run converges
    when the largest step falls below ``convergence_epsilon``.

    Example:
        relaxation = ForceRelaxation(
            ["n1", "n2", "n3"],
            branches,
            config=ForceConfig(link_length=120),
            center=Point(400, 300),
            rng=random.Random(42),
        )
        relaxation.run()
        positions = relaxation.positions
    """

    def __init__(
        self,
        node_ids: Sequence[NodeId],
        branches: Sequence[Branch],
        *,
        config: Optional[ForceConfig] = None,
        center: Point = Point(0.0, 0.0),
        rest_lengths: Optional[Mapping[tuple[NodeId, NodeId], float]] = None,
        rng: Optional[random.Random] = None,
        initial_positions: Optional[Mapping[NodeId, Point]] = None,
        on_start: Optional[Callable[[Optional[Event]], None]] = None,
        on_tick: Optional[Callable[[Optional[Event]], None]] = None,
        on_end: Optional[Callable[[Optional[Event]], None]] = None,
    ) -> None:
        """
        Initialize the relaxation.

        Args:
            node_ids: Node ids; output order follows this order
            branches: Branches between the nodes; each connected pair gets
                one spring regardless of its branch count
            config: Force parameters
            center: Point the layout is centered on
            rest_lengths: Spring rest length per canonical node pair.
                Pairs not listed use ``config.link_length``.
            rng: Random source for the initial jitter
            initial_positions: Starting positions. Listed nodes start
                there without jitter; the rest start on the circle.
            on_start: Callback for start event
            on_tick: Callback for tick event
            on_end: Callback for end event
        """
        self._config = config or ForceConfig()
        super().__init__(
            max_iterations=self._config.max_iterations,
            convergence_epsilon=self._config.convergence_epsilon,
            on_start=on_start,
            on_tick=on_tick,
            on_end=on_end,
        )
        self._node_ids: list[NodeId] = list(node_ids)
        self._center = center
        self._rng = rng or random.Random(0)
        self._initial = dict(initial_positions or {})

        index = {node_id: i for i, node_id in enumerate(self._node_ids)}
        rest = dict(rest_lengths or {})
        pairs: dict[tuple[NodeId, NodeId], float] = {}
        for branch in branches:
            if branch.is_self_loop:
                continue
            if branch.source_id not in index or branch.target_id not in index:
                continue
            pairs.setdefault(branch.node_pair, rest.get(branch.node_pair, self._config.link_length))

        self._sources = np.array([index[a] for a, _ in pairs], dtype=np.int64)
        self._targets = np.array([index[b] for _, b in pairs], dtype=np.int64)
        self._rest = np.array(list(pairs.values()), dtype=np.float64)

        degrees = node_degrees(self._node_ids, branches)
        max_degree = max(degrees.values(), default=0)
        weights = [
            1.0 + self._config.centrality_weight * degrees[n] / max_degree if max_degree else 1.0
            for n in self._node_ids
        ]
        self._weights = np.array(weights, dtype=np.float64)

        n = len(self._node_ids)
        self._pos = np.zeros((n, 2), dtype=np.float64)
        self._velocity = np.zeros((n, 2), dtype=np.float64)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def config(self) -> ForceConfig:
        return self._config

    @property
    def positions(self) -> dict[NodeId, Point]:
        """Current node positions, in input node order."""
        return {
            node_id: Point(float(self._pos[i, 0]), float(self._pos[i, 1]))
            for i, node_id in enumerate(self._node_ids)
        }

    @property
    def initial_radius(self) -> float:
        """Radius of the starting circle."""
        if self._config.initial_radius is not None:
            return self._config.initial_radius
        n = len(self._node_ids)
        return max(self._config.link_length / 2, self._config.link_length * n / (2 * math.pi))

    # -------------------------------------------------------------------------
    # Lifecycle Methods
    # -------------------------------------------------------------------------

    def _initialize(self) -> None:
        n = len(self._node_ids)
        self._velocity.fill(0.0)
        if n == 1 and self._node_ids[0] not in self._initial:
            self._pos[0] = (self._center.x, self._center.y)
            return

        radius = self.initial_radius
        for i, node_id in enumerate(self._node_ids):
            if node_id in self._initial:
                self._pos[i] = (self._initial[node_id].x, self._initial[node_id].y)
                continue
            angle = 2 * math.pi * i / n - math.pi / 2
            self._pos[i, 0] = self._center.x + radius * math.cos(angle) + self._rng.uniform(-1, 1)
            self._pos[i, 1] = self._center.y + radius * math.sin(angle) + self._rng.uniform(-1, 1)

    def tick(self) -> bool:
        """
        Perform one iteration of the relaxation.

        Returns:
            True if converged, False otherwise.
        """
        n = len(self._node_ids)
        if n == 0:
            return True

        cfg = self._config
        temperature = cfg.max_step * self.alpha
        force = self._compute_forces()

        self._velocity = (self._velocity + force) * cfg.damping

        # Limit displacement by temperature
        step_len = np.linalg.norm(self._velocity, axis=1)
        scale = np.ones(n)
        too_fast = step_len > temperature
        scale[too_fast] = temperature / step_len[too_fast]
        self._velocity *= scale[:, None]
        self._pos += self._velocity

        displacement = float(np.max(np.linalg.norm(self._velocity, axis=1)))
        energy = float(np.sum(self._velocity * self._velocity))
        self._iteration += 1

        self.trigger(
            {
                "type": EventType.tick,
                "alpha": self.alpha,
                "iteration": self._iteration,
                "displacement": displacement,
                "energy": energy,
            }
        )

        return displacement < self._epsilon

    def _compute_forces(self) -> np.ndarray:
        cfg = self._config
        pos = self._pos

        # Repulsion: magnitude k / d^2 along the separating direction
        delta = pos[:, None, :] - pos[None, :, :]
        dist_sq = np.maximum(np.sum(delta * delta, axis=2), _MIN_DISTANCE**2)
        np.fill_diagonal(dist_sq, np.inf)
        inv_d3 = 1.0 / (dist_sq * np.sqrt(dist_sq))
        force = cfg.repulsion_strength * np.sum(delta * inv_d3[:, :, None], axis=1)

        # Springs toward the per-pair rest length
        if len(self._rest):
            d = pos[self._targets] - pos[self._sources]
            dist = np.maximum(np.linalg.norm(d, axis=1), 1e-9)
            pull = cfg.spring_strength * (dist - self._rest) / dist
            f = d * pull[:, None]
            np.add.at(force, self._sources, f)
            np.add.at(force, self._targets, -f)

        # Degree-weighted centering
        center = np.array([self._center.x, self._center.y])
        force -= cfg.centering_strength * self._weights[:, None] * (pos - center)

        return force


__all__ = [
    "ForceRelaxation",
]
