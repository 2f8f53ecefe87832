"""
Planarity-oriented simulated annealing.

Refines a force layout whose straight-line drawing still has edge
crossings. Single nodes are perturbed at random; a move is kept when it
lowers the score or, with a probability that shrinks as the temperature
cools, when it raises it. The best layout seen is the result.
"""

from __future__ import annotations

import math
import random
from itertools import combinations
from typing import Callable, Mapping, Optional, Sequence

from ..base import IterativeRelaxation
from ..config import AnnealingConfig
from ..geometry import distance, line_intersection
from ..types import Branch, Event, EventType, NodeId, Point


def unique_pairs(branches: Sequence[Branch]) -> list[tuple[NodeId, NodeId]]:
    """Canonical node pairs joined by at least one branch, self-loops excluded."""
    return list(dict.fromkeys(b.node_pair for b in branches if not b.is_self_loop))


def count_straight_crossings(
    positions: Mapping[NodeId, Point],
    pairs: Sequence[tuple[NodeId, NodeId]],
) -> int:
    """
    Count crossings of the straight-line drawing.

    Pairs sharing an endpoint never count as crossing.
    """
    crossings = 0
    for (a, b), (c, d) in combinations(pairs, 2):
        if a in (c, d) or b in (c, d):
            continue
        if line_intersection(positions[a], positions[b], positions[c], positions[d]) is not None:
            crossings += 1
    return crossings


class PlanarityAnnealer(IterativeRelaxation):
    """
    Simulated annealing that trades crossings for edge length.

    Score = (crossings + close node pairs) * crossing_penalty
            + total edge length * length_weight

    The run stops early once the best layout has neither crossings nor
    close node pairs.

    Example:
        annealer = PlanarityAnnealer(
            positions, branches, config=AnnealingConfig(), rng=random.Random(42)
        )
        annealer.run()
        positions = annealer.best_positions
    """

    def __init__(
        self,
        positions: Mapping[NodeId, Point],
        branches: Sequence[Branch],
        *,
        config: Optional[AnnealingConfig] = None,
        rng: Optional[random.Random] = None,
        on_start: Optional[Callable[[Optional[Event]], None]] = None,
        on_tick: Optional[Callable[[Optional[Event]], None]] = None,
        on_end: Optional[Callable[[Optional[Event]], None]] = None,
    ) -> None:
        self._config = config or AnnealingConfig()
        super().__init__(
            max_iterations=self._config.iterations,
            convergence_epsilon=0.0,
            on_start=on_start,
            on_tick=on_tick,
            on_end=on_end,
        )
        self._initial: dict[NodeId, Point] = dict(positions)
        self._pairs = unique_pairs(branches)
        self._rng = rng or random.Random(0)

        self._current: dict[NodeId, Point] = {}
        self._current_score: float = 0.0
        self._best: dict[NodeId, Point] = {}
        self._best_score: float = 0.0
        self._temperature: float = self._config.initial_temperature

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def best_positions(self) -> dict[NodeId, Point]:
        """Lowest-scoring positions seen (the input before run())."""
        return dict(self._best or self._initial)

    @property
    def best_score(self) -> float:
        return self._best_score

    @property
    def temperature(self) -> float:
        return self._temperature

    # -------------------------------------------------------------------------
    # Scoring
    # -------------------------------------------------------------------------

    def score(self, positions: Mapping[NodeId, Point]) -> float:
        """Annealing cost of a layout; lower is better."""
        return self._penalties(positions) * self._config.crossing_penalty + (
            self._total_length(positions) * self._config.length_weight
        )

    def _penalties(self, positions: Mapping[NodeId, Point]) -> int:
        crossings = count_straight_crossings(positions, self._pairs)
        close = sum(
            1
            for a, b in combinations(positions.values(), 2)
            if distance(a, b) < self._config.min_node_distance
        )
        return crossings + close

    def _total_length(self, positions: Mapping[NodeId, Point]) -> float:
        return sum(distance(positions[a], positions[b]) for a, b in self._pairs)

    # -------------------------------------------------------------------------
    # Lifecycle Methods
    # -------------------------------------------------------------------------

    def _initialize(self) -> None:
        self._current = dict(self._initial)
        self._current_score = self.score(self._current)
        self._best = dict(self._current)
        self._best_score = self._current_score
        self._temperature = self._config.initial_temperature

    def tick(self) -> bool:
        """
        Try one single-node move.

        Returns:
            True once the best layout is free of crossings and close pairs.
        """
        if not self._current or self._penalties(self._best) == 0:
            return True

        node_ids = list(self._current)
        node_id = self._rng.choice(node_ids)
        old = self._current[node_id]
        t = self._temperature
        moved = Point(old.x + self._rng.uniform(-t, t), old.y + self._rng.uniform(-t, t))

        candidate = dict(self._current)
        candidate[node_id] = moved
        candidate_score = self.score(candidate)
        delta = candidate_score - self._current_score

        if delta < 0 or self._rng.random() < math.exp(-delta / max(t, 1e-9)):
            self._current = candidate
            self._current_score = candidate_score
            if candidate_score < self._best_score:
                self._best = dict(candidate)
                self._best_score = candidate_score

        self._temperature *= self._config.cooling_rate
        self._iteration += 1
        self.trigger(
            {
                "type": EventType.tick,
                "alpha": self.alpha,
                "iteration": self._iteration,
                "energy": self._current_score,
            }
        )
        return False


__all__ = [
    "unique_pairs",
    "count_straight_crossings",
    "PlanarityAnnealer",
]
