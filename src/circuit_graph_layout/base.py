"""
Base class for iterative relaxation.

IterativeRelaxation provides the shared infrastructure of tick-driven
algorithms (force relaxation, annealing):

- Event system (start/tick/end events)
- Iteration cap and convergence tracking
- Linear cooling schedule exposed as ``alpha``
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable, Optional

if TYPE_CHECKING:
    from typing_extensions import Self

from .types import Event, EventType
from .validation import validate_iterations, validate_non_negative


class IterativeRelaxation(ABC):
    """
    Abstract base class for iterative algorithms.

    Subclasses implement ``_initialize()`` to set up state and ``tick()`` to
    perform one iteration. ``run()`` fires the start event, ticks until
    ``tick()`` reports convergence or the iteration cap is hit, then fires
    the end event.

    Example:
        relaxation = SomeRelaxation(max_iterations=300)
        relaxation.on("tick", lambda e: print(e["iteration"]))
        relaxation.run()
        if not relaxation.converged:
            ...
    """

    def __init__(
        self,
        *,
        max_iterations: int = 300,
        convergence_epsilon: float = 0.05,
        on_start: Optional[Callable[[Optional[Event]], None]] = None,
        on_tick: Optional[Callable[[Optional[Event]], None]] = None,
        on_end: Optional[Callable[[Optional[Event]], None]] = None,
    ) -> None:
        """
        Initialize the relaxation.

        Args:
            max_iterations: Maximum number of ticks
            convergence_epsilon: Largest displacement considered converged
            on_start: Callback for start event
            on_tick: Callback for tick event
            on_end: Callback for end event
        """
        self._iterations: int = validate_iterations(int(max_iterations), "max_iterations")
        self._epsilon: float = validate_non_negative(
            float(convergence_epsilon), "convergence_epsilon"
        )
        self._iteration: int = 0
        self._converged: bool = False
        self._events: dict[EventType, Callable[[Optional[Event]], None]] = {}

        if on_start:
            self._events[EventType.start] = on_start
        if on_tick:
            self._events[EventType.tick] = on_tick
        if on_end:
            self._events[EventType.end] = on_end

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def iterations(self) -> int:
        """Get maximum iterations."""
        return self._iterations

    @property
    def convergence_epsilon(self) -> float:
        return self._epsilon

    @property
    def iteration(self) -> int:
        """Number of ticks performed so far."""
        return self._iteration

    @property
    def converged(self) -> bool:
        """True if the last run stopped before the iteration cap."""
        return self._converged

    @property
    def alpha(self) -> float:
        """Cooling factor, from 1 at the first tick down to 0 at the cap."""
        return max(0.0, 1.0 - self._iteration / self._iterations)

    # -------------------------------------------------------------------------
    # Event System
    # -------------------------------------------------------------------------

    def on(self, event: EventType | str, callback: Callable[[Optional[Event]], None]) -> Self:
        """
        Subscribe to a relaxation event.

        Args:
            event: Event type (EventType enum or string name)
            callback: Function to call when event fires

        Returns:
            self (for chaining)
        """
        if isinstance(event, str):
            event = EventType[event]
        self._events[event] = callback
        return self

    def trigger(self, event: Event) -> None:
        """Call the callback registered for the event's type, if any."""
        event_type = event.get("type")
        if event_type is not None and event_type in self._events:
            self._events[event_type](event)

    # -------------------------------------------------------------------------
    # Lifecycle Methods
    # -------------------------------------------------------------------------

    @abstractmethod
    def _initialize(self) -> None:
        """Set up per-run state before the first tick."""
        pass

    @abstractmethod
    def tick(self) -> bool:
        """
        Perform one iteration.

        Returns:
            True if converged, False if more iterations are needed.
        """
        pass

    def kick(self) -> None:
        """Run tick() repeatedly until convergence or max iterations."""
        while self._iteration < self._iterations:
            if self.tick():
                self._converged = True
                break

    def run(self) -> Self:
        """
        Run the relaxation from a fresh state.

        Returns:
            self (for chaining)
        """
        self._iteration = 0
        self._converged = False
        self._initialize()
        self.trigger({"type": EventType.start, "alpha": 1.0, "iteration": 0})
        self.kick()
        self.trigger({"type": EventType.end, "alpha": self.alpha, "iteration": self._iteration})
        return self


__all__ = [
    "IterativeRelaxation",
]
