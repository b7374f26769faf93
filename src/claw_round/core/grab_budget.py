# src/claw_round/core/grab_budget.py

from __future__ import annotations

import logging

from .bus import EventBus
from .clock import SimClock
from .events import GrabCountChangedEvent, GrabStartedEvent

logger = logging.getLogger(__name__)


class GrabBudget:
    """
    Remaining grab attempts for the current round.

    Consumes one unit per GrabStartedEvent. `remaining` never goes below zero;
    what exhaustion means for the round is the orchestrator's call.
    """

    def __init__(self, bus: EventBus, clock: SimClock | None = None) -> None:
        self._bus = bus
        self._clock = clock if clock is not None else SimClock()
        self._remaining = 0
        self._bus.subscribe(GrabStartedEvent, self._on_grab_started)

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def has_remaining(self) -> bool:
        return self._remaining > 0

    def close(self) -> None:
        self._bus.unsubscribe(GrabStartedEvent, self._on_grab_started)

    def initialize(self, count: int) -> None:
        if count < 0:
            logger.warning("Negative grab count %d clamped to 0", count)
            count = 0
        self._remaining = int(count)
        logger.info("Grabs initialized: %d", self._remaining)
        self._notify()

    def consume(self) -> bool:
        if self._remaining <= 0:
            logger.warning("No grabs remaining, consume ignored")
            return False
        self._remaining -= 1
        logger.debug("Grab consumed. Remaining: %d", self._remaining)
        self._notify()
        if self._remaining == 0:
            logger.info("All grabs exhausted")
        return True

    def add(self, amount: int) -> None:
        """Reward path: grant extra grabs."""
        if amount < 0:
            logger.warning("Ignoring negative grab reward %d", amount)
            amount = 0
        self._remaining += int(amount)
        logger.debug("Grabs added: +%d (total %d)", amount, self._remaining)
        self._notify()

    def reset(self) -> None:
        """Silently zero the budget during round teardown."""
        self._remaining = 0

    def _on_grab_started(self, event: GrabStartedEvent) -> None:
        self.consume()

    def _notify(self) -> None:
        self._bus.emit(GrabCountChangedEvent(t=self._clock.time, remaining=self._remaining))
