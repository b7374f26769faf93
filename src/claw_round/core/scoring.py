# src/claw_round/core/scoring.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from .balls import BallCategory, SettledBall
from .bus import EventBus
from .clock import SimClock
from .events import ScoreCalculatedEvent

logger = logging.getLogger(__name__)


def round_half_away_from_zero(x: float) -> int:
    """
    Round to the nearest integer, ties away from zero (2.5 -> 3, -2.5 -> -3).

    Works on the shortest decimal repr of the float so 0.1 * 25 style products
    that print as x.5 round like x.5.
    """
    return int(Decimal(repr(float(x))).quantize(Decimal(1), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class ScoreBreakdown:
    base: float
    multiplier: float
    delta: int
    score_count: int
    multiplier_count: int


def compute_score_delta(balls: Iterable[SettledBall]) -> ScoreBreakdown:
    """
    delta = round(sum(score values) * sum(multiplier values))

    With no multiplier ball in the batch the multiplier is exactly 1.
    """
    base = 0.0
    multiplier = 0.0
    score_count = 0
    multiplier_count = 0
    for ball in balls:
        if ball.category is BallCategory.SCORE:
            base += ball.value
            score_count += 1
        elif ball.category is BallCategory.MULTIPLIER:
            multiplier += ball.value
            multiplier_count += 1
    if multiplier_count == 0:
        multiplier = 1.0
    return ScoreBreakdown(
        base=base,
        multiplier=multiplier,
        delta=round_half_away_from_zero(base * multiplier),
        score_count=score_count,
        multiplier_count=multiplier_count,
    )


class ScoreAggregator:
    """Round score total. Settled batches become ScoreCalculatedEvents."""

    def __init__(self, bus: EventBus, clock: SimClock | None = None) -> None:
        self._bus = bus
        self._clock = clock if clock is not None else SimClock()
        self._total = 0
        self._target = 0

    @property
    def total(self) -> int:
        return self._total

    @property
    def target(self) -> int:
        return self._target

    @property
    def target_reached(self) -> bool:
        return self._total >= self._target

    def initialize_round(self, target: int) -> None:
        self._target = int(target)
        self._total = 0
        logger.info("Round initialized: target=%d", self._target)

    def reset(self) -> None:
        self._total = 0

    def settle(self, balls: Iterable[SettledBall]) -> ScoreCalculatedEvent | None:
        """Score one settled batch. An empty batch produces no event at all."""
        balls = tuple(balls)
        if not balls:
            logger.debug("No balls to calculate")
            return None
        breakdown = compute_score_delta(balls)
        logger.debug(
            "Formula: %s x %s = %d (score balls %d, multiplier balls %d)",
            breakdown.base, breakdown.multiplier, breakdown.delta,
            breakdown.score_count, breakdown.multiplier_count,
        )
        return self._apply(breakdown.delta)

    def add_bonus(self, amount: int) -> ScoreCalculatedEvent | None:
        """Reward path: add points outside a settlement."""
        if amount <= 0:
            return None
        return self._apply(int(amount))

    def _apply(self, delta: int) -> ScoreCalculatedEvent:
        previous = self._total
        self._total = previous + delta
        logger.info("Score: +%d (total %d -> %d / %d)", delta, previous, self._total, self._target)
        event = ScoreCalculatedEvent(t=self._clock.time, delta=delta, total=self._total)
        self._bus.emit(event)
        return event
