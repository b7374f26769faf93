# src/claw_round/core/settlement.py

from __future__ import annotations

import logging

from .arena import BallArena
from .balls import SettledBall
from .bus import EventBus
from .clock import SimClock
from .config import SettlementSettings
from .events import SETTLEMENT_ZONE, BallSettledEvent, BodyEnteredZoneEvent, SettlementBatchEvent

logger = logging.getLogger(__name__)

_EPS = 1e-9


class SettlementDetector:
    """
    Debounced quiescence detector for the settlement zone.

    Bodies that enter the zone join a pending batch. Every `check_interval`,
    and never more than once per update, the whole batch is polled: one body
    faster than `velocity_threshold` resets the quiet timer, otherwise the
    timer grows by one interval. When it reaches `wait_time` the batch is
    flushed once as a SettlementBatchEvent and polling stops until the next
    arrival.

    Flushed balls stay in the zone ("resting") until the orchestrator calls
    clear_and_destroy(); they are never batched twice.
    """

    def __init__(
        self,
        settings: SettlementSettings,
        arena: BallArena,
        bus: EventBus,
        clock: SimClock | None = None,
        zone: str = SETTLEMENT_ZONE,
    ) -> None:
        self.settings = settings
        self.zone = zone
        self._arena = arena
        self._bus = bus
        self._clock = clock if clock is not None else SimClock()

        self._pending: dict[int, None] = {}  # insertion-ordered set
        self._resting: set[int] = set()
        self._polling = False
        self._poll_timer = 0.0
        self._quiet_time = 0.0

        bus.subscribe(BodyEnteredZoneEvent, self._on_body_entered)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def pending_ids(self) -> tuple[int, ...]:
        return tuple(self._pending)

    @property
    def resting_ids(self) -> frozenset[int]:
        return frozenset(self._resting)

    @property
    def is_polling(self) -> bool:
        return self._polling

    @property
    def quiet_time(self) -> float:
        return self._quiet_time

    def close(self) -> None:
        self._bus.unsubscribe(BodyEnteredZoneEvent, self._on_body_entered)

    # --------- arrivals ---------

    def _on_body_entered(self, event: BodyEnteredZoneEvent) -> None:
        if event.zone != self.zone:
            return
        self.add_body(event.body_id)

    def add_body(self, body_id: int) -> bool:
        if body_id in self._pending or body_id in self._resting:
            return False
        ball = self._arena.get(body_id)
        if ball is None:
            logger.debug("Ignoring unknown body %d in settlement zone", body_id)
            return False
        ball.settling = True
        self._pending[body_id] = None
        logger.debug("Ball entered: %d (total %d)", body_id, len(self._pending))
        if not self._polling:
            self._polling = True
            self._poll_timer = 0.0
            self._quiet_time = 0.0
            logger.debug("Start checking settlement")
        return True

    # --------- polling ---------

    def update(self, dt: float) -> None:
        if not self._polling:
            return
        interval = self.settings.check_interval
        self._poll_timer += dt
        if self._poll_timer < interval - _EPS:
            return
        # at most one poll per update; a long frame drops the backlog
        self._poll_timer -= interval
        if self._poll_timer >= interval - _EPS:
            self._poll_timer = 0.0
        self._poll()

    def _poll(self) -> None:
        threshold = self.settings.velocity_threshold
        moving = False
        for body_id in self._pending:
            speed = self._arena.speed_of(body_id)
            if speed is not None and speed > threshold:
                moving = True
                break

        if moving:
            self._quiet_time = 0.0
            return

        self._quiet_time += self.settings.check_interval
        if self._quiet_time >= self.settings.wait_time - _EPS:
            self._flush()

    def _flush(self) -> None:
        ids = list(self._pending)
        self._pending.clear()
        self._polling = False
        self._poll_timer = 0.0
        self._quiet_time = 0.0

        balls = []
        for body_id in ids:
            ball = self._arena.get(body_id)
            if ball is None or self._arena.speed_of(body_id) is None:
                continue
            balls.append(ball)

        if not balls:
            logger.debug("No balls to settle")
            return

        self._resting.update(ball.id for ball in balls)
        logger.info("Settlement triggered: %d balls", len(balls))

        t = self._clock.time
        for ball in balls:
            self._bus.emit(BallSettledEvent(t=t, ball_id=ball.id))
        self._bus.emit(SettlementBatchEvent(t=t, balls=tuple(SettledBall.from_ball(b) for b in balls)))

    # --------- clearing ---------

    def _stop(self) -> None:
        self._polling = False
        self._poll_timer = 0.0
        self._quiet_time = 0.0

    def clear_and_destroy(self) -> int:
        """Destroy every pending and resting ball (after each grab cycle)."""
        self._stop()
        destroyed = 0
        for body_id in list(self._pending) + sorted(self._resting):
            if self._arena.destroy(body_id):
                destroyed += 1
        self._pending.clear()
        self._resting.clear()
        logger.debug("Pool cleared and %d balls destroyed", destroyed)
        return destroyed

    def clear(self) -> None:
        """Drop bookkeeping only (round reset or abort)."""
        self._stop()
        self._pending.clear()
        self._resting.clear()
        logger.debug("Pool cleared")
