# src/claw_round/core/orchestrator.py

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, List

from claw_round.utils.random import DeterministicRandomRegistry

from .arena import BallArena
from .balls import expand_spawn_entries
from .bus import EventBus
from .claw import ClawStateMachine
from .claw_range import ClawRangeTracker
from .clock import SimClock
from .config import PlayerInventory, RoundConfiguration, RoundTimings, merge_spawn_requests
from .events import (
    BallDroppedEvent,
    BallGrabbedEvent,
    BallsSpawnCompletedEvent,
    ClawStateChangedEvent,
    GrabCountChangedEvent,
    GrabReleasedEvent,
    RoundResultEvent,
    RoundStateChangedEvent,
    ScoreCalculatedEvent,
    SettlementBatchEvent,
)
from .grab_budget import GrabBudget
from .placement import Placement, PlacementEngine, PlacementResult
from .round_decisions import (
    RoundAction,
    RoundDecision,
    decide_after_empty_drop,
    decide_after_score,
    decide_at_start,
)
from .scoring import ScoreAggregator
from .settlement import SettlementDetector
from .states import ClawState, RoundState

logger = logging.getLogger(__name__)

SPAWN_STREAM = "BallSpawner"
_EPS = 1e-9


class RoundOrchestrator:
    """
    Top-level round state machine: Idle -> Starting -> Playing -> Ending -> Idle.

    Every wait is explicit timed state advanced by update(dt):
      - Starting: balls are spawned one per `spawn_interval`, held kinematic
        until the whole layout is in, then released and the claw enabled.
      - Playing: each settled batch schedules a delayed destructive clear of
        the settlement zone; a release that delivers nothing is resolved
        after `empty_release_timeout`.
      - Ending: the result is published by the update after the one the
        round ended in. An end_round() outside update() counts toward the
        next update, so the round always spends one full update in Ending.

    The settlement detector and claw range tracker are optional; without them
    scoring (or grab bookkeeping) is simply disabled.
    """

    def __init__(
        self,
        *,
        bus: EventBus,
        registry: DeterministicRandomRegistry,
        arena: BallArena,
        placement: PlacementEngine,
        claw: ClawStateMachine,
        grab_budget: GrabBudget,
        aggregator: ScoreAggregator,
        timings: RoundTimings | None = None,
        detector: SettlementDetector | None = None,
        claw_range: ClawRangeTracker | None = None,
        clock: SimClock | None = None,
    ) -> None:
        self._bus = bus
        self._registry = registry
        self._arena = arena
        self._placement = placement
        self._claw = claw
        self._grab_budget = grab_budget
        self._aggregator = aggregator
        self._detector = detector
        self._claw_range = claw_range
        self.timings = timings if timings is not None else RoundTimings()
        self._clock = clock if clock is not None else SimClock()

        self._state = RoundState.IDLE
        self._config: RoundConfiguration | None = None
        self._inventory: PlayerInventory | None = None
        self._awaiting_final_settlement = False
        self._last_placement: PlacementResult | None = None

        # Starting
        self._spawn_queue: Deque[Placement] = deque()
        self._spawn_timer: float | None = None
        # Playing
        self._clear_timers: List[float] = []
        self._watching_release = False
        self._release_wait = 0.0
        # Ending
        self._pending_success: bool | None = None
        self._updates = 0
        self._updating = False
        self._ending_update = 0

        bus.subscribe(ScoreCalculatedEvent, self._on_score_calculated)
        bus.subscribe(GrabCountChangedEvent, self._on_grab_count_changed)
        bus.subscribe(SettlementBatchEvent, self._on_settlement_batch)
        bus.subscribe(ClawStateChangedEvent, self._on_claw_state_changed)
        bus.subscribe(GrabReleasedEvent, self._on_grab_released)

    # --------- queries ---------

    @property
    def state(self) -> RoundState:
        return self._state

    @property
    def is_playing(self) -> bool:
        return self._state is RoundState.PLAYING

    @property
    def awaiting_final_settlement(self) -> bool:
        return self._awaiting_final_settlement

    @property
    def current_config(self) -> RoundConfiguration | None:
        return self._config

    @property
    def current_inventory(self) -> PlayerInventory | None:
        return self._inventory

    @property
    def last_placement(self) -> PlacementResult | None:
        return self._last_placement

    @property
    def pending_clear_count(self) -> int:
        return len(self._clear_timers)

    def close(self) -> None:
        self._bus.unsubscribe(ScoreCalculatedEvent, self._on_score_calculated)
        self._bus.unsubscribe(GrabCountChangedEvent, self._on_grab_count_changed)
        self._bus.unsubscribe(SettlementBatchEvent, self._on_settlement_batch)
        self._bus.unsubscribe(ClawStateChangedEvent, self._on_claw_state_changed)
        self._bus.unsubscribe(GrabReleasedEvent, self._on_grab_released)

    # --------- round control ---------

    def start_round(self, config: RoundConfiguration, inventory: PlayerInventory | None = None) -> bool:
        if self._state is not RoundState.IDLE:
            logger.error("Cannot start round: current state is %s", self._state.value)
            return False

        # Fails fast without a seed, before any state changes.
        rng = self._registry.stream(SPAWN_STREAM)

        self._config = config
        self._inventory = inventory
        self._awaiting_final_settlement = False
        logger.info("Starting round: target=%d grabs=%d", config.target_score, config.grab_count)
        self._set_state(RoundState.STARTING)

        self._aggregator.initialize_round(config.target_score)
        self._grab_budget.initialize(config.grab_count)

        archetypes = expand_spawn_entries(merge_spawn_requests(config, inventory))
        result = self._placement.place(archetypes, rng)
        self._last_placement = result
        self._spawn_queue = deque(result.placements)
        self._spawn_timer = None
        return True

    def end_round(self, success: bool) -> bool:
        if self._state is not RoundState.PLAYING:
            logger.error("Cannot end round: current state is %s", self._state.value)
            return False

        logger.info("Ending round: %s", "success" if success else "failed")
        self._set_state(RoundState.ENDING)

        self._clear_timers.clear()
        self._watching_release = False
        self._release_wait = 0.0

        self._claw.disable()
        self._arena.destroy_all()
        if self._detector is not None:
            self._detector.clear()
        if self._claw_range is not None:
            self._claw_range.clear()

        self._pending_success = success
        self._ending_update = self._updates if self._updating else self._updates + 1
        return True

    # --------- per tick ---------

    def update(self, dt: float) -> None:
        self._updates += 1
        self._updating = True
        try:
            if self._state is RoundState.STARTING:
                self._update_spawning(dt)
            elif self._state is RoundState.PLAYING:
                self._update_clear_timers(dt)
                if self._state is RoundState.PLAYING:
                    self._update_release_watch(dt)
            elif self._state is RoundState.ENDING:
                self._update_ending()
        finally:
            self._updating = False

    def _update_spawning(self, dt: float) -> None:
        interval = self.timings.spawn_interval
        if interval <= 0:
            while self._spawn_queue:
                self._spawn_next()
        else:
            if self._spawn_timer is None:
                # the first ball goes in immediately
                self._spawn_timer = 0.0
                if self._spawn_queue:
                    self._spawn_next()
            else:
                self._spawn_timer += dt
            while self._spawn_queue and self._spawn_timer >= interval - _EPS:
                self._spawn_timer -= interval
                self._spawn_next()
        if not self._spawn_queue:
            self._finish_spawning()

    def _spawn_next(self) -> None:
        placement = self._spawn_queue.popleft()
        self._arena.spawn(placement.archetype, placement.position, kinematic=True)

    def _finish_spawning(self) -> None:
        result = self._last_placement
        count = result.placed_count if result is not None else 0
        skipped = result.skipped if result is not None else 0
        self._arena.set_kinematic_all(False)
        logger.info("Spawn completed: %d balls (%d skipped)", count, skipped)
        self._bus.emit(BallsSpawnCompletedEvent(t=self._clock.time, count=count, skipped=skipped))

        self._set_state(RoundState.PLAYING)
        if self._apply_decision(decide_at_start(self._grab_budget.remaining)):
            return
        self._claw.enable()
        logger.info("Round started")

    def _update_clear_timers(self, dt: float) -> None:
        if not self._clear_timers:
            return
        remaining = [t - dt for t in self._clear_timers]
        due = sum(1 for t in remaining if t <= _EPS)
        self._clear_timers = [t for t in remaining if t > _EPS]
        if due and self._detector is not None:
            destroyed = self._detector.clear_and_destroy()
            logger.debug("Settlement zone cleared (%d balls)", destroyed)

    def _update_release_watch(self, dt: float) -> None:
        if not self._watching_release:
            return
        if self._claw.state is not ClawState.RELEASING:
            self._watching_release = False
            return
        if self._detector is not None and self._detector.pending_count > 0:
            self._release_wait = 0.0
            return
        self._release_wait += dt
        if self._release_wait < self.timings.empty_release_timeout - _EPS:
            return

        self._watching_release = False
        logger.info("Release delivered nothing to settle")
        decision = decide_after_empty_drop(self._awaiting_final_settlement)
        if not self._apply_decision(decision):
            self._claw.settlement_complete()

    def _update_ending(self) -> None:
        if self._updates <= self._ending_update:
            return
        success = bool(self._pending_success)
        total = self._aggregator.total

        self._config = None
        self._inventory = None
        self._awaiting_final_settlement = False
        self._pending_success = None
        self._spawn_queue.clear()
        self._aggregator.reset()
        self._grab_budget.reset()
        self._set_state(RoundState.IDLE)

        logger.info("Round ended and cleaned up")
        self._bus.emit(RoundResultEvent(t=self._clock.time, success=success, total=total))

    # --------- state ---------

    def _set_state(self, new_state: RoundState) -> None:
        if self._state is new_state:
            return
        previous = self._state
        logger.debug("State: %s -> %s", previous.value, new_state.value)
        self._state = new_state
        self._bus.emit(RoundStateChangedEvent(t=self._clock.time, previous=previous, current=new_state))

    def _apply_decision(self, decision: RoundDecision) -> bool:
        """End the round if the decision says so. Returns True when it did."""
        if decision.action is RoundAction.SUCCEED:
            logger.info("Round success: %s", decision.reason)
            return self.end_round(True)
        if decision.action is RoundAction.FAIL:
            logger.info("Round failed: %s", decision.reason)
            return self.end_round(False)
        return False

    # --------- event handlers ---------

    def _on_score_calculated(self, event: ScoreCalculatedEvent) -> None:
        if self._state is not RoundState.PLAYING or self._config is None:
            return
        logger.debug("Score: +%d (total %d/%d)", event.delta, event.total, self._config.target_score)
        self._apply_decision(
            decide_after_score(event.total, self._config.target_score, self._awaiting_final_settlement)
        )

    def _on_grab_count_changed(self, event: GrabCountChangedEvent) -> None:
        if self._state is not RoundState.PLAYING:
            return
        awaiting = event.remaining == 0
        if awaiting and not self._awaiting_final_settlement:
            logger.info("Grabs exhausted, waiting for final settlement")
        elif self._awaiting_final_settlement and not awaiting:
            logger.info("Grabs granted (%d), play continues", event.remaining)
        self._awaiting_final_settlement = awaiting

    def _on_settlement_batch(self, event: SettlementBatchEvent) -> None:
        if self._state is not RoundState.PLAYING:
            return
        logger.debug("Balls entered settlement: %d", len(event.balls))
        self._watching_release = False
        self._aggregator.settle(event.balls)
        # scoring may have ended the round
        if self._state is not RoundState.PLAYING:
            return
        self._claw.settlement_complete()
        self._clear_timers.append(self.timings.settlement_clear_delay)

    def _on_claw_state_changed(self, event: ClawStateChangedEvent) -> None:
        if self._state is not RoundState.PLAYING or self._claw_range is None:
            return
        if event.previous is ClawState.GRABBING and event.current is ClawState.ASCENDING:
            for ball_id in sorted(self._claw_range.ids()):
                ball = self._arena.get(ball_id)
                if ball is None or ball.grabbed:
                    continue
                ball.grabbed = True
                self._bus.emit(BallGrabbedEvent(t=self._clock.time, ball_id=ball_id))

    def _on_grab_released(self, event: GrabReleasedEvent) -> None:
        if self._state is not RoundState.PLAYING:
            return
        for ball in self._arena:
            if ball.grabbed:
                ball.grabbed = False
                self._bus.emit(BallDroppedEvent(t=self._clock.time, ball_id=ball.id))
        self._watching_release = True
        self._release_wait = 0.0
