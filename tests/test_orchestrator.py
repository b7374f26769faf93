"""Tests for the round lifecycle and the full grab-to-score loop."""

import numpy as np
import pytest

from claw_round.core import (
    CLAW_ZONE,
    SETTLEMENT_ZONE,
    BallArena,
    BallDroppedEvent,
    BallGrabbedEvent,
    BallsSpawnCompletedEvent,
    ClawState,
    ClawStateMachine,
    GrabBudget,
    MachineConfig,
    PlacementEngine,
    PlayerInventory,
    RoundConfiguration,
    RoundOrchestrator,
    RoundRecorder,
    RoundResultEvent,
    RoundSession,
    RoundState,
    RoundTimings,
    ScoreAggregator,
    SpawnEntry,
)
from claw_round.core.config import ArenaRect
from claw_round.errors import SeedNotInitializedError
from claw_round.utils.random import DeterministicRandomRegistry
from fakes.driving import DT, play_grab, tick_until
from fakes.physics import FakePhysics, enter_zone


@pytest.fixture
def results(session):
    seen: list[RoundResultEvent] = []
    session.bus.subscribe(RoundResultEvent, seen.append)
    return seen


def _config(*entries, target: int = 50, grabs: int = 1) -> RoundConfiguration:
    return RoundConfiguration(target_score=target, grab_count=grabs, default_pool=tuple(entries))


def _start_playing(session: RoundSession, config: RoundConfiguration, inventory=None) -> None:
    assert session.start_round(config, inventory)
    tick_until(session, lambda: session.orchestrator.state is RoundState.PLAYING)


def _settle(session: RoundSession, ids) -> None:
    """Drop `ids` into the settlement zone and let the detector flush them."""
    enter_zone(session.bus, SETTLEMENT_ZONE, ids)
    for _ in range(3):
        session.tick(DT)


class TestRoundStart:
    def test_start_requires_a_seed(self, machine, physics) -> None:
        session = RoundSession.create(machine, physics=physics)
        with pytest.raises(SeedNotInitializedError):
            session.start_round(RoundConfiguration())
        assert session.orchestrator.state is RoundState.IDLE
        assert session.orchestrator.current_config is None

    def test_start_enters_starting(self, session, score_10) -> None:
        assert session.start_round(_config(SpawnEntry(score_10, 3)))
        assert session.orchestrator.state is RoundState.STARTING
        assert session.grab_budget.remaining == 1
        assert session.aggregator.target == 50

    def test_second_start_is_rejected(self, session, score_10) -> None:
        config = _config(SpawnEntry(score_10, 3))
        assert session.start_round(config)
        assert session.start_round(config) is False
        assert session.orchestrator.state is RoundState.STARTING

        session.tick(DT)
        assert session.orchestrator.state is RoundState.PLAYING
        assert session.start_round(config) is False
        assert session.orchestrator.state is RoundState.PLAYING
        assert len(session.arena) == 3

    def test_spawn_all_at_once(self, session, physics, score_10, mult_3) -> None:
        completed: list[BallsSpawnCompletedEvent] = []
        session.bus.subscribe(BallsSpawnCompletedEvent, completed.append)
        session.start_round(_config(SpawnEntry(score_10, 2)), PlayerInventory([SpawnEntry(mult_3, 1)]))
        session.tick(DT)

        assert session.orchestrator.state is RoundState.PLAYING
        assert session.claw.state is ClawState.IDLE
        assert len(session.arena) == 3
        assert [(e.count, e.skipped) for e in completed] == [(3, 0)]
        assert not any(physics.kinematic.values())

    def test_spawn_one_per_interval(self, machine, physics, score_10) -> None:
        machine = MachineConfig(
            arena=machine.arena,
            claw=machine.claw,
            settlement=machine.settlement,
            timings=RoundTimings(spawn_interval=0.1),
        )
        session = RoundSession.create(machine, physics=physics)
        session.registry.initialize("ABC123")
        session.start_round(_config(SpawnEntry(score_10, 3)))

        session.tick(DT)
        assert len(session.arena) == 1
        assert all(physics.kinematic.values())
        assert session.orchestrator.state is RoundState.STARTING
        assert session.claw.state is ClawState.DISABLED

        session.tick(DT)
        assert len(session.arena) == 2

        session.tick(DT)
        assert len(session.arena) == 3
        assert session.orchestrator.state is RoundState.PLAYING
        assert not any(physics.kinematic.values())

    def test_empty_pool_still_starts(self, session) -> None:
        completed: list[BallsSpawnCompletedEvent] = []
        session.bus.subscribe(BallsSpawnCompletedEvent, completed.append)
        _start_playing(session, _config())
        assert completed[0].count == 0
        assert session.claw.state is ClawState.IDLE

    def test_skipped_balls_are_reported(self, claw_settings, physics, score_10) -> None:
        machine = MachineConfig(
            arena=ArenaRect(min_x=0.0, min_y=0.0, max_x=2.0, max_y=2.0),
            claw=claw_settings,
            timings=RoundTimings(spawn_interval=0.0, max_spawn_retries=10),
        )
        session = RoundSession.create(machine, physics=physics)
        session.registry.initialize("ABC123")
        completed: list[BallsSpawnCompletedEvent] = []
        session.bus.subscribe(BallsSpawnCompletedEvent, completed.append)

        _start_playing(session, _config(SpawnEntry(score_10, 20)))
        event = completed[0]
        assert event.skipped > 0
        assert event.count + event.skipped == 20
        assert len(session.arena) == event.count

    def test_zero_grabs_fails_without_enabling_the_claw(self, session, results, score_10) -> None:
        """A round that opens with no grabs cannot score, so it ends as a failure."""
        assert session.start_round(_config(SpawnEntry(score_10, 2), grabs=0))
        session.tick(DT)
        assert session.orchestrator.state is RoundState.ENDING
        assert session.claw.state is ClawState.DISABLED
        assert len(session.arena) == 0

        session.tick(DT)
        assert [(r.success, r.total) for r in results] == [(False, 0)]
        assert session.orchestrator.state is RoundState.IDLE

    def test_same_seed_same_layout(self, machine, score_10, mult_3) -> None:
        layouts = []
        for _ in range(2):
            session = RoundSession.create(machine, physics=FakePhysics())
            session.registry.initialize("ABC123")
            session.start_round(_config(SpawnEntry(score_10, 6), SpawnEntry(mult_3, 2)))
            layouts.append(session.orchestrator.last_placement)
        a, b = layouts
        assert [p.archetype.name for p in a.placements] == [p.archetype.name for p in b.placements]
        assert all(np.array_equal(p.position, q.position) for p, q in zip(a.placements, b.placements))


class TestRoundEnd:
    def test_end_round_tears_down(self, session, physics, results, score_10) -> None:
        _start_playing(session, _config(SpawnEntry(score_10, 4)))
        ids = physics.body_ids()

        assert session.orchestrator.end_round(True)
        assert session.orchestrator.state is RoundState.ENDING
        assert session.claw.state is ClawState.DISABLED
        assert len(session.arena) == 0
        assert physics.removed == set(ids)
        assert results == []
        assert session.orchestrator.end_round(False) is False

        # the round spends one full update in Ending before publishing
        session.tick(DT)
        assert session.orchestrator.state is RoundState.ENDING
        assert results == []

        session.tick(DT)
        assert session.orchestrator.state is RoundState.IDLE
        assert [(r.success, r.total) for r in results] == [(True, 0)]
        assert session.orchestrator.current_config is None
        assert session.grab_budget.remaining == 0
        assert session.aggregator.total == 0

    def test_end_round_outside_playing_is_rejected(self, session) -> None:
        assert session.orchestrator.end_round(True) is False
        assert session.orchestrator.state is RoundState.IDLE

    def test_next_round_can_start_from_result_handler(self, session, score_10) -> None:
        config = _config(SpawnEntry(score_10, 2))
        started: list[bool] = []
        session.bus.subscribe(RoundResultEvent, lambda e: started.append(session.start_round(config)))

        _start_playing(session, config)
        session.orchestrator.end_round(False)
        session.run(2, DT)

        assert started == [True]
        assert session.orchestrator.state is RoundState.STARTING


class TestGrabLoop:
    def test_winning_round(self, session, physics, results, score_10, mult_3) -> None:
        """Two +10 balls and one x3 ball in a single grab score 60 against a target of 50."""
        recorder = RoundRecorder(session.bus)
        _start_playing(session, _config(SpawnEntry(score_10, 2), SpawnEntry(mult_3, 1), target=50, grabs=1))
        ids = physics.body_ids()
        assert len(ids) == 3

        play_grab(session, ids)
        assert session.grab_budget.remaining == 0
        assert session.orchestrator.awaiting_final_settlement

        _settle(session, ids)
        assert session.orchestrator.state is RoundState.ENDING
        session.tick(DT)

        assert [(r.success, r.total) for r in results] == [(True, 60)]
        assert session.orchestrator.state is RoundState.IDLE

        rec = recorder.recording
        assert [e.payload["ball_id"] for e in rec.iter_events("BallGrabbedEvent")] == ids
        assert [e.payload["ball_id"] for e in rec.iter_events("BallDroppedEvent")] == ids
        scores = [(e.payload["delta"], e.payload["total"]) for e in rec.iter_events("ScoreCalculatedEvent")]
        assert scores == [(60, 60)]

    def test_last_grab_below_target_fails(self, session, physics, results, score_10) -> None:
        _start_playing(session, _config(SpawnEntry(score_10, 3), target=1000, grabs=1))
        ids = physics.body_ids()
        play_grab(session, ids[:1])
        _settle(session, ids[:1])
        session.tick(DT)
        assert [(r.success, r.total) for r in results] == [(False, 10)]

    def test_grabbed_flags_follow_the_claw(self, session, physics, score_10) -> None:
        grabbed: list[int] = []
        dropped: list[int] = []
        session.bus.subscribe(BallGrabbedEvent, lambda e: grabbed.append(e.ball_id))
        session.bus.subscribe(BallDroppedEvent, lambda e: dropped.append(e.ball_id))
        _start_playing(session, _config(SpawnEntry(score_10, 3), target=1000, grabs=2))
        ids = physics.body_ids()

        enter_zone(session.bus, CLAW_ZONE, ids[:2])
        play_grab(session)
        assert grabbed == ids[:2]
        assert dropped == ids[:2]
        assert not any(ball.grabbed for ball in session.arena)

    def test_round_continues_between_grabs(self, session, physics, results, score_10, score_20) -> None:
        _start_playing(session, _config(SpawnEntry(score_10, 2), SpawnEntry(score_20, 1), target=1000, grabs=2))
        first = physics.body_ids()[:1]

        play_grab(session, first)
        _settle(session, first)
        assert session.orchestrator.state is RoundState.PLAYING
        assert session.aggregator.total > 0
        assert session.claw.state in (ClawState.RETURNING, ClawState.IDLE)
        assert session.orchestrator.pending_clear_count == 1

        # settled balls linger until the delayed clear
        assert first[0] in session.arena
        session.run(6, DT)
        assert first[0] not in session.arena
        assert first[0] in physics.removed
        assert session.orchestrator.pending_clear_count == 0

        tick_until(session, lambda: session.claw.state is ClawState.IDLE)
        second = physics.body_ids()[:1]
        play_grab(session, second)
        _settle(session, second)
        session.tick(DT)
        assert len(results) == 1
        assert results[0].success is False

    def test_reaching_target_early_wins(self, session, physics, results, score_20) -> None:
        _start_playing(session, _config(SpawnEntry(score_20, 3), target=40, grabs=3))
        ids = physics.body_ids()
        play_grab(session, ids[:2])
        _settle(session, ids[:2])
        session.tick(DT)
        assert [(r.success, r.total) for r in results] == [(True, 40)]

    def test_end_cancels_pending_clears(self, session, physics, score_10) -> None:
        _start_playing(session, _config(SpawnEntry(score_10, 3), target=1000, grabs=3))
        ids = physics.body_ids()
        play_grab(session, ids[:1])
        _settle(session, ids[:1])
        assert session.orchestrator.pending_clear_count == 1
        session.orchestrator.end_round(False)
        assert session.orchestrator.pending_clear_count == 0


class TestEmptyRelease:
    def test_empty_last_grab_fails_after_timeout(self, session, results, score_10) -> None:
        _start_playing(session, _config(SpawnEntry(score_10, 2), target=50, grabs=1))
        play_grab(session)

        session.run(5, DT)
        assert session.orchestrator.state is RoundState.PLAYING
        tick_until(session, lambda: bool(results), max_ticks=20)
        assert [(r.success, r.total) for r in results] == [(False, 0)]

    def test_empty_grab_with_grabs_left_returns_claw(self, session, results, score_10) -> None:
        _start_playing(session, _config(SpawnEntry(score_10, 2), target=50, grabs=2))
        play_grab(session)
        tick_until(session, lambda: session.claw.state is ClawState.IDLE, max_ticks=30)

        assert session.orchestrator.state is RoundState.PLAYING
        assert session.grab_budget.remaining == 1
        assert results == []

    def test_without_detector_the_claw_still_returns(self, machine, physics, score_10) -> None:
        session = RoundSession.create(machine, physics=physics, with_detector=False)
        session.registry.initialize("ABC123")
        _start_playing(session, _config(SpawnEntry(score_10, 2), target=50, grabs=2))
        play_grab(session, physics.body_ids())
        tick_until(session, lambda: session.claw.state is ClawState.IDLE, max_ticks=30)
        assert session.orchestrator.state is RoundState.PLAYING


class TestGrabRewards:
    def test_granted_grabs_lift_final_settlement(self, session, physics, results, score_10) -> None:
        """Grabs added after exhaustion keep a below-target batch from ending the round."""
        _start_playing(session, _config(SpawnEntry(score_10, 3), target=1000, grabs=1))
        ids = physics.body_ids()
        play_grab(session, ids[:1])
        assert session.orchestrator.awaiting_final_settlement

        session.grab_budget.add(2)
        assert not session.orchestrator.awaiting_final_settlement

        _settle(session, ids[:1])
        session.tick(DT)
        assert session.orchestrator.state is RoundState.PLAYING
        assert session.aggregator.total == 10
        assert session.grab_budget.remaining == 2
        assert results == []


class TestStandaloneOrchestrator:
    """An orchestrator wired by hand, with no session and no shared clock."""

    @pytest.fixture
    def orchestrator(self, bus, arena_rect, physics, claw_settings):
        registry = DeterministicRandomRegistry()
        registry.initialize("ABC123")
        orch = RoundOrchestrator(
            bus=bus,
            registry=registry,
            arena=BallArena(arena_rect, physics=physics),
            placement=PlacementEngine(arena_rect),
            claw=ClawStateMachine(claw_settings, bus),
            grab_budget=GrabBudget(bus),
            aggregator=ScoreAggregator(bus),
            timings=RoundTimings(spawn_interval=0.0),
        )
        yield orch
        orch.close()

    def test_round_result_without_a_clock(self, orchestrator, bus, score_10) -> None:
        results: list[RoundResultEvent] = []
        bus.subscribe(RoundResultEvent, results.append)
        config = _config(SpawnEntry(score_10, 2), grabs=2)

        assert orchestrator.start_round(config)
        orchestrator.update(DT)
        assert orchestrator.state is RoundState.PLAYING

        assert orchestrator.end_round(True)
        orchestrator.update(DT)
        assert orchestrator.state is RoundState.ENDING
        orchestrator.update(DT)
        assert orchestrator.state is RoundState.IDLE
        assert [r.success for r in results] == [True]
        assert orchestrator.start_round(config)

    def test_end_inside_update_publishes_on_the_next(self, orchestrator, bus, score_10) -> None:
        results: list[RoundResultEvent] = []
        bus.subscribe(RoundResultEvent, results.append)

        assert orchestrator.start_round(_config(SpawnEntry(score_10, 1), grabs=0))
        orchestrator.update(DT)
        assert orchestrator.state is RoundState.ENDING
        orchestrator.update(DT)
        assert orchestrator.state is RoundState.IDLE
        assert [r.success for r in results] == [False]
