"""Pytest configuration and fixtures for claw round tests."""

import pytest

from claw_round.core import (
    ArenaRect,
    BallArchetype,
    BallCategory,
    ClawSettings,
    EventBus,
    MachineConfig,
    RoundSession,
    RoundTimings,
    SettlementSettings,
    SimClock,
)
from fakes.physics import FakePhysics

TEST_SEED = "ABC123"


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def clock():
    return SimClock()


@pytest.fixture
def physics():
    return FakePhysics()


@pytest.fixture
def arena_rect():
    return ArenaRect(min_x=0.0, min_y=0.0, max_x=20.0, max_y=10.0)


@pytest.fixture
def claw_settings():
    """A claw fast enough that a full grab cycle takes a handful of 0.1s ticks."""
    return ClawSettings(
        move_speed=5.0,
        left_bound=-5.0,
        right_bound=5.0,
        start_x=0.0,
        descend_speed=10.0,
        ascend_speed=10.0,
        top_y=1.0,
        bottom_y=0.0,
        drop_x=-1.0,
        move_to_drop_speed=10.0,
        grab_duration=0.2,
    )


@pytest.fixture
def settlement_settings():
    return SettlementSettings(check_interval=0.1, velocity_threshold=0.1, wait_time=0.3)


@pytest.fixture
def machine(arena_rect, claw_settings, settlement_settings):
    return MachineConfig(
        arena=arena_rect,
        claw=claw_settings,
        settlement=settlement_settings,
        timings=RoundTimings(
            settlement_clear_delay=0.5,
            spawn_interval=0.0,
            max_spawn_retries=100,
            empty_release_timeout=1.0,
        ),
    )


@pytest.fixture
def score_10():
    return BallArchetype(name="score_10", category=BallCategory.SCORE, value=10, radius=0.5)


@pytest.fixture
def score_20():
    return BallArchetype(name="score_20", category=BallCategory.SCORE, value=20, radius=0.5)


@pytest.fixture
def mult_2():
    return BallArchetype(name="mult_2", category=BallCategory.MULTIPLIER, value=2, radius=0.5)


@pytest.fixture
def mult_3():
    return BallArchetype(name="mult_3", category=BallCategory.MULTIPLIER, value=3, radius=0.5)


@pytest.fixture
def session(machine, physics):
    """A wired round session with the shared test seed and a fake physics backend."""
    s = RoundSession.create(machine, physics=physics)
    s.registry.initialize(TEST_SEED)
    yield s
    s.close()
