# src/claw_round/core/__init__.py

from .arena import BallArena
from .balls import (
    BallArchetype,
    BallCatalog,
    BallCategory,
    PlacedBall,
    SettledBall,
    SpawnEntry,
    expand_spawn_entries,
)
from .bus import EventBus
from .claw import NO_INPUT, ClawInput, ClawSnapshot, ClawStateMachine
from .claw_range import ClawRangeTracker
from .clock import SimClock
from .config import (
    ArenaRect,
    ClawSettings,
    MachineConfig,
    PlayerInventory,
    RoundConfiguration,
    RoundTimings,
    SettlementSettings,
    merge_spawn_requests,
)
from .events import (
    CLAW_ZONE,
    SETTLEMENT_ZONE,
    BallDroppedEvent,
    BallGrabbedEvent,
    BallSettledEvent,
    BallsSpawnCompletedEvent,
    BaseEvent,
    BodyEnteredZoneEvent,
    BodyExitedZoneEvent,
    ClawStateChangedEvent,
    GrabCountChangedEvent,
    GrabReleasedEvent,
    GrabStartedEvent,
    RoundResultEvent,
    RoundStateChangedEvent,
    ScoreCalculatedEvent,
    SettlementBatchEvent,
)
from .grab_budget import GrabBudget
from .orchestrator import SPAWN_STREAM, RoundOrchestrator
from .physics import PhysicsBackend
from .placement import Placement, PlacementEngine, PlacementResult, fisher_yates_shuffle
from .recording import EventSnapshot, RoundRecorder, RoundRecording
from .scoring import ScoreAggregator, ScoreBreakdown, compute_score_delta, round_half_away_from_zero
from .session import RoundSession
from .settlement import SettlementDetector
from .states import ClawState, RoundState

__all__ = [
    "ArenaRect",
    "BallArchetype",
    "BallArena",
    "BallCatalog",
    "BallCategory",
    "BallDroppedEvent",
    "BallGrabbedEvent",
    "BallSettledEvent",
    "BallsSpawnCompletedEvent",
    "BaseEvent",
    "BodyEnteredZoneEvent",
    "BodyExitedZoneEvent",
    "CLAW_ZONE",
    "ClawInput",
    "ClawRangeTracker",
    "ClawSettings",
    "ClawSnapshot",
    "ClawState",
    "ClawStateChangedEvent",
    "ClawStateMachine",
    "EventBus",
    "EventSnapshot",
    "GrabBudget",
    "GrabCountChangedEvent",
    "GrabReleasedEvent",
    "GrabStartedEvent",
    "MachineConfig",
    "NO_INPUT",
    "PhysicsBackend",
    "PlacedBall",
    "Placement",
    "PlacementEngine",
    "PlacementResult",
    "PlayerInventory",
    "RoundConfiguration",
    "RoundOrchestrator",
    "RoundRecorder",
    "RoundRecording",
    "RoundResultEvent",
    "RoundSession",
    "RoundState",
    "RoundStateChangedEvent",
    "RoundTimings",
    "SETTLEMENT_ZONE",
    "SPAWN_STREAM",
    "ScoreAggregator",
    "ScoreBreakdown",
    "ScoreCalculatedEvent",
    "SettledBall",
    "SettlementBatchEvent",
    "SettlementDetector",
    "SettlementSettings",
    "SimClock",
    "SpawnEntry",
    "compute_score_delta",
    "expand_spawn_entries",
    "fisher_yates_shuffle",
    "merge_spawn_requests",
    "round_half_away_from_zero",
]
