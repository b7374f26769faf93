# src/claw_round/core/events.py

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass

from .balls import SettledBall
from .states import ClawState, RoundState

SETTLEMENT_ZONE = "settlement"
CLAW_ZONE = "claw"


@dataclass(kw_only=True)
class BaseEvent(ABC):
    """Marker base class so you can type on 'list[BaseEvent]'."""
    t: float = 0.0  # simulation time when this event occurred

    def to_payload_dict(self) -> dict:
        """Convert event-specific data to a serializable dict."""
        return {}


# --------- Claw ---------

@dataclass(kw_only=True)
class GrabStartedEvent(BaseEvent):
    pass


@dataclass(kw_only=True)
class GrabReleasedEvent(BaseEvent):
    pass


@dataclass(kw_only=True)
class ClawStateChangedEvent(BaseEvent):
    previous: ClawState
    current: ClawState

    def to_payload_dict(self) -> dict:
        return {"previous": self.previous.value, "current": self.current.value}


@dataclass(kw_only=True)
class GrabCountChangedEvent(BaseEvent):
    remaining: int

    def to_payload_dict(self) -> dict:
        return {"remaining": self.remaining}


# --------- Balls ---------

@dataclass(kw_only=True)
class BallsSpawnCompletedEvent(BaseEvent):
    count: int
    skipped: int = 0

    def to_payload_dict(self) -> dict:
        return {"count": self.count, "skipped": self.skipped}


@dataclass(kw_only=True)
class BallEvent(BaseEvent):
    ball_id: int

    def to_payload_dict(self) -> dict:
        return {"ball_id": self.ball_id}


@dataclass(kw_only=True)
class BallGrabbedEvent(BallEvent):
    pass


@dataclass(kw_only=True)
class BallDroppedEvent(BallEvent):
    pass


@dataclass(kw_only=True)
class BallSettledEvent(BallEvent):
    pass


# --------- Trigger zones (reported by the physics collaborator) ---------

@dataclass(kw_only=True)
class ZoneEvent(BaseEvent):
    zone: str
    body_id: int

    def to_payload_dict(self) -> dict:
        return {"zone": self.zone, "body_id": self.body_id}


@dataclass(kw_only=True)
class BodyEnteredZoneEvent(ZoneEvent):
    pass


@dataclass(kw_only=True)
class BodyExitedZoneEvent(ZoneEvent):
    pass


# --------- Scoring ---------

@dataclass(kw_only=True)
class SettlementBatchEvent(BaseEvent):
    balls: tuple[SettledBall, ...]

    def to_payload_dict(self) -> dict:
        return {"balls": [b.to_dict() for b in self.balls]}


@dataclass(kw_only=True)
class ScoreCalculatedEvent(BaseEvent):
    delta: int
    total: int

    def to_payload_dict(self) -> dict:
        return {"delta": self.delta, "total": self.total}


# --------- Round ---------

@dataclass(kw_only=True)
class RoundStateChangedEvent(BaseEvent):
    previous: RoundState
    current: RoundState

    def to_payload_dict(self) -> dict:
        return {"previous": self.previous.value, "current": self.current.value}


@dataclass(kw_only=True)
class RoundResultEvent(BaseEvent):
    success: bool
    total: int = 0

    def to_payload_dict(self) -> dict:
        return {"success": self.success, "total": self.total}
