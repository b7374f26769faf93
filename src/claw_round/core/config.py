# src/claw_round/core/config.py

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, List, Mapping

from claw_round.errors import ConfigurationError

from .balls import BallArchetype, BallCatalog, SpawnEntry


def _build(cls, data: Mapping[str, Any] | None):
    """Instantiate a settings dataclass from a mapping, rejecting unknown keys."""
    data = dict(data or {})
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(f"Unknown {cls.__name__} keys: {unknown}")
    return cls(**data)


# --------- Cabinet ---------

@dataclass(frozen=True)
class ArenaRect:
    """Axis-aligned spawn area. y grows upward; (min_x, max_y) is the top-left corner."""
    min_x: float = 0.0
    min_y: float = 0.0
    max_x: float = 100.0
    max_y: float = 60.0

    def __post_init__(self):
        if self.max_x <= self.min_x or self.max_y <= self.min_y:
            raise ConfigurationError(f"Degenerate arena rectangle: {self}")

    @classmethod
    def from_corners(cls, top_left: tuple[float, float], bottom_right: tuple[float, float]) -> "ArenaRect":
        return cls(min_x=top_left[0], min_y=bottom_right[1], max_x=bottom_right[0], max_y=top_left[1])

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    def bounds(self) -> tuple[float, float, float, float]:
        return self.min_x, self.max_x, self.min_y, self.max_y

    def contains(self, pos, radius: float = 0.0) -> bool:
        x, y = float(pos[0]), float(pos[1])
        return (
            x - radius >= self.min_x
            and x + radius <= self.max_x
            and y - radius >= self.min_y
            and y + radius <= self.max_y
        )

    def fits(self, radius: float) -> bool:
        """Whether a circle of this radius fits inside at all."""
        return 2 * radius <= self.width and 2 * radius <= self.height


@dataclass(frozen=True)
class ClawSettings:
    # horizontal
    move_speed: float = 5.0
    left_bound: float = -8.0
    right_bound: float = 8.0
    start_x: float = 0.0
    # vertical
    descend_speed: float = 3.0
    ascend_speed: float = 2.0
    top_y: float = 4.0
    bottom_y: float = -3.0
    # drop zone
    drop_x: float = -7.0
    move_to_drop_speed: float = 4.0
    arrive_tolerance: float = 0.01
    # grabbing
    grab_duration: float = 0.3
    # cosmetic
    swing_angle: float = 15.0
    swing_speed: float = 8.0
    idle_angle: float = 15.0
    open_angle: float = 45.0
    close_angle: float = 5.0
    jaw_speed: float = 5.0

    def __post_init__(self):
        if self.left_bound > self.right_bound:
            raise ConfigurationError("left_bound must not exceed right_bound")
        if self.bottom_y >= self.top_y:
            raise ConfigurationError("bottom_y must be below top_y")
        for name in ("move_speed", "descend_speed", "ascend_speed", "move_to_drop_speed"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive")


@dataclass(frozen=True)
class SettlementSettings:
    check_interval: float = 0.2
    velocity_threshold: float = 0.1
    wait_time: float = 0.5

    def __post_init__(self):
        if self.check_interval <= 0:
            raise ConfigurationError("check_interval must be positive")


@dataclass(frozen=True)
class RoundTimings:
    settlement_clear_delay: float = 1.0
    spawn_interval: float = 0.05
    max_spawn_retries: int = 100
    empty_release_timeout: float = 2.0

    def __post_init__(self):
        if self.max_spawn_retries < 1:
            raise ConfigurationError("max_spawn_retries must be at least 1")


@dataclass(frozen=True)
class MachineConfig:
    arena: ArenaRect = field(default_factory=ArenaRect)
    claw: ClawSettings = field(default_factory=ClawSettings)
    settlement: SettlementSettings = field(default_factory=SettlementSettings)
    timings: RoundTimings = field(default_factory=RoundTimings)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "MachineConfig":
        data = dict(data or {})
        unknown = sorted(set(data) - {"arena", "claw", "settlement", "timings"})
        if unknown:
            raise ConfigurationError(f"Unknown machine sections: {unknown}")
        arena = data.get("arena") or {}
        if "top_left" in arena or "bottom_right" in arena:
            arena_rect = ArenaRect.from_corners(tuple(arena["top_left"]), tuple(arena["bottom_right"]))
        else:
            arena_rect = _build(ArenaRect, arena)
        return cls(
            arena=arena_rect,
            claw=_build(ClawSettings, data.get("claw")),
            settlement=_build(SettlementSettings, data.get("settlement")),
            timings=_build(RoundTimings, data.get("timings")),
        )


# --------- Round inputs ---------

def _parse_entries(items, catalog: BallCatalog) -> List[SpawnEntry]:
    entries = []
    for item in items or []:
        if "ball" not in item:
            raise ConfigurationError(f"Spawn entry needs a 'ball' key: {item!r}")
        entries.append(SpawnEntry(archetype=catalog.get(item["ball"]), count=int(item.get("count", 1))))
    return entries


@dataclass(frozen=True)
class RoundConfiguration:
    target_score: int = 300
    grab_count: int = 5
    default_pool: tuple[SpawnEntry, ...] = ()
    is_boss_round: bool = False
    debuffs: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], catalog: BallCatalog) -> "RoundConfiguration":
        data = dict(data)
        unknown = sorted(set(data) - {"target_score", "grab_count", "default_pool", "is_boss_round", "debuffs"})
        if unknown:
            raise ConfigurationError(f"Unknown round keys: {unknown}")
        return cls(
            target_score=int(data.get("target_score", 300)),
            grab_count=int(data.get("grab_count", 5)),
            default_pool=tuple(_parse_entries(data.get("default_pool"), catalog)),
            is_boss_round=bool(data.get("is_boss_round", False)),
            debuffs=tuple(data.get("debuffs") or ()),
        )


@dataclass
class PlayerInventory:
    """Balls the player owns and brings into every round."""
    owned_balls: List[SpawnEntry] = field(default_factory=list)

    def add_ball(self, archetype: BallArchetype, count: int = 1) -> None:
        for i, entry in enumerate(self.owned_balls):
            if entry.archetype == archetype:
                self.owned_balls[i] = SpawnEntry(archetype, entry.count + count)
                return
        self.owned_balls.append(SpawnEntry(archetype, count))

    def remove_ball(self, archetype: BallArchetype, count: int = 1) -> None:
        for i, entry in enumerate(self.owned_balls):
            if entry.archetype == archetype:
                remaining = entry.count - count
                if remaining <= 0:
                    del self.owned_balls[i]
                else:
                    self.owned_balls[i] = SpawnEntry(archetype, remaining)
                return

    def total_ball_count(self) -> int:
        return sum(entry.count for entry in self.owned_balls)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None, catalog: BallCatalog) -> "PlayerInventory":
        data = dict(data or {})
        return cls(owned_balls=_parse_entries(data.get("owned_balls"), catalog))


def merge_spawn_requests(config: RoundConfiguration, inventory: PlayerInventory | None) -> List[SpawnEntry]:
    """Round pool first, then the player's own balls."""
    entries = list(config.default_pool)
    if inventory is not None:
        entries.extend(inventory.owned_balls)
    return entries
