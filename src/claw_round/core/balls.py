# src/claw_round/core/balls.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, List, Mapping

import numpy as np

from claw_round.errors import ConfigurationError

REFERENCE_RADIUS = 32.0


class BallCategory(str, Enum):
    SCORE = "score"            # adds its value to the base score
    MULTIPLIER = "multiplier"  # adds its value to the batch multiplier


@dataclass(frozen=True)
class BallArchetype:
    """
    Immutable template for one kind of ball.

    Behavior differences between balls are carried by `category` and `value`,
    never by subclassing.
    """
    name: str
    category: BallCategory
    value: float
    radius: float = REFERENCE_RADIUS
    mass: float = 1.0
    linear_drag: float = 0.5
    angular_drag: float = 0.5
    gravity_scale: float = 10.0
    visual_tag: str = ""

    def __post_init__(self):
        if not isinstance(self.category, BallCategory):
            try:
                object.__setattr__(self, "category", BallCategory(self.category))
            except ValueError as exc:
                raise ConfigurationError(f"Unknown ball category {self.category!r} for {self.name!r}") from exc
        if self.radius <= 0:
            raise ConfigurationError(f"Ball {self.name!r} must have a positive radius, got {self.radius}")
        if self.mass <= 0:
            raise ConfigurationError(f"Ball {self.name!r} must have a positive mass, got {self.mass}")

    def display_text(self) -> str:
        if self.category is BallCategory.SCORE:
            return f"+{self.value:.0f}"
        return f"x{self.value:.2f}".rstrip("0").rstrip(".")

    def scale(self) -> float:
        """Scale relative to the reference ball radius."""
        return self.radius / REFERENCE_RADIUS

    @classmethod
    def from_dict(cls, name: str, data: Mapping[str, Any]) -> "BallArchetype":
        kwargs = dict(data)
        kwargs.pop("name", None)
        try:
            return cls(name=name, **kwargs)
        except TypeError as exc:
            raise ConfigurationError(f"Invalid ball definition {name!r}: {exc}") from exc


@dataclass(frozen=True)
class SpawnEntry:
    archetype: BallArchetype
    count: int


def expand_spawn_entries(entries: Iterable[SpawnEntry]) -> List[BallArchetype]:
    """Flatten (archetype, count) pairs into a list, preserving declaration order."""
    result: List[BallArchetype] = []
    for entry in entries:
        result.extend([entry.archetype] * max(entry.count, 0))
    return result


@dataclass
class PlacedBall:
    """
    A live ball in the arena.

    - archetype: shared, read-only template
    - position: spawn position; live position/velocity belong to the physics collaborator
    - grabbed / settling: bookkeeping flags owned by the round core
    """
    id: int
    archetype: BallArchetype
    position: np.ndarray      # shape (2,)
    grabbed: bool = False
    settling: bool = False

    @property
    def category(self) -> BallCategory:
        return self.archetype.category

    @property
    def value(self) -> float:
        return self.archetype.value

    @property
    def radius(self) -> float:
        return self.archetype.radius


@dataclass(frozen=True)
class SettledBall:
    """Immutable copy of a ball handed from the settlement zone to scoring."""
    ball_id: int
    category: BallCategory
    value: float

    @classmethod
    def from_ball(cls, ball: PlacedBall) -> "SettledBall":
        return cls(ball_id=ball.id, category=ball.category, value=float(ball.value))

    def to_dict(self) -> dict:
        return {"ball_id": self.ball_id, "category": self.category.value, "value": self.value}


@dataclass
class BallCatalog:
    """Name -> archetype lookup used when parsing presets."""
    archetypes: dict[str, BallArchetype] = field(default_factory=dict)

    def __contains__(self, name: str) -> bool:
        return name in self.archetypes

    def __len__(self) -> int:
        return len(self.archetypes)

    def get(self, name: str) -> BallArchetype:
        try:
            return self.archetypes[name]
        except KeyError:
            raise ConfigurationError(f"Unknown ball archetype {name!r}") from None

    def add(self, archetype: BallArchetype) -> None:
        self.archetypes[archetype.name] = archetype

    @classmethod
    def from_dict(cls, data: Mapping[str, Mapping[str, Any]]) -> "BallCatalog":
        return cls({name: BallArchetype.from_dict(name, values) for name, values in data.items()})
