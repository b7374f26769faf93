# src/claw_round/core/placement.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, MutableSequence, Sequence, TypeVar

import numpy as np

from .balls import BallArchetype
from .config import ArenaRect

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Placement:
    archetype: BallArchetype
    position: np.ndarray      # (2,)


@dataclass(frozen=True)
class PlacementResult:
    placements: tuple[Placement, ...]
    skipped: int

    @property
    def placed_count(self) -> int:
        return len(self.placements)

    @property
    def requested_count(self) -> int:
        return len(self.placements) + self.skipped


def fisher_yates_shuffle(items: MutableSequence[T], rng: np.random.Generator) -> None:
    """In-place uniform shuffle, reproducible for a fixed stream and input order."""
    for i in range(len(items) - 1, 0, -1):
        j = int(rng.integers(0, i + 1))
        items[i], items[j] = items[j], items[i]


class PlacementEngine:
    """
    Scatter a pool of balls in a rectangle without overlaps.

    This is retry-bounded rejection sampling, not a packing algorithm: each
    ball gets at most `max_retries` uniform draws and is skipped when none of
    them is free. Dense pools therefore come out with fewer balls instead of
    hanging.
    """

    def __init__(self, rect: ArenaRect, max_retries: int = 100) -> None:
        if max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {max_retries}")
        self.rect = rect
        self.max_retries = int(max_retries)

    def place(self, archetypes: Sequence[BallArchetype], rng: np.random.Generator) -> PlacementResult:
        to_place: List[BallArchetype] = list(archetypes)
        fisher_yates_shuffle(to_place, rng)

        accepted_pos: List[np.ndarray] = []
        accepted_r: List[float] = []
        placements: List[Placement] = []
        skipped = 0

        for i, archetype in enumerate(to_place):
            pos = self._find_position(archetype.radius, accepted_pos, accepted_r, rng)
            if pos is None:
                skipped += 1
                logger.warning("Could not find a free position for ball %d (%s)", i, archetype.name)
                continue
            accepted_pos.append(pos)
            accepted_r.append(archetype.radius)
            placements.append(Placement(archetype=archetype, position=pos))

        logger.info("Placement completed: %d/%d balls", len(placements), len(to_place))
        return PlacementResult(placements=tuple(placements), skipped=skipped)

    def _find_position(
        self,
        radius: float,
        accepted_pos: List[np.ndarray],
        accepted_r: List[float],
        rng: np.random.Generator,
    ) -> np.ndarray | None:
        if not self.rect.fits(radius):
            return None
        min_x = self.rect.min_x + radius
        max_x = self.rect.max_x - radius
        min_y = self.rect.min_y + radius
        max_y = self.rect.max_y - radius

        centers = np.array(accepted_pos, dtype=float).reshape(-1, 2)
        min_dist = np.asarray(accepted_r, dtype=float) + radius

        for _ in range(self.max_retries):
            x = min_x + rng.random() * (max_x - min_x)
            y = min_y + rng.random() * (max_y - min_y)
            candidate = np.array([x, y], dtype=float)
            if not _overlaps(candidate, centers, min_dist):
                return candidate
        return None


def _overlaps(candidate: np.ndarray, centers: np.ndarray, min_dist: np.ndarray) -> bool:
    if centers.shape[0] == 0:
        return False
    dist = np.linalg.norm(centers - candidate, axis=1)
    return bool(np.any(dist < min_dist))
