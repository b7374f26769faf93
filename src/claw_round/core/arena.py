# src/claw_round/core/arena.py

from __future__ import annotations

import logging
from typing import Iterator

import numpy as np

from .balls import BallArchetype, PlacedBall
from .config import ArenaRect
from .physics import PhysicsBackend

logger = logging.getLogger(__name__)


class BallArena:
    """
    Owner of the live ball set for one round session.

    Balls are keyed by integer handle. The physics collaborator is optional;
    without one the arena keeps bookkeeping only and reports every ball as
    motionless.
    """

    def __init__(self, rect: ArenaRect, physics: PhysicsBackend | None = None) -> None:
        self.rect = rect
        self.physics = physics
        self._balls: dict[int, PlacedBall] = {}
        self._next_id = 0

    def __len__(self) -> int:
        return len(self._balls)

    def __contains__(self, ball_id: int) -> bool:
        return ball_id in self._balls

    def __iter__(self) -> Iterator[PlacedBall]:
        return iter(list(self._balls.values()))

    @property
    def n_balls(self) -> int:
        return len(self._balls)

    def new_id(self) -> int:
        nid = self._next_id
        self._next_id += 1
        return nid

    def live_ids(self) -> tuple[int, ...]:
        return tuple(self._balls)

    def get(self, ball_id: int) -> PlacedBall | None:
        return self._balls.get(ball_id)

    def spawn(self, archetype: BallArchetype, position, kinematic: bool = True) -> PlacedBall:
        pos = np.asarray(position, dtype=float)
        if not self.rect.contains(pos, radius=archetype.radius - 1e-9):
            raise ValueError(f"Ball {archetype.name!r} placed outside arena at {pos.tolist()}")
        ball = PlacedBall(id=self.new_id(), archetype=archetype, position=pos.copy())
        self._balls[ball.id] = ball
        if self.physics is not None:
            self.physics.add_body(ball)
            self.physics.set_kinematic(ball.id, kinematic)
        logger.debug("Spawned ball %d (%s) at (%.2f, %.2f)", ball.id, archetype.name, pos[0], pos[1])
        return ball

    def destroy(self, ball_id: int) -> bool:
        ball = self._balls.pop(ball_id, None)
        if ball is None:
            return False
        if self.physics is not None:
            self.physics.remove_body(ball_id)
        return True

    def destroy_all(self) -> int:
        ids = list(self._balls)
        for ball_id in ids:
            self.destroy(ball_id)
        if ids:
            logger.debug("Destroyed %d balls", len(ids))
        return len(ids)

    def set_kinematic_all(self, kinematic: bool) -> None:
        if self.physics is None:
            return
        for ball_id in self._balls:
            self.physics.set_kinematic(ball_id, kinematic)

    def speed_of(self, ball_id: int) -> float | None:
        if ball_id not in self._balls:
            return None
        if self.physics is None:
            return 0.0
        return self.physics.speed(ball_id)
