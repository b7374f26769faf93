# src/claw_round/core/physics.py
"""Interface of the physics collaborator.

The round core never integrates motion itself. A host engine implements this
protocol and reports trigger-zone crossings by emitting BodyEnteredZoneEvent /
BodyExitedZoneEvent on the round's event bus.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

import numpy as np

if TYPE_CHECKING:
    from .balls import PlacedBall


class PhysicsBackend(Protocol):
    def add_body(self, ball: PlacedBall) -> None:
        """Create a rigid body for `ball` at `ball.position`."""
        ...

    def remove_body(self, body_id: int) -> None:
        ...

    def set_kinematic(self, body_id: int, kinematic: bool) -> None:
        """Kinematic bodies are held in place and ignore forces."""
        ...

    def apply_force(self, body_id: int, force: np.ndarray) -> None:
        ...

    def position(self, body_id: int) -> np.ndarray | None:
        """Current position, or None if the body no longer exists."""
        ...

    def speed(self, body_id: int) -> float | None:
        """Current linear speed, or None if the body no longer exists."""
        ...
