# src/claw_round/core/clock.py

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class SimClock:
    """Simulation time shared by every component of one round session."""
    time: float = 0.0
    frame: int = 0

    def advance(self, dt: float) -> float:
        if dt < 0:
            raise ValueError(f"dt must be non-negative, got {dt}")
        self.time += dt
        self.frame += 1
        return self.time
