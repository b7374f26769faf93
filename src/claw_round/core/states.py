# src/claw_round/core/states.py

from __future__ import annotations

from enum import Enum


class ClawState(str, Enum):
    DISABLED = "disabled"              # outside the player phase
    IDLE = "idle"                      # free horizontal movement
    DESCENDING = "descending"
    GRABBING = "grabbing"
    ASCENDING = "ascending"
    MOVING_TO_DROP = "moving_to_drop"
    RELEASING = "releasing"            # waits for settlement_complete()
    RETURNING = "returning"


class RoundState(str, Enum):
    IDLE = "idle"
    STARTING = "starting"
    PLAYING = "playing"
    ENDING = "ending"
