# src/claw_round/errors.py

from __future__ import annotations


class ClawRoundError(Exception):
    """Base class for errors raised by the round core."""


class SeedNotInitializedError(ClawRoundError, RuntimeError):
    """A random stream was requested before the master seed was set."""


class ConfigurationError(ClawRoundError, ValueError):
    """A preset or authored value object is malformed."""
