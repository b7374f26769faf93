# src/claw_round/__init__.py

from .errors import ClawRoundError, ConfigurationError, SeedNotInitializedError

__version__ = "0.1.0"

__all__ = [
    "ClawRoundError",
    "ConfigurationError",
    "SeedNotInitializedError",
    "__version__",
]
