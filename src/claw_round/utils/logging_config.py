"""Logging setup for scripts and hosts embedding the round core."""

from __future__ import annotations

import logging
import os

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"
LEVEL_ENV_VAR = "CLAW_ROUND_LOG_LEVEL"


def configure_logging(
    *,
    level: str | None = None,
    format: str = DEFAULT_FORMAT,
    datefmt: str = DEFAULT_DATEFMT,
) -> logging.Logger:
    """Configure logging for the ``claw_round`` package.

    Args:
        level: Optional explicit log level. Falls back to ``CLAW_ROUND_LOG_LEVEL``
            or INFO when not provided.
        format: Log format string.
        datefmt: Date format string.

    Returns:
        The package logger (``claw_round``).
    """
    raw_level = level if level is not None else os.getenv(LEVEL_ENV_VAR)
    resolved_level = (raw_level or "INFO").upper()
    logging.basicConfig(level=resolved_level, format=format, datefmt=datefmt)

    app_logger = logging.getLogger("claw_round")
    app_logger.setLevel(resolved_level)
    app_logger.debug("Logging configured at %s", resolved_level)
    return app_logger
