from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from claw_round.core import (
    BallCatalog,
    MachineConfig,
    PhysicsBackend,
    PlayerInventory,
    RoundConfiguration,
    RoundSession,
)

logger = logging.getLogger(__name__)

PRESET_DIR = Path(__file__).parent


def default_preset_path() -> Path:
    return PRESET_DIR / "default.yaml"


@dataclass
class RoundSetup:
    session: RoundSession
    catalog: BallCatalog
    round_config: RoundConfiguration
    inventory: PlayerInventory
    seed: str


def make_session(
    preset: Mapping[str, Any],
    physics: PhysicsBackend | None = None,
    seed: str | None = None,
) -> RoundSetup:
    """
    Build a wired RoundSession from a resolved preset dict and seed its registry.

    `seed` overrides the preset's seed; with neither a fresh seed is drawn.
    """
    machine = MachineConfig.from_dict(preset.get("machine"))
    catalog = BallCatalog.from_dict(preset.get("balls") or {})
    round_config = RoundConfiguration.from_dict(preset.get("round") or {}, catalog)
    inventory = PlayerInventory.from_dict(preset.get("inventory"), catalog)

    if seed is None and preset.get("seed") is not None:
        seed = str(preset["seed"])

    session = RoundSession.create(machine, physics=physics)
    resolved_seed = session.registry.initialize(seed)
    session.meta.update({"seed": resolved_seed, "n_archetypes": len(catalog)})
    logger.info(
        "Session ready: %d archetypes, target=%d, grabs=%d",
        len(catalog), round_config.target_score, round_config.grab_count,
    )
    return RoundSetup(
        session=session,
        catalog=catalog,
        round_config=round_config,
        inventory=inventory,
        seed=resolved_seed,
    )
