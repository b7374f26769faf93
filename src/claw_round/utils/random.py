# src/claw_round/utils/random.py

from __future__ import annotations

import logging
from typing import Dict, Hashable

import numpy as np

from claw_round.errors import SeedNotInitializedError

logger = logging.getLogger(__name__)

SEED_LENGTH = 6
SEED_CHARS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"


def generate_seed(rng: np.random.Generator | None = None) -> str:
    """Draw a fresh run seed from the fixed alphabet (entropy-seeded by default)."""
    rng = rng if rng is not None else np.random.default_rng()
    idx = rng.integers(0, len(SEED_CHARS), size=SEED_LENGTH)
    return "".join(SEED_CHARS[i] for i in idx)


def is_valid_seed(seed: str) -> bool:
    return len(seed) == SEED_LENGTH and all(c in SEED_CHARS for c in seed)


class DeterministicRandomRegistry:
    """
    Owns the master seed of a run and hands out named random streams.

    - stream(name): cached per subsystem, so consecutive calls continue the
      same sequence within a run.
    - one_shot_stream(name, extra): keyed randomness, rebuilt on every call and
      never cached. Ideal for one-off draws such as per-round rewards.

    Every stream derives from the string "<seed>_<name>[_<extra>]", so a
    stream's output never depends on how other subsystems consumed theirs.
    """

    def __init__(self) -> None:
        self._master_seed: str | None = None
        self._streams: Dict[str, np.random.Generator] = {}

    @property
    def seed(self) -> str:
        if self._master_seed is None:
            raise SeedNotInitializedError("initialize() must be called before using the registry")
        return self._master_seed

    @property
    def is_initialized(self) -> bool:
        return self._master_seed is not None

    def initialize(self, seed: str | None = None) -> str:
        """
        Set the master seed and drop every cached stream.

        An empty or missing seed gets a freshly generated one; a supplied seed
        is upper-cased.
        """
        self._master_seed = seed.upper() if seed else generate_seed()
        self._streams.clear()
        logger.info("Master seed: %s", self._master_seed)
        return self._master_seed

    def stream(self, name: str) -> np.random.Generator:
        key = f"{self.seed}_{name}"
        gen = self._streams.get(name)
        if gen is None:
            gen = _generator_for(key)
            self._streams[name] = gen
            logger.debug("Created stream [%s] hash=%d", name, _stable_int(key))
        return gen

    def one_shot_stream(self, name: str, extra: Hashable) -> np.random.Generator:
        key = f"{self.seed}_{name}_{extra}"
        logger.debug("Created one-shot stream [%s_%s]", name, extra)
        return _generator_for(key)

    def reset(self, name: str) -> bool:
        """Evict one cached stream; the next stream(name) restarts its sequence."""
        if self._streams.pop(name, None) is not None:
            logger.debug("Reset stream: %s", name)
            return True
        return False

    def reset_all(self) -> None:
        self._streams.clear()
        logger.debug("Reset all streams")

    def cached_names(self) -> tuple[str, ...]:
        return tuple(self._streams)


def _generator_for(key: str) -> np.random.Generator:
    return np.random.default_rng(np.random.SeedSequence(_stable_int(key)))


def _stable_int(x: Hashable) -> int:
    """
    Convert arbitrary key -> stable 32-bit integer without relying on Python's hash().
    """
    s = (x if isinstance(x, str) else repr(x)).encode("utf-8", errors="surrogatepass")
    # FNV-1a folded into 32 bits
    h = 2166136261
    for b in s:
        h ^= b
        h = (h * 16777619) & 0xFFFFFFFF
    return h
