# src/claw_round/core/claw_range.py

from __future__ import annotations

import logging

from .bus import EventBus
from .events import CLAW_ZONE, BodyEnteredZoneEvent, BodyExitedZoneEvent

logger = logging.getLogger(__name__)


class ClawRangeTracker:
    """Bodies currently inside the claw's grab zone, as reported by the physics collaborator."""

    def __init__(self, bus: EventBus, zone: str = CLAW_ZONE) -> None:
        self._bus = bus
        self.zone = zone
        self._in_range: set[int] = set()
        bus.subscribe(BodyEnteredZoneEvent, self._on_enter)
        bus.subscribe(BodyExitedZoneEvent, self._on_exit)

    @property
    def count(self) -> int:
        return len(self._in_range)

    def ids(self) -> frozenset[int]:
        return frozenset(self._in_range)

    def has_balls(self) -> bool:
        return bool(self._in_range)

    def __contains__(self, body_id: int) -> bool:
        return body_id in self._in_range

    def clear(self) -> None:
        self._in_range.clear()
        logger.debug("Claw range cleared")

    def close(self) -> None:
        self._bus.unsubscribe(BodyEnteredZoneEvent, self._on_enter)
        self._bus.unsubscribe(BodyExitedZoneEvent, self._on_exit)

    def _on_enter(self, event: BodyEnteredZoneEvent) -> None:
        if event.zone != self.zone or event.body_id in self._in_range:
            return
        self._in_range.add(event.body_id)
        logger.debug("Ball %d entered claw range (total %d)", event.body_id, len(self._in_range))

    def _on_exit(self, event: BodyExitedZoneEvent) -> None:
        if event.zone != self.zone:
            return
        self._in_range.discard(event.body_id)
