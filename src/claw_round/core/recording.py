# src/claw_round/core/recording.py

from __future__ import annotations

import lzma
import pickle
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

from .bus import EventBus


@dataclass(frozen=True)
class EventSnapshot:
    t: float
    type: str               # event class name, e.g. "ScoreCalculatedEvent"
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass
class RoundRecording:
    """
    Frozen record of the events of one or more rounds.

    `meta` holds seed, preset name, version, etc.
    """
    events: list[EventSnapshot] = field(default_factory=list)
    meta: dict[str, Any] = field(default_factory=dict)

    def add(self, snapshot: EventSnapshot) -> None:
        self.events.append(snapshot)

    def iter_events(self, type: str | None = None) -> Iterator[EventSnapshot]:
        """Iterate over recorded events in emission order, optionally of one type."""
        for ev in self.events:
            if type is None or ev.type == type:
                yield ev

    def event_types(self) -> list[str]:
        return [ev.type for ev in self.events]

    def save(self, path: str | Path) -> None:
        path = Path(path)
        with lzma.open(path, "wb") as f:
            pickle.dump(self, f, protocol=pickle.HIGHEST_PROTOCOL)

    @classmethod
    def load(cls, path: str | Path) -> "RoundRecording":
        path = Path(path)
        with lzma.open(path, "rb") as f:
            rec = pickle.load(f)
        return rec


class RoundRecorder:
    """Wildcard bus subscriber that snapshots every event it sees."""

    def __init__(self, bus: EventBus, recording: RoundRecording | None = None) -> None:
        self._bus = bus
        self.recording = recording if recording is not None else RoundRecording()
        bus.subscribe_all(self._on_event)

    def detach(self) -> None:
        self._bus.unsubscribe_all(self._on_event)

    def _on_event(self, event: object) -> None:
        to_payload = getattr(event, "to_payload_dict", None)
        self.recording.add(
            EventSnapshot(
                t=float(getattr(event, "t", 0.0)),
                type=type(event).__name__,
                payload=to_payload() if to_payload is not None else {},
            )
        )
