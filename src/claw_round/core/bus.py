# src/claw_round/core/bus.py
"""Synchronous event bus connecting the round components.

Delivery is depth-first: emit() returns only after every handler (and every
event those handlers emitted in turn) has been processed. This is what lets
the orchestrator end a round from inside a score handler before the same
tick's claw update runs.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from typing import TypeVar

T = TypeVar("T")
Handler = Callable[[object], None]


class EventBus:
    """Synchronous event bus for round events.

    Handlers subscribed to a base class also receive its subclasses, so
    subscribing to BaseEvent is equivalent to subscribe_all() except for
    ordering (wildcard handlers always run last).

    Example:
        bus = EventBus()
        bus.subscribe(ScoreCalculatedEvent, on_score)
        bus.emit(ScoreCalculatedEvent(delta=60, total=60))
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[Callable]] = defaultdict(list)
        self._wildcard: list[Handler] = []

    def emit(self, event: object) -> None:
        """Dispatch `event` to typed handlers along its MRO, then to wildcard handlers.

        The handler lists are copied before dispatch so a handler may
        subscribe or unsubscribe without disturbing the current delivery.
        """
        for cls in type(event).__mro__:
            handlers = self._handlers.get(cls)
            if handlers:
                for handler in list(handlers):
                    handler(event)
        if self._wildcard:
            for handler in list(self._wildcard):
                handler(event)

    def subscribe(self, event_type: type[T], handler: Callable[[T], None]) -> None:
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: type[T], handler: Callable[[T], None]) -> bool:
        handlers = self._handlers.get(event_type)
        if handlers and handler in handlers:
            handlers.remove(handler)
            return True
        return False

    def subscribe_all(self, handler: Handler) -> None:
        self._wildcard.append(handler)

    def unsubscribe_all(self, handler: Handler) -> bool:
        if handler in self._wildcard:
            self._wildcard.remove(handler)
            return True
        return False

    def clear_subscribers(self) -> None:
        self._handlers.clear()
        self._wildcard.clear()

    def has_subscribers(self, event_type: type) -> bool:
        return bool(self._handlers.get(event_type))

    def subscriber_count(self, event_type: type) -> int:
        return len(self._handlers.get(event_type, []))
