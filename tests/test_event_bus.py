"""Tests for the synchronous round event bus."""

from claw_round.core import (
    BallDroppedEvent,
    BallGrabbedEvent,
    BaseEvent,
    EventBus,
    GrabCountChangedEvent,
    GrabStartedEvent,
)
from claw_round.core.events import BallEvent


class TestEventBus:
    def test_emit_reaches_subscriber(self) -> None:
        bus = EventBus()
        received: list = []
        bus.subscribe(GrabStartedEvent, received.append)
        event = GrabStartedEvent(t=1.5)
        bus.emit(event)
        assert received == [event]

    def test_no_subscribers_no_crash(self) -> None:
        bus = EventBus()
        bus.emit(GrabStartedEvent())
        assert bus.subscriber_count(GrabStartedEvent) == 0
        assert not bus.has_subscribers(GrabStartedEvent)

    def test_handlers_only_see_their_type(self) -> None:
        bus = EventBus()
        received: list = []
        bus.subscribe(GrabCountChangedEvent, received.append)
        bus.emit(GrabStartedEvent())
        assert received == []

    def test_base_class_subscription_sees_subclasses(self) -> None:
        bus = EventBus()
        received: list = []
        bus.subscribe(BallEvent, lambda e: received.append(type(e).__name__))
        bus.emit(BallGrabbedEvent(ball_id=1))
        bus.emit(BallDroppedEvent(ball_id=1))
        assert received == ["BallGrabbedEvent", "BallDroppedEvent"]

    def test_wildcard_runs_after_typed_handlers(self) -> None:
        bus = EventBus()
        order: list[str] = []
        bus.subscribe_all(lambda e: order.append("all"))
        bus.subscribe(BaseEvent, lambda e: order.append("base"))
        bus.subscribe(GrabStartedEvent, lambda e: order.append("typed"))
        bus.emit(GrabStartedEvent())
        assert order == ["typed", "base", "all"]

    def test_delivery_is_depth_first(self) -> None:
        """Events emitted from a handler are fully delivered before emit() returns."""
        bus = EventBus()
        order: list[str] = []

        def on_grab(event: GrabStartedEvent) -> None:
            order.append("grab:start")
            bus.emit(GrabCountChangedEvent(remaining=0))
            order.append("grab:end")

        bus.subscribe(GrabStartedEvent, on_grab)
        bus.subscribe(GrabCountChangedEvent, lambda e: order.append("count"))
        bus.emit(GrabStartedEvent())
        assert order == ["grab:start", "count", "grab:end"]

    def test_unsubscribe(self) -> None:
        bus = EventBus()
        received: list = []
        bus.subscribe(GrabStartedEvent, received.append)
        assert bus.unsubscribe(GrabStartedEvent, received.append) is True
        assert bus.unsubscribe(GrabStartedEvent, received.append) is False
        bus.emit(GrabStartedEvent())
        assert received == []

    def test_unsubscribe_during_dispatch_keeps_current_delivery(self) -> None:
        bus = EventBus()
        order: list[str] = []

        def first(event) -> None:
            order.append("first")
            bus.unsubscribe(GrabStartedEvent, second)

        def second(event) -> None:
            order.append("second")

        bus.subscribe(GrabStartedEvent, first)
        bus.subscribe(GrabStartedEvent, second)
        bus.emit(GrabStartedEvent())
        bus.emit(GrabStartedEvent())
        assert order == ["first", "second", "first"]

    def test_unsubscribe_all_and_clear(self) -> None:
        bus = EventBus()
        received: list = []
        bus.subscribe_all(received.append)
        bus.subscribe(GrabStartedEvent, received.append)
        assert bus.unsubscribe_all(received.append) is True
        assert bus.unsubscribe_all(received.append) is False
        bus.clear_subscribers()
        bus.emit(GrabStartedEvent())
        assert received == []
