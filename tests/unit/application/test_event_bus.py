"""Unit tests for the run-scoped event bus."""

import pytest

from trxsync.application.events import EventBus
from trxsync.domain.shared.exceptions import EventBusFullError


class TestEventBus:
    def test_delivers_in_subscription_order(self):
        bus: EventBus[int] = EventBus()
        seen = []
        bus.subscribe(lambda e: seen.append(("a", e)))
        bus.subscribe(lambda e: seen.append(("b", e)))

        bus.publish(1)
        bus.publish(2)

        assert seen == [("a", 1), ("b", 1), ("a", 2), ("b", 2)]

    def test_unsubscribe_stops_delivery(self):
        bus: EventBus[str] = EventBus()
        seen = []
        unsubscribe = bus.subscribe(seen.append)

        bus.publish("first")
        unsubscribe()
        unsubscribe()
        bus.publish("second")

        assert seen == ["first"]
        assert bus.subscriber_count == 0

    def test_raising_subscriber_does_not_block_others(self):
        bus: EventBus[str] = EventBus()
        seen = []

        def broken(_):
            raise RuntimeError("boom")

        bus.subscribe(broken)
        bus.subscribe(seen.append)

        bus.publish("event")

        assert seen == ["event"]

    def test_subscriber_limit(self):
        bus: EventBus[str] = EventBus(max_subscribers=2)
        bus.subscribe(lambda _: None)
        bus.subscribe(lambda _: None)

        with pytest.raises(EventBusFullError):
            bus.subscribe(lambda _: None)

    def test_unsubscribe_during_publish(self):
        bus: EventBus[str] = EventBus()
        seen = []
        unsubscribe = None

        def once(event):
            seen.append(event)
            unsubscribe()

        unsubscribe = bus.subscribe(once)
        bus.subscribe(seen.append)

        bus.publish("x")
        bus.publish("y")

        assert seen == ["x", "x", "y"]

    def test_clear(self):
        bus: EventBus[str] = EventBus()
        bus.subscribe(lambda _: None)
        bus.clear()
        assert bus.subscriber_count == 0
