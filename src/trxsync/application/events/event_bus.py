"""Run-scoped in-process event bus.

Delivery is synchronous and ordered: ``publish`` calls every subscriber
in subscription order before returning. Subscribers must be fast and
must not block; there is no queueing and nothing is persisted.
"""

from __future__ import annotations

import logging
from typing import Callable, Generic, TypeVar

from trxsync.domain.shared.exceptions import EventBusFullError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Subscriber = Callable[[T], None]
Unsubscribe = Callable[[], None]

DEFAULT_MAX_SUBSCRIBERS = 16


class EventBus(Generic[T]):
    """Bounded publish/subscribe channel for one import run."""

    def __init__(self, max_subscribers: int = DEFAULT_MAX_SUBSCRIBERS):
        if max_subscribers < 1:
            msg = "max_subscribers must be at least 1"
            raise ValueError(msg)
        self._max_subscribers = max_subscribers
        self._subscribers: list[Subscriber[T]] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, callback: Subscriber[T]) -> Unsubscribe:
        """Register ``callback`` and return a function that removes it."""
        if len(self._subscribers) >= self._max_subscribers:
            raise EventBusFullError(self._max_subscribers)
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            # Removes this registration only; tolerates double calls
            for index, registered in enumerate(self._subscribers):
                if registered is callback:
                    del self._subscribers[index]
                    return

        return unsubscribe

    def publish(self, event: T) -> None:
        # Snapshot so subscribers may unsubscribe during delivery
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception("Event subscriber %r failed", callback)

    def clear(self) -> None:
        self._subscribers.clear()
