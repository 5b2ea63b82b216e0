"""In-process event delivery."""

from trxsync.application.events.event_bus import EventBus, Subscriber, Unsubscribe

__all__ = ["EventBus", "Subscriber", "Unsubscribe"]
