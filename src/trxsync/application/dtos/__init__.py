"""Data transfer objects for the application layer."""

from trxsync.application.dtos.import_events import (
    AuthStatusEvent,
    CloseEvent,
    ConnectedEvent,
    ErrorEvent,
    ImportEvent,
    ImportEventType,
    ProgressEvent,
    QRCodeEvent,
    SuccessEvent,
)
from trxsync.application.dtos.import_outcome import ImportOutcome

__all__ = [
    "AuthStatusEvent",
    "CloseEvent",
    "ConnectedEvent",
    "ErrorEvent",
    "ImportEvent",
    "ImportEventType",
    "ImportOutcome",
    "ProgressEvent",
    "QRCodeEvent",
    "SuccessEvent",
]
