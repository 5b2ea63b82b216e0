"""Import progress events for SSE streaming.

One dataclass per wire event type. ``to_dict`` produces the JSON
payload sent as the ``data:`` line; the ``type`` key repeats the SSE
event name so clients listening on ``onmessage`` can dispatch too.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from trxsync.domain.shared.time import utc_now


class ImportEventType(str, Enum):
    """Types of import progress events."""

    CONNECTED = "connected"
    PROGRESS = "progress"
    QR_CODE = "qr-code"
    AUTH_STATUS = "auth-status"
    SUCCESS = "success"
    ERROR = "error"
    CLOSE = "close"


@dataclass
class ImportEvent:
    """Base class for import events."""

    event_type: ImportEventType
    timestamp: datetime = field(default_factory=utc_now)

    @property
    def is_terminal(self) -> bool:
        return self.event_type in (ImportEventType.SUCCESS, ImportEventType.ERROR)

    def to_dict(self) -> dict:
        return {
            "type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class ConnectedEvent(ImportEvent):
    """First event of every stream."""

    def __init__(self):
        super().__init__(event_type=ImportEventType.CONNECTED)


@dataclass
class ProgressEvent(ImportEvent):
    """Human-readable step notification."""

    message: str = ""

    def __init__(self, message: str):
        super().__init__(event_type=ImportEventType.PROGRESS)
        self.message = message

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["message"] = self.message
        return d


@dataclass
class QRCodeEvent(ImportEvent):
    """Fresh scannable token; the UI renders it as a QR code."""

    token: str = ""

    def __init__(self, token: str):
        super().__init__(event_type=ImportEventType.QR_CODE)
        self.token = token

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["data"] = self.token
        return d


@dataclass
class AuthStatusEvent(ImportEvent):
    """Bank login status change."""

    status: str = ""
    message: Optional[str] = None
    auto_start_token: Optional[str] = None

    def __init__(
        self,
        status: str,
        message: Optional[str] = None,
        auto_start_token: Optional[str] = None,
    ):
        super().__init__(event_type=ImportEventType.AUTH_STATUS)
        self.status = status
        self.message = message
        self.auto_start_token = auto_start_token

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["status"] = self.status
        if self.message:
            d["message"] = self.message
        if self.auto_start_token:
            d["autoStartToken"] = self.auto_start_token
        return d


@dataclass
class SuccessEvent(ImportEvent):
    """Terminal event of a successful run."""

    count: int = 0
    skipped: int = 0
    message: str = ""

    def __init__(self, count: int, skipped: int, message: Optional[str] = None):
        super().__init__(event_type=ImportEventType.SUCCESS)
        self.count = count
        self.skipped = skipped
        self.message = (
            message or f"Imported {count} transactions ({skipped} skipped)"
        )

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["count"] = self.count
        d["skipped"] = self.skipped
        d["message"] = self.message
        return d


@dataclass
class ErrorEvent(ImportEvent):
    """Terminal event of a failed run."""

    message: str = ""
    code: Optional[str] = None

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(event_type=ImportEventType.ERROR)
        self.message = message
        self.code = code

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["message"] = self.message
        if self.code:
            d["code"] = self.code
        return d


@dataclass
class CloseEvent(ImportEvent):
    """Last event of every stream."""

    success: bool = False
    error: Optional[str] = None

    def __init__(self, success: bool, error: Optional[str] = None):
        super().__init__(event_type=ImportEventType.CLOSE)
        self.success = success
        self.error = error

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["success"] = self.success
        if self.error is not None:
            d["error"] = self.error
        return d
