"""Authentication session value objects."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from trxsync.domain.shared.time import utc_now


class AuthStatus(str, Enum):
    """Status of a bank login handshake."""

    PENDING = "pending"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self is not AuthStatus.PENDING


class AuthSession(BaseModel):
    """Snapshot of an in-flight bank login, published on every change.

    Never persisted. ``qr_payload`` and ``app_token`` carry the latest
    token material while the session is pending.
    """

    status: AuthStatus
    qr_payload: str | None = None
    app_token: str | None = None
    session_id: str | None = None
    message: str | None = None
    timestamp: datetime = Field(default_factory=utc_now)

    model_config = ConfigDict(frozen=True)

    def to_dict(self) -> dict:
        data: dict = {
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.message:
            data["message"] = self.message
        if self.qr_payload:
            data["qrPayload"] = self.qr_payload
        if self.app_token:
            data["autoStartToken"] = self.app_token
        if self.session_id:
            data["sessionId"] = self.session_id
        return data


class QRCodeData(BaseModel):
    """Scannable token handed to the UI, which renders the QR code."""

    token: str = Field(..., min_length=1)
    timestamp: datetime = Field(default_factory=utc_now)

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        if len(self.token) <= 15:
            return self.token
        return f"{self.token[:10]}...{self.token[-5:]}"
