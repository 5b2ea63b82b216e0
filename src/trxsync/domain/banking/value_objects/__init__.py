"""Value objects for banking domain."""

from trxsync.domain.banking.value_objects.auth_session import (
    AuthSession,
    AuthStatus,
    QRCodeData,
)
from trxsync.domain.banking.value_objects.deduplication import DedupConfig, DedupResult
from trxsync.domain.banking.value_objects.transaction import Transaction

__all__ = [
    "AuthSession",
    "AuthStatus",
    "DedupConfig",
    "DedupResult",
    "QRCodeData",
    "Transaction",
]
