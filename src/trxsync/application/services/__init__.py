"""Application services."""

from trxsync.application.services.bank_session_client import (
    BankSessionClient,
    SessionState,
)
from trxsync.application.services.transaction_reconciler import TransactionReconciler

__all__ = ["BankSessionClient", "SessionState", "TransactionReconciler"]
