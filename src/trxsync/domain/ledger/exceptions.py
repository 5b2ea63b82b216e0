"""Ledger domain exceptions."""

from trxsync.domain.shared.exceptions import (
    BusinessRuleViolation,
    DomainException,
    ErrorCode,
)


class LedgerError(DomainException):
    """Base exception for ledger errors."""


class LedgerConnectionError(LedgerError):
    """Raised when the ledger server cannot be reached or rejects us."""

    def __init__(
        self,
        message: str = "Failed to connect to Actual Budget",
        reason: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.LEDGER_CONNECTION_FAILED,
            details={"reason": reason} if reason else None,
        )


class LedgerVersionMismatchError(LedgerConnectionError):
    """Raised when the ledger server and client versions are incompatible."""

    def __init__(self, reason: str | None = None) -> None:
        super().__init__(
            message=(
                "Actual Budget server version is incompatible with this client. "
                "Update the Actual Budget server (or this add-on) so both run "
                "the same version, then try again."
            ),
            reason=reason,
        )
        self.code = ErrorCode.LEDGER_VERSION_MISMATCH


class LedgerImportError(LedgerError):
    """Raised when the ledger rejects an import batch."""

    def __init__(self, message: str, reason: str | None = None) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.IMPORT_FAILED,
            details={"reason": reason} if reason else None,
        )


class LedgerAccountNotFoundError(LedgerError):
    """Raised when the configured ledger account does not exist."""

    def __init__(self, account_id: str) -> None:
        super().__init__(
            message=f"Account {account_id} not found in Actual Budget",
            code=ErrorCode.ACCOUNT_NOT_FOUND,
            details={"account_id": account_id},
        )


class NoStartingTransactionError(BusinessRuleViolation):
    """Raised when the ledger account has no transactions to start from."""

    def __init__(self, account_id: str) -> None:
        super().__init__(
            message=(
                f"No transactions found in account {account_id}. "
                "Please create a starting balance transaction first."
            ),
            code=ErrorCode.NO_STARTING_TRANSACTION,
            details={"account_id": account_id},
        )
