"""Banking domain exceptions.

This module defines exceptions specific to the banking bounded context,
including login handshake failures, date range validation and
transaction fetch errors.

These exceptions represent errors from external bank integrations and
typically map to 4xx/5xx HTTP responses.
"""

from __future__ import annotations

from datetime import date

from trxsync.domain.shared.exceptions import (
    ConfigurationError,
    DomainException,
    ErrorCode,
    ValidationError,
)

# =============================================================================
# Base Banking Exception
# =============================================================================


class BankingDomainError(DomainException):
    """Base exception for banking domain errors.

    All banking-related exceptions should inherit from this class to
    enable consistent handling of bank integration issues.
    """


# =============================================================================
# Lookup Exceptions
# =============================================================================


class BankNotFoundError(ConfigurationError):
    """Raised when a bank name is not present in the registry."""

    def __init__(self, bank: str, available: list[str]) -> None:
        listing = ", ".join(available) if available else "none"
        super().__init__(
            message=f"Bank '{bank}' is not supported. Available banks: {listing}",
            code=ErrorCode.BANK_NOT_FOUND,
            details={"bank": bank, "available": available},
        )


class MissingBankParamsError(ConfigurationError):
    """Raised when a bank integration lacks required parameters."""

    def __init__(self, bank: str, missing: list[str]) -> None:
        super().__init__(
            message=(
                f"Missing required parameters for bank '{bank}': "
                f"{', '.join(missing)}"
            ),
            details={"bank": bank, "missing": missing},
        )


# =============================================================================
# Connection / Authentication Exceptions
# =============================================================================


class BankConnectionError(BankingDomainError):
    """Raised when the bank cannot be reached.

    This is a general connection error. Use more specific subclasses
    when the cause is known (e.g., BankAuthenticationError).
    """

    def __init__(
        self,
        message: str = "Failed to connect to bank",
        bank: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.BANK_CONNECTION_FAILED,
            details={"bank": bank} if bank else None,
        )


class BankAuthenticationError(BankConnectionError):
    """Raised when the bank login handshake fails.

    Fatal for the run. The user may retry from the UI.
    """

    def __init__(
        self,
        message: str = "Bank authentication failed. Please try again.",
        bank: str | None = None,
    ) -> None:
        super().__init__(message=message, bank=bank)
        self.code = ErrorCode.BANK_AUTHENTICATION_FAILED


class AuthSessionExpiredError(BankAuthenticationError):
    """Raised when the login handshake expired before it was approved."""

    def __init__(
        self,
        message: str = "Bank login expired. Please scan the QR code again.",
        bank: str | None = None,
    ) -> None:
        super().__init__(message=message, bank=bank)
        self.code = ErrorCode.AUTH_SESSION_EXPIRED


class AuthTimeoutError(BankingDomainError):
    """Raised when no QR token appears within the wait window."""

    def __init__(
        self,
        timeout_seconds: float,
        message: str | None = None,
    ) -> None:
        super().__init__(
            message=message
            or f"Timed out after {timeout_seconds:g}s waiting for a QR code",
            code=ErrorCode.AUTH_TIMEOUT,
            details={"timeout_seconds": timeout_seconds},
        )


class BankSessionStateError(BankingDomainError):
    """Raised when a session operation is called in the wrong state."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code=ErrorCode.BUSINESS_RULE_VIOLATION)


# =============================================================================
# Transaction Fetch Exceptions
# =============================================================================


class InvalidDateRangeError(ValidationError):
    """Raised when a fetch range starts after it ends."""

    def __init__(self, start_date: date, end_date: date) -> None:
        super().__init__(
            message=(
                f"Start date {start_date.isoformat()} is after "
                f"end date {end_date.isoformat()}"
            ),
            code=ErrorCode.INVALID_DATE_RANGE,
            details={
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
            },
        )


class BankAccountNotFoundError(BankingDomainError):
    """Raised when the configured account is not among the bank's accounts."""

    def __init__(self, account_name: str, available: list[str]) -> None:
        listing = ", ".join(available) if available else "none"
        super().__init__(
            message=(
                f"Account '{account_name}' not found. Available accounts: {listing}"
            ),
            code=ErrorCode.ACCOUNT_NOT_FOUND,
            details={"account_name": account_name, "available": available},
        )


class BankTransactionFetchError(BankingDomainError):
    """Raised when fetching transactions from the bank fails.

    The underlying cause is always chained; no partial results are kept.
    """

    def __init__(
        self,
        message: str = "Failed to fetch transactions from bank",
        bank: str | None = None,
        reason: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.BANK_TRANSACTION_FETCH_FAILED,
            details={"bank": bank, "reason": reason},
        )


class DeduplicationError(BankingDomainError):
    """Raised when matching against the ledger fails.

    Never fatal: the reconciler records the message and imports
    everything.
    """

    def __init__(self, message: str, reason: str | None = None) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.DEDUPLICATION_FAILED,
            details={"reason": reason} if reason else None,
        )
