"""Shared domain exceptions and error codes.

This module defines the base exception hierarchy and error codes for the
entire domain layer. All domain exceptions should inherit from DomainException
to enable centralized exception handling in the presentation layer and in
the import event stream.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Stable error codes for API clients.

    These codes are part of the public API contract. Should not be changed.
    """

    # Validation Errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Not Found Errors (404)
    ENTITY_NOT_FOUND = "ENTITY_NOT_FOUND"
    PROFILE_NOT_FOUND = "PROFILE_NOT_FOUND"
    BANK_NOT_FOUND = "BANK_NOT_FOUND"
    ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"

    # Business Rule Violations (422)
    BUSINESS_RULE_VIOLATION = "BUSINESS_RULE_VIOLATION"
    NO_STARTING_TRANSACTION = "NO_STARTING_TRANSACTION"

    # Banking Errors (401/503/504)
    BANK_CONNECTION_FAILED = "BANK_CONNECTION_FAILED"
    BANK_AUTHENTICATION_FAILED = "BANK_AUTHENTICATION_FAILED"
    AUTH_SESSION_EXPIRED = "AUTH_SESSION_EXPIRED"
    AUTH_TIMEOUT = "AUTH_TIMEOUT"
    BANK_TRANSACTION_FETCH_FAILED = "BANK_TRANSACTION_FETCH_FAILED"

    # Reconciliation
    DEDUPLICATION_FAILED = "DEDUPLICATION_FAILED"

    # Ledger Errors (503)
    LEDGER_CONNECTION_FAILED = "LEDGER_CONNECTION_FAILED"
    LEDGER_VERSION_MISMATCH = "LEDGER_VERSION_MISMATCH"
    IMPORT_FAILED = "IMPORT_FAILED"

    # Event delivery
    EVENT_BUS_FULL = "EVENT_BUS_FULL"

    # General Errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class DomainException(Exception):  # NOQA: N818
    """Base exception for all domain-related errors.

    Attributes
    ----------
    message
        Human-readable error message (safe for end users)
    code
        Stable error code for programmatic handling
    details
        Optional additional context (logged but not exposed to users)
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code.value!r}, "
            f"details={self.details!r})"
        )


class ValidationError(DomainException):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class ConfigurationError(ValidationError):
    """Raised for a bad or missing profile, bank or global setting.

    Configuration errors are fatal and never retried.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFIGURATION_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class BusinessRuleViolation(DomainException):
    """Raised when a business rule or domain invariant is violated."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.BUSINESS_RULE_VIOLATION,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class EntityNotFoundError(DomainException):
    """Raised when a requested entity cannot be found."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.ENTITY_NOT_FOUND,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class EventBusFullError(DomainException):
    """Raised when an event bus refuses another subscriber."""

    def __init__(self, max_subscribers: int) -> None:
        super().__init__(
            message=f"Event bus accepts at most {max_subscribers} subscribers",
            code=ErrorCode.EVENT_BUS_FULL,
            details={"max_subscribers": max_subscribers},
        )
