"""Centralized exception handlers for the FastAPI application.

Domain exceptions are mapped to HTTP responses with a consistent body:

    {
        "detail": "Human-readable error message",
        "code": "MACHINE_READABLE_ERROR_CODE"
    }

The import stream never goes through these handlers; its failures are
reported as ``error`` events inside the stream.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from trxsync.domain.banking.exceptions import (
    BankAuthenticationError,
    BankConnectionError,
    BankingDomainError,
)
from trxsync.domain.shared.exceptions import (
    BusinessRuleViolation,
    DomainException,
    EntityNotFoundError,
    ErrorCode,
    ValidationError,
)

logger = logging.getLogger(__name__)


ERROR_CODE_TO_STATUS: dict[ErrorCode, int] = {
    # 400 Bad Request
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_DATE_RANGE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.CONFIGURATION_ERROR: status.HTTP_400_BAD_REQUEST,
    # 404 Not Found
    ErrorCode.ENTITY_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.PROFILE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.BANK_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.ACCOUNT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    # 422 Unprocessable Entity
    ErrorCode.BUSINESS_RULE_VIOLATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.NO_STARTING_TRANSACTION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.DEDUPLICATION_FAILED: status.HTTP_422_UNPROCESSABLE_ENTITY,
    # 401 Unauthorized
    ErrorCode.BANK_AUTHENTICATION_FAILED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.AUTH_SESSION_EXPIRED: status.HTTP_401_UNAUTHORIZED,
    # 503 Service Unavailable
    ErrorCode.BANK_CONNECTION_FAILED: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.BANK_TRANSACTION_FETCH_FAILED: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.LEDGER_CONNECTION_FAILED: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.LEDGER_VERSION_MISMATCH: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.IMPORT_FAILED: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.EVENT_BUS_FULL: status.HTTP_503_SERVICE_UNAVAILABLE,
    # 504 Gateway Timeout
    ErrorCode.AUTH_TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
    # 500 Internal Server Error
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_status_for_exception(exc: DomainException) -> int:
    """HTTP status for a domain exception, by code then by type."""
    if exc.code in ERROR_CODE_TO_STATUS:
        return ERROR_CODE_TO_STATUS[exc.code]

    if isinstance(exc, EntityNotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, BusinessRuleViolation):
        return status.HTTP_422_UNPROCESSABLE_ENTITY

    return status.HTTP_400_BAD_REQUEST


def _create_error_response(
    status_code: int,
    message: str,
    code: str,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": message,
            "code": code,
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI application.

    Parameters
    ----------
    app
        The FastAPI application instance
    """

    @app.exception_handler(DomainException)
    async def domain_exception_handler(
        request: Request,
        exc: DomainException,
    ) -> JSONResponse:
        status_code = get_status_for_exception(exc)
        logger.warning(
            "Domain exception on %s %s: %s (code=%s, details=%s)",
            request.method,
            request.url.path,
            exc.message,
            exc.code.value,
            exc.details,
        )
        return _create_error_response(
            status_code=status_code,
            message=exc.message,
            code=exc.code.value,
        )

    @app.exception_handler(BankingDomainError)
    async def banking_exception_handler(
        request: Request,
        exc: BankingDomainError,
    ) -> JSONResponse:
        """Banking errors usually mean the bank is unhappy, not a bug here."""
        if isinstance(exc, BankAuthenticationError):
            logger.warning(
                "Bank authentication failed on %s %s: %s",
                request.method,
                request.url.path,
                exc.message,
            )
            return _create_error_response(
                status_code=status.HTTP_401_UNAUTHORIZED,
                message=exc.message,
                code=exc.code.value,
            )

        if isinstance(exc, BankConnectionError):
            logger.warning(
                "Bank connection error on %s %s: %s",
                request.method,
                request.url.path,
                exc.message,
            )
            return _create_error_response(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                message="Failed to connect to bank. Please try again later.",
                code=ErrorCode.BANK_CONNECTION_FAILED.value,
            )

        status_code = get_status_for_exception(exc)
        logger.warning(
            "Banking error on %s %s: %s (code=%s)",
            request.method,
            request.url.path,
            exc.message,
            exc.code.value,
        )
        return _create_error_response(
            status_code=status_code,
            message=exc.message,
            code=exc.code.value,
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        logger.exception(
            "Unhandled exception on %s %s: %s",
            request.method,
            request.url.path,
            exc,
        )
        return _create_error_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message="An internal error occurred",
            code=ErrorCode.INTERNAL_ERROR.value,
        )
