"""Request and response schemas for the HTTP API."""

from trxsync.presentation.api.schemas.accounts import (
    AccountListResponse,
    AccountResponse,
)
from trxsync.presentation.api.schemas.common import ErrorResponse, HealthResponse
from trxsync.presentation.api.schemas.profiles import (
    ProfileListResponse,
    ProfileResponse,
)

__all__ = [
    "AccountListResponse",
    "AccountResponse",
    "ErrorResponse",
    "HealthResponse",
    "ProfileListResponse",
    "ProfileResponse",
]
