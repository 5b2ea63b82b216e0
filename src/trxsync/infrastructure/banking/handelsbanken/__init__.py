"""Handelsbanken (Sweden) BankID integration."""

from trxsync.infrastructure.banking.handelsbanken.api_client import (
    HandelsbankenApiClient,
)
from trxsync.infrastructure.banking.handelsbanken.handelsbanken_integration import (
    HandelsbankenIntegration,
)

__all__ = ["HandelsbankenApiClient", "HandelsbankenIntegration"]
