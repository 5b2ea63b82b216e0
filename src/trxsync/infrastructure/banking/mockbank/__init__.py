"""Deterministic bank for development and tests."""

from trxsync.infrastructure.banking.mockbank.mock_bank_integration import (
    MockBankIntegration,
)

__all__ = ["MockBankIntegration"]
