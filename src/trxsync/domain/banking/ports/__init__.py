"""Ports (interfaces) for the banking domain."""

from trxsync.domain.banking.ports.bank_integration_port import (
    AuthListener,
    BankIntegration,
)

__all__ = ["AuthListener", "BankIntegration"]
