"""Bank integrations and the registry that selects them by name."""

from trxsync.infrastructure.banking.registry import BankRegistry

__all__ = ["BankRegistry"]
