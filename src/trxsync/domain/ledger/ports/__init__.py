"""Ports (interfaces) for the ledger domain."""

from trxsync.domain.ledger.ports.ledger_port import LedgerPort

__all__ = ["LedgerPort"]
