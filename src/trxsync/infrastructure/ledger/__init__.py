"""Ledger adapters."""

from __future__ import annotations

from typing import TYPE_CHECKING

from trxsync.infrastructure.ledger.actual_http_ledger import ActualHttpLedger
from trxsync.infrastructure.ledger.in_memory_ledger import InMemoryLedger

if TYPE_CHECKING:
    from trxsync.domain.ledger.ports import LedgerPort
    from trxsync_config import Settings


def create_ledger(settings: Settings) -> LedgerPort:
    """Pick the ledger adapter for the configured mode."""
    if settings.use_mock_services:
        return InMemoryLedger.demo()
    return ActualHttpLedger()


__all__ = ["ActualHttpLedger", "InMemoryLedger", "create_ledger"]
