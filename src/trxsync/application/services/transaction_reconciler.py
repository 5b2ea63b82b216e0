"""Reconcile freshly fetched transactions against the ledger.

Only existing transactions dated on or after ``start - overlap_days``
are considered, which catches bookings whose date moved while they
settled. Reconciliation never aborts an import: any failure degrades
to importing everything and is recorded in ``DedupResult.errors``.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import TYPE_CHECKING, Callable, Optional

from trxsync.domain.banking.services import ExternalIdPolicy
from trxsync.domain.banking.value_objects import DedupConfig, DedupResult, Transaction

if TYPE_CHECKING:
    from trxsync.domain.ledger.ports import LedgerPort

logger = logging.getLogger(__name__)

DedupFunction = Callable[[list[Transaction], list[Transaction]], DedupResult]


class TransactionReconciler:
    """Apply a bank's dedup policy inside the overlap window."""

    def __init__(
        self,
        config: DedupConfig,
        dedup: Optional[DedupFunction] = None,
    ):
        self._config = config
        self._dedup = dedup or ExternalIdPolicy().apply

    @property
    def config(self) -> DedupConfig:
        return self._config

    def window_start(self, start_date: date) -> date:
        return start_date - timedelta(days=self._config.overlap_days)

    def reconcile(
        self,
        new_transactions: list[Transaction],
        existing_transactions: list[Transaction],
        start_date: Optional[date] = None,
    ) -> DedupResult:
        """Drop or replace new transactions already present in the ledger.

        ``start_date`` defaults to the earliest new transaction.
        """
        if not self._config.enabled or not new_transactions:
            return DedupResult.passthrough(new_transactions)

        if start_date is None:
            start_date = min(tx.date for tx in new_transactions)
        cutoff = self.window_start(start_date)

        try:
            candidates = [tx for tx in existing_transactions if tx.date >= cutoff]
            result = self._dedup(list(new_transactions), candidates)
        except Exception as e:
            logger.warning("Deduplication failed, importing all: %s", e, exc_info=True)
            return DedupResult.passthrough(
                new_transactions,
                error=f"Deduplication failed: {e}",
            )

        logger.info(
            "Deduplication kept %d of %d (%d replaced, %d skipped, window from %s)",
            len(result.transactions),
            len(new_transactions),
            result.replaced_count,
            result.skipped_count,
            cutoff,
        )
        return result

    async def reconcile_with_ledger(
        self,
        new_transactions: list[Transaction],
        ledger: LedgerPort,
        account_id: str,
        start_date: date,
        end_date: date,
    ) -> DedupResult:
        """Query the ledger for the overlap window, then reconcile."""
        if not self._config.enabled or not new_transactions:
            return DedupResult.passthrough(new_transactions)

        query_start = self.window_start(start_date)
        try:
            existing = await ledger.get_transactions(account_id, query_start, end_date)
        except Exception as e:
            logger.warning("Could not load existing transactions: %s", e)
            return DedupResult.passthrough(
                new_transactions,
                error=f"Deduplication skipped, could not load existing transactions: {e}",
            )

        logger.debug(
            "Loaded %d existing transactions for %s (%s to %s)",
            len(existing),
            account_id,
            query_start,
            end_date,
        )
        return self.reconcile(new_transactions, existing, start_date)
