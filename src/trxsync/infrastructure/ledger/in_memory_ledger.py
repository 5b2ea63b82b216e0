"""In-memory ledger for development and tests."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from datetime import date, timedelta
from typing import Callable, Optional

from trxsync.domain.banking.value_objects import Transaction
from trxsync.domain.ledger.exceptions import (
    LedgerAccountNotFoundError,
    LedgerConnectionError,
    LedgerImportError,
)
from trxsync.domain.ledger.ports import LedgerPort
from trxsync.domain.ledger.value_objects import ImportResult, LedgerAccount, LedgerConfig
from trxsync.domain.shared.time import today_utc

logger = logging.getLogger(__name__)


class InMemoryLedger(LedgerPort):
    """Keeps accounts and transactions in dicts.

    Like Actual Budget, an ``imported_id`` that already exists in the
    account is reported as skipped instead of added. ``writes`` counts
    calls that reached the write path.
    """

    def __init__(
        self,
        accounts: Optional[list[LedgerAccount]] = None,
        auto_create_accounts: bool = False,
        opening_balance_days_ago: Optional[int] = None,
        today: Callable[[], date] = today_utc,
    ):
        self._accounts: dict[str, LedgerAccount] = {
            account.id: account for account in accounts or []
        }
        self._transactions: dict[str, list[Transaction]] = {
            account_id: [] for account_id in self._accounts
        }
        self._auto_create = auto_create_accounts
        self._opening_days = opening_balance_days_ago
        self._today = today
        self.connected = False
        self.connect_calls = 0
        self.shutdown_calls = 0
        self.writes = 0

    @classmethod
    def demo(cls) -> InMemoryLedger:
        """Ledger for mock mode: any account exists, opened 30 days ago."""
        return cls(auto_create_accounts=True, opening_balance_days_ago=30)

    def add_account(self, account_id: str, name: str = "Mock Account") -> None:
        self._accounts[account_id] = LedgerAccount(id=account_id, name=name)
        self._transactions.setdefault(account_id, [])

    def seed(self, account_id: str, transactions: list[Transaction]) -> None:
        if account_id not in self._accounts:
            self.add_account(account_id)
        for tx in transactions:
            stored = tx if tx.ledger_id else tx.model_copy(
                update={"ledger_id": str(uuid.uuid4())},
            )
            self._transactions[account_id].append(stored)

    def transactions(self, account_id: str) -> list[Transaction]:
        return list(self._transactions.get(account_id, []))

    def _require_connected(self) -> None:
        if not self.connected:
            msg = "Ledger is not connected. Call connect() first."
            raise LedgerConnectionError(msg)

    def _account(self, account_id: str) -> LedgerAccount:
        if account_id not in self._accounts and self._auto_create:
            self.add_account(account_id)
            if self._opening_days is not None:
                self.seed(
                    account_id,
                    [
                        Transaction(
                            date=self._today() - timedelta(days=self._opening_days),
                            amount=0,
                            payee_name="Starting Balance",
                        ),
                    ],
                )
        account = self._accounts.get(account_id)
        if account is None:
            raise LedgerAccountNotFoundError(account_id)
        return account

    async def connect(self, config: LedgerConfig) -> None:
        self.connect_calls += 1
        self.connected = True
        logger.debug("In-memory ledger connected (%s)", config.server_url)

    async def list_accounts(self) -> list[LedgerAccount]:
        self._require_connected()
        return list(self._accounts.values())

    async def get_transactions(
        self,
        account_id: str,
        start_date: date,
        end_date: date,
    ) -> list[Transaction]:
        self._require_connected()
        self._account(account_id)
        return [
            tx
            for tx in self._transactions[account_id]
            if start_date <= tx.date <= end_date
        ]

    async def get_smart_start_date(self, account_id: str) -> date | None:
        self._require_connected()
        self._account(account_id)
        existing = self._transactions[account_id]
        if not existing:
            return None
        return max(tx.date for tx in existing) - timedelta(days=1)

    async def import_transactions(
        self,
        account_id: str,
        transactions: list[Transaction],
        dry_run: bool = False,
        superseded_ids: Sequence[str] = (),
    ) -> ImportResult:
        self._require_connected()
        if not transactions:
            msg = "No transactions to import"
            raise LedgerImportError(msg)
        self._account(account_id)

        if dry_run:
            return ImportResult(added=len(transactions), dry_run=True)

        self.writes += 1
        stored = self._transactions[account_id]
        known_ids = {tx.external_id for tx in stored if tx.external_id}
        added = 0
        skipped = 0
        for tx in transactions:
            if tx.external_id and tx.external_id in known_ids:
                skipped += 1
                continue
            self.seed(account_id, [tx])
            if tx.external_id:
                known_ids.add(tx.external_id)
            added += 1

        if superseded_ids:
            doomed = set(superseded_ids)
            stored[:] = [tx for tx in stored if tx.ledger_id not in doomed]
        return ImportResult(added=added, skipped=skipped)

    async def shutdown(self) -> None:
        self.shutdown_calls += 1
        self.connected = False
