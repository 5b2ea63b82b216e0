"""Ledger port interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import date

from trxsync.domain.banking.value_objects import Transaction
from trxsync.domain.ledger.value_objects import ImportResult, LedgerAccount, LedgerConfig


class LedgerPort(ABC):
    """
    Interface for the budgeting ledger transactions are imported into.

    One instance serves one import run: ``connect`` first, ``shutdown``
    last, regardless of the outcome.
    """

    @abstractmethod
    async def connect(self, config: LedgerConfig) -> None:
        """
        Open the budget file on the ledger server.

        Raises
        ------
        LedgerConnectionError
            If the server is unreachable or rejects the credentials
        LedgerVersionMismatchError
            If the server reports an incompatible version
        """

    @abstractmethod
    async def get_smart_start_date(self, account_id: str) -> date | None:
        """
        Compute the first day to fetch from the bank.

        Returns
        -------
        The latest existing transaction date minus one day, or None if
        the account has no transactions
        """

    @abstractmethod
    async def get_transactions(
        self,
        account_id: str,
        start_date: date,
        end_date: date,
    ) -> list[Transaction]:
        """
        List existing transactions of an account, both dates inclusive.

        Returned transactions carry their ledger id in ``ledger_id``.
        """

    @abstractmethod
    async def import_transactions(
        self,
        account_id: str,
        transactions: list[Transaction],
        dry_run: bool = False,
        superseded_ids: Sequence[str] = (),
    ) -> ImportResult:
        """
        Import transactions into an account.

        Parameters
        ----------
        account_id
            Ledger account to import into
        transactions
            Cleaned transactions; must not be empty
        dry_run
            When True nothing is written and ``added`` is the batch size
        superseded_ids
            Existing transactions replaced by members of the batch; they
            are deleted before the write

        Raises
        ------
        LedgerImportError
            If the ledger rejects the write
        """

    @abstractmethod
    async def list_accounts(self) -> list[LedgerAccount]:
        """List all accounts of the open budget."""

    @abstractmethod
    async def shutdown(self) -> None:
        """Close the budget and release connections. Safe to call twice."""
