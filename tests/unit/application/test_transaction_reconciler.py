"""Unit tests for TransactionReconciler."""

from datetime import date, timedelta
from unittest.mock import AsyncMock

import pytest

from trxsync.application.services import TransactionReconciler
from trxsync.domain.banking.value_objects import DedupConfig, DedupResult, Transaction
from trxsync.domain.ledger.exceptions import LedgerConnectionError

START = date(2025, 3, 10)
END = date(2025, 3, 15)


def _tx(day, external_id, amount=-1000):
    return Transaction(
        date=day,
        amount=amount,
        payee_name="Payee",
        external_id=external_id,
    )


def _fetched(count=10):
    return [_tx(START + timedelta(days=i % 5), f"id-{i}") for i in range(count)]


class TestReconcile:
    def test_disabled_returns_input_untouched(self):
        reconciler = TransactionReconciler(DedupConfig(enabled=False))
        new = _fetched()

        result = reconciler.reconcile(new, list(new))

        assert result.transactions == new
        assert result.skipped_count == 0
        assert result.replaced_count == 0

    def test_empty_ledger_keeps_everything(self):
        reconciler = TransactionReconciler(DedupConfig(enabled=True))
        new = _fetched()

        result = reconciler.reconcile(new, [])

        assert result.transactions == new
        assert result.skipped_count == 0

    def test_all_duplicates(self):
        reconciler = TransactionReconciler(DedupConfig(enabled=True, overlap_days=1))
        new = _fetched()

        result = reconciler.reconcile(new, list(new), START)

        assert result.transactions == []
        assert result.skipped_count == len(new)

    def test_two_known_ids_inside_window(self):
        reconciler = TransactionReconciler(DedupConfig(enabled=True, overlap_days=1))
        new = _fetched(10)
        existing = [new[0], new[3]]

        result = reconciler.reconcile(new, existing, START)

        assert len(result.transactions) == 8
        assert result.skipped_count == 2
        assert new[0] not in result.transactions

    def test_zero_overlap_ignores_existing_before_start(self):
        reconciler = TransactionReconciler(DedupConfig(enabled=True, overlap_days=0))
        new = [_tx(START, "moved")]
        existing = [_tx(START - timedelta(days=1), "moved")]

        result = reconciler.reconcile(new, existing, START)

        assert result.transactions == new
        assert result.skipped_count == 0

    def test_overlap_widens_window(self):
        reconciler = TransactionReconciler(DedupConfig(enabled=True, overlap_days=3))
        new = [_tx(START, "moved")]
        inside = [_tx(START - timedelta(days=3), "moved")]
        outside = [_tx(START - timedelta(days=4), "moved")]

        assert reconciler.reconcile(new, inside, START).skipped_count == 1
        assert reconciler.reconcile(new, outside, START).skipped_count == 0

    def test_start_defaults_to_earliest_new_transaction(self):
        reconciler = TransactionReconciler(DedupConfig(enabled=True, overlap_days=0))
        new = [_tx(START + timedelta(days=2), "a"), _tx(START, "b")]
        existing = [_tx(START, "b"), _tx(START - timedelta(days=1), "a")]

        result = reconciler.reconcile(new, existing)

        assert [tx.external_id for tx in result.transactions] == ["a"]

    def test_policy_failure_degrades_to_import_all(self):
        def broken(new, existing):
            raise RuntimeError("policy exploded")

        reconciler = TransactionReconciler(DedupConfig(enabled=True), broken)
        new = _fetched(3)

        result = reconciler.reconcile(new, list(new), START)

        assert result.transactions == new
        assert result.skipped_count == 0
        assert "policy exploded" in result.errors[0]

    def test_custom_policy_is_used(self):
        calls = []

        def policy(new, existing):
            calls.append((len(new), len(existing)))
            return DedupResult(transactions=new[:1], replaced_count=1)

        reconciler = TransactionReconciler(DedupConfig(enabled=True), policy)

        result = reconciler.reconcile(_fetched(3), [_tx(START, "x")], START)

        assert calls == [(3, 1)]
        assert result.replaced_count == 1


class TestReconcileWithLedger:
    @pytest.mark.asyncio
    async def test_queries_overlap_window(self):
        ledger = AsyncMock()
        ledger.get_transactions.return_value = []
        reconciler = TransactionReconciler(DedupConfig(enabled=True, overlap_days=7))

        await reconciler.reconcile_with_ledger(_fetched(2), ledger, "acc", START, END)

        ledger.get_transactions.assert_awaited_once_with(
            "acc",
            START - timedelta(days=7),
            END,
        )

    @pytest.mark.asyncio
    async def test_disabled_never_queries_ledger(self):
        ledger = AsyncMock()
        reconciler = TransactionReconciler(DedupConfig(enabled=False))

        result = await reconciler.reconcile_with_ledger(
            _fetched(2),
            ledger,
            "acc",
            START,
            END,
        )

        assert len(result.transactions) == 2
        ledger.get_transactions.assert_not_called()

    @pytest.mark.asyncio
    async def test_ledger_failure_degrades_to_import_all(self):
        ledger = AsyncMock()
        ledger.get_transactions.side_effect = LedgerConnectionError("down")
        reconciler = TransactionReconciler(DedupConfig(enabled=True))
        new = _fetched(4)

        result = await reconciler.reconcile_with_ledger(new, ledger, "acc", START, END)

        assert result.transactions == new
        assert result.errors
        assert "could not load existing transactions" in result.errors[0]
