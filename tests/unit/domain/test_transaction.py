"""Unit tests for the Transaction value object."""

from datetime import date, datetime

import pytest
from pydantic import ValidationError

from trxsync.domain.banking.value_objects import DedupConfig, Transaction
from trxsync.domain.shared.exceptions import ConfigurationError


class TestTransaction:
    def test_date_field_is_a_calendar_date(self):
        assert Transaction.model_fields["date"].annotation is date

    def test_date_accepts_iso_timestamp(self):
        tx = Transaction(date="2025-03-14T09:12:00Z", amount=-100)
        assert tx.date == date(2025, 3, 14)

    def test_date_accepts_datetime(self):
        tx = Transaction(date=datetime(2025, 3, 14, 23, 59), amount=-100)
        assert tx.date == date(2025, 3, 14)

    def test_invalid_date_rejected(self):
        with pytest.raises(ValidationError):
            Transaction(date="14/03/2025", amount=-100)

    def test_is_immutable(self):
        tx = Transaction(date=date(2025, 3, 14), amount=-100)
        with pytest.raises(ValidationError):
            tx.amount = 5  # type: ignore[misc]

    def test_credit_and_debit(self):
        assert Transaction(date=date(2025, 3, 14), amount=100).is_credit()
        assert Transaction(date=date(2025, 3, 14), amount=-100).is_debit()

    def test_ledger_payload_maps_external_id_and_omits_unset(self):
        tx = Transaction(
            date=date(2025, 3, 14),
            amount=-24550,
            payee_name="ICA",
            external_id="2025-03-14-1-0900",
        )

        payload = tx.to_ledger_payload("acc-1")

        assert payload == {
            "date": "2025-03-14",
            "amount": -24550,
            "account": "acc-1",
            "payee_name": "ICA",
            "imported_id": "2025-03-14-1-0900",
        }

    def test_from_ledger_payload_keeps_ledger_id(self):
        tx = Transaction.from_ledger_payload(
            {
                "id": "ledger-1",
                "date": "2025-03-10",
                "amount": -500,
                "imported_payee": "Prel ICA",
                "imported_id": "abc",
            },
        )

        assert tx.ledger_id == "ledger-1"
        assert tx.payee_name == "Prel ICA"
        assert tx.external_id == "abc"
        assert "ledger_id" not in tx.model_dump()


class TestDedupConfig:
    def test_profile_block_overrides_default(self):
        default = DedupConfig(enabled=True, overlap_days=7)
        config = DedupConfig.from_params(
            {"deduplication": {"enabled": False, "overlapDays": 3}},
            default,
        )
        assert config == DedupConfig(enabled=False, overlap_days=3)

    def test_missing_block_keeps_default(self):
        default = DedupConfig(enabled=True, overlap_days=7)
        assert DedupConfig.from_params({}, default) is default

    def test_partial_block_falls_back_per_field(self):
        default = DedupConfig(enabled=True, overlap_days=7)
        config = DedupConfig.from_params({"deduplication": {"overlap_days": 0}}, default)
        assert config.enabled is True
        assert config.overlap_days == 0

    def test_negative_overlap_rejected(self):
        with pytest.raises(ValidationError):
            DedupConfig(enabled=True, overlap_days=-1)

    def test_string_booleans_are_coerced(self):
        default = DedupConfig(enabled=True, overlap_days=7)
        config = DedupConfig.from_params(
            {"deduplication": {"enabled": "false"}},
            default,
        )
        assert config.enabled is False

    @pytest.mark.parametrize(
        "block",
        [
            {"overlapDays": -2},
            {"overlapDays": "abc"},
            {"enabled": "maybe"},
            "on",
        ],
    )
    def test_invalid_block_is_configuration_error(self, block):
        with pytest.raises(ConfigurationError, match="deduplication"):
            DedupConfig.from_params({"deduplication": block}, DedupConfig())
