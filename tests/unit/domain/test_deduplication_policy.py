"""Unit tests for deduplication policies."""

from datetime import date

from trxsync.domain.banking.services import (
    ExternalIdPolicy,
    MatchDecision,
    PreliminaryReplacePolicy,
)
from trxsync.domain.banking.value_objects import Transaction

DAY = date(2025, 3, 10)


def _tx(payee, amount=-24550, external_id=None, ledger_id=None, day=DAY):
    return Transaction(
        date=day,
        amount=amount,
        payee_name=payee,
        external_id=external_id,
        ledger_id=ledger_id,
    )


class TestExternalIdPolicy:
    def setup_method(self):
        self.policy = ExternalIdPolicy()

    def test_drops_transactions_with_known_external_id(self):
        new = [_tx("A", external_id="1"), _tx("B", external_id="2")]
        existing = [_tx("A", external_id="1")]

        result = self.policy.apply(new, existing)

        assert [tx.external_id for tx in result.transactions] == ["2"]
        assert result.skipped_count == 1
        assert result.replaced_count == 0

    def test_transactions_without_external_id_are_kept(self):
        new = [_tx("A"), _tx("A")]
        existing = [_tx("A")]

        result = self.policy.apply(new, existing)

        assert len(result.transactions) == 2
        assert result.skipped_count == 0

    def test_all_duplicates(self):
        new = [_tx("A", external_id=str(i)) for i in range(4)]

        result = self.policy.apply(new, list(new))

        assert result.transactions == []
        assert result.skipped_count == 4


class TestPreliminaryReplacePolicy:
    def setup_method(self):
        self.policy = PreliminaryReplacePolicy("Prel ")

    def test_final_replaces_preliminary(self):
        existing = [_tx("Prel ICA NARA", external_id="old", ledger_id="L1")]
        new = [_tx("ICA NARA STOCKHOLM", external_id="new")]

        result = self.policy.apply(new, existing)

        assert result.transactions == new
        assert result.replaced_count == 1
        assert result.superseded_ids == ["L1"]

    def test_preliminary_never_replaces_final(self):
        existing = [_tx("ICA NARA", external_id="final", ledger_id="L1")]
        new = [_tx("Prel ICA NARA", external_id="prel")]

        result = self.policy.apply(new, existing)

        assert result.transactions == []
        assert result.skipped_count == 1
        assert result.superseded_ids == []

    def test_different_amount_is_not_a_match(self):
        existing = [_tx("Prel ICA", amount=-24550)]
        new = [_tx("ICA", amount=-24650)]

        result = self.policy.apply(new, existing)

        assert result.transactions == new
        assert result.replaced_count == 0
        assert result.skipped_count == 0

    def test_different_date_is_not_a_match(self):
        existing = [_tx("Prel ICA", day=date(2025, 3, 9))]
        new = [_tx("ICA")]

        assert self.policy.find_match(new[0], existing) is None

    def test_external_id_match_wins(self):
        existing = [_tx("Something else", amount=1, external_id="same")]
        candidate = _tx("ICA", external_id="same")

        assert self.policy.find_match(candidate, existing) is existing[0]
        assert self.policy.decide(candidate, existing[0]) is MatchDecision.SKIP

    def test_settled_booking_with_same_id_is_skipped(self):
        existing = [_tx("Prel ICA NARA", external_id="same", ledger_id="L1")]
        new = [_tx("ICA NARA", external_id="same")]

        result = self.policy.apply(new, existing)

        assert result.transactions == []
        assert result.skipped_count == 1
        assert result.superseded_ids == []

    def test_similar_payee(self):
        assert self.policy.similar_payee("Prel SPOTIFY", "SPOTIFY AB")
        assert not self.policy.similar_payee("NETFLIX", "SPOTIFY")
        assert not self.policy.similar_payee(None, "SPOTIFY")
