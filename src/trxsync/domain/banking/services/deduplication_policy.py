"""Deduplication policies.

A policy decides, for each newly fetched transaction, whether it is
new, a duplicate of an existing ledger transaction (skip) or a better
version of one (replace). The reconciler only hands a policy the
existing transactions inside the overlap window.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum

from trxsync.domain.banking.value_objects import DedupResult, Transaction

logger = logging.getLogger(__name__)


class MatchDecision(str, Enum):
    KEEP = "keep"
    SKIP = "skip"
    REPLACE = "replace"


class DeduplicationPolicy(ABC):
    """Base class for bank-specific matching rules."""

    @abstractmethod
    def find_match(
        self,
        candidate: Transaction,
        existing: list[Transaction],
    ) -> Transaction | None:
        """Return the existing transaction ``candidate`` duplicates, if any."""

    def decide(self, candidate: Transaction, match: Transaction) -> MatchDecision:
        """Decide what to do with a matched candidate. Default: skip."""
        return MatchDecision.SKIP

    def apply(
        self,
        new_transactions: list[Transaction],
        existing_transactions: list[Transaction],
    ) -> DedupResult:
        result = DedupResult(transactions=[])
        for candidate in new_transactions:
            match = self.find_match(candidate, existing_transactions)
            if match is None:
                result.transactions.append(candidate)
                continue

            decision = self.decide(candidate, match)
            if decision is MatchDecision.REPLACE:
                result.transactions.append(candidate)
                result.replaced_count += 1
                if match.ledger_id:
                    result.superseded_ids.append(match.ledger_id)
                logger.debug(
                    "Replacing %s (%d) with %s",
                    match.payee_name,
                    match.amount,
                    candidate.payee_name,
                )
            elif decision is MatchDecision.SKIP:
                result.skipped_count += 1
                logger.debug(
                    "Skipping duplicate %s (%d)",
                    candidate.payee_name,
                    candidate.amount,
                )
            else:
                result.transactions.append(candidate)
        return result


class ExternalIdPolicy(DeduplicationPolicy):
    """Matches on ``external_id`` and drops duplicates."""

    def find_match(
        self,
        candidate: Transaction,
        existing: list[Transaction],
    ) -> Transaction | None:
        if not candidate.external_id:
            return None
        for tx in existing:
            if tx.external_id == candidate.external_id:
                return tx
        return None


class PreliminaryReplacePolicy(ExternalIdPolicy):
    """Replaces provisional bookings with their final version.

    Banks that list pending card purchases prefix the payee text (for
    example ``"Prel "``) until the booking settles, at which point the
    final booking gets a new id. A final booking supersedes a matching
    preliminary one; a preliminary booking never supersedes a final one.

    Matching tries ``external_id`` first, then same date, amount within
    one cent and payees where one contains the other once the prefix is
    stripped (bank payee texts are truncated).
    """

    def __init__(self, preliminary_prefix: str = "Prel ") -> None:
        self.preliminary_prefix = preliminary_prefix

    def is_preliminary(self, transaction: Transaction) -> bool:
        return (transaction.payee_name or "").startswith(self.preliminary_prefix)

    def _clean_payee(self, payee: str) -> str:
        if payee.startswith(self.preliminary_prefix):
            return payee[len(self.preliminary_prefix) :]
        return payee

    def similar_payee(self, first: str | None, second: str | None) -> bool:
        if not first or not second:
            return False
        a = self._clean_payee(first)
        b = self._clean_payee(second)
        return a in b or b in a

    def find_match(
        self,
        candidate: Transaction,
        existing: list[Transaction],
    ) -> Transaction | None:
        by_id = super().find_match(candidate, existing)
        if by_id is not None:
            return by_id
        for tx in existing:
            if (
                tx.date == candidate.date
                and abs(tx.amount - candidate.amount) < 1
                and self.similar_payee(tx.payee_name, candidate.payee_name)
            ):
                return tx
        return None

    def decide(self, candidate: Transaction, match: Transaction) -> MatchDecision:
        # The ledger drops a known imported_id, so the stored row must stay
        if candidate.external_id and candidate.external_id == match.external_id:
            return MatchDecision.SKIP
        if self.is_preliminary(match) and not self.is_preliminary(candidate):
            return MatchDecision.REPLACE
        return MatchDecision.SKIP
