"""Domain services for the banking domain."""

from trxsync.domain.banking.services.deduplication_policy import (
    DeduplicationPolicy,
    ExternalIdPolicy,
    MatchDecision,
    PreliminaryReplacePolicy,
)

__all__ = [
    "DeduplicationPolicy",
    "ExternalIdPolicy",
    "MatchDecision",
    "PreliminaryReplacePolicy",
]
