"""Deduplication value objects."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from trxsync.domain.banking.value_objects.transaction import Transaction
from trxsync.domain.shared.exceptions import ConfigurationError


class DedupConfig(BaseModel):
    """Controls the reconciliation window of one profile."""

    enabled: bool = False
    overlap_days: int = Field(default=1, ge=0)

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @classmethod
    def from_params(
        cls,
        params: dict[str, Any],
        default: DedupConfig,
    ) -> DedupConfig:
        """Read the ``deduplication`` block of bank params over a default.

        Raises
        ------
        ConfigurationError
            If the block is not an object or holds invalid values
        """
        raw = params.get("deduplication")
        if raw is None:
            return default
        if not isinstance(raw, dict):
            msg = "deduplication must be an object"
            raise ConfigurationError(msg)

        values = {
            "enabled": raw.get("enabled", default.enabled),
            "overlap_days": raw.get(
                "overlapDays",
                raw.get("overlap_days", default.overlap_days),
            ),
        }
        try:
            return cls.model_validate(values)
        except PydanticValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in e.errors()
            )
            msg = f"Invalid deduplication settings: {problems}"
            raise ConfigurationError(msg, details={"deduplication": raw}) from e


@dataclass
class DedupResult:
    """Outcome of reconciling one fetch against the ledger."""

    transactions: list[Transaction]
    replaced_count: int = 0
    skipped_count: int = 0
    errors: list[str] = field(default_factory=list)

    # Ledger ids of existing transactions superseded by a replacement
    superseded_ids: list[str] = field(default_factory=list)

    @classmethod
    def passthrough(
        cls,
        transactions: list[Transaction],
        error: str | None = None,
    ) -> DedupResult:
        return cls(
            transactions=list(transactions),
            errors=[error] if error else [],
        )
