"""Import profile value objects."""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from trxsync.domain.ledger.value_objects import LedgerConfig

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


class Profile(BaseModel):
    """A named import setup: which bank account goes to which ledger account."""

    name: str = Field(..., min_length=1)
    bank: str = Field(..., min_length=1)
    bank_params: dict[str, Any] = Field(default_factory=dict, alias="bankParams")
    actual_account_id: str = Field(..., alias="actualAccountId")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @field_validator("actual_account_id")
    @classmethod
    def _validate_account_id(cls, value: str) -> str:
        if not UUID_PATTERN.match(value):
            msg = f"actualAccountId must be a UUID, got '{value}'"
            raise ValueError(msg)
        return value

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "bank": self.bank,
            "bankParams": dict(self.bank_params),
            "actualAccountId": self.actual_account_id,
        }


class ImportConfig(BaseModel):
    """Everything one import run needs, validated before any network call."""

    profile: Profile
    ledger: LedgerConfig

    model_config = ConfigDict(frozen=True)
