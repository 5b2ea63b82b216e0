"""Transaction value object."""

from __future__ import annotations

import datetime as dt
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from trxsync.domain.shared.time import parse_calendar_date


class Transaction(BaseModel):
    """A normalized transaction, ready for import into the ledger.

    ``external_id`` is the deduplication key. When present it must be
    unique per source account; the ledger stores it as ``imported_id``.
    """

    date: dt.date = Field(..., description="Booking date, serialized YYYY-MM-DD")
    amount: int = Field(..., description="Signed amount in cents")
    payee_name: str | None = Field(default=None, description="Counterparty")
    imported_payee: str | None = Field(default=None, description="Raw bank text")
    external_id: str | None = Field(default=None, description="Dedup key")
    notes: str | None = None
    cleared: bool | None = None
    subtransactions: tuple[Transaction, ...] = ()

    # Ledger-side id, only set on transactions read back from the ledger
    ledger_id: str | None = Field(default=None, exclude=True)

    model_config = ConfigDict(
        frozen=True,  # Immutable
        str_strip_whitespace=True,
    )

    @field_validator("date", mode="before")
    @classmethod
    def _normalize_date(cls, value: Any) -> dt.date:
        return parse_calendar_date(value)

    @field_serializer("date")
    def serialize_date(self, value: dt.date) -> str:
        return value.isoformat()

    def is_credit(self) -> bool:
        return self.amount > 0

    def is_debit(self) -> bool:
        return self.amount < 0

    def to_ledger_payload(self, account_id: str | None = None) -> dict[str, Any]:
        """Build the ledger import entity.

        Only fields the ledger understands are included and unset
        optionals are omitted. Subtransactions are reduced to amount,
        notes and category-less splits.
        """
        payload: dict[str, Any] = {"date": self.date.isoformat(), "amount": self.amount}
        if account_id is not None:
            payload["account"] = account_id
        if self.payee_name is not None:
            payload["payee_name"] = self.payee_name
        if self.imported_payee is not None:
            payload["imported_payee"] = self.imported_payee
        if self.external_id is not None:
            payload["imported_id"] = self.external_id
        if self.notes is not None:
            payload["notes"] = self.notes
        if self.cleared is not None:
            payload["cleared"] = self.cleared
        if self.subtransactions:
            payload["subtransactions"] = [
                {"amount": sub.amount, **({"notes": sub.notes} if sub.notes else {})}
                for sub in self.subtransactions
            ]
        return payload

    @classmethod
    def from_ledger_payload(cls, data: dict[str, Any]) -> Transaction:
        """Build a transaction from an entity returned by the ledger."""
        return cls(
            date=data["date"],
            amount=int(data.get("amount") or 0),
            payee_name=data.get("payee_name") or data.get("imported_payee"),
            imported_payee=data.get("imported_payee"),
            external_id=data.get("imported_id"),
            notes=data.get("notes"),
            cleared=data.get("cleared"),
            ledger_id=data.get("id"),
        )
