"""Schemas for the ledger accounts endpoint."""

from pydantic import BaseModel, Field

from trxsync.domain.ledger.value_objects import LedgerAccount


class AccountResponse(BaseModel):
    id: str = Field(..., description="Ledger account id (use as actualAccountId)")
    name: str
    closed: bool = False
    offbudget: bool = False

    @classmethod
    def from_account(cls, account: LedgerAccount) -> "AccountResponse":
        return cls(
            id=account.id,
            name=account.name,
            closed=account.closed,
            offbudget=account.offbudget,
        )


class AccountListResponse(BaseModel):
    success: bool = True
    accounts: list[AccountResponse] = Field(default_factory=list)
    count: int
