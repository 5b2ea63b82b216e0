"""Schemas for the profiles endpoint."""

from typing import Any

from pydantic import BaseModel, Field

from trxsync.domain.configuration import Profile


class ProfileResponse(BaseModel):
    name: str
    bank: str
    actual_account_id: str = Field(..., serialization_alias="actualAccountId")
    bank_params: dict[str, Any] = Field(
        default_factory=dict,
        serialization_alias="bankParams",
    )

    @classmethod
    def from_profile(cls, profile: Profile) -> "ProfileResponse":
        return cls(
            name=profile.name,
            bank=profile.bank,
            actual_account_id=profile.actual_account_id,
            bank_params=dict(profile.bank_params),
        )


class ProfileListResponse(BaseModel):
    """All configured import profiles."""

    success: bool = True
    profiles: list[ProfileResponse] = Field(default_factory=list)
    count: int = Field(..., description="Number of profiles")
