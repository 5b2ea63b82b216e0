"""Ledger value objects."""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, SecretStr


class LedgerConfig(BaseModel):
    """Connection settings for the ledger server."""

    server_url: str
    password: SecretStr
    sync_id: str
    encryption_key: SecretStr | None = None
    timeout: float = 30.0

    model_config = ConfigDict(frozen=True)


class LedgerAccount(BaseModel):
    """An account as listed by the ledger."""

    id: str
    name: str
    closed: bool = False
    offbudget: bool = False

    model_config = ConfigDict(frozen=True, extra="ignore")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "closed": self.closed,
            "offbudget": self.offbudget,
        }


@dataclass
class ImportResult:
    """What the ledger did (or would do) with an import batch."""

    added: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)
    dry_run: bool = False
