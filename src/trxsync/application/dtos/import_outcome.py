"""DTO for import command result."""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class ImportOutcome:
    """Result of one import run.

    On failure ``success`` is False and ``error_message`` holds the
    user-facing message; the counters reflect whatever was reached.
    """

    success: bool
    profile: str
    dry_run: bool
    added: int = 0
    skipped: int = 0
    fetched: int = 0
    replaced: int = 0
    dedup_skipped: int = 0
    errors: list[str] = field(default_factory=list)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "profile": self.profile,
            "dry_run": self.dry_run,
            "added": self.added,
            "skipped": self.skipped,
            "fetched": self.fetched,
            "replaced": self.replaced,
            "dedup_skipped": self.dedup_skipped,
            "errors": list(self.errors),
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "error_message": self.error_message,
            "error_code": self.error_code,
        }
