"""Profile store backed by profiles.json plus global ledger settings.

``profiles.json`` is a JSON object keyed by profile name::

    {
      "personal": {
        "bank": "handelsbanken",
        "bankParams": {"personnummer": "...", "accountName": "Lönekonto"},
        "actualAccountId": "0b0a1f4e-..."
      }
    }

Everything is validated before the first network call; every problem
surfaces as a ``ConfigurationError``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import SecretStr

from trxsync.domain.banking.value_objects import DedupConfig
from trxsync.domain.configuration import ImportConfig, Profile, ProfileNotFoundError
from trxsync.domain.configuration.profile import UUID_PATTERN
from trxsync.domain.ledger.value_objects import LedgerConfig
from trxsync.domain.shared.exceptions import ConfigurationError

if TYPE_CHECKING:
    from trxsync.infrastructure.banking.registry import BankRegistry
    from trxsync_config import Settings

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("bank", "bankParams", "actualAccountId")

# Placeholders so mock mode runs without a ledger server
_MOCK_LEDGER = LedgerConfig(
    server_url="mock://actual",
    password=SecretStr("mock"),
    sync_id="mock-sync-id",
)


class ProfileRepository:
    """Read-only access to import profiles."""

    def __init__(
        self,
        path: Path,
        registry: BankRegistry,
        settings: Settings,
    ):
        self._path = path
        self._registry = registry
        self._settings = settings

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        registry: BankRegistry,
    ) -> ProfileRepository:
        return cls(settings.resolved_profiles_path, registry, settings)

    @property
    def path(self) -> Path:
        return self._path

    def _load_raw(self) -> dict[str, Any]:
        if not self._path.is_file():
            msg = (
                f"Configuration file not found: {self._path}. "
                "Copy config/profiles.example.json to get started."
            )
            raise ConfigurationError(msg, details={"path": str(self._path)})
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            msg = f"Failed to parse {self._path.name}: {e}"
            raise ConfigurationError(msg) from e
        if not isinstance(data, dict):
            msg = f"{self._path.name} must contain a JSON object with profile definitions"
            raise ConfigurationError(msg)
        return data

    def _validate(self, name: str, raw: Any) -> Profile:
        if not isinstance(raw, dict):
            msg = f"Profile '{name}' must be a JSON object"
            raise ConfigurationError(msg, details={"profile": name})

        for field in REQUIRED_FIELDS:
            if raw.get(field) is None:
                msg = f"Profile '{name}' is missing required field: {field}"
                raise ConfigurationError(msg, details={"profile": name, "field": field})

        account_id = raw["actualAccountId"]
        if not isinstance(account_id, str) or not UUID_PATTERN.match(account_id):
            msg = (
                f"Profile '{name}' has invalid actualAccountId format. "
                "Expected UUID format."
            )
            raise ConfigurationError(msg, details={"profile": name})

        bank = raw["bank"]
        if not isinstance(bank, str) or not bank.strip():
            msg = f"Profile '{name}' has invalid bank name. Expected non-empty string."
            raise ConfigurationError(msg, details={"profile": name})
        if bank not in self._registry:
            msg = (
                f"Profile '{name}' specifies unknown bank: '{bank}'. "
                f"Available banks: {', '.join(self._registry.names())}"
            )
            raise ConfigurationError(msg, details={"profile": name, "bank": bank})

        if not isinstance(raw["bankParams"], dict):
            msg = f"Profile '{name}' has invalid bankParams. Expected object."
            raise ConfigurationError(msg, details={"profile": name})

        try:
            DedupConfig.from_params(raw["bankParams"], DedupConfig())
        except ConfigurationError as e:
            msg = f"Profile '{name}' has invalid bankParams.deduplication: {e.message}"
            raise ConfigurationError(msg, details={"profile": name}) from e

        return Profile(
            name=name,
            bank=bank.strip(),
            bank_params=raw["bankParams"],
            actual_account_id=account_id,
        )

    def list_profiles(self) -> list[Profile]:
        """All profiles, each validated."""
        return [self._validate(name, raw) for name, raw in self._load_raw().items()]

    def profile_names(self) -> list[str]:
        return list(self._load_raw())

    def get_profile(self, name: str) -> Profile:
        profiles = self._load_raw()
        if name not in profiles:
            raise ProfileNotFoundError(name, list(profiles))
        return self._validate(name, profiles[name])

    def global_ledger_config(self) -> LedgerConfig:
        """Ledger connection settings shared by all profiles."""
        settings = self._settings
        if settings.use_mock_services:
            return _MOCK_LEDGER

        missing = [
            env
            for env, value in (
                ("ACTUAL_SERVER_URL", settings.actual_server_url),
                ("ACTUAL_PASSWORD", settings.actual_password),
                ("ACTUAL_SYNC_ID", settings.actual_sync_id),
            )
            if not value
        ]
        if missing:
            msg = (
                "Missing required Actual Budget configuration. "
                f"Required variables: {', '.join(missing)}"
            )
            raise ConfigurationError(msg, details={"missing": missing})

        return LedgerConfig(
            server_url=settings.actual_server_url,
            password=settings.actual_password,
            sync_id=settings.actual_sync_id,
            encryption_key=settings.actual_encryption_key,
            timeout=settings.ledger_timeout,
        )

    def build_config(self, name: str) -> ImportConfig:
        """Global ledger settings plus the named profile, fully validated."""
        ledger = self.global_ledger_config()
        profile = self.get_profile(name)
        logger.debug("Built import config for profile %s (%s)", name, profile.bank)
        return ImportConfig(profile=profile, ledger=ledger)
