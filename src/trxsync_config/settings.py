"""Application settings loaded from environment variables.

Configuration file discovery (in priority order):
1. OS environment variables (always highest priority)
2. TRXSYNC_ENV_FILE environment variable (path to .env file)
3. config/.env.dev - local development
4. config/.env - production/Home Assistant add-on

Uses pydantic-settings for automatic type coercion and validation.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import SecretStr, computed_field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _find_project_root() -> Path:
    """Find the project root directory."""
    current = Path(__file__).resolve().parent

    for parent in [current, *current.parents]:
        if (parent / "config").is_dir():
            return parent
        if (parent / ".git").is_dir():
            return parent
        if parent == Path("/app"):
            return parent

    return Path(__file__).resolve().parents[2]


def get_config_dir() -> Path:
    """Get the config directory path (for profiles.json, .env files)."""
    return _find_project_root() / "config"


def _resolve_env_file_path() -> Path | None:
    """Resolve the .env file path.

    Priority:
    1. TRXSYNC_ENV_FILE env var (full path)
    2. config/.env.dev (local development)
    3. config/.env (production)
    """
    env_file_path = os.environ.get("TRXSYNC_ENV_FILE")
    if env_file_path:
        path = Path(env_file_path)
        if not path.is_absolute():
            path = _find_project_root() / path
        if path.exists():
            return path

    config_dir = get_config_dir()

    dev_env = config_dir / ".env.dev"
    if dev_env.exists():
        return dev_env

    prod_env = config_dir / ".env"
    if prod_env.exists():
        return prod_env

    return None


class Settings(BaseSettings):
    """Application configuration loaded from environment variables.

    Values are loaded from:
    1. OS environment variables (highest priority)
    2. .env file (config/.env.dev or config/.env)
    3. Default values

    Ledger connection settings are optional here so the API can start
    without them; they are validated when an import is configured
    (see ``ProfileRepository.build_config``).
    """

    model_config = SettingsConfigDict(
        env_file=_resolve_env_file_path(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = "trxsync"

    # API (API_ prefix)
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False
    api_cors_origins: str = "*"

    @field_validator("api_cors_origins", mode="before")
    @classmethod
    def _validate_cors_origins(cls, v: Any) -> str:
        """Ensure cors_origins is stored as comma-separated string."""
        if isinstance(v, list):
            return ",".join(v)
        return str(v) if v else ""

    # Profiles (defaults to config/profiles.json)
    profiles_path: Path | None = None

    # Development switches
    use_mock_services: bool = False
    dry_run: bool | None = None  # None = follow use_mock_services

    # Actual Budget (ACTUAL_ prefix)
    actual_server_url: str | None = None
    actual_password: SecretStr | None = None
    actual_sync_id: str | None = None
    actual_encryption_key: SecretStr | None = None
    ledger_timeout: float = 30.0

    # Bank authentication
    auth_qr_timeout: float = 30.0  # seconds until a QR token must appear
    auth_login_timeout: float = 120.0  # seconds until BankID login expires
    auth_poll_interval: float = 2.0

    # Logging (LOG_ prefix)
    log_level: str = "INFO"

    @model_validator(mode="after")
    def _default_dry_run(self) -> Settings:
        """Dry run defaults to on whenever mock services are used."""
        if self.dry_run is None:
            self.dry_run = self.use_mock_services
        return self

    # Computed properties
    @computed_field  # type: ignore[prop-decorator]
    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [o.strip() for o in self.api_cors_origins.split(",") if o.strip()]

    @property
    def resolved_profiles_path(self) -> Path:
        """Location of profiles.json."""
        if self.profiles_path is not None:
            return self.profiles_path
        return get_config_dir() / "profiles.json"


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings."""
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for tests)."""
    get_settings.cache_clear()
