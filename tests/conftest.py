"""Root pytest configuration and shared fixtures.

Test Structure:
    tests/
    └── unit/
        ├── domain/          # Value objects and dedup policies
        ├── application/     # Event bus, session client, reconciler, import command
        ├── infrastructure/  # Bank integrations, ledger adapters, profile store
        └── presentation/    # FastAPI routes (TestClient) and CLI

HTTP adapters are tested against ``httpx.MockTransport``; nothing here
talks to a real bank or ledger.
"""

import json
from datetime import date
from pathlib import Path

import pytest

from trxsync_config import Settings, clear_settings_cache

ACCOUNT_ID = "6a3f9d2e-1b4c-4e8a-8f7d-2c5b9e0a1d34"
TODAY = date(2025, 3, 15)


@pytest.fixture(scope="session", autouse=True)
def reset_settings_cache():
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def account_id() -> str:
    return ACCOUNT_ID


@pytest.fixture
def profiles_file(tmp_path: Path) -> Path:
    """A profiles.json with one mockbank and one handelsbanken profile."""
    path = tmp_path / "profiles.json"
    path.write_text(
        json.dumps(
            {
                "demo": {
                    "bank": "mockbank",
                    "bankParams": {"transactionCount": 5},
                    "actualAccountId": ACCOUNT_ID,
                },
                "personal": {
                    "bank": "handelsbanken",
                    "bankParams": {
                        "personnummer": "199001011234",
                        "accountName": "Allkonto",
                    },
                    "actualAccountId": "0b0a1f4e-5d2c-4c8e-9a47-3f1e2d6b7c90",
                },
            },
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def mock_settings(profiles_file: Path) -> Settings:
    """Settings for mock mode, isolated from any local .env file."""
    return Settings(
        _env_file=None,
        use_mock_services=True,
        profiles_path=profiles_file,
        auth_qr_timeout=2.0,
    )
