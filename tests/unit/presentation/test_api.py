"""Tests for the HTTP API using FastAPI's TestClient in mock mode."""

import json

import pytest
from fastapi.testclient import TestClient

from trxsync import __version__
from trxsync.application.dtos import ConnectedEvent
from trxsync.domain.shared.exceptions import ConfigurationError
from trxsync.presentation.api import create_app
from trxsync.presentation.api.dependencies import get_import_command
from trxsync_config import Settings


def _parse_sse(body: str) -> list[tuple[str, dict]]:
    events = []
    for block in body.strip().split("\n\n"):
        lines = dict(line.split(": ", 1) for line in block.splitlines())
        events.append((lines["event"], json.loads(lines["data"])))
    return events


@pytest.fixture
def client(mock_settings):
    with TestClient(create_app(settings=mock_settings)) as client:
        yield client


class TestHealth:
    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "version": __version__}


class TestProfiles:
    def test_lists_profiles(self, client):
        response = client.get("/api/profiles")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["count"] == 2
        demo = body["profiles"][0]
        assert demo["name"] == "demo"
        assert demo["bank"] == "mockbank"
        assert demo["actualAccountId"] == "6a3f9d2e-1b4c-4e8a-8f7d-2c5b9e0a1d34"
        assert demo["bankParams"] == {"transactionCount": 5}

    def test_missing_profiles_file(self, tmp_path):
        settings = Settings(
            _env_file=None,
            use_mock_services=True,
            profiles_path=tmp_path / "absent.json",
        )
        with TestClient(create_app(settings=settings)) as client:
            response = client.get("/api/profiles")

        assert response.status_code == 400
        assert response.json()["code"] == "CONFIGURATION_ERROR"


class TestAccounts:
    def test_lists_mock_ledger_accounts(self, client):
        response = client.get("/api/accounts")

        assert response.status_code == 200
        assert response.json() == {"success": True, "accounts": [], "count": 0}


class TestImportStream:
    def test_blank_profile_is_rejected(self, client):
        response = client.get("/api/import", params={"profile": "  "})
        assert response.status_code == 400

    def test_mock_import_streams_to_close(self, client):
        response = client.get("/api/import", params={"profile": "demo"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["cache-control"] == "no-cache"
        assert response.headers["x-accel-buffering"] == "no"

        events = _parse_sse(response.text)
        names = [name for name, _ in events]
        assert names[0] == "connected"
        assert names[-1] == "close"
        assert names.count("success") + names.count("error") == 1
        assert names[-2] == "success"

        qr = next(data for name, data in events if name == "qr-code")
        assert qr["data"] == "MOCK_QR_TOKEN_1"
        success = events[-2][1]
        assert success["count"] == 5
        assert "would be imported" in success["message"]
        assert events[-1][1]["success"] is True

    def test_unknown_profile_streams_error(self, client):
        response = client.get("/api/import", params={"profile": "nope"})

        events = _parse_sse(response.text)
        assert [name for name, _ in events][-2:] == ["error", "close"]
        assert events[-2][1]["code"] == "PROFILE_NOT_FOUND"
        assert events[-1][1]["success"] is False

    def test_failure_outside_the_run_still_closes_stream(self, mock_settings):
        class ExplodingCommand:
            async def execute_streaming(self, profile_name, dry_run=None):
                yield ConnectedEvent()
                raise ConfigurationError("profiles.json vanished")

        app = create_app(settings=mock_settings)
        app.dependency_overrides[get_import_command] = ExplodingCommand
        with TestClient(app) as client:
            response = client.get("/api/import", params={"profile": "demo"})

        events = _parse_sse(response.text)
        assert [name for name, _ in events] == ["connected", "error", "close"]
        assert events[1][1] == {
            "message": "profiles.json vanished",
            "code": "CONFIGURATION_ERROR",
        }
