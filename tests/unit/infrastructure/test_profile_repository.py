"""Unit tests for ProfileRepository."""

import json

import pytest
from pydantic import SecretStr

from trxsync.domain.configuration import ProfileNotFoundError
from trxsync.domain.shared.exceptions import ConfigurationError
from trxsync.infrastructure.banking import BankRegistry
from trxsync.infrastructure.configuration import ProfileRepository
from trxsync_config import Settings

ACCOUNT_ID = "6a3f9d2e-1b4c-4e8a-8f7d-2c5b9e0a1d34"


def _repository(tmp_path, profiles, **settings) -> ProfileRepository:
    path = tmp_path / "profiles.json"
    if profiles is not None:
        path.write_text(
            profiles if isinstance(profiles, str) else json.dumps(profiles),
            encoding="utf-8",
        )
    settings.setdefault("use_mock_services", True)
    return ProfileRepository(
        path,
        BankRegistry.default(),
        Settings(_env_file=None, profiles_path=path, **settings),
    )


def _profile(**overrides):
    return {
        "bank": "mockbank",
        "bankParams": {},
        "actualAccountId": ACCOUNT_ID,
        **overrides,
    }


class TestLoading:
    def test_lists_profiles(self, mock_settings):
        repository = ProfileRepository.from_settings(
            mock_settings,
            BankRegistry.default(),
        )

        profiles = repository.list_profiles()

        assert [p.name for p in profiles] == ["demo", "personal"]
        assert profiles[1].bank_params["accountName"] == "Allkonto"

    def test_missing_file(self, tmp_path):
        repository = _repository(tmp_path, None)
        with pytest.raises(ConfigurationError, match="not found"):
            repository.list_profiles()

    def test_invalid_json(self, tmp_path):
        repository = _repository(tmp_path, "{not json")
        with pytest.raises(ConfigurationError, match="Failed to parse"):
            repository.list_profiles()

    def test_top_level_must_be_object(self, tmp_path):
        repository = _repository(tmp_path, "[]")
        with pytest.raises(ConfigurationError, match="JSON object"):
            repository.list_profiles()

    def test_unknown_profile(self, tmp_path):
        repository = _repository(tmp_path, {"demo": _profile()})
        with pytest.raises(ProfileNotFoundError):
            repository.get_profile("other")


class TestValidation:
    @pytest.mark.parametrize("field", ["bank", "bankParams", "actualAccountId"])
    def test_required_fields(self, tmp_path, field):
        profile = _profile()
        del profile[field]
        repository = _repository(tmp_path, {"demo": profile})

        with pytest.raises(ConfigurationError, match=f"missing required field: {field}"):
            repository.get_profile("demo")

    def test_malformed_account_id(self, tmp_path):
        repository = _repository(
            tmp_path,
            {"demo": _profile(actualAccountId="12345")},
        )
        with pytest.raises(ConfigurationError, match="UUID"):
            repository.build_config("demo")

    def test_unknown_bank_lists_available(self, tmp_path):
        repository = _repository(tmp_path, {"demo": _profile(bank="nordea")})
        with pytest.raises(ConfigurationError, match="handelsbanken, mockbank"):
            repository.get_profile("demo")

    def test_bank_params_must_be_object(self, tmp_path):
        repository = _repository(tmp_path, {"demo": _profile(bankParams=[1])})
        with pytest.raises(ConfigurationError, match="bankParams"):
            repository.get_profile("demo")

    @pytest.mark.parametrize("overlap", [-2, "abc"])
    def test_invalid_deduplication_block(self, tmp_path, overlap):
        params = {"deduplication": {"enabled": True, "overlapDays": overlap}}
        repository = _repository(tmp_path, {"demo": _profile(bankParams=params)})

        with pytest.raises(ConfigurationError, match="bankParams.deduplication"):
            repository.get_profile("demo")

    def test_valid_deduplication_block(self, tmp_path):
        params = {"deduplication": {"enabled": "true", "overlapDays": 3}}
        repository = _repository(tmp_path, {"demo": _profile(bankParams=params)})

        assert repository.get_profile("demo").bank_params == params


class TestLedgerConfig:
    def test_mock_mode_needs_no_ledger_settings(self, tmp_path):
        repository = _repository(tmp_path, {"demo": _profile()})

        config = repository.build_config("demo")

        assert config.profile.actual_account_id == ACCOUNT_ID
        assert config.ledger.server_url.startswith("mock://")

    def test_missing_ledger_settings(self, tmp_path):
        repository = _repository(
            tmp_path,
            {"demo": _profile()},
            use_mock_services=False,
            actual_server_url="http://actual.test",
        )
        with pytest.raises(ConfigurationError) as exc_info:
            repository.build_config("demo")
        assert exc_info.value.details["missing"] == ["ACTUAL_PASSWORD", "ACTUAL_SYNC_ID"]

    def test_full_ledger_settings(self, tmp_path):
        repository = _repository(
            tmp_path,
            {"demo": _profile()},
            use_mock_services=False,
            actual_server_url="http://actual.test",
            actual_password=SecretStr("pw"),
            actual_sync_id="sync-1",
        )

        config = repository.build_config("demo")

        assert config.ledger.sync_id == "sync-1"
        assert config.ledger.password.get_secret_value() == "pw"
