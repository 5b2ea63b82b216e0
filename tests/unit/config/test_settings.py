"""Unit tests for application settings."""

from trxsync_config import Settings


class TestSettings:
    def test_dry_run_follows_mock_mode(self):
        assert Settings(_env_file=None, use_mock_services=True).dry_run is True
        assert Settings(_env_file=None, use_mock_services=False).dry_run is False

    def test_explicit_dry_run_wins(self):
        settings = Settings(_env_file=None, use_mock_services=True, dry_run=False)
        assert settings.dry_run is False

    def test_cors_origins_split(self):
        settings = Settings(_env_file=None, api_cors_origins="http://a, http://b,")
        assert settings.cors_origins == ["http://a", "http://b"]

    def test_no_generic_debug_switch(self):
        assert "debug" not in Settings.model_fields
