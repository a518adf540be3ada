"""Tests for environment-driven settings."""

import pytest

from currency_clarity.config import AppSettings, HeartbeatSettings, get_settings


class TestHeartbeatSettings:

    def test_url_without_double_slash(self):
        settings = HeartbeatSettings(app_url="https://clarity.example.com/")
        assert settings.heartbeat_url == "https://clarity.example.com/api/heartbeat"

    def test_disabled_by_default(self, monkeypatch):
        monkeypatch.delenv("HEARTBEAT_ENABLED", raising=False)
        assert HeartbeatSettings().enabled is False

    @pytest.mark.parametrize("minutes", [0, 60])
    def test_interval_bounds(self, minutes):
        with pytest.raises(ValueError):
            HeartbeatSettings(interval_minutes=minutes)

    def test_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("HEARTBEAT_ENABLED", "true")
        monkeypatch.setenv("HEARTBEAT_INTERVAL_MINUTES", "5")
        settings = HeartbeatSettings()
        assert settings.enabled is True
        assert settings.interval_minutes == 5


class TestAppSettings:

    def test_storage_backend_from_environment(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "google_sheets")
        assert AppSettings().storage_backend == "google_sheets"

    def test_unknown_backend_rejected(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "postgres")
        with pytest.raises(ValueError):
            AppSettings()

    def test_settings_are_cached(self):
        assert get_settings() is get_settings()
