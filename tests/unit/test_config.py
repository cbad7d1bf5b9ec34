"""
Unit tests for application settings.
"""

import pytest
from pydantic import ValidationError

from admin_panel.core.config import Settings


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.alerts_collection == "alerts"
        assert settings.admin_alerts_collection == "alertsadmin"
        assert settings.alerts_feed_reconnect_enabled is True

    def test_music_base_url_gets_trailing_slash(self):
        settings = Settings(_env_file=None, music_base_url="https://cdn.example.test/tracks")
        assert settings.music_base_url == "https://cdn.example.test/tracks/"

    def test_log_level_is_normalized(self):
        assert Settings(_env_file=None, log_level=" debug ").log_level == "DEBUG"

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_level="verbose")

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("ALERTS_FEED_RECONNECT_MAX_ATTEMPTS", "9")
        assert Settings(_env_file=None).alerts_feed_reconnect_max_attempts == 9
