"""Tests for configuration loading."""

from pathlib import Path

from browser_vcr.config import DEFAULT_CASSETTES_DIR, DEFAULT_URL_PATTERN, VcrSettings, get_settings


class TestDefaults:
    def test_defaults(self):
        settings = VcrSettings()
        assert settings.cassettes_dir == DEFAULT_CASSETTES_DIR
        assert settings.url_pattern == DEFAULT_URL_PATTERN == "**/*"
        assert settings.strict_playback is False
        assert settings.logging_level == "INFO"

    def test_cassettes_dir_expands_user(self):
        settings = VcrSettings(cassettes_dir="~/cassettes")
        assert settings.get_cassettes_dir() == Path.home() / "cassettes"


class TestEnvironment:
    def test_env_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("BROWSER_VCR_CASSETTES_DIR", str(tmp_path))
        monkeypatch.setenv("BROWSER_VCR_STRICT_PLAYBACK", "true")
        monkeypatch.setenv("BROWSER_VCR_URL_PATTERN", "**/api/**")

        settings = VcrSettings()
        assert settings.get_cassettes_dir() == tmp_path
        assert settings.strict_playback is True
        assert settings.url_pattern == "**/api/**"

    def test_get_settings_is_cached_until_cleared(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("BROWSER_VCR_STRICT_PLAYBACK", "1")
        assert get_settings() is first
        assert get_settings().strict_playback is False

        get_settings.cache_clear()
        assert get_settings().strict_playback is True
