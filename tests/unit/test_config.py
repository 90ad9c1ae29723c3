"""
Unit tests for application configuration.
"""

import pytest

from notesuite.config import Settings, get_settings

_ENV_VARS = (
    "DATABASE_URL",
    "SECRET_KEY",
    "CREATE_TABLES_ON_STARTUP",
    "LOG_TO_FILE",
    "DEBUG",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    def test_default_settings(self, clean_env):
        settings = Settings(_env_file=None)

        assert settings.app_name == "NoteSuite API"
        assert settings.debug is False
        assert settings.database_url.startswith("postgresql+asyncpg://")
        assert settings.create_tables_on_startup is True

        assert settings.access_token_expire_minutes == 15
        assert settings.access_token_expire_seconds == 900
        assert settings.refresh_token_expire_days == 7
        assert settings.refresh_token_retention_days == 7
        assert settings.revoked_token_retention_days == 7
        assert settings.refresh_token_max_age_days == 30
        assert settings.token_generation_max_attempts == 5

        assert settings.default_page_size == 20
        assert settings.max_page_size == 100

    def test_environment_overrides(self, clean_env, monkeypatch):
        monkeypatch.setenv("ACCESS_TOKEN_EXPIRE_MINUTES", "5")
        monkeypatch.setenv("CORS_ORIGINS", '["https://notes.example.com"]')
        monkeypatch.setenv("debug", "true")

        settings = Settings(_env_file=None)

        assert settings.access_token_expire_seconds == 300
        assert settings.cors_origins == ["https://notes.example.com"]
        assert settings.debug is True

    def test_token_entropy_has_a_floor(self, clean_env):
        with pytest.raises(ValueError):
            Settings(_env_file=None, public_link_token_bytes=8)

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()
