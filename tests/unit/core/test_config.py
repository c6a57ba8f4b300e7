"""Tests for settings loading."""

from reqflow.core.config import Settings, get_settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("SECRET_KEY", raising=False)
    settings = Settings(_env_file=None)
    assert settings.algorithm == "HS256"
    assert settings.access_token_expire_minutes == 30
    assert settings.refresh_token_expire_days == 7
    assert settings.database_url.startswith("postgresql://")


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("ACCESS_TOKEN_EXPIRE_MINUTES", "5")
    monkeypatch.setenv("log_level", "debug")
    settings = Settings(_env_file=None)
    assert settings.access_token_expire_minutes == 5
    assert settings.log_level == "debug"


def test_cors_origins_list():
    settings = Settings(_env_file=None, cors_origins="http://a.example, http://b.example,")
    assert settings.cors_origins_list == ["http://a.example", "http://b.example"]


def test_get_settings_is_cached():
    assert get_settings() is get_settings()
    assert get_settings().database_url == "sqlite://"
