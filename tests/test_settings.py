"""Tests for config.settings: defaults and environment overrides."""

import pytest
from pydantic import ValidationError

from config.settings import Settings, get_settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("SSE_PING_INTERVAL", raising=False)
    settings = Settings(_env_file=None)
    assert settings.service_port == 8000
    assert settings.sse_ping_interval == 15
    assert settings.cors_origins == ["*"]


def test_env_override(monkeypatch):
    monkeypatch.setenv("SSE_PING_INTERVAL", "5")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    settings = Settings(_env_file=None)
    assert settings.sse_ping_interval == 5
    assert settings.log_level == "DEBUG"


def test_ping_interval_must_be_positive(monkeypatch):
    monkeypatch.setenv("SSE_PING_INTERVAL", "0")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_get_settings_is_cached():
    assert get_settings() is get_settings()
