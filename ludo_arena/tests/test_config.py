"""
Tests for environment-driven settings.
"""

from ..config import Settings


def test_defaults_without_environment(monkeypatch):
    for name in ("LUDO_TURN_TIMEOUT_SECONDS", "LUDO_MAX_TIMEOUTS", "LUDO_BOT_PROFILE", "ALLOWED_ORIGINS"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env()

    assert settings.turn_timeout_seconds == 30.0
    assert settings.max_timeouts == 3
    assert settings.bot_profile == "cautious"
    assert settings.allowed_origins == ["*"]


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("LUDO_TURN_TIMEOUT_SECONDS", "12.5")
    monkeypatch.setenv("LUDO_BOT_STRATEGY", "weighted")
    monkeypatch.setenv("LUDO_LOG_LEVEL", "debug")
    monkeypatch.setenv("LUDO_LOG_JSON", "yes")
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.example,https://b.example")

    settings = Settings.from_env()

    assert settings.turn_timeout_seconds == 12.5
    assert settings.bot_strategy == "weighted"
    assert settings.log_level == "DEBUG"
    assert settings.log_json is True
    assert settings.allowed_origins == ["https://a.example", "https://b.example"]
