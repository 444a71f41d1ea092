"""
Tests for configuration and logging setup.
"""

import logging

from ..config import EngineConfig
from ..logging_setup import configure_logging


def test_defaults():
    config = EngineConfig()
    assert config.max_actions_per_window == 60
    assert config.max_timestamp_drift_ms == 30_000
    assert config.session_timeout_ms == 30 * 60 * 1000
    assert config.checksum_secret is None


def test_from_env_overrides(monkeypatch):
    monkeypatch.setenv("SCOUNDREL_RATE_LIMIT", "5")
    monkeypatch.setenv("SCOUNDREL_STORE_TIMEOUT_S", "0.5")
    monkeypatch.setenv("SCOUNDREL_ALLOW_CLOSING_DRAW", "no")
    monkeypatch.setenv("SCOUNDREL_LOG_LEVEL", "debug")
    monkeypatch.setenv("ALLOWED_ORIGINS", "http://a,http://b")

    config = EngineConfig.from_env()

    assert config.max_actions_per_window == 5
    assert config.store_timeout_s == 0.5
    assert config.allow_closing_draw is False
    assert config.log_level == "DEBUG"
    assert config.allowed_origins == ["http://a", "http://b"]


def test_blank_env_keeps_defaults(monkeypatch):
    monkeypatch.setenv("SCOUNDREL_MAX_HEALTH", " ")
    monkeypatch.delenv("SCOUNDREL_CHECKSUM_SECRET", raising=False)
    config = EngineConfig.from_env()
    assert config.max_health == 20
    assert config.checksum_secret is None


def test_configure_logging_is_idempotent():
    configure_logging("WARNING")
    configure_logging("DEBUG")

    logger = logging.getLogger("scoundrel")
    ours = [h for h in logger.handlers if getattr(h, "_scoundrel", False)]
    assert len(ours) == 1
    assert logger.level == logging.DEBUG
