"""
Engine configuration.

Defaults match the live game; every field can be overridden from the
environment (``EngineConfig.from_env``) or passed directly in tests.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import os
import time


def now_ms() -> int:
    """Server clock in epoch milliseconds."""
    return int(time.time() * 1000)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else default


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


@dataclass
class EngineConfig:
    """All tunables of the engine. Times are in milliseconds unless noted."""
    max_health: int = 20

    # Integrity layer
    max_actions_per_window: int = 60
    action_window_ms: int = 60 * 1000
    max_timestamp_drift_ms: int = 30 * 1000
    checksum_secret: str | None = None

    # Session lifecycle
    session_timeout_ms: int = 30 * 60 * 1000
    store_timeout_s: float = 5.0
    store_dir: str | None = None

    # Rules
    allow_closing_draw: bool = True

    # Ambient
    log_level: str = "INFO"
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Build a config from ``SCOUNDREL_*`` environment variables."""
        defaults = cls()
        return cls(
            max_health=_env_int("SCOUNDREL_MAX_HEALTH", defaults.max_health),
            max_actions_per_window=_env_int("SCOUNDREL_RATE_LIMIT", defaults.max_actions_per_window),
            action_window_ms=_env_int("SCOUNDREL_RATE_WINDOW_MS", defaults.action_window_ms),
            max_timestamp_drift_ms=_env_int("SCOUNDREL_MAX_DRIFT_MS", defaults.max_timestamp_drift_ms),
            checksum_secret=os.getenv("SCOUNDREL_CHECKSUM_SECRET") or None,
            session_timeout_ms=_env_int("SCOUNDREL_SESSION_TIMEOUT_MS", defaults.session_timeout_ms),
            store_timeout_s=_env_float("SCOUNDREL_STORE_TIMEOUT_S", defaults.store_timeout_s),
            store_dir=os.getenv("SCOUNDREL_STORE_DIR") or None,
            allow_closing_draw=_env_flag("SCOUNDREL_ALLOW_CLOSING_DRAW", defaults.allow_closing_draw),
            log_level=os.getenv("SCOUNDREL_LOG_LEVEL", defaults.log_level).upper(),
            allowed_origins=os.getenv("ALLOWED_ORIGINS", "*").split(","),
        )
