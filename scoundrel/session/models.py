"""
Session Models - What the session store persists.

A GameSession wraps the authoritative GameState with the bookkeeping the
integrity layer needs (action counts, rate window). Times are epoch
milliseconds.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Any

from ..engine_core.state import GameState


@dataclass(frozen=True)
class GameSession:
    """
    One game of one player.

    Created on game start, replaced (never mutated) by the SessionManager
    on every accepted action, deleted on expiry or integrity violation.
    """
    session_id: str
    player_id: str
    state: GameState
    action_count: int = 0
    last_action_time: int = 0
    actions_in_last_minute: int = 0
    # Start of the current rate window; reset when a window elapses
    window_started_at: int = 0
    created_at: int = 0
    last_updated_at: int = 0

    def _copy_with(self, **kwargs) -> GameSession:
        return replace(self, **kwargs)

    def is_expired(self, now: int, timeout_ms: int) -> bool:
        """True once the session has been idle for longer than ``timeout_ms``."""
        return now - self.last_updated_at > timeout_ms

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.session_id,
            "playerId": self.player_id,
            "state": self.state.to_dict(),
            "actionCount": self.action_count,
            "lastActionTime": self.last_action_time,
            "actionsInLastMinute": self.actions_in_last_minute,
            "windowStartedAt": self.window_started_at,
            "createdAt": self.created_at,
            "lastUpdatedAt": self.last_updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GameSession:
        return cls(
            session_id=data["id"],
            player_id=data["playerId"],
            state=GameState.from_dict(data["state"]),
            action_count=int(data.get("actionCount", 0)),
            last_action_time=int(data.get("lastActionTime", 0)),
            actions_in_last_minute=int(data.get("actionsInLastMinute", 0)),
            window_started_at=int(data.get("windowStartedAt", data.get("lastActionTime", 0))),
            created_at=int(data.get("createdAt", 0)),
            last_updated_at=int(data.get("lastUpdatedAt", 0)),
        )


@dataclass(frozen=True)
class HistoryEntry:
    """One accepted transition (or the initial deal, at sequence 0)."""
    session_id: str
    player_id: str
    sequence: int
    state: dict[str, Any]
    action: dict[str, Any] | None = None
    recorded_at: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "playerId": self.player_id,
            "sequence": self.sequence,
            "action": self.action,
            "state": self.state,
            "recordedAt": self.recorded_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoryEntry:
        return cls(
            session_id=data["sessionId"],
            player_id=data["playerId"],
            sequence=int(data["sequence"]),
            state=data["state"],
            action=data.get("action"),
            recorded_at=int(data.get("recordedAt", 0)),
        )

