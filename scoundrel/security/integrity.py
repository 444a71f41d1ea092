"""
Integrity Service - Defends the engine against hostile or buggy clients.

A client can only send messages; it never touches stored state. Every
message goes through four checks before the rules see it:

1. Rate limit: at most N actions per window, counted from the first
   action of the window
2. Timestamp drift: the client clock must be close to the server clock
3. Sequence: exactly ``last_action_sequence + 1`` (no gaps, no replay)
4. Checksum: the stored state must hash to its own ``state_checksum``

Checks raise typed SecurityError / IntegrityViolation exceptions. Every
method that changes something returns a new snapshot instead.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable
import hashlib
import hmac
import json
import logging

from ..config import EngineConfig, now_ms
from ..engine_core.action import GameAction
from ..engine_core.state import GameState
from ..errors import (
    IntegrityViolation,
    RateLimitExceeded,
    SequenceMismatchError,
    TimestampDriftError,
)

if TYPE_CHECKING:
    from ..session.models import GameSession

logger = logging.getLogger(__name__)


def canonical_json(data: Any) -> bytes:
    """Deterministic serialization: sorted keys, no whitespace, UTF-8."""
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


@dataclass
class SecurityService:
    """
    Rate limiting, timestamp and sequence checks, and state checksums.

    Usage:
        security = SecurityService(config)
        security.check_action(session, action)      # raises on rejection
        state = security.stamp(new_state, action)   # sequence, time, checksum
        security.verify_checksum(stored_state)      # raises IntegrityViolation
    """
    config: EngineConfig = field(default_factory=EngineConfig)
    clock: Callable[[], int] = now_ms

    # =========================================================================
    # Action checks
    # =========================================================================

    def actions_in_window(self, session: GameSession, now: int | None = None) -> int:
        """Actions counted against the current window; 0 once it has elapsed."""
        now = self.clock() if now is None else now
        if self.window_elapsed(session, now):
            return 0
        return session.actions_in_last_minute

    def window_elapsed(self, session: GameSession, now: int) -> bool:
        """True once a full window has passed since the window opened."""
        return now - session.window_started_at > self.config.action_window_ms

    def check_rate(self, session: GameSession, now: int | None = None) -> None:
        if self.actions_in_window(session, now) >= self.config.max_actions_per_window:
            raise RateLimitExceeded(
                "Rate limit exceeded. Please wait before performing more actions."
            )

    def check_timestamp(self, action: GameAction, now: int | None = None) -> None:
        now = self.clock() if now is None else now
        drift = abs(now - action.timestamp)
        if drift > self.config.max_timestamp_drift_ms:
            raise TimestampDriftError("Action timestamp is too far from server time")

    def check_sequence(self, state: GameState, action: GameAction) -> None:
        expected = state.last_action_sequence + 1
        if action.sequence != expected:
            raise SequenceMismatchError(
                f"Invalid action sequence number: expected {expected}, got {action.sequence}"
            )

    def check_action(self, session: GameSession, action: GameAction) -> None:
        """Run rate, timestamp and sequence checks in that order."""
        now = self.clock()
        self.check_rate(session, now)
        self.check_timestamp(action, now)
        self.check_sequence(session.state, action)

    # =========================================================================
    # Checksums
    # =========================================================================

    def compute_checksum(self, state: GameState) -> str:
        """Digest over every field of ``state`` except the checksum itself."""
        payload = canonical_json(state.to_dict(include_checksum=False))
        if self.config.checksum_secret:
            key = self.config.checksum_secret.encode("utf-8")
            return hmac.new(key, payload, hashlib.sha256).hexdigest()
        return hashlib.sha256(payload).hexdigest()

    def validate_checksum(self, state: GameState) -> bool:
        return hmac.compare_digest(
            self.compute_checksum(state).encode("utf-8"),
            (state.state_checksum or "").encode("utf-8"),
        )

    def verify_checksum(self, state: GameState) -> None:
        if not self.validate_checksum(state):
            raise IntegrityViolation("Game state integrity violation detected")

    def seal(self, state: GameState) -> GameState:
        """Same state with a freshly computed checksum."""
        return state._copy_with(state_checksum=self.compute_checksum(state))

    def stamp(self, state: GameState, action: GameAction) -> GameState:
        """Record the action's sequence and timestamp, then re-seal."""
        return self.seal(
            state._copy_with(
                last_action_sequence=action.sequence,
                last_action_timestamp=action.timestamp,
            )
        )

    # =========================================================================
    # Session bookkeeping
    # =========================================================================

    def record_action(self, session: GameSession, now: int | None = None) -> GameSession:
        """Session with its counters advanced by one accepted action."""
        now = self.clock() if now is None else now
        if self.window_elapsed(session, now):
            in_window, window_started_at = 1, now
        else:
            in_window = session.actions_in_last_minute + 1
            window_started_at = session.window_started_at
        logger.debug(
            "session %s: %d action(s) in window", session.session_id, in_window
        )
        return session._copy_with(
            actions_in_last_minute=in_window,
            window_started_at=window_started_at,
            last_action_time=now,
            action_count=session.action_count + 1,
        )
