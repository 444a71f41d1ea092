"""
Tests for the integrity layer.

Tests:
- Rate limiting and window reset
- Timestamp drift
- Sequence ordering
- Checksum stamping and tamper detection
"""

import pytest

from ..config import EngineConfig
from ..engine_core.action import GameAction
from ..engine_core.reducer import apply_action
from ..errors import (
    IntegrityViolation,
    RateLimitExceeded,
    SecurityError,
    SequenceMismatchError,
    TimestampDriftError,
)
from ..security import SecurityService
from ..session.models import GameSession
from .conftest import START_MS, monster


def make_session(state, **kwargs) -> GameSession:
    fields = dict(
        session_id="s1",
        player_id="p1",
        state=state,
        last_action_time=START_MS,
        window_started_at=START_MS,
        created_at=START_MS,
        last_updated_at=START_MS,
    )
    fields.update(kwargs)
    return GameSession(**fields)


class TestRateLimit:

    def test_under_limit_passes(self, security, fight_room):
        security.check_rate(make_session(fight_room, actions_in_last_minute=59))

    def test_at_limit_rejected(self, security, fight_room):
        with pytest.raises(RateLimitExceeded) as exc:
            security.check_rate(make_session(fight_room, actions_in_last_minute=60))
        assert exc.value.error_code == "RATE_LIMIT_EXCEEDED"
        assert isinstance(exc.value, SecurityError)

    def test_window_elapsed_resets(self, security, clock, fight_room):
        session = make_session(fight_room, actions_in_last_minute=60)
        clock.advance(60_001)
        security.check_rate(session)
        assert security.actions_in_window(session) == 0

    def test_record_action_counts_within_window(self, security, clock, fight_room):
        session = make_session(fight_room, actions_in_last_minute=3, action_count=10)
        clock.advance(1_000)
        updated = security.record_action(session)

        assert updated.actions_in_last_minute == 4
        assert updated.action_count == 11
        assert updated.last_action_time == START_MS + 1_000
        assert session.actions_in_last_minute == 3

    def test_record_action_restarts_window(self, security, clock, fight_room):
        session = make_session(fight_room, actions_in_last_minute=50)
        clock.advance(120_000)
        assert security.record_action(session).actions_in_last_minute == 1

    def test_steady_pace_does_not_hold_window_open(self, security, clock, fight_room):
        # Last action 10 s ago, but the window opened over a minute ago
        session = make_session(
            fight_room,
            actions_in_last_minute=60,
            last_action_time=START_MS + 50_000,
        )
        clock.advance(60_001)
        security.check_rate(session)

        updated = security.record_action(session)
        assert updated.actions_in_last_minute == 1
        assert updated.window_started_at == START_MS + 60_001

    def test_window_start_kept_within_window(self, security, clock, fight_room):
        session = make_session(fight_room, actions_in_last_minute=5)
        clock.advance(30_000)
        assert security.record_action(session).window_started_at == START_MS


class TestTimestamp:

    @pytest.mark.parametrize("offset", [0, 30_000, -30_000])
    def test_within_drift(self, security, offset):
        security.check_timestamp(GameAction.draw_room(timestamp=START_MS + offset))

    @pytest.mark.parametrize("offset", [30_001, -30_001])
    def test_beyond_drift(self, security, offset):
        with pytest.raises(TimestampDriftError):
            security.check_timestamp(GameAction.draw_room(timestamp=START_MS + offset))


class TestSequence:

    def test_next_sequence_accepted(self, security, fight_room):
        state = fight_room._copy_with(last_action_sequence=4)
        security.check_sequence(state, GameAction.avoid_room(sequence=5))

    @pytest.mark.parametrize("sequence", [0, 4, 6, 100])
    def test_anything_else_rejected(self, security, fight_room, sequence):
        state = fight_room._copy_with(last_action_sequence=4)
        with pytest.raises(SequenceMismatchError):
            security.check_sequence(state, GameAction.avoid_room(sequence=sequence))

    def test_check_action_runs_all(self, security, fight_room):
        session = make_session(fight_room)
        security.check_action(session, GameAction.avoid_room(timestamp=START_MS, sequence=1))
        with pytest.raises(SequenceMismatchError):
            security.check_action(session, GameAction.avoid_room(timestamp=START_MS, sequence=2))


class TestChecksum:

    def test_stamp_then_validate(self, security, fight_room):
        action = GameAction.fight_monster(monster("K"), timestamp=START_MS, sequence=1)
        state = security.stamp(apply_action(fight_room, action), action)

        assert state.last_action_sequence == 1
        assert state.last_action_timestamp == START_MS
        assert security.validate_checksum(state)
        security.verify_checksum(state)

    @pytest.mark.parametrize("change", [
        {"health": 19},
        {"score": 3},
        {"can_avoid_room": False},
        {"last_action_sequence": 9},
    ])
    def test_any_unsealed_change_detected(self, security, fight_room, change):
        sealed = security.seal(fight_room)
        tampered = sealed._copy_with(**change)

        assert not security.validate_checksum(tampered)
        with pytest.raises(IntegrityViolation):
            security.verify_checksum(tampered)

    def test_reordered_room_detected(self, security, fight_room):
        sealed = security.seal(fight_room)
        tampered = sealed._copy_with(room=tuple(reversed(sealed.room)))
        assert not security.validate_checksum(tampered)

    def test_checksum_excludes_itself(self, security, fight_room):
        a = fight_room._copy_with(state_checksum="x")
        b = fight_room._copy_with(state_checksum="y")
        assert security.compute_checksum(a) == security.compute_checksum(b)

    def test_survives_serialization(self, security, fight_room):
        from ..engine_core.state import GameState
        sealed = security.seal(fight_room)
        assert security.validate_checksum(GameState.from_dict(sealed.to_dict()))

    def test_secret_changes_digest(self, fight_room, clock):
        plain = SecurityService(config=EngineConfig(), clock=clock)
        keyed = SecurityService(config=EngineConfig(checksum_secret="s3cret"), clock=clock)

        assert plain.compute_checksum(fight_room) != keyed.compute_checksum(fight_room)
        assert not plain.validate_checksum(keyed.seal(fight_room))

    def test_garbage_checksum_is_just_invalid(self, security, fight_room):
        assert not security.validate_checksum(fight_room._copy_with(state_checksum="ünïcode"))
