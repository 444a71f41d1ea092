"""
Session Manager - Creates, loads and advances game sessions.

LIFECYCLE:
1. create_game → deal a shuffled dungeon, seal the state, persist
2. handle_action → load → security checks → rule checks → reducer
   → stamp sequence/timestamp/checksum → persist → new state
3. Session ends when:
   - it is idle for longer than the session timeout (detected lazily
     on access, or by cleanup_expired_sessions)
   - its stored state fails the checksum (integrity violation)
   - the player ends it

PERSISTENCE RULES:
- The manager holds no sessions; the injected SessionStore does
- Nothing is committed unless the store accepted the save
- Actions on the same session are serialized; different sessions never wait
  on each other

ERRORS:
- create_game/get_game/get_history raise typed EngineErrors
- handle_action never raises for engine errors; it returns a failed
  ActionResult carrying the error code
"""

from __future__ import annotations
from typing import Awaitable, Callable, TypeVar
import asyncio
import logging

from ..config import EngineConfig
from ..engine_core.action import ActionResult, GameAction
from ..engine_core.cards import RandomSource, create_deck, format_card
from ..engine_core.reducer import apply_action
from ..engine_core.state import GameState, initial_state
from ..engine_core.validator import ActionValidator
from ..errors import (
    ActionValidationError,
    EngineError,
    CorruptSession,
    IntegrityViolation,
    SecurityError,
    SessionNotFound,
    StoreError,
)
from ..security.integrity import SecurityService
from .locks import KeyedLock
from .models import GameSession, HistoryEntry
from .store import SessionStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


def describe_changes(old: GameState, new: GameState) -> list[str]:
    """Short human-readable list of what an action changed."""
    changes = []
    if old.health != new.health:
        changes.append(f"health {old.health} -> {new.health}")
    if len(old.room) != len(new.room):
        changes.append(f"room {len(old.room)} -> {len(new.room)} cards")
    if len(old.dungeon) != len(new.dungeon):
        changes.append(f"dungeon {len(old.dungeon)} -> {len(new.dungeon)} cards")
    if len(old.discard_pile) != len(new.discard_pile):
        changes.append(f"discard pile {len(old.discard_pile)} -> {len(new.discard_pile)} cards")
    if old.equipped_weapon != new.equipped_weapon and new.equipped_weapon is not None:
        changes.append(f"weapon {format_card(new.equipped_weapon)}")
    if new.game_over and not old.game_over:
        changes.append(f"game over, score {new.score}")
    return changes


class SessionManager:
    """
    Orchestrates the engine around a session store.

    Usage:
        manager = SessionManager(InMemorySessionStore())
        session = await manager.create_game("player-1")
        result = await manager.handle_action(session.session_id, action)
        if result.success:
            state = result.new_state
    """

    def __init__(
        self,
        store: SessionStore,
        config: EngineConfig | None = None,
        security: SecurityService | None = None,
        validator: ActionValidator | None = None,
        rng: RandomSource | None = None,
        clock: Callable[[], int] | None = None,
    ):
        self.store = store
        self.config = config or EngineConfig()
        if security is None:
            security = SecurityService(config=self.config)
            if clock is not None:
                security.clock = clock
        self.security = security
        self.validator = validator or ActionValidator(
            allow_closing_draw=self.config.allow_closing_draw
        )
        self.rng = rng
        self._locks = KeyedLock()

    def now(self) -> int:
        return self.security.clock()

    # =========================================================================
    # Store access
    # =========================================================================

    async def _store_call(self, call: Awaitable[T], what: str) -> T:
        """Await a store call with the configured timeout; failures become StoreError."""
        try:
            return await asyncio.wait_for(call, timeout=self.config.store_timeout_s)
        except asyncio.TimeoutError as e:
            logger.error("session store timed out during %s", what)
            raise StoreError(f"Session store timed out during {what}") from e
        except EngineError:
            raise
        except Exception as e:
            logger.error("session store failed during %s: %s", what, e)
            raise StoreError(f"Session store failed during {what}") from e

    async def _record_history(
        self,
        session: GameSession,
        action: GameAction | None,
    ) -> None:
        entry = HistoryEntry(
            session_id=session.session_id,
            player_id=session.player_id,
            sequence=session.state.last_action_sequence,
            state=session.state.to_dict(),
            action=action.to_dict() if action else None,
            recorded_at=self.now(),
        )
        try:
            await self._store_call(self.store.append_history(entry), "history write")
        except StoreError:
            # History is best effort; the session itself is already saved
            logger.warning(
                "history not recorded for session %s at sequence %d",
                session.session_id,
                entry.sequence,
            )

    async def _destroy(self, session_id: str, reason: str) -> None:
        logger.error("integrity violation in session %s (%s); session destroyed", session_id, reason)
        await self._store_call(self.store.delete(session_id), "delete")

    async def _load_stored(self, session_id: str) -> GameSession | None:
        """Raw store load; an undecodable document destroys the session."""
        try:
            return await self._store_call(self.store.load(session_id), "load")
        except CorruptSession as e:
            await self._destroy(session_id, e.message)
            raise IntegrityViolation("Game state integrity violation detected") from e

    async def _load_session(self, session_id: str) -> GameSession:
        """
        Load a live session.

        Raises:
            SessionNotFound: missing, or expired (and then deleted)
            IntegrityViolation: checksum mismatch or undecodable document
                (session deleted)
            StoreError: the store failed
        """
        session = await self._load_stored(session_id)
        if session is None:
            raise SessionNotFound("Game session not found or has expired")

        if session.is_expired(self.now(), self.config.session_timeout_ms):
            logger.info("session %s expired", session_id)
            await self._store_call(self.store.delete(session_id), "delete")
            raise SessionNotFound("Game session not found or has expired")

        if not self.security.validate_checksum(session.state):
            await self._destroy(session_id, "checksum mismatch")
            raise IntegrityViolation("Game state integrity violation detected")

        return session

    # =========================================================================
    # Operations
    # =========================================================================

    async def create_game(self, player_id: str) -> GameSession:
        """
        Start a new game for ``player_id``.

        Returns the persisted session (full health, shuffled 44-card
        dungeon, sequence 0, sealed checksum).
        """
        now = self.now()
        state = initial_state(create_deck(self.rng), now, self.config.max_health)
        session = GameSession(
            session_id="",
            player_id=player_id,
            state=self.security.seal(state),
            last_action_time=now,
            window_started_at=now,
            created_at=now,
            last_updated_at=now,
        )
        session_id = await self._store_call(self.store.create(session), "create")
        session = session._copy_with(session_id=session_id)

        logger.info("game created: session %s for player %s", session_id, player_id)
        await self._record_history(session, None)
        return session

    async def get_game(self, session_id: str) -> GameSession:
        async with self._locks.hold(session_id):
            return await self._load_session(session_id)

    async def handle_action(self, session_id: str, action: GameAction) -> ActionResult:
        """
        Apply one client action to a session.

        Any rejection leaves the stored session exactly as it was.
        """
        async with self._locks.hold(session_id):
            try:
                session = await self._load_session(session_id)
                self.security.check_action(session, action)

                error = self.validator.validate(session.state, action)
                if error:
                    raise ActionValidationError(error)

                new_state = self.security.stamp(apply_action(session.state, action), action)
                now = self.now()
                updated = self.security.record_action(session, now)._copy_with(
                    state=new_state,
                    last_updated_at=now,
                )
                await self._store_call(self.store.save(updated), "save")
            except (SecurityError, ActionValidationError) as e:
                logger.warning(
                    "action %s rejected for session %s: %s",
                    action.action_type.value,
                    session_id,
                    e.message,
                )
                return ActionResult.failure(e.message, e.error_code)
            except EngineError as e:
                return ActionResult.failure(e.message, e.error_code)

            logger.debug(
                "session %s: applied %s (sequence %d)",
                session_id,
                action.action_type.value,
                action.sequence,
            )
            if new_state.game_over:
                logger.info("game over in session %s, score %d", session_id, new_state.score)

            await self._record_history(updated, action)
            return ActionResult.success_with_state(
                new_state, describe_changes(session.state, new_state)
            )

    async def get_history(self, session_id: str) -> list[HistoryEntry]:
        """Recorded transitions of a live session, ordered by sequence."""
        async with self._locks.hold(session_id):
            await self._load_session(session_id)
            entries = await self._store_call(self.store.load_history(session_id), "history read")
        return sorted(entries, key=lambda e: e.sequence)

    async def end_game(self, session_id: str) -> bool:
        """Delete a session and its history. Returns False if it did not exist."""
        async with self._locks.hold(session_id):
            try:
                exists = await self._store_call(self.store.load(session_id), "load") is not None
            except CorruptSession:
                exists = True
            if not exists:
                return False
            await self._store_call(self.store.delete(session_id), "delete")
        logger.info("session %s ended by player", session_id)
        return True

    async def cleanup_expired_sessions(self) -> list[str]:
        """Delete every expired or undecodable session. Returns the deleted ids."""
        deleted = []
        for session_id in await self._store_call(self.store.list_ids(), "list"):
            async with self._locks.hold(session_id):
                try:
                    session = await self._load_stored(session_id)
                except IntegrityViolation:
                    # Already destroyed by _load_stored
                    deleted.append(session_id)
                    continue
                if session is None:
                    continue
                if session.is_expired(self.now(), self.config.session_timeout_ms):
                    await self._store_call(self.store.delete(session_id), "delete")
                    deleted.append(session_id)
        if deleted:
            logger.info("swept %d expired session(s)", len(deleted))
        return deleted
