"""
Pydantic Schemas for API - Wire models for clients.

Wire names are camelCase; Python attributes are snake_case. Every model
accepts either form on input.

Error Codes:
- VALIDATION_ERROR: action breaks a game rule, or is malformed
- RATE_LIMIT_EXCEEDED / TIMESTAMP_DRIFT / SEQUENCE_MISMATCH: refused by
  the integrity layer; retry with a corrected action
- INTEGRITY_VIOLATION: stored state was tampered with; session destroyed
- SESSION_NOT_FOUND: session does not exist or has expired
- STORE_ERROR: persistence failed; nothing was applied, safe to retry
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..engine_core.action import GameAction
from ..engine_core.state import GameState
from ..session.models import GameSession, HistoryEntry


class WireModel(BaseModel):
    """Base for every wire model: camelCase out, either case in."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Enums
# =============================================================================

class CardTypeName(str, Enum):
    MONSTER = "MONSTER"
    WEAPON = "WEAPON"
    HEALTH_POTION = "HEALTH_POTION"


class ActionTypeName(str, Enum):
    DRAW_ROOM = "DRAW_ROOM"
    AVOID_ROOM = "AVOID_ROOM"
    FIGHT_MONSTER = "FIGHT_MONSTER"
    USE_WEAPON = "USE_WEAPON"
    USE_HEALTH_POTION = "USE_HEALTH_POTION"
    EQUIP_WEAPON = "EQUIP_WEAPON"


class ErrorCode(str, Enum):
    """Structured error codes."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    SECURITY_ERROR = "SECURITY_ERROR"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    TIMESTAMP_DRIFT = "TIMESTAMP_DRIFT"
    SEQUENCE_MISMATCH = "SEQUENCE_MISMATCH"
    INTEGRITY_VIOLATION = "INTEGRITY_VIOLATION"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    STORE_ERROR = "STORE_ERROR"
    ENGINE_ERROR = "ENGINE_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class CardSchema(WireModel):
    """One card; only the fields of its archetype are set."""
    type: CardTypeName
    suit: str = Field(description="Suit symbol or letter (S, C, H, D)")
    rank: str = Field(description="2-10, J, Q, K or A")
    damage: Optional[int] = None
    healing: Optional[int] = None
    slain_monsters: Optional[list["CardSchema"]] = None


class GameStateSchema(WireModel):
    """The authoritative snapshot as sent to clients."""
    health: int
    max_health: int
    dungeon: list[CardSchema]
    room: list[CardSchema]
    discard_pile: list[CardSchema]
    equipped_weapon: Optional[CardSchema] = None
    can_avoid_room: bool
    game_over: bool
    score: int
    original_room_size: int
    remaining_avoids: int
    last_action_was_avoid: bool
    last_action_timestamp: int
    last_action_sequence: int
    state_checksum: str

    @classmethod
    def from_state(cls, state: GameState) -> "GameStateSchema":
        return cls.model_validate(state.to_dict())


# =============================================================================
# Request Models
# =============================================================================

class CreateGameRequest(WireModel):
    player_id: str = Field(min_length=1, max_length=128)


class ActionSchema(WireModel):
    """A player action exactly as a client sends it."""
    type: ActionTypeName
    monster: Optional[CardSchema] = None
    weapon: Optional[CardSchema] = None
    healing: Optional[int] = None
    timestamp: int
    sequence: int

    def to_action(self) -> GameAction:
        """
        Convert to an engine action.

        Raises ValueError/TypeError/KeyError for a payload that is not a
        card of the right archetype.
        """
        return GameAction.from_dict(self.model_dump(mode="json", by_alias=True, exclude_none=True))


class ActionMessage(WireModel):
    """Real-time channel envelope for an action."""
    session_id: str
    action: ActionSchema


# =============================================================================
# Response Models
# =============================================================================

class SessionResponse(WireModel):
    id: str
    player_id: str
    state: GameStateSchema
    action_count: int = 0
    last_action_time: int = 0
    actions_in_last_minute: int = 0
    window_started_at: int = 0
    created_at: int = 0
    last_updated_at: int = 0

    @classmethod
    def from_session(cls, session: GameSession) -> "SessionResponse":
        return cls.model_validate(session.to_dict())


class HistoryEntrySchema(WireModel):
    session_id: str
    player_id: str
    sequence: int
    action: Optional[dict[str, Any]] = None
    state: GameStateSchema
    recorded_at: int

    @classmethod
    def from_entry(cls, entry: HistoryEntry) -> "HistoryEntrySchema":
        return cls.model_validate(entry.to_dict())


class HistoryResponse(WireModel):
    session_id: str
    entries: list[HistoryEntrySchema] = Field(default_factory=list)


class EndGameResponse(WireModel):
    success: bool
    session_id: str


class ErrorResponse(WireModel):
    """Standard error response."""
    message: str
    error_code: ErrorCode = ErrorCode.ENGINE_ERROR


class HealthResponse(WireModel):
    status: str = "healthy"
    service: str = "scoundrel-engine"
    version: str
