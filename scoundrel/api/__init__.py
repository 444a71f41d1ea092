"""
API Module - Client-facing interface.

Exposes the engine over REST and a WebSocket channel. The client:
1. Creates a game
2. Sends actions stamped with a timestamp and the next sequence number
3. Receives the new sealed state, or a typed error

The transport holds no game state; everything goes through APIService.
"""

from .schemas import (
    ActionMessage,
    ActionSchema,
    CardSchema,
    CreateGameRequest,
    EndGameResponse,
    ErrorCode,
    ErrorResponse,
    GameStateSchema,
    HistoryResponse,
    SessionResponse,
)
from .service import APIService
from .app import create_app

__all__ = [
    "ActionMessage",
    "ActionSchema",
    "CardSchema",
    "CreateGameRequest",
    "EndGameResponse",
    "ErrorCode",
    "ErrorResponse",
    "GameStateSchema",
    "HistoryResponse",
    "SessionResponse",
    "APIService",
    "create_app",
]
