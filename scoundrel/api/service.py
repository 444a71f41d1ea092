"""
API Service - Business logic layer between transports and the engine.

The service:
1. Translates wire requests to SessionManager calls
2. Turns every engine error into an ErrorResponse with a stable code
3. Formats engine objects as wire models

This layer is framework-agnostic: the FastAPI routes and the WebSocket
handler both go through it, and neither ever sees a raw engine exception.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from .schemas import (
    ActionSchema,
    CreateGameRequest,
    EndGameResponse,
    ErrorCode,
    ErrorResponse,
    GameStateSchema,
    HistoryEntrySchema,
    HistoryResponse,
    SessionResponse,
)
from ..config import EngineConfig
from ..errors import EngineError
from ..session import FileSessionStore, InMemorySessionStore, SessionManager


def make_manager(config: EngineConfig) -> SessionManager:
    """Manager over the store the config asks for."""
    if config.store_dir:
        store = FileSessionStore(config.store_dir)
    else:
        store = InMemorySessionStore()
    return SessionManager(store, config=config)


def error_response(error: EngineError) -> ErrorResponse:
    return ErrorResponse(message=error.message, error_code=ErrorCode(error.error_code))


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        session = await service.create_game(CreateGameRequest(player_id="p1"))
        state = await service.handle_action(session.id, action_payload)
    """
    config: EngineConfig = field(default_factory=EngineConfig)
    session_manager: SessionManager | None = None

    def __post_init__(self):
        if self.session_manager is None:
            self.session_manager = make_manager(self.config)

    async def create_game(self, request: CreateGameRequest) -> SessionResponse | ErrorResponse:
        try:
            session = await self.session_manager.create_game(request.player_id)
        except EngineError as e:
            return error_response(e)
        return SessionResponse.from_session(session)

    async def get_game(self, session_id: str) -> SessionResponse | ErrorResponse:
        try:
            session = await self.session_manager.get_game(session_id)
        except EngineError as e:
            return error_response(e)
        return SessionResponse.from_session(session)

    async def handle_action(
        self,
        session_id: str,
        payload: ActionSchema | dict[str, Any],
    ) -> GameStateSchema | ErrorResponse:
        """
        Apply an action sent by a client.

        ``payload`` is either a parsed ActionSchema or the raw JSON object
        from a real-time message.
        """
        try:
            schema = payload if isinstance(payload, ActionSchema) else ActionSchema.model_validate(payload)
            action = schema.to_action()
        except (ValidationError, ValueError, TypeError, KeyError) as e:
            return ErrorResponse(
                message=f"Malformed action: {e}",
                error_code=ErrorCode.VALIDATION_ERROR,
            )

        result = await self.session_manager.handle_action(session_id, action)
        if not result.success:
            return ErrorResponse(
                message=result.error or "Action rejected",
                error_code=ErrorCode(result.error_code or ErrorCode.ENGINE_ERROR.value),
            )
        return GameStateSchema.from_state(result.new_state)

    async def get_history(self, session_id: str) -> HistoryResponse | ErrorResponse:
        try:
            entries = await self.session_manager.get_history(session_id)
        except EngineError as e:
            return error_response(e)
        return HistoryResponse(
            session_id=session_id,
            entries=[HistoryEntrySchema.from_entry(e) for e in entries],
        )

    async def end_game(self, session_id: str) -> EndGameResponse | ErrorResponse:
        try:
            success = await self.session_manager.end_game(session_id)
        except EngineError as e:
            return error_response(e)
        return EndGameResponse(success=success, session_id=session_id)
