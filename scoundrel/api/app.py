"""
FastAPI Application - REST and WebSocket transport for the engine.

Endpoints:
    POST   /api/v1/games                  Create a game
    GET    /api/v1/games/{id}             Get a game session
    DELETE /api/v1/games/{id}             End a game
    POST   /api/v1/games/{id}/actions     Apply an action
    GET    /api/v1/games/{id}/history     Recorded transitions
    WS     /api/v1/ws                     Real-time channel
    GET    /health                        Health check

WebSocket messages from client:
- create_game {playerId}
- join_game {sessionId}
- game_action {sessionId, action}
- ping

Messages from server:
- game_created, game_state, game_state_updated, error, pong

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Union
import json
import logging

from .. import __version__
from ..config import EngineConfig

logger = logging.getLogger(__name__)

# HTTP status for each engine error code
ERROR_STATUS = {
    "VALIDATION_ERROR": 422,
    "SECURITY_ERROR": 400,
    "RATE_LIMIT_EXCEEDED": 429,
    "TIMESTAMP_DRIFT": 400,
    "SEQUENCE_MISMATCH": 400,
    "INTEGRITY_VIOLATION": 409,
    "SESSION_NOT_FOUND": 404,
    "STORE_ERROR": 503,
    "ENGINE_ERROR": 500,
}


def create_app(service=None, config: EngineConfig | None = None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)
        config: Engine configuration (read from the environment if omitted)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, WebSocket, WebSocketDisconnect
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .service import APIService
    from .schemas import (
        ActionMessage,
        ActionSchema,
        CreateGameRequest,
        EndGameResponse,
        ErrorCode,
        ErrorResponse,
        GameStateSchema,
        HealthResponse,
        HistoryResponse,
        SessionResponse,
    )

    config = config or EngineConfig.from_env()
    api_service = service or APIService(config=config)

    app = FastAPI(
        title="Scoundrel Engine API",
        description="""
Authoritative server for the Scoundrel dungeon crawler.

Every action carries the client's `timestamp` (epoch ms) and the next
`sequence` number. The server checks rate, clock drift and sequence, then
the game rules, and answers with the new sealed `GameState`.

## Error Codes

| Code | Description |
|------|-------------|
| `VALIDATION_ERROR` | Action breaks a game rule or is malformed |
| `RATE_LIMIT_EXCEEDED` | Too many actions in the current window |
| `TIMESTAMP_DRIFT` | Client clock too far from server clock |
| `SEQUENCE_MISMATCH` | Sequence is not last + 1 |
| `INTEGRITY_VIOLATION` | Stored state was tampered with; start a new game |
| `SESSION_NOT_FOUND` | Session does not exist or has expired |
| `STORE_ERROR` | Persistence failed; nothing applied, retry |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(error: ErrorResponse) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=ERROR_STATUS.get(error.error_code.value, 400),
            content=error.model_dump(mode="json", by_alias=True),
        )

    def respond(result):
        if isinstance(result, ErrorResponse):
            return make_error_response(result)
        return result

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/games",
        response_model=SessionResponse,
        response_model_by_alias=True,
        responses={503: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Start a new game",
    )
    async def create_game(request: CreateGameRequest) -> Union[SessionResponse, JSONResponse]:
        """Deal a shuffled dungeon and return the new session."""
        return respond(await api_service.create_game(request))

    @app.get(
        "/api/v1/games/{session_id}",
        response_model=SessionResponse,
        response_model_by_alias=True,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Get a game session",
    )
    async def get_game(session_id: str) -> Union[SessionResponse, JSONResponse]:
        return respond(await api_service.get_game(session_id))

    @app.delete(
        "/api/v1/games/{session_id}",
        response_model=EndGameResponse,
        response_model_by_alias=True,
        tags=["Games"],
        summary="End a game",
    )
    async def end_game(session_id: str) -> Union[EndGameResponse, JSONResponse]:
        """End a game and delete its session and history."""
        return respond(await api_service.end_game(session_id))

    @app.post(
        "/api/v1/games/{session_id}/actions",
        response_model=GameStateSchema,
        response_model_by_alias=True,
        responses={
            400: {"model": ErrorResponse, "description": "Refused by the integrity layer"},
            404: {"model": ErrorResponse, "description": "Session not found"},
            409: {"model": ErrorResponse, "description": "Integrity violation"},
            422: {"model": ErrorResponse, "description": "Illegal action"},
            429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
        },
        tags=["Game Loop"],
        summary="Apply a player action",
    )
    async def handle_action(
        session_id: str,
        action: ActionSchema,
    ) -> Union[GameStateSchema, JSONResponse]:
        return respond(await api_service.handle_action(session_id, action))

    @app.get(
        "/api/v1/games/{session_id}/history",
        response_model=HistoryResponse,
        response_model_by_alias=True,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Recorded transitions of a game",
    )
    async def get_history(session_id: str) -> Union[HistoryResponse, JSONResponse]:
        return respond(await api_service.get_history(session_id))

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    async def handle_message(message: dict) -> dict:
        """Answer one real-time message."""
        kind = message.get("type")
        payload = message.get("payload") or {}

        if kind == "ping":
            return {"type": "pong"}

        if kind == "create_game":
            result = await api_service.create_game(CreateGameRequest.model_validate(payload))
            reply_type = "game_created"
        elif kind == "join_game":
            result = await api_service.get_game(str(payload.get("sessionId", "")))
            reply_type = "game_state"
        elif kind == "game_action":
            envelope = ActionMessage.model_validate(payload)
            result = await api_service.handle_action(envelope.session_id, envelope.action)
            reply_type = "game_state_updated"
        else:
            result = ErrorResponse(
                message=f"Unknown message type: {kind}",
                error_code=ErrorCode.VALIDATION_ERROR,
            )

        if isinstance(result, ErrorResponse):
            return {"type": "error", "payload": result.model_dump(mode="json", by_alias=True)}
        return {"type": reply_type, "payload": result.model_dump(mode="json", by_alias=True)}

    @app.websocket("/api/v1/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """
        Real-time channel.

        Each message is ``{"type": ..., "payload": {...}}``; each gets
        exactly one reply.
        """
        await websocket.accept()
        try:
            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                    reply = await handle_message(message)
                except (json.JSONDecodeError, ValueError, AttributeError) as e:
                    reply = {
                        "type": "error",
                        "payload": {
                            "message": f"Invalid message: {e}",
                            "errorCode": ErrorCode.VALIDATION_ERROR.value,
                        },
                    }
                await websocket.send_json(reply)
        except WebSocketDisconnect:
            logger.debug("websocket client disconnected")

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(version=__version__)

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Scoundrel Engine API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app
