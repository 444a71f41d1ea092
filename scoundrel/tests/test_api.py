"""
Tests for API layer.

Tests:
- API service methods
- Request/response serialization
- HTTP and WebSocket routes
- Error mapping
"""

import asyncio

import pytest

from ..api.schemas import (
    ActionSchema,
    CreateGameRequest,
    ErrorCode,
    ErrorResponse,
    GameStateSchema,
    SessionResponse,
)
from ..api.service import APIService
from ..config import EngineConfig, now_ms
from ..engine_core.action import ActionType


def run(coro):
    return asyncio.run(coro)


class TestSchemas:
    """Wire model conversions."""

    def test_action_schema_camel_case_in(self):
        schema = ActionSchema.model_validate({
            "type": "FIGHT_MONSTER",
            "monster": {"type": "MONSTER", "suit": "S", "rank": "K", "damage": 13},
            "timestamp": 1,
            "sequence": 2,
        })
        action = schema.to_action()

        assert action.action_type == ActionType.FIGHT_MONSTER
        assert action.monster.damage == 13
        assert action.sequence == 2

    def test_wrong_archetype_payload_rejected(self):
        schema = ActionSchema.model_validate({
            "type": "EQUIP_WEAPON",
            "weapon": {"type": "MONSTER", "suit": "S", "rank": "5", "damage": 5},
            "timestamp": 1,
            "sequence": 1,
        })
        with pytest.raises(TypeError):
            schema.to_action()

    def test_state_schema_uses_camel_case(self, fight_room):
        data = GameStateSchema.from_state(fight_room).model_dump(by_alias=True)
        assert data["maxHealth"] == 20
        assert data["canAvoidRoom"] is True
        assert data["room"][2]["type"] == "WEAPON"


class TestAPIService:
    """Tests for APIService."""

    @pytest.fixture
    def service(self):
        return APIService(config=EngineConfig())

    def test_create_and_get(self, service):
        created = run(service.create_game(CreateGameRequest(player_id="alice")))
        assert isinstance(created, SessionResponse)
        assert created.player_id == "alice"
        assert len(created.state.dungeon) == 44

        fetched = run(service.get_game(created.id))
        assert fetched.id == created.id

    def test_get_nonexistent_session(self, service):
        response = run(service.get_game("nonexistent-id"))

        assert isinstance(response, ErrorResponse)
        assert response.error_code == ErrorCode.SESSION_NOT_FOUND

    def test_action_from_raw_payload(self, service):
        created = run(service.create_game(CreateGameRequest(player_id="alice")))
        state = run(service.handle_action(created.id, {
            "type": "DRAW_ROOM",
            "timestamp": now_ms(),
            "sequence": 1,
        }))

        assert isinstance(state, GameStateSchema)
        assert len(state.room) == 4
        assert state.last_action_sequence == 1

    def test_malformed_action(self, service):
        created = run(service.create_game(CreateGameRequest(player_id="alice")))
        response = run(service.handle_action(created.id, {"type": "DANCE", "timestamp": 0, "sequence": 1}))

        assert response.error_code == ErrorCode.VALIDATION_ERROR

    def test_rejected_action_keeps_code(self, service):
        created = run(service.create_game(CreateGameRequest(player_id="alice")))
        response = run(service.handle_action(created.id, {
            "type": "DRAW_ROOM",
            "timestamp": now_ms(),
            "sequence": 7,
        }))

        assert response.error_code == ErrorCode.SEQUENCE_MISMATCH

    def test_end_game(self, service):
        created = run(service.create_game(CreateGameRequest(player_id="alice")))
        assert run(service.end_game(created.id)).success
        assert not run(service.end_game(created.id)).success


class TestHTTP:
    """Routes through FastAPI's TestClient."""

    @pytest.fixture
    def client(self):
        from fastapi.testclient import TestClient
        from ..api.app import create_app

        return TestClient(create_app(config=EngineConfig()))

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_game_flow(self, client):
        created = client.post("/api/v1/games", json={"playerId": "alice"})
        assert created.status_code == 200
        session_id = created.json()["id"]
        assert created.json()["state"]["maxHealth"] == 20

        response = client.post(
            f"/api/v1/games/{session_id}/actions",
            json={"type": "DRAW_ROOM", "timestamp": now_ms(), "sequence": 1},
        )
        assert response.status_code == 200
        assert len(response.json()["room"]) == 4

        history = client.get(f"/api/v1/games/{session_id}/history")
        assert [e["sequence"] for e in history.json()["entries"]] == [0, 1]

        assert client.delete(f"/api/v1/games/{session_id}").json()["success"]
        assert client.get(f"/api/v1/games/{session_id}").status_code == 404

    def test_illegal_action_status(self, client):
        session_id = client.post("/api/v1/games", json={"playerId": "alice"}).json()["id"]
        response = client.post(
            f"/api/v1/games/{session_id}/actions",
            json={"type": "AVOID_ROOM", "timestamp": now_ms(), "sequence": 1},
        )

        assert response.status_code == 422
        assert response.json()["errorCode"] == "VALIDATION_ERROR"
        assert response.json()["message"] == "No room to avoid"

    def test_drift_status(self, client):
        session_id = client.post("/api/v1/games", json={"playerId": "alice"}).json()["id"]
        response = client.post(
            f"/api/v1/games/{session_id}/actions",
            json={"type": "DRAW_ROOM", "timestamp": now_ms() - 60_000, "sequence": 1},
        )

        assert response.status_code == 400
        assert response.json()["errorCode"] == "TIMESTAMP_DRIFT"

    def test_websocket_round_trip(self, client):
        with client.websocket_connect("/api/v1/ws") as ws:
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}

            ws.send_json({"type": "create_game", "payload": {"playerId": "alice"}})
            created = ws.receive_json()
            assert created["type"] == "game_created"
            session_id = created["payload"]["id"]

            ws.send_json({
                "type": "game_action",
                "payload": {
                    "sessionId": session_id,
                    "action": {"type": "DRAW_ROOM", "timestamp": now_ms(), "sequence": 1},
                },
            })
            updated = ws.receive_json()
            assert updated["type"] == "game_state_updated"
            assert updated["payload"]["lastActionSequence"] == 1

            ws.send_json({"type": "join_game", "payload": {"sessionId": "missing"}})
            error = ws.receive_json()
            assert error["type"] == "error"
            assert error["payload"]["errorCode"] == "SESSION_NOT_FOUND"

            ws.send_text("not json")
            assert ws.receive_json()["type"] == "error"
