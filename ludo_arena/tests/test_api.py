"""
Tests for the API layer.

Tests:
- GameService routing and boundary validation
- REST endpoints
- WebSocket message flow
"""

import json
import random

import pytest
from fastapi.testclient import TestClient

from ..api import GameService, create_app
from ..engine_core.dice import SequenceSource
from ..session import SessionManager


@pytest.fixture
def service(settings, scheduler):
    manager = SessionManager(settings=settings, scheduler=scheduler, dice_source=SequenceSource([0.5]))
    return GameService(settings=settings, session_manager=manager)


@pytest.fixture
def client(service):
    return TestClient(create_app(service=service))


def join(service, conn, name, **kwargs):
    service.receive(conn, json.dumps({"type": "JOIN_REQUEST", "name": name, **kwargs}))


class TestGameService:
    def test_connect_creates_room_and_greets(self, service):
        outbox = []
        service.connect("ROOM1", outbox.append)

        assert [m["type"] for m in outbox] == ["ROOM_INFO", "SYNC_STATE"]
        assert outbox[0]["room_id"] == "ROOM1"
        assert service.get_room_state("ROOM1")["phase"] == "WAITING"

    def test_malformed_message_rejected(self, service):
        outbox = []
        conn = service.connect("ROOM1", outbox.append)

        service.receive(conn, "{not json")
        service.receive(conn, json.dumps({"type": "MOVE_REQUEST"}))

        errors = outbox[-2:]
        assert [m["code"] for m in errors] == ["MALFORMED_MESSAGE", "MALFORMED_MESSAGE"]
        assert "pawn_id" in errors[1]["message"]

    def test_broadcasts_reach_every_connection(self, service):
        alice_box, bob_box = [], []
        alice = service.connect("ROOM1", alice_box.append)
        bob = service.connect("ROOM1", bob_box.append)

        join(service, alice, "alice", create=True, total_players=2)
        join(service, bob, "bob")

        assert service.get_room_state("ROOM1")["phase"] == "ROLLING"
        for box in (alice_box, bob_box):
            assert box[-1]["type"] == "TURN_TIMER_STARTED"
            assert box[-1]["player"] == "RED"
        assert [m["type"] for m in bob_box if m["type"] == "JOIN_SUCCESS"] == ["JOIN_SUCCESS"]
        assert not any(m["type"] == "JOIN_SUCCESS" for m in alice_box[-3:])

    def test_roll_result_is_broadcast(self, service):
        alice_box, bob_box = [], []
        alice = service.connect("ROOM1", alice_box.append)
        bob = service.connect("ROOM1", bob_box.append)
        join(service, alice, "alice", create=True, total_players=2)
        join(service, bob, "bob")

        service.receive(alice, {"type": "ROLL_REQUEST", "dice_value": 6})

        dice = [m for m in bob_box if m["type"] == "DICE_RESULT"]
        assert len(dice) == 1
        assert dice[0]["dice_value"] == 1

    def test_idle_room_released(self, service):
        conn = service.connect("ROOM1", [].append)
        join(service, conn, "alice", create=True)

        service.disconnect(conn)

        assert service.list_rooms() == []

    def test_finished_bot_game_is_released(self, settings, scheduler):
        manager = SessionManager(
            settings=settings, scheduler=scheduler,
            dice_source=random.Random(5), bot_rng=random.Random(5),
        )
        service = GameService(settings=settings, session_manager=manager)
        conn = service.connect("ROOM1", [].append)
        join(service, conn, "alice", create=True, total_players=4, bot_count=3)
        assert service.get_room_state("ROOM1")["phase"] == "ROLLING"

        service.disconnect(conn)
        assert [r["room_id"] for r in service.list_rooms()] == ["ROOM1"]

        scheduler.advance(100000)

        assert service.get_room_state("ROOM1") is None
        assert service.list_rooms() == []
        assert scheduler.pending == 0

    def test_running_game_survives_disconnects(self, service):
        alice = service.connect("ROOM1", [].append)
        bob = service.connect("ROOM1", [].append)
        join(service, alice, "alice", create=True, total_players=2)
        join(service, bob, "bob")

        service.disconnect(alice)
        service.disconnect(bob)

        rooms = service.list_rooms()
        assert [r["room_id"] for r in rooms] == ["ROOM1"]
        assert rooms[0]["state"] == "active"

    def test_closed_room_rejects_messages(self, service):
        outbox = []
        conn = service.connect("ROOM1", outbox.append)
        assert service.end_room("ROOM1")

        service.receive(conn, {"type": "ROLL_REQUEST"})

        assert outbox[-1]["code"] == "ROOM_NOT_FOUND"


class TestRestEndpoints:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["service"] == "ludo-arena"
        assert body["rooms"] == 0

    def test_list_rooms(self, client, service):
        service.connect("ROOM1", [].append)
        body = client.get("/api/v1/rooms").json()

        assert body["count"] == 1
        assert body["rooms"][0]["room_id"] == "ROOM1"
        assert body["rooms"][0]["state"] == "waiting"

    def test_room_state(self, client, service):
        service.connect("ROOM1", [].append)
        response = client.get("/api/v1/rooms/ROOM1/state")

        assert response.status_code == 200
        assert response.json()["state"]["room_id"] == "ROOM1"

    def test_missing_room_state(self, client):
        response = client.get("/api/v1/rooms/NOPE/state")

        assert response.status_code == 404
        assert response.json()["error_code"] == "ROOM_NOT_FOUND"

    def test_end_room(self, client, service):
        service.connect("ROOM1", [].append)

        assert client.delete("/api/v1/rooms/ROOM1").json()["success"] is True
        assert client.delete("/api/v1/rooms/ROOM1").json()["success"] is False


class TestWebSocket:
    def test_join_flow(self, client):
        with client.websocket_connect("/api/v1/rooms/ROOM1/ws") as ws:
            assert ws.receive_json()["type"] == "ROOM_INFO"
            assert ws.receive_json()["type"] == "SYNC_STATE"

            ws.send_text(json.dumps({"type": "JOIN_REQUEST", "name": "alice", "create": True}))

            success = ws.receive_json()
            assert success["type"] == "JOIN_SUCCESS"
            assert success["player"]["color"] == "RED"
            assert ws.receive_json()["type"] == "PLAYER_JOINED"
            snapshot = ws.receive_json()
            assert snapshot["type"] == "SYNC_STATE"
            assert snapshot["state"]["players"][0]["name"] == "alice"

    def test_bad_message_gets_error(self, client):
        with client.websocket_connect("/api/v1/rooms/ROOM1/ws") as ws:
            ws.receive_json()
            ws.receive_json()

            ws.send_text("hello")

            error = ws.receive_json()
            assert error["type"] == "ERROR"
            assert error["code"] == "MALFORMED_MESSAGE"

    def test_binary_frame_gets_error(self, client):
        with client.websocket_connect("/api/v1/rooms/ROOM1/ws") as ws:
            ws.receive_json()
            ws.receive_json()

            ws.send_bytes(b"\x00\x01")
            error = ws.receive_json()
            assert error["type"] == "ERROR"
            assert error["code"] == "MALFORMED_MESSAGE"

            ws.send_text(json.dumps({"type": "JOIN_REQUEST", "name": "alice", "create": True}))
            assert ws.receive_json()["type"] == "JOIN_SUCCESS"
