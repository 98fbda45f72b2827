"""
API Service - Connection layer between the transport and the rooms.

The service:
1. Gives every socket a connection id and remembers its room
2. Validates raw inbound text at the boundary
3. Routes valid intents to the room's orchestrator
4. Delivers outbound messages to per-connection sinks

This layer is framework-agnostic (the FastAPI app plugs queues in as sinks;
tests plug in plain lists).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable
import uuid

from loguru import logger
from pydantic import ValidationError

from ..config import Settings
from ..engine_core.action import ErrorCode
from ..messages import parse_client_message, error_message
from ..session import SessionManager

Sink = Callable[[dict[str, Any]], None]


@dataclass
class GameService:
    """
    Main service for socket clients.

    Usage:
        service = GameService()
        conn_id = service.connect("ROOM1", outbox.append)
        service.receive(conn_id, '{"type": "JOIN_REQUEST", "name": "Ann", "create": true}')
        service.disconnect(conn_id)
    """
    settings: Settings = field(default_factory=Settings.from_env)
    session_manager: SessionManager | None = None

    _sinks: dict[str, Sink] = field(default_factory=dict)
    _rooms: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if self.session_manager is None:
            self.session_manager = SessionManager(settings=self.settings, send=self.deliver)
        else:
            self.session_manager.send = self.deliver

    # =========================================================================
    # Connections
    # =========================================================================

    def connect(self, room_id: str, sink: Sink) -> str:
        """Attach a new connection to a room (creating the room if needed)."""
        connection_id = uuid.uuid4().hex
        self._sinks[connection_id] = sink
        self._rooms[connection_id] = room_id

        session = self.session_manager.get_or_create(room_id)
        session.connections.add(connection_id)
        session.orchestrator.connect(connection_id)
        logger.debug(f"Connection {connection_id} attached to room {room_id}")
        return connection_id

    def receive(self, connection_id: str, raw: str | bytes | dict[str, Any]) -> None:
        """Validate and route one inbound message."""
        room_id = self._rooms.get(connection_id)
        session = self.session_manager.get_session(room_id) if room_id else None
        if session is None:
            self.deliver(connection_id, error_message(ErrorCode.ROOM_NOT_FOUND, "Room is closed"))
            return

        try:
            message = parse_client_message(raw)
        except ValidationError as e:
            logger.debug(f"Rejected malformed message on {connection_id}: {e.error_count()} errors")
            self.deliver(connection_id, error_message(ErrorCode.MALFORMED_MESSAGE, _describe(e)))
            return

        session.orchestrator.handle_message(connection_id, message)

    def disconnect(self, connection_id: str) -> None:
        room_id = self._rooms.pop(connection_id, None)
        self._sinks.pop(connection_id, None)
        if room_id is None:
            return

        session = self.session_manager.get_session(room_id)
        if session is None:
            return
        session.connections.discard(connection_id)
        session.orchestrator.disconnect(connection_id)
        self.session_manager.release_if_idle(room_id)

    def deliver(self, connection_id: str, message: dict[str, Any]) -> None:
        sink = self._sinks.get(connection_id)
        if sink is not None:
            sink(message)

    # =========================================================================
    # Queries
    # =========================================================================

    def get_room_state(self, room_id: str) -> dict[str, Any] | None:
        session = self.session_manager.get_session(room_id)
        if session is None:
            return None
        return session.orchestrator.state.to_dict()

    def list_rooms(self) -> list[dict[str, Any]]:
        return [s.summary() for s in self.session_manager.list_sessions()]

    def end_room(self, room_id: str, reason: str = "user_ended") -> bool:
        return self.session_manager.end_session(room_id, reason)


def _describe(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "message"
    return f"{location}: {first.get('msg', 'invalid')}"
