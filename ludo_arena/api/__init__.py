"""
API Module - Network interface for game clients.

Exposes rooms over a WebSocket plus a few REST endpoints.
A client:
1. Connects to a room socket
2. Joins (or creates) the room
3. Sends roll and move intents on its turn
4. Receives every state change as it happens

All state is room-scoped. No persistent user accounts required.
"""

from .schemas import (
    RoomSummary,
    RoomListResponse,
    RoomStateResponse,
    EndRoomResponse,
    ErrorResponse,
    HealthResponse,
)
from .service import GameService
from .app import create_app

__all__ = [
    "RoomSummary",
    "RoomListResponse",
    "RoomStateResponse",
    "EndRoomResponse",
    "ErrorResponse",
    "HealthResponse",
    "GameService",
    "create_app",
]
