"""
Pydantic Schemas for the HTTP API - Response models for OpenAPI.

Socket traffic is described in ludo_arena.messages; these models only
cover the REST endpoints (room listing, state snapshots, health).

Error Codes:
- ROOM_NOT_FOUND: Room does not exist or has been closed
"""

from typing import Any
from pydantic import BaseModel, Field

from ..engine_core.action import ErrorCode


# =============================================================================
# Shared Models
# =============================================================================

class RoomSummary(BaseModel):
    """One room in the listing."""
    room_id: str
    state: str = Field(description="waiting, active or game_over")
    phase: str
    player_count: int = 0
    max_players: int = 4
    connections: int = 0
    created_at: float = 0.0


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    api_version: str = Field("v1", description="API version")


class RoomListResponse(BaseModel):
    """Response listing rooms."""
    rooms: list[RoomSummary] = Field(default_factory=list)
    count: int


class RoomStateResponse(BaseModel):
    """Full snapshot of a room's game state."""
    room_id: str
    state: dict[str, Any]
    api_version: str = "v1"


class EndRoomResponse(BaseModel):
    """Response after closing a room."""
    success: bool
    room_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
    rooms: int = 0
