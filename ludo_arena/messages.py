"""
Wire Protocol - Pydantic models for every message on the socket.

Every message is a flat JSON object discriminated by its "type" field.

Inbound (client -> server):
- JOIN_REQUEST, ROLL_REQUEST, MOVE_REQUEST, START_GAME, ADD_BOT

Outbound (server -> client):
- ROOM_INFO, SYNC_STATE, DICE_RESULT, MOVE_EXECUTED, TURN_SKIPPED,
  PLAYER_JOINED, PLAYER_KICKED, PLAYER_LEFT, BOT_TAKEOVER,
  TURN_TIMER_STARTED, JOIN_SUCCESS, JOIN_REJECTED, ERROR, GAME_FINISHED

Malformed inbound messages raise pydantic.ValidationError from
parse_client_message() and never reach the engine.
"""

from __future__ import annotations
from typing import Annotated, Any, Literal, Optional, Union
from pydantic import BaseModel, Field, TypeAdapter

from .engine_core.action import ErrorCode


class WireModel(BaseModel):
    """Base for all wire messages."""
    model_config = {"extra": "ignore"}

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


# =============================================================================
# Inbound
# =============================================================================

class JoinRequest(WireModel):
    type: Literal["JOIN_REQUEST"] = "JOIN_REQUEST"
    name: str = Field(..., min_length=1, max_length=32)
    create: bool = False
    player_id: Optional[str] = Field(None, description="Stable ID for reconnection")
    total_players: Optional[int] = Field(None, ge=2, le=4)
    bot_count: int = Field(0, ge=0, le=3)


class RollRequest(WireModel):
    type: Literal["ROLL_REQUEST"] = "ROLL_REQUEST"


class MoveRequest(WireModel):
    type: Literal["MOVE_REQUEST"] = "MOVE_REQUEST"
    pawn_id: str = Field(..., min_length=1)


class StartGame(WireModel):
    type: Literal["START_GAME"] = "START_GAME"


class AddBot(WireModel):
    type: Literal["ADD_BOT"] = "ADD_BOT"


ClientMessage = Annotated[
    Union[JoinRequest, RollRequest, MoveRequest, StartGame, AddBot],
    Field(discriminator="type"),
]

_client_adapter: TypeAdapter = TypeAdapter(ClientMessage)


def parse_client_message(raw: str | bytes | dict[str, Any]) -> JoinRequest | RollRequest | MoveRequest | StartGame | AddBot:
    """Validate a raw inbound message. Raises ValidationError on bad input."""
    if isinstance(raw, (str, bytes)):
        return _client_adapter.validate_json(raw)
    return _client_adapter.validate_python(raw)


# =============================================================================
# Outbound
# =============================================================================

class RoomInfo(WireModel):
    type: Literal["ROOM_INFO"] = "ROOM_INFO"
    room_id: str
    player_count: int
    max_players: int
    is_full: bool


class SyncState(WireModel):
    type: Literal["SYNC_STATE"] = "SYNC_STATE"
    state: dict[str, Any]


class DiceResult(WireModel):
    type: Literal["DICE_RESULT"] = "DICE_RESULT"
    dice_value: int = Field(..., ge=1, le=6)
    player: str = Field(..., description="Color that rolled")
    valid_pawn_ids: list[str] = Field(default_factory=list)
    is_bot: bool = False
    forfeited: bool = False


class MoveExecuted(WireModel):
    type: Literal["MOVE_EXECUTED"] = "MOVE_EXECUTED"
    pawn_id: str
    move: dict[str, Any]
    extra_turn: bool = False
    captured: list[str] = Field(default_factory=list)
    is_bot: bool = False


class TurnSkipped(WireModel):
    type: Literal["TURN_SKIPPED"] = "TURN_SKIPPED"
    reason: str
    next_player: str


class PlayerJoined(WireModel):
    type: Literal["PLAYER_JOINED"] = "PLAYER_JOINED"
    player: dict[str, Any]
    player_count: int


class PlayerKicked(WireModel):
    type: Literal["PLAYER_KICKED"] = "PLAYER_KICKED"
    player: dict[str, Any]
    reason: str


class PlayerLeft(WireModel):
    type: Literal["PLAYER_LEFT"] = "PLAYER_LEFT"
    player: dict[str, Any]


class BotTakeover(WireModel):
    type: Literal["BOT_TAKEOVER"] = "BOT_TAKEOVER"
    player: str = Field(..., description="Color the bot is playing for")
    reason: str
    timeouts: int = 0


class TurnTimerStarted(WireModel):
    type: Literal["TURN_TIMER_STARTED"] = "TURN_TIMER_STARTED"
    player: str
    timeout_seconds: float
    deadline: float


class JoinSuccess(WireModel):
    type: Literal["JOIN_SUCCESS"] = "JOIN_SUCCESS"
    player: dict[str, Any]
    room_id: str
    reconnected: bool = False


class JoinRejected(WireModel):
    type: Literal["JOIN_REJECTED"] = "JOIN_REJECTED"
    code: ErrorCode
    message: str


class ErrorMessage(WireModel):
    type: Literal["ERROR"] = "ERROR"
    code: ErrorCode
    message: str


class RankingEntry(BaseModel):
    rank: int
    color: str
    name: str
    player_id: str


class GameFinished(WireModel):
    type: Literal["GAME_FINISHED"] = "GAME_FINISHED"
    winner: Optional[str] = None
    rankings: list[RankingEntry] = Field(default_factory=list)


def error_message(code: ErrorCode, message: str) -> dict[str, Any]:
    return ErrorMessage(code=code, message=message).to_wire()
