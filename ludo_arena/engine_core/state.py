"""
Game State - The snapshot the engine operates on and broadcasts.

Design principles:
- Immutable: every engine operation returns a new snapshot
- Serializable: to_dict()/from_dict() round-trip to an equal snapshot
- Complete: no hidden engine state lives outside the snapshot
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any
import time


class Color(str, Enum):
    """Player colors, in turn-rotation order."""
    RED = "RED"
    BLUE = "BLUE"
    GREEN = "GREEN"
    YELLOW = "YELLOW"


COLORS: tuple[Color, ...] = (Color.RED, Color.BLUE, Color.GREEN, Color.YELLOW)


class GamePhase(str, Enum):
    """High-level game phases."""
    WAITING = "WAITING"  # Roster assembling
    ROLLING = "ROLLING"  # Current player must roll
    MOVING = "MOVING"  # Current player must pick a pawn
    FINISHED = "FINISHED"


@dataclass(frozen=True)
class Pawn:
    """A single pawn. Position is relative to its own color."""
    pawn_id: str  # e.g. "RED_0"
    color: Color
    position: int
    index: int

    def with_position(self, position: int) -> Pawn:
        return replace(self, position=position)

    def to_dict(self) -> dict[str, Any]:
        return {
            "pawn_id": self.pawn_id,
            "color": self.color.value,
            "position": self.position,
            "index": self.index,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Pawn:
        return cls(
            pawn_id=data["pawn_id"],
            color=Color(data["color"]),
            position=int(data["position"]),
            index=int(data["index"]),
        )


@dataclass(frozen=True)
class Player:
    """
    A seated player.

    player_id is stable across reconnects; connection_id changes
    every time the transport hands us a new socket.
    """
    player_id: str
    name: str
    color: Color
    connection_id: str | None = None
    is_bot: bool = False
    is_active: bool = True
    rank: int | None = None

    @property
    def is_ranked(self) -> bool:
        return self.rank is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "name": self.name,
            "color": self.color.value,
            "connection_id": self.connection_id,
            "is_bot": self.is_bot,
            "is_active": self.is_active,
            "rank": self.rank,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Player:
        return cls(
            player_id=data["player_id"],
            name=data["name"],
            color=Color(data["color"]),
            connection_id=data.get("connection_id"),
            is_bot=bool(data.get("is_bot", False)),
            is_active=bool(data.get("is_active", True)),
            rank=data.get("rank"),
        )


@dataclass(frozen=True)
class MoveRecord:
    """The last executed move (the only history the engine keeps)."""
    color: Color
    pawn_id: str
    origin: int
    destination: int
    timestamp: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "color": self.color.value,
            "pawn_id": self.pawn_id,
            "origin": self.origin,
            "destination": self.destination,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MoveRecord:
        return cls(
            color=Color(data["color"]),
            pawn_id=data["pawn_id"],
            origin=int(data["origin"]),
            destination=int(data["destination"]),
            timestamp=float(data["timestamp"]),
        )


@dataclass(frozen=True)
class GameState:
    """
    Complete session state at a point in time.

    This is the canonical state that the engine operates on.
    All state changes go through the engine functions, which return
    a new GameState rather than mutating this one.
    """
    room_id: str
    max_players: int = 4

    players: tuple[Player, ...] = field(default_factory=tuple)
    pawns: tuple[Pawn, ...] = field(default_factory=tuple)

    current_turn: Color = Color.RED
    dice_value: int | None = None
    phase: GamePhase = GamePhase.WAITING

    consecutive_sixes: int = 0
    last_move: MoveRecord | None = None
    last_roll_time: float = 0.0
    winner: Color | None = None
    last_update: float = 0.0

    @classmethod
    def create(cls, room_id: str, max_players: int = 4, now: float | None = None) -> GameState:
        """Create an empty session waiting for players."""
        return cls(
            room_id=room_id,
            max_players=max_players,
            last_update=time.time() if now is None else now,
        )

    @property
    def is_in_progress(self) -> bool:
        return self.phase in (GamePhase.ROLLING, GamePhase.MOVING)

    @property
    def current_player(self) -> Player | None:
        """The player whose color holds the turn."""
        return self.get_player_by_color(self.current_turn)

    def get_player(self, player_id: str) -> Player | None:
        """Get player by stable ID."""
        for p in self.players:
            if p.player_id == player_id:
                return p
        return None

    def get_player_by_color(self, color: Color) -> Player | None:
        for p in self.players:
            if p.color == color:
                return p
        return None

    def get_player_by_connection(self, connection_id: str) -> Player | None:
        for p in self.players:
            if p.connection_id == connection_id:
                return p
        return None

    def get_pawn(self, pawn_id: str) -> Pawn | None:
        for p in self.pawns:
            if p.pawn_id == pawn_id:
                return p
        return None

    def pawns_of(self, color: Color) -> list[Pawn]:
        return [p for p in self.pawns if p.color == color]

    def with_player(self, player: Player) -> GameState:
        """Return new state with updated player (matched by player_id)."""
        new_players = tuple(
            player if p.player_id == player.player_id else p
            for p in self.players
        )
        return self._copy_with(players=new_players)

    def with_pawn(self, pawn: Pawn) -> GameState:
        """Return new state with updated pawn (matched by pawn_id)."""
        new_pawns = tuple(
            pawn if p.pawn_id == pawn.pawn_id else p
            for p in self.pawns
        )
        return self._copy_with(pawns=new_pawns)

    def _copy_with(self, **kwargs) -> GameState:
        """Create a copy with some fields replaced."""
        return replace(self, **kwargs)

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Full snapshot as plain JSON-compatible data."""
        return {
            "room_id": self.room_id,
            "max_players": self.max_players,
            "players": [p.to_dict() for p in self.players],
            "pawns": [p.to_dict() for p in self.pawns],
            "current_turn": self.current_turn.value,
            "dice_value": self.dice_value,
            "phase": self.phase.value,
            "consecutive_sixes": self.consecutive_sixes,
            "last_move": self.last_move.to_dict() if self.last_move else None,
            "last_roll_time": self.last_roll_time,
            "winner": self.winner.value if self.winner else None,
            "last_update": self.last_update,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GameState:
        """Rebuild a snapshot from to_dict() output."""
        return cls(
            room_id=data["room_id"],
            max_players=int(data.get("max_players", 4)),
            players=tuple(Player.from_dict(p) for p in data.get("players", [])),
            pawns=tuple(Pawn.from_dict(p) for p in data.get("pawns", [])),
            current_turn=Color(data.get("current_turn", Color.RED.value)),
            dice_value=data.get("dice_value"),
            phase=GamePhase(data.get("phase", GamePhase.WAITING.value)),
            consecutive_sixes=int(data.get("consecutive_sixes", 0)),
            last_move=MoveRecord.from_dict(data["last_move"]) if data.get("last_move") else None,
            last_roll_time=float(data.get("last_roll_time", 0.0)),
            winner=Color(data["winner"]) if data.get("winner") else None,
            last_update=float(data.get("last_update", 0.0)),
        )
