"""
Session Manager - Creates and tracks rooms.

One Session per room id. Each session owns exactly one TurnOrchestrator
and the set of connections currently attached to the room.

PERSISTENCE RULES:
- Rooms are in-memory only
- A room is dropped once it has no connections and no game running,
  checked when a connection leaves and when its game finishes, or
  explicitly via end_session()
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable
import random
import time
import uuid

from loguru import logger

from ..config import Settings
from ..engine_core.dice import RandomSource
from ..engine_core.state import GamePhase
from .orchestrator import TurnOrchestrator
from .scheduler import Scheduler


class SessionState(Enum):
    """State of a room, derived from its game phase."""
    WAITING = "waiting"
    ACTIVE = "active"
    GAME_OVER = "game_over"


@dataclass
class Session:
    """
    An ephemeral room.

    Contains:
    - The orchestrator that owns the game state
    - Attached connection ids
    """
    room_id: str
    orchestrator: TurnOrchestrator
    created_at: float
    connections: set[str] = field(default_factory=set)

    @property
    def state(self) -> SessionState:
        phase = self.orchestrator.state.phase
        if phase == GamePhase.WAITING:
            return SessionState.WAITING
        if phase == GamePhase.FINISHED:
            return SessionState.GAME_OVER
        return SessionState.ACTIVE

    def is_active(self) -> bool:
        return self.state != SessionState.GAME_OVER

    def summary(self) -> dict[str, Any]:
        game = self.orchestrator.state
        return {
            "room_id": self.room_id,
            "state": self.state.value,
            "phase": game.phase.value,
            "player_count": len(game.players),
            "max_players": game.max_players,
            "connections": len(self.connections),
            "created_at": self.created_at,
        }


class SessionManager:
    """
    Manages rooms.

    Responsibilities:
    - Create rooms with a wired orchestrator
    - Fan out room broadcasts to attached connections
    - Drop rooms nobody uses any more

    No persistence - rooms are in-memory only.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        scheduler: Scheduler | None = None,
        dice_source: RandomSource | None = None,
        bot_rng: random.Random | None = None,
        send: Callable[[str, dict[str, Any]], None] | None = None,
    ):
        self.settings = settings or Settings()
        self.scheduler = scheduler
        self.dice_source = dice_source
        self.bot_rng = bot_rng
        self.send = send or (lambda connection_id, message: None)
        self._sessions: dict[str, Session] = {}

    def create_session(self, room_id: str | None = None) -> Session:
        """Create a room. A missing id gets a short random code."""
        room_id = room_id or uuid.uuid4().hex[:6].upper()
        if room_id in self._sessions:
            raise ValueError(f"Room {room_id} already exists")

        session: Session | None = None

        def broadcast(message: dict[str, Any]) -> None:
            for connection_id in list(session.connections):
                self.send(connection_id, message)

        orchestrator = TurnOrchestrator(
            room_id,
            settings=self.settings,
            scheduler=self.scheduler,
            dice_source=self.dice_source,
            bot_rng=self.bot_rng,
            broadcast=broadcast,
            send=self.send,
            on_finished=self.release_if_idle,
        )
        session = Session(room_id=room_id, orchestrator=orchestrator, created_at=time.time())
        self._sessions[room_id] = session
        logger.info(f"Created room {room_id}")
        return session

    def get_session(self, room_id: str) -> Session | None:
        return self._sessions.get(room_id)

    def get_or_create(self, room_id: str) -> Session:
        return self._sessions.get(room_id) or self.create_session(room_id)

    def end_session(self, room_id: str, reason: str = "completed") -> bool:
        """Drop a room and stop its timers."""
        session = self._sessions.pop(room_id, None)
        if session is None:
            return False
        session.orchestrator.close()
        session.connections.clear()
        logger.info(f"Closed room {room_id} ({reason})")
        return True

    def release_if_idle(self, room_id: str) -> bool:
        """Drop a room with no connections unless a game is still running in it."""
        session = self._sessions.get(room_id)
        if session is None or session.connections:
            return False
        if session.orchestrator.state.is_in_progress:
            return False
        return self.end_session(room_id, reason="idle")

    def list_active_sessions(self) -> list[str]:
        return [rid for rid, session in self._sessions.items() if session.is_active()]

    def list_sessions(self) -> list[Session]:
        return list(self._sessions.values())
