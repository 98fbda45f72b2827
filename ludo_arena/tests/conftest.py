"""
Pytest fixtures for Ludo Arena tests.
"""

import heapq
import itertools

import pytest

from ..config import Settings
from ..engine_core.state import GameState, GamePhase, Color
from ..engine_core.roster import add_player
from ..engine_core.dice import SequenceSource
from ..session.orchestrator import TurnOrchestrator


# Start every clock well past 0 so the roll debounce never fires by accident
T0 = 1000.0


class FakeTimer:
    def __init__(self):
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Manual clock; callbacks fire only when the test advances time."""

    def __init__(self, start: float = T0):
        self.time = start
        self._queue = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self.time

    def call_later(self, delay, callback, *args):
        timer = FakeTimer()
        heapq.heappush(self._queue, (self.time + delay, next(self._seq), timer, callback, args))
        return timer

    @property
    def pending(self) -> int:
        return sum(1 for _, _, timer, _, _ in self._queue if not timer.cancelled)

    def advance(self, seconds: float):
        """Move the clock forward, firing due callbacks in order."""
        target = self.time + seconds
        while self._queue and self._queue[0][0] <= target:
            due, _, timer, callback, args = heapq.heappop(self._queue)
            self.time = max(self.time, due)
            if not timer.cancelled:
                callback(*args)
        self.time = target


def seat(state: GameState, *names: str, bots: tuple = ()) -> GameState:
    """Seat humans (connection id = name) then bots, in color order."""
    for name in names:
        state = add_player(state, name, connection_id=name, player_id=name, now=T0).new_state
    for name in bots:
        state = add_player(state, name, player_id=name, is_bot=True, now=T0).new_state
    return state


def place(state: GameState, **positions: int) -> GameState:
    """Move pawns directly, e.g. place(state, RED_0=44, BLUE_1=32)."""
    for pawn_id, position in positions.items():
        state = state.with_pawn(state.get_pawn(pawn_id).with_position(position))
    return state


def rolled(state: GameState, dice: int, color: Color | None = None) -> GameState:
    """State as if the current (or given) color just rolled dice."""
    return state._copy_with(
        current_turn=color or state.current_turn,
        dice_value=dice,
        phase=GamePhase.MOVING,
    )


@pytest.fixture
def empty_state() -> GameState:
    return GameState.create("ROOM1", now=T0)


@pytest.fixture
def two_player_state(empty_state) -> GameState:
    """RED (alice) and BLUE (bob), started, RED to roll."""
    state = seat(empty_state._copy_with(max_players=2), "alice", "bob")
    return state._copy_with(phase=GamePhase.ROLLING, current_turn=Color.RED)


@pytest.fixture
def four_player_state(empty_state) -> GameState:
    state = seat(empty_state, "alice", "bob", "carol", "dave")
    return state._copy_with(phase=GamePhase.ROLLING, current_turn=Color.RED)


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        max_players=4,
        turn_timeout_seconds=30.0,
        bot_turn_delay=1.0,
        bot_action_delay=1.5,
        max_timeouts=3,
        bot_strategy="scored",
        bot_profile="cautious",
    )


class Recorder:
    """Collects broadcasts and per-connection replies."""

    def __init__(self):
        self.broadcasts = []
        self.replies = {}

    def broadcast(self, message):
        self.broadcasts.append(message)

    def send(self, connection_id, message):
        self.replies.setdefault(connection_id, []).append(message)

    def types(self):
        return [m["type"] for m in self.broadcasts]

    def of_type(self, message_type):
        return [m for m in self.broadcasts if m["type"] == message_type]

    def last_reply(self, connection_id):
        return self.replies[connection_id][-1]

    def clear(self):
        self.broadcasts.clear()
        self.replies.clear()


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def make_orchestrator(settings, scheduler, recorder):
    """Factory for an orchestrator wired to the fake clock and a recorder."""

    def _make(rolls=(0.5,), **overrides):
        room_settings = Settings(**{**settings.__dict__, **overrides})
        return TurnOrchestrator(
            "ROOM1",
            settings=room_settings,
            scheduler=scheduler,
            dice_source=SequenceSource(rolls),
            broadcast=recorder.broadcast,
            send=recorder.send,
        )

    return _make
