"""
Action System - Actions, error codes and results.

Actions represent what a seat wants to do on its turn:
1. ROLL the dice
2. MOVE a pawn after rolling
3. SKIP when nothing is possible

Engine functions never raise for rule violations. They return an
ActionResult carrying either the new state or an error code and a
human-readable reason.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .state import GameState, Player
    from .move_generator import ValidMove


class ErrorCode(str, Enum):
    """Structured error codes shared by the engine and the wire protocol."""
    # Illegal actions (state unchanged, reported to requester only)
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    WRONG_PHASE = "WRONG_PHASE"
    ROLL_TOO_FAST = "ROLL_TOO_FAST"
    INVALID_MOVE = "INVALID_MOVE"
    NOT_ENOUGH_PLAYERS = "NOT_ENOUGH_PLAYERS"
    NOT_HOST = "NOT_HOST"
    TURN_IN_PROGRESS = "TURN_IN_PROGRESS"

    # Capacity / join errors
    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
    ROOM_FULL = "ROOM_FULL"
    NO_COLOR_AVAILABLE = "NO_COLOR_AVAILABLE"
    NAME_TAKEN = "NAME_TAKEN"
    GAME_IN_PROGRESS = "GAME_IN_PROGRESS"

    # Boundary errors
    MALFORMED_MESSAGE = "MALFORMED_MESSAGE"
    NOT_JOINED = "NOT_JOINED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ActionType(Enum):
    """Things a seat can do."""
    ROLL = "roll"
    MOVE = "move"
    SKIP = "skip"


@dataclass(frozen=True)
class Action:
    """
    A fully-specified seat action.

    dice_value on a ROLL is only the bot's own preview; the engine
    always rolls authoritatively.
    """
    action_type: ActionType
    pawn_id: str | None = None
    dice_value: int | None = None

    @classmethod
    def roll(cls, dice_value: int | None = None) -> Action:
        """Factory for roll action."""
        return cls(action_type=ActionType.ROLL, dice_value=dice_value)

    @classmethod
    def move(cls, pawn_id: str) -> Action:
        """Factory for move action."""
        return cls(action_type=ActionType.MOVE, pawn_id=pawn_id)

    @classmethod
    def skip(cls) -> Action:
        """Factory for skip action."""
        return cls(action_type=ActionType.SKIP)


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether action succeeded
    - New state (if succeeded)
    - Error and error code (if failed)
    - Verdicts the orchestrator needs for broadcasting
    """
    success: bool
    new_state: GameState | None = None
    error: str | None = None
    error_code: ErrorCode | None = None

    # Roll verdicts
    dice_value: int | None = None
    forfeited: bool = False  # Third consecutive six

    # Move verdicts
    move: ValidMove | None = None
    extra_turn: bool = False
    captured: list[str] = field(default_factory=list)  # Pawn IDs sent to base

    # Roster verdicts
    player: Player | None = None
    reconnected: bool = False

    # Human-readable changes (for logs)
    state_changes: list[str] = field(default_factory=list)

    @classmethod
    def failure(cls, error: str, error_code: ErrorCode | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(
        cls,
        state: GameState,
        changes: list[str] | None = None,
        **verdicts: Any,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            state_changes=changes or [],
            **verdicts,
        )
