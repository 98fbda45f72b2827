"""
Engine Core - Deterministic Ludo rules and state transitions.

The engine:
1. Holds the board geometry
2. Rolls and arbitrates dice
3. Generates legal moves
4. Applies moves via the reducer
5. Advances turns and assigns ranks
"""

from .state import GameState, GamePhase, Player, Pawn, MoveRecord, Color, COLORS
from .action import Action, ActionType, ActionResult, ErrorCode
from .move_generator import ValidMove, get_valid_moves, get_valid_pawn_ids
from .dice import RandomSource, SequenceSource, roll_dice, handle_roll_request
from .reducer import apply_action, execute_move
from .turn_machine import (
    start_game, skip_turn, next_turn, check_win_condition,
    remove_player, set_player_active,
)
from .roster import handle_join, add_bot

__all__ = [
    "GameState",
    "GamePhase",
    "Player",
    "Pawn",
    "MoveRecord",
    "Color",
    "COLORS",
    "Action",
    "ActionType",
    "ActionResult",
    "ErrorCode",
    "ValidMove",
    "get_valid_moves",
    "get_valid_pawn_ids",
    "RandomSource",
    "SequenceSource",
    "roll_dice",
    "handle_roll_request",
    "apply_action",
    "execute_move",
    "start_game",
    "skip_turn",
    "next_turn",
    "check_win_condition",
    "remove_player",
    "set_player_active",
    "handle_join",
    "add_bot",
]
