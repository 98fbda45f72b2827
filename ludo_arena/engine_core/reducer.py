"""
Reducer - Applies seat actions to game state.

The reducer is the single point of state mutation for a turn step.
All gameplay changes go through apply_action() or execute_move().

Design principles:
- Pure function: (state, action) -> ActionResult with a new state
- Validates before applying
- Never raises for rule violations
"""

from __future__ import annotations
import time

from .state import GameState, GamePhase, MoveRecord
from .action import Action, ActionType, ActionResult, ErrorCode
from .board import BASE, ENTER_ROLL, to_absolute
from .move_generator import ValidMove, get_valid_moves
from .dice import RandomSource, handle_roll_request
from .turn_machine import next_turn, pass_turn, skip_turn, check_win_condition


def execute_move(
    state: GameState,
    pawn_id: str,
    valid_moves: list[ValidMove],
    now: float | None = None,
) -> ActionResult:
    """
    Move a pawn using one of the precomputed valid moves.

    Rejects any pawn not in valid_moves, so a stale or forged move set
    can never be replayed. Grants an extra turn on a six, a capture or
    reaching the goal.
    """
    now = time.time() if now is None else now

    move = next((m for m in valid_moves if m.pawn_id == pawn_id), None)
    if move is None:
        return ActionResult.failure("Invalid pawn selection", ErrorCode.INVALID_MOVE)

    mover = state.get_pawn(pawn_id)
    if mover is None or mover.position != move.origin:
        return ActionResult.failure("Invalid pawn selection", ErrorCode.INVALID_MOVE)

    new_pawns = []
    captured: list[str] = []
    target = to_absolute(move.destination, mover.color) if move.will_capture else None

    for pawn in state.pawns:
        if pawn.pawn_id == pawn_id:
            new_pawns.append(pawn.with_position(move.destination))
        elif (
            target is not None
            and pawn.color != mover.color
            and to_absolute(pawn.position, pawn.color) == target
        ):
            new_pawns.append(pawn.with_position(BASE))
            captured.append(pawn.pawn_id)
        else:
            new_pawns.append(pawn)

    extra_turn = (
        state.dice_value == ENTER_ROLL
        or move.will_capture
        or move.will_reach_goal
    )

    moved = state._copy_with(
        pawns=tuple(new_pawns),
        last_move=MoveRecord(
            color=state.current_turn,
            pawn_id=pawn_id,
            origin=move.origin,
            destination=move.destination,
            timestamp=now,
        ),
    )
    upcoming = state.current_turn if extra_turn else next_turn(moved)
    new_state = check_win_condition(pass_turn(moved, upcoming, now), now)

    changes = [f"{pawn_id} moved {move.origin} -> {move.destination}"]
    if captured:
        changes.append(f"captured {', '.join(captured)}")

    return ActionResult.success_with_state(
        new_state,
        changes=changes,
        move=move,
        extra_turn=extra_turn,
        captured=captured,
    )


def apply_action(
    state: GameState,
    player_id: str,
    action: Action,
    source: RandomSource | None = None,
    now: float | None = None,
) -> ActionResult:
    """
    Apply a seat action on behalf of a player.

    ROLL always rolls authoritatively; any value carried by the action is
    ignored. MOVE is validated against a freshly computed move set.
    """
    player = state.get_player(player_id)
    if not player:
        return ActionResult.failure(f"Player {player_id} not found", ErrorCode.PLAYER_NOT_FOUND)

    if action.action_type == ActionType.ROLL:
        return handle_roll_request(state, player_id, source, now)

    if player.color != state.current_turn:
        return ActionResult.failure("Not your turn", ErrorCode.NOT_YOUR_TURN)

    if action.action_type == ActionType.MOVE:
        if state.phase != GamePhase.MOVING:
            return ActionResult.failure("Must roll first", ErrorCode.WRONG_PHASE)
        return execute_move(state, action.pawn_id or "", get_valid_moves(state), now)

    if action.action_type == ActionType.SKIP:
        if not state.is_in_progress:
            return ActionResult.failure(
                f"Cannot skip in {state.phase.value} phase",
                ErrorCode.WRONG_PHASE,
            )
        return ActionResult.success_with_state(
            skip_turn(state, now),
            changes=[f"{player.name} skipped"],
        )

    return ActionResult.failure(f"No handler for action type: {action.action_type}")
