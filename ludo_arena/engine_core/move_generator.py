"""
Move Generator - Computes the legal pawn moves for the current roll.

The move generator is used by:
1. The orchestrator to tell clients which pawns are movable
2. Bots to enumerate candidate moves
3. Validation (execute_move only accepts a precomputed move)

Each pawn of the current color yields at most one candidate move.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable

from .state import GameState, Pawn, Color
from .board import (
    BASE, GOAL, HOME_STRETCH_START, ENTER_ROLL, ENTRY_POSITION,
    HOME_ENTRY_POSITION, is_safe_square, is_on_track, is_in_home_stretch,
    to_absolute,
)


@dataclass(frozen=True)
class ValidMove:
    """A legal move for one pawn with the current dice value."""
    pawn_id: str
    origin: int
    destination: int
    will_capture: bool = False
    will_reach_goal: bool = False

    def to_dict(self) -> dict:
        return {
            "pawn_id": self.pawn_id,
            "origin": self.origin,
            "destination": self.destination,
            "will_capture": self.will_capture,
            "will_reach_goal": self.will_reach_goal,
        }


def target_position(pawn: Pawn, dice: int) -> int | None:
    """
    Where a pawn would land, ignoring other pawns.

    Returns None when the roll cannot move this pawn (base without a six,
    already at goal, or overshooting the goal).
    """
    pos = pawn.position

    if pos == BASE:
        return ENTRY_POSITION if dice == ENTER_ROLL else None

    if pos == GOAL:
        return None

    if is_in_home_stretch(pos):
        target = pos + dice
        return target if target <= GOAL else None

    return _track_target(pos, dice)


def _track_target(pos: int, dice: int) -> int | None:
    dist_to_entry = HOME_ENTRY_POSITION - pos

    if dice > dist_to_entry:
        # Excess steps carry into the home stretch
        target = HOME_STRETCH_START - 1 + (dice - dist_to_entry)
        return target if target <= GOAL else None

    return pos + dice


def is_blocked(destination: int, pawns: Iterable[Pawn], color: Color) -> bool:
    """Own pawns block a destination unless it is a safe square (or the goal)."""
    if destination == GOAL or is_safe_square(destination):
        return False
    return any(p.color == color and p.position == destination for p in pawns)


def opponents_at(destination: int, pawns: Iterable[Pawn], color: Color) -> list[Pawn]:
    """Opponent track pawns sharing the destination's absolute square."""
    target = to_absolute(destination, color)
    if target is None:
        return []
    return [
        p for p in pawns
        if p.color != color and to_absolute(p.position, p.color) == target
    ]


def will_capture(destination: int, pawns: Iterable[Pawn], color: Color) -> bool:
    """Captures happen only on unsafe shared-track squares."""
    if not is_on_track(destination) or is_safe_square(destination):
        return False
    return bool(opponents_at(destination, pawns, color))


def get_valid_moves(state: GameState) -> list[ValidMove]:
    """All legal moves for the color whose turn it is, in pawn order."""
    dice = state.dice_value
    if dice is None:
        return []

    moves: list[ValidMove] = []
    for pawn in state.pawns_of(state.current_turn):
        destination = target_position(pawn, dice)
        if destination is None:
            continue
        if is_blocked(destination, state.pawns, pawn.color):
            continue

        moves.append(ValidMove(
            pawn_id=pawn.pawn_id,
            origin=pawn.position,
            destination=destination,
            will_capture=will_capture(destination, state.pawns, pawn.color),
            will_reach_goal=destination == GOAL,
        ))

    return moves


def get_valid_pawn_ids(state: GameState) -> list[str]:
    return [m.pawn_id for m in get_valid_moves(state)]
