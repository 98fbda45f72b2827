"""
Move Evaluator - Scores legal moves for bot decision-making.

Each move's score is a weighted sum of:
- Tactical bonuses (capture, reaching goal, leaving base)
- Positional bonuses (safe square, entering the home stretch)
- Progress toward goal
- Risk: opponents within one roll behind the landing square

Weights can be adjusted to create different personalities.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from ..engine_core.board import (
    BASE, GOAL, TRACK_LENGTH, HOME_STRETCH_START, DICE_FACES,
    is_safe_square, is_on_track, is_in_home_stretch, to_absolute,
)

if TYPE_CHECKING:
    from ..engine_core.state import GameState, Color
    from ..engine_core.move_generator import ValidMove


# Progress weight multiplier for moves already inside the home stretch
HOME_STRETCH_PROGRESS_BOOST = 5


@dataclass(frozen=True)
class ScoringWeights:
    """
    Weights for the move evaluator.

    Higher values = more importance.
    """
    capture: float = 200.0
    reach_goal: float = 300.0
    enter_home_stretch: float = 100.0
    safe_square: float = 40.0
    leave_base: float = 150.0
    risk_penalty: float = 50.0  # Per opponent 1-6 squares behind
    progress_multiplier: float = 1.0  # Per square of distance from start


@dataclass
class MoveEvaluation:
    """Result of scoring one move."""
    move: ValidMove
    score: float
    feature_breakdown: dict[str, float] = field(default_factory=dict)


def distance_from_start(position: int, color: Color) -> int:
    """How far along its route a pawn at this position is."""
    if position == BASE:
        return 0
    if position == GOAL:
        return TRACK_LENGTH + DICE_FACES
    if is_in_home_stretch(position):
        return TRACK_LENGTH + (position - HOME_STRETCH_START)
    return position - 1


def threats_behind(state: GameState, position: int, color: Color) -> int:
    """Opponent track pawns that could reach this square with one roll."""
    mine = to_absolute(position, color)
    if mine is None:
        return 0

    threats = 0
    for pawn in state.pawns:
        if pawn.color == color:
            continue
        theirs = to_absolute(pawn.position, pawn.color)
        if theirs is None:
            continue
        distance = (mine - theirs + TRACK_LENGTH) % TRACK_LENGTH
        if 1 <= distance <= DICE_FACES:
            threats += 1
    return threats


class MoveEvaluator:
    """
    Scores legal moves with weighted heuristics.

    Used by the scored strategy:
    1. Get legal moves from the move generator
    2. Score each move
    3. Select the best (first one wins ties)
    """

    def __init__(self, weights: ScoringWeights | None = None):
        self.weights = weights or ScoringWeights()

    def evaluate(self, move: ValidMove, state: GameState, color: Color) -> MoveEvaluation:
        weights = self.weights
        was_in_stretch = is_in_home_stretch(move.origin)
        if was_in_stretch:
            # No capture is possible in the stretch, only progress matters
            weights = replace(
                weights,
                risk_penalty=0.0,
                progress_multiplier=weights.progress_multiplier * HOME_STRETCH_PROGRESS_BOOST,
            )

        features: dict[str, float] = {}

        if move.will_capture:
            features["capture"] = weights.capture
        if move.will_reach_goal:
            features["reach_goal"] = weights.reach_goal
        if move.origin == BASE:
            features["leave_base"] = weights.leave_base
        if not move.will_reach_goal and is_on_track(move.destination) and is_safe_square(move.destination):
            features["safe_square"] = weights.safe_square

        now_in_stretch = is_in_home_stretch(move.destination) or move.will_reach_goal
        if not was_in_stretch and now_in_stretch:
            features["enter_home_stretch"] = weights.enter_home_stretch

        features["progress"] = distance_from_start(move.destination, color) * weights.progress_multiplier

        if not move.will_reach_goal and is_on_track(move.destination) and not is_safe_square(move.destination):
            threats = threats_behind(state, move.destination, color)
            if threats:
                features["risk"] = -threats * weights.risk_penalty

        return MoveEvaluation(
            move=move,
            score=sum(features.values()),
            feature_breakdown=features,
        )

    def score(self, move: ValidMove, state: GameState, color: Color) -> float:
        return self.evaluate(move, state, color).score

    def best(self, moves: list[ValidMove], state: GameState, color: Color) -> MoveEvaluation | None:
        """Highest-scoring move; ties go to the earliest move."""
        best: MoveEvaluation | None = None
        for move in moves:
            evaluation = self.evaluate(move, state, color)
            if best is None or evaluation.score > best.score:
                best = evaluation
        return best
