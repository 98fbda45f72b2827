"""
Bot Policy - Decision-making for bot seats.

A bot takes a game state and returns a decision:
- ROLL when it holds the turn in ROLLING phase
- MOVE one of the legal pawns in MOVING phase
- SKIP when there is nothing it can do

Strategies form a closed enum; each maps to a move-selection function.
Bots only ever pick from get_valid_moves(), so a bot can never submit
an illegal move.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable
import random

from ..engine_core.action import Action
from ..engine_core.state import GamePhase
from ..engine_core.move_generator import ValidMove, get_valid_moves
from ..engine_core.dice import roll_dice, should_weight_six
from .evaluator import MoveEvaluator
from .personality import Personality, get_personality

if TYPE_CHECKING:
    from ..engine_core.state import GameState, Color


class BotStrategy(str, Enum):
    RANDOM = "random"  # Uniform over legal moves
    WEIGHTED = "weighted"  # Goal first, then capture, then random
    SCORED = "scored"  # Weighted-sum evaluation


@dataclass
class BotDecision:
    """
    A decision made by a bot.

    Contains:
    - The action to take
    - Explanation (for logs/debugging)
    - Evaluation details when the move was scored
    """
    action: Action
    explanation: str = ""
    confidence: float = 1.0

    evaluated_actions: int = 0
    best_score: float = 0.0
    evaluation_details: dict[str, Any] = field(default_factory=dict)


# ============================================================================
# Move selection
# ============================================================================

def _pick_random(
    moves: list[ValidMove], state: GameState, color: Color,
    personality: Personality, rng: random.Random,
) -> BotDecision:
    move = rng.choice(moves)
    return BotDecision(
        action=Action.move(move.pawn_id),
        explanation="Selected randomly",
        confidence=1.0 / len(moves),
        evaluated_actions=len(moves),
    )


def _pick_weighted(
    moves: list[ValidMove], state: GameState, color: Color,
    personality: Personality, rng: random.Random,
) -> BotDecision:
    for move in moves:
        if move.will_reach_goal:
            return BotDecision(
                action=Action.move(move.pawn_id),
                explanation="Reaching goal",
                evaluated_actions=len(moves),
            )
    for move in moves:
        if move.will_capture:
            return BotDecision(
                action=Action.move(move.pawn_id),
                explanation="Capturing",
                evaluated_actions=len(moves),
            )
    return _pick_random(moves, state, color, personality, rng)


def _pick_scored(
    moves: list[ValidMove], state: GameState, color: Color,
    personality: Personality, rng: random.Random,
) -> BotDecision:
    evaluator = MoveEvaluator(personality.weights)
    best = evaluator.best(moves, state, color)
    return BotDecision(
        action=Action.move(best.move.pawn_id),
        explanation=f"{personality.name}: best score {best.score:.1f}",
        evaluated_actions=len(moves),
        best_score=best.score,
        evaluation_details=best.feature_breakdown,
    )


_SELECTORS: dict[BotStrategy, Callable[..., BotDecision]] = {
    BotStrategy.RANDOM: _pick_random,
    BotStrategy.WEIGHTED: _pick_weighted,
    BotStrategy.SCORED: _pick_scored,
}


def decide(
    state: GameState,
    color: Color,
    strategy: BotStrategy | str = BotStrategy.SCORED,
    profile: Personality | str | None = None,
    rng: random.Random | None = None,
) -> BotDecision:
    """
    Choose the next action for the seat holding color.

    The ROLL action carries a preview value only; the engine always
    rolls for itself.
    """
    strategy = BotStrategy(strategy)
    personality = profile if isinstance(profile, Personality) else get_personality(profile)
    rng = rng or random.Random()

    if state.current_turn != color or not state.is_in_progress:
        return BotDecision(action=Action.skip(), explanation="Not our turn")

    if state.phase == GamePhase.ROLLING:
        preview = roll_dice(should_weight_six(state, color), rng)
        return BotDecision(action=Action.roll(preview), explanation="Rolling")

    moves = get_valid_moves(state)
    if not moves:
        return BotDecision(action=Action.skip(), explanation="No legal moves")

    return _SELECTORS[strategy](moves, state, color, personality, rng)
