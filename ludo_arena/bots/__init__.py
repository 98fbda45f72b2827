"""
Bots module - Automated seats.

Provides:
- decide(): Next action for a bot (or a timed-out human)
- BotStrategy: Closed set of move-selection strategies
- MoveEvaluator: Weighted scoring of legal moves
- Personality: Named coefficient sets
"""

from .policy import BotStrategy, BotDecision, decide
from .evaluator import MoveEvaluator, ScoringWeights
from .personality import Personality, PERSONALITIES, get_personality

__all__ = [
    "BotStrategy",
    "BotDecision",
    "decide",
    "MoveEvaluator",
    "ScoringWeights",
    "Personality",
    "PERSONALITIES",
    "get_personality",
]
