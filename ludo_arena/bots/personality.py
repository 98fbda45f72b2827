"""
Bot Personalities - Named scoring profiles.

A personality is only a coefficient set over the same scoring formula.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .evaluator import ScoringWeights


@dataclass(frozen=True)
class Personality:
    """A bot play style."""
    name: str
    description: str = ""
    weights: ScoringWeights = field(default_factory=ScoringWeights)


# ============================================================================
# Predefined Personalities
# ============================================================================

STANDARD = Personality(
    name="Standard",
    description="Even-handed defaults",
    weights=ScoringWeights(),
)


AGGRESSIVE = Personality(
    name="Aggressive",
    description="Hunts captures and rushes pawns out of base",
    weights=ScoringWeights(
        capture=400.0,
        reach_goal=200.0,
        enter_home_stretch=50.0,
        safe_square=10.0,
        leave_base=200.0,
        risk_penalty=10.0,
        progress_multiplier=2.0,
    ),
)


CAUTIOUS = Personality(
    name="Cautious",
    description="Protects pawns, favours safe squares and getting home",
    weights=ScoringWeights(
        capture=50.0,
        reach_goal=400.0,
        enter_home_stretch=150.0,
        safe_square=200.0,
        leave_base=100.0,
        risk_penalty=300.0,
        progress_multiplier=0.5,
    ),
)


BALANCED = Personality(
    name="Balanced",
    description="Ignores risk, weighs captures and goals equally",
    weights=ScoringWeights(
        capture=150.0,
        reach_goal=150.0,
        enter_home_stretch=50.0,
        safe_square=20.0,
        leave_base=100.0,
        risk_penalty=0.0,
        progress_multiplier=1.0,
    ),
)


# All predefined personalities
PERSONALITIES: dict[str, Personality] = {
    "standard": STANDARD,
    "aggressive": AGGRESSIVE,
    "cautious": CAUTIOUS,
    "balanced": BALANCED,
}


def get_personality(name: str | None) -> Personality:
    """Look up a personality by name (case-insensitive), defaulting to standard."""
    if not name:
        return STANDARD
    try:
        return PERSONALITIES[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown bot profile {name!r}; expected one of {sorted(PERSONALITIES)}"
        ) from None
