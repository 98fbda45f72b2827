"""
Dice Subsystem - Rolling and roll arbitration.

Randomness comes from an injectable source exposing random() -> [0, 1).
Production uses random.SystemRandom; tests inject fixed sequences so
the engine is exactly reproducible.

Anti-cheat rules enforced by handle_roll_request():
- Only the player whose turn it is can roll
- Only in ROLLING phase (must move before rolling again)
- Not within the debounce window of the previous roll
- A third consecutive six forfeits the rest of the turn
"""

from __future__ import annotations
from typing import Iterable, Protocol
import random
import time

from .state import GameState, GamePhase
from .action import ActionResult, ErrorCode
from .board import BASE, DICE_FACES
from .turn_machine import next_turn, pass_turn


WEIGHTED_SIX_PROBABILITY = 0.4
WEIGHTING_BASE_THRESHOLD = 3  # Pawns at base that trigger the weighted die
MAX_CONSECUTIVE_SIXES = 3
ROLL_DEBOUNCE_SECONDS = 0.3


class RandomSource(Protocol):
    """Anything producing uniform floats in [0, 1)."""

    def random(self) -> float:
        ...


class SequenceSource:
    """
    Deterministic source that replays fixed values.

    Used in tests and replays. Cycles when exhausted.
    """

    def __init__(self, values: Iterable[float]):
        self.values = list(values)
        if not self.values:
            raise ValueError("SequenceSource needs at least one value")
        self._index = 0

    def random(self) -> float:
        value = self.values[self._index % len(self.values)]
        self._index += 1
        return value

    @classmethod
    def for_faces(cls, faces: Iterable[int]) -> SequenceSource:
        """Source that makes an unweighted roll_dice() return the given faces."""
        return cls([(face - 1) / DICE_FACES + 1e-9 for face in faces])


def default_source() -> RandomSource:
    return random.SystemRandom()


def roll_dice(weighted: bool = False, source: RandomSource | None = None) -> int:
    """
    Produce a value in 1..6.

    Weighted: 6 with WEIGHTED_SIX_PROBABILITY, the remaining mass spread
    uniformly over 1..5.
    """
    r = (source or default_source()).random()

    if weighted:
        if r < WEIGHTED_SIX_PROBABILITY:
            return DICE_FACES
        normalized = (r - WEIGHTED_SIX_PROBABILITY) / (1.0 - WEIGHTED_SIX_PROBABILITY)
        return min(int(normalized * (DICE_FACES - 1)) + 1, DICE_FACES - 1)

    return min(int(r * DICE_FACES) + 1, DICE_FACES)


def should_weight_six(state: GameState, color) -> bool:
    """True when the color still has most of its pawns at base."""
    at_base = sum(1 for p in state.pawns_of(color) if p.position == BASE)
    return at_base >= WEIGHTING_BASE_THRESHOLD


def handle_roll_request(
    state: GameState,
    player_id: str,
    source: RandomSource | None = None,
    now: float | None = None,
) -> ActionResult:
    """
    Attempt to roll the dice for a player.

    On success the state moves to MOVING with the value recorded, unless
    the three-six rule fires, in which case the turn passes immediately.
    """
    now = time.time() if now is None else now

    player = state.get_player(player_id)
    if not player:
        return ActionResult.failure("Player not found", ErrorCode.PLAYER_NOT_FOUND)

    if player.color != state.current_turn:
        return ActionResult.failure("Not your turn", ErrorCode.NOT_YOUR_TURN)

    if state.phase != GamePhase.ROLLING:
        return ActionResult.failure(
            f"Cannot roll in {state.phase.value} phase. Current dice: {state.dice_value}",
            ErrorCode.WRONG_PHASE,
        )

    if now - state.last_roll_time < ROLL_DEBOUNCE_SECONDS:
        return ActionResult.failure("Rolling too fast", ErrorCode.ROLL_TOO_FAST)

    dice_value = roll_dice(should_weight_six(state, player.color), source)
    streak = state.consecutive_sixes + 1 if dice_value == DICE_FACES else 0

    if streak >= MAX_CONSECUTIVE_SIXES:
        forfeited = state._copy_with(last_roll_time=now, consecutive_sixes=0)
        forfeited = pass_turn(forfeited, next_turn(forfeited), now)._copy_with(consecutive_sixes=0)
        return ActionResult.success_with_state(
            forfeited,
            changes=[f"{player.name} rolled a third six and forfeits the turn"],
            dice_value=dice_value,
            forfeited=True,
        )

    new_state = state._copy_with(
        dice_value=dice_value,
        phase=GamePhase.MOVING,
        consecutive_sixes=streak,
        last_roll_time=now,
        last_update=now,
    )
    return ActionResult.success_with_state(
        new_state,
        changes=[f"{player.name} rolled {dice_value}"],
        dice_value=dice_value,
    )
