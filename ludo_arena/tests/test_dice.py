"""
Tests for the dice subsystem.

Tests:
- Face mapping (weighted and unweighted)
- Roll arbitration (turn, phase, debounce)
- Three-six forfeit
"""

import random

import pytest

from ..engine_core.state import GamePhase, Color
from ..engine_core.action import ErrorCode
from ..engine_core.dice import (
    SequenceSource, roll_dice, should_weight_six, handle_roll_request,
    ROLL_DEBOUNCE_SECONDS,
)
from .conftest import place, T0


def out_of_base(state):
    """Two RED pawns on the track, so RED rolls an unweighted die."""
    return place(state, RED_0=10, RED_1=20)


class TestRollDice:
    def test_unweighted_faces(self):
        faces = [roll_dice(False, SequenceSource.for_faces([f])) for f in range(1, 7)]
        assert faces == [1, 2, 3, 4, 5, 6]

    def test_unweighted_bounds(self):
        assert roll_dice(False, SequenceSource([0.0])) == 1
        assert roll_dice(False, SequenceSource([0.999999])) == 6

    def test_weighted_low_values_are_six(self):
        assert roll_dice(True, SequenceSource([0.0])) == 6
        assert roll_dice(True, SequenceSource([0.39])) == 6

    def test_weighted_remainder_spreads_over_one_to_five(self):
        assert roll_dice(True, SequenceSource([0.4])) == 1
        assert roll_dice(True, SequenceSource([0.7])) == 3
        assert roll_dice(True, SequenceSource([0.999999])) == 5

    def test_weighted_six_frequency(self):
        rng = random.Random(42)
        rolls = [roll_dice(True, rng) for _ in range(20000)]
        assert rolls.count(6) / len(rolls) == pytest.approx(0.4, abs=0.02)
        assert set(rolls) == {1, 2, 3, 4, 5, 6}

    def test_unweighted_six_frequency(self):
        rng = random.Random(42)
        rolls = [roll_dice(False, rng) for _ in range(20000)]
        assert rolls.count(6) / len(rolls) == pytest.approx(1 / 6, abs=0.02)

    def test_sequence_source_cycles(self):
        source = SequenceSource([0.1, 0.2])
        assert [source.random() for _ in range(4)] == [0.1, 0.2, 0.1, 0.2]

    def test_empty_sequence_rejected(self):
        with pytest.raises(ValueError):
            SequenceSource([])


class TestWeighting:
    def test_weighted_with_three_or_more_at_base(self, two_player_state):
        assert should_weight_six(two_player_state, Color.RED)
        assert should_weight_six(place(two_player_state, RED_0=10), Color.RED)

    def test_unweighted_with_two_at_base(self, two_player_state):
        assert not should_weight_six(out_of_base(two_player_state), Color.RED)

    def test_weighted_roll_used_for_pawns_at_base(self, two_player_state):
        # 0.2 is a six on the weighted die and a two on the fair one
        result = handle_roll_request(two_player_state, "alice", SequenceSource([0.2]), now=T0)
        assert result.dice_value == 6

        result = handle_roll_request(out_of_base(two_player_state), "alice", SequenceSource([0.2]), now=T0)
        assert result.dice_value == 2


class TestHandleRollRequest:
    def test_successful_roll_enters_moving(self, two_player_state):
        state = out_of_base(two_player_state)
        result = handle_roll_request(state, "alice", SequenceSource.for_faces([4]), now=T0)

        assert result.success
        assert result.dice_value == 4
        assert result.new_state.phase == GamePhase.MOVING
        assert result.new_state.dice_value == 4
        assert result.new_state.last_roll_time == T0
        assert not result.forfeited

    def test_unknown_player(self, two_player_state):
        result = handle_roll_request(two_player_state, "mallory", now=T0)
        assert result.error_code == ErrorCode.PLAYER_NOT_FOUND

    def test_not_your_turn(self, two_player_state):
        result = handle_roll_request(two_player_state, "bob", now=T0)
        assert not result.success
        assert result.error_code == ErrorCode.NOT_YOUR_TURN

    def test_cannot_roll_twice(self, two_player_state):
        state = two_player_state._copy_with(phase=GamePhase.MOVING, dice_value=4)
        result = handle_roll_request(state, "alice", now=T0)
        assert result.error_code == ErrorCode.WRONG_PHASE
        assert "4" in result.error

    def test_debounce(self, two_player_state):
        state = two_player_state._copy_with(last_roll_time=T0)
        result = handle_roll_request(state, "alice", now=T0 + ROLL_DEBOUNCE_SECONDS / 2)
        assert result.error_code == ErrorCode.ROLL_TOO_FAST

        result = handle_roll_request(state, "alice", SequenceSource([0.5]), now=T0 + 2 * ROLL_DEBOUNCE_SECONDS)
        assert result.success

    def test_rejected_roll_leaves_state_alone(self, two_player_state):
        result = handle_roll_request(two_player_state, "bob", now=T0)
        assert result.new_state is None


class TestThreeSixes:
    def test_six_increments_streak(self, two_player_state):
        result = handle_roll_request(two_player_state, "alice", SequenceSource([0.0]), now=T0)
        assert result.new_state.consecutive_sixes == 1

    def test_other_value_resets_streak(self, two_player_state):
        state = two_player_state._copy_with(consecutive_sixes=2)
        result = handle_roll_request(state, "alice", SequenceSource([0.5]), now=T0)
        assert result.dice_value == 1
        assert result.new_state.consecutive_sixes == 0

    def test_third_six_forfeits_turn(self, two_player_state):
        state = two_player_state._copy_with(consecutive_sixes=2)
        result = handle_roll_request(state, "alice", SequenceSource([0.0]), now=T0)

        assert result.success
        assert result.forfeited
        assert result.dice_value == 6
        new_state = result.new_state
        assert new_state.current_turn == Color.BLUE
        assert new_state.phase == GamePhase.ROLLING
        assert new_state.dice_value is None
        assert new_state.consecutive_sixes == 0
