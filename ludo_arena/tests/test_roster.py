"""
Tests for seating, reconnection and bot seats.
"""

from dataclasses import replace

from ..engine_core.state import GamePhase, Color
from ..engine_core.action import ErrorCode
from ..engine_core.roster import handle_join, add_bot, available_color
from .conftest import seat, T0


def join(state, name, conn=None, **kwargs):
    return handle_join(state, name, conn or name, now=T0, **kwargs)


class TestJoin:
    def test_create_seats_first_player_as_red(self, empty_state):
        result = join(empty_state, "alice", create=True)

        assert result.success
        assert result.player.color == Color.RED
        assert len(result.new_state.pawns_of(Color.RED)) == 4

    def test_create_sets_room_size(self, empty_state):
        result = join(empty_state, "alice", create=True, total_players=3)
        assert result.new_state.max_players == 3

    def test_room_size_is_clamped(self, empty_state):
        assert join(empty_state, "alice", create=True, total_players=9).new_state.max_players == 4
        assert join(empty_state, "alice", create=True, total_players=1).new_state.max_players == 2

    def test_join_without_create_needs_existing_room(self, empty_state):
        result = join(empty_state, "alice")
        assert result.error_code == ErrorCode.ROOM_NOT_FOUND

    def test_colors_follow_rotation_order(self, empty_state):
        state = seat(empty_state, "alice", "bob", "carol")
        assert [p.color for p in state.players] == [Color.RED, Color.BLUE, Color.GREEN]
        assert available_color(state) == Color.YELLOW

    def test_name_taken_ignores_case_and_spacing(self, empty_state):
        state = seat(empty_state, "alice")
        result = join(state, " ALICE ", conn="other")
        assert result.error_code == ErrorCode.NAME_TAKEN

    def test_room_full(self, empty_state):
        state = seat(empty_state._copy_with(max_players=2), "alice", "bob")
        assert join(state, "carol").error_code == ErrorCode.ROOM_FULL

    def test_no_join_after_start(self, two_player_state):
        result = join(two_player_state, "carol")
        assert result.error_code == ErrorCode.GAME_IN_PROGRESS

    def test_rejoin_from_same_connection_is_idempotent(self, empty_state):
        state = seat(empty_state, "alice")
        result = join(state, "alice")

        assert result.success
        assert result.new_state is state
        assert result.player.player_id == "alice"


class TestReconnect:
    def test_reconnect_rebinds_connection(self, two_player_state):
        state = two_player_state.with_player(replace(two_player_state.get_player("bob"), is_active=False))
        result = join(state, "bob", conn="conn-2", player_id="bob")

        assert result.success
        assert result.reconnected
        player = result.new_state.get_player("bob")
        assert player.connection_id == "conn-2"
        assert player.is_active
        assert player.color == Color.BLUE

    def test_reconnect_allowed_mid_game(self, two_player_state):
        result = join(two_player_state, "alice", conn="conn-9", player_id="alice")
        assert result.success
        assert result.new_state.phase == GamePhase.ROLLING

    def test_unknown_player_id_joins_fresh(self, empty_state):
        state = seat(empty_state, "alice")
        result = join(state, "bob", player_id="stable-bob")

        assert result.success
        assert not result.reconnected
        assert result.player.player_id == "stable-bob"


class TestAddBot:
    def test_bot_named_after_color(self, empty_state):
        result = add_bot(seat(empty_state, "alice"), now=T0)

        bot = result.player
        assert bot.is_bot
        assert bot.name == "Bot BLUE"
        assert bot.player_id.startswith("bot-")
        assert bot.connection_id is None

    def test_bot_only_before_start(self, two_player_state):
        assert add_bot(two_player_state, now=T0).error_code == ErrorCode.GAME_IN_PROGRESS

    def test_bot_needs_free_seat(self, empty_state):
        state = seat(empty_state._copy_with(max_players=2), "alice", "bob")
        assert add_bot(state, now=T0).error_code == ErrorCode.ROOM_FULL
