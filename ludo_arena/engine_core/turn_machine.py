"""
Turn State Machine - Phase transitions, rotation and ranking.

Phases:
    WAITING -> ROLLING -> MOVING -> ROLLING ... -> FINISHED

Only WAITING -> ROLLING needs an explicit start condition (2+ players).
Every other transition is driven by roll and move outcomes.

Rotation follows color order and skips players that are inactive or
already ranked. If nobody besides the mover qualifies, the pool falls
back to every active player.
"""

from __future__ import annotations
from dataclasses import replace
import time

from .state import GameState, GamePhase, Color, COLORS
from .action import ActionResult, ErrorCode
from .board import GOAL, PAWNS_PER_COLOR


MIN_PLAYERS = 2


def turn_pool(state: GameState) -> list[Color]:
    """Colors eligible to take a turn, in rotation order."""
    unranked = [
        p.color for p in state.players
        if p.is_active and not p.is_ranked
    ]
    pool = unranked or [p.color for p in state.players if p.is_active]
    return [c for c in COLORS if c in pool]


def next_turn(state: GameState) -> Color:
    """The color that follows current_turn in rotation order."""
    pool = turn_pool(state)
    if not pool:
        return state.current_turn

    idx = COLORS.index(state.current_turn)
    for step in range(1, len(COLORS) + 1):
        candidate = COLORS[(idx + step) % len(COLORS)]
        if candidate in pool:
            return candidate
    return state.current_turn


def pass_turn(state: GameState, next_color: Color, now: float | None = None) -> GameState:
    """
    Hand the turn to next_color and return to ROLLING.

    The six streak survives only when the same color keeps the turn.
    """
    same_color = next_color == state.current_turn
    return state._copy_with(
        current_turn=next_color,
        dice_value=None,
        phase=GamePhase.ROLLING,
        consecutive_sixes=state.consecutive_sixes if same_color else 0,
        last_update=time.time() if now is None else now,
    )


def skip_turn(state: GameState, now: float | None = None) -> GameState:
    """Pass the turn without moving (no legal move, forfeit, or recovery)."""
    if not state.is_in_progress:
        return state
    return pass_turn(state, next_turn(state), now)


def start_game(state: GameState, now: float | None = None) -> ActionResult:
    """WAITING -> ROLLING. The first seated active player goes first."""
    if state.phase != GamePhase.WAITING:
        return ActionResult.failure(
            f"Cannot start a game in {state.phase.value} phase",
            ErrorCode.WRONG_PHASE,
        )
    if len(state.players) < MIN_PLAYERS:
        return ActionResult.failure(
            f"At least {MIN_PLAYERS} players are needed to start",
            ErrorCode.NOT_ENOUGH_PLAYERS,
        )

    first = next((p for p in state.players if p.is_active), state.players[0])
    new_state = state._copy_with(
        phase=GamePhase.ROLLING,
        current_turn=first.color,
        dice_value=None,
        consecutive_sixes=0,
        last_update=time.time() if now is None else now,
    )
    return ActionResult.success_with_state(
        new_state,
        changes=[f"Game started, {first.color.value} to roll"],
    )


def check_win_condition(state: GameState, now: float | None = None) -> GameState:
    """
    Assign ranks to players whose pawns all reached the goal.

    When only one unranked player remains among two or more, they take the
    final rank and the game is FINISHED. Ranks already given never change.
    """
    players = list(state.players)
    ranked_count = sum(1 for p in players if p.is_ranked)
    changed = False

    for i, player in enumerate(players):
        if player.is_ranked:
            continue
        pawns = state.pawns_of(player.color)
        if len(pawns) == PAWNS_PER_COLOR and all(p.position == GOAL for p in pawns):
            ranked_count += 1
            players[i] = replace(player, rank=ranked_count)
            changed = True

    unranked = [i for i, p in enumerate(players) if not p.is_ranked]
    if len(players) > 1 and len(unranked) == 1:
        last = unranked[0]
        players[last] = replace(players[last], rank=ranked_count + 1)
        changed = True

    if not changed:
        return state

    new_state = state._copy_with(players=tuple(players), winner=_rank_one_color(players))

    if all(p.is_ranked for p in players):
        return new_state._copy_with(phase=GamePhase.FINISHED, dice_value=None)

    # The mover may have just finished while holding an extra turn
    current = new_state.current_player
    if new_state.is_in_progress and (current is None or current.is_ranked or not current.is_active):
        new_state = pass_turn(new_state, next_turn(new_state), now)

    return new_state


def remove_player(state: GameState, player_id: str, now: float | None = None) -> ActionResult:
    """
    Take a player and their pawns off the roster (AFK kick).

    Mid-game, a removed current player loses the turn, and a game left
    with a single unranked player ends with that player ranked last.
    """
    player = state.get_player(player_id)
    if not player:
        return ActionResult.failure(f"Player {player_id} not found", ErrorCode.PLAYER_NOT_FOUND)

    new_state = state._copy_with(
        players=tuple(p for p in state.players if p.player_id != player_id),
        pawns=tuple(p for p in state.pawns if p.color != player.color),
        last_update=time.time() if now is None else now,
    )

    if not new_state.is_in_progress:
        return ActionResult.success_with_state(new_state, changes=[f"{player.name} left"], player=player)

    if new_state.current_turn == player.color:
        new_state = pass_turn(new_state, next_turn(new_state), now)

    unranked = [p for p in new_state.players if not p.is_ranked]
    if len(unranked) <= 1:
        players = list(new_state.players)
        if unranked:
            ranked_count = sum(1 for p in players if p.is_ranked)
            idx = players.index(unranked[0])
            players[idx] = replace(unranked[0], rank=ranked_count + 1)
        new_state = new_state._copy_with(
            players=tuple(players),
            phase=GamePhase.FINISHED,
            dice_value=None,
            winner=_rank_one_color(players),
        )

    return ActionResult.success_with_state(
        new_state,
        changes=[f"{player.name} was removed"],
        player=player,
    )


def set_player_active(
    state: GameState,
    player_id: str,
    active: bool,
    now: float | None = None,
) -> ActionResult:
    """Mark a player connected/disconnected. A disconnecting current player loses the turn."""
    player = state.get_player(player_id)
    if not player:
        return ActionResult.failure(f"Player {player_id} not found", ErrorCode.PLAYER_NOT_FOUND)

    new_state = state.with_player(replace(player, is_active=active))
    new_state = new_state._copy_with(last_update=time.time() if now is None else now)

    if not active and new_state.is_in_progress and new_state.current_turn == player.color:
        new_state = pass_turn(new_state, next_turn(new_state), now)

    return ActionResult.success_with_state(new_state, player=replace(player, is_active=active))


def _rank_one_color(players) -> Color | None:
    for p in players:
        if p.rank == 1:
            return p.color
    return None
