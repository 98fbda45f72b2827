"""
Roster - Seating players and bots.

Handles:
- Join validation (room exists, capacity, phase, unique names)
- Color assignment in rotation order
- Reconnection by stable player ID
- Bot seats

Pawns are created at base when a color is seated and are never removed
while that color participates.
"""

from __future__ import annotations
from dataclasses import replace
import time
import uuid

from .state import GameState, GamePhase, Player, Pawn, Color, COLORS
from .action import ActionResult, ErrorCode
from .board import BASE, PAWNS_PER_COLOR


MIN_ROOM_SIZE = 2
MAX_ROOM_SIZE = 4


def available_color(state: GameState) -> Color | None:
    """First color in rotation order that nobody holds."""
    taken = {p.color for p in state.players}
    return next((c for c in COLORS if c not in taken), None)


def initialize_pawns(color: Color) -> tuple[Pawn, ...]:
    """Four pawns at base for a newly seated color."""
    return tuple(
        Pawn(pawn_id=f"{color.value}_{i}", color=color, position=BASE, index=i)
        for i in range(PAWNS_PER_COLOR)
    )


def create_player(
    name: str,
    color: Color,
    connection_id: str | None = None,
    player_id: str | None = None,
    is_bot: bool = False,
) -> Player:
    return Player(
        player_id=player_id or str(uuid.uuid4()),
        name=name,
        color=color,
        connection_id=connection_id,
        is_bot=is_bot,
    )


def validate_join(
    state: GameState,
    name: str,
    create: bool,
    connection_id: str | None = None,
) -> ActionResult | None:
    """Return a failure result if the join must be rejected, else None."""
    if not state.players and not create:
        return ActionResult.failure("Room does not exist", ErrorCode.ROOM_NOT_FOUND)

    if state.phase != GamePhase.WAITING:
        return ActionResult.failure(
            "Game already in progress, new players cannot join",
            ErrorCode.GAME_IN_PROGRESS,
        )

    if len(state.players) >= state.max_players:
        return ActionResult.failure(
            f"Room is full (max {state.max_players} players)",
            ErrorCode.ROOM_FULL,
        )

    wanted = name.strip().lower()
    for p in state.players:
        if p.name.strip().lower() == wanted and p.connection_id != connection_id:
            return ActionResult.failure(
                f'Player with name "{name}" is already in this room',
                ErrorCode.NAME_TAKEN,
            )

    return None


def add_player(
    state: GameState,
    name: str,
    connection_id: str | None = None,
    player_id: str | None = None,
    is_bot: bool = False,
    now: float | None = None,
) -> ActionResult:
    """Seat a player on the next free color and give them four pawns."""
    if len(state.players) >= state.max_players:
        return ActionResult.failure("Room is full", ErrorCode.ROOM_FULL)

    color = available_color(state)
    if color is None:
        return ActionResult.failure("No colors available", ErrorCode.NO_COLOR_AVAILABLE)

    player = create_player(name, color, connection_id, player_id, is_bot)
    new_state = state._copy_with(
        players=state.players + (player,),
        pawns=state.pawns + initialize_pawns(color),
        last_update=time.time() if now is None else now,
    )
    return ActionResult.success_with_state(
        new_state,
        changes=[f"{name} joined as {color.value}"],
        player=player,
    )


def add_bot(state: GameState, now: float | None = None) -> ActionResult:
    """Seat a bot, named after its color."""
    if state.phase != GamePhase.WAITING:
        return ActionResult.failure(
            "Bots can only be added before the game starts",
            ErrorCode.GAME_IN_PROGRESS,
        )

    if len(state.players) >= state.max_players:
        return ActionResult.failure("Room is full", ErrorCode.ROOM_FULL)

    color = available_color(state)
    if color is None:
        return ActionResult.failure("No colors available", ErrorCode.NO_COLOR_AVAILABLE)

    bot_id = f"bot-{uuid.uuid4().hex[:8]}"
    return add_player(state, f"Bot {color.value}", player_id=bot_id, is_bot=True, now=now)


def reconnect_player(
    state: GameState,
    player_id: str,
    connection_id: str,
    now: float | None = None,
) -> ActionResult:
    """Rebind a known player to a new connection and mark them active."""
    player = state.get_player(player_id)
    if not player:
        return ActionResult.failure("Player not found for reconnection", ErrorCode.PLAYER_NOT_FOUND)

    updated = replace(player, connection_id=connection_id, is_active=True)
    new_state = state.with_player(updated)._copy_with(
        last_update=time.time() if now is None else now,
    )
    return ActionResult.success_with_state(
        new_state,
        changes=[f"{player.name} reconnected"],
        player=updated,
        reconnected=True,
    )


def handle_join(
    state: GameState,
    name: str,
    connection_id: str,
    create: bool = False,
    player_id: str | None = None,
    total_players: int | None = None,
    now: float | None = None,
) -> ActionResult:
    """
    Main handler for join requests.

    Order: room sizing on create, reconnection, validation, idempotent
    re-join from the same connection, then a fresh seat.
    """
    if create and total_players and not state.players:
        state = state._copy_with(
            max_players=max(MIN_ROOM_SIZE, min(MAX_ROOM_SIZE, total_players)),
        )

    if player_id and state.get_player(player_id):
        return reconnect_player(state, player_id, connection_id, now)

    existing = state.get_player_by_connection(connection_id)
    if existing:
        return ActionResult.success_with_state(state, player=existing)

    rejection = validate_join(state, name, create, connection_id)
    if rejection:
        return rejection

    return add_player(state, name, connection_id=connection_id, player_id=player_id, now=now)
