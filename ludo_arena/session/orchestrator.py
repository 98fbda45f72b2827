"""
Turn Orchestrator - Drives one room in real time.

The orchestrator:
1. Owns the room's GameState (single writer)
2. Turns client intents into engine calls
3. Broadcasts results in order (DICE_RESULT / MOVE_EXECUTED / TURN_SKIPPED,
   then SYNC_STATE)
4. Runs the turn timer: bot ticks for bot seats, a timeout for humans
5. Hands timed-out humans to the bot strategy, and kicks repeat offenders

Everything here is synchronous. Time and delayed callbacks come from an
injected Scheduler, randomness from an injected dice source, and output
goes through the broadcast/send callbacks.

Timer callbacks carry the turn token they were scheduled under; a callback
whose token is no longer current is ignored.
"""

from __future__ import annotations
from typing import Any, Callable
import random

from loguru import logger

from ..config import Settings
from ..engine_core.state import GameState, GamePhase, Player
from ..engine_core.action import Action, ActionType, ActionResult, ErrorCode
from ..engine_core.dice import RandomSource
from ..engine_core.move_generator import get_valid_pawn_ids
from ..engine_core.reducer import apply_action
from ..engine_core.turn_machine import start_game, skip_turn, remove_player, set_player_active
from ..engine_core import roster
from ..bots import BotStrategy, decide, get_personality
from .. import messages
from .scheduler import Scheduler, TimerHandle, AsyncioScheduler


Broadcast = Callable[[dict[str, Any]], None]
Send = Callable[[str, dict[str, Any]], None]


def _discard_broadcast(message: dict[str, Any]) -> None:
    pass


def _discard_send(connection_id: str, message: dict[str, Any]) -> None:
    pass


class TurnOrchestrator:
    """
    Real-time driver for a single room.

    Usage:
        orchestrator = TurnOrchestrator("ROOM1", broadcast=..., send=...)
        orchestrator.connect(conn_id)
        orchestrator.handle_message(conn_id, parse_client_message(raw))
        orchestrator.disconnect(conn_id)
    """

    def __init__(
        self,
        room_id: str,
        settings: Settings | None = None,
        scheduler: Scheduler | None = None,
        dice_source: RandomSource | None = None,
        bot_rng: random.Random | None = None,
        broadcast: Broadcast | None = None,
        send: Send | None = None,
        on_finished: Callable[[str], Any] | None = None,
    ):
        self.settings = settings or Settings()
        self.scheduler = scheduler or AsyncioScheduler()
        self.dice_source = dice_source
        self.bot_rng = bot_rng or random.Random()
        self.broadcast = broadcast or _discard_broadcast
        self.send = send or _discard_send
        self.on_finished = on_finished

        self.bot_strategy = BotStrategy(self.settings.bot_strategy)
        self.bot_profile = get_personality(self.settings.bot_profile)

        self.state = GameState.create(
            room_id,
            max_players=self.settings.max_players,
            now=self.scheduler.now(),
        )

        self._processing = False
        self._timer: TimerHandle | None = None
        self._turn_token = 0
        self._timeouts: dict[str, int] = {}
        self._finish_announced = False

        self._handlers: dict[type, Callable[[str, Any], None]] = {
            messages.JoinRequest: self.handle_join,
            messages.RollRequest: lambda conn, msg: self.handle_roll(conn),
            messages.MoveRequest: lambda conn, msg: self.handle_move(conn, msg.pawn_id),
            messages.StartGame: lambda conn, msg: self.handle_start(conn),
            messages.AddBot: lambda conn, msg: self.handle_add_bot(conn),
        }

    @property
    def room_id(self) -> str:
        return self.state.room_id

    @property
    def is_processing(self) -> bool:
        return self._processing

    def timeouts_for(self, player_id: str) -> int:
        return self._timeouts.get(player_id, 0)

    def room_info(self) -> dict[str, Any]:
        count = len(self.state.players)
        return messages.RoomInfo(
            room_id=self.room_id,
            player_count=count,
            max_players=self.state.max_players,
            is_full=count >= self.state.max_players,
        ).to_wire()

    def rankings(self) -> list[messages.RankingEntry]:
        ranked = sorted((p for p in self.state.players if p.is_ranked), key=lambda p: p.rank)
        return [
            messages.RankingEntry(rank=p.rank, color=p.color.value, name=p.name, player_id=p.player_id)
            for p in ranked
        ]

    def close(self) -> None:
        """Stop the timer; the room is being discarded."""
        self._cancel_timer()

    # =========================================================================
    # Connection lifecycle
    # =========================================================================

    def connect(self, connection_id: str) -> None:
        self.send(connection_id, self.room_info())
        self.send(connection_id, messages.SyncState(state=self.state.to_dict()).to_wire())

    def disconnect(self, connection_id: str) -> None:
        player = self.state.get_player_by_connection(connection_id)
        if player is None:
            return

        now = self.scheduler.now()

        if self.state.phase == GamePhase.WAITING:
            result = remove_player(self.state, player.player_id, now)
            self._commit(result)
            self.broadcast(messages.PlayerLeft(player=player.to_dict()).to_wire())
            logger.info(f"{player.name} left room {self.room_id} before the start")
            self._finish_step()
            return

        held_turn = self.state.is_in_progress and self.state.current_turn == player.color
        result = set_player_active(self.state, player.player_id, False, now)
        self._commit(result)
        self.broadcast(messages.PlayerLeft(player=result.player.to_dict()).to_wire())
        logger.info(f"{player.name} disconnected from room {self.room_id}")

        if held_turn:
            self.broadcast(messages.TurnSkipped(
                reason="Player disconnected",
                next_player=self.state.current_turn.value,
            ).to_wire())
            self._finish_step()
        else:
            self._publish_state()

    # =========================================================================
    # Client intents
    # =========================================================================

    def handle_message(self, connection_id: str, message: Any) -> None:
        handler = self._handlers.get(type(message))
        if handler is None:
            self._reply_error(connection_id, ErrorCode.MALFORMED_MESSAGE, "Unknown message type")
            return
        handler(connection_id, message)

    def handle_join(self, connection_id: str, request: messages.JoinRequest) -> None:
        if self._busy(connection_id):
            return

        now = self.scheduler.now()
        already_seated = self.state.get_player_by_connection(connection_id)
        result = roster.handle_join(
            self.state,
            request.name,
            connection_id,
            create=request.create,
            player_id=request.player_id,
            total_players=request.total_players,
            now=now,
        )

        if not result.success:
            self.send(connection_id, messages.JoinRejected(
                code=result.error_code,
                message=result.error,
            ).to_wire())
            return

        self._commit(result)
        player = result.player
        self.send(connection_id, messages.JoinSuccess(
            player=player.to_dict(),
            room_id=self.room_id,
            reconnected=result.reconnected,
        ).to_wire())

        if result.reconnected:
            logger.info(f"{player.name} reconnected to room {self.room_id}")
            self._publish_state()
            return
        if already_seated:
            return

        logger.info(f"{player.name} joined room {self.room_id} as {player.color.value}")
        self.broadcast(messages.PlayerJoined(
            player=player.to_dict(),
            player_count=len(self.state.players),
        ).to_wire())

        if request.create and request.bot_count:
            for _ in range(request.bot_count):
                if not self._seat_bot(now):
                    break

        self._maybe_auto_start(now)
        self._finish_step()

    def handle_add_bot(self, connection_id: str) -> None:
        if self._busy(connection_id):
            return
        player = self._require_host(connection_id)
        if player is None:
            return

        now = self.scheduler.now()
        result = roster.add_bot(self.state, now)
        if not result.success:
            self._reply_error(connection_id, result.error_code, result.error)
            return

        self._seat_result(result)
        self._maybe_auto_start(now)
        self._finish_step()

    def handle_start(self, connection_id: str) -> None:
        if self._busy(connection_id):
            return
        player = self._require_host(connection_id)
        if player is None:
            return

        result = start_game(self.state, self.scheduler.now())
        if not result.success:
            self._reply_error(connection_id, result.error_code, result.error)
            return

        self._commit(result)
        logger.info(f"Room {self.room_id} started by {player.name} with {len(self.state.players)} players")
        self._finish_step()

    def handle_roll(self, connection_id: str) -> None:
        if self._busy(connection_id):
            return
        player = self._require_player(connection_id)
        if player is None:
            return
        self._guarded(self._human_roll, connection_id, player)

    def handle_move(self, connection_id: str, pawn_id: str) -> None:
        if self._busy(connection_id):
            return
        player = self._require_player(connection_id)
        if player is None:
            return
        self._guarded(self._human_move, connection_id, player, pawn_id)

    def _human_roll(self, connection_id: str, player: Player) -> bool:
        result = self._roll(player, automated=False)
        if not result.success:
            self._reply_error(connection_id, result.error_code, result.error)
            return False
        self._timeouts.pop(player.player_id, None)
        return True

    def _human_move(self, connection_id: str, player: Player, pawn_id: str) -> bool:
        result = self._move(player, pawn_id, automated=False)
        if not result.success:
            self._reply_error(connection_id, result.error_code, result.error)
            return False
        self._timeouts.pop(player.player_id, None)
        return True

    # =========================================================================
    # Turn steps
    # =========================================================================

    def _roll(self, player: Player, automated: bool) -> ActionResult:
        result = apply_action(
            self.state, player.player_id, Action.roll(),
            source=self.dice_source, now=self.scheduler.now(),
        )
        if not result.success:
            return result

        self._commit(result)

        if result.forfeited:
            self.broadcast(messages.DiceResult(
                dice_value=result.dice_value,
                player=player.color.value,
                is_bot=automated,
                forfeited=True,
            ).to_wire())
            self.broadcast(messages.TurnSkipped(
                reason="Third consecutive six",
                next_player=self.state.current_turn.value,
            ).to_wire())
            return result

        valid_pawn_ids = get_valid_pawn_ids(self.state)
        self.broadcast(messages.DiceResult(
            dice_value=result.dice_value,
            player=player.color.value,
            valid_pawn_ids=valid_pawn_ids,
            is_bot=automated,
        ).to_wire())

        # Bot seats skip on their next tick so the roll stays visible
        if not valid_pawn_ids and not player.is_bot:
            self._skip("No valid moves available")

        return result

    def _move(self, player: Player, pawn_id: str, automated: bool) -> ActionResult:
        result = apply_action(
            self.state, player.player_id, Action.move(pawn_id),
            now=self.scheduler.now(),
        )
        if not result.success:
            return result

        self._commit(result)
        self.broadcast(messages.MoveExecuted(
            pawn_id=pawn_id,
            move=result.move.to_dict(),
            extra_turn=result.extra_turn,
            captured=result.captured,
            is_bot=automated,
        ).to_wire())
        return result

    def _skip(self, reason: str) -> None:
        self.state = skip_turn(self.state, self.scheduler.now())
        self.broadcast(messages.TurnSkipped(
            reason=reason,
            next_player=self.state.current_turn.value,
        ).to_wire())

    def _automated_step(self, player: Player) -> bool:
        """Let the bot strategy take one decision for player."""
        decision = decide(self.state, player.color, self.bot_strategy, self.bot_profile, self.bot_rng)
        action = decision.action

        if action.action_type == ActionType.ROLL:
            result = self._roll(player, automated=True)
        elif action.action_type == ActionType.MOVE:
            result = self._move(player, action.pawn_id, automated=True)
        else:
            self._skip("No valid moves available")
            return True

        if not result.success:
            raise RuntimeError(f"Bot action {action.action_type.value} rejected: {result.error}")
        return True

    def _takeover_turn(self, player: Player) -> bool:
        """Play a timed-out human's roll and, if possible, the following move."""
        self._automated_step(player)
        current = self.state.current_player
        if (
            self.state.phase == GamePhase.MOVING
            and current is not None
            and current.player_id == player.player_id
        ):
            self._automated_step(player)
        return True

    def _kick(self, player: Player, reason: str) -> bool:
        result = remove_player(self.state, player.player_id, self.scheduler.now())
        if not result.success:
            raise RuntimeError(result.error)
        self._commit(result)
        self._timeouts.pop(player.player_id, None)
        self.broadcast(messages.PlayerKicked(player=player.to_dict(), reason=reason).to_wire())
        logger.info(f"Kicked {player.name} from room {self.room_id}: {reason}")
        return True

    def _guarded(self, step: Callable[..., bool], *args: Any) -> None:
        """
        Run a turn step with the processing flag held.

        Any exception becomes a forced skip so the room never stalls.
        """
        self._processing = True
        changed = False
        try:
            changed = step(*args)
        except Exception:
            logger.exception(f"Turn step failed in room {self.room_id}, forcing skip")
            self._skip("Recovered from an internal error")
            changed = True
        finally:
            self._processing = False

        if changed:
            self._finish_step()

    # =========================================================================
    # Timers
    # =========================================================================

    def _schedule_turn(self) -> None:
        self._cancel_timer()
        if not self.state.is_in_progress:
            return
        player = self.state.current_player
        if player is None:
            return

        token = self._turn_token

        if player.is_bot:
            if self.state.phase == GamePhase.ROLLING:
                delay = self.settings.bot_turn_delay
            else:
                delay = self.settings.bot_action_delay
            self._timer = self.scheduler.call_later(delay, self._on_bot_tick, token)
            return

        timeout = self.settings.turn_timeout_seconds
        self._timer = self.scheduler.call_later(timeout, self._on_turn_timeout, token)
        self.broadcast(messages.TurnTimerStarted(
            player=player.color.value,
            timeout_seconds=timeout,
            deadline=self.scheduler.now() + timeout,
        ).to_wire())

    def _cancel_timer(self) -> None:
        self._turn_token += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_bot_tick(self, token: int) -> None:
        if token != self._turn_token or self._processing:
            return
        self._timer = None
        player = self.state.current_player
        if player is None or not player.is_bot or not self.state.is_in_progress:
            return
        self._guarded(self._automated_step, player)

    def _on_turn_timeout(self, token: int) -> None:
        if token != self._turn_token or self._processing:
            return
        self._timer = None
        player = self.state.current_player
        if player is None or player.is_bot or not self.state.is_in_progress:
            return

        count = self._timeouts.get(player.player_id, 0) + 1
        self._timeouts[player.player_id] = count

        if count >= self.settings.max_timeouts:
            self._guarded(self._kick, player, f"Timed out {count} times")
            return

        reason = f"Turn timeout ({self.settings.turn_timeout_seconds:g} seconds)"
        logger.info(f"Bot taking over for {player.name} in room {self.room_id} ({count}/{self.settings.max_timeouts})")
        self.broadcast(messages.BotTakeover(
            player=player.color.value,
            reason=reason,
            timeouts=count,
        ).to_wire())
        self._guarded(self._takeover_turn, player)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _seat_bot(self, now: float) -> bool:
        result = roster.add_bot(self.state, now)
        if not result.success:
            return False
        self._seat_result(result)
        return True

    def _seat_result(self, result: ActionResult) -> None:
        self._commit(result)
        logger.info(f"Seated {result.player.name} in room {self.room_id}")
        self.broadcast(messages.PlayerJoined(
            player=result.player.to_dict(),
            player_count=len(self.state.players),
        ).to_wire())

    def _maybe_auto_start(self, now: float) -> None:
        if self.state.phase != GamePhase.WAITING or len(self.state.players) < self.state.max_players:
            return
        result = start_game(self.state, now)
        if result.success:
            self._commit(result)
            logger.info(f"Room {self.room_id} is full, starting")

    def _commit(self, result: ActionResult) -> None:
        self.state = result.new_state
        if result.state_changes:
            logger.debug(f"Room {self.room_id}: {'; '.join(result.state_changes)}")

    def _publish_state(self) -> None:
        self.broadcast(messages.SyncState(state=self.state.to_dict()).to_wire())

    def _finish_step(self) -> None:
        """Broadcast the new snapshot, then either rearm the timer or close the game."""
        self._publish_state()
        if self.state.phase != GamePhase.FINISHED:
            self._schedule_turn()
            return

        self._cancel_timer()
        if not self._finish_announced:
            self._finish_announced = True
            winner = self.state.winner.value if self.state.winner else None
            self.broadcast(messages.GameFinished(winner=winner, rankings=self.rankings()).to_wire())
            logger.info(f"Room {self.room_id} finished, winner {winner}")
            if self.on_finished is not None:
                self.on_finished(self.room_id)

    def _busy(self, connection_id: str) -> bool:
        if self._processing:
            self._reply_error(connection_id, ErrorCode.TURN_IN_PROGRESS, "A turn step is in progress")
            return True
        return False

    def _require_player(self, connection_id: str) -> Player | None:
        player = self.state.get_player_by_connection(connection_id)
        if player is None:
            self._reply_error(connection_id, ErrorCode.NOT_JOINED, "Join the room first")
        return player

    def _require_host(self, connection_id: str) -> Player | None:
        player = self._require_player(connection_id)
        if player is None:
            return None
        if self.state.players[0].player_id != player.player_id:
            self._reply_error(connection_id, ErrorCode.NOT_HOST, "Only the host can do that")
            return None
        return player

    def _reply_error(self, connection_id: str, code: ErrorCode | None, message: str | None) -> None:
        self.send(connection_id, messages.error_message(
            code or ErrorCode.INTERNAL_ERROR,
            message or "Request failed",
        ))
