"""
Ludo Arena CLI - Command-line interface for the server and engine.

Usage:
    ludo-arena serve [--host H] [--port P]      Run the game server
    ludo-arena simulate [--players N] ...       Play a headless all-bot game
"""

import argparse
import random
import sys

from loguru import logger


MAX_SIMULATION_STEPS = 20000


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Ludo Arena - Authoritative multiplayer Ludo",
        prog="ludo-arena",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the game server")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    # Simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Play a headless all-bot game")
    simulate_parser.add_argument("--players", type=int, default=4, help="Number of bots (2-4)")
    simulate_parser.add_argument("--strategy", default="scored", help="random, weighted or scored")
    simulate_parser.add_argument("--profile", default="cautious", help="Bot profile for the scored strategy")
    simulate_parser.add_argument("--seed", type=int, default=None, help="Seed for dice and bots")

    args = parser.parse_args(argv)

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "simulate":
        cmd_simulate(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_serve(args):
    """Run the FastAPI app under uvicorn."""
    import uvicorn
    from .config import Settings
    from .log import configure_logging

    settings = Settings.from_env()
    configure_logging(settings.log_level, settings.log_json)
    logger.info(f"Serving on {args.host}:{args.port}")

    uvicorn.run(
        "ludo_arena.api.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )


def simulate_game(players=4, strategy="scored", profile="cautious", seed=None, max_steps=MAX_SIMULATION_STEPS):
    """
    Play a full game with bots only, straight through the engine.

    Returns the final GameState. The clock is simulated, one second per
    step, so the roll debounce never triggers.
    """
    from .engine_core import GameState, GamePhase, ActionType, apply_action, add_bot, start_game
    from .engine_core.roster import MIN_ROOM_SIZE, MAX_ROOM_SIZE
    from .bots import decide

    if not MIN_ROOM_SIZE <= players <= MAX_ROOM_SIZE:
        raise ValueError(f"players must be between {MIN_ROOM_SIZE} and {MAX_ROOM_SIZE}")

    rng = random.Random(seed)
    dice = random.Random(None if seed is None else seed + 1)
    now = 1000.0

    state = GameState.create("SIMULATION", max_players=players, now=now)
    for _ in range(players):
        state = add_bot(state, now).new_state
    state = start_game(state, now).new_state

    for _ in range(max_steps):
        if state.phase == GamePhase.FINISHED:
            break
        now += 1.0
        player = state.current_player
        decision = decide(state, player.color, strategy, profile, rng)
        result = apply_action(state, player.player_id, decision.action, source=dice, now=now)
        if not result.success:
            raise RuntimeError(f"{player.name} attempted an illegal {decision.action.action_type.value}: {result.error}")
        state = result.new_state

        if decision.action.action_type == ActionType.ROLL and result.dice_value is not None:
            logger.debug(f"{player.name} rolled {result.dice_value}")

    return state


def cmd_simulate(args):
    """Play a headless game and print the rankings."""
    from .engine_core import GamePhase
    from .log import configure_logging

    configure_logging("WARNING")
    try:
        state = simulate_game(args.players, args.strategy, args.profile, args.seed)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if state.phase != GamePhase.FINISHED:
        print(f"Game did not finish within {MAX_SIMULATION_STEPS} steps")
        sys.exit(1)

    print(f"Strategy: {args.strategy} ({args.profile})")
    print("Rankings:")
    for player in sorted(state.players, key=lambda p: p.rank):
        print(f"  {player.rank}. {player.name} ({player.color.value})")


if __name__ == "__main__":
    main()
