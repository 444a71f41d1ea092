"""
Scoundrel CLI - Command-line interface for the engine.

Usage:
    scoundrel serve [--host HOST] [--port PORT]   Run the API server
    scoundrel simulate [--games N] [--seed S]     Play random games
"""

from __future__ import annotations
from dataclasses import replace
import argparse
import asyncio
import random
import sys

from .config import EngineConfig, now_ms
from .logging_setup import configure_logging


def main(argv: list[str] | None = None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Scoundrel - Authoritative dungeon crawler engine",
        prog="scoundrel",
    )
    parser.add_argument("--log-level", help="Override SCOUNDREL_LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")

    simulate_parser = subparsers.add_parser("simulate", help="Play random legal games")
    simulate_parser.add_argument("--games", type=int, default=1, help="Number of games")
    simulate_parser.add_argument("--seed", type=int, default=None, help="Seed for decks and moves")

    args = parser.parse_args(argv)

    config = EngineConfig.from_env()
    configure_logging(args.log_level or config.log_level)

    if args.command == "serve":
        cmd_serve(args, config)
    elif args.command == "simulate":
        cmd_simulate(args, config)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_serve(args, config: EngineConfig):
    """Run the FastAPI app under uvicorn."""
    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn not installed. Install with: pip install uvicorn")
        sys.exit(1)

    from .api import create_app

    uvicorn.run(create_app(config=config), host=args.host, port=args.port)


class SteppingClock:
    """Server clock that moves forward a fixed step on every reading."""

    def __init__(self, start: int, step_ms: int = 1000):
        self.current = start
        self.step_ms = step_ms

    def __call__(self) -> int:
        self.current += self.step_ms
        return self.current


async def play_random_game(manager, rng: random.Random) -> tuple[str, int, int]:
    """
    Play one game by picking uniformly among legal actions.

    Returns (session id, score, number of actions). A game that runs out
    of legal actions before it is over scores its current health.
    """
    from .engine_core.action_generator import legal_actions

    session = await manager.create_game("simulator")
    state = session.state
    actions = 0

    while not state.game_over:
        options = legal_actions(
            state,
            timestamp=manager.now(),
            validator=manager.validator,
        )
        if not options:
            return session.session_id, state.health, actions
        result = await manager.handle_action(session.session_id, rng.choice(options))
        if not result.success:
            raise RuntimeError(f"Legal action rejected: {result.error} ({result.error_code})")
        state = result.new_state
        actions += 1

    return session.session_id, state.score, actions


def cmd_simulate(args, config: EngineConfig):
    """Play random legal games against an in-memory store."""
    from .session import InMemorySessionStore, SessionManager

    rng = random.Random(args.seed)
    # Simulated players act far faster than any live rate limit allows
    config = replace(config, max_actions_per_window=10**9, store_dir=None)

    async def run():
        manager = SessionManager(
            InMemorySessionStore(),
            config=config,
            rng=rng,
            clock=SteppingClock(now_ms()),
        )
        scores = []
        for i in range(args.games):
            session_id, score, actions = await play_random_game(manager, rng)
            scores.append(score)
            print(f"Game {i + 1}: score {score} after {actions} actions ({session_id})")
        if scores:
            print(f"\nBest: {max(scores)}  Worst: {min(scores)}  "
                  f"Mean: {sum(scores) / len(scores):.1f}")

    asyncio.run(run())


if __name__ == "__main__":
    main()
