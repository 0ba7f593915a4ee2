"""
Kaiju Clash - Headless Simulation

Plays a full game between computer monsters on the virtual clock and
prints the result.

Usage:
    kaiju-sim [--players N] [--seed S] [--speed fast] [--explain] [--log]
"""

import argparse
import json
import logging
import random
import sys

from kaiju.config.settings import configure_logging, get_settings
from kaiju.interface.game import Game
from kaiju.runtime.events import build_log_tree
from kaiju.services.scenarios import SCENARIOS

logger = logging.getLogger(__name__)

MONSTERS = ("gigazaur", "meka-dragon", "the-king", "cyber-kitty", "alienoid", "space-penguin")


def _monster_name(index: int) -> str:
    return MONSTERS[index % len(MONSTERS)].replace("-", " ").title()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Kaiju Clash - computer-only simulation",
        prog="kaiju-sim",
    )
    parser.add_argument("--players", type=int, default=4, help="Number of computer players (2-6)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--speed", choices=("slow", "normal", "fast"), default=None, help="Pacing preset")
    parser.add_argument("--scenario", choices=sorted(SCENARIOS), help="Scenario applied to the first player")
    parser.add_argument("--max-hours", type=float, default=6.0, help="Virtual-clock limit")
    parser.add_argument("--explain", action="store_true", help="Print the decision tree as JSON")
    parser.add_argument("--log", action="store_true", help="Print the game log")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    if args.speed:
        settings = settings.model_copy(update={"cpu_speed": args.speed})
    configure_logging(settings)

    seed = args.seed if args.seed is not None else settings.rng_seed
    seats = [
        {"id": f"p{i + 1}", "name": _monster_name(i), "monster_id": MONSTERS[i % len(MONSTERS)], "is_cpu": True}
        for i in range(max(0, args.players))
    ]

    try:
        game = Game.new(seats, settings=settings, rng=random.Random(seed), start=False)
    except ValueError as exc:
        print(f"Error: {exc}")
        return 1

    if args.scenario:
        game.apply_scenario(args.scenario, seats[0]["id"])
    game.start()
    game.run_until_idle(limit_ms=int(args.max_hours * 3_600_000))

    snapshot = game.snapshot()
    if args.log:
        for round_node in build_log_tree(game.log.entries):
            print(f"Round {round_node['round']}")
            for turn_node in round_node["turns"]:
                for entry in turn_node["entries"]:
                    detail = f" {entry.data}" if entry.data else ""
                    print(f"  [{turn_node['turn']}] {entry.event.name} {entry.player_id or ''}{detail}")
    if args.explain:
        print(json.dumps(game.decision_tree.as_tree(), indent=2))

    if not game.is_over:
        logger.warning("No winner after %s virtual hours", args.max_hours)
        print(f"No winner (round {snapshot.meta.round}, phase {snapshot.phase})")
        return 2

    print(f"Winner: {snapshot.meta.winner_id} after {snapshot.meta.round} rounds")
    for player in sorted(snapshot.players, key=lambda p: (-p.victory_points, -p.health)):
        status = "alive" if player.alive else "eliminated"
        print(f"  {player.name:<14} VP {player.victory_points:>2}  HP {player.health:>2}  EN {player.energy:>2}  {status}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
