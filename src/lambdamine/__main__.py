"""CLI entry point: replay a route on a map, or list reachable targets."""

import argparse
import logging
import sys
from pathlib import Path

import structlog

from .config import Config, find_config, load_config
from .exceptions import MineError
from .mapfile import load_mine, serialize_mine
from .route import parse_route
from .search import ReachabilitySearch
from .types import Outcome

# Process exit status per outcome
EXIT_CODES: dict[Outcome, int] = {
    Outcome.WIN: 0,
    Outcome.IN_PROGRESS: 0,
    Outcome.ABORTED: 2,
    Outcome.FAIL: 3,
}


def configure_logging(verbose: bool = False) -> None:
    """Configure structlog for console output."""
    level = logging.DEBUG if verbose else logging.INFO
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def _load(args: argparse.Namespace):
    config = Config()
    if args.config:
        config = load_config(find_config(args.config))
    return config, load_mine(Path(args.map), config.mine)


def cmd_simulate(args: argparse.Namespace) -> int:
    """Apply a route and print the resulting map."""
    logger = structlog.get_logger()
    _, mine = _load(args)
    results = mine.apply_route(parse_route(args.route))

    print(serialize_mine(mine), end="")
    print(f"outcome: {mine.outcome.value}")
    if mine.failure_cause is not None:
        print(f"cause: {mine.failure_cause.value}")
    print(f"moves: {mine.moves_count}")
    print(f"lambdas: {mine.lambdas_gathered}/{mine.total_lambdas}")

    logger.info(
        "simulation_finished",
        applied=len(results),
        outcome=mine.outcome.value,
        moves=mine.moves_count,
    )
    return EXIT_CODES[mine.outcome]


def cmd_targets(args: argparse.Namespace) -> int:
    """Print the shortest safe route to every reachable lambda and the lift."""
    config, mine = _load(args)
    search = ReachabilitySearch(mine, move_order=config.search.actions())
    for route in search.targets():
        print(route)
    if search.lift is not None:
        print(f"lift {search.lift}")
    return 0


def main() -> None:
    """Run the lambdamine CLI."""
    parser = argparse.ArgumentParser(
        description="Lambda mine simulator - replay routes and search for safe paths"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path or name of a TOML config file",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Verbose logging"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    simulate = subparsers.add_parser("simulate", help="Apply a route to a map")
    simulate.add_argument("map", type=str, help="Map file")
    simulate.add_argument("route", type=str, help="Commands, e.g. LLDDRA")
    simulate.set_defaults(handler=cmd_simulate)

    targets = subparsers.add_parser("targets", help="List reachable lambdas")
    targets.add_argument("map", type=str, help="Map file")
    targets.set_defaults(handler=cmd_targets)

    args = parser.parse_args()
    configure_logging(args.verbose)
    logger = structlog.get_logger()

    try:
        code = args.handler(args)
    except (MineError, FileNotFoundError) as e:
        logger.error("command_failed", command=args.command, error=str(e))
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
