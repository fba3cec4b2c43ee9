"""Command-line interface for ImpulseSense."""

import argparse
import asyncio
import logging
import random
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from impulsesense.config import get_config, reload_config
from impulsesense.contracts.state import InterventionLevel

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)

console = Console()


def _apply_log_level(args: argparse.Namespace) -> None:
    config = reload_config(args.config) if getattr(args, "config", None) else get_config()
    level = "DEBUG" if getattr(args, "verbose", False) else config.LOG_LEVEL
    logging.getLogger().setLevel(level)


def cmd_simulate(args: argparse.Namespace) -> int:
    """Play a YAML scenario (or a random walk) in fast-forward mode."""
    from impulsesense.adapters.scenario import Scenario, ScenarioError, ScenarioPlayer
    from impulsesense.core.session import ImpulseSession
    from impulsesense.store.projections import BrowsingProjection, InterventionAnalyticsProjection

    if args.scenario:
        scenario_path = Path(args.scenario)
        if not scenario_path.exists():
            console.print(f"[red]Error:[/] Scenario file not found: {scenario_path}")
            return 1

        try:
            scenario = Scenario.load(scenario_path)
        except ScenarioError as e:
            console.print(f"[red]Error:[/] {e}")
            return 1
    else:
        scenario = Scenario.random_walk(args.ticks, seed=args.seed)

    seed = args.seed if args.seed is not None else scenario.seed
    session = ImpulseSession(
        config=get_config(),
        rng=random.Random(seed) if seed is not None else None,
        breathing_time_scale=0.0,
    )

    analytics = InterventionAnalyticsProjection()
    analytics.follow(session.event_log)
    browsing = BrowsingProjection()
    browsing.follow(session.event_log)

    result = asyncio.run(ScenarioPlayer(scenario, session).run())

    if args.verbose:
        for line in result.outcomes:
            console.print(line)

    table = Table(title=f"Triggers - {result.name}")
    table.add_column("Time")
    table.add_column("Level")
    table.add_column("Product")
    table.add_column("Reason")
    for sample in result.triggers:
        trigger = sample.trigger
        table.add_row(
            trigger.display_time,
            trigger.level.event_label,
            trigger.product_context,
            trigger.reason,
        )
    console.print(table)

    state = result.final_state
    console.print(
        f"\nSteps: {result.steps_run}  "
        f"Final score: {state.score:.3f}  "
        f"Level: L{int(state.level)} ({state.level.display_name})"
    )
    console.print(f"Analytics: {analytics.get_summary()}")
    console.print(f"Browsing: {browsing.get_summary()}")
    return 0


def cmd_levels(args: argparse.Namespace) -> int:
    """Show the level table."""
    from impulsesense.core.levels import level_range
    from impulsesense.interventions.manager import LEVEL_INTERVENTIONS

    table = Table(title="Intervention levels")
    table.add_column("Level")
    table.add_column("State")
    table.add_column("Score range")
    table.add_column("Gating")

    for level in InterventionLevel:
        low, high = level_range(level)
        table.add_row(
            f"L{int(level)}",
            level.display_name,
            f"[{low:.2f}, {high:.2f}{']' if high >= 1.0 else ')'}",
            LEVEL_INTERVENTIONS[level].value,
        )

    console.print(table)
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Show and validate the configuration."""
    config = get_config()

    console.print(f"Config source: {config.source or 'defaults'}")
    table = Table()
    table.add_column("Key")
    table.add_column("Value")
    for key, value in config.to_dict().items():
        table.add_row(key, repr(value))
    console.print(table)

    errors = config.validate()
    if errors:
        console.print("\n[red]Configuration errors:[/]")
        for error in errors:
            console.print(f"  - {error}")
        return 1

    console.print("\nConfiguration: [green]OK[/]")
    return 0


def cmd_dashboard(args: argparse.Namespace) -> int:
    """Run the live TUI dashboard."""
    from impulsesense.core.session import ImpulseSession
    from impulsesense.tui import ImpulseTUI

    config = get_config()
    errors = config.validate()
    if errors:
        for error in errors:
            console.print(f"[red]Config error:[/] {error}")
        return 1

    # Keep log lines from drawing over the TUI
    logging.getLogger().setLevel(logging.WARNING)

    session = ImpulseSession(config=config)
    ImpulseTUI(session=session).run()
    return 0


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="impulsesense",
        description="ImpulseSense - impulse scoring and graduated shopping interventions",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )
    parser.add_argument(
        "--config",
        help="Path to config.py (default: nearest config.py from cwd)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Debug logging and per-step output",
    )

    subparsers = parser.add_subparsers(dest="command")

    # impulsesense simulate [scenario.yaml]
    simulate_parser = subparsers.add_parser(
        "simulate",
        help="Play a YAML scenario (or a random walk) in fast-forward mode",
    )
    simulate_parser.add_argument(
        "scenario",
        nargs="?",
        help="Path to YAML scenario file (omit for a random walk)",
    )
    simulate_parser.add_argument(
        "--ticks",
        type=int,
        default=120,
        help="Random walk length in seconds (default: 120)",
    )
    simulate_parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for the scoring noise (overrides the scenario seed)",
    )
    simulate_parser.set_defaults(func=cmd_simulate)

    # impulsesense levels
    levels_parser = subparsers.add_parser(
        "levels",
        help="Show intervention levels and score ranges",
    )
    levels_parser.set_defaults(func=cmd_levels)

    # impulsesense config
    config_parser = subparsers.add_parser(
        "config",
        help="Show and validate configuration",
    )
    config_parser.set_defaults(func=cmd_config)

    # impulsesense dashboard
    dashboard_parser = subparsers.add_parser(
        "dashboard",
        help="Run the live TUI dashboard",
    )
    dashboard_parser.set_defaults(func=cmd_dashboard)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return 0

    _apply_log_level(args)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
