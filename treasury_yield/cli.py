"""Command-line interface for the treasury yield engine."""
from __future__ import annotations

import argparse
import asyncio
import sys

from .config import load_config
from .logging_setup import configure_logging
from .services import Monitor
from .simulation import build_simulation, load_scenario, run_scenario


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="treasury-yield",
        description="Treasury yield engine over simulated lending venues",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    for name, help_text in (
        ("run", "Replay a scenario and print the treasury report"),
        ("check", "Replay a scenario, then log positions and send LTV alerts"),
        ("report", "Replay a scenario, then send the treasury report"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("scenario", help="Path to a scenario YAML file")

    return parser


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    sim = build_simulation(config)
    outcome = run_scenario(sim, load_scenario(args.scenario))
    monitor = Monitor(sim.engine, config)

    if args.command == "run":
        print(monitor.render_report())
    elif args.command == "check":
        await monitor.check_and_alert()
    elif args.command == "report":
        await monitor.generate_report()
    else:
        build_parser().print_help()
        sys.exit(1)

    if outcome.failures:
        print(f"{len(outcome.failures)} step(s) failed", file=sys.stderr)


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    asyncio.run(_run(args))
