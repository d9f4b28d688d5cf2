"""
Command-line entry point for Stationfall.

Subcommands:
    simulate    Run a seeded bot match and print its transcript
    placements  Show the interactable layout every participant derives
    headless    JSON-lines authority on stdin/stdout
    config      Write the default configuration to a file
"""

import argparse
import logging
import sys
from pathlib import Path

from rich.markdown import Markdown

from ..errors import ConfigError
from ..state.config import MatchConfig, load_config, save_config
from ..systems.session import MatchSession
from ..simulation.personas import PERSONAS
from ..simulation.runner import create_simulation, run_simulation
from .headless import run_headless
from .renderer import THEME, console, show_placements, show_sites, show_status, show_summary

logger = logging.getLogger(__name__)


def cmd_simulate(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    personas = args.personas or ["cautious", "saboteur", "chaotic", "cautious"]

    session, bots = create_simulation(personas, seed=args.seed, config=config)
    transcript = run_simulation(session, bots, duration=args.duration, dt=args.dt, seed=args.seed)

    if args.transcript:
        console.print(Markdown(transcript.to_markdown()))
    else:
        show_status(session.status())
        show_sites(session.phases.high_value_sites)
    show_summary(session.phases.summary)

    if args.save:
        path = transcript.save(args.save)
        console.print(f"[{THEME['dim']}]Transcript saved to {path}[/{THEME['dim']}]")
    return 0


def cmd_placements(args: argparse.Namespace) -> int:
    session = MatchSession(load_config(args.config))
    show_placements(session.placements())
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    if save_config(MatchConfig(), args.path):
        console.print(f"Default config written to {args.path}")
        return 0
    console.print(f"[{THEME['danger']}]Could not write {args.path}[/{THEME['danger']}]")
    return 1


def cmd_headless(args: argparse.Namespace) -> int:
    run_headless(args.config)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Stationfall - match authority")
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Match config (YAML or JSON)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Debug logging",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    simulate = sub.add_parser("simulate", help="Run a bot match")
    simulate.add_argument("--seed", type=int, default=None, help="Seed for a reproducible run")
    simulate.add_argument(
        "--personas", nargs="+", choices=sorted(PERSONAS), default=None,
        help="One bot per persona (default: four bots)",
    )
    simulate.add_argument("--duration", type=float, default=900.0, help="Simulated seconds")
    simulate.add_argument("--dt", type=float, default=0.5, help="Seconds per tick")
    simulate.add_argument("--transcript", "-t", action="store_true", help="Print the full transcript")
    simulate.add_argument("--save", type=Path, default=None, help="Directory to save the transcript in")
    simulate.set_defaults(func=cmd_simulate)

    placements = sub.add_parser("placements", help="Show deterministic interactable placement")
    placements.set_defaults(func=cmd_placements)

    headless = sub.add_parser("headless", help="JSON I/O mode on stdin/stdout")
    headless.set_defaults(func=cmd_headless)

    config = sub.add_parser("config", help="Write the default config")
    config.add_argument("path", type=Path, help="Target file (.yaml or .json)")
    config.set_defaults(func=cmd_config)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    # stdout is reserved for headless JSON
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        return args.func(args)
    except ConfigError as e:
        logger.error(f"Startup rejected: {e}")
        console.print(f"[{THEME['danger']}]Config error:[/{THEME['danger']}] {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
