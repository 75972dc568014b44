"""Main CLI entry point for microlearn."""

import argparse
import logging
import sys

from microlearn import __version__
from microlearn.cli.commands import cleanup, hearts, reset, stats


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: list[str] | None = None):
    """Main CLI entry point with subcommands."""
    parser = argparse.ArgumentParser(
        prog="microlearn",
        description="Micro-learning challenge sessions, statistics and hearts",
        epilog="Use 'microlearn <command> --help' for command-specific help",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", help="Path to config.json (default: ~/.microlearn/config.json)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # microlearn stats
    stats_parser = subparsers.add_parser(
        "stats",
        help="Show today's statistics",
        description="Show today's counters, streak and per-category progress",
    )
    stats_parser.add_argument("--language", help="Language for category statistics")
    stats_parser.add_argument("--level", help="CEFR level for category statistics")

    # microlearn cleanup
    subparsers.add_parser(
        "cleanup",
        help="Remove completion records from previous days",
        description="Garbage-collect completion records for every day except today",
    )

    # microlearn reset
    reset_parser = subparsers.add_parser(
        "reset",
        help="Delete all statistics",
        description="Delete every daily, streak and category statistics record",
    )
    reset_parser.add_argument("--yes", action="store_true", help="Confirm the reset")

    # microlearn hearts <type>
    hearts_parser = subparsers.add_parser(
        "hearts",
        help="Show the heart pool for a challenge type",
        description="Show remaining hearts and the next refill for a challenge type",
    )
    hearts_parser.add_argument("challenge_type", help="Challenge type (e.g. micro_quiz)")
    hearts_parser.add_argument("--user", default="local", help="User id (default: local)")

    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    # Dispatch to appropriate command
    if args.command == "stats":
        return stats.stats_command(args)
    elif args.command == "cleanup":
        return cleanup.cleanup_command(args)
    elif args.command == "reset":
        return reset.reset_command(args)
    elif args.command == "hearts":
        return hearts.hearts_command(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
