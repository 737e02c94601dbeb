"""
labkit CLI

Usage:
    labkit prep EXPERIMENTS_DIR CORE_DIR
    labkit clean CORE_DIR
"""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

from labkit.cli.ux import _is_interactive
from labkit.config import get_settings
from labkit.logging import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="labkit", description="Assemble experiments into the core application"
    )
    parser.add_argument("--log-level", help="Log level (default: LABKIT_LOG_LEVEL or INFO)")
    parser.add_argument(
        "--json-logs", action="store_true", help="Emit JSON logs instead of console output"
    )
    subparsers = parser.add_subparsers(dest="command")

    prep_parser = subparsers.add_parser(
        "prep", help="Package every experiment and rebuild the core with them"
    )
    prep_parser.add_argument("experiments_dir", help="Directory containing experiment directories")
    prep_parser.add_argument("core_dir", help="Core application directory")

    clean_parser = subparsers.add_parser(
        "clean", help="Remove previously linked experiments from the core"
    )
    clean_parser.add_argument("core_dir", help="Core application directory")

    return parser


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(2)

    settings = get_settings()
    configure_logging(
        args.log_level or settings.log_level,
        json_output=args.json_logs or settings.json_logs or not _is_interactive(),
    )

    if args.command == "prep":
        from labkit.cli.prep import prep_command

        sys.exit(prep_command(args.experiments_dir, args.core_dir, settings=settings))

    if args.command == "clean":
        from labkit.cli.prep import clean_command

        sys.exit(clean_command(args.core_dir, settings=settings))


if __name__ == "__main__":
    main()
