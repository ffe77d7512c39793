from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from rich.console import Console

from essayhall.cli.commands import (
    flags_cmd,
    init_cmd,
    load_cmd,
    reset_cmd,
    search_cmd,
    topics_cmd,
    web_cmd,
)
from essayhall.cli.context import CLIContext
from essayhall.core.config import load_paths
from essayhall.core.errors import EssayHallError
from essayhall.core.logging import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="essayhall",
        description="Video Essay Hall of Fame catalog CLI",
    )
    parser.add_argument(
        "--project-root",
        type=Path,
        default=Path.cwd(),
        help="Project root holding archive.csv and .essayhall data (default: current working directory)",
    )
    parser.add_argument(
        "--source",
        help="Archive table path or http(s) URL (default: $ESSAYHALL_ARCHIVE_SOURCE or <project-root>/archive.csv)",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0)

    subparsers = parser.add_subparsers(dest="command", required=True)
    init_cmd.register(subparsers)
    load_cmd.register(subparsers)
    search_cmd.register(subparsers)
    topics_cmd.register(subparsers)
    flags_cmd.register(subparsers)
    reset_cmd.register(subparsers)
    web_cmd.register(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    console = Console()

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 2

    try:
        paths = load_paths(args.project_root)
        if args.source:
            paths = replace(paths, archive_source=args.source)
        return handler(args, CLIContext(paths=paths, console=console))
    except EssayHallError as exc:
        logger.error(str(exc))
        return 1


if __name__ == "__main__":
    sys.exit(main())
