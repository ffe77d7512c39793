from __future__ import annotations

import argparse

from essayhall.cli.context import CLIContext
from essayhall.cli.wiring import archive_service, require_initialized_project


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("reset", help="Clear the catalog and all flags, then re-import the archive")
    parser.add_argument("--yes", action="store_true", help="Confirm the irreversible reset")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    if not args.yes:
        ctx.console.print("[yellow]Reset clears the cached archive and your watch flags. Re-run with --yes.[/yellow]")
        return 2

    require_initialized_project(ctx)
    service = archive_service(ctx)
    service.reset()
    ctx.console.print("[green]Cleared catalog and flags[/green]")

    result = service.ensure_loaded()
    ctx.console.print(f"[green]Re-imported[/green] {result.count:,} videos")
    return 0
