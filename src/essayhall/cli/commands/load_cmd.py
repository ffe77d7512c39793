from __future__ import annotations

import argparse

from rich.panel import Panel
from rich.table import Table

from essayhall.cli.context import CLIContext
from essayhall.cli.wiring import archive_service, require_initialized_project


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("load", help="Import the archive table into the catalog if it changed")
    parser.add_argument("--show-issues", action="store_true", help="List every row-level parse issue")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    require_initialized_project(ctx)
    result = archive_service(ctx).ensure_loaded()

    ctx.console.print(
        Panel.fit(
            "\n".join(
                [
                    f"Source: {ctx.paths.archive_source}",
                    f"Status: {result.status_message}",
                    f"Rows missing url/title: {result.skipped_rows}",
                    f"Row parse issues: {len(result.issues)}",
                ]
            ),
            title="Archive Load",
        )
    )

    if args.show_issues and result.issues:
        out = Table(title=f"Row Issues ({len(result.issues)})")
        out.add_column("Line", justify="right")
        out.add_column("Code")
        out.add_column("Message", overflow="fold")
        for issue in result.issues:
            out.add_row(str(issue.line), issue.code, issue.message)
        ctx.console.print(out)
    return 0
