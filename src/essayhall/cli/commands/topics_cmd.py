from __future__ import annotations

import argparse

from rich.table import Table

from essayhall.cli.context import CLIContext
from essayhall.cli.wiring import query_service, require_initialized_project


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("topics", help="List topics with how many videos carry each")
    parser.add_argument("--limit", type=int, default=100)
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    require_initialized_project(ctx)
    counts = query_service(ctx).topic_counts()

    out = Table(title=f"Topics ({len(counts)})")
    out.add_column("Topic")
    out.add_column("Videos", justify="right")
    for item in counts[: args.limit]:
        out.add_row(item.topic, str(item.count))

    ctx.console.print(out)
    return 0
