from __future__ import annotations

import argparse

from rich.table import Table

from essayhall.cli.context import CLIContext
from essayhall.cli.wiring import flag_service, query_service, require_initialized_project
from essayhall.core.video_fields import format_compact_number, format_duration, parse_number_loose
from essayhall.domain.models.query import DURATION_FILTERS, LIST_MODES, SORT_MODES, QuerySpec

_MODE_TITLES = {
    "discover": "Discover",
    "favorites": "Favorites",
    "watch_later": "Watch later",
    "watched": "Watched",
}


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("search", help="Search, filter and sort the catalog")
    parser.add_argument("query", nargs="?", default="", help="Free-text fuzzy query")
    parser.add_argument("--topic", action="append", default=[], help="Topic filter (repeatable, any match)")
    parser.add_argument("--duration", action="append", default=[], choices=list(DURATION_FILTERS))
    parser.add_argument("--owner", help="Exact channel name")
    parser.add_argument("--mode", default="discover", choices=list(LIST_MODES))
    parser.add_argument("--sort", default="newest", choices=[*SORT_MODES, "relevance"])
    parser.add_argument("--shuffle", type=int, metavar="SEED", help="Shuffle results with this seed")
    parser.add_argument("--limit", type=int, default=20)
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    require_initialized_project(ctx)
    spec = QuerySpec(
        text=args.query,
        topics=frozenset(args.topic),
        durations=frozenset(args.duration),
        owner=args.owner,
        mode=args.mode,
        sort=None if args.sort == "relevance" else args.sort,
        shuffle_seed=args.shuffle,
        page_size=max(1, args.limit),
    )
    result = query_service(ctx).run(flag_service(ctx).snapshot(), spec)

    if args.mode == "discover":
        subtitle = f"{result.total:,} results"
    else:
        subtitle = f"{result.total:,} of {result.list_total:,} in this list"

    out = Table(title=f"{_MODE_TITLES[args.mode]} ({subtitle})")
    out.add_column("ID")
    out.add_column("Title", overflow="fold")
    out.add_column("Channel")
    out.add_column("Duration", justify="right")
    out.add_column("Views", justify="right")
    out.add_column("Published")
    out.add_column("Topics", overflow="fold")

    for v in result.items:
        out.add_row(
            v.id,
            v.title,
            v.owner or "",
            format_duration(v.duration_seconds, v.duration),
            format_compact_number(parse_number_loose(v.view_count)),
            v.published_date or "",
            ", ".join(v.topics),
        )

    ctx.console.print(out)
    return 0
