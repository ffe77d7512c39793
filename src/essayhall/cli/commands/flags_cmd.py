from __future__ import annotations

import argparse

from rich.table import Table

from essayhall.cli.context import CLIContext
from essayhall.cli.wiring import flag_service, query_service, require_initialized_project
from essayhall.core.errors import FlagError

_FLAG_CHOICES = {"watched": "watched", "watch-later": "watch_later", "favorite": "favorite"}


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    flag_parser = subparsers.add_parser("flag", help="Set, unset or toggle a flag on a video")
    flag_parser.add_argument("video_id")
    action = flag_parser.add_mutually_exclusive_group(required=True)
    action.add_argument("--set", choices=list(_FLAG_CHOICES), dest="set_key")
    action.add_argument("--unset", choices=list(_FLAG_CHOICES), dest="unset_key")
    action.add_argument("--toggle", choices=list(_FLAG_CHOICES), dest="toggle_key")
    flag_parser.set_defaults(handler=run_flag)

    list_parser = subparsers.add_parser("flags", help="List flagged videos and per-list counts")
    list_parser.set_defaults(handler=run_list)


def run_flag(args: argparse.Namespace, ctx: CLIContext) -> int:
    require_initialized_project(ctx)
    if query_service(ctx).get(args.video_id) is None:
        raise FlagError(f"Video not found in catalog: {args.video_id}")

    service = flag_service(ctx)
    if args.set_key:
        flags = service.set_flag(args.video_id, _FLAG_CHOICES[args.set_key], True)
    elif args.unset_key:
        flags = service.set_flag(args.video_id, _FLAG_CHOICES[args.unset_key], False)
    else:
        flags = service.toggle_flag(args.video_id, _FLAG_CHOICES[args.toggle_key])

    ctx.console.print(
        f"[green]{flags.id}[/green] watched={flags.watched} watch_later={flags.watch_later} favorite={flags.favorite}"
    )
    return 0


def run_list(args: argparse.Namespace, ctx: CLIContext) -> int:
    require_initialized_project(ctx)
    service = flag_service(ctx)
    counts = service.counts()
    rows = sorted(service.snapshot().values(), key=lambda f: f.updated_at, reverse=True)

    out = Table(
        title=(
            f"Flags (favorites {counts.favorites}, watch later {counts.watch_later}, watched {counts.watched})"
        )
    )
    out.add_column("ID")
    out.add_column("Favorite")
    out.add_column("Watch later")
    out.add_column("Watched")
    out.add_column("Updated")
    for f in rows:
        out.add_row(f.id, _mark(f.favorite), _mark(f.watch_later), _mark(f.watched), f.updated_at)

    ctx.console.print(out)
    return 0


def _mark(value: bool) -> str:
    return "yes" if value else ""
