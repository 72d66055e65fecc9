"""Command-line interface for searching, filling and name-checking projects."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Sequence

from rich.console import Console
from rich.table import Table

from project_intake.errors import IntakeError
from project_intake.observability import configure_logging
from project_intake.services.factories import build_fill_service, build_search_service, build_submit_service
from project_intake.settings import get_settings

console = Console()


def _cmd_search(args: argparse.Namespace) -> int:
    settings = get_settings()
    service = build_search_service(settings)
    hits = service.search(args.query)
    limit = args.limit or settings.search.default_limit
    if not hits:
        console.print(f"[yellow]No provider matches for[/yellow] {args.query!r}")
        return 0

    table = Table(title=f"Matches for {args.query!r}")
    table.add_column("id", style="cyan")
    table.add_column("name", style="bold")
    table.add_column("description")
    for hit in hits[:limit]:
        table.add_row(hit.id, hit.name, (hit.description or "")[:80])
    console.print(table)
    return 0


def _cmd_fill(args: argparse.Namespace) -> int:
    service = build_fill_service(get_settings())
    candidate = service.fill(args.project_id)
    console.print_json(json.dumps(candidate.to_wire()))
    return 0


def _cmd_check_name(args: argparse.Namespace) -> int:
    service = build_submit_service(get_settings())
    exists = asyncio.run(service.check_name(args.name))
    if exists:
        console.print(f"[red]A project named {args.name!r} already exists in the registry.[/red]")
        return 1
    console.print(f"[green]{args.name!r} is available.[/green]")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="project-intake",
        description="Prefill registry submissions from provider data and grounded extraction.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    search = subparsers.add_parser("search", help="Search provider projects by keyword.")
    search.add_argument("query", help="Keyword to search for.")
    search.add_argument("--limit", type=int, default=None, help="Maximum rows to print.")
    search.set_defaults(handler=_cmd_search)

    fill = subparsers.add_parser("fill", help="Print the reconciled candidate for a provider project id.")
    fill.add_argument("project_id", type=int, help="Provider project identifier.")
    fill.set_defaults(handler=_cmd_fill)

    check = subparsers.add_parser("check-name", help="Check whether the registry already has a project name.")
    check.add_argument("name", help="Project name to look up.")
    check.set_defaults(handler=_cmd_check_name)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(get_settings())
    try:
        return args.handler(args)
    except IntakeError as exc:
        console.print(f"[red]{exc.kind}:[/red] {exc.message}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
