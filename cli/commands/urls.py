"""Scannable URL commands — the CLI twin of the REST endpoint."""

from __future__ import annotations

import json

import typer

from ampscan.config import settings
from ampscan.db import get_connection, init_db
from ampscan.db.validated_urls import ValidatedURLStore
from ampscan.site.routing import PairedRouting
from ampscan.site.urls import SiteURLProvider
from ampscan.validation.scannable_urls import ScannableURLCorrelator
from ampscan.validation.schema import get_item_schema

urls_app = typer.Typer(help="Scannable URLs.", no_args_is_help=True)


def _status(item: dict) -> str:
    if item["stale"] is None:
        return "unvalidated"
    suffix = " (stale)" if item["stale"] else ""
    return f"{len(item['validation_errors'])} error(s){suffix}"


@urls_app.command("list")
def urls_list(
    as_json: bool = typer.Option(False, "--json", help="Emit the raw JSON items."),
) -> None:
    """List scannable URLs with their AMP URL and validation state."""
    conn = get_connection()
    init_db(conn)
    try:
        correlator = ScannableURLCorrelator(
            provider=SiteURLProvider(conn),
            router=PairedRouting(),
            store=ValidatedURLStore(conn),
            max_workers=settings.correlator_workers,
        )
        items = correlator.get_items()
    finally:
        conn.close()

    if as_json:
        typer.echo(json.dumps(items, indent=2))
        return
    if not items:
        typer.echo("No scannable URLs found.")
        return
    for item in items:
        typer.echo(f"  [{item['type']}] {item['url']}")
        typer.echo(f"      amp: {item['amp_url']}  —  {_status(item)}")


@urls_app.command("schema")
def urls_schema() -> None:
    """Print the JSON Schema of one scannable URL item."""
    typer.echo(json.dumps(get_item_schema(), indent=2))
