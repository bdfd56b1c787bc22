"""Site state commands — content items and environment options."""

from __future__ import annotations

import json
import sqlite3

import typer

from ampscan.db import get_connection, init_db
from ampscan.db.content import create_content, touch_content
from ampscan.db.site_options import ENVIRONMENT_OPTIONS, read_environment, set_site_option

site_app = typer.Typer(help="Manage the site content and environment.", no_args_is_help=True)


@site_app.command("add-content")
def site_add_content(
    url: str = typer.Argument(..., help="Canonical URL of the item."),
    object_type: str = typer.Option("post", "--object-type", help="post | term | user"),
    subtype: str = typer.Option("post", "--subtype", help="Post type, taxonomy, or 'author'."),
    title: str = typer.Option("", help="Item title."),
    status: str = typer.Option("publish", help="Publication status."),
) -> None:
    """Register a content item so its URL can be discovered."""
    conn = get_connection()
    init_db(conn)
    try:
        item = create_content(
            conn, object_type=object_type, subtype=subtype, url=url, title=title, status=status
        )
    except ValueError as exc:
        typer.echo(f"❌ {exc}")
        raise typer.Exit(code=1)
    except sqlite3.IntegrityError:
        typer.echo(f"❌ Content already exists for URL: {url}")
        raise typer.Exit(code=1)
    finally:
        conn.close()
    typer.echo(f"✅ Content {item.id} added: [{item.object_type}/{item.subtype}] {item.url}")


@site_app.command("touch-content")
def site_touch_content(
    content_id: int = typer.Argument(..., help="Content id."),
) -> None:
    """Mark a content item as edited now."""
    conn = get_connection()
    init_db(conn)
    try:
        item = touch_content(conn, content_id)
    except ValueError as exc:
        typer.echo(f"❌ {exc}")
        raise typer.Exit(code=1)
    finally:
        conn.close()
    typer.echo(f"✅ Content {item.id} modified at {item.modified_at} (revision {item.revision})")


@site_app.command("set-option")
def site_set_option(
    name: str = typer.Argument(..., help=f"One of: {', '.join(ENVIRONMENT_OPTIONS)}."),
    value: str = typer.Argument(..., help="JSON object."),
) -> None:
    """Set one part of the site environment (theme, plugins, options, sources)."""
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as exc:
        typer.echo(f"❌ Invalid JSON: {exc}")
        raise typer.Exit(code=1)

    conn = get_connection()
    init_db(conn)
    try:
        set_site_option(conn, name, parsed)
    except ValueError as exc:
        typer.echo(f"❌ {exc}")
        raise typer.Exit(code=1)
    finally:
        conn.close()
    typer.echo(f"✅ {name} updated")


@site_app.command("show-environment")
def site_show_environment() -> None:
    """Print the current environment fingerprint as JSON."""
    conn = get_connection()
    init_db(conn)
    try:
        environment = read_environment(conn)
    finally:
        conn.close()
    typer.echo(json.dumps(json.loads(environment.to_json()), indent=2))
