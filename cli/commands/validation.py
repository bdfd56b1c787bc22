"""Import validator results into the validation store."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from ampscan.db import get_connection, init_db
from ampscan.db.content import get_content
from ampscan.db.models import QueriedObject
from ampscan.db.site_options import read_environment
from ampscan.db.validated_urls import record_validation

validation_app = typer.Typer(help="Validation results.", no_args_is_help=True)


@validation_app.command("import")
def validation_import(
    url: str = typer.Argument(..., help="Canonical URL that was validated."),
    errors_file: Path = typer.Argument(..., exists=True, readable=True, help="JSON list of errors."),
    content_id: Optional[int] = typer.Option(
        None, "--content-id", help="Content item the URL resolved to."
    ),
) -> None:
    """Store a validation result, fingerprinted with the current environment."""
    try:
        errors = json.loads(errors_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        typer.echo(f"❌ Invalid JSON in {errors_file}: {exc}")
        raise typer.Exit(code=1)
    if not isinstance(errors, list):
        typer.echo("❌ Errors file must contain a JSON list.")
        raise typer.Exit(code=1)

    conn = get_connection()
    init_db(conn)
    try:
        queried_object = None
        if content_id is not None:
            content = get_content(conn, content_id)
            if content is None:
                typer.echo(f"❌ Content not found: {content_id}")
                raise typer.Exit(code=1)
            queried_object = QueriedObject(type=content.object_type, id=content.id)

        record = record_validation(
            conn,
            url,
            errors,
            environment=read_environment(conn),
            queried_object=queried_object,
        )
    finally:
        conn.close()
    typer.echo(f"✅ Validation {record.id} stored for {record.url} ({len(errors)} error(s))")
