"""ampscan CLI — entry-point for all operations.

Usage:
    python cli/main.py --help

Sub-command groups:
    db          → database setup
    site        → content items and environment fingerprint
    validation  → import validator results
    urls        → scannable URL listing and schema
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from ampscan.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import typer

from ampscan.config import settings, setup_logging
from ampscan.db import get_connection, init_db
from cli.commands.site import site_app
from cli.commands.urls import urls_app
from cli.commands.validation import validation_app

app = typer.Typer(
    name="ampscan",
    help="AMP scannable URL CLI.",
    no_args_is_help=True,
)


@app.callback()
def main() -> None:
    setup_logging(settings.log_level)


db_app = typer.Typer(help="Database operations.", no_args_is_help=True)
app.add_typer(db_app, name="db")
app.add_typer(site_app, name="site")
app.add_typer(validation_app, name="validation")
app.add_typer(urls_app, name="urls")


@db_app.command("init")
def db_init() -> None:
    """Initialise the SQLite database (create tables if they do not exist)."""
    conn = get_connection()
    init_db(conn)
    conn.close()
    typer.echo(f"[db init] Database ready at {settings.db_path}")


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
