"""Site-wide state stored in the ``site_options`` table.

The validator depends on four option groups; together they form the
environment fingerprint that validation results are compared against.
"""

from __future__ import annotations

import json
import sqlite3
from typing import Any, Optional

from ampscan.db.models import EnvironmentFingerprint

ENVIRONMENT_OPTIONS = ("theme", "plugins", "options", "sources")


def set_site_option(conn: sqlite3.Connection, name: str, value: Any) -> None:
    """Store *value* (JSON-serialisable) under *name*.

    Raises:
        ValueError: If *name* is not one of ``ENVIRONMENT_OPTIONS`` or
            *value* is not a JSON object.
    """
    if name not in ENVIRONMENT_OPTIONS:
        raise ValueError(f"Unknown site option: {name!r}")
    if not isinstance(value, dict):
        raise ValueError(f"Site option {name!r} must be a JSON object")

    with conn:
        conn.execute(
            """
            INSERT INTO site_options (name, value) VALUES (?, ?)
            ON CONFLICT(name) DO UPDATE SET value = excluded.value
            """,
            (name, json.dumps(value, sort_keys=True)),
        )


def get_site_option(conn: sqlite3.Connection, name: str) -> Optional[dict[str, Any]]:
    row = conn.execute(
        "SELECT value FROM site_options WHERE name = ?", (name,)
    ).fetchone()
    if row is None:
        return None
    try:
        value = json.loads(row["value"])
    except json.JSONDecodeError:
        return None
    return value if isinstance(value, dict) else None


def read_environment(conn: sqlite3.Connection) -> EnvironmentFingerprint:
    """Snapshot the current environment fingerprint."""
    return EnvironmentFingerprint(
        **{name: get_site_option(conn, name) or {} for name in ENVIRONMENT_OPTIONS}
    )
