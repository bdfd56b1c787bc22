"""Stored validation results (the ``validated_urls`` table).

``record_validation`` is the write path used when importing validator
output.  ``ValidatedURLStore`` is the read-only view the correlator uses.
"""

from __future__ import annotations

import json
import sqlite3
import threading
from time import time
from typing import Any, Optional

import httpx

from ampscan.config import settings
from ampscan.db.content import get_content
from ampscan.db.models import Content, EnvironmentFingerprint, QueriedObject, ValidationRecord
from ampscan.db.site_options import read_environment
from ampscan.validation.staleness import get_staleness


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _row_to_record(row: sqlite3.Row) -> ValidationRecord:
    queried_object = None
    if row["queried_object_type"] and row["queried_object_id"] is not None:
        queried_object = QueriedObject(
            type=row["queried_object_type"], id=row["queried_object_id"]
        )
    return ValidationRecord(
        id=row["id"],
        url=row["url"],
        errors=row["errors"],
        queried_object=queried_object,
        validated_at=row["validated_at"],
        environment=EnvironmentFingerprint.from_json(row["environment"]),
        content_revision=row["content_revision"],
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def record_validation(
    conn: sqlite3.Connection,
    url: str,
    errors: list[Any],
    environment: Optional[EnvironmentFingerprint] = None,
    queried_object: Optional[QueriedObject] = None,
    validated_at: Optional[int] = None,
) -> ValidationRecord:
    """Store the latest validation result for *url*, replacing any previous one.

    The record id is kept stable across re-validations of the same URL.
    When *queried_object* exists, its current revision is captured so a
    later edit marks the record stale.
    """
    now = validated_at if validated_at is not None else int(time())
    content = get_content(conn, queried_object.id) if queried_object else None
    with conn:
        conn.execute(
            """
            INSERT INTO validated_urls
                (url, errors, queried_object_type, queried_object_id, content_revision,
                 validated_at, environment)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(url) DO UPDATE SET
                errors = excluded.errors,
                queried_object_type = excluded.queried_object_type,
                queried_object_id = excluded.queried_object_id,
                content_revision = excluded.content_revision,
                validated_at = excluded.validated_at,
                environment = excluded.environment
            """,
            (
                url,
                json.dumps(errors),
                queried_object.type if queried_object else None,
                queried_object.id if queried_object else None,
                content.revision if content else None,
                now,
                environment.to_json() if environment else None,
            ),
        )
    return get_validated_url(conn, url)  # type: ignore[return-value]


def get_validated_url(conn: sqlite3.Connection, url: str) -> Optional[ValidationRecord]:
    """Fetch the validation record for *url*.  Returns ``None`` if not found."""
    row = conn.execute(
        "SELECT * FROM validated_urls WHERE url = ?", (url,)
    ).fetchone()
    return _row_to_record(row) if row else None


def edit_link(record_id: int) -> str:
    """Admin URL for inspecting a validation record.

    A relative ``admin_url`` is resolved against ``site_url``.
    """
    admin = httpx.URL(settings.site_url).join(settings.admin_url.rstrip("/") + "/")
    return str(admin.join("post.php").copy_merge_params({"post": record_id, "action": "edit"}))


class ValidatedURLStore:
    """Read-only validation store bound to one request.

    The current environment fingerprint is snapshotted on construction so
    every staleness check in the request compares against the same state.
    A lock serialises access to the shared connection when the correlator
    fans work out across threads.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        environment: Optional[EnvironmentFingerprint] = None,
    ) -> None:
        self._conn = conn
        self._lock = threading.Lock()
        self.environment = environment if environment is not None else read_environment(conn)

    def lookup(self, url: str) -> Optional[ValidationRecord]:
        with self._lock:
            return get_validated_url(self._conn, url)

    def edit_link(self, record: ValidationRecord) -> str:
        return edit_link(record.id)

    def current_content(self, record: ValidationRecord) -> Optional[Content]:
        """Current state of the record's content, if it still exists."""
        if record.queried_object is None:
            return None
        with self._lock:
            return get_content(self._conn, record.queried_object.id)

    def staleness(self, record: ValidationRecord) -> Optional[str]:
        return get_staleness(record, self.environment, self.current_content(record))

    def is_stale(self, record: ValidationRecord) -> bool:
        return self.staleness(record) is not None
