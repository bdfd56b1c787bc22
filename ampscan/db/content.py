"""CRUD operations for the ``content`` table."""

from __future__ import annotations

import sqlite3
from time import time
from typing import Optional

from ampscan.db.models import Content

OBJECT_TYPES = ("post", "term", "user")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _row_to_content(row: sqlite3.Row) -> Content:
    return Content(
        id=row["id"],
        object_type=row["object_type"],
        subtype=row["subtype"],
        title=row["title"],
        url=row["url"],
        status=row["status"],
        published_at=row["published_at"],
        modified_at=row["modified_at"],
        revision=row["revision"],
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def create_content(
    conn: sqlite3.Connection,
    object_type: str,
    subtype: str,
    url: str,
    title: str = "",
    status: str = "publish",
    published_at: Optional[int] = None,
    modified_at: Optional[int] = None,
) -> Content:
    """Insert a content item and return it.

    Args:
        conn: Open DB connection.
        object_type: ``post``, ``term`` or ``user``.
        subtype: Post type (``post``, ``page``), taxonomy (``category``,
            ``post_tag``) or ``author``.
        url: Canonical URL of the item.  Must be unique.
        title: Human-readable title.
        status: Publication status; only ``publish`` is discoverable.
        published_at: Unix timestamp, defaults to now.
        modified_at: Unix timestamp, defaults to *published_at*.

    Raises:
        ValueError: If *object_type* is unknown.
    """
    if object_type not in OBJECT_TYPES:
        raise ValueError(f"Unknown object type: {object_type!r}")

    published = published_at if published_at is not None else int(time())
    modified = modified_at if modified_at is not None else published

    with conn:
        cur = conn.execute(
            """
            INSERT INTO content (object_type, subtype, title, url, status, published_at, modified_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (object_type, subtype, title, url, status, published, modified),
        )

    return get_content(conn, cur.lastrowid)  # type: ignore[return-value, arg-type]


def get_content(conn: sqlite3.Connection, content_id: int) -> Optional[Content]:
    """Fetch a single content item.  Returns ``None`` if not found."""
    row = conn.execute(
        "SELECT * FROM content WHERE id = ?", (content_id,)
    ).fetchone()
    return _row_to_content(row) if row else None


def touch_content(
    conn: sqlite3.Connection,
    content_id: int,
    modified_at: Optional[int] = None,
) -> Content:
    """Mark a content item as edited, bumping its revision.

    Raises:
        ValueError: If ``content_id`` does not exist.
    """
    if get_content(conn, content_id) is None:
        raise ValueError(f"Content not found: {content_id!r}")

    with conn:
        conn.execute(
            "UPDATE content SET modified_at = ?, revision = revision + 1 WHERE id = ?",
            (modified_at if modified_at is not None else int(time()), content_id),
        )
    return get_content(conn, content_id)  # type: ignore[return-value]


def delete_content(conn: sqlite3.Connection, content_id: int) -> None:
    """Delete a content item.  No-op if it does not exist."""
    with conn:
        conn.execute("DELETE FROM content WHERE id = ?", (content_id,))


def list_subtypes(conn: sqlite3.Connection, object_type: str) -> list[str]:
    """Return the distinct published subtypes for *object_type*, sorted."""
    rows = conn.execute(
        """
        SELECT DISTINCT subtype FROM content
        WHERE object_type = ? AND status = 'publish'
        ORDER BY subtype
        """,
        (object_type,),
    ).fetchall()
    return [r["subtype"] for r in rows]


def list_content(
    conn: sqlite3.Connection,
    object_type: str,
    subtype: Optional[str] = None,
    limit: Optional[int] = None,
) -> list[Content]:
    """Return published items of *object_type*, newest first."""
    sql = "SELECT * FROM content WHERE object_type = ? AND status = 'publish'"
    params: list = [object_type]
    if subtype:
        sql += " AND subtype = ?"
        params.append(subtype)
    sql += " ORDER BY published_at DESC, id DESC"
    if limit is not None:
        sql += " LIMIT ?"
        params.append(limit)
    return [_row_to_content(r) for r in conn.execute(sql, params).fetchall()]


def latest_published_at(conn: sqlite3.Connection) -> Optional[int]:
    """Return the publish timestamp of the newest published post, if any."""
    row = conn.execute(
        """
        SELECT MAX(published_at) FROM content
        WHERE object_type = 'post' AND status = 'publish'
        """
    ).fetchone()
    return row[0] if row else None
