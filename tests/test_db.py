"""Database layer tests.

All tests use an in-memory SQLite database so they are:
- Fast (no disk I/O)
- Isolated (each fixture gets a fresh DB)
- Side-effect free (nothing written to ~/.ampscan_data)
"""

from __future__ import annotations

import json
import sqlite3
from typing import Generator

import pytest

from ampscan.db.connection import get_connection
from ampscan.db.content import (
    create_content,
    delete_content,
    get_content,
    latest_published_at,
    list_content,
    list_subtypes,
    touch_content,
)
from ampscan.db.migrations import init_db
from ampscan.db.models import Content, EnvironmentFingerprint, QueriedObject
from ampscan.db.site_options import get_site_option, read_environment, set_site_option
from ampscan.db.validated_urls import (
    ValidatedURLStore,
    edit_link,
    get_validated_url,
    record_validation,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def conn() -> Generator[sqlite3.Connection, None, None]:
    """In-memory connection with the schema initialised."""
    connection = get_connection(db_path=":memory:")  # type: ignore[arg-type]
    init_db(connection)
    yield connection
    connection.close()


# ---------------------------------------------------------------------------
# connection / init
# ---------------------------------------------------------------------------

class TestConnection:
    def test_foreign_keys_enabled(self, conn: sqlite3.Connection) -> None:
        row = conn.execute("PRAGMA foreign_keys").fetchone()
        assert row[0] == 1

    def test_wal_mode(self, conn: sqlite3.Connection) -> None:
        row = conn.execute("PRAGMA journal_mode").fetchone()
        # In-memory DBs always return 'memory', on-disk returns 'wal'
        assert row[0] in ("wal", "memory")

    def test_row_factory(self, conn: sqlite3.Connection) -> None:
        assert conn.row_factory is sqlite3.Row


class TestInitDb:
    def test_tables_exist(self, conn: sqlite3.Connection) -> None:
        tables = {
            r[0]
            for r in conn.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table'"
            ).fetchall()
        }
        assert {"content", "validated_urls", "site_options"} <= tables

    def test_init_db_is_idempotent(self, conn: sqlite3.Connection) -> None:
        # Calling init_db a second time must not raise
        init_db(conn)


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------

class TestContent:
    def test_create_returns_content(self, conn: sqlite3.Connection) -> None:
        item = create_content(
            conn, "post", "post", "https://example.com/hello/", title="Hello", published_at=100
        )
        assert isinstance(item, Content)
        assert item.id
        assert item.title == "Hello"
        assert item.status == "publish"
        assert item.modified_at == 100
        assert item.revision == 1

    def test_unknown_object_type_raises(self, conn: sqlite3.Connection) -> None:
        with pytest.raises(ValueError, match="Unknown object type"):
            create_content(conn, "comment", "comment", "https://example.com/c/")

    def test_duplicate_url_raises(self, conn: sqlite3.Connection) -> None:
        create_content(conn, "post", "post", "https://example.com/a/")
        with pytest.raises(sqlite3.IntegrityError):
            create_content(conn, "post", "page", "https://example.com/a/")

    def test_get_missing_returns_none(self, conn: sqlite3.Connection) -> None:
        assert get_content(conn, 999) is None

    def test_touch_updates_modified_at(self, conn: sqlite3.Connection) -> None:
        item = create_content(conn, "post", "post", "https://example.com/a/", published_at=100)
        touched = touch_content(conn, item.id, modified_at=500)
        assert touched.modified_at == 500
        assert touched.published_at == 100
        assert touched.revision == 2

    def test_touch_bumps_revision_each_time(self, conn: sqlite3.Connection) -> None:
        item = create_content(conn, "post", "post", "https://example.com/a/", published_at=100)
        touch_content(conn, item.id, modified_at=100)
        assert touch_content(conn, item.id, modified_at=100).revision == 3

    def test_touch_missing_raises(self, conn: sqlite3.Connection) -> None:
        with pytest.raises(ValueError, match="Content not found"):
            touch_content(conn, 42)

    def test_delete(self, conn: sqlite3.Connection) -> None:
        item = create_content(conn, "post", "post", "https://example.com/a/")
        delete_content(conn, item.id)
        assert get_content(conn, item.id) is None

    def test_list_only_published_newest_first(self, conn: sqlite3.Connection) -> None:
        create_content(conn, "post", "post", "https://example.com/old/", published_at=100)
        create_content(conn, "post", "post", "https://example.com/new/", published_at=200)
        create_content(
            conn, "post", "post", "https://example.com/draft/", status="draft", published_at=300
        )
        urls = [c.url for c in list_content(conn, "post", "post")]
        assert urls == ["https://example.com/new/", "https://example.com/old/"]

    def test_list_limit(self, conn: sqlite3.Connection) -> None:
        for i in range(3):
            create_content(conn, "post", "post", f"https://example.com/{i}/", published_at=i)
        assert len(list_content(conn, "post", "post", limit=2)) == 2

    def test_list_subtypes(self, conn: sqlite3.Connection) -> None:
        create_content(conn, "post", "page", "https://example.com/about/")
        create_content(conn, "post", "post", "https://example.com/hello/")
        create_content(conn, "term", "category", "https://example.com/category/news/")
        assert list_subtypes(conn, "post") == ["page", "post"]
        assert list_subtypes(conn, "term") == ["category"]

    def test_latest_published_at(self, conn: sqlite3.Connection) -> None:
        assert latest_published_at(conn) is None
        create_content(conn, "post", "post", "https://example.com/a/", published_at=100)
        create_content(conn, "post", "post", "https://example.com/b/", published_at=300)
        assert latest_published_at(conn) == 300


# ---------------------------------------------------------------------------
# Site options
# ---------------------------------------------------------------------------

class TestSiteOptions:
    def test_roundtrip(self, conn: sqlite3.Connection) -> None:
        set_site_option(conn, "theme", {"stylesheet": "twentytwenty", "version": "1.0"})
        assert get_site_option(conn, "theme") == {"stylesheet": "twentytwenty", "version": "1.0"}

    def test_overwrite(self, conn: sqlite3.Connection) -> None:
        set_site_option(conn, "plugins", {"amp": "2.2"})
        set_site_option(conn, "plugins", {"amp": "2.3"})
        assert get_site_option(conn, "plugins") == {"amp": "2.3"}

    def test_unknown_option_raises(self, conn: sqlite3.Connection) -> None:
        with pytest.raises(ValueError, match="Unknown site option"):
            set_site_option(conn, "blogname", {"x": 1})

    def test_non_object_raises(self, conn: sqlite3.Connection) -> None:
        with pytest.raises(ValueError, match="JSON object"):
            set_site_option(conn, "theme", ["twentytwenty"])

    def test_read_environment_defaults_empty(self, conn: sqlite3.Connection) -> None:
        assert read_environment(conn) == EnvironmentFingerprint()

    def test_read_environment(self, conn: sqlite3.Connection) -> None:
        set_site_option(conn, "plugins", {"amp": "2.2"})
        set_site_option(conn, "sources", {"blocks": ["core/paragraph"]})
        env = read_environment(conn)
        assert env.plugins == {"amp": "2.2"}
        assert env.sources == {"blocks": ["core/paragraph"]}
        assert env.theme == {}


# ---------------------------------------------------------------------------
# Validated URLs
# ---------------------------------------------------------------------------

class TestValidatedUrls:
    def test_record_and_get(self, conn: sqlite3.Connection) -> None:
        env = EnvironmentFingerprint(plugins={"amp": "2.2"})
        record = record_validation(
            conn,
            "https://example.com/",
            [{"term_slug": "a", "data": {"code": "DISALLOWED_TAG"}}],
            environment=env,
            validated_at=100,
        )
        assert record.id
        assert record.validated_at == 100
        assert record.environment == env
        assert record.queried_object is None
        assert json.loads(record.errors)[0]["data"]["code"] == "DISALLOWED_TAG"
        assert get_validated_url(conn, "https://example.com/") == record

    def test_get_missing_returns_none(self, conn: sqlite3.Connection) -> None:
        assert get_validated_url(conn, "https://example.com/nope/") is None

    def test_revalidation_keeps_id(self, conn: sqlite3.Connection) -> None:
        first = record_validation(conn, "https://example.com/", [], validated_at=100)
        second = record_validation(conn, "https://example.com/", [{"data": {}}], validated_at=200)
        assert second.id == first.id
        assert second.validated_at == 200

    def test_queried_object_roundtrip(self, conn: sqlite3.Connection) -> None:
        item = create_content(conn, "post", "post", "https://example.com/a/")
        record = record_validation(
            conn, item.url, [], queried_object=QueriedObject(type="post", id=item.id)
        )
        assert record.queried_object == QueriedObject(type="post", id=item.id)
        assert record.content_revision == 1

    def test_revision_captured_at_validation(self, conn: sqlite3.Connection) -> None:
        item = create_content(conn, "post", "post", "https://example.com/a/")
        touch_content(conn, item.id)
        record = record_validation(
            conn, item.url, [], queried_object=QueriedObject(type="post", id=item.id)
        )
        assert record.content_revision == 2

    def test_missing_queried_object_has_no_revision(self, conn: sqlite3.Connection) -> None:
        record = record_validation(
            conn, "https://example.com/gone/", [], queried_object=QueriedObject(type="post", id=99)
        )
        assert record.content_revision is None

    def test_legacy_record_without_environment(self, conn: sqlite3.Connection) -> None:
        record = record_validation(conn, "https://example.com/", [])
        assert record.environment is None

    def test_malformed_stored_environment_members_decode_empty(self, conn: sqlite3.Connection) -> None:
        with conn:
            conn.execute(
                "INSERT INTO validated_urls (url, environment) VALUES (?, ?)",
                ("https://example.com/", '{"theme": "twentytwenty", "plugins": ["amp"], "options": {"a": 1}}'),
            )
        record = get_validated_url(conn, "https://example.com/")
        assert record.environment == EnvironmentFingerprint(options={"a": 1})

    def test_edit_link(self, monkeypatch) -> None:
        monkeypatch.setattr("ampscan.config.settings.admin_url", "https://example.com/wp-admin/")
        assert edit_link(7) == "https://example.com/wp-admin/post.php?post=7&action=edit"

    def test_edit_link_relative_admin_url(self, monkeypatch) -> None:
        monkeypatch.setattr("ampscan.config.settings.site_url", "https://example.com/")
        monkeypatch.setattr("ampscan.config.settings.admin_url", "/wp-admin")
        assert edit_link(7) == "https://example.com/wp-admin/post.php?post=7&action=edit"


class TestValidatedURLStore:
    def test_snapshots_environment(self, conn: sqlite3.Connection) -> None:
        set_site_option(conn, "plugins", {"amp": "2.2"})
        store = ValidatedURLStore(conn)
        set_site_option(conn, "plugins", {"amp": "2.3"})
        assert store.environment.plugins == {"amp": "2.2"}

    def test_lookup(self, conn: sqlite3.Connection) -> None:
        record_validation(conn, "https://example.com/", [])
        store = ValidatedURLStore(conn)
        assert store.lookup("https://example.com/").url == "https://example.com/"
        assert store.lookup("https://example.com/other/") is None

    def test_fresh_record(self, conn: sqlite3.Connection) -> None:
        set_site_option(conn, "plugins", {"amp": "2.2"})
        item = create_content(conn, "post", "post", "https://example.com/a/", published_at=100)
        record = record_validation(
            conn,
            item.url,
            [],
            environment=read_environment(conn),
            queried_object=QueriedObject(type="post", id=item.id),
            validated_at=200,
        )
        store = ValidatedURLStore(conn)
        assert store.current_content(record).modified_at == 100
        assert store.is_stale(record) is False

    def test_edited_content_is_stale(self, conn: sqlite3.Connection) -> None:
        item = create_content(conn, "post", "post", "https://example.com/a/", published_at=100)
        record = record_validation(
            conn,
            item.url,
            [],
            environment=read_environment(conn),
            queried_object=QueriedObject(type="post", id=item.id),
            validated_at=200,
        )
        touch_content(conn, item.id, modified_at=300)
        store = ValidatedURLStore(conn)
        assert store.staleness(record) == "content"
        assert store.is_stale(record) is True

    def test_edit_in_same_second_as_validation_is_stale(self, conn: sqlite3.Connection) -> None:
        item = create_content(conn, "post", "post", "https://example.com/a/", published_at=100)
        record = record_validation(
            conn,
            item.url,
            [],
            environment=read_environment(conn),
            queried_object=QueriedObject(type="post", id=item.id),
            validated_at=500,
        )
        touch_content(conn, item.id, modified_at=500)
        assert ValidatedURLStore(conn).is_stale(record) is True

    def test_deleted_content_is_stale(self, conn: sqlite3.Connection) -> None:
        item = create_content(conn, "post", "post", "https://example.com/a/", published_at=100)
        record = record_validation(
            conn,
            item.url,
            [],
            queried_object=QueriedObject(type="post", id=item.id),
            validated_at=200,
        )
        delete_content(conn, item.id)
        assert ValidatedURLStore(conn).is_stale(record) is True

    def test_plugin_change_is_stale(self, conn: sqlite3.Connection) -> None:
        set_site_option(conn, "plugins", {"amp": "2.2"})
        record = record_validation(
            conn, "https://example.com/", [], environment=read_environment(conn)
        )
        set_site_option(conn, "plugins", {"amp": "2.2", "jetpack": "12.0"})
        assert ValidatedURLStore(conn).staleness(record) == "plugins"
