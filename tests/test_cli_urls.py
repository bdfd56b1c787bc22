"""Tests for the CLI command groups (site, validation, urls)."""

import json

import pytest
from typer.testing import CliRunner

from ampscan.db import get_connection, init_db
from ampscan.db.content import get_content
from ampscan.db.validated_urls import get_validated_url
from cli.main import app

runner = CliRunner()


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Provide a fresh on-disk workspace for each test."""
    monkeypatch.setattr("ampscan.config.settings.workspace_dir", tmp_path)
    monkeypatch.setattr("ampscan.config.settings.site_url", "https://x/")
    monkeypatch.setattr("ampscan.config.settings.admin_url", "https://x/wp-admin/")
    monkeypatch.setattr("ampscan.config.settings.template_mode", "standard")
    monkeypatch.setattr("ampscan.config.settings.supported_templates", [])
    return tmp_path


def test_db_init(workspace):
    result = runner.invoke(app, ["db", "init"])
    assert result.exit_code == 0
    assert (workspace / "site.db").exists()


def test_add_and_touch_content(workspace):
    result = runner.invoke(app, ["site", "add-content", "https://x/hello/", "--title", "Hello"])
    assert result.exit_code == 0
    assert "✅ Content 1 added" in result.stdout

    conn = get_connection()
    conn.execute("UPDATE content SET modified_at = 0 WHERE id = 1")
    conn.commit()
    conn.close()

    result = runner.invoke(app, ["site", "touch-content", "1"])
    assert result.exit_code == 0

    conn = get_connection()
    assert get_content(conn, 1).modified_at > 0
    assert get_content(conn, 1).revision == 2
    conn.close()


def test_add_content_bad_type(workspace):
    result = runner.invoke(app, ["site", "add-content", "https://x/c/", "--object-type", "comment"])
    assert result.exit_code == 1
    assert "Unknown object type" in result.stdout


def test_add_duplicate_content(workspace):
    runner.invoke(app, ["site", "add-content", "https://x/hello/"])
    result = runner.invoke(app, ["site", "add-content", "https://x/hello/"])
    assert result.exit_code == 1
    assert "already exists" in result.stdout


def test_touch_missing_content(workspace):
    result = runner.invoke(app, ["site", "touch-content", "99"])
    assert result.exit_code == 1
    assert "Content not found" in result.stdout


def test_set_option_and_show_environment(workspace):
    result = runner.invoke(app, ["site", "set-option", "plugins", '{"amp": "2.2"}'])
    assert result.exit_code == 0

    result = runner.invoke(app, ["site", "show-environment"])
    assert result.exit_code == 0
    assert json.loads(result.stdout)["plugins"] == {"amp": "2.2"}


def test_set_option_rejects_bad_input(workspace):
    assert runner.invoke(app, ["site", "set-option", "plugins", "{nope"]).exit_code == 1
    assert runner.invoke(app, ["site", "set-option", "blogname", "{}"]).exit_code == 1


def test_validation_import(workspace, tmp_path):
    runner.invoke(app, ["site", "add-content", "https://x/hello/"])
    runner.invoke(app, ["site", "set-option", "plugins", '{"amp": "2.2"}'])
    errors_file = tmp_path / "errors.json"
    errors_file.write_text(json.dumps([{"term_slug": "a", "data": {"code": "X"}}]))

    result = runner.invoke(
        app, ["validation", "import", "https://x/hello/", str(errors_file), "--content-id", "1"]
    )
    assert result.exit_code == 0
    assert "1 error(s)" in result.stdout

    conn = get_connection()
    init_db(conn)
    record = get_validated_url(conn, "https://x/hello/")
    conn.close()
    assert record.queried_object.id == 1
    assert record.environment.plugins == {"amp": "2.2"}


def test_validation_import_rejects_non_list(workspace, tmp_path):
    errors_file = tmp_path / "errors.json"
    errors_file.write_text('{"data": 1}')
    result = runner.invoke(app, ["validation", "import", "https://x/", str(errors_file)])
    assert result.exit_code == 1
    assert "JSON list" in result.stdout


def test_validation_import_unknown_content(workspace, tmp_path):
    errors_file = tmp_path / "errors.json"
    errors_file.write_text("[]")
    result = runner.invoke(
        app, ["validation", "import", "https://x/", str(errors_file), "--content-id", "7"]
    )
    assert result.exit_code == 1


def test_urls_list_json(workspace, tmp_path):
    runner.invoke(app, ["site", "add-content", "https://x/hello/"])
    errors_file = tmp_path / "errors.json"
    errors_file.write_text("[]")
    runner.invoke(app, ["validation", "import", "https://x/", str(errors_file)])

    result = runner.invoke(app, ["urls", "list", "--json"])
    assert result.exit_code == 0
    items = json.loads(result.stdout)
    assert [i["url"] for i in items][:2] == ["https://x/", "https://x/hello/"]
    assert items[0]["validation_errors"] == []
    assert items[0]["stale"] is False
    assert items[1]["stale"] is None


def test_urls_list_text(workspace):
    result = runner.invoke(app, ["urls", "list"])
    assert result.exit_code == 0
    assert "[is_home] https://x/" in result.stdout
    assert "unvalidated" in result.stdout


def test_urls_schema(workspace):
    result = runner.invoke(app, ["urls", "schema"])
    assert result.exit_code == 0
    assert json.loads(result.stdout)["title"] == "amp-wp-scannable-urls"
