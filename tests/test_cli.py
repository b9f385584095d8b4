import json

from sqlalchemy import create_engine, text

from cms_migration import cli
from cms_migration.models.migration import MigrationConfig


def _database(tmp_path):
    url = f"sqlite:///{tmp_path / 'cms.sqlite'}"
    engine = create_engine(url)
    with engine.begin() as conn:
        conn.execute(text(
            "CREATE TABLE tl_content (id INTEGER PRIMARY KEY AUTOINCREMENT, pid INTEGER, ptable VARCHAR(64), "
            "sorting INTEGER, type VARCHAR(64), tstamp INTEGER, accessible_tabs_title VARCHAR(255), "
            "accessible_tabs_save_state CHAR(1), tabControlHeadline VARCHAR(255), "
            "tabControlRememberLastTab CHAR(1))"
        ))
        conn.execute(text(
            "INSERT INTO tl_content (id, pid, ptable, sorting, type, accessible_tabs_title) VALUES "
            "(1, 3, 'tl_article', 10, 'accessible_tabs_start', NULL), "
            "(2, 3, 'tl_article', 20, 'accessible_tabs_separator', 'First'), "
            "(3, 3, 'tl_article', 30, 'accessible_tabs_stop', NULL)"
        ))
    engine.dispose()
    return url


def _types(url):
    engine = create_engine(url)
    with engine.connect() as conn:
        rows = conn.execute(text("SELECT id, type FROM tl_content ORDER BY id")).all()
    engine.dispose()
    return [tuple(row) for row in rows]


def test_cli_runs_command(tmp_path, capsys):
    url = _database(tmp_path)

    exit_code = cli.main([
        "migrate:ce:tabcontrol",
        "--database-url", url,
        "--project-dir", str(tmp_path),
        "--report-dir", str(tmp_path / "reports"),
    ])

    assert exit_code == 0
    assert _types(url) == [(1, "tabcontrol_start"), (3, "tabcontrol_stop")]
    output = capsys.readouterr().out
    assert "MIGRATION COMPLETE" in output
    assert "DELETE FROM tl_content WHERE id=2;" in output
    assert list((tmp_path / "reports" / "logs").glob("*.json"))


def test_cli_dry_run(tmp_path, capsys):
    url = _database(tmp_path)

    exit_code = cli.main(["migrate:ce:tabcontrol", "--database-url", url, "--dry-run"])

    assert exit_code == 0
    assert _types(url) == [
        (1, "accessible_tabs_start"),
        (2, "accessible_tabs_separator"),
        (3, "accessible_tabs_stop"),
    ]
    assert "(dry run)" in capsys.readouterr().out


def test_cli_without_database(monkeypatch, capsys):
    monkeypatch.delenv("CMS_MIGRATION_DATABASE_URL", raising=False)

    assert cli.main(["migrate:module:newslist"]) == 1
    assert "No database configured" in capsys.readouterr().err


def test_cli_with_malformed_database_url(capsys):
    assert cli.main(["migrate:module:newslist", "--database-url", "not a url"]) == 1
    assert "Invalid database URL" in capsys.readouterr().err


def test_load_config_merges_file_and_flags(tmp_path, monkeypatch):
    monkeypatch.delenv("CMS_MIGRATION_DATABASE_URL", raising=False)
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({
        "database_url": "sqlite://",
        "legacy_template_dirs": ["legacy"],
        "options": {"field": "tags"},
    }))
    args = cli.build_parser().parse_args([
        "migrate:db:news_categories",
        "--config", str(config_file),
        "--project-dir", str(tmp_path),
        "--category-ids", "1,2",
    ])

    config = cli.load_config(args)

    assert isinstance(config, MigrationConfig)
    assert config.database_url == "sqlite://"
    assert config.template_search_dirs == [str(tmp_path / "legacy")]
    assert config.options["category_ids"] == "1,2"
    assert config.options["field"] == "tags"


def test_preview_mapping(tmp_path, capsys):
    mapping = tmp_path / "mapping.json"
    mapping.write_text(json.dumps({"fields": {"items": "items", "margin": "gutter"}}))
    record = tmp_path / "record.json"
    record.write_text(json.dumps({"owl_items": 5, "owl_margin": 0}))

    exit_code = cli.main([
        "preview-mapping",
        "--mapping", str(mapping),
        "--input", str(record),
        "--source-prefix", "owl_",
        "--target-prefix", "tinySlider_",
    ])

    assert exit_code == 0
    output = capsys.readouterr().out
    assert '"tinySlider_items": 5' in output
    assert "tinySlider_gutter" not in output
