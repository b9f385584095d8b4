"""Shared fixtures for the migration tests."""

from pathlib import Path

import pytest

from cms_migration.services.engine import MigrationEngine
from cms_migration.services.templates import FilesystemTemplateResolver, LocalFilesystem
from cms_migration.stores.memory_store import MemoryRecordStore


class CountingFilesystem(LocalFilesystem):
    """Local filesystem recording every template write."""

    def __init__(self):
        self.writes = []

    def write_bytes(self, path, content):
        self.writes.append(path)
        super().write_bytes(path, content)


@pytest.fixture
def store():
    return MemoryRecordStore()


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Project with a legacy template directory and an empty templates folder."""
    legacy = tmp_path / "legacy_templates"
    legacy.mkdir()
    (legacy / "news_list_default.html5").write_text(
        "<div class=\"news\"><?= $this->headline ?></div>\n", encoding="utf-8"
    )
    (tmp_path / "templates").mkdir()
    return tmp_path


@pytest.fixture
def filesystem():
    return CountingFilesystem()


@pytest.fixture
def make_engine(store, project_dir, filesystem):
    """Factory for engines working on the shared store and project."""

    def _make(dry_run=False, record_store=None, command_name="migrate:test"):
        return MigrationEngine(
            store=record_store or store,
            resolver=FilesystemTemplateResolver([str(project_dir / "legacy_templates")]),
            filesystem=filesystem,
            project_dir=str(project_dir),
            dry_run=dry_run,
            command_name=command_name,
        )

    return _make


@pytest.fixture
def engine(make_engine):
    return make_engine()
