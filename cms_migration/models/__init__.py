"""Data models for the migration toolkit."""

from .record import (
    Record,
    Notice,
    MigrationOutcome,
    TemplateMigrationRecord,
)
from .mapping import (
    FieldMapping,
    MappingEntry,
    MappingFileError,
)
from .migration import (
    MigrationConfig,
    MigrationRun,
    MigrationStatus,
)

__all__ = [
    "Record",
    "Notice",
    "MigrationOutcome",
    "TemplateMigrationRecord",
    "FieldMapping",
    "MappingEntry",
    "MappingFileError",
    "MigrationConfig",
    "MigrationRun",
    "MigrationStatus",
]
