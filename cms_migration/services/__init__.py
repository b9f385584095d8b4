"""Service layer for the migration toolkit."""

from .engine import MigrationEngine
from .field_mapper import FieldMapper, is_falsy
from .ledger import UpgradeLedger
from .persistence import DryRunGate
from .templates import (
    FilesystemTemplateResolver,
    LocalFilesystem,
    TemplateMigrator,
    TemplateNotFoundError,
    TemplateResolver,
)
from .transforms import TransformRegistry

__all__ = [
    "MigrationEngine",
    "FieldMapper",
    "is_falsy",
    "UpgradeLedger",
    "DryRunGate",
    "FilesystemTemplateResolver",
    "LocalFilesystem",
    "TemplateMigrator",
    "TemplateNotFoundError",
    "TemplateResolver",
    "TransformRegistry",
]
