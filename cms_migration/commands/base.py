"""Base classes for migration commands."""

import argparse
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..models.record import Record
from ..services.engine import MigrationEngine

logger = logging.getLogger(__name__)


def quote_sql(value: Any) -> str:
    """Render a value as SQL literal for the migration SQL log."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float)):
        return str(value)
    return "'" + str(value).replace("'", "''") + "'"


def parse_id_list(value: Any) -> List[int]:
    """Parse ids given as comma separated string or list, ignoring empty parts."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    ids = []
    for part in value:
        part = str(part).strip()
        if part:
            ids.append(int(part))
    return ids


class BaseMigrationCommand(ABC):
    """
    Base class for all migration commands.

    A command selects legacy records, migrates them one by one through the
    engine and may finish with a ``finalize`` step. Commands never print;
    everything for the operator goes to the engine's ledger.
    """

    name: str = ""
    description: str = ""
    table: str = ""
    element_name: str = "record"
    types: List[str] = []

    def __init__(self, engine: MigrationEngine, options: Optional[Dict[str, Any]] = None):
        """
        Initialize the command.

        Args:
            engine: Engine of the current run
            options: Command specific options (see ``add_arguments``)
        """
        self.engine = engine
        self.store = engine.store
        self.options = options or {}

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        """Add command specific CLI arguments."""

    def option(self, name: str, default: Any = None) -> Any:
        value = self.options.get(name)
        return default if value is None else value

    def before_migration_check(self) -> bool:
        """
        Check if the command can run, e.g. if target tables or columns exist.

        Returning False stops the run before any record is touched.
        """
        return True

    def collect(self, ids: Optional[List[int]] = None, types: Optional[List[str]] = None) -> List[Record]:
        """Select the records to migrate."""
        return self.store.find_by_types(self.table, types or self.types, ids)

    @abstractmethod
    def migrate(self, record: Record) -> bool:
        """
        Migrate a single record.

        Returns:
            True if migrated, False if the record was skipped
        """
        pass

    def finalize(self) -> None:
        """Run after all records were migrated."""

    @staticmethod
    def now() -> int:
        return int(time.time())


class ModuleMigrationCommand(BaseMigrationCommand):
    """Migrates frontend modules."""

    table = "tl_module"
    element_name = "module"


class ContentElementMigrationCommand(BaseMigrationCommand):
    """Migrates content elements."""

    table = "tl_content"
    element_name = "content element"
