"""Persistence gate respecting dry runs."""

import logging
from typing import Any, Dict

from ..models.record import Record
from ..stores.base import BaseRecordStore

logger = logging.getLogger(__name__)

DRY_RUN_PLACEHOLDER_ID = 0


class DryRunGate:
    """
    Wraps every write to the record store.

    In a dry run nothing reaches the store. Unsaved records get the
    placeholder id ``0`` so code branching on an id keeps working.
    """

    def __init__(self, store: BaseRecordStore, dry_run: bool = False):
        self.store = store
        self._dry_run = dry_run

    def is_dry_run(self) -> bool:
        return self._dry_run

    def set_dry_run(self, dry_run: bool) -> None:
        self._dry_run = dry_run

    def save(self, record: Record) -> None:
        """Insert or update the record, or simulate it in a dry run."""
        if not self._dry_run:
            self.store.persist(record)
            return

        if not record.has_id:
            record.id = DRY_RUN_PLACEHOLDER_ID
        logger.debug(f"Dry run: skipped saving {record.table} record {record.id}")

    def delete(self, record: Record) -> bool:
        """Delete the record unless running dry."""
        if self._dry_run:
            logger.debug(f"Dry run: skipped deleting {record.table} record {record.id}")
            return False
        return self.store.delete(record)

    def delete_by(self, table: str, criteria: Dict[str, Any]) -> int:
        """Delete all records of a table matching the criteria unless running dry."""
        if self._dry_run:
            logger.debug(f"Dry run: skipped deleting {table} records matching {criteria}")
            return 0
        return self.store.delete_by(table, criteria)
