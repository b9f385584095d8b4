"""In-memory record store."""

import logging
from typing import Any, Dict, Iterable, List, Optional

from ..models.record import Record
from .base import BaseRecordStore

logger = logging.getLogger(__name__)


class MemoryRecordStore(BaseRecordStore):
    """
    Record store keeping rows in dicts.

    Used for previews and tests. ``write_count`` counts every insert, update
    and delete that reached the store.
    """

    def __init__(
        self,
        tables: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        schema: Optional[Dict[str, List[str]]] = None,
        table_defaults: Optional[Dict[str, Dict[str, Any]]] = None,
    ):
        """
        Initialize the store.

        Args:
            tables: Initial rows per table; rows without id get one assigned
            schema: Optional column names per table, used by ``has_columns``
            table_defaults: Default values of new rows per table
        """
        super().__init__(table_defaults)
        self.schema = schema or {}
        self.write_count = 0
        self._rows: Dict[str, Dict[int, Dict[str, Any]]] = {}
        self._next_id: Dict[str, int] = {}

        for table, rows in (tables or {}).items():
            for row in rows:
                self._insert_row(table, dict(row))

    def _insert_row(self, table: str, row: Dict[str, Any]) -> int:
        rows = self._rows.setdefault(table, {})
        record_id = row.get("id")
        if not record_id:
            record_id = self._next_id.get(table, 1)
            row["id"] = record_id
        rows[int(record_id)] = row
        self._next_id[table] = max(self._next_id.get(table, 1), int(record_id) + 1)
        return int(record_id)

    def rows(self, table: str) -> List[Dict[str, Any]]:
        """Copies of all rows of a table, ordered by id."""
        return [dict(row) for _, row in sorted(self._rows.get(table, {}).items())]

    def find_by(
        self,
        table: str,
        criteria: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
    ) -> List[Record]:
        criteria = criteria or {}
        matches = [row for row in self.rows(table) if self._matches(row, criteria)]
        if order_by:
            matches.sort(key=lambda row: self._sort_key(row.get(order_by)))

        records = []
        for row in matches:
            record = Record(table, row)
            record.mark_persisted(row["id"])
            records.append(record)
        return records

    def persist(self, record: Record) -> Record:
        self.write_count += 1
        data = record.to_dict()

        if record.id and int(record.id) in self._rows.get(record.table, {}):
            self._rows[record.table][int(record.id)].update(data)
            logger.debug(f"Updated {record.table} record {record.id}")
            if not record.is_persisted:
                record.mark_persisted(record.id)
            return record

        data.pop("id", None)
        record_id = self._insert_row(record.table, data)
        record.mark_persisted(record_id)
        logger.debug(f"Inserted {record.table} record {record_id}")
        return record

    def delete(self, record: Record) -> bool:
        self.write_count += 1
        rows = self._rows.get(record.table, {})
        if record.id is None or int(record.id) not in rows:
            return False
        del rows[int(record.id)]
        return True

    def has_columns(self, table: str, columns: Iterable[str]) -> bool:
        if table not in self.schema:
            return True
        return set(columns).issubset(self.schema[table])
