"""Base record store interface."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional
import logging

from ..models.record import Record

logger = logging.getLogger(__name__)


class StoreConnectionError(RuntimeError):
    """The store cannot be reached; a run cannot continue."""


# Default values of new rows per table, applied by ``new_record``.
TABLE_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "tl_filter_config": {
        "method": "GET",
        "template": "form_div_layout",
        "published": "",
    },
    "tl_filter_config_element": {
        "published": "",
        "isInitial": "",
    },
    "tl_list_config": {
        "numberOfItems": 0,
        "perPage": 0,
        "skipFirst": 0,
    },
    "tl_tiny_slider_config": {
        "tinySlider_mode": "carousel",
        "tinySlider_axis": "horizontal",
    },
    "tl_category": {
        "pid": 0,
        "overrideJumpTo": "",
    },
}


class BaseRecordStore(ABC):
    """
    Base class for record stores.

    Stores load legacy rows and persist new or updated rows. Criteria values
    given as list, tuple or set match any of their items.
    """

    def __init__(self, table_defaults: Optional[Dict[str, Dict[str, Any]]] = None):
        self.table_defaults = table_defaults if table_defaults is not None else TABLE_DEFAULTS

    @abstractmethod
    def find_by(
        self,
        table: str,
        criteria: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
    ) -> List[Record]:
        """
        Find records matching all criteria.

        Args:
            table: Table name
            criteria: Column -> value (or collection of values)
            order_by: Optional column to sort ascending by

        Returns:
            Matching records
        """
        pass

    @abstractmethod
    def persist(self, record: Record) -> Record:
        """
        Insert or update a record.

        A record without id is inserted and receives the generated id, a record
        with id is updated and keeps it.
        """
        pass

    @abstractmethod
    def delete(self, record: Record) -> bool:
        """Delete a record, returns True if a row was removed."""
        pass

    def delete_by(self, table: str, criteria: Dict[str, Any]) -> int:
        """Delete all records matching the criteria, returns the number removed."""
        return sum(1 for record in self.find_by(table, criteria) if self.delete(record))

    def has_columns(self, table: str, columns: Iterable[str]) -> bool:
        """Check if the table provides all columns."""
        return True

    def find_by_types(
        self,
        table: str,
        types: Iterable[str],
        ids: Optional[Iterable[int]] = None,
    ) -> List[Record]:
        """Find records of the given types, optionally restricted to ids."""
        criteria: Dict[str, Any] = {"type": list(types)}
        if ids:
            criteria["id"] = [int(i) for i in ids]
        return self.find_by(table, criteria, order_by="id")

    def find_one_by(self, table: str, criteria: Dict[str, Any]) -> Optional[Record]:
        """Find the first record matching all criteria."""
        records = self.find_by(table, criteria, order_by="id")
        return records[0] if records else None

    def find_by_pk(self, table: str, record_id: Any) -> Optional[Record]:
        """Find a record by id."""
        if record_id is None:
            return None
        return self.find_one_by(table, {"id": record_id})

    def new_record(self, table: str, **fields: Any) -> Record:
        """Create an unsaved record pre-filled with the table defaults."""
        record = Record(table, dict(self.table_defaults.get(table, {})))
        for key, value in fields.items():
            record.set(key, value)
        return record

    @staticmethod
    def _sort_key(value: Any):
        """Numbers first in numeric order, then everything else as text."""
        if value is None:
            return (2, 0, "")
        try:
            return (0, float(value), "")
        except (TypeError, ValueError):
            return (1, 0, str(value))

    @staticmethod
    def _matches(row: Dict[str, Any], criteria: Dict[str, Any]) -> bool:
        for column, expected in criteria.items():
            value = row.get(column)
            if isinstance(expected, (list, tuple, set, frozenset)):
                if value not in expected and str(value) not in {str(e) for e in expected}:
                    return False
            elif value != expected and str(value) != str(expected):
                return False
        return True
