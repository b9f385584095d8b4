"""Record models for migration data."""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple
from enum import Enum


class MigrationOutcome(str, Enum):
    """Result of migrating a template for one record."""
    SUCCESS = "success"
    NO_SOURCE_TEMPLATE = "no_source_template"
    SOURCE_TEMPLATE_MISSING = "source_template_missing"
    COPY_ERROR = "copy_error"


@dataclass
class Notice:
    """A follow-up message for the operator."""
    category: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {"category": self.category, "message": self.message}


@dataclass
class TemplateMigrationRecord:
    """Memory of a template name processed during the current run."""
    source_name: str
    target_name: str
    copied: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "source_name": self.source_name,
            "target_name": self.target_name,
            "copied": self.copied,
        }


class Record:
    """
    A single row of the legacy or the new data model.

    Backed by an insertion-ordered dict. Fields are read and written through
    explicit ``get``/``set`` (or item access); the engine only ever adds or
    overwrites fields.
    """

    ID_FIELD = "id"

    def __init__(self, table: str, data: Optional[Dict[str, Any]] = None):
        self.table = table
        self._data: Dict[str, Any] = {}
        self._persisted = False
        for key, value in (data or {}).items():
            self._data[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Get a field value."""
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a field value."""
        if key == self.ID_FIELD:
            self._check_id_change(value)
        self._data[key] = value

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"Record(table={self.table!r}, id={self.id!r})"

    def keys(self) -> List[str]:
        return list(self._data.keys())

    def items(self) -> List[Tuple[str, Any]]:
        return list(self._data.items())

    @property
    def id(self) -> Any:
        """Identifier of the record, None when never saved."""
        return self._data.get(self.ID_FIELD)

    @id.setter
    def id(self, value: Any) -> None:
        self.set(self.ID_FIELD, value)

    @property
    def has_id(self) -> bool:
        """Check if the record carries an identifier (the dry run placeholder counts)."""
        return self._data.get(self.ID_FIELD) is not None

    @property
    def is_persisted(self) -> bool:
        return self._persisted

    def mark_persisted(self, record_id: Any) -> None:
        """Assign the store generated identifier and freeze it."""
        self._check_id_change(record_id)
        self._data[self.ID_FIELD] = record_id
        self._persisted = True

    def _check_id_change(self, value: Any) -> None:
        if self._persisted and value != self._data.get(self.ID_FIELD):
            raise ValueError(
                f"Cannot change identifier of persisted {self.table} record "
                f"{self._data.get(self.ID_FIELD)} to {value}"
            )

    def clone(self) -> "Record":
        """Copy all fields except the identifier into a new, unsaved record."""
        data = {k: v for k, v in self._data.items() if k != self.ID_FIELD}
        return Record(self.table, data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return dict(self._data)
