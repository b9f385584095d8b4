"""SQL record store backed by SQLAlchemy."""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set, Tuple

from sqlalchemy import MetaData, Table, create_engine, delete, insert, inspect, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import InterfaceError, NoSuchTableError, OperationalError

from ..models.record import Record
from .base import BaseRecordStore, StoreConnectionError

logger = logging.getLogger(__name__)


class SqlRecordStore(BaseRecordStore):
    """
    Record store for a relational database.

    Table definitions are reflected from the database on first use. Record
    fields without a matching column are not written.
    """

    def __init__(self, engine: Engine, table_defaults: Optional[Dict[str, Dict[str, Any]]] = None):
        """
        Initialize the store.

        Args:
            engine: SQLAlchemy engine of the CMS database
            table_defaults: Default values of new rows per table
        """
        super().__init__(table_defaults)
        self.engine = engine
        self.metadata = MetaData()
        self._tables: Dict[str, Table] = {}
        self._reported_columns: Set[Tuple[str, str]] = set()

    @classmethod
    def from_url(cls, database_url: str, **kwargs: Any) -> "SqlRecordStore":
        """Create a store for a database URL."""
        return cls(create_engine(database_url), **kwargs)

    @contextmanager
    def _connection_errors(self) -> Iterator[None]:
        try:
            yield
        except (OperationalError, InterfaceError) as e:
            raise StoreConnectionError(f"Database not reachable: {e}") from e

    def _table(self, name: str) -> Table:
        if name not in self._tables:
            with self._connection_errors():
                self._tables[name] = Table(name, self.metadata, autoload_with=self.engine)
        return self._tables[name]

    @staticmethod
    def _apply_criteria(stmt: Any, sql_table: Table, criteria: Dict[str, Any]) -> Any:
        for column, value in criteria.items():
            if isinstance(value, (list, tuple, set, frozenset)):
                stmt = stmt.where(sql_table.c[column].in_(list(value)))
            else:
                stmt = stmt.where(sql_table.c[column] == value)
        return stmt

    def find_by(
        self,
        table: str,
        criteria: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
    ) -> List[Record]:
        sql_table = self._table(table)
        stmt = self._apply_criteria(select(sql_table), sql_table, criteria or {})

        if order_by:
            stmt = stmt.order_by(sql_table.c[order_by])

        with self._connection_errors():
            with self.engine.connect() as conn:
                rows = conn.execute(stmt).mappings().all()

        records = []
        for row in rows:
            record = Record(table, dict(row))
            record.mark_persisted(row.get("id"))
            records.append(record)
        return records

    def _column_values(self, sql_table: Table, record: Record) -> Dict[str, Any]:
        values = {}
        for key, value in record.items():
            if key == Record.ID_FIELD:
                continue
            if key not in sql_table.c:
                if (record.table, key) not in self._reported_columns:
                    self._reported_columns.add((record.table, key))
                    logger.warning(f"Column {record.table}.{key} does not exist, value not written")
                continue
            values[key] = value
        return values

    def persist(self, record: Record) -> Record:
        sql_table = self._table(record.table)
        values = self._column_values(sql_table, record)

        with self._connection_errors():
            with self.engine.begin() as conn:
                if record.id:
                    if values:
                        result = conn.execute(
                            update(sql_table).where(sql_table.c.id == record.id).values(**values)
                        )
                        if result.rowcount == 0:
                            conn.execute(insert(sql_table).values(id=record.id, **values))
                    logger.debug(f"Saved {record.table} record {record.id}")
                    if not record.is_persisted:
                        record.mark_persisted(record.id)
                    return record

                result = conn.execute(insert(sql_table).values(**values))
                # relation tables come without primary key
                record_id = None
                if len(sql_table.primary_key.columns):
                    record_id = result.inserted_primary_key[0]

        record.mark_persisted(record_id)
        logger.debug(f"Inserted {record.table} record {record_id}")
        return record

    def delete(self, record: Record) -> bool:
        if record.id is None:
            return False
        sql_table = self._table(record.table)
        with self._connection_errors():
            with self.engine.begin() as conn:
                result = conn.execute(delete(sql_table).where(sql_table.c.id == record.id))
        return result.rowcount > 0

    def delete_by(self, table: str, criteria: Dict[str, Any]) -> int:
        sql_table = self._table(table)
        stmt = self._apply_criteria(delete(sql_table), sql_table, criteria)
        with self._connection_errors():
            with self.engine.begin() as conn:
                result = conn.execute(stmt)
        return result.rowcount

    def has_columns(self, table: str, columns: Iterable[str]) -> bool:
        with self._connection_errors():
            try:
                existing = {c["name"] for c in inspect(self.engine).get_columns(table)}
            except NoSuchTableError:
                return False
        return set(columns).issubset(existing)
