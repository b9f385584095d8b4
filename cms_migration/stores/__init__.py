"""Record stores for legacy and migrated data."""

from .base import BaseRecordStore, StoreConnectionError
from .memory_store import MemoryRecordStore
from .sql_store import SqlRecordStore

__all__ = [
    "BaseRecordStore",
    "StoreConnectionError",
    "MemoryRecordStore",
    "SqlRecordStore",
]
