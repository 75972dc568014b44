"""Key-value store implementations."""

from .memory_store import InMemoryKeyValueStore
from .sqlite_store import SQLiteKeyValueStore

__all__ = ["InMemoryKeyValueStore", "SQLiteKeyValueStore"]
