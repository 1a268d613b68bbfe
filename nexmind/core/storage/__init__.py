"""
Key-value snapshot stores.

Backends:
- InMemoryKeyValueStore (tests, ephemeral runs)
- JsonFileStore (one JSON file per key, default)
- SQLiteKeyValueStore (aiosqlite)
"""
from nexmind.core.storage.base import KeyValueStore
from nexmind.core.storage.file_store import JsonFileStore
from nexmind.core.storage.memory_store import InMemoryKeyValueStore
from nexmind.core.storage.sqlite_store import SQLiteKeyValueStore

__all__ = [
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "JsonFileStore",
    "SQLiteKeyValueStore",
]
