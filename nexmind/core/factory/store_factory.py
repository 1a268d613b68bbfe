"""
Factory for creating storage backends and note repositories.
"""

from nexmind.config import StorageConfig
from nexmind.core.repositories.notes import (
    KeyValueNoteRepository,
    NoteRepository,
    SQLiteNoteRepository,
)
from nexmind.core.storage.base import KeyValueStore
from nexmind.core.storage.file_store import JsonFileStore
from nexmind.core.storage.memory_store import InMemoryKeyValueStore
from nexmind.core.storage.sqlite_store import SQLiteKeyValueStore
from nexmind.utils.exceptions import ConfigurationError


class StoreFactory:
    """Factory for creating persistence backends from configuration."""

    @staticmethod
    def create(config: StorageConfig) -> KeyValueStore:
        """
        Create the key-value snapshot store.

        Raises:
            ConfigurationError: If backend is not supported
        """
        if config.backend == "file":
            return JsonFileStore(data_dir=config.data_dir)
        elif config.backend == "sqlite":
            return SQLiteKeyValueStore(db_path=config.sqlite_path)
        elif config.backend == "memory":
            return InMemoryKeyValueStore()
        else:
            raise ConfigurationError(f"Unsupported storage backend: {config.backend}")

    @staticmethod
    def create_note_repository(config: StorageConfig, store: KeyValueStore) -> NoteRepository:
        """Relational note table when enabled, otherwise the snapshot in ``store``."""
        if config.notes_table:
            return SQLiteNoteRepository(db_path=config.sqlite_path, user_id=config.user_id)
        return KeyValueNoteRepository(store)
