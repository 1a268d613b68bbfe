"""
Abstract base class for key-value stores.

Stores hold whole JSON-compatible snapshots under string keys, the way a
browser's local storage holds one serialized array per key. There is no
multi-writer coordination: the last writer wins.
"""

from abc import ABC, abstractmethod
from typing import Any


class KeyValueStore(ABC):
    """
    Abstract base for snapshot persistence.

    Values are JSON-compatible (dicts, lists, strings, numbers, booleans, None).
    """

    async def initialize(self) -> None:
        """Prepare the backend (create directories, tables). No-op by default."""
        return None

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """
        Read the value stored under ``key``.

        Returns:
            Decoded value, or None if the key is absent

        Raises:
            StoreError: If the stored value cannot be read or decoded
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """
        Replace the value stored under ``key``.

        Raises:
            StoreError: If the value cannot be written
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove ``key``; missing keys are ignored."""
        pass

    @abstractmethod
    async def keys(self) -> list[str]:
        """List stored keys."""
        pass

    async def close(self) -> None:
        """Release backend resources. No-op by default."""
        return None
