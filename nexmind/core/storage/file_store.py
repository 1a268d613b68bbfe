"""
JSON file key-value store.

One ``<key>.json`` file per key inside a data directory. Writes go to a
temporary file first and are moved into place, so a crash never leaves a
half-written snapshot behind.
"""

import asyncio
import json
import os
import re
from pathlib import Path
from typing import Any

from nexmind.core.storage.base import KeyValueStore
from nexmind.utils.exceptions import StoreError, ValidationError
from nexmind.utils.logger import get_logger

logger = get_logger(__name__)

_VALID_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class JsonFileStore(KeyValueStore):
    """File-per-key JSON store."""

    def __init__(self, data_dir: str = "data"):
        """
        Initialize file store.

        Args:
            data_dir: Directory holding the ``<key>.json`` files
        """
        self.data_dir = Path(data_dir)

    async def initialize(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not _VALID_KEY.match(key):
            raise ValidationError(f"Invalid store key: {key!r}")
        return self.data_dir / f"{key}.json"

    def _read(self, path: Path) -> Any | None:
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Failed to read {path}: {e}", context={"path": str(path)}) from e

    def _write(self, path: Path, value: Any) -> None:
        tmp_path = path.with_suffix(".json.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(value, f, ensure_ascii=False)
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as e:
            raise StoreError(f"Failed to write {path}: {e}", context={"path": str(path)}) from e

    async def get(self, key: str) -> Any | None:
        return await asyncio.to_thread(self._read, self._path(key))

    async def set(self, key: str, value: Any) -> None:
        await asyncio.to_thread(self._write, self._path(key), value)
        logger.debug(f"Wrote snapshot '{key}'")

    async def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    async def keys(self) -> list[str]:
        if not self.data_dir.exists():
            return []
        return sorted(p.stem for p in self.data_dir.glob("*.json"))
