"""
Tests for key-value snapshot stores.

All backends share one contract; backend-specific behavior is tested below.
"""

import json

import pytest

from nexmind.core.storage import InMemoryKeyValueStore, JsonFileStore, SQLiteKeyValueStore
from nexmind.utils.exceptions import StoreError, ValidationError


@pytest.fixture(params=["memory", "file", "sqlite"])
async def store(request, tmp_path):
    """Each backend, initialized and closed around the test."""
    if request.param == "memory":
        backend = InMemoryKeyValueStore()
    elif request.param == "file":
        backend = JsonFileStore(data_dir=str(tmp_path / "data"))
    else:
        backend = SQLiteKeyValueStore(db_path=str(tmp_path / "nexmind.db"))

    await backend.initialize()
    yield backend
    await backend.close()


@pytest.mark.unit
@pytest.mark.asyncio
class TestKeyValueContract:
    """Behavior shared by every backend."""

    async def test_missing_key(self, store):
        assert await store.get("nexmind_notes") is None

    async def test_set_and_get(self, store):
        value = [{"id": "nt_1", "content": "Übermorgen Zahnarzt"}]
        await store.set("nexmind_notes", value)

        assert await store.get("nexmind_notes") == value

    async def test_overwrite(self, store):
        await store.set("key", {"v": 1})
        await store.set("key", {"v": 2})

        assert await store.get("key") == {"v": 2}

    async def test_delete(self, store):
        await store.set("key", [1, 2])
        await store.delete("key")
        await store.delete("never_written")

        assert await store.get("key") is None

    async def test_keys(self, store):
        await store.set("b_key", 1)
        await store.set("a_key", 2)

        assert sorted(await store.keys()) == ["a_key", "b_key"]


@pytest.mark.unit
@pytest.mark.asyncio
class TestInMemoryStore:
    async def test_values_are_copied(self):
        store = InMemoryKeyValueStore()
        value = {"items": [1]}
        await store.set("key", value)

        value["items"].append(2)
        loaded = await store.get("key")
        loaded["items"].append(3)

        assert await store.get("key") == {"items": [1]}


@pytest.mark.unit
@pytest.mark.asyncio
class TestJsonFileStore:
    async def test_one_file_per_key(self, tmp_path):
        store = JsonFileStore(data_dir=str(tmp_path))
        await store.set("nexmind_notes", [])

        path = tmp_path / "nexmind_notes.json"
        assert path.exists()
        assert json.loads(path.read_text(encoding="utf-8")) == []
        assert not (tmp_path / "nexmind_notes.json.tmp").exists()

    async def test_invalid_key(self, tmp_path):
        store = JsonFileStore(data_dir=str(tmp_path))

        with pytest.raises(ValidationError):
            await store.set("../escape", 1)

    async def test_corrupted_file(self, tmp_path):
        (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
        store = JsonFileStore(data_dir=str(tmp_path))

        with pytest.raises(StoreError):
            await store.get("broken")

    async def test_unserializable_value(self, tmp_path):
        store = JsonFileStore(data_dir=str(tmp_path))

        with pytest.raises(StoreError):
            await store.set("key", {"bad": object()})

    async def test_keys_without_directory(self, tmp_path):
        store = JsonFileStore(data_dir=str(tmp_path / "missing"))
        assert await store.keys() == []


@pytest.mark.unit
@pytest.mark.asyncio
class TestSQLiteKeyValueStore:
    async def test_in_memory_database(self):
        store = SQLiteKeyValueStore(db_path=":memory:")
        await store.set("key", {"a": 1})

        assert await store.get("key") == {"a": 1}
        await store.close()

    async def test_persists_across_connections(self, tmp_path):
        db_path = str(tmp_path / "kv.db")
        first = SQLiteKeyValueStore(db_path=db_path)
        await first.set("nexmind_knowledge_graph", {"nodes": [], "edges": []})
        await first.close()

        second = SQLiteKeyValueStore(db_path=db_path)
        assert await second.get("nexmind_knowledge_graph") == {"nodes": [], "edges": []}
        await second.close()

    async def test_corrupted_value(self):
        store = SQLiteKeyValueStore(db_path=":memory:")
        await store.initialize()
        await store.connection.execute(
            "INSERT INTO kv_store (key, value, updated_at) VALUES ('bad', '{oops', '2025-01-01')"
        )
        await store.connection.commit()

        with pytest.raises(StoreError):
            await store.get("bad")
        await store.close()

    async def test_unserializable_value(self):
        store = SQLiteKeyValueStore(db_path=":memory:")

        with pytest.raises(StoreError):
            await store.set("key", {"bad": object()})
        await store.close()
