"""
Note repositories.

Two backends:
- KeyValueNoteRepository: the whole note array as one snapshot under
  ``nexmind_notes`` (newest first)
- SQLiteNoteRepository: one row per note in a wide ``notes`` table scoped
  by user ID
"""

import json
from abc import ABC, abstractmethod
from datetime import date, datetime
from pathlib import Path

import aiosqlite
from pydantic import ValidationError as PydanticValidationError

from nexmind.core.storage.base import KeyValueStore
from nexmind.models.note import EntityBag, Note, NoteCategory, TaskPriority, TaskStatus
from nexmind.utils.exceptions import NotFoundError, StoreError
from nexmind.utils.logger import get_logger

logger = get_logger(__name__)

NOTES_KEY = "nexmind_notes"


class NoteRepository(ABC):
    """Persistence for notes. ``get_all`` returns newest first."""

    async def initialize(self) -> None:
        return None

    @abstractmethod
    async def get_all(self) -> list[Note]:
        pass

    @abstractmethod
    async def put_all(self, notes: list[Note]) -> None:
        pass

    @abstractmethod
    async def add(self, note: Note) -> Note:
        pass

    @abstractmethod
    async def update(self, note: Note) -> Note:
        """
        Replace a stored note and stamp ``updated_at``.

        Raises:
            NotFoundError: If no note has this ID
        """
        pass

    @abstractmethod
    async def delete(self, note_id: str) -> bool:
        pass

    async def get(self, note_id: str) -> Note | None:
        for note in await self.get_all():
            if note.id == note_id:
                return note
        return None

    async def close(self) -> None:
        return None


class KeyValueNoteRepository(NoteRepository):
    """Note array stored as a single snapshot."""

    def __init__(self, store: KeyValueStore, key: str = NOTES_KEY):
        self.store = store
        self.key = key

    async def initialize(self) -> None:
        await self.store.initialize()

    async def get_all(self) -> list[Note]:
        try:
            raw = await self.store.get(self.key)
        except StoreError as e:
            logger.error(f"Failed to load notes, starting empty: {e.message}")
            return []

        if not isinstance(raw, list):
            if raw is not None:
                logger.warning(f"Ignoring malformed notes snapshot of type {type(raw).__name__}")
            return []

        notes = []
        for record in raw:
            try:
                notes.append(Note.model_validate(record))
            except PydanticValidationError as e:
                logger.bind(
                    note_id=record.get("id") if isinstance(record, dict) else None, error=str(e)
                ).warning("Skipping invalid note record")
        return notes

    async def put_all(self, notes: list[Note]) -> None:
        await self.store.set(self.key, [n.model_dump(mode="json") for n in notes])

    async def add(self, note: Note) -> Note:
        notes = await self.get_all()
        notes.insert(0, note)
        await self.put_all(notes)
        return note

    async def update(self, note: Note) -> Note:
        notes = await self.get_all()
        for index, existing in enumerate(notes):
            if existing.id == note.id:
                note.updated_at = datetime.now()
                notes[index] = note
                await self.put_all(notes)
                return note
        raise NotFoundError(f"Note not found: {note.id}", context={"note_id": note.id})

    async def delete(self, note_id: str) -> bool:
        notes = await self.get_all()
        remaining = [n for n in notes if n.id != note_id]
        if len(remaining) == len(notes):
            return False
        await self.put_all(remaining)
        return True


class SQLiteNoteRepository(NoteRepository):
    """
    Relational note storage using aiosqlite.

    The table keeps every Note field (wide schema), so a note survives a
    round trip unchanged. Rows are keyed and scoped by ``(id, user_id)``.
    """

    def __init__(self, db_path: str = "data/nexmind.db", user_id: str = "local"):
        """
        Initialize SQLite note repository.

        Args:
            db_path: Path to SQLite database file (":memory:" for tests)
            user_id: Owner of the rows this repository reads and writes
        """
        self.db_path = db_path
        self.user_id = user_id
        self.connection: aiosqlite.Connection | None = None
        self._initialized = False

        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    async def connect(self) -> None:
        if self.connection is None:
            self.connection = await aiosqlite.connect(self.db_path)
            self.connection.row_factory = aiosqlite.Row

    async def initialize(self) -> None:
        """Create the notes table and indices (once per connection)."""
        if self._initialized:
            return
        await self.connect()
        await self.connection.execute(
            """
            CREATE TABLE IF NOT EXISTS notes (
                id TEXT NOT NULL,
                user_id TEXT NOT NULL,
                content TEXT NOT NULL,
                category TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT,
                status TEXT,
                priority TEXT,
                due_date TEXT,
                entities TEXT,
                embedding TEXT,
                related_note_ids TEXT DEFAULT '[]',
                category_confidence REAL,
                category_reason TEXT,
                PRIMARY KEY (id, user_id)
            )
        """
        )
        await self.connection.execute(
            "CREATE INDEX IF NOT EXISTS idx_notes_user ON notes(user_id, created_at)"
        )
        await self.connection.commit()
        self._initialized = True

    def _to_row(self, note: Note) -> tuple:
        return (
            note.id,
            self.user_id,
            note.content,
            note.category.value,
            note.created_at.isoformat(),
            note.updated_at.isoformat() if note.updated_at else None,
            note.status.value if note.status else None,
            note.priority.value if note.priority else None,
            note.due_date.isoformat() if note.due_date else None,
            note.entities.model_dump_json() if note.entities else None,
            json.dumps(note.embedding) if note.embedding is not None else None,
            json.dumps(note.related_note_ids),
            note.category_confidence,
            note.category_reason,
        )

    def _from_row(self, row: aiosqlite.Row) -> Note:
        return Note(
            id=row["id"],
            content=row["content"],
            category=NoteCategory(row["category"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]) if row["updated_at"] else None,
            status=TaskStatus(row["status"]) if row["status"] else None,
            priority=TaskPriority(row["priority"]) if row["priority"] else None,
            due_date=date.fromisoformat(row["due_date"]) if row["due_date"] else None,
            entities=EntityBag.model_validate_json(row["entities"]) if row["entities"] else None,
            embedding=json.loads(row["embedding"]) if row["embedding"] else None,
            related_note_ids=json.loads(row["related_note_ids"] or "[]"),
            category_confidence=row["category_confidence"],
            category_reason=row["category_reason"],
        )

    async def _upsert(self, note: Note) -> None:
        await self.connection.execute(
            """
            INSERT OR REPLACE INTO notes (
                id, user_id, content, category, created_at, updated_at, status, priority,
                due_date, entities, embedding, related_note_ids, category_confidence, category_reason
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            self._to_row(note),
        )

    async def get_all(self) -> list[Note]:
        await self.initialize()
        try:
            async with self.connection.execute(
                "SELECT * FROM notes WHERE user_id = ? ORDER BY created_at DESC", (self.user_id,)
            ) as cursor:
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            logger.error(f"Failed to load notes, starting empty: {e}")
            return []

        notes = []
        for row in rows:
            try:
                notes.append(self._from_row(row))
            except (ValueError, PydanticValidationError) as e:
                logger.bind(note_id=row["id"], error=str(e)).warning("Skipping invalid note row")
        return notes

    async def get(self, note_id: str) -> Note | None:
        await self.initialize()
        async with self.connection.execute(
            "SELECT * FROM notes WHERE id = ? AND user_id = ?", (note_id, self.user_id)
        ) as cursor:
            row = await cursor.fetchone()
        return self._from_row(row) if row else None

    async def put_all(self, notes: list[Note]) -> None:
        await self.initialize()
        try:
            await self.connection.execute("DELETE FROM notes WHERE user_id = ?", (self.user_id,))
            for note in notes:
                await self._upsert(note)
            await self.connection.commit()
        except aiosqlite.Error as e:
            await self.connection.rollback()
            raise StoreError(f"Failed to write notes: {e}") from e

    async def add(self, note: Note) -> Note:
        await self.initialize()
        await self._upsert(note)
        await self.connection.commit()
        return note

    async def update(self, note: Note) -> Note:
        if await self.get(note.id) is None:
            raise NotFoundError(f"Note not found: {note.id}", context={"note_id": note.id})
        note.updated_at = datetime.now()
        await self._upsert(note)
        await self.connection.commit()
        return note

    async def delete(self, note_id: str) -> bool:
        await self.initialize()
        cursor = await self.connection.execute(
            "DELETE FROM notes WHERE id = ? AND user_id = ?", (note_id, self.user_id)
        )
        await self.connection.commit()
        return cursor.rowcount > 0

    async def close(self) -> None:
        if self.connection:
            await self.connection.close()
            self.connection = None
            self._initialized = False
