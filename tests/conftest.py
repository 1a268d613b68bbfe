"""
Shared test fixtures for all test modules.
"""

from datetime import datetime

import pytest

from nexmind.config import Config
from nexmind.core.embeddings.hashing import HashEmbedder
from nexmind.core.repositories import GraphRepository, KeyValueNoteRepository, SuggestionRepository
from nexmind.core.storage.memory_store import InMemoryKeyValueStore
from nexmind.models.note import EntityBag, Note, NoteCategory
from nexmind.services.nlp_pipeline import NlpPipeline
from nexmind.services.note_service import NoteService


@pytest.fixture
def memory_store():
    """Fresh in-memory key-value store."""
    return InMemoryKeyValueStore()


@pytest.fixture
def make_note():
    """Factory for notes with sensible defaults."""

    counter = {"n": 0}

    def _make(
        content: str = "Test note content",
        note_id: str | None = None,
        category: NoteCategory = NoteCategory.INFO,
        embedding: list[float] | None = None,
        created_at: datetime | None = None,
        **entities,
    ) -> Note:
        counter["n"] += 1
        return Note(
            id=note_id or f"nt_test{counter['n']:04d}",
            content=content,
            category=category,
            embedding=embedding,
            created_at=created_at or datetime.now(),
            entities=EntityBag(**entities) if entities else None,
        )

    return _make


@pytest.fixture
async def note_service(memory_store):
    """
    Note service on an in-memory store.

    No LLM (keyword analysis only) and the local hash embedder.
    """
    service = NoteService(
        notes=KeyValueNoteRepository(memory_store),
        graph_repository=GraphRepository(memory_store),
        suggestions=SuggestionRepository(memory_store),
        pipeline=NlpPipeline(),
        embedder=HashEmbedder(),
        config=Config(),
    )
    await service.initialize()
    return service
