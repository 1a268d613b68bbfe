"""Repositories for notes, the knowledge graph, suggestions and chat history."""
from nexmind.core.repositories.chat import CHAT_KEY, ChatRepository
from nexmind.core.repositories.graph import GRAPH_KEY, GraphRepository
from nexmind.core.repositories.notes import (
    NOTES_KEY,
    KeyValueNoteRepository,
    NoteRepository,
    SQLiteNoteRepository,
)
from nexmind.core.repositories.suggestions import SUGGESTIONS_KEY, SuggestionRepository

__all__ = [
    "NoteRepository",
    "KeyValueNoteRepository",
    "SQLiteNoteRepository",
    "GraphRepository",
    "SuggestionRepository",
    "ChatRepository",
    "NOTES_KEY",
    "GRAPH_KEY",
    "SUGGESTIONS_KEY",
    "CHAT_KEY",
]
