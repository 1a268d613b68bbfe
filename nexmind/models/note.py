"""
Note model: a single free-text entry with classification and task fields.
"""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field


class NoteCategory(str, Enum):
    """Category assigned to a note by classification."""

    TASK = "task"
    EVENT = "event"
    IDEA = "idea"
    INFO = "info"
    PERSON = "person"


class TaskStatus(str, Enum):
    """Task lifecycle status (missing status reads as open)."""

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class TaskPriority(str, Enum):
    """Task priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def _merge_unique(first: list[str], second: list[str]) -> list[str]:
    seen: set[str] = set()
    merged: list[str] = []
    for value in [*first, *second]:
        if value not in seen:
            seen.add(value)
            merged.append(value)
    return merged


class EntityBag(BaseModel):
    """Entities extracted from a note. Order carries no meaning."""

    persons: list[str] = Field(default_factory=list)
    places: list[str] = Field(default_factory=list)
    projects: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)

    def has_any(self) -> bool:
        return bool(self.persons or self.places or self.projects or self.topics)

    def union(self, other: "EntityBag") -> "EntityBag":
        """Merge two bags, keeping first-seen order and dropping repeats."""
        return EntityBag(
            persons=_merge_unique(self.persons, other.persons),
            places=_merge_unique(self.places, other.places),
            projects=_merge_unique(self.projects, other.projects),
            topics=_merge_unique(self.topics, other.topics),
        )


class Note(BaseModel):
    """
    A user note.

    Notes are created from NLP pipeline output and carry the classification,
    extracted entities, an optional embedding and (for tasks) status,
    priority and due date. Every mutation stamps ``updated_at``.
    """

    id: str = Field(..., description="Unique note ID (nt_xxx)")
    content: str = Field(..., description="Note text")
    category: NoteCategory = Field(default=NoteCategory.INFO)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime | None = Field(default=None)

    related_note_ids: list[str] = Field(default_factory=list)
    entities: EntityBag | None = Field(default=None)
    embedding: list[float] | None = Field(default=None, description="Vector embedding")

    category_confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    category_reason: str | None = Field(default=None)

    # Task fields
    status: TaskStatus | None = Field(default=None)
    priority: TaskPriority | None = Field(default=None)
    due_date: date | None = Field(default=None)

    @property
    def is_task(self) -> bool:
        return self.category == NoteCategory.TASK

    @property
    def effective_status(self) -> TaskStatus:
        return self.status or TaskStatus.OPEN

    @property
    def last_touched(self) -> datetime:
        return self.updated_at or self.created_at

    @property
    def topics(self) -> list[str]:
        return self.entities.topics if self.entities else []

    def word_count(self) -> int:
        return len(self.content.split())

    def preview(self, length: int = 50) -> str:
        """First ``length`` characters, with an ellipsis when truncated."""
        if len(self.content) <= length:
            return self.content
        return self.content[:length] + "..."

    def touch(self) -> None:
        self.updated_at = datetime.now()
