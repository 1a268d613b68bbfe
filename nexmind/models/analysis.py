"""
NLP analysis results.

One user input can yield several items (a task, an event, an idea ...);
items split from the same input share a group ID.
"""

from datetime import date
from enum import Enum

from pydantic import BaseModel, Field

from nexmind.models.note import EntityBag, NoteCategory, TaskPriority


class ItemType(str, Enum):
    """Item type as reported by the analyzer."""

    TASK = "task"
    EVENT = "event"
    IDEA = "idea"
    INFO = "info"
    PERSON_NOTE = "person_note"


class AnalysisSource(str, Enum):
    LLM = "llm"
    FALLBACK = "fallback"


class NlpItem(BaseModel):
    """A single note-to-be extracted from user input."""

    id: str = Field(..., description="Item ID (item_xxx)")
    type: ItemType = ItemType.INFO
    content: str
    category: NoteCategory = NoteCategory.INFO
    group_id: str | None = None
    due_date: date | None = None
    priority: TaskPriority | None = None
    entities: EntityBag = Field(default_factory=EntityBag)
    reasoning: str | None = None
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)


class NlpAnalysisResult(BaseModel):
    """Structured result of analyzing one user input."""

    items: list[NlpItem] = Field(default_factory=list)
    context_summary: str | None = None
    global_topics: list[str] = Field(default_factory=list)
    global_entities: EntityBag = Field(default_factory=EntityBag)
    source: AnalysisSource = AnalysisSource.FALLBACK


class AnalysisOutcome(BaseModel):
    """
    Result type for analyzer calls.

    Analyzers never raise for external failures; they return
    ``AnalysisOutcome.failure(...)`` and let the caller pick a fallback.
    """

    ok: bool
    result: NlpAnalysisResult | None = None
    error: str | None = None

    @classmethod
    def success(cls, result: NlpAnalysisResult) -> "AnalysisOutcome":
        return cls(ok=True, result=result)

    @classmethod
    def failure(cls, error: str) -> "AnalysisOutcome":
        return cls(ok=False, error=error)


class SemanticClassification(BaseModel):
    """Category decision with a confidence for every category."""

    category: NoteCategory
    confidence: float = Field(..., ge=0.0, le=1.0)
    confidences: dict[NoteCategory, float] = Field(default_factory=dict)
    reasoning: str = ""
