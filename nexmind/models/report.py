"""Weekly brain report models."""

from datetime import datetime

from pydantic import BaseModel, Field

from nexmind.models.analysis import AnalysisSource
from nexmind.models.note import NoteCategory


class CategoryInsight(BaseModel):
    category: NoteCategory
    count: int
    insight: str


class TopEntities(BaseModel):
    persons: list[str] = Field(default_factory=list)
    places: list[str] = Field(default_factory=list)
    projects: list[str] = Field(default_factory=list)


class BrainReport(BaseModel):
    """
    Summary of the last seven days of notes.

    Counts, entities and open tasks come from the notes themselves; summary,
    focus and insights come from the LLM (``source=llm``) or fixed texts
    (``source=fallback``).
    """

    week_summary: str
    recommended_focus: str
    insights: list[str] = Field(default_factory=list)
    top_categories: list[CategoryInsight] = Field(default_factory=list)
    top_entities: TopEntities = Field(default_factory=TopEntities)
    open_tasks: list[str] = Field(default_factory=list)
    note_count: int = 0
    source: AnalysisSource = AnalysisSource.FALLBACK
    generated_at: datetime = Field(default_factory=datetime.now)
