"""
Suggestion models produced by the automation engine.

An AISuggestion carries exactly one payload shape per suggestion type. The
payload is a tagged union keyed by ``kind``; the suggestion ``type`` and the
payload ``kind`` must agree.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, Field, model_validator

from nexmind.models.note import EntityBag, TaskPriority


class SuggestionType(str, Enum):
    """Kinds of suggestions."""

    DUPLICATE = "duplicate"
    PROJECT = "project"
    CLEANUP = "cleanup"
    ACTION = "action"
    EMERGING_PROJECT = "emerging_project"


class SuggestionStatus(str, Enum):
    """Suggestion review status."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class CleanupType(str, Enum):
    OUTDATED = "outdated"
    INCOMPLETE = "incomplete"
    AMBIGUOUS = "ambiguous"


class ActionType(str, Enum):
    TASK = "task"
    FOLLOW_UP = "follow_up"
    ORGANIZE = "organize"
    CLEANUP = "cleanup"


# ═══════════════════════════════════════════════════════════
# PAYLOADS
# ═══════════════════════════════════════════════════════════


class MergeSuggestion(BaseModel):
    """Proposal to merge near-duplicate notes into the oldest one."""

    kind: Literal["duplicate"] = "duplicate"
    note_ids: list[str] = Field(..., min_length=2, description="Oldest first")
    merged_content: str
    merged_entities: EntityBag = Field(default_factory=EntityBag)
    similarity: float = Field(default=0.0, ge=-1.0, le=1.0)
    confidence: float = Field(..., ge=0.0, le=1.0)
    reason: str = ""


class ProjectMatch(BaseModel):
    """Existing project a note likely belongs to."""

    kind: Literal["project"] = "project"
    note_id: str
    project_name: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    reason: str = ""


class CleanupSuggestion(BaseModel):
    """Outdated, incomplete or ambiguous note."""

    kind: Literal["cleanup"] = "cleanup"
    cleanup_type: CleanupType
    note_id: str
    reason: str
    suggested_action: str
    confidence: float = Field(..., ge=0.0, le=1.0)


class EmergingProject(BaseModel):
    """Recurring theme that looks like a project without one."""

    kind: Literal["emerging_project"] = "emerging_project"
    name: str
    related_note_ids: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
    confidence: float = Field(..., ge=0.0, le=1.0)
    reason: str = ""


class NextActionSuggestion(BaseModel):
    """Recommended next step for the user."""

    kind: Literal["action"] = "action"
    action_type: ActionType
    title: str
    description: str
    priority: TaskPriority
    related_note_ids: list[str] = Field(default_factory=list)


SuggestionPayload = Annotated[
    MergeSuggestion | ProjectMatch | CleanupSuggestion | EmergingProject | NextActionSuggestion,
    Field(discriminator="kind"),
]


class AISuggestion(BaseModel):
    """Persisted suggestion with review status."""

    id: str = Field(..., description="Unique suggestion ID (sug_xxx)")
    type: SuggestionType
    title: str
    description: str = ""
    data: SuggestionPayload
    confidence: float = Field(..., ge=0.0, le=1.0)
    created_at: datetime = Field(default_factory=datetime.now)
    status: SuggestionStatus = SuggestionStatus.PENDING

    @model_validator(mode="after")
    def check_payload_kind(self) -> "AISuggestion":
        if self.data.kind != self.type.value:
            raise ValueError(
                f"Suggestion type '{self.type.value}' does not match payload kind '{self.data.kind}'"
            )
        return self

    @property
    def dedupe_key(self) -> tuple[str, str]:
        return (self.type.value, self.title)

    def is_pending(self) -> bool:
        return self.status == SuggestionStatus.PENDING


# ═══════════════════════════════════════════════════════════
# DETECTOR RESULTS (not persisted)
# ═══════════════════════════════════════════════════════════


class DuplicateGroup(BaseModel):
    """Seed note plus every note within the duplicate threshold."""

    note_ids: list[str]
    similarity: float
    reason: str = ""


class TopicCluster(BaseModel):
    """Topic node with the notes linked to it."""

    topic: str
    note_ids: list[str]
    strength: float
