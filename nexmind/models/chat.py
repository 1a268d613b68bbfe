"""Chat models: stored messages and interpreted chat commands."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from nexmind.models.note import Note


class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    """One entry of the chat history."""

    id: str = Field(..., description="Message ID (msg_xxx)")
    content: str
    role: ChatRole
    timestamp: datetime = Field(default_factory=datetime.now)
    note_ids: list[str] = Field(default_factory=list, description="Notes created from this message")


class CommandType(str, Enum):
    """Whether a chat message asks for notes or is a new note."""

    QUERY = "query"
    NORMAL = "normal"


class ChatAction(str, Enum):
    SHOW_NOTES = "show_notes"
    SHOW_TASKS = "show_tasks"
    SHOW_IDEAS = "show_ideas"
    SHOW_EVENTS = "show_events"
    SHOW_PERSONS = "show_persons"
    SHOW_INFO = "show_info"


class Timeframe(str, Enum):
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    ALL = "all"


class ChatCommand(BaseModel):
    """Interpretation of a chat message."""

    model_config = ConfigDict(populate_by_name=True)

    type: CommandType = CommandType.NORMAL
    action: ChatAction | None = None
    timeframe: Timeframe = Timeframe.ALL
    entity_filter: str | None = Field(default=None, alias="entityFilter")

    @property
    def is_query(self) -> bool:
        return self.type == CommandType.QUERY


class ChatExchange(BaseModel):
    """
    Result of sending one chat message.

    ``notes`` holds the notes created from a normal message, or the notes
    matching a query.
    """

    command: ChatCommand
    message: ChatMessage
    reply: ChatMessage
    notes: list[Note] = Field(default_factory=list)
