"""
Chat service: notes and note queries through a conversational interface.

Each message is interpreted first:
- a query ("Zeig mir alle Ideen dieser Woche") lists matching notes
- anything else is stored as notes through the note service

Keyword rules decide whether a message is a query; the LLM only refines
queries (action, timeframe, entity filter). Replies come from the LLM when
configured, with fixed replies as fallback. The history is persisted.
"""

import asyncio
from datetime import datetime, timedelta

from pydantic import ValidationError as PydanticValidationError

from nexmind.config import LLMConfig
from nexmind.core.llm.base import LLMProvider, extract_json
from nexmind.core.repositories.chat import ChatRepository
from nexmind.models.chat import (
    ChatAction,
    ChatCommand,
    ChatExchange,
    ChatMessage,
    ChatRole,
    CommandType,
    Timeframe,
)
from nexmind.models.note import Note, NoteCategory
from nexmind.services.note_service import NoteService
from nexmind.utils.exceptions import LLMError, ValidationError
from nexmind.utils.id_generator import generate_message_id
from nexmind.utils.logger import get_logger

logger = get_logger(__name__)

QUERY_WORDS = ("zeig", "liste", "suche", "finde", "alle", "was ist", "welche", "show", "list", "search", "find", "which")

ACTION_WORDS = [
    (ChatAction.SHOW_TASKS, ("aufgabe", "task", "todo")),
    (ChatAction.SHOW_IDEAS, ("idee", "idea")),
    (ChatAction.SHOW_EVENTS, ("termin", "event", "meeting")),
    (ChatAction.SHOW_PERSONS, ("person", "kontakt", "contact")),
    (ChatAction.SHOW_INFO, ("info", "notiz")),
]

TIMEFRAME_WORDS = [
    (Timeframe.TODAY, ("heute", "today")),
    (Timeframe.WEEK, ("woche", "week")),
    (Timeframe.MONTH, ("monat", "month")),
]

ACTION_CATEGORIES = {
    ChatAction.SHOW_TASKS: NoteCategory.TASK,
    ChatAction.SHOW_IDEAS: NoteCategory.IDEA,
    ChatAction.SHOW_EVENTS: NoteCategory.EVENT,
    ChatAction.SHOW_PERSONS: NoteCategory.PERSON,
    ChatAction.SHOW_INFO: NoteCategory.INFO,
}

TIMEFRAME_DAYS = {Timeframe.WEEK: 7, Timeframe.MONTH: 30}

WELCOME_MESSAGE = (
    "Hallo! Ich bin NexMind. Schreib mir deine Gedanken, Aufgaben oder Ideen, "
    "ich organisiere sie automatisch für dich. 🧠✨"
)
QUERY_REPLY = "Ich habe deine Anfrage verstanden. Hier sind die passenden Notizen für dich! 🔍"
NOTE_REPLIES = {
    NoteCategory.TASK: "Verstanden! Ich habe das als Aufgabe gespeichert. ✅",
    NoteCategory.EVENT: "Notiert! Ich habe den Termin für dich festgehalten. 📅",
    NoteCategory.IDEA: "Tolle Idee! Ich habe sie gespeichert. 💡",
    NoteCategory.INFO: "Danke für die Info! Habe ich notiert. 📝",
    NoteCategory.PERSON: "Kontakt gespeichert! 👤",
}

COMMAND_SYSTEM_PROMPT = """Du bist ein Command-Interpreter. Analysiere Nutzer-Anfragen und extrahiere strukturierte Informationen.

Antworte ausschließlich im JSON-Format:
{
  "type": "query" | "normal",
  "action": "show_notes" | "show_tasks" | "show_ideas" | "show_events" | "show_persons" | "show_info",
  "timeframe": "today" | "week" | "month" | "all",
  "entityFilter": "optionaler Entity-Name"
}

Beispiele:
- "Zeig mir alle Ideen dieser Woche" -> {"type": "query", "action": "show_ideas", "timeframe": "week"}
- "Welche Aufgaben habe ich heute?" -> {"type": "query", "action": "show_tasks", "timeframe": "today"}
- "Liste alle Termine" -> {"type": "query", "action": "show_events", "timeframe": "all"}"""

QUERY_REPLY_PROMPT = """Du bist NexMind, ein intelligenter Notiz-Assistent. Der Nutzer hat eine Suchanfrage gestellt.

Antworte:
- freundlich und hilfreich
- in 1-2 Sätzen
- bestätige, dass du die Anfrage verstanden hast
- verwende passende Emojis

Der Nutzer möchte: {action} (Zeitraum: {timeframe}). Gefundene Notizen: {count}"""

NOTE_REPLY_PROMPT = """Du bist NexMind, ein intelligenter Notiz-Assistent.

Antworte:
- freundlich und natürlich
- in 1-2 Sätzen
- bestätige die Kategorisierung
- erwähne kurz, warum du diese Kategorie gewählt hast
- verwende passende Emojis

Kategorien:
- task ✅: Aufgaben
- event 📅: Termine
- idea 💡: Ideen
- info 📝: Informationen
- person 👤: Personen"""


def interpret_command_keywords(text: str) -> ChatCommand:
    """Keyword interpretation of a chat message."""
    lower = text.lower()
    if not any(word in lower for word in QUERY_WORDS):
        return ChatCommand(type=CommandType.NORMAL)

    action = ChatAction.SHOW_NOTES
    for candidate, words in ACTION_WORDS:
        if any(word in lower for word in words):
            action = candidate
            break

    timeframe = Timeframe.ALL
    for candidate, words in TIMEFRAME_WORDS:
        if any(word in lower for word in words):
            timeframe = candidate
            break

    return ChatCommand(type=CommandType.QUERY, action=action, timeframe=timeframe)


def fallback_reply(command: ChatCommand, category: NoteCategory | None) -> str:
    if command.is_query or category is None:
        return QUERY_REPLY
    return NOTE_REPLIES[category]


def filter_notes(notes: list[Note], command: ChatCommand, now: datetime | None = None) -> list[Note]:
    """Notes matching a query command's category, timeframe and entity filter."""
    now = now or datetime.now()
    category = ACTION_CATEGORIES.get(command.action)
    needle = command.entity_filter.strip().lower() if command.entity_filter else ""

    matches = []
    for note in notes:
        if category is not None and note.category != category:
            continue
        if command.timeframe == Timeframe.TODAY and note.created_at.date() != now.date():
            continue
        if command.timeframe in TIMEFRAME_DAYS:
            if note.created_at < now - timedelta(days=TIMEFRAME_DAYS[command.timeframe]):
                continue
        if needle:
            values = [note.content]
            if note.entities:
                values.extend(
                    note.entities.persons + note.entities.places + note.entities.projects + note.entities.topics
                )
            if not any(needle in value.lower() for value in values):
                continue
        matches.append(note)
    return matches


class ChatService:
    """Conversational front end over the note service."""

    def __init__(
        self,
        note_service: NoteService,
        repository: ChatRepository,
        llm: LLMProvider | None = None,
        config: LLMConfig | None = None,
    ):
        """
        Initialize Chat Service.

        Args:
            note_service: Service that stores and lists notes
            repository: Chat history repository
            llm: Optional LLM provider for command interpretation and replies
            config: LLM settings (timeout)
        """
        self.note_service = note_service
        self.repository = repository
        self.llm = llm
        self.config = config or LLMConfig()

    async def history(self) -> list[ChatMessage]:
        """Chat history, oldest first. An empty history starts with a greeting."""
        messages = await self.repository.get_all()
        if messages:
            return messages

        welcome = ChatMessage(id=generate_message_id(), content=WELCOME_MESSAGE, role=ChatRole.ASSISTANT)
        return await self.repository.add(welcome)

    async def clear_history(self) -> int:
        return await self.repository.clear()

    async def interpret_command(self, text: str) -> ChatCommand:
        """
        Decide whether a message is a query and what it asks for.

        Only messages the keyword rules treat as queries are sent to the LLM.
        """
        command = interpret_command_keywords(text)
        if not command.is_query or self.llm is None:
            return command

        try:
            content = await asyncio.wait_for(
                self.llm.complete(
                    f'Interpretiere: "{text}"',
                    system=COMMAND_SYSTEM_PROMPT,
                    json_mode=True,
                    max_tokens=150,
                    temperature=0.1,
                ),
                timeout=self.config.timeout,
            )
            return ChatCommand.model_validate_json(extract_json(content))
        except (asyncio.TimeoutError, LLMError, ValidationError, PydanticValidationError, ValueError) as e:
            logger.warning(f"Command interpretation failed, using keywords: {e}")
            return command

    async def reply(self, text: str, command: ChatCommand, notes: list[Note]) -> str:
        """Assistant reply for a handled message."""
        category = notes[0].category if notes and not command.is_query else None
        if self.llm is None:
            return fallback_reply(command, category)

        if command.is_query:
            system = QUERY_REPLY_PROMPT.format(
                action=(command.action or ChatAction.SHOW_NOTES).value,
                timeframe=command.timeframe.value,
                count=len(notes),
            )
            prompt = f'Der Nutzer fragt: "{text}"'
        else:
            confidence = notes[0].category_confidence if notes else None
            system = NOTE_REPLY_PROMPT
            prompt = (
                f'Der Nutzer hat geschrieben: "{text}"\n\n'
                f'Ich habe das als "{category.value if category else "info"}" kategorisiert '
                f"mit {round((confidence or 0.0) * 100)}% Sicherheit.\n\n"
                "Gib eine natürliche Bestätigung zurück."
            )

        try:
            content = await asyncio.wait_for(
                self.llm.complete(prompt, system=system, max_tokens=150, temperature=0.7),
                timeout=self.config.timeout,
            )
        except (asyncio.TimeoutError, LLMError, ValidationError) as e:
            logger.warning(f"Chat reply failed, using fixed reply: {e}")
            return fallback_reply(command, category)

        return content.strip() or fallback_reply(command, category)

    async def send(self, text: str, now: datetime | None = None) -> ChatExchange:
        """
        Handle one chat message and persist both sides of the exchange.

        Raises:
            ValidationError: If the text is empty
        """
        if not text or not text.strip():
            raise ValidationError("Message cannot be empty")
        text = text.strip()

        message = ChatMessage(id=generate_message_id(), content=text, role=ChatRole.USER)
        command = await self.interpret_command(text)

        if command.is_query:
            notes = filter_notes(await self.note_service.list_notes(), command, now)
            note_ids = []
        else:
            notes = await self.note_service.add_note(text)
            note_ids = [n.id for n in notes]

        reply = ChatMessage(
            id=generate_message_id(),
            content=await self.reply(text, command, notes),
            role=ChatRole.ASSISTANT,
            note_ids=note_ids,
        )
        await self.repository.add(message, reply)

        logger.bind(command=command.type.value, notes=len(notes)).info(f"Chat message handled: {command.type.value}")
        return ChatExchange(command=command, message=message, reply=reply, notes=notes)
