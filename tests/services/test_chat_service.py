"""
Tests for the chat service.
"""

import json
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from nexmind.core.repositories import ChatRepository
from nexmind.models.chat import ChatAction, ChatCommand, ChatRole, CommandType, Timeframe
from nexmind.models.note import NoteCategory
from nexmind.services.chat_service import (
    NOTE_REPLIES,
    QUERY_REPLY,
    WELCOME_MESSAGE,
    ChatService,
    filter_notes,
    interpret_command_keywords,
)
from nexmind.utils.exceptions import LLMError, ValidationError

NOW = datetime(2025, 1, 15, 12, 0)


@pytest.fixture
def mock_llm():
    llm = MagicMock()
    llm.complete = AsyncMock(return_value="Alles klar!")
    return llm


@pytest.fixture
def chat(note_service, memory_store):
    return ChatService(note_service, ChatRepository(memory_store))


@pytest.mark.unit
class TestInterpretCommandKeywords:
    @pytest.mark.parametrize(
        "text, action, timeframe",
        [
            ("Zeig mir alle Aufgaben von heute", ChatAction.SHOW_TASKS, Timeframe.TODAY),
            ("Welche Ideen hatte ich diese Woche?", ChatAction.SHOW_IDEAS, Timeframe.WEEK),
            ("Liste alle Termine im Monat", ChatAction.SHOW_EVENTS, Timeframe.MONTH),
            ("Suche Kontakte", ChatAction.SHOW_PERSONS, Timeframe.ALL),
            ("Finde meine Notizen", ChatAction.SHOW_INFO, Timeframe.ALL),
            ("Was ist mit dem Umzug?", ChatAction.SHOW_NOTES, Timeframe.ALL),
            ("Show me my tasks this week", ChatAction.SHOW_TASKS, Timeframe.WEEK),
        ],
    )
    def test_queries(self, text, action, timeframe):
        command = interpret_command_keywords(text)

        assert command.type == CommandType.QUERY
        assert command.action == action
        assert command.timeframe == timeframe

    def test_normal_message(self):
        command = interpret_command_keywords("Milch kaufen")

        assert command.type == CommandType.NORMAL
        assert command.action is None
        assert not command.is_query


@pytest.mark.unit
class TestFilterNotes:
    def test_category_and_week(self, make_note):
        recent_idea = make_note("Podcast starten", category=NoteCategory.IDEA, created_at=NOW - timedelta(days=2))
        old_idea = make_note("Blog starten", category=NoteCategory.IDEA, created_at=NOW - timedelta(days=10))
        task = make_note("Milch kaufen", category=NoteCategory.TASK, created_at=NOW)
        command = ChatCommand(type=CommandType.QUERY, action=ChatAction.SHOW_IDEAS, timeframe=Timeframe.WEEK)

        assert filter_notes([recent_idea, old_idea, task], command, NOW) == [recent_idea]

    def test_today(self, make_note):
        today = make_note("Heute", created_at=NOW.replace(hour=8))
        yesterday = make_note("Gestern", created_at=NOW - timedelta(days=1))
        command = ChatCommand(type=CommandType.QUERY, action=ChatAction.SHOW_NOTES, timeframe=Timeframe.TODAY)

        assert filter_notes([today, yesterday], command, NOW) == [today]

    def test_entity_filter_ignores_case(self, make_note):
        tagged = make_note("Anrufen wegen Vertrag", persons=["Maria"], created_at=NOW)
        mentioned = make_note("Geschenk für maria", created_at=NOW)
        other = make_note("Milch kaufen", created_at=NOW)
        command = ChatCommand(type=CommandType.QUERY, action=ChatAction.SHOW_NOTES, entity_filter="MARIA")

        assert filter_notes([tagged, mentioned, other], command, NOW) == [tagged, mentioned]


@pytest.mark.unit
@pytest.mark.asyncio
class TestChatService:
    """Test command interpretation, replies and history."""

    async def test_llm_refines_query(self, note_service, memory_store, mock_llm):
        mock_llm.complete.return_value = json.dumps(
            {"type": "query", "action": "show_tasks", "timeframe": "today", "entityFilter": "Maria"}
        )
        chat = ChatService(note_service, ChatRepository(memory_store), llm=mock_llm)

        command = await chat.interpret_command("Zeig mir Aufgaben mit Maria")

        assert command.action == ChatAction.SHOW_TASKS
        assert command.timeframe == Timeframe.TODAY
        assert command.entity_filter == "Maria"
        assert mock_llm.complete.call_args.kwargs["temperature"] == 0.1

    async def test_normal_message_skips_llm(self, note_service, memory_store, mock_llm):
        chat = ChatService(note_service, ChatRepository(memory_store), llm=mock_llm)

        command = await chat.interpret_command("Milch kaufen")

        assert command.type == CommandType.NORMAL
        mock_llm.complete.assert_not_called()

    @pytest.mark.parametrize(
        "side_effect, return_value",
        [
            (LLMError("down"), None),
            (None, json.dumps({"type": "query", "action": "dance"})),
            (None, "kein JSON"),
        ],
    )
    async def test_llm_failure_uses_keywords(self, note_service, memory_store, mock_llm, side_effect, return_value):
        mock_llm.complete.side_effect = side_effect
        mock_llm.complete.return_value = return_value
        chat = ChatService(note_service, ChatRepository(memory_store), llm=mock_llm)

        command = await chat.interpret_command("Zeig mir alle Ideen")

        assert command == interpret_command_keywords("Zeig mir alle Ideen")

    async def test_send_stores_note(self, chat, note_service):
        exchange = await chat.send("Idee: vielleicht ein Podcast")

        (note,) = await note_service.list_notes()
        assert [n.id for n in exchange.notes] == [note.id]
        assert note.category == NoteCategory.IDEA
        assert exchange.reply.content == NOTE_REPLIES[NoteCategory.IDEA]
        assert exchange.reply.note_ids == [note.id]
        assert exchange.message.role == ChatRole.USER
        assert [m.id for m in await chat.history()] == [exchange.message.id, exchange.reply.id]

    async def test_send_query_lists_notes(self, chat, note_service, make_note):
        idea = make_note("Podcast starten", category=NoteCategory.IDEA, created_at=NOW - timedelta(days=1))
        await note_service.notes.add(idea)
        await note_service.notes.add(make_note("Milch kaufen", category=NoteCategory.TASK, created_at=NOW))

        exchange = await chat.send("Zeig mir alle Ideen dieser Woche", now=NOW)

        assert [n.id for n in exchange.notes] == [idea.id]
        assert exchange.reply.content == QUERY_REPLY
        assert exchange.reply.note_ids == []
        assert len(await note_service.list_notes()) == 2

    async def test_reply_from_llm(self, note_service, memory_store, mock_llm):
        mock_llm.complete.return_value = "  Super, als Aufgabe gespeichert! ✅ "
        chat = ChatService(note_service, ChatRepository(memory_store), llm=mock_llm)

        exchange = await chat.send("Bericht fertig machen")

        assert exchange.reply.content == "Super, als Aufgabe gespeichert! ✅"
        assert mock_llm.complete.call_args.kwargs["temperature"] == 0.7

    async def test_reply_llm_failure(self, note_service, memory_store, mock_llm):
        mock_llm.complete.side_effect = LLMError("down")
        chat = ChatService(note_service, ChatRepository(memory_store), llm=mock_llm)

        exchange = await chat.send("Bericht fertig machen")

        assert exchange.reply.content == NOTE_REPLIES[NoteCategory.TASK]

    async def test_empty_message(self, chat):
        with pytest.raises(ValidationError):
            await chat.send("  ")
        assert len(await chat.repository.get_all()) == 0

    async def test_welcome_message_once(self, chat):
        (welcome,) = await chat.history()
        again = await chat.history()

        assert welcome.content == WELCOME_MESSAGE
        assert welcome.role == ChatRole.ASSISTANT
        assert [m.id for m in again] == [welcome.id]

    async def test_clear_history(self, chat):
        await chat.send("Milch kaufen")

        assert await chat.clear_history() == 2
        assert await chat.repository.get_all() == []
