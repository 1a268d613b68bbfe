"""
Services: NLP pipeline, automation engine, note service, chat, brain report and scheduler.
"""

from nexmind.services.automation import AutomationEngine
from nexmind.services.brain_report import BrainReportService
from nexmind.services.chat_service import ChatService
from nexmind.services.nlp_pipeline import (
    FallbackNoteAnalyzer,
    KeywordNoteAnalyzer,
    LLMNoteAnalyzer,
    NlpPipeline,
    NoteAnalyzer,
)
from nexmind.services.note_service import NoteService
from nexmind.services.scheduler import SuggestionScheduler

__all__ = [
    "AutomationEngine",
    "BrainReportService",
    "ChatService",
    "NlpPipeline",
    "NoteAnalyzer",
    "LLMNoteAnalyzer",
    "KeywordNoteAnalyzer",
    "FallbackNoteAnalyzer",
    "NoteService",
    "SuggestionScheduler",
]
