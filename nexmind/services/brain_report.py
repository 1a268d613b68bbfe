"""
Weekly brain report.

Statistics (category counts, top entities, open tasks) are computed from the
notes of the last seven days. The LLM only writes the prose: week summary,
recommended focus and insights.
"""

import asyncio
from collections import Counter
from datetime import date, datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from nexmind.config import LLMConfig
from nexmind.core.llm.base import LLMProvider, extract_json
from nexmind.models.analysis import AnalysisSource
from nexmind.models.note import Note, NoteCategory
from nexmind.models.report import BrainReport, CategoryInsight, TopEntities
from nexmind.services.automation import PRIORITY_ORDER
from nexmind.services.note_service import NoteService
from nexmind.utils.exceptions import LLMError, ValidationError
from nexmind.utils.logger import get_logger

logger = get_logger(__name__)

REPORT_DAYS = 7
TOP_CATEGORIES = 3
TOP_ENTITIES = 5
OPEN_TASKS = 5

DEFAULT_SUMMARY = "Du hattest eine produktive Woche! Weiter so!"
DEFAULT_FOCUS = "Erstelle mehr Notizen, um personalisierte Einblicke zu erhalten."
FAILURE_SUMMARY = "Du hattest eine produktive Woche mit vielen Notizen!"
FAILURE_FOCUS = "Konzentriere dich auf deine wichtigsten Aufgaben."
FAILURE_INSIGHTS = [
    "Bleib fokussiert auf deine Ziele",
    "Organisiere deine Gedanken regelmäßig",
    "Nutze die Kategorien, um Struktur zu schaffen",
]

CATEGORY_INSIGHTS = {
    NoteCategory.TASK: "{count} Aufgaben erfasst - Strukturiertes Arbeiten zahlt sich aus!",
    NoteCategory.EVENT: "{count} Termine geplant - Gutes Zeitmanagement!",
    NoteCategory.IDEA: "{count} Ideen festgehalten - Kreativität ist deine Stärke!",
    NoteCategory.INFO: "{count} Infos gespeichert - Wissen ist Macht!",
    NoteCategory.PERSON: "{count} Kontakte dokumentiert - Networking läuft!",
}

REPORT_SYSTEM_PROMPT = """Du bist ein persönlicher Produktivitäts-Coach. Analysiere die Notizen der Woche und gib:
1. Eine kurze, motivierende Wochenzusammenfassung (2-3 Sätze)
2. Eine empfohlene Fokus-Aktivität für nächste Woche
3. 3 konkrete Insights oder Muster, die du erkennst

Antworte ausschließlich im JSON-Format:
{
  "weekSummary": "...",
  "recommendedFocus": "...",
  "insights": ["...", "...", "..."]
}"""


class _LLMReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    week_summary: str | None = Field(default=None, alias="weekSummary")
    recommended_focus: str | None = Field(default=None, alias="recommendedFocus")
    insights: list[str] = Field(default_factory=list)


def category_insight(category: NoteCategory, count: int) -> str:
    return CATEGORY_INSIGHTS[category].format(count=count)


def top_categories(notes: list[Note], limit: int = TOP_CATEGORIES) -> list[CategoryInsight]:
    counts = Counter(n.category for n in notes)
    return [
        CategoryInsight(category=category, count=count, insight=category_insight(category, count))
        for category, count in counts.most_common(limit)
    ]


def top_entities(notes: list[Note], limit: int = TOP_ENTITIES) -> TopEntities:
    persons, places, projects = Counter(), Counter(), Counter()
    for note in notes:
        if note.entities:
            persons.update(note.entities.persons)
            places.update(note.entities.places)
            projects.update(note.entities.projects)
    return TopEntities(
        persons=[name for name, _ in persons.most_common(limit)],
        places=[name for name, _ in places.most_common(limit)],
        projects=[name for name, _ in projects.most_common(limit)],
    )


def rank_open_tasks(tasks: list[Note], limit: int = OPEN_TASKS) -> list[Note]:
    """High priority first, then earliest due date."""
    ranked = sorted(
        tasks,
        key=lambda t: (PRIORITY_ORDER.get(t.priority, len(PRIORITY_ORDER)), t.due_date or date.max),
    )
    return ranked[:limit]


class BrainReportService:
    """Builds the weekly brain report."""

    def __init__(
        self,
        note_service: NoteService,
        llm: LLMProvider | None = None,
        config: LLMConfig | None = None,
    ):
        self.note_service = note_service
        self.llm = llm
        self.config = config or LLMConfig()

    def _prompt(self, report: BrainReport, week_notes: list[Note]) -> str:
        counts = ", ".join(f"{c.category.value}: {c.count}" for c in report.top_categories)
        lines = [
            f"Notizen dieser Woche: {len(week_notes)}",
            f"Kategorien: {counts}",
            f"Personen: {', '.join(report.top_entities.persons) or '-'}",
            f"Orte: {', '.join(report.top_entities.places) or '-'}",
            f"Projekte: {', '.join(report.top_entities.projects) or '-'}",
            "",
            "Notizen:",
        ]
        lines.extend(f"- [{n.category.value}] {n.preview(100)}" for n in week_notes[:20])
        return "\n".join(lines)

    async def generate(self, now: datetime | None = None) -> BrainReport:
        """
        Generate the report for the seven days before ``now``.

        Returns:
            BrainReport with ``source=llm`` when the LLM wrote the prose
        """
        now = now or datetime.now()
        notes = await self.note_service.list_notes()
        week_notes = [n for n in notes if n.created_at >= now - timedelta(days=REPORT_DAYS)]
        open_tasks = rank_open_tasks(await self.note_service.open_tasks())

        report = BrainReport(
            week_summary=DEFAULT_SUMMARY,
            recommended_focus=DEFAULT_FOCUS,
            top_categories=top_categories(week_notes),
            top_entities=top_entities(week_notes),
            open_tasks=[t.content for t in open_tasks],
            note_count=len(week_notes),
            generated_at=now,
        )
        if self.llm is None or not week_notes:
            return report

        try:
            content = await asyncio.wait_for(
                self.llm.complete(
                    self._prompt(report, week_notes),
                    system=REPORT_SYSTEM_PROMPT,
                    json_mode=True,
                    max_tokens=500,
                    temperature=0.5,
                ),
                timeout=self.config.timeout * 2,
            )
            prose = _LLMReport.model_validate_json(extract_json(content))
        except (asyncio.TimeoutError, LLMError, ValidationError, PydanticValidationError, ValueError) as e:
            logger.warning(f"Brain report prose failed, using fixed texts: {e}")
            report.week_summary = FAILURE_SUMMARY
            report.recommended_focus = FAILURE_FOCUS
            report.insights = list(FAILURE_INSIGHTS)
            return report

        report.week_summary = prose.week_summary or FAILURE_SUMMARY
        report.recommended_focus = prose.recommended_focus or FAILURE_FOCUS
        report.insights = prose.insights
        report.source = AnalysisSource.LLM

        logger.bind(notes=len(week_notes)).info("Brain report generated")
        return report
