"""
NLP pipeline: turns free user input into note items.

Two stages, both implementing NoteAnalyzer:
1. LLMNoteAnalyzer - one chat completion returning a JSON object with an
   ``items`` array, bounded by a hard timeout, no retries
2. KeywordNoteAnalyzer - local keyword heuristics, never fails

FallbackNoteAnalyzer chains them; NlpPipeline is the entry point used by
the note service and always returns a result.
"""

import asyncio
import json
from abc import ABC, abstractmethod
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from nexmind.config import LLMConfig
from nexmind.core.llm.base import LLMProvider, extract_json
from nexmind.models.analysis import (
    AnalysisOutcome,
    AnalysisSource,
    ItemType,
    NlpAnalysisResult,
    NlpItem,
    SemanticClassification,
)
from nexmind.models.note import EntityBag, NoteCategory, TaskPriority
from nexmind.services.keyword_extraction import (
    category_confidences,
    classify_note,
    extract_persons,
    extract_priority,
    extract_projects,
    split_input,
)
from nexmind.utils.dates import extract_due_date, parse_relative_date
from nexmind.utils.exceptions import LLMError, ValidationError
from nexmind.utils.id_generator import generate_group_id, generate_item_id
from nexmind.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 15.0
LLM_ITEM_CONFIDENCE = 0.9
KEYWORD_CONFIDENCE = 0.8
FALLBACK_CONFIDENCE = 0.7
FALLBACK_OTHER_CONFIDENCE = 0.075
KEYWORD_OTHER_CONFIDENCE = 0.1


ANALYSIS_SYSTEM_PROMPT = """Du bist ein präziser NLP-Assistent, der deutsche Texte in strukturierte Einträge für eine Produktivitäts-App umwandelt.

AUFGABEN:
1. Erkenne alle separaten sinnvollen Items (Aufgaben, Termine, Ideen, Infos, Personen-Notizen)
2. Extrahiere Fälligkeiten ("morgen", "Freitag", "nächste Woche", konkrete Daten)
3. Bestimme die Priorität aus dem Kontext ("muss" -> high, "sollte" -> medium, "könnte" -> low)
4. Erkenne Personen, Orte, Projekte und Themen
5. Gib zusammengehörenden Items dieselbe groupId

KATEGORIEN: task, event, idea, info, person

PROJEKTE:
- Miete -> "Finanzen"
- Bewerbung -> "Jobsuche"
- Geburtstag -> "Soziales"
- Draftnex, NexMind -> "Draftnex"
- Selbstständigkeit -> "Selbstständigkeit"

Splitte sinnvoll, erfinde nichts. dueDate ist ein ISO-Datum "YYYY-MM-DD", ein relativer Ausdruck wie "morgen" oder null.

Antworte ausschließlich mit JSON in diesem Format:
{
  "items": [
    {
      "type": "task|event|idea|info|person_note",
      "content": "Beschreibung",
      "category": "task|event|idea|info|person",
      "groupId": "g1",
      "dueDate": "morgen",
      "priority": "low|medium|high",
      "entities": {"persons": [], "places": [], "projects": [], "topics": []},
      "reasoning": "Kurze Begründung"
    }
  ],
  "contextSummary": "Zusammenfassung in einem Satz",
  "globalTopics": [],
  "globalEntities": {"persons": [], "places": [], "projects": [], "topics": []}
}

Heutiges Datum: {today}"""

CLASSIFY_SYSTEM_PROMPT = """Du bist ein Klassifizierungs-Assistent für Notizen.
Gib für jede Kategorie (task, event, idea, info, person) eine Konfidenz zwischen 0.0 und 1.0 zurück; die Summe sollte etwa 1.0 sein.

Antworte ausschließlich mit JSON:
{"task": 0.0, "event": 0.0, "idea": 0.0, "info": 0.0, "person": 0.0, "reason": "Kurze Begründung"}"""

ENTITY_SYSTEM_PROMPT = """Du bist ein Entity-Extraction-Spezialist für Knowledge Graphs. Extrahiere folgende Entitäten aus dem Text:

- persons: Namen von Personen
- places: Orte, Städte, Locations
- projects: Projekt-Namen, Produkt-Namen, Firmen
- topics: Themen, Konzepte, Technologien, Kategorien (z.B. "AI", "Marketing", "Fitness", "Finanzplanung")

Topics sind allgemeine Konzepte, keine spezifischen Details. Wenn nichts gefunden wird, gib leere Arrays zurück.

Antworte ausschließlich mit JSON:
{"persons": [], "places": [], "projects": [], "topics": []}"""


# ═══════════════════════════════════════════════════════════
# LLM RESPONSE SCHEMA (lenient: unknown enum values fall back to defaults)
# ═══════════════════════════════════════════════════════════


class _LLMEntities(BaseModel):
    persons: list[str] = Field(default_factory=list)
    places: list[str] = Field(default_factory=list)
    projects: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)

    @field_validator("persons", "places", "projects", "topics", mode="before")
    @classmethod
    def drop_nulls(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [str(v) for v in value if v]
        return value

    def to_bag(self) -> EntityBag:
        return EntityBag(**self.model_dump())


class _LLMItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str | None = None
    content: str | None = None
    category: str | None = None
    group_id: str | None = Field(default=None, alias="groupId")
    due_date: str | None = Field(default=None, alias="dueDate")
    priority: str | None = None
    entities: _LLMEntities = Field(default_factory=_LLMEntities)
    reasoning: str | None = None

    @field_validator("entities", mode="before")
    @classmethod
    def default_entities(cls, value: Any) -> Any:
        return value or {}


class _LLMAnalysis(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: list[_LLMItem]
    context_summary: str | None = Field(default=None, alias="contextSummary")
    global_topics: list[str] = Field(default_factory=list, alias="globalTopics")
    global_entities: _LLMEntities = Field(default_factory=_LLMEntities, alias="globalEntities")

    @field_validator("global_topics", mode="before")
    @classmethod
    def default_topics(cls, value: Any) -> Any:
        return value or []

    @field_validator("global_entities", mode="before")
    @classmethod
    def default_global_entities(cls, value: Any) -> Any:
        return value or {}


def _enum_or_default(enum_cls, value: str | None, default):
    if value is None:
        return default
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        return default


def _item_type_for(category: NoteCategory) -> ItemType:
    if category == NoteCategory.PERSON:
        return ItemType.PERSON_NOTE
    return ItemType(category.value)


def _to_date(iso: str | None) -> date | None:
    return date.fromisoformat(iso) if iso else None


# ═══════════════════════════════════════════════════════════
# ANALYZERS
# ═══════════════════════════════════════════════════════════


class NoteAnalyzer(ABC):
    """Turns one user input into an analysis outcome."""

    @abstractmethod
    async def analyze(self, text: str) -> AnalysisOutcome:
        """
        Analyze user input.

        External failures are reported through ``AnalysisOutcome.failure``
        rather than raised.
        """
        pass


class LLMNoteAnalyzer(NoteAnalyzer):
    """Single LLM call with a hard timeout."""

    def __init__(
        self,
        llm: LLMProvider,
        timeout: float = DEFAULT_TIMEOUT,
        temperature: float = 0.2,
        max_tokens: int = 1500,
        today: date | None = None,
    ):
        """
        Initialize LLM analyzer.

        Args:
            llm: Chat completion provider
            timeout: Seconds before the call is cancelled
            temperature: Sampling temperature
            max_tokens: Completion token limit
            today: Fixed reference date (defaults to the current date per call)
        """
        self.llm = llm
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.today = today

    async def analyze(self, text: str) -> AnalysisOutcome:
        today = self.today or date.today()
        system = ANALYSIS_SYSTEM_PROMPT.replace("{today}", today.isoformat())
        prompt = f'Analysiere folgenden Text:\n\n"{text}"'

        try:
            content = await asyncio.wait_for(
                self.llm.complete(
                    prompt,
                    system=system,
                    json_mode=True,
                    max_tokens=self.max_tokens,
                    temperature=self.temperature,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"LLM analysis timed out after {self.timeout:.0f}s")
            return AnalysisOutcome.failure(f"LLM analysis timed out after {self.timeout}s")
        except (LLMError, ValidationError) as e:
            logger.warning(f"LLM analysis failed: {e.message}")
            return AnalysisOutcome.failure(e.message)

        try:
            parsed = _LLMAnalysis.model_validate_json(extract_json(content))
        except (PydanticValidationError, ValueError) as e:
            logger.bind(error=str(e), raw=content[:200]).warning("LLM returned malformed analysis JSON")
            return AnalysisOutcome.failure(f"Malformed analysis response: {e}")

        if not parsed.items:
            logger.warning("LLM analysis returned no items")
            return AnalysisOutcome.failure("Analysis response contained no items")

        return AnalysisOutcome.success(self._to_result(parsed, text, today))

    def _to_result(self, parsed: _LLMAnalysis, text: str, today: date) -> NlpAnalysisResult:
        default_group = generate_group_id()
        # Model-local group labels ("g1") become globally unique IDs
        group_ids: dict[str, str] = {}

        items = []
        for raw in parsed.items:
            category = _enum_or_default(NoteCategory, raw.category, NoteCategory.INFO)
            item_type = _enum_or_default(ItemType, raw.type, _item_type_for(category))
            if raw.type and raw.type.strip().lower() == "person":
                item_type = ItemType.PERSON_NOTE

            group_id = default_group
            if raw.group_id:
                group_id = group_ids.setdefault(raw.group_id, generate_group_id())

            default_priority = TaskPriority.MEDIUM if category == NoteCategory.TASK else None

            items.append(
                NlpItem(
                    id=generate_item_id(),
                    type=item_type,
                    content=(raw.content or "").strip() or text,
                    category=category,
                    group_id=group_id,
                    due_date=_to_date(parse_relative_date(raw.due_date, today)),
                    priority=_enum_or_default(TaskPriority, raw.priority, default_priority),
                    entities=raw.entities.to_bag(),
                    reasoning=raw.reasoning or "LLM analysis",
                    confidence=LLM_ITEM_CONFIDENCE,
                )
            )

        return NlpAnalysisResult(
            items=items,
            context_summary=parsed.context_summary,
            global_topics=parsed.global_topics,
            global_entities=parsed.global_entities.to_bag(),
            source=AnalysisSource.LLM,
        )


class KeywordNoteAnalyzer(NoteAnalyzer):
    """Local keyword analysis. Always succeeds."""

    def __init__(self, confidence: float = KEYWORD_CONFIDENCE, today: date | None = None):
        """
        Initialize keyword analyzer.

        Args:
            confidence: Confidence attached to every produced item
            today: Fixed reference date for due dates
        """
        self.confidence = confidence
        self.today = today

    def _item(self, part: str, group_id: str, reasoning: str) -> NlpItem:
        category = classify_note(part)
        return NlpItem(
            id=generate_item_id(),
            type=_item_type_for(category),
            content=part,
            category=category,
            group_id=group_id,
            due_date=_to_date(extract_due_date(part, self.today)),
            priority=extract_priority(part),
            entities=EntityBag(persons=extract_persons(part), projects=extract_projects(part)),
            reasoning=reasoning,
            confidence=self.confidence,
        )

    async def analyze(self, text: str) -> AnalysisOutcome:
        return AnalysisOutcome.success(self.analyze_sync(text))

    def analyze_sync(self, text: str) -> NlpAnalysisResult:
        group_id = generate_group_id()
        parts = split_input(text)

        if len(parts) > 1:
            items = [self._item(part, group_id, "Keyword analysis of split input") for part in parts]
            summary = f"{len(items)} entries detected"
        else:
            items = [self._item(text.strip(), group_id, "Keyword classification")]
            summary = "Single entry"

        global_entities = EntityBag()
        for item in items:
            global_entities = global_entities.union(item.entities)

        return NlpAnalysisResult(
            items=items,
            context_summary=summary,
            global_topics=[],
            global_entities=global_entities,
            source=AnalysisSource.FALLBACK,
        )


class FallbackNoteAnalyzer(NoteAnalyzer):
    """Primary analyzer with a fallback for any failed outcome."""

    def __init__(self, primary: NoteAnalyzer, fallback: NoteAnalyzer):
        self.primary = primary
        self.fallback = fallback

    async def analyze(self, text: str) -> AnalysisOutcome:
        outcome = await self.primary.analyze(text)
        if outcome.ok:
            return outcome

        logger.info(f"Using fallback analysis ({outcome.error})")
        return await self.fallback.analyze(text)


# ═══════════════════════════════════════════════════════════
# PIPELINE
# ═══════════════════════════════════════════════════════════


class NlpPipeline:
    """
    Entry point for analysis and classification.

    Without an LLM provider only the keyword analyzer runs.
    """

    def __init__(self, llm: LLMProvider | None = None, config: LLMConfig | None = None):
        """
        Initialize pipeline.

        Args:
            llm: Optional LLM provider (None when no credential is configured)
            config: LLM settings (timeout, temperature, max tokens)
        """
        self.llm = llm
        self.config = config or LLMConfig()

        if llm is None:
            self.analyzer: NoteAnalyzer = KeywordNoteAnalyzer(confidence=KEYWORD_CONFIDENCE)
        else:
            self.analyzer = FallbackNoteAnalyzer(
                primary=LLMNoteAnalyzer(
                    llm,
                    timeout=self.config.timeout,
                    temperature=self.config.temperature,
                    max_tokens=self.config.max_tokens,
                ),
                fallback=KeywordNoteAnalyzer(confidence=FALLBACK_CONFIDENCE),
            )

    async def analyze_user_input(self, text: str) -> NlpAnalysisResult:
        """
        Analyze user input into note items.

        Raises:
            ValidationError: If the text is empty
        """
        if not text or not text.strip():
            raise ValidationError("Input text cannot be empty")

        outcome = await self.analyzer.analyze(text.strip())
        if not outcome.ok or outcome.result is None:
            # Keyword analysis cannot fail; reaching here means a custom analyzer did
            logger.warning(f"Analyzer failed without fallback: {outcome.error}")
            return KeywordNoteAnalyzer(confidence=FALLBACK_CONFIDENCE).analyze_sync(text.strip())

        logger.bind(source=outcome.result.source.value).debug(
            f"Analyzed input into {len(outcome.result.items)} items"
        )
        return outcome.result

    async def classify_semantic(self, text: str) -> SemanticClassification:
        """
        Classify a note with a confidence for every category.

        Keyword classification gives 0.8 to the chosen category and 0.1 to the
        others; after an LLM failure the split is 0.7 / 0.075.
        """
        if self.llm is None:
            category = classify_note(text)
            return SemanticClassification(
                category=category,
                confidence=KEYWORD_CONFIDENCE,
                confidences=category_confidences(category, KEYWORD_CONFIDENCE, KEYWORD_OTHER_CONFIDENCE),
                reasoning="Keyword classification",
            )

        try:
            content = await asyncio.wait_for(
                self.llm.complete(
                    f'Analysiere folgende Notiz:\n\n"{text}"',
                    system=CLASSIFY_SYSTEM_PROMPT,
                    json_mode=True,
                    max_tokens=300,
                    temperature=self.config.temperature,
                ),
                timeout=self.config.timeout,
            )
            scores = json.loads(extract_json(content))
            if not isinstance(scores, dict):
                raise ValueError("Classification response is not an object")

            confidences = {}
            for category in NoteCategory:
                value = float(scores.get(category.value) or 0.0)
                confidences[category] = max(0.0, min(1.0, value))
        except (asyncio.TimeoutError, LLMError, ValueError, TypeError) as e:
            logger.warning(f"Semantic classification failed, using keywords: {e}")
            category = classify_note(text)
            return SemanticClassification(
                category=category,
                confidence=FALLBACK_CONFIDENCE,
                confidences=category_confidences(category, FALLBACK_CONFIDENCE, FALLBACK_OTHER_CONFIDENCE),
                reasoning="Fallback: keyword classification",
            )

        best = NoteCategory.INFO
        best_score = 0.0
        for category in NoteCategory:
            if confidences[category] > best_score:
                best, best_score = category, confidences[category]

        return SemanticClassification(
            category=best,
            confidence=best_score,
            confidences=confidences,
            reasoning=str(scores.get("reason") or "LLM classification"),
        )

    async def extract_entities(self, text: str) -> EntityBag:
        """
        Extract persons, places, projects and topics from text.

        Without an LLM, or when the call fails, only keyword persons and
        projects are found.

        Raises:
            ValidationError: If the text is empty
        """
        if not text or not text.strip():
            raise ValidationError("Input text cannot be empty")

        fallback = EntityBag(persons=extract_persons(text), projects=extract_projects(text))
        if self.llm is None:
            return fallback

        try:
            content = await asyncio.wait_for(
                self.llm.complete(
                    f'Extrahiere Entitäten und Topics aus folgendem Text:\n\n"{text}"',
                    system=ENTITY_SYSTEM_PROMPT,
                    json_mode=True,
                    max_tokens=400,
                    temperature=0.1,
                ),
                timeout=self.config.timeout,
            )
            return _LLMEntities.model_validate_json(extract_json(content)).to_bag()
        except (asyncio.TimeoutError, LLMError, ValidationError, PydanticValidationError, ValueError) as e:
            logger.warning(f"Entity extraction failed, using keywords: {e}")
            return fallback
