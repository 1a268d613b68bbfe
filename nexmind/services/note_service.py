"""
Note Service - ties the NLP pipeline, embeddings, graph and automation together.

Flow for new input:
1. Analyze the text into one or more items (LLM or keyword fallback)
2. Embed each item (stored without a vector if the embedder fails)
3. Index the notes into the knowledge graph, then persist notes and graph
4. Suggest existing projects the new notes may belong to

The graph snapshot records the embedder signature (``<name>:<dimension>``).
At startup, vectors written by a different embedder are re-embedded so
vectors of different embedders are never compared.
"""

from collections import Counter
from datetime import date, datetime
from typing import Any

from nexmind.config import Config
from nexmind.core.embeddings.base import Embedder
from nexmind.core.graph import builder
from nexmind.core.repositories.graph import GraphRepository
from nexmind.core.repositories.notes import NoteRepository
from nexmind.core.repositories.suggestions import SuggestionRepository
from nexmind.models.graph import GraphNodeType, KnowledgeGraph
from nexmind.models.note import EntityBag, Note, NoteCategory, TaskPriority, TaskStatus
from nexmind.models.suggestion import (
    AISuggestion,
    EmergingProject,
    MergeSuggestion,
    ProjectMatch,
    SuggestionStatus,
)
from nexmind.services.automation import AutomationEngine, auto_assign_project
from nexmind.services.nlp_pipeline import NlpPipeline
from nexmind.utils.exceptions import EmbeddingError, NotFoundError, ValidationError
from nexmind.utils.id_generator import generate_note_id
from nexmind.utils.logger import get_logger

logger = get_logger(__name__)


class NoteService:
    """
    Application service for notes, tasks, graph and suggestions.

    Notes are returned newest first. Graph updates are incremental; the
    persisted graph is rebuilt only on demand or when it is empty at startup.
    """

    def __init__(
        self,
        notes: NoteRepository,
        graph_repository: GraphRepository,
        suggestions: SuggestionRepository,
        pipeline: NlpPipeline,
        embedder: Embedder,
        config: Config,
    ):
        """
        Initialize Note Service.

        Args:
            notes: Note repository
            graph_repository: Knowledge graph snapshot repository
            suggestions: Suggestion repository
            pipeline: NLP pipeline for analysis
            embedder: Embedder for note vectors
            config: Configuration object
        """
        self.notes = notes
        self.graph_repository = graph_repository
        self.suggestions = suggestions
        self.pipeline = pipeline
        self.embedder = embedder
        self.config = config
        self.automation = AutomationEngine(config.automation)
        self._signature: str | None = None
        self._dimension: int | None = None

    async def initialize(self) -> None:
        logger.info("Initializing Note Service")
        await self.notes.initialize()
        await self.ensure_graph()
        logger.info("Note Service ready")

    # ═══════════════════════════════════════════════════════════
    # NOTES
    # ═══════════════════════════════════════════════════════════

    async def _embed(self, text: str) -> list[float] | None:
        try:
            return await self.embedder.embed(text)
        except EmbeddingError as e:
            logger.bind(embedder=self.embedder.name).warning(
                f"Embedding failed, storing note without vector: {e.message}"
            )
            return None

    async def add_note(self, text: str) -> list[Note]:
        """
        Analyze input and store one note per detected item.

        Args:
            text: Free-text user input

        Returns:
            Created notes in input order

        Raises:
            ValidationError: If text is empty
        """
        result = await self.pipeline.analyze_user_input(text)

        graph = await self.graph_repository.load()
        all_notes = await self.notes.get_all()
        created = []

        for item in result.items:
            entities = item.entities
            if not entities.topics and result.global_topics:
                entities = entities.model_copy(update={"topics": list(result.global_topics)})

            note = Note(
                id=generate_note_id(),
                content=item.content,
                category=item.category,
                created_at=datetime.now(),
                entities=entities,
                embedding=await self._embed(item.content),
                category_confidence=item.confidence,
                category_reason=item.reasoning,
            )
            if note.is_task:
                note.status = TaskStatus.OPEN
                note.priority = item.priority or TaskPriority.MEDIUM
                note.due_date = item.due_date

            all_notes.insert(0, note)
            builder.index_note(graph, note, all_notes, self.config.graph.similarity_threshold)
            created.append(note)

        for note in created:
            await self.notes.add(note)
            logger.bind(note_id=note.id, source=result.source.value).info(
                f"Created note: {note.category.value} - {note.preview()}"
            )
        await self._save_graph(graph)

        matches = self.automation.project_suggestions(created, graph)
        if matches:
            await self.suggestions.add_many(matches)
        return created

    async def get_note(self, note_id: str) -> Note:
        """
        Raises:
            NotFoundError: If no note has this ID
        """
        note = await self.notes.get(note_id)
        if note is None:
            raise NotFoundError(f"Note not found: {note_id}", context={"note_id": note_id})
        return note

    async def list_notes(self) -> list[Note]:
        return await self.notes.get_all()

    async def notes_by_category(self, category: NoteCategory) -> list[Note]:
        return [n for n in await self.notes.get_all() if n.category == category]

    async def search_notes(self, query: str) -> list[Note]:
        """Case-insensitive substring search over content and entities."""
        needle = query.strip().lower()
        if not needle:
            return await self.notes.get_all()

        matches = []
        for note in await self.notes.get_all():
            haystack = [note.content]
            if note.entities:
                haystack.extend(
                    note.entities.persons + note.entities.places + note.entities.projects + note.entities.topics
                )
            if any(needle in value.lower() for value in haystack):
                matches.append(note)
        return matches

    async def update_note(
        self,
        note_id: str,
        content: str | None = None,
        category: NoteCategory | None = None,
        entities: EntityBag | None = None,
    ) -> Note:
        """
        Edit a note and re-index it in the graph.

        A content change re-embeds the note.

        Raises:
            NotFoundError: If no note has this ID
            ValidationError: If content is given but empty
        """
        note = await self.get_note(note_id)

        if content is not None:
            if not content.strip():
                raise ValidationError("Note content cannot be empty")
            if content != note.content:
                note.content = content
                note.embedding = await self._embed(content)
        if category is not None:
            note.category = category
            if note.is_task and note.status is None:
                note.status = TaskStatus.OPEN
        if entities is not None:
            note.entities = entities

        note = await self.notes.update(note)
        await self._reindex(note)
        return note

    async def _reindex(self, note: Note) -> None:
        graph = await self.graph_repository.load()
        builder.remove_note(graph, note.id)
        builder.index_note(graph, note, await self.notes.get_all(), self.config.graph.similarity_threshold)
        await self._save_graph(graph)

    async def delete_note(self, note_id: str) -> bool:
        """Delete a note and drop it from the graph. Returns False if it did not exist."""
        deleted = await self.notes.delete(note_id)
        if not deleted:
            return False

        graph = await self.graph_repository.load()
        if builder.remove_note(graph, note_id):
            await self._save_graph(graph)

        logger.bind(note_id=note_id).info(f"Deleted note: {note_id}")
        return True

    # ═══════════════════════════════════════════════════════════
    # TASKS
    # ═══════════════════════════════════════════════════════════

    async def _get_task(self, note_id: str) -> Note:
        note = await self.get_note(note_id)
        if not note.is_task:
            raise ValidationError(f"Note is not a task: {note_id}", context={"note_id": note_id})
        return note

    async def update_task_status(self, note_id: str, status: TaskStatus) -> Note:
        note = await self._get_task(note_id)
        note.status = status
        return await self.notes.update(note)

    async def update_task_priority(self, note_id: str, priority: TaskPriority) -> Note:
        note = await self._get_task(note_id)
        note.priority = priority
        return await self.notes.update(note)

    async def update_task_due_date(self, note_id: str, due_date: date | None) -> Note:
        note = await self._get_task(note_id)
        note.due_date = due_date
        return await self.notes.update(note)

    async def tasks(self) -> list[Note]:
        return [n for n in await self.notes.get_all() if n.is_task]

    async def tasks_by_status(self, status: TaskStatus) -> list[Note]:
        return [t for t in await self.tasks() if t.effective_status == status]

    async def tasks_by_priority(self, priority: TaskPriority) -> list[Note]:
        return [t for t in await self.tasks() if t.priority == priority]

    async def open_tasks(self) -> list[Note]:
        return [t for t in await self.tasks() if t.effective_status != TaskStatus.DONE]

    async def overdue_tasks(self, today: date | None = None) -> list[Note]:
        today = today or date.today()
        return [t for t in await self.open_tasks() if t.due_date and t.due_date < today]

    async def tasks_due_today(self, today: date | None = None) -> list[Note]:
        today = today or date.today()
        return [t for t in await self.open_tasks() if t.due_date == today]

    # ═══════════════════════════════════════════════════════════
    # GRAPH
    # ═══════════════════════════════════════════════════════════

    async def get_graph(self) -> KnowledgeGraph:
        return await self.graph_repository.load()

    async def _save_graph(self, graph: KnowledgeGraph) -> None:
        if self._signature is not None:
            graph.embedder = self._signature
        await self.graph_repository.save(graph)

    async def rebuild_graph(self) -> KnowledgeGraph:
        """Rebuild the knowledge graph from all notes and persist it."""
        notes = await self.notes.get_all()
        graph = builder.build_from_notes(notes, self.config.graph.similarity_threshold)
        await self._save_graph(graph)
        return graph

    async def _load_signature(self) -> None:
        try:
            self._dimension = await self.embedder.get_dimension()
        except EmbeddingError as e:
            logger.bind(embedder=self.embedder.name).warning(
                f"Could not determine embedding dimension: {e.message}"
            )
            return
        self._signature = f"{self.embedder.name}:{self._dimension}"

    def _is_stale(self, note: Note, graph: KnowledgeGraph) -> bool:
        if not note.embedding or self._signature is None:
            return False
        if graph.embedder is not None and graph.embedder != self._signature:
            return True
        return len(note.embedding) != self._dimension

    async def reembed_stale_notes(self, graph: KnowledgeGraph) -> int:
        """
        Re-embed notes whose vectors came from another embedder.

        A note whose re-embedding fails keeps no vector.

        Returns:
            Number of notes re-embedded
        """
        notes = await self.notes.get_all()
        stale = [n for n in notes if self._is_stale(n, graph)]
        if not stale:
            return 0

        logger.bind(embedder=self._signature, previous=graph.embedder).info(
            f"Re-embedding {len(stale)} notes with stale vectors"
        )
        for note in stale:
            note.embedding = await self._embed(note.content)
        await self.notes.put_all(notes)
        return len(stale)

    async def ensure_graph(self) -> KnowledgeGraph:
        """
        Make the graph consistent with the stored notes and current embedder.

        Rebuilds when vectors were re-embedded, or when the graph is empty
        but notes exist.
        """
        if self._signature is None:
            await self._load_signature()

        graph = await self.graph_repository.load()
        if await self.reembed_stale_notes(graph):
            return await self.rebuild_graph()
        if graph.is_empty():
            notes = await self.notes.get_all()
            if notes:
                logger.info(f"Knowledge graph empty, rebuilding from {len(notes)} notes")
                return await self.rebuild_graph()
        return graph

    async def similar_notes(self, note_id: str, limit: int | None = None) -> list[dict[str, Any]]:
        """
        Similar notes from the graph's similarity edges.

        Raises:
            NotFoundError: If no note has this ID
        """
        await self.get_note(note_id)
        graph = await self.graph_repository.load()
        return builder.similar_notes_from_graph(graph, note_id, limit or self.config.graph.top_similar)

    async def top_entities(self, node_type: GraphNodeType, limit: int = 10) -> list[dict[str, Any]]:
        graph = await self.graph_repository.load()
        return builder.top_entities(graph, node_type, limit)

    # ═══════════════════════════════════════════════════════════
    # SUGGESTIONS
    # ═══════════════════════════════════════════════════════════

    async def run_automation(self, now: datetime | None = None) -> list[AISuggestion]:
        """Generate suggestions for the current notes and graph; returns the new ones."""
        notes = await self.notes.get_all()
        graph = await self.graph_repository.load()
        return await self.automation.run(notes, graph, self.suggestions, now)

    async def list_suggestions(self, status: SuggestionStatus | None = None) -> list[AISuggestion]:
        suggestions = await self.suggestions.get_all()
        if status is not None:
            suggestions = [s for s in suggestions if s.status == status]
        return sorted(suggestions, key=lambda s: s.confidence, reverse=True)

    async def accept_suggestion(self, suggestion_id: str) -> AISuggestion:
        """
        Accept a pending suggestion and apply its payload.

        Merge payloads combine the notes into the oldest one; project payloads
        add the project to the related notes. Cleanup and action payloads are
        informational.

        Raises:
            NotFoundError: If the suggestion does not exist
            ValidationError: If it is no longer pending
        """
        suggestion = await self.suggestions.accept(suggestion_id)
        payload = suggestion.data

        if isinstance(payload, MergeSuggestion):
            await self._apply_merge(payload)
        elif isinstance(payload, EmergingProject):
            await self._assign_project(payload.related_note_ids, payload.name)
        elif isinstance(payload, ProjectMatch):
            await self._assign_project([payload.note_id], payload.project_name)

        logger.bind(suggestion_id=suggestion.id, type=suggestion.type.value).info(
            f"Accepted suggestion: {suggestion.title}"
        )
        return suggestion

    async def reject_suggestion(self, suggestion_id: str) -> AISuggestion:
        suggestion = await self.suggestions.reject(suggestion_id)
        logger.bind(suggestion_id=suggestion.id).info(f"Rejected suggestion: {suggestion.title}")
        return suggestion

    async def _apply_merge(self, merge: MergeSuggestion) -> None:
        keep_id, *drop_ids = merge.note_ids
        keep = await self.notes.get(keep_id)
        if keep is None:
            logger.warning(f"Merge target no longer exists: {keep_id}")
            return

        keep.content = merge.merged_content
        keep.entities = merge.merged_entities
        keep.embedding = await self._embed(keep.content)
        await self.notes.update(keep)

        for note_id in drop_ids:
            await self.delete_note(note_id)
        await self._reindex(keep)

    async def _assign_project(self, note_ids: list[str], project_name: str) -> None:
        for note_id in note_ids:
            note = await self.notes.get(note_id)
            if note is None:
                continue
            updated = auto_assign_project(note, project_name)
            if updated is not note:
                await self.notes.update(updated)
                await self._reindex(updated)

    # ═══════════════════════════════════════════════════════════
    # STATS
    # ═══════════════════════════════════════════════════════════

    async def stats(self) -> dict[str, Any]:
        """Note, task, graph and suggestion counts."""
        notes = await self.notes.get_all()
        graph = await self.graph_repository.load()
        suggestions = await self.suggestions.get_all()

        categories = Counter(n.category.value for n in notes)
        statuses = Counter(n.effective_status.value for n in notes if n.is_task)
        today = date.today()

        return {
            "notes": {
                "total": len(notes),
                "by_category": {c.value: categories.get(c.value, 0) for c in NoteCategory},
                "with_embedding": sum(1 for n in notes if n.embedding),
            },
            "tasks": {
                "total": sum(statuses.values()),
                "by_status": {s.value: statuses.get(s.value, 0) for s in TaskStatus},
                "overdue": sum(
                    1
                    for n in notes
                    if n.is_task
                    and n.effective_status != TaskStatus.DONE
                    and n.due_date
                    and n.due_date < today
                ),
            },
            "graph": builder.stats(graph),
            "suggestions": {
                "total": len(suggestions),
                "pending": sum(1 for s in suggestions if s.is_pending()),
            },
        }
