"""
Automation engine: heuristic detectors over the note set and graph.

Detectors are plain functions so they can be used on their own (the note
service uses ``auto_assign_project`` when a project suggestion is accepted).
AutomationEngine combines them into ranked suggestions:

1. Duplicates among the most recent notes (merge proposals)
2. Emerging projects from topic clusters and co-occurring topic pairs
3. Cleanup: outdated, incomplete and ambiguous notes (top 3, confidence >= 0.7)
4. Next actions (top 2)

Project matches are checked per new note (``project_suggestions``) since
they only make sense for the note that was just added.
"""

from collections import defaultdict
from datetime import datetime

from nexmind.config import AutomationConfig
from nexmind.core.graph.builder import entity_node_id, note_node_id
from nexmind.core.repositories.suggestions import SuggestionRepository
from nexmind.core.similarity.engine import cosine_similarity
from nexmind.models.graph import EdgeType, GraphNodeType, KnowledgeGraph
from nexmind.models.note import EntityBag, Note, TaskPriority, TaskStatus
from nexmind.models.suggestion import (
    ActionType,
    AISuggestion,
    CleanupSuggestion,
    CleanupType,
    DuplicateGroup,
    EmergingProject,
    MergeSuggestion,
    NextActionSuggestion,
    ProjectMatch,
    SuggestionType,
    TopicCluster,
)
from nexmind.utils.id_generator import generate_suggestion_id
from nexmind.utils.logger import get_logger

logger = get_logger(__name__)

MERGE_SEPARATOR = "\n\n---\n\n"
PRIORITY_ORDER = {TaskPriority.HIGH: 0, TaskPriority.MEDIUM: 1, TaskPriority.LOW: 2}
ACTION_CONFIDENCE = {TaskPriority.HIGH: 0.9, TaskPriority.MEDIUM: 0.7, TaskPriority.LOW: 0.5}


def _newest_first(notes: list[Note]) -> list[Note]:
    return sorted(notes, key=lambda n: n.created_at, reverse=True)


def _days_between(earlier: datetime, later: datetime) -> float:
    return (later - earlier).total_seconds() / 86400


# ═══════════════════════════════════════════════════════════
# DUPLICATES
# ═══════════════════════════════════════════════════════════


def detect_duplicates(note: Note, all_notes: list[Note], threshold: float = 0.85) -> list[DuplicateGroup]:
    """
    Group ``note`` with every other note at or above ``threshold``.

    Returns:
        A single group (seed first) or an empty list
    """
    if not note.embedding:
        return []

    matches = []
    for other in all_notes:
        if other.id == note.id or not other.embedding:
            continue
        similarity = cosine_similarity(note.embedding, other.embedding)
        if similarity >= threshold:
            matches.append((other, similarity))

    if not matches:
        return []

    best = max(score for _, score in matches)
    return [
        DuplicateGroup(
            note_ids=[note.id, *(other.id for other, _ in matches)],
            similarity=best,
            reason=f"{len(matches)} very similar notes found ({round(best * 100)}% match)",
        )
    ]


def suggest_merge(notes: list[Note], similarity: float = 0.0) -> MergeSuggestion | None:
    """
    Merge proposal for near-duplicate notes.

    Contents are joined oldest first without repeats; entities are unioned.
    Confidence is 0.95 when all contents are identical, else 0.75.
    """
    if len(notes) < 2:
        return None

    ordered = sorted(notes, key=lambda n: n.created_at)

    contents: list[str] = []
    for note in ordered:
        content = note.content.strip()
        if content not in contents:
            contents.append(content)

    entities = EntityBag()
    for note in ordered:
        if note.entities:
            entities = entities.union(note.entities)

    identical = len(contents) == 1
    return MergeSuggestion(
        note_ids=[n.id for n in ordered],
        merged_content=MERGE_SEPARATOR.join(contents),
        merged_entities=entities,
        similarity=similarity,
        confidence=0.95 if identical else 0.75,
        reason=(
            "Identical content, very likely a duplicate"
            if identical
            else "Very similar content, could be merged"
        ),
    )


def group_duplicates(seeds: list[Note], all_notes: list[Note], threshold: float) -> list[DuplicateGroup]:
    """Duplicate groups for each seed, skipping notes already placed in a group."""
    grouped: set[str] = set()
    groups = []

    for seed in seeds:
        if seed.id in grouped:
            continue
        candidates = [n for n in all_notes if n.id not in grouped]
        for group in detect_duplicates(seed, candidates, threshold):
            grouped.update(group.note_ids)
            groups.append(group)

    return groups


# ═══════════════════════════════════════════════════════════
# PROJECTS & TOPICS
# ═══════════════════════════════════════════════════════════


def detect_project_matches(note: Note, graph: KnowledgeGraph) -> list[ProjectMatch]:
    """
    Existing projects the note may belong to.

    Direct mention +0.5, graph link +0.3, +0.1 per topic shared with the
    project's other notes; matches above 0.3 are returned, strongest first.
    """
    matches = []
    source_id = note_node_id(note.id)
    note_projects = note.entities.projects if note.entities else []

    for project in graph.nodes_of_type(GraphNodeType.PROJECT):
        confidence = 0.0
        reasons = []

        if project.label in note_projects:
            confidence += 0.5
            reasons.append("mentions the project")

        project_edges = graph.edges_to(project.id, EdgeType.PROJECT_OF)
        if any(e.source == source_id for e in project_edges):
            confidence += 0.3
            reasons.append("linked in the graph")

        project_topics: set[str] = set()
        for edge in project_edges:
            if edge.source == source_id:
                continue
            for topic_edge in graph.edges_from(edge.source, EdgeType.TOPIC_OF):
                topic_node = graph.get_node(topic_edge.target)
                if topic_node:
                    project_topics.add(topic_node.label)

        shared = [t for t in note.topics if t in project_topics]
        if shared:
            confidence += 0.1 * len(shared)
            reasons.append(f"{len(shared)} shared topics")

        if confidence > 0.3:
            matches.append(
                ProjectMatch(
                    note_id=note.id,
                    project_name=project.label,
                    confidence=min(confidence, 1.0),
                    reason=", ".join(reasons),
                )
            )

    return sorted(matches, key=lambda m: m.confidence, reverse=True)


def auto_assign_project(note: Note, project_name: str) -> Note:
    """Copy of ``note`` with ``project_name`` added to its projects (unchanged if present)."""
    entities = note.entities or EntityBag()
    if project_name in entities.projects:
        return note

    updated = entities.model_copy(update={"projects": [*entities.projects, project_name]})
    return note.model_copy(update={"entities": updated})


def detect_topic_clusters(graph: KnowledgeGraph, min_notes: int = 3) -> list[TopicCluster]:
    """Topics linked to at least ``min_notes`` notes, largest first."""
    clusters = []

    for topic in graph.nodes_of_type(GraphNodeType.TOPIC):
        edges = graph.edges_to(topic.id, EdgeType.TOPIC_OF)
        if len(edges) < min_notes:
            continue

        note_ids = []
        for edge in edges:
            source = graph.get_node(edge.source)
            note_ids.append(source.metadata.get("note_id", edge.source) if source else edge.source)

        clusters.append(
            TopicCluster(
                topic=topic.label,
                note_ids=note_ids,
                strength=sum(e.strength for e in edges) / len(edges),
            )
        )

    return sorted(clusters, key=lambda c: len(c.note_ids), reverse=True)


def auto_tag_topics(note: Note, clusters: list[TopicCluster]) -> list[str]:
    """Cluster topics whose name appears in the note text."""
    content = note.content.lower()
    return [c.topic for c in clusters if c.topic.lower() in content]


def find_topic_pairs(notes: list[Note], min_occurrences: int = 3) -> list[dict]:
    """Topic pairs that occur together in at least ``min_occurrences`` notes."""
    pairs: dict[tuple[str, str], list[str]] = defaultdict(list)

    for note in notes:
        topics = list(dict.fromkeys(note.topics))
        for i in range(len(topics)):
            for j in range(i + 1, len(topics)):
                key = tuple(sorted((topics[i], topics[j])))
                pairs[key].append(note.id)

    return [
        {"topics": list(key), "count": len(note_ids), "note_ids": note_ids}
        for key, note_ids in pairs.items()
        if len(note_ids) >= min_occurrences
    ]


def detect_emerging_projects(
    notes: list[Note], graph: KnowledgeGraph, min_notes: int = 4, min_pair_count: int = 3
) -> list[EmergingProject]:
    """
    Recurring topics that look like projects but have no project node.

    Topic clusters score ``(0.4 if >= 2 tasks else 0.2) + (0.4 if > 1 person else 0.2)``
    and are kept at 0.5 or more. Co-occurring topic pairs score
    ``min(count / 10, 0.9)``.
    """
    by_id = {n.id: n for n in notes}
    projects: list[EmergingProject] = []

    for cluster in detect_topic_clusters(graph, min_notes):
        if graph.get_node(entity_node_id(GraphNodeType.PROJECT, cluster.topic)) is not None:
            continue

        cluster_notes = [by_id[i] for i in cluster.note_ids if i in by_id]
        task_count = sum(1 for n in cluster_notes if n.is_task)
        persons = {p for n in cluster_notes if n.entities for p in n.entities.persons}

        confidence = (0.4 if task_count >= 2 else 0.2) + (0.4 if len(persons) > 1 else 0.2)
        confidence = min(confidence, 1.0)
        if confidence < 0.5:
            continue

        projects.append(
            EmergingProject(
                name=cluster.topic,
                related_note_ids=cluster.note_ids,
                topics=[cluster.topic],
                confidence=confidence,
                reason=(
                    f'{len(cluster.note_ids)} notes about "{cluster.topic}" '
                    f"({task_count} tasks, {'several people' if len(persons) > 1 else 'one person'})"
                ),
            )
        )

    for pair in find_topic_pairs(notes, min_pair_count):
        name = " + ".join(pair["topics"])
        if any(p.name == name for p in projects):
            continue
        projects.append(
            EmergingProject(
                name=name,
                related_note_ids=pair["note_ids"],
                topics=pair["topics"],
                confidence=min(pair["count"] / 10, 0.9),
                reason=f'{pair["count"]} notes combine the topics "{name}"',
            )
        )

    return sorted(projects, key=lambda p: p.confidence, reverse=True)


# ═══════════════════════════════════════════════════════════
# CLEANUP
# ═══════════════════════════════════════════════════════════


def detect_outdated_notes(
    notes: list[Note], days_old: int = 90, now: datetime | None = None
) -> list[CleanupSuggestion]:
    """Notes untouched for more than ``days_old`` days (0.9 past 180 days, else 0.6)."""
    now = now or datetime.now()
    results = []

    for note in notes:
        age = _days_between(note.last_touched, now)
        if age <= days_old:
            continue
        results.append(
            CleanupSuggestion(
                cleanup_type=CleanupType.OUTDATED,
                note_id=note.id,
                reason=f"Note is {round(age)} days old and has not been updated",
                suggested_action="Archive or delete",
                confidence=0.9 if age > 180 else 0.6,
            )
        )
    return results


def detect_incomplete_tasks(notes: list[Note]) -> list[CleanupSuggestion]:
    """Open tasks missing a due date or priority, or with a very short description."""
    results = []

    for note in notes:
        if not note.is_task or note.effective_status == TaskStatus.DONE:
            continue

        issues = []
        if note.due_date is None:
            issues.append("no due date")
        if note.priority is None:
            issues.append("no priority")
        if len(note.content) < 10:
            issues.append("description too short")

        if issues:
            results.append(
                CleanupSuggestion(
                    cleanup_type=CleanupType.INCOMPLETE,
                    note_id=note.id,
                    reason=f"Incomplete task: {', '.join(issues)}",
                    suggested_action="Add the missing information",
                    confidence=0.8,
                )
            )
    return results


def detect_ambiguous_notes(notes: list[Note]) -> list[CleanupSuggestion]:
    """Very short notes (0.7) and longer notes without any entities (0.5)."""
    results = []

    for note in notes:
        words = note.word_count()
        if words < 3:
            results.append(
                CleanupSuggestion(
                    cleanup_type=CleanupType.AMBIGUOUS,
                    note_id=note.id,
                    reason="Very short note, possibly unclear",
                    suggested_action="Add details or delete",
                    confidence=0.7,
                )
            )
        elif words > 5 and not (note.entities and note.entities.has_any()):
            results.append(
                CleanupSuggestion(
                    cleanup_type=CleanupType.AMBIGUOUS,
                    note_id=note.id,
                    reason="No entities detected, possibly too generic",
                    suggested_action="Add more specific information",
                    confidence=0.5,
                )
            )
    return results


# ═══════════════════════════════════════════════════════════
# NEXT ACTIONS
# ═══════════════════════════════════════════════════════════


def suggest_next_actions(
    notes: list[Note], now: datetime | None = None, duplicate_threshold: float = 0.88
) -> list[NextActionSuggestion]:
    """Next steps sorted high -> medium -> low priority."""
    now = now or datetime.now()
    today = now.date()
    tasks = [n for n in notes if n.is_task]
    actions = []

    overdue = [
        t for t in tasks if t.due_date and t.due_date < today and t.effective_status != TaskStatus.DONE
    ]
    if overdue:
        actions.append(
            NextActionSuggestion(
                action_type=ActionType.TASK,
                title="Work on overdue tasks",
                description=f"{len(overdue)} overdue {'task needs' if len(overdue) == 1 else 'tasks need'} attention",
                priority=TaskPriority.HIGH,
                related_note_ids=[t.id for t in overdue],
            )
        )

    untagged = [n for n in notes if not n.topics]
    if len(untagged) >= 5:
        actions.append(
            NextActionSuggestion(
                action_type=ActionType.ORGANIZE,
                title="Categorize notes",
                description=f"{len(untagged)} notes have no topics",
                priority=TaskPriority.LOW,
                related_note_ids=[n.id for n in untagged[:10]],
            )
        )

    old = detect_outdated_notes(notes, 120, now)
    if len(old) >= 3:
        actions.append(
            NextActionSuggestion(
                action_type=ActionType.CLEANUP,
                title="Clean up old notes",
                description=f"{len(old)} old notes could be archived",
                priority=TaskPriority.LOW,
                related_note_ids=[c.note_id for c in old[:10]],
            )
        )

    recent = _newest_first(notes)[:20]
    groups = group_duplicates(recent, notes, duplicate_threshold)
    if groups:
        related = [note_id for g in groups for note_id in g.note_ids]
        actions.append(
            NextActionSuggestion(
                action_type=ActionType.ORGANIZE,
                title="Review duplicates",
                description=f"{len(groups)} possible duplicate {'group' if len(groups) == 1 else 'groups'} found",
                priority=TaskPriority.MEDIUM,
                related_note_ids=related[:10],
            )
        )

    stale = [
        t
        for t in tasks
        if t.effective_status == TaskStatus.IN_PROGRESS and _days_between(t.last_touched, now) > 7
    ]
    if stale:
        actions.append(
            NextActionSuggestion(
                action_type=ActionType.FOLLOW_UP,
                title="Update task status",
                description=f"{len(stale)} in-progress tasks without an update for over 7 days",
                priority=TaskPriority.MEDIUM,
                related_note_ids=[t.id for t in stale],
            )
        )

    return sorted(actions, key=lambda a: PRIORITY_ORDER[a.priority])


# ═══════════════════════════════════════════════════════════
# ENGINE
# ═══════════════════════════════════════════════════════════


class AutomationEngine:
    """
    Runs all detectors and turns their findings into suggestions.

    Suggestion titles carry a note preview or the detected name so that
    de-duplication by (type, title) distinguishes separate findings.
    """

    RECENT_DUPLICATE_WINDOW = 10
    EMERGING_MIN_CONFIDENCE = 0.6
    CLEANUP_LIMIT = 3
    CLEANUP_MIN_CONFIDENCE = 0.7
    ACTION_LIMIT = 2

    def __init__(self, config: AutomationConfig | None = None):
        self.config = config or AutomationConfig()

    def generate_suggestions(
        self, notes: list[Note], graph: KnowledgeGraph, now: datetime | None = None
    ) -> list[AISuggestion]:
        """
        Generate suggestions for a snapshot of notes and graph.

        Returns:
            Suggestions sorted by descending confidence
        """
        now = now or datetime.now()
        by_id = {n.id: n for n in notes}
        suggestions: list[AISuggestion] = []

        def make(kind: SuggestionType, title: str, description: str, data, confidence: float):
            suggestions.append(
                AISuggestion(
                    id=generate_suggestion_id(),
                    type=kind,
                    title=title,
                    description=description,
                    data=data,
                    confidence=confidence,
                    created_at=now,
                )
            )

        # 1. Duplicates
        recent = _newest_first(notes)[: self.RECENT_DUPLICATE_WINDOW]
        for group in group_duplicates(recent, notes, self.config.duplicate_threshold):
            members = [by_id[i] for i in group.note_ids]
            merge = suggest_merge(members, group.similarity)
            if merge is None:
                continue
            oldest = by_id[merge.note_ids[0]]
            make(
                SuggestionType.DUPLICATE,
                f"Possible duplicates: {oldest.preview(40)}",
                f"{len(members)} very similar notes detected",
                merge,
                merge.confidence,
            )

        # 2. Emerging projects
        for project in detect_emerging_projects(notes, graph):
            if project.confidence >= self.EMERGING_MIN_CONFIDENCE:
                make(
                    SuggestionType.EMERGING_PROJECT,
                    f'New project detected: "{project.name}"',
                    project.reason,
                    project,
                    project.confidence,
                )

        # 3. Cleanup
        cleanup = [
            *detect_outdated_notes(notes, self.config.outdated_days, now),
            *detect_incomplete_tasks(notes),
            *detect_ambiguous_notes(notes),
        ]
        titles = {
            CleanupType.OUTDATED: "Outdated note",
            CleanupType.INCOMPLETE: "Incomplete task",
            CleanupType.AMBIGUOUS: "Unclear note",
        }
        for item in cleanup[: self.CLEANUP_LIMIT]:
            if item.confidence < self.CLEANUP_MIN_CONFIDENCE:
                continue
            note = by_id.get(item.note_id)
            preview = note.preview(40) if note else item.note_id
            make(
                SuggestionType.CLEANUP,
                f"{titles[item.cleanup_type]}: {preview}",
                item.reason,
                item,
                item.confidence,
            )

        # 4. Next actions
        for action in suggest_next_actions(notes, now, self.config.duplicate_threshold)[: self.ACTION_LIMIT]:
            make(
                SuggestionType.ACTION,
                action.title,
                action.description,
                action,
                ACTION_CONFIDENCE[action.priority],
            )

        suggestions.sort(key=lambda s: s.confidence, reverse=True)
        logger.debug(f"Generated {len(suggestions)} suggestions from {len(notes)} notes")
        return suggestions

    def project_suggestions(
        self, notes: list[Note], graph: KnowledgeGraph, now: datetime | None = None
    ) -> list[AISuggestion]:
        """
        Suggestions to add new notes to existing projects they do not name yet.

        Args:
            notes: Notes that were just indexed into ``graph``
            graph: Knowledge graph including those notes
        """
        now = now or datetime.now()
        suggestions = []
        for note in notes:
            named = set(note.entities.projects) if note.entities else set()
            for match in detect_project_matches(note, graph):
                if match.project_name in named:
                    continue
                suggestions.append(
                    AISuggestion(
                        id=generate_suggestion_id(),
                        type=SuggestionType.PROJECT,
                        title=f'Add to project "{match.project_name}": {note.preview(40)}',
                        description=match.reason,
                        data=match,
                        confidence=match.confidence,
                        created_at=now,
                    )
                )
        return suggestions

    async def run(
        self,
        notes: list[Note],
        graph: KnowledgeGraph,
        repository: SuggestionRepository,
        now: datetime | None = None,
    ) -> list[AISuggestion]:
        """
        Generate and persist suggestions.

        Returns:
            Only the suggestions that were new (not already pending)
        """
        generated = self.generate_suggestions(notes, graph, now)
        added = await repository.add_many(generated)
        logger.bind(notes=len(notes)).info(
            f"Automation run: {len(generated)} generated, {len(added)} new"
        )
        return added


__all__ = [
    "AutomationEngine",
    "auto_assign_project",
    "auto_tag_topics",
    "detect_ambiguous_notes",
    "detect_duplicates",
    "detect_emerging_projects",
    "detect_incomplete_tasks",
    "detect_outdated_notes",
    "detect_project_matches",
    "detect_topic_clusters",
    "find_topic_pairs",
    "group_duplicates",
    "suggest_merge",
    "suggest_next_actions",
]
