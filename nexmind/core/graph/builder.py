"""
Knowledge graph builder.

Maintains the graph of notes and the entities they mention:

    note --mentions(0.9)--> person / place
    note --projectOf(0.95)--> project
    note --topicOf(0.85)--> topic
    note <--similarTo(score)--> note

Entity node IDs are derived from the normalized label, so "Maria" and
"maria" collapse into one node (two different people called Maria do too).
All functions mutate the graph in place; persisting it is the caller's job.
"""

import re
from collections import Counter
from typing import Any

from nexmind.core.similarity.engine import cosine_similarity
from nexmind.models.graph import (
    ENTITY_NODE_TYPES,
    EdgeType,
    GraphEdge,
    GraphNode,
    GraphNodeType,
    KnowledgeGraph,
    edge_id,
)
from nexmind.models.note import EntityBag, Note
from nexmind.utils.logger import get_logger

logger = get_logger(__name__)

SIMILARITY_THRESHOLD = 0.6
NOTE_LABEL_LENGTH = 50

MENTIONS_STRENGTH = 0.9
PROJECT_STRENGTH = 0.95
TOPIC_STRENGTH = 0.85

_WHITESPACE = re.compile(r"\s+")


def normalize_label(label: str) -> str:
    """Lower-case and replace whitespace runs with ``_``."""
    return _WHITESPACE.sub("_", label.strip().lower())


def note_node_id(note_id: str) -> str:
    return f"note_{note_id}"


def entity_node_id(node_type: GraphNodeType, label: str) -> str:
    return f"{node_type.value}_{normalize_label(label)}"


def add_note(graph: KnowledgeGraph, note: Note) -> GraphNode:
    """Upsert the node representing ``note``."""
    node = GraphNode(
        id=note_node_id(note.id),
        type=GraphNodeType.NOTE,
        label=note.preview(NOTE_LABEL_LENGTH),
        embedding=note.embedding,
        metadata={
            "note_id": note.id,
            "category": note.category.value,
            "created_at": note.created_at.isoformat(),
        },
    )
    return graph.upsert_node(node)


def _link_entity(
    graph: KnowledgeGraph,
    source_id: str,
    node_type: GraphNodeType,
    label: str,
    edge_type: EdgeType,
    strength: float,
) -> None:
    if not label or not label.strip():
        return

    target_id = entity_node_id(node_type, label)
    link_id = edge_id(edge_type, source_id, target_id)

    existing = graph.get_node(target_id)
    count = existing.count if existing else 0
    # A note counts once per entity, however often it is re-indexed
    if graph.get_edge(link_id) is None:
        count += 1

    graph.upsert_node(
        GraphNode(id=target_id, type=node_type, label=label.strip(), metadata={"count": count})
    )
    graph.upsert_edge(
        GraphEdge(id=link_id, source=source_id, target=target_id, type=edge_type, strength=strength)
    )


def add_entity_nodes(graph: KnowledgeGraph, note: Note) -> None:
    """Link the note to its persons, places and projects."""
    if not note.entities:
        return

    source_id = note_node_id(note.id)
    for person in note.entities.persons:
        _link_entity(graph, source_id, GraphNodeType.PERSON, person, EdgeType.MENTIONS, MENTIONS_STRENGTH)
    for place in note.entities.places:
        _link_entity(graph, source_id, GraphNodeType.PLACE, place, EdgeType.MENTIONS, MENTIONS_STRENGTH)
    for project in note.entities.projects:
        _link_entity(
            graph, source_id, GraphNodeType.PROJECT, project, EdgeType.PROJECT_OF, PROJECT_STRENGTH
        )


def add_topic_nodes(graph: KnowledgeGraph, note: Note, topics: list[str] | None = None) -> None:
    """Link the note to topic nodes (defaults to the note's own topics)."""
    source_id = note_node_id(note.id)
    for topic in topics if topics is not None else note.topics:
        _link_entity(graph, source_id, GraphNodeType.TOPIC, topic, EdgeType.TOPIC_OF, TOPIC_STRENGTH)


def add_similarity_edges(
    graph: KnowledgeGraph,
    note: Note,
    all_notes: list[Note],
    threshold: float = SIMILARITY_THRESHOLD,
) -> int:
    """
    Connect ``note`` to every sufficiently similar note, in both directions.

    Args:
        graph: Graph to mutate
        note: Note whose edges are computed
        all_notes: Candidate notes (the note itself and notes without vectors are skipped)
        threshold: Minimum cosine similarity

    Returns:
        Number of similar notes found

    Raises:
        VectorDimensionError: If two embeddings differ in length
    """
    if not note.embedding:
        return 0

    source_id = note_node_id(note.id)
    found = 0

    for other in all_notes:
        if other.id == note.id or not other.embedding:
            continue

        similarity = cosine_similarity(note.embedding, other.embedding)
        if similarity < threshold:
            continue

        found += 1
        strength = max(0.0, min(1.0, similarity))
        target_id = note_node_id(other.id)
        graph.upsert_edge(
            GraphEdge(
                id=edge_id(EdgeType.SIMILAR_TO, source_id, target_id),
                source=source_id,
                target=target_id,
                type=EdgeType.SIMILAR_TO,
                strength=strength,
            )
        )
        graph.upsert_edge(
            GraphEdge(
                id=edge_id(EdgeType.SIMILAR_TO, target_id, source_id),
                source=target_id,
                target=source_id,
                type=EdgeType.SIMILAR_TO,
                strength=strength,
            )
        )

    return found


def index_note(
    graph: KnowledgeGraph,
    note: Note,
    all_notes: list[Note],
    threshold: float = SIMILARITY_THRESHOLD,
) -> None:
    """Incrementally add one (new or edited) note to the graph."""
    add_note(graph, note)
    add_entity_nodes(graph, note)
    add_topic_nodes(graph, note)
    add_similarity_edges(graph, note, all_notes, threshold)
    graph.touch()


def build_from_notes(notes: list[Note], threshold: float = SIMILARITY_THRESHOLD) -> KnowledgeGraph:
    """Rebuild the whole graph: note nodes, then entities and topics, then similarity."""
    graph = KnowledgeGraph()

    for note in notes:
        add_note(graph, note)

    for note in notes:
        add_entity_nodes(graph, note)
        add_topic_nodes(graph, note)

    for note in notes:
        add_similarity_edges(graph, note, notes, threshold)

    graph.touch()
    logger.bind(nodes=len(graph.nodes), edges=len(graph.edges)).info(f"Knowledge graph built from {len(notes)} notes")
    return graph


def remove_note(graph: KnowledgeGraph, note_id: str) -> bool:
    """
    Drop a note node and its edges.

    Entity counts are decremented; entity nodes no longer referenced by any
    note are removed.

    Returns:
        True if the note was in the graph
    """
    node_id = note_node_id(note_id)
    if graph.get_node(node_id) is None:
        return False

    removed_edges = graph.remove_node(node_id)

    for edge in removed_edges:
        if edge.source != node_id:
            continue
        entity = graph.get_node(edge.target)
        if entity is None or entity.type not in ENTITY_NODE_TYPES:
            continue

        remaining = entity.count - 1
        if remaining <= 0 or not graph.edges_to(entity.id):
            graph.remove_node(entity.id)
        else:
            entity.metadata["count"] = remaining

    graph.touch()
    return True


# ═══════════════════════════════════════════════════════════
# QUERIES
# ═══════════════════════════════════════════════════════════


def similar_notes_from_graph(
    graph: KnowledgeGraph, note_id: str, limit: int = 3
) -> list[dict[str, Any]]:
    """
    Strongest ``similarTo`` neighbours of a note.

    Returns:
        Dicts with note_id, similarity and label, strongest first
    """
    edges = sorted(
        graph.edges_from(note_node_id(note_id), EdgeType.SIMILAR_TO),
        key=lambda e: e.strength,
        reverse=True,
    )[:limit]

    results = []
    for edge in edges:
        target = graph.get_node(edge.target)
        results.append(
            {
                "note_id": target.metadata.get("note_id", "") if target else "",
                "similarity": edge.strength,
                "label": target.label if target else "",
            }
        )
    return results


def entities_for_note(graph: KnowledgeGraph, note_id: str) -> EntityBag:
    """Entities linked from a note node, grouped by type."""
    bag = EntityBag()
    buckets = {
        GraphNodeType.PERSON: bag.persons,
        GraphNodeType.PLACE: bag.places,
        GraphNodeType.PROJECT: bag.projects,
        GraphNodeType.TOPIC: bag.topics,
    }

    for edge in graph.edges_from(note_node_id(note_id)):
        target = graph.get_node(edge.target)
        if target is not None and target.type in buckets:
            buckets[target.type].append(target.label)
    return bag


def top_entities(
    graph: KnowledgeGraph, node_type: GraphNodeType, limit: int = 10
) -> list[dict[str, Any]]:
    """Most mentioned entities of one type."""
    ranked = sorted(
        ({"label": n.label, "count": n.count or 1} for n in graph.nodes_of_type(node_type)),
        key=lambda item: item["count"],
        reverse=True,
    )
    return ranked[:limit]


def stats(graph: KnowledgeGraph) -> dict[str, Any]:
    """Node and edge counts per type."""
    node_counts = Counter(n.type.value for n in graph.nodes)
    edge_counts = Counter(e.type.value for e in graph.edges)
    return {
        "total_nodes": len(graph.nodes),
        "total_edges": len(graph.edges),
        "nodes": {t.value: node_counts.get(t.value, 0) for t in GraphNodeType},
        "edges": {t.value: edge_counts.get(t.value, 0) for t in EdgeType},
        "last_updated": graph.last_updated.isoformat(),
    }
