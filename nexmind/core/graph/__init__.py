"""Knowledge graph construction and queries."""
from nexmind.core.graph.builder import (
    SIMILARITY_THRESHOLD,
    add_entity_nodes,
    add_note,
    add_similarity_edges,
    add_topic_nodes,
    build_from_notes,
    entities_for_note,
    entity_node_id,
    index_note,
    normalize_label,
    note_node_id,
    remove_note,
    similar_notes_from_graph,
    stats,
    top_entities,
)

__all__ = [
    "SIMILARITY_THRESHOLD",
    "normalize_label",
    "note_node_id",
    "entity_node_id",
    "add_note",
    "add_entity_nodes",
    "add_topic_nodes",
    "add_similarity_edges",
    "index_note",
    "build_from_notes",
    "remove_note",
    "similar_notes_from_graph",
    "entities_for_note",
    "top_entities",
    "stats",
]
