"""Knowledge graph models: typed nodes and weighted edges over notes and entities."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, PrivateAttr


class GraphNodeType(str, Enum):
    """Types of nodes in the knowledge graph."""

    NOTE = "note"
    PERSON = "person"
    PLACE = "place"
    PROJECT = "project"
    TOPIC = "topic"


class EdgeType(str, Enum):
    """Types of edges between graph nodes."""

    MENTIONS = "mentions"  # note -> person/place
    TOPIC_OF = "topicOf"  # note -> topic
    PROJECT_OF = "projectOf"  # note -> project
    SIMILAR_TO = "similarTo"  # note <-> note
    RELATED_TO = "relatedTo"


ENTITY_NODE_TYPES = (
    GraphNodeType.PERSON,
    GraphNodeType.PLACE,
    GraphNodeType.PROJECT,
    GraphNodeType.TOPIC,
)


def edge_id(edge_type: EdgeType, source: str, target: str) -> str:
    """Deterministic edge ID: ``edge_<type>_<source>_<target>``."""
    return f"edge_{edge_type.value}_{source}_{target}"


class GraphNode(BaseModel):
    """
    Graph node.

    Note nodes use ``note_<note id>`` as ID; entity nodes use
    ``<type>_<normalized label>``. Metadata keys: note_id, category,
    created_at (note nodes) and count (entity nodes).
    """

    id: str
    type: GraphNodeType
    label: str
    embedding: list[float] | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def count(self) -> int:
        return int(self.metadata.get("count", 0))


class GraphEdge(BaseModel):
    """Directed, weighted graph edge."""

    id: str
    source: str  # Source node ID
    target: str  # Target node ID
    type: EdgeType
    strength: float = Field(default=1.0, ge=0.0, le=1.0)


class KnowledgeGraph(BaseModel):
    """
    Whole-graph snapshot.

    Invariants:
    - one node per ID; re-adding merges metadata and keeps the newest label
    - one edge per ID; re-adding keeps the maximum strength

    ``embedder`` records which embedder and dimension produced the note
    vectors the similarity edges were computed from.
    """

    nodes: list[GraphNode] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=datetime.now)
    embedder: str | None = None  # "<name>:<dimension>"

    _node_index: dict[str, GraphNode] = PrivateAttr(default_factory=dict)
    _edge_index: dict[str, GraphEdge] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        self.reindex()

    def reindex(self) -> None:
        """Rebuild lookup indexes after bulk changes to ``nodes``/``edges``."""
        self._node_index = {node.id: node for node in self.nodes}
        self._edge_index = {edge.id: edge for edge in self.edges}

    def get_node(self, node_id: str) -> GraphNode | None:
        return self._node_index.get(node_id)

    def get_edge(self, edge_id_: str) -> GraphEdge | None:
        return self._edge_index.get(edge_id_)

    def upsert_node(self, node: GraphNode) -> GraphNode:
        """
        Insert a node or merge it into the existing one with the same ID.

        Returns:
            The stored node
        """
        existing = self._node_index.get(node.id)
        if existing is None:
            self.nodes.append(node)
            self._node_index[node.id] = node
            return node

        existing.label = node.label
        existing.metadata = {**existing.metadata, **node.metadata}
        if node.embedding is not None:
            existing.embedding = node.embedding
        return existing

    def upsert_edge(self, edge: GraphEdge) -> GraphEdge:
        """Insert an edge or raise the existing edge's strength to the new maximum."""
        existing = self._edge_index.get(edge.id)
        if existing is None:
            self.edges.append(edge)
            self._edge_index[edge.id] = edge
            return edge

        existing.strength = max(existing.strength, edge.strength)
        return existing

    def remove_node(self, node_id: str) -> list[GraphEdge]:
        """
        Remove a node and every edge touching it.

        Returns:
            The removed edges
        """
        removed = [e for e in self.edges if e.source == node_id or e.target == node_id]
        self.nodes = [n for n in self.nodes if n.id != node_id]
        self.edges = [e for e in self.edges if e.source != node_id and e.target != node_id]
        self.reindex()
        return removed

    def nodes_of_type(self, node_type: GraphNodeType) -> list[GraphNode]:
        return [n for n in self.nodes if n.type == node_type]

    def edges_from(self, node_id: str, edge_type: EdgeType | None = None) -> list[GraphEdge]:
        return [
            e
            for e in self.edges
            if e.source == node_id and (edge_type is None or e.type == edge_type)
        ]

    def edges_to(self, node_id: str, edge_type: EdgeType | None = None) -> list[GraphEdge]:
        return [
            e
            for e in self.edges
            if e.target == node_id and (edge_type is None or e.type == edge_type)
        ]

    def touch(self) -> None:
        self.last_updated = datetime.now()

    def is_empty(self) -> bool:
        return not self.nodes
