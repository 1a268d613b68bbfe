"""Knowledge graph persistence as one snapshot under ``nexmind_knowledge_graph``."""

from datetime import datetime

from pydantic import ValidationError as PydanticValidationError

from nexmind.core.storage.base import KeyValueStore
from nexmind.models.graph import KnowledgeGraph
from nexmind.utils.exceptions import StoreError
from nexmind.utils.logger import get_logger

logger = get_logger(__name__)

GRAPH_KEY = "nexmind_knowledge_graph"


class GraphRepository:
    """Loads and saves the whole graph."""

    def __init__(self, store: KeyValueStore, key: str = GRAPH_KEY):
        self.store = store
        self.key = key

    async def load(self) -> KnowledgeGraph:
        """Stored graph, or an empty graph when missing or unreadable."""
        try:
            raw = await self.store.get(self.key)
        except StoreError as e:
            logger.error(f"Failed to load knowledge graph, starting empty: {e.message}")
            return KnowledgeGraph()

        if raw is None:
            return KnowledgeGraph()

        try:
            return KnowledgeGraph.model_validate(raw)
        except PydanticValidationError as e:
            logger.error(f"Stored knowledge graph is invalid, starting empty: {e}")
            return KnowledgeGraph()

    async def save(self, graph: KnowledgeGraph) -> None:
        graph.last_updated = datetime.now()
        await self.store.set(self.key, graph.model_dump(mode="json"))
        logger.bind(nodes=len(graph.nodes), edges=len(graph.edges)).debug("Knowledge graph saved")
