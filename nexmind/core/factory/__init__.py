"""
Factory modules for creating NexMind components.

Provides factories for the LLM, the embedder and the storage backends.
"""

from nexmind.core.factory.embedder_factory import EmbedderFactory
from nexmind.core.factory.llm_factory import LLMFactory
from nexmind.core.factory.store_factory import StoreFactory

__all__ = [
    "LLMFactory",
    "EmbedderFactory",
    "StoreFactory",
]
