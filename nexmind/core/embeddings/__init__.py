"""
Embedder abstraction layer for note embeddings.

Supported providers:
- Hash (offline, deterministic, default)
- Ollama (native SDK)
- OpenAI (official SDK)
"""
from nexmind.core.embeddings.base import Embedder
from nexmind.core.embeddings.hashing import HashEmbedder, word_hash
from nexmind.core.embeddings.ollama import OllamaEmbedder
from nexmind.core.embeddings.openai import OpenAIEmbedder

__all__ = [
    "Embedder",
    "HashEmbedder",
    "OllamaEmbedder",
    "OpenAIEmbedder",
    "word_hash",
]
