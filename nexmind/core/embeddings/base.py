"""
Abstract base class for embedding providers.
Turns note text into vectors for similarity search and graph edges.
"""

from abc import ABC, abstractmethod


class Embedder(ABC):
    """
    Abstract base for embedding providers.

    Responsibilities:
    - Generate vector embeddings for note text
    - Batch processing for graph rebuilds
    - Consistent vector dimensions (vectors of different providers are never mixed)
    """

    @abstractmethod
    async def embed(self, text: str, **kwargs) -> list[float]:
        """
        Generate embedding vector for text.

        Args:
            text: Text to embed
            **kwargs: Provider-specific parameters

        Returns:
            List of floats representing the embedding vector

        Raises:
            ValidationError: If text is invalid
            EmbeddingError: If embedding generation fails
        """
        pass

    async def batch_embed(self, texts: list[str], **kwargs) -> list[list[float]]:
        """
        Generate embeddings for multiple texts.

        Default implementation processes sequentially.

        Args:
            texts: List of texts to embed
            **kwargs: Provider-specific parameters

        Returns:
            List of embedding vectors (same order as input texts)
        """
        return [await self.embed(text, **kwargs) for text in texts]

    async def get_dimension(self) -> int:
        """
        Get the dimension of embeddings produced by this provider.

        Default implementation embeds a sample string.
        """
        sample = await self.embed("dimension check")
        return len(sample)

    @property
    def name(self) -> str:
        """Provider name recorded in logs."""
        return type(self).__name__

    async def close(self) -> None:
        """Release provider resources. No-op unless overridden."""
        return None
