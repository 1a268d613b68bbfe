"""
Ollama embedder using native ollama-python SDK.
"""

import ollama

from nexmind.core.embeddings.base import Embedder
from nexmind.utils.exceptions import EmbeddingError, ValidationError
from nexmind.utils.logger import get_logger

logger = get_logger(__name__)


class OllamaEmbedder(Embedder):
    """
    Ollama embedder for note embeddings.

    Supports models like nomic-embed-text and mxbai-embed-large.
    """

    def __init__(
        self,
        host: str = "http://localhost:11434",
        model: str = "nomic-embed-text",
        timeout: float = 30.0,
    ):
        """
        Initialize Ollama embedder.

        Args:
            host: Ollama server URL
            model: Embedding model name
            timeout: Request timeout in seconds
        """
        self.host = host
        self.model = model
        self.timeout = timeout
        self._dimension: int | None = None

        self.client = ollama.AsyncClient(host=host, timeout=timeout)

    async def embed(self, text: str, **kwargs) -> list[float]:
        """
        Embed one note text.

        Raises:
            ValidationError: If text is empty
            EmbeddingError: If Ollama fails
        """
        if not text or not text.strip():
            raise ValidationError("Text cannot be empty")

        vectors = await self._request([text], **kwargs)
        return vectors[0]

    async def batch_embed(self, texts: list[str], **kwargs) -> list[list[float]]:
        """Embed many texts in a single ``/api/embed`` call."""
        if not texts:
            raise ValidationError("Texts list cannot be empty")
        return await self._request(texts, **kwargs)

    async def _request(self, inputs: list[str], **kwargs) -> list[list[float]]:
        try:
            response = await self.client.embed(model=self.model, input=inputs, **kwargs)
            embeddings = response["embeddings"] if response else None
            if not embeddings or len(embeddings) != len(inputs):
                raise EmbeddingError("Ollama returned invalid embedding response")
            return [list(vector) for vector in embeddings]
        except EmbeddingError:
            raise
        except Exception as e:
            logger.bind(model=self.model, host=self.host, error=str(e)).error(
                f"Ollama embedding error: {e}"
            )
            raise EmbeddingError(f"Ollama embedding error: {e}") from e

    async def get_dimension(self) -> int:
        """Embedding dimension, cached after the first call."""
        if self._dimension is None:
            self._dimension = await super().get_dimension()
        return self._dimension

    @property
    def name(self) -> str:
        return f"ollama/{self.model}"
