"""
OpenAI embedder using official SDK.
Works with any OpenAI-compatible embeddings endpoint.
"""

from openai import AsyncOpenAI

from nexmind.core.embeddings.base import Embedder
from nexmind.utils.exceptions import EmbeddingError, ValidationError
from nexmind.utils.logger import get_logger

logger = get_logger(__name__)


class OpenAIEmbedder(Embedder):
    """
    OpenAI embedder for note embeddings.

    Supports models like text-embedding-3-small and text-embedding-3-large.
    """

    # Known dimensions for OpenAI embedding models
    _MODEL_DIMENSIONS = {
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
        "text-embedding-ada-002": 1536,
    }

    # OpenAI accepts up to 2048 inputs per request
    MAX_BATCH = 2048

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        base_url: str | None = None,
        timeout: float = 30.0,
    ):
        """
        Initialize OpenAI embedder.

        Args:
            api_key: API key
            model: Embedding model name
            base_url: Optional OpenAI-compatible base URL
            timeout: Request timeout in seconds
        """
        self.model = model
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout)

    async def embed(self, text: str, **kwargs) -> list[float]:
        """
        Embed one note text.

        Raises:
            ValidationError: If text is empty
            EmbeddingError: If the API call fails
        """
        if not text or not text.strip():
            raise ValidationError("Text cannot be empty")

        vectors = await self._request([text], **kwargs)
        return vectors[0]

    async def batch_embed(self, texts: list[str], **kwargs) -> list[list[float]]:
        """
        Embed many texts with the native batch API.

        Raises:
            ValidationError: If the list is empty
            EmbeddingError: If any request fails
        """
        if not texts:
            raise ValidationError("Texts list cannot be empty")

        embeddings: list[list[float]] = []
        for start in range(0, len(texts), self.MAX_BATCH):
            embeddings.extend(await self._request(texts[start : start + self.MAX_BATCH], **kwargs))
        return embeddings

    async def _request(self, inputs: list[str], **kwargs) -> list[list[float]]:
        try:
            response = await self.client.embeddings.create(model=self.model, input=inputs, **kwargs)
            if not response.data or len(response.data) != len(inputs):
                raise EmbeddingError(
                    "OpenAI returned an incomplete embedding response",
                    context={"expected": len(inputs), "received": len(response.data or [])},
                )
            return [item.embedding for item in response.data]
        except EmbeddingError:
            raise
        except Exception as e:
            logger.bind(model=self.model, num_texts=len(inputs), error_type=type(e).__name__).error(
                f"OpenAI embedding error: {e}"
            )
            raise EmbeddingError(f"OpenAI embedding error: {e}") from e

    async def get_dimension(self) -> int:
        if self.model in self._MODEL_DIMENSIONS:
            return self._MODEL_DIMENSIONS[self.model]
        return await super().get_dimension()

    @property
    def name(self) -> str:
        return f"openai/{self.model}"

    async def close(self) -> None:
        """Close OpenAI client."""
        await self.client.close()
