"""
Factory for creating embedder providers.
"""

from nexmind.config import EmbedderConfig
from nexmind.core.embeddings.base import Embedder
from nexmind.core.embeddings.hashing import DEFAULT_DIMENSION, HashEmbedder
from nexmind.core.embeddings.ollama import OllamaEmbedder
from nexmind.core.embeddings.openai import OpenAIEmbedder
from nexmind.utils.exceptions import ConfigurationError


class EmbedderFactory:
    """Factory for creating embedder providers from configuration."""

    @staticmethod
    def create(config: EmbedderConfig) -> Embedder:
        """
        Create embedder from configuration.

        Args:
            config: Embedder configuration

        Returns:
            Embedder instance

        Raises:
            ConfigurationError: If provider is not supported or lacks an API key
        """
        if config.provider == "hash":
            return HashEmbedder(dimension=config.dimension or DEFAULT_DIMENSION)
        elif config.provider == "ollama":
            return OllamaEmbedder(host=config.base_url, model=config.model, timeout=config.timeout)
        elif config.provider == "openai":
            if not config.api_key:
                raise ConfigurationError("OpenAI API key is required for the openai embedder")
            return OpenAIEmbedder(
                api_key=config.api_key,
                model=config.model,
                timeout=config.timeout,
            )
        else:
            raise ConfigurationError(f"Unsupported embedder provider: {config.provider}")
