"""
Factory for creating LLM providers.
"""

from nexmind.config import LLMConfig
from nexmind.core.llm.base import LLMProvider
from nexmind.core.llm.ollama import OllamaLLM
from nexmind.core.llm.openai import OpenAILLM
from nexmind.utils.exceptions import ConfigurationError


class LLMFactory:
    """Factory for creating LLM providers from configuration."""

    @staticmethod
    def create(config: LLMConfig) -> LLMProvider:
        """
        Create LLM provider from configuration.

        Args:
            config: LLM configuration

        Returns:
            LLM provider instance

        Raises:
            ConfigurationError: If the provider is unknown or has no usable API key
        """
        if config.provider == "ollama":
            return OllamaLLM(host=config.base_url, model=config.model, timeout=config.timeout)
        elif config.provider == "openai":
            if not config.is_configured:
                raise ConfigurationError("An API key is required for the openai provider")
            return OpenAILLM(
                api_key=config.api_key,
                model=config.model,
                base_url=config.base_url,
                timeout=config.timeout,
            )
        else:
            raise ConfigurationError(f"Unsupported LLM provider: {config.provider}")

    @staticmethod
    def create_optional(config: LLMConfig) -> LLMProvider | None:
        """Provider when one is configured, otherwise None (keyword analysis only)."""
        if not config.is_configured:
            return None
        return LLMFactory.create(config)
