"""
Ollama LLM provider using native ollama-python SDK.
"""

import ollama

from nexmind.core.llm.base import LLMProvider, build_messages
from nexmind.utils.exceptions import LLMError, ValidationError
from nexmind.utils.logger import get_logger

logger = get_logger(__name__)


class OllamaLLM(LLMProvider):
    """
    Ollama LLM provider.

    JSON mode maps to Ollama's ``format="json"``.
    """

    def __init__(
        self,
        host: str = "http://localhost:11434",
        model: str = "llama3.1:8b",
        timeout: float = 15.0,
    ):
        """
        Initialize Ollama LLM provider.

        Args:
            host: Ollama server URL
            model: Model name (e.g., "llama3.1", "mistral")
            timeout: Request timeout in seconds
        """
        self.host = host
        self.model = model
        self.timeout = timeout

        self.client = ollama.AsyncClient(host=host, timeout=timeout)

    async def complete(
        self,
        prompt: str,
        system: str | None = None,
        json_mode: bool = False,
        max_tokens: int = 1500,
        temperature: float = 0.2,
        **kwargs,
    ) -> str:
        """
        Generate completion using Ollama chat.

        Raises:
            ValidationError: If prompt is empty
            LLMError: If Ollama fails or returns empty content
        """
        if not prompt or not prompt.strip():
            raise ValidationError("Prompt cannot be empty")

        options = {
            "temperature": temperature,
            "num_predict": max_tokens,
            **kwargs.pop("options", {}),
        }

        try:
            response = await self.client.chat(
                model=self.model,
                messages=build_messages(prompt, system),
                format="json" if json_mode else None,
                options=options,
                **kwargs,
            )
            content = response["message"]["content"]
        except Exception as e:
            logger.bind(model=self.model, host=self.host, error=str(e)).error(
                f"Ollama chat error: {e}"
            )
            raise LLMError(f"Ollama chat error: {e}") from e

        if not content:
            raise LLMError("Ollama returned empty content", context={"model": self.model})
        return content
