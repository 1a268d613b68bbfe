"""
OpenAI-compatible LLM provider using the official SDK.
Used against Groq by default (``https://api.groq.com/openai/v1``).
"""

from openai import AsyncOpenAI

from nexmind.core.llm.base import LLMProvider, build_messages
from nexmind.utils.exceptions import LLMError, ValidationError
from nexmind.utils.logger import get_logger

logger = get_logger(__name__)


class OpenAILLM(LLMProvider):
    """
    OpenAI-compatible chat completion provider.

    Any endpoint speaking the OpenAI chat API works (OpenAI, Groq, vLLM ...).
    """

    def __init__(
        self,
        api_key: str,
        model: str = "llama-3.1-70b-versatile",
        base_url: str | None = None,
        timeout: float = 15.0,
    ):
        """
        Initialize provider.

        Args:
            api_key: API key for the endpoint
            model: Model name
            base_url: Optional custom base URL
            timeout: Request timeout in seconds
        """
        self.model = model
        # Retries are disabled: callers fall back to keyword analysis instead
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0)

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
        Generate completion using the chat completions API.

        Raises:
            ValidationError: If prompt is empty
            LLMError: If the API call fails or returns empty content
        """
        if not prompt or not prompt.strip():
            raise ValidationError("Prompt cannot be empty")

        params = {
            "model": self.model,
            "messages": build_messages(prompt, system),
            "temperature": temperature,
            "max_tokens": max_tokens,
            **kwargs,
        }
        if json_mode:
            params["response_format"] = {"type": "json_object"}

        try:
            response = await self.client.chat.completions.create(**params)
            content = response.choices[0].message.content if response.choices else None

            if not content:
                raise LLMError("LLM returned empty content", context={"model": self.model})

            return content
        except (ValidationError, LLMError):
            raise
        except Exception as e:
            logger.bind(model=self.model, error=str(e), error_type=type(e).__name__).error(
                f"OpenAI API error: {e}"
            )
            raise LLMError(f"OpenAI API error: {e}") from e

    async def close(self) -> None:
        """Close OpenAI client."""
        await self.client.close()
