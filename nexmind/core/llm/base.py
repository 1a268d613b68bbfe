"""
Abstract base class for LLM providers.
Handles chat completion with an optional system prompt and JSON mode.
"""

from abc import ABC, abstractmethod


def extract_json(content: str) -> str:
    """
    Strip markdown code fences and surrounding prose from a JSON answer.

    Args:
        content: Raw model output

    Returns:
        The substring most likely to be the JSON object
    """
    content = content.strip()

    if "```json" in content:
        content = content.split("```json")[1].split("```")[0].strip()
    elif "```" in content:
        content = content.split("```")[1].split("```")[0].strip()

    # Prose before or after the object
    start = content.find("{")
    end = content.rfind("}")
    if start > 0 or (end != -1 and end < len(content) - 1):
        if start != -1 and end > start:
            content = content[start : end + 1]

    return content


class LLMProvider(ABC):
    """
    Abstract base for LLM chat providers.

    Responsibilities:
    - Single-turn chat completion (system + user message)
    - JSON mode for machine-readable answers
    """

    @abstractmethod
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
        Generate a completion.

        Args:
            prompt: User message
            system: Optional system prompt
            json_mode: Ask the provider for a JSON object answer
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            **kwargs: Provider-specific parameters

        Returns:
            Raw text content of the answer

        Raises:
            ValidationError: If the prompt is empty
            LLMError: If the provider call fails or returns nothing
        """
        pass

    async def close(self) -> None:
        """Close any open connections. No-op unless overridden."""
        return None


def build_messages(prompt: str, system: str | None) -> list[dict[str, str]]:
    messages = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})
    return messages
