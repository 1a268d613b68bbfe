"""
Tests for OpenAI-compatible LLM provider.
"""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from nexmind.core.llm.openai import OpenAILLM
from nexmind.utils.exceptions import LLMError, ValidationError


def make_response(content):
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    return response


@pytest.fixture
def openai_llm():
    """Create OpenAI LLM for testing."""
    return OpenAILLM(
        api_key="test-key",
        model="llama-3.1-70b-versatile",
        base_url="https://api.groq.com/openai/v1",
        timeout=15.0,
    )


@pytest.mark.unit
@pytest.mark.asyncio
class TestOpenAILLM:
    """Test OpenAI LLM provider."""

    async def test_initialization(self, openai_llm):
        assert openai_llm.model == "llama-3.1-70b-versatile"
        assert openai_llm.client is not None
        assert openai_llm.client.max_retries == 0

    async def test_complete_simple(self, openai_llm):
        with patch.object(openai_llm.client.chat.completions, 'create', new_callable=AsyncMock) as mock_create:
            mock_create.return_value = make_response("test response")

            result = await openai_llm.complete("test prompt")

            assert result == "test response"
            mock_create.assert_called_once()

    async def test_complete_with_system_and_json_mode(self, openai_llm):
        with patch.object(openai_llm.client.chat.completions, 'create', new_callable=AsyncMock) as mock_create:
            mock_create.return_value = make_response('{"items": []}')

            await openai_llm.complete(
                "analyze",
                system="You are precise",
                json_mode=True,
                max_tokens=300,
                temperature=0.1,
            )

            call_args = mock_create.call_args
            assert call_args.kwargs["messages"][0] == {"role": "system", "content": "You are precise"}
            assert call_args.kwargs["response_format"] == {"type": "json_object"}
            assert call_args.kwargs["max_tokens"] == 300
            assert call_args.kwargs["temperature"] == 0.1

    async def test_no_response_format_without_json_mode(self, openai_llm):
        with patch.object(openai_llm.client.chat.completions, 'create', new_callable=AsyncMock) as mock_create:
            mock_create.return_value = make_response("ok")

            await openai_llm.complete("test")

            assert "response_format" not in mock_create.call_args.kwargs

    async def test_empty_prompt(self, openai_llm):
        with pytest.raises(ValidationError):
            await openai_llm.complete("  ")

    async def test_empty_content(self, openai_llm):
        with patch.object(openai_llm.client.chat.completions, 'create', new_callable=AsyncMock) as mock_create:
            mock_create.return_value = make_response("")

            with pytest.raises(LLMError, match="empty"):
                await openai_llm.complete("test")

    async def test_api_error_wrapped(self, openai_llm):
        with patch.object(openai_llm.client.chat.completions, 'create', new_callable=AsyncMock) as mock_create:
            mock_create.side_effect = RuntimeError("HTTP 500")

            with pytest.raises(LLMError, match="HTTP 500"):
                await openai_llm.complete("test")
