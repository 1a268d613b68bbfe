"""
Tests for LLM base helpers.
"""

import json

import pytest

from nexmind.core.llm.base import LLMProvider, build_messages, extract_json


@pytest.mark.unit
class TestExtractJson:
    """Test JSON extraction from raw model output."""

    def test_plain_json(self):
        assert extract_json('{"items": []}') == '{"items": []}'

    def test_json_code_fence(self):
        content = 'Here you go:\n```json\n{"items": [1]}\n```\nDone.'
        assert json.loads(extract_json(content)) == {"items": [1]}

    def test_bare_code_fence(self):
        content = '```\n{"a": 1}\n```'
        assert json.loads(extract_json(content)) == {"a": 1}

    def test_surrounding_prose(self):
        content = 'Sure! {"a": {"b": 2}} Hope that helps.'
        assert json.loads(extract_json(content)) == {"a": {"b": 2}}

    def test_no_json_returned_unchanged(self):
        assert extract_json("no json here") == "no json here"


@pytest.mark.unit
class TestBuildMessages:
    def test_with_system(self):
        assert build_messages("hi", "be brief") == [
            {"role": "system", "content": "be brief"},
            {"role": "user", "content": "hi"},
        ]

    def test_without_system(self):
        assert build_messages("hi", None) == [{"role": "user", "content": "hi"}]


class EchoLLM(LLMProvider):
    async def complete(self, prompt, system=None, json_mode=False, max_tokens=1500, temperature=0.2, **kwargs):
        return prompt


@pytest.mark.unit
@pytest.mark.asyncio
async def test_default_close_is_noop():
    llm = EchoLLM()
    assert await llm.complete("ping") == "ping"
    await llm.close()
