"""
LLM provider abstraction layer for note analysis.

Supported providers:
- OpenAI-compatible endpoints such as Groq (official SDK)
- Ollama (native SDK)
"""
from nexmind.core.llm.base import LLMProvider, build_messages, extract_json
from nexmind.core.llm.ollama import OllamaLLM
from nexmind.core.llm.openai import OpenAILLM

__all__ = [
    "LLMProvider",
    "OllamaLLM",
    "OpenAILLM",
    "build_messages",
    "extract_json",
]
