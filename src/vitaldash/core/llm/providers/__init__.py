"""LLM provider implementations."""

from vitaldash.core.llm.providers.anthropic import AnthropicProvider
from vitaldash.core.llm.providers.mock import MockProvider
from vitaldash.core.llm.providers.openai import OpenAIProvider

__all__ = ["AnthropicProvider", "MockProvider", "OpenAIProvider"]
