"""LLM provider protocol: abstract interface to the AI gateway."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

ChatMessage = dict[str, str]


@dataclass
class ProviderResponse:
    """Response from an LLM provider."""

    content: str
    input_tokens: int
    output_tokens: int
    model: str
    latency_ms: float


class GatewayError(Exception):
    """The AI gateway rejected or failed a completion request.

    ``status_code`` is the upstream HTTP status (0 when the gateway was
    unreachable). 429 means rate limited, 402 means credits exhausted.
    """

    def __init__(self, status_code: int, message: str = "") -> None:
        super().__init__(message or f"AI gateway error {status_code}")
        self.status_code = status_code

    @property
    def is_rate_limited(self) -> bool:
        return self.status_code == 429

    @property
    def is_quota_exhausted(self) -> bool:
        return self.status_code == 402


@runtime_checkable
class LLMProvider(Protocol):
    """Abstract interface for chat completions."""

    async def generate(
        self,
        system_message: str,
        messages: list[ChatMessage],
        max_tokens: int = 2048,
        temperature: float = 0.3,
    ) -> ProviderResponse: ...


def create_provider(
    provider_name: str,
    api_key: str = "",
    model: str = "",
    base_url: str = "",
) -> LLMProvider:
    """Factory function to create an LLM provider by name.

    Args:
        provider_name: "openai", "anthropic", or "mock"
        api_key: API key for the provider.
        model: Model identifier override.
        base_url: OpenAI-compatible gateway URL (openai only).
    """
    if provider_name == "openai":
        from vitaldash.core.llm.providers.openai import OpenAIProvider

        return OpenAIProvider(api_key=api_key, model=model or "gpt-4o", base_url=base_url)
    elif provider_name == "anthropic":
        from vitaldash.core.llm.providers.anthropic import AnthropicProvider

        return AnthropicProvider(api_key=api_key, model=model or "claude-sonnet-4-5-20250929")
    elif provider_name == "mock":
        from vitaldash.core.llm.providers.mock import MockProvider

        return MockProvider()
    else:
        raise ValueError(f"Unknown LLM provider: {provider_name}")
