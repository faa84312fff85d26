"""Gateway client: the bridge between the AI functions and the LLM provider."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from vitaldash.core.llm.provider import ChatMessage, LLMProvider, ProviderResponse
from vitaldash.core.llm.response import clean_content, enforce_disclaimer
from vitaldash.core.llm.system_prompt import build_full_system_prompt

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Structured response from the AI gateway."""

    content: str
    raw_content: str
    model: str
    flags: list[str] = field(default_factory=list)
    usage: dict[str, int] = field(default_factory=dict)


class GatewayClient:
    """Sends chat completions to the configured provider.

    ``GatewayError`` from the provider propagates unchanged so that callers can
    map the upstream status to their own response.
    """

    def __init__(self, provider: LLMProvider, provider_name: str = "mock") -> None:
        self.provider = provider
        self.provider_name = provider_name

    async def complete(
        self,
        task_instructions: str,
        messages: list[ChatMessage],
        *,
        disclaimer: str | None = None,
        max_tokens: int = 2048,
        temperature: float = 0.3,
    ) -> LLMResponse:
        """Run one completion and post-process the text.

        ``raw_content`` is the model text as received (stripped); ``content``
        additionally carries the disclaimer when one is required.
        """
        full_system = build_full_system_prompt(task_instructions)

        provider_response: ProviderResponse = await self.provider.generate(
            system_message=full_system,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
        )

        logger.info(
            "AI gateway call: provider=%s, model=%s, tokens=%d+%d, latency=%.0fms",
            self.provider_name,
            provider_response.model,
            provider_response.input_tokens,
            provider_response.output_tokens,
            provider_response.latency_ms,
        )

        raw = clean_content(provider_response.content)
        content, flags = enforce_disclaimer(raw, disclaimer)

        return LLMResponse(
            content=content,
            raw_content=raw,
            model=provider_response.model,
            flags=flags,
            usage={
                "input_tokens": provider_response.input_tokens,
                "output_tokens": provider_response.output_tokens,
            },
        )
