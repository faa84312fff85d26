"""Anthropic Claude provider."""

from __future__ import annotations

import time

from vitaldash.core.llm.provider import ChatMessage, GatewayError, ProviderResponse


class AnthropicProvider:
    """Claude provider using the Anthropic SDK."""

    def __init__(self, api_key: str, model: str = "claude-sonnet-4-5-20250929") -> None:
        import anthropic

        self._anthropic = anthropic
        self.client = anthropic.AsyncAnthropic(api_key=api_key)
        self.model = model

    async def generate(
        self,
        system_message: str,
        messages: list[ChatMessage],
        max_tokens: int = 2048,
        temperature: float = 0.3,
    ) -> ProviderResponse:
        start = time.monotonic()
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                system=system_message,
                messages=[m for m in messages if m.get("role") in ("user", "assistant")],
            )
        except self._anthropic.APIStatusError as exc:
            raise GatewayError(exc.status_code, exc.message) from exc
        except self._anthropic.APIConnectionError as exc:
            raise GatewayError(0, str(exc)) from exc
        elapsed_ms = (time.monotonic() - start) * 1000

        content = response.content[0].text if response.content else ""
        return ProviderResponse(
            content=content,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            model=self.model,
            latency_ms=elapsed_ms,
        )
