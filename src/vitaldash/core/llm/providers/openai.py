"""OpenAI-compatible gateway provider."""

from __future__ import annotations

import time

from vitaldash.core.llm.provider import ChatMessage, GatewayError, ProviderResponse


class OpenAIProvider:
    """Chat completions through the OpenAI SDK.

    ``base_url`` points the SDK at any OpenAI-compatible gateway.
    """

    def __init__(self, api_key: str, model: str = "gpt-4o", base_url: str = "") -> None:
        import openai

        self._openai = openai
        self.client = openai.AsyncOpenAI(api_key=api_key, base_url=base_url or None)
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
            response = await self.client.chat.completions.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                messages=[{"role": "system", "content": system_message}, *messages],
            )
        except self._openai.APIStatusError as exc:
            raise GatewayError(exc.status_code, exc.message) from exc
        except self._openai.APIConnectionError as exc:
            raise GatewayError(0, str(exc)) from exc
        elapsed_ms = (time.monotonic() - start) * 1000

        choice = response.choices[0] if response.choices else None
        content = (choice.message.content or "") if choice else ""
        usage = response.usage
        return ProviderResponse(
            content=content,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            model=self.model,
            latency_ms=elapsed_ms,
        )
