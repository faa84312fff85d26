"""Mock LLM provider for testing and keyless local runs."""

from __future__ import annotations

from vitaldash.core.llm.provider import ChatMessage, GatewayError, ProviderResponse


class MockProvider:
    """Returns a canned response, or raises ``error`` when one is set."""

    def __init__(
        self,
        response_content: str = "Mock LLM response.",
        error: GatewayError | None = None,
    ) -> None:
        self.response_content = response_content
        self.error = error
        self.last_system_message: str = ""
        self.last_messages: list[ChatMessage] = []
        self.call_count: int = 0

    async def generate(
        self,
        system_message: str,
        messages: list[ChatMessage],
        max_tokens: int = 2048,
        temperature: float = 0.3,
    ) -> ProviderResponse:
        self.last_system_message = system_message
        self.last_messages = list(messages)
        self.call_count += 1
        if self.error is not None:
            raise self.error
        words_in = len(system_message.split()) + sum(len(m.get("content", "").split()) for m in messages)
        return ProviderResponse(
            content=self.response_content,
            input_tokens=words_in,
            output_tokens=len(self.response_content.split()),
            model="mock",
            latency_ms=0.0,
        )
