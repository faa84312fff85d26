"""Tests for the AI gateway client and its post-processing."""

from __future__ import annotations

import asyncio

import pytest

from vitaldash.core.llm.client import GatewayClient
from vitaldash.core.llm.provider import GatewayError, create_provider
from vitaldash.core.llm.providers.mock import MockProvider
from vitaldash.core.llm.response import clean_content, enforce_disclaimer
from vitaldash.core.llm.system_prompt import AI_DISCLAIMER, HEALTH_ASSISTANT_SYSTEM_PROMPT


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class TestPostProcessing:
    def test_disclaimer_appended_once(self):
        content, flags = enforce_disclaimer("All values normal.", "Consult your doctor.")
        assert content.endswith("Disclaimer: Consult your doctor.")
        assert flags == ["disclaimer_appended"]

    def test_disclaimer_already_present(self):
        text = "All values normal.\n\nconsult   your DOCTOR."
        content, flags = enforce_disclaimer(text, "Consult your doctor.")
        assert content == text
        assert flags == []

    def test_no_disclaimer_requested(self):
        assert enforce_disclaimer("Hi", None) == ("Hi", [])

    def test_clean_content(self):
        assert clean_content("  text \n") == "text"
        assert clean_content("   ").startswith("No response was generated")


class TestGatewayClient:
    def test_system_prompt_wraps_task_instructions(self):
        provider = MockProvider()
        gateway = GatewayClient(provider)
        _run(gateway.complete("Summarize the report.", [{"role": "user", "content": "Hi"}]))

        assert provider.last_system_message.startswith(HEALTH_ASSISTANT_SYSTEM_PROMPT.strip()[:40])
        assert "Summarize the report." in provider.last_system_message
        assert provider.last_messages == [{"role": "user", "content": "Hi"}]

    def test_raw_content_excludes_disclaimer(self):
        gateway = GatewayClient(MockProvider(response_content="  Glucose elevated.  "))
        response = _run(gateway.complete("task", [{"role": "user", "content": "x"}], disclaimer=AI_DISCLAIMER))

        assert response.raw_content == "Glucose elevated."
        assert response.content.startswith("Glucose elevated.")
        assert AI_DISCLAIMER.strip() in response.content
        assert response.flags == ["disclaimer_appended"]
        assert response.model == "mock"
        assert response.usage["output_tokens"] == 2

    def test_gateway_error_propagates(self):
        gateway = GatewayClient(MockProvider(error=GatewayError(429)))
        with pytest.raises(GatewayError) as excinfo:
            _run(gateway.complete("task", [{"role": "user", "content": "x"}]))
        assert excinfo.value.is_rate_limited
        assert not excinfo.value.is_quota_exhausted


class TestProviderFactory:
    def test_mock(self):
        assert isinstance(create_provider("mock"), MockProvider)

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown LLM provider"):
            create_provider("nope")

    def test_error_message_default(self):
        assert str(GatewayError(402)) == "AI gateway error 402"
        assert GatewayError(402).is_quota_exhausted
