"""Tests for the health assistant (function calls stubbed with httpx.MockTransport)."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from vitaldash.core.functions.client import FunctionsClient
from vitaldash.domains.health.domain_logic.assistant import MAX_CHAT_HISTORY, HealthAssistant
from vitaldash.domains.health.domain_logic.notifications import Notifier


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class FakeFunctions:
    """Records calls and answers like the deployed functions."""

    def __init__(self, status_code: int = 200, error: str = "") -> None:
        self.calls: list[tuple[str, dict]] = []
        self.status_code = status_code
        self.error = error

    def __call__(self, request: httpx.Request) -> httpx.Response:
        name = request.url.path.rsplit("/", 1)[-1]
        body = json.loads(request.content)
        self.calls.append((name, body))
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"error": self.error})
        if name == "analyze-vitals":
            return httpx.Response(200, json={"analysis": "Vitals look fine."})
        return httpx.Response(200, json={"response": f"reply {len(self.calls)}"})


@pytest.fixture
def fake():
    return FakeFunctions()


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def assistant(fake, templates, notifier):
    functions = FunctionsClient(
        "http://functions.test/functions/v1",
        token_provider=lambda: "tok",
        transport=httpx.MockTransport(fake),
    )
    return HealthAssistant(functions, templates, notifier)


def test_ask_about_reports(assistant, fake):
    assert _run(assistant.ask_about_reports("What was my cholesterol?")) == "reply 1"
    name, body = fake.calls[0]
    assert name == "health-chat"
    assert body["messages"][0]["content"] == "Context: User has medical reports. Query: What was my cholesterol?"


def test_medicine_info(assistant, fake):
    _run(assistant.medicine_info(" Paracetamol "))
    assert 'medicine "Paracetamol"' in fake.calls[0][1]["messages"][0]["content"]


def test_check_symptoms(assistant, fake):
    _run(assistant.check_symptoms("fever and cough"))
    assert '"fever and cough"' in fake.calls[0][1]["messages"][0]["content"]


@pytest.mark.parametrize("method", ["ask_about_reports", "medicine_info", "check_symptoms", "chat"])
def test_blank_input_not_sent(assistant, fake, notifier, method):
    assert _run(getattr(assistant, method)("  ")) is None
    assert fake.calls == []
    assert notifier.drain()[0].description.startswith("Please enter")


def test_chat_keeps_history(assistant, fake):
    _run(assistant.chat("Hi"))
    _run(assistant.chat("Is 72 bpm normal?"))

    roles = [m["role"] for m in fake.calls[1][1]["messages"]]
    assert roles == ["user", "assistant", "user"]
    assert len(assistant.history) == 4

    assistant.reset_chat()
    assert assistant.history == []


def test_chat_history_bounded(assistant):
    for i in range(MAX_CHAT_HISTORY):
        _run(assistant.chat(f"message {i}"))
    assert len(assistant.history) == MAX_CHAT_HISTORY
    assert assistant.history[-1]["role"] == "assistant"


def test_failed_chat_keeps_history(templates, notifier):
    fake = FakeFunctions(status_code=429, error="Rate limit exceeded. Please try again later.")
    functions = FunctionsClient("http://f.test", token_provider=lambda: "tok", transport=httpx.MockTransport(fake))
    assistant = HealthAssistant(functions, templates, notifier)

    assert _run(assistant.chat("Hi")) is None
    assert assistant.history == []
    note = notifier.drain()[0]
    assert note.title == "Chat failed"
    assert note.description == "Rate limit exceeded. Please try again later."


def test_analyze_vitals(assistant, fake):
    assert _run(assistant.analyze_vitals(hr=72, spo2=98)) == "Vitals look fine."
    assert fake.calls[0] == ("analyze-vitals", {"hr": 72, "spo2": 98})


def test_analyze_vitals_without_readings_gives_guidance(assistant, fake):
    _run(assistant.analyze_vitals())
    name, body = fake.calls[0]
    assert name == "health-chat"
    assert "general health guidance" in body["messages"][0]["content"]
