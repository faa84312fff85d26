"""Health assistant: packages user questions into function calls and returns the text."""

from __future__ import annotations

import logging
from typing import Any

from vitaldash.core.functions.client import FunctionInvocationError, FunctionsClient
from vitaldash.core.llm.provider import ChatMessage
from vitaldash.domains.health.domain_logic.notifications import Notifier
from vitaldash.domains.health.prompts.templates import PromptTemplates

logger = logging.getLogger(__name__)

MAX_CHAT_HISTORY = 20

EMERGENCY_CONTACTS: list[dict[str, str]] = [
    {"name": "Emergency Services", "number": "112", "description": "Universal emergency number"},
    {"name": "Police", "number": "100", "description": "Police emergency helpline"},
    {"name": "Ambulance", "number": "108", "description": "Medical emergency services"},
    {"name": "Fire Brigade", "number": "101", "description": "Fire emergency services"},
]

HEALTH_DISCLAIMER = (
    "This platform is for educational and informational purposes only. "
    "The information provided should not replace professional medical advice, "
    "diagnosis, or treatment. Always consult a licensed healthcare professional "
    "before taking any medication or making health decisions. In case of "
    "emergency, call your local emergency number immediately or visit the "
    "nearest hospital."
)


class HealthAssistant:
    """Every method returns the assistant's text, or None after a notification."""

    def __init__(
        self,
        functions: FunctionsClient,
        templates: PromptTemplates,
        notifier: Notifier,
    ) -> None:
        self._functions = functions
        self._templates = templates
        self._notifier = notifier
        self.history: list[ChatMessage] = []

    def _blank(self, value: str, what: str) -> bool:
        if value and value.strip():
            return False
        self._notifier.error(f"Please enter {what}")
        return True

    async def _call(self, name: str, body: dict[str, Any], failure: str, key: str) -> str | None:
        try:
            result = await self._functions.invoke(name, body)
        except FunctionInvocationError as exc:
            logger.warning("Assistant call %s failed: %d", name, exc.status_code)
            self._notifier.error(exc.message, title=failure)
            return None
        text = result.get(key)
        if not isinstance(text, str) or not text:
            self._notifier.error("The assistant returned no answer", title=failure)
            return None
        return text

    async def _chat_once(self, content: str, failure: str) -> str | None:
        body = {"messages": [{"role": "user", "content": content}]}
        return await self._call("health-chat", body, failure, "response")

    async def ask_about_reports(self, query: str) -> str | None:
        if self._blank(query, "a question"):
            return None
        content = self._templates.get("report_query").render_user(query=query.strip())
        return await self._chat_once(content, "AI search failed")

    async def medicine_info(self, medicine_name: str) -> str | None:
        if self._blank(medicine_name, "a medicine name"):
            return None
        content = self._templates.get("medicine_info").render_user(medicine_name=medicine_name.strip())
        return await self._chat_once(content, "Failed to fetch medicine information")

    async def check_symptoms(self, symptoms: str) -> str | None:
        if self._blank(symptoms, "your symptoms"):
            return None
        content = self._templates.get("symptom_check").render_user(symptoms=symptoms.strip())
        return await self._chat_once(content, "Failed to analyze symptoms")

    async def chat(self, message: str) -> str | None:
        """Continue the running conversation; the exchange is kept only on success."""
        if self._blank(message, "a message"):
            return None
        conversation = [*self.history, {"role": "user", "content": message.strip()}]
        reply = await self._call("health-chat", {"messages": conversation}, "Chat failed", "response")
        if reply is None:
            return None
        self.history = [*conversation, {"role": "assistant", "content": reply}][-MAX_CHAT_HISTORY:]
        return reply

    def reset_chat(self) -> None:
        self.history = []

    async def analyze_vitals(
        self,
        hr: float | None = None,
        spo2: float | None = None,
        temp: float | None = None,
    ) -> str | None:
        """Interpret a vitals snapshot; with no vitals, return general guidance."""
        vitals = {k: v for k, v in (("hr", hr), ("spo2", spo2), ("temp", temp)) if v is not None}
        if not vitals:
            content = self._templates.get("general_guidance").render_user()
            return await self._chat_once(content, "Failed to analyze vitals")
        return await self._call("analyze-vitals", vitals, "Failed to analyze vitals", "analysis")
