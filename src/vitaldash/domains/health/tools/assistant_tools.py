"""MCP tools for the AI health assistant.

The assistant never talks to the AI gateway directly: every question goes
through the serverless functions with the signed-in user's token, and the
function's audit row records whether health data left the server.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from vitaldash.domains.health.domain_logic.assistant import EMERGENCY_CONTACTS
from vitaldash.domains.health.domain_logic.dashboard import NotSignedInError
from vitaldash.domains.health.tools.common import NOT_SIGNED_IN, error, last_error, respond

if TYPE_CHECKING:
    from vitaldash.domains.health.domain_logic.dashboard import DashboardSession

logger = logging.getLogger(__name__)


def register_assistant_tools(mcp: FastMCP, dashboard: DashboardSession) -> None:
    """Register assistant tools on the MCP server."""

    def _answer(text: str | None, fallback: str, key: str = "response") -> str:
        if text is None:
            return last_error(dashboard, fallback)
        return respond(dashboard, {"status": "ok", key: text})

    @mcp.tool
    async def ask_about_reports(ctx: Context, query: str) -> str:
        """Ask the assistant a question about your medical reports."""
        try:
            dashboard.require_user()
        except NotSignedInError:
            return error(dashboard, NOT_SIGNED_IN)
        return _answer(await dashboard.assistant.ask_about_reports(query), "AI search failed")

    @mcp.tool
    async def health_chat(ctx: Context, message: str, reset: bool = False) -> str:
        """Chat with the health assistant; the conversation continues across calls.

        Args:
            message: Your message.
            reset: Start a new conversation first.
        """
        try:
            dashboard.require_user()
        except NotSignedInError:
            return error(dashboard, NOT_SIGNED_IN)
        if reset:
            dashboard.assistant.reset_chat()
        reply = await dashboard.assistant.chat(message)
        if reply is None:
            return last_error(dashboard, "Chat failed")
        return respond(dashboard, {
            "status": "ok",
            "response": reply,
            "turns": len(dashboard.assistant.history) // 2,
        })

    @mcp.tool
    async def medicine_info(ctx: Context, medicine_name: str) -> str:
        """Look up uses, dosage, side effects, precautions and interactions of a medicine."""
        try:
            dashboard.require_user()
        except NotSignedInError:
            return error(dashboard, NOT_SIGNED_IN)
        return _answer(
            await dashboard.assistant.medicine_info(medicine_name),
            "Failed to fetch medicine information",
        )

    @mcp.tool
    async def check_symptoms(ctx: Context, symptoms: str) -> str:
        """Describe symptoms and get possible conditions and a severity assessment (not a diagnosis)."""
        try:
            dashboard.require_user()
        except NotSignedInError:
            return error(dashboard, NOT_SIGNED_IN)
        return _answer(await dashboard.assistant.check_symptoms(symptoms), "Failed to analyze symptoms")

    @mcp.tool
    async def analyze_vitals(
        ctx: Context,
        hr: float | None = None,
        spo2: float | None = None,
        temp: float | None = None,
    ) -> str:
        """AI interpretation of vitals.

        Without arguments, the latest reading of the selected device is used;
        with no reading at all, general health guidance is returned.

        Args:
            hr: Heart rate in bpm.
            spo2: Blood oxygen saturation in %.
            temp: Body temperature in degrees Celsius.
        """
        try:
            dashboard.require_user()
        except NotSignedInError:
            return error(dashboard, NOT_SIGNED_IN)

        source = "arguments"
        if hr is None and spo2 is None and temp is None:
            latest = dashboard.monitor.latest
            if latest is not None:
                hr, spo2, temp = latest.hr, latest.spo2, latest.temp
                source = "latest_reading"
            else:
                source = "general_guidance"

        text = await dashboard.assistant.analyze_vitals(hr, spo2, temp)
        if text is None:
            return last_error(dashboard, "Failed to analyze vitals")
        return respond(dashboard, {"status": "ok", "source": source, "analysis": text})

    @mcp.tool
    async def emergency_contacts(ctx: Context) -> str:
        """Emergency helpline numbers."""
        return json.dumps({
            "status": "ok",
            "contacts": EMERGENCY_CONTACTS,
            "note": "In case of emergency, call your local emergency number immediately.",
        })
