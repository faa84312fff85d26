"""Integration tests for the VitalDash MCP server."""

from __future__ import annotations

import asyncio
import json

import pytest
from fastmcp import Client

from vitaldash.core.server.app import create_app


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _json(result) -> dict:
    blocks = getattr(result, "content", result)
    return json.loads(blocks[0].text)


ALL_EXPECTED_TOOLS = [
    "health_check",
    "sign_up",
    "sign_in",
    "sign_out",
    "dashboard_overview",
    "list_devices",
    "add_device",
    "select_device",
    "current_vitals",
    "upload_report",
    "list_reports",
    "get_report",
    "download_report",
    "delete_report",
    "analyze_report",
    "list_alerts",
    "dismiss_alert",
    "ask_about_reports",
    "health_chat",
    "medicine_info",
    "check_symptoms",
    "analyze_vitals",
    "emergency_contacts",
    "audit_summary",
]


@pytest.fixture
def client(backend):
    """An MCP client connected to a server over the in-memory backend."""
    mcp = create_app(backend_override=backend)
    return Client(mcp)


def test_server_starts_and_lists_tools(client):
    """Server should start and expose all registered tools."""
    async def _check():
        async with client:
            tools = await client.list_tools()
            tool_names = [t.name for t in tools]
            for expected in ALL_EXPECTED_TOOLS:
                assert expected in tool_names, f"Missing tool: {expected}"
    _run(_check())


def test_health_check_returns_ok(client):
    """health_check reports the provider and the in-process functions URL."""
    async def _check():
        async with client:
            payload = _json(await client.call_tool("health_check", {}))
            assert payload["status"] == "ok"
            assert payload["llm_provider"] == "mock"
            assert payload["schema_version"] == 2
            assert payload["functions_url"] == "http://vitaldash.internal/functions/v1"
            assert payload["signed_in"] is False
    _run(_check())


def test_dashboard_tools_require_sign_in(client):
    async def _check():
        async with client:
            for tool in ("dashboard_overview", "list_devices", "list_reports", "list_alerts", "current_vitals"):
                payload = _json(await client.call_tool(tool, {}))
                assert payload["status"] == "error", tool
                assert "Not signed in" in payload["message"]
    _run(_check())


def test_sign_in_rejects_bad_credentials(client):
    async def _check():
        async with client:
            payload = _json(await client.call_tool("sign_in", {"email": "x@example.com", "password": "wrongpw"}))
            assert payload == {"status": "error", "message": "Invalid login credentials"}
    _run(_check())


def test_sign_up_rejects_over_long_password(client):
    async def _check():
        async with client:
            payload = _json(await client.call_tool(
                "sign_up", {"email": "long@example.com", "password": "p" * 80}
            ))
            assert payload["status"] == "error"
            assert "at most 72 bytes" in payload["message"]
    _run(_check())


def test_emergency_contacts_without_sign_in(client):
    async def _check():
        async with client:
            payload = _json(await client.call_tool("emergency_contacts", {}))
            assert [c["number"] for c in payload["contacts"]] == ["112", "100", "108", "101"]
    _run(_check())


def test_resources_listed(client):
    async def _check():
        async with client:
            resources = await client.list_resources()
            uris = {str(r.uri) for r in resources}
            assert "vitaldash://emergency-contacts" in uris
            assert "vitaldash://disclaimer" in uris
            assert "vitaldash://report-types" in uris
    _run(_check())


def test_prompts_listed(client):
    async def _check():
        async with client:
            prompts = await client.list_prompts()
            names = {p.name for p in prompts}
            assert {"report_review_prompt", "vitals_check_prompt"} <= names
    _run(_check())
