"""VitalDash MCP Server: application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging
from pathlib import Path

import httpx
from fastmcp import FastMCP
from starlette.applications import Starlette

from vitaldash.core.backend.client import BackendClient
from vitaldash.core.backend.rest import build_rest_routes
from vitaldash.core.config.settings import Settings, get_settings
from vitaldash.core.llm.client import GatewayClient
from vitaldash.core.llm.provider import LLMProvider, create_provider
from vitaldash.domains.health.domain_logic.dashboard import DashboardSession
from vitaldash.domains.health.functions.base import FunctionContext
from vitaldash.domains.health.functions.routes import FUNCTIONS_PREFIX, build_function_routes
from vitaldash.domains.health.prompts.health_prompts import register_health_prompts
from vitaldash.domains.health.prompts.templates import DEFAULT_TEMPLATES_PATH, load_prompt_templates
from vitaldash.domains.health.resources.dashboard_resources import register_dashboard_resources
from vitaldash.domains.health.tools.account_tools import register_account_tools
from vitaldash.domains.health.tools.alert_tools import register_alert_tools
from vitaldash.domains.health.tools.assistant_tools import register_assistant_tools
from vitaldash.domains.health.tools.audit_tools import register_audit_tools
from vitaldash.domains.health.tools.device_tools import register_device_tools
from vitaldash.domains.health.tools.report_tools import register_report_tools
from vitaldash.domains.health.tools.telemetry_tools import register_telemetry_tools

logger = logging.getLogger(__name__)

SERVER_NAME = "VitalDash"
SERVER_VERSION = "0.1.0"

# Base URL used when the functions are reached in-process.
_LOCAL_FUNCTIONS_URL = f"http://vitaldash.internal{FUNCTIONS_PREFIX}"


def _select_provider(settings: Settings) -> tuple[str, LLMProvider]:
    if settings.llm_provider == "mock":
        provider_name = "mock"
        api_key = ""
        model = ""
    elif settings.llm_provider == "anthropic":
        api_key = settings.anthropic_api_key
        model = settings.anthropic_model
        provider_name = "anthropic" if api_key else "mock"
    elif settings.llm_provider == "openai":
        api_key = settings.openai_api_key
        model = settings.openai_model
        provider_name = "openai" if api_key else "mock"
    else:  # pragma: no cover
        raise ValueError(f"Unknown LLM provider: {settings.llm_provider!r}")

    if provider_name == "mock" and settings.llm_provider != "mock":
        logger.warning(
            "No API key configured for provider '%s'; falling back to mock provider",
            settings.llm_provider,
        )

    provider = create_provider(
        provider_name=provider_name,
        api_key=api_key,
        model=model,
        base_url=settings.openai_base_url,
    )
    return provider_name, provider


def create_app(
    *,
    backend_override: BackendClient | None = None,
    provider_override: LLMProvider | None = None,
    functions_transport_override: httpx.AsyncBaseTransport | None = None,
    templates_path: str | Path = DEFAULT_TEMPLATES_PATH,
) -> FastMCP:
    """Create and configure the VitalDash MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Opens the backend (database, object storage, realtime hub, auth)
    3. Creates the AI gateway client and loads the prompt templates
    4. Mounts the REST and serverless function routes
    5. Creates the dashboard session and registers tools, resources and prompts
    """
    settings = get_settings()

    # --- Server instance ---
    server = FastMCP(
        SERVER_NAME,
        instructions=(
            "VitalDash personal health dashboard. Register devices and watch live "
            "vitals, upload and analyze medical reports, review health alerts, and "
            "ask the AI health assistant. Sign in before using dashboard tools. "
            "AI output is informational and never a medical diagnosis."
        ),
    )

    # --- Backend ---
    backend = backend_override if backend_override is not None else BackendClient.from_settings(settings)

    # --- AI gateway ---
    if provider_override is not None:
        provider_name, provider = "override", provider_override
    else:
        provider_name, provider = _select_provider(settings)
    gateway = GatewayClient(provider, provider_name=provider_name)
    templates = load_prompt_templates(templates_path)

    # --- HTTP routes: row inserts and serverless functions ---
    function_routes = build_function_routes(FunctionContext(
        backend=backend,
        gateway=gateway,
        templates=templates,
        max_text_chars=settings.max_report_chars,
    ))
    for route in [*build_rest_routes(backend), *function_routes]:
        server.custom_route(route.path, methods=sorted(route.methods or []))(route.endpoint)
    logger.info("Mounted %d function routes under %s", len(function_routes), FUNCTIONS_PREFIX)

    if settings.functions_url:
        functions_url = settings.functions_url
        functions_transport = functions_transport_override
    else:
        functions_url = _LOCAL_FUNCTIONS_URL
        functions_transport = functions_transport_override or httpx.ASGITransport(
            app=Starlette(routes=function_routes)
        )

    # --- Dashboard ---
    dashboard = DashboardSession(
        backend,
        templates,
        functions_url=functions_url,
        functions_transport=functions_transport,
        window_size=settings.telemetry_window,
        max_upload_bytes=settings.max_upload_bytes,
        max_report_chars=settings.max_report_chars,
    )

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        return {
            "status": "ok",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "llm_provider": provider_name,
            "schema_version": backend.database.get_schema_version(),
            "functions_url": functions_url,
            "signed_in": dashboard.access_token is not None,
            "realtime_channels": len(backend.realtime.open_channels),
        }

    register_account_tools(server, dashboard)
    register_device_tools(server, dashboard)
    register_telemetry_tools(server, dashboard)
    register_report_tools(server, dashboard)
    register_alert_tools(server, dashboard)
    register_assistant_tools(server, dashboard)
    register_audit_tools(server, dashboard)
    logger.info("Dashboard tools registered")

    # --- Register resources ---
    register_dashboard_resources(server)

    # --- Register prompts ---
    register_health_prompts(server)

    return server


# Module-level instance for FastMCP discovery ("...app.py:mcp").
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
