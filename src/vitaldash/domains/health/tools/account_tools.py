"""MCP tools for signing in and the dashboard overview."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from vitaldash.core.auth.service import AuthError
from vitaldash.domains.health.domain_logic.dashboard import NotSignedInError
from vitaldash.domains.health.tools.common import NOT_SIGNED_IN, error, respond

if TYPE_CHECKING:
    from vitaldash.domains.health.domain_logic.dashboard import DashboardSession

logger = logging.getLogger(__name__)


def register_account_tools(mcp: FastMCP, dashboard: DashboardSession) -> None:
    """Register account and overview tools on the MCP server."""

    @mcp.tool
    async def sign_up(ctx: Context, email: str, password: str) -> str:
        """Create a dashboard account and sign in.

        Args:
            email: Account email address.
            password: At least 6 characters, at most 72 bytes.
        """
        try:
            user = dashboard.sign_up(email, password)
        except AuthError as exc:
            return error(dashboard, str(exc))
        return respond(dashboard, {"status": "ok", "user": {"id": user.id, "email": user.email}})

    @mcp.tool
    async def sign_in(ctx: Context, email: str, password: str) -> str:
        """Sign in to the dashboard."""
        try:
            session = dashboard.sign_in(email, password)
        except AuthError as exc:
            return error(dashboard, str(exc))
        return respond(dashboard, {
            "status": "ok",
            "user": {"id": session.user.id, "email": session.user.email},
            "expires_at": session.expires_at,
        })

    @mcp.tool
    async def sign_out(ctx: Context) -> str:
        """Sign out and close the live vitals view."""
        signed_out = dashboard.sign_out()
        return json.dumps({"status": "ok" if signed_out else "not_found", "signed_out": signed_out})

    @mcp.tool
    async def dashboard_overview(ctx: Context) -> str:
        """Show the dashboard: devices, live vitals of the selected device, and unread alerts.

        The first device is selected automatically when none is selected yet.
        """
        try:
            snapshot = dashboard.snapshot()
        except NotSignedInError:
            return error(dashboard, NOT_SIGNED_IN)
        return json.dumps({"status": "ok", **snapshot}, indent=2)
