"""MCP tools for health alerts."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from vitaldash.domains.health.domain_logic.dashboard import NotSignedInError
from vitaldash.domains.health.tools.common import NOT_SIGNED_IN, error, respond

if TYPE_CHECKING:
    from vitaldash.domains.health.domain_logic.dashboard import DashboardSession


def register_alert_tools(mcp: FastMCP, dashboard: DashboardSession) -> None:
    """Register alert tools on the MCP server."""

    @mcp.tool
    async def list_alerts(ctx: Context) -> str:
        """Unread health alerts (newest five) and the total unread count."""
        try:
            alerts = dashboard.alerts.unread()
            count = dashboard.alerts.unread_count()
        except NotSignedInError:
            return error(dashboard, NOT_SIGNED_IN)
        return respond(dashboard, {
            "status": "ok",
            "unread_count": count,
            "alerts": [a.to_dict() for a in alerts],
        })

    @mcp.tool
    async def dismiss_alert(ctx: Context, alert_id: str) -> str:
        """Mark an alert as read so it leaves the banner."""
        try:
            dismissed = dashboard.alerts.dismiss(alert_id)
        except NotSignedInError:
            return error(dashboard, NOT_SIGNED_IN)
        if not dismissed:
            return respond(dashboard, {"status": "not_found", "alert_id": alert_id})
        return respond(dashboard, {"status": "ok", "alert_id": alert_id})
