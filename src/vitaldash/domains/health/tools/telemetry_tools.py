"""MCP tools for live vitals."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from vitaldash.domains.health.domain_logic.dashboard import NotSignedInError
from vitaldash.domains.health.tools.common import NOT_SIGNED_IN, error, respond

if TYPE_CHECKING:
    from vitaldash.domains.health.domain_logic.dashboard import DashboardSession


def register_telemetry_tools(mcp: FastMCP, dashboard: DashboardSession) -> None:
    """Register telemetry tools on the MCP server."""

    @mcp.tool
    async def current_vitals(ctx: Context, refresh: bool = False) -> str:
        """Latest heart rate, SpO2 and temperature of the selected device, plus the chart window.

        Args:
            refresh: Re-read from the backend instead of using the live view.
        """
        try:
            dashboard.require_user()
        except NotSignedInError:
            return error(dashboard, NOT_SIGNED_IN)

        monitor = dashboard.monitor
        if monitor.device_id is None:
            return respond(dashboard, {
                "status": "empty",
                "message": "No device selected. Add a device or call select_device.",
            })
        if refresh:
            monitor.refresh()

        snapshot = monitor.snapshot()
        if snapshot["empty"]:
            return respond(dashboard, {
                "status": "empty",
                "device_id": monitor.device_id,
                "message": "No telemetry yet for this device.",
                "live": snapshot["live"],
                "stalled": snapshot["stalled"],
            })
        return respond(dashboard, {"status": "ok", **snapshot})
