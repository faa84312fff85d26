"""MCP tools for the device registry."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from vitaldash.domains.health.domain_logic.dashboard import NotSignedInError
from vitaldash.domains.health.tools.common import NOT_SIGNED_IN, error, last_error, respond

if TYPE_CHECKING:
    from vitaldash.domains.health.domain_logic.dashboard import DashboardSession

logger = logging.getLogger(__name__)


def register_device_tools(mcp: FastMCP, dashboard: DashboardSession) -> None:
    """Register device tools on the MCP server."""

    @mcp.tool
    async def list_devices(ctx: Context) -> str:
        """List your registered devices, newest first."""
        try:
            devices = dashboard.devices.list_devices()
        except NotSignedInError:
            return error(dashboard, NOT_SIGNED_IN)
        return respond(dashboard, {
            "status": "ok",
            "count": len(devices),
            "selected_device_id": dashboard.devices.selected_id,
            "devices": [d.to_dict() for d in devices],
        })

    @mcp.tool
    async def add_device(ctx: Context, name: str) -> str:
        """Register a new monitoring device.

        Args:
            name: Display name, e.g. 'Wrist band'.
        """
        try:
            device = dashboard.devices.add_device(name)
        except NotSignedInError:
            return error(dashboard, NOT_SIGNED_IN)
        if device is None:
            return last_error(dashboard, "Failed to add device")
        return respond(dashboard, {"status": "saved", "device": device.to_dict()})

    @mcp.tool
    async def select_device(ctx: Context, device_id: str) -> str:
        """Select the device whose vitals are shown and streamed live."""
        try:
            device = dashboard.devices.select_device(device_id)
        except NotSignedInError:
            return error(dashboard, NOT_SIGNED_IN)
        if device is None:
            return respond(dashboard, {"status": "not_found", "device_id": device_id})
        return respond(dashboard, {
            "status": "ok",
            "device": device.to_dict(),
            "telemetry": dashboard.monitor.snapshot(),
        })
