"""MCP Resources: static dashboard reference data."""

from __future__ import annotations

import json

from fastmcp import FastMCP

from vitaldash.core.storage.models import ReportType
from vitaldash.domains.health.domain_logic.assistant import EMERGENCY_CONTACTS, HEALTH_DISCLAIMER
from vitaldash.domains.health.domain_logic.reports import ALLOWED_EXTENSIONS, MAX_UPLOAD_BYTES


def register_dashboard_resources(mcp: FastMCP) -> None:
    """Register reference resources on the MCP server."""

    @mcp.resource("vitaldash://emergency-contacts")
    def emergency_contacts_resource() -> str:
        """Emergency helpline numbers."""
        return json.dumps({"contacts": EMERGENCY_CONTACTS}, indent=2)

    @mcp.resource("vitaldash://disclaimer")
    def disclaimer_resource() -> str:
        """Health disclaimer shown with every AI feature."""
        return HEALTH_DISCLAIMER

    @mcp.resource("vitaldash://report-types")
    def report_types_resource() -> str:
        """Accepted report types and upload limits."""
        return json.dumps(
            {
                "report_types": [{"value": t.value, "label": t.label} for t in ReportType],
                "allowed_extensions": list(ALLOWED_EXTENSIONS),
                "max_upload_bytes": MAX_UPLOAD_BYTES,
            },
            indent=2,
        )
