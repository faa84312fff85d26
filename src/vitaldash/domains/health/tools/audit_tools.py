"""MCP tools for viewing the audit trail.

The audit log is PHI-free: it records which AI functions were called, when,
and whether health data was sent to the AI gateway, with inputs stored only
as hashes.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from vitaldash.domains.health.domain_logic.dashboard import NotSignedInError
from vitaldash.domains.health.tools.common import NOT_SIGNED_IN, error

if TYPE_CHECKING:
    from vitaldash.domains.health.domain_logic.dashboard import DashboardSession

logger = logging.getLogger(__name__)


def register_audit_tools(mcp: FastMCP, dashboard: DashboardSession) -> None:
    """Register audit trail tools on the MCP server."""

    @mcp.tool
    async def audit_summary(
        ctx: Context,
        days: int = 30,
    ) -> str:
        """View your recent AI function calls, deletions and AI disclosure counts.

        Args:
            days: Number of days to look back (default: 30).
        """
        try:
            user = dashboard.require_user()
        except NotSignedInError:
            return error(dashboard, NOT_SIGNED_IN)
        if days < 1:
            return json.dumps({"status": "error", "message": "days must be at least 1."})

        audit = dashboard.backend.audit
        since = (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()
        recent_events = audit.get_events(user_id=user.id, since=since, limit=20)

        display_events = [
            {
                "timestamp": event.get("timestamp"),
                "action": event.get("action"),
                "operation": event.get("operation"),
                "llm_provider": event.get("llm_provider"),
                "llm_disclosed": bool(event.get("llm_disclosed")),
                "status": event.get("status"),
                "error_type": event.get("error_type"),
                "duration_ms": event.get("duration_ms"),
            }
            for event in recent_events
        ]

        return json.dumps({
            "status": "ok",
            "period_days": days,
            "total_events": audit.count_events(user_id=user.id, since=since),
            "llm_disclosures": audit.count_disclosures(user_id=user.id, since=since),
            "recent_events": display_events,
            "note": (
                "This audit trail contains no health data. "
                "It tracks function usage and whether data was sent to the AI gateway."
            ),
        }, indent=2)
