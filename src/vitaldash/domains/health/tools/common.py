"""JSON response helpers shared by the dashboard tools."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from vitaldash.domains.health.domain_logic.dashboard import DashboardSession

NOT_SIGNED_IN = "Not signed in. Call sign_in (or sign_up) first."


def respond(dashboard: DashboardSession, payload: dict[str, Any], *, indent: int | None = None) -> str:
    """Serialize a tool result, attaching any notifications raised while producing it."""
    notes = dashboard.notifier.drain()
    if notes:
        payload["notifications"] = [n.to_dict() for n in notes]
    return json.dumps(payload, indent=indent)


def error(dashboard: DashboardSession, message: str, **extra: Any) -> str:
    return respond(dashboard, {"status": "error", "message": message, **extra})


def last_error(dashboard: DashboardSession, fallback: str) -> str:
    """Error result carrying the newest destructive notification's text."""
    notes = [n for n in dashboard.notifier.peek() if n.variant == "destructive"]
    return error(dashboard, notes[-1].description if notes else fallback)
