"""analyze-vitals: AI interpretation of a vitals snapshot."""

from __future__ import annotations

import math
from typing import Any

from vitaldash.core.backend.http import HTTPFailure
from vitaldash.domains.health.functions.base import FunctionContext, Invocation, ask_gateway

_VITAL_LABELS = {
    "hr": ("Heart rate", "bpm"),
    "spo2": ("SpO2", "%"),
    "temp": ("Body temperature", "°C"),
}


def format_vitals(vitals: dict[str, float]) -> str:
    lines = []
    for key, (label, unit) in _VITAL_LABELS.items():
        if key in vitals:
            lines.append(f"- {label}: {vitals[key]:g} {unit}")
    return "\n".join(lines)


def _parse_vitals(body: dict[str, Any]) -> dict[str, float]:
    vitals: dict[str, float] = {}
    for key in _VITAL_LABELS:
        value = body.get(key)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise HTTPFailure(400, f"{key} must be a number")
        vitals[key] = float(value)
    if not vitals:
        raise HTTPFailure(400, "Missing required fields")
    return vitals


async def analyze_vitals(context: FunctionContext, invocation: Invocation) -> dict[str, Any]:
    """Body: ``{"hr"?: number, "spo2"?: number, "temp"?: number}`` (at least one).

    Returns ``{"analysis": str}``.
    """
    vitals = _parse_vitals(invocation.body)
    template = context.templates.get("analyze_vitals")
    response = await ask_gateway(
        context,
        invocation,
        template.render_system(),
        [{"role": "user", "content": template.render_user(vitals=format_vitals(vitals))}],
    )
    return {"analysis": response.content}
