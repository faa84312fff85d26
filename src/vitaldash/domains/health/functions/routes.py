"""Route table for the serverless AI functions under ``/functions/v1``."""

from __future__ import annotations

from starlette.routing import Route

from vitaldash.domains.health.functions.analyze_report import analyze_report
from vitaldash.domains.health.functions.analyze_vitals import analyze_vitals
from vitaldash.domains.health.functions.base import (
    FunctionContext,
    FunctionHandler,
    build_function_endpoint,
)
from vitaldash.domains.health.functions.health_chat import health_chat

FUNCTIONS_PREFIX = "/functions/v1"

FUNCTION_HANDLERS: dict[str, FunctionHandler] = {
    "analyze-report": analyze_report,
    "health-chat": health_chat,
    "analyze-vitals": analyze_vitals,
}


def build_function_routes(context: FunctionContext) -> list[Route]:
    return [
        Route(
            f"{FUNCTIONS_PREFIX}/{name}",
            build_function_endpoint(name, handler, context),
            methods=["POST", "OPTIONS"],
        )
        for name, handler in FUNCTION_HANDLERS.items()
    ]
