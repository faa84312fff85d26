"""Shared request handling for the serverless AI functions.

Every function is an ``async`` handler taking a :class:`FunctionContext` and
the current :class:`Invocation` and returning a JSON-serializable dict. The
endpoint wrapper owns the common envelope: CORS preflight, bearer auth, JSON
body parsing, mapping of gateway failures to HTTP statuses, and one audit row
per call.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from starlette.requests import Request
from starlette.responses import Response

from vitaldash.core.backend.client import BackendClient
from vitaldash.core.backend.http import (
    HTTPFailure,
    authenticate,
    error_response,
    json_response,
    preflight_response,
    read_json_object,
)
from vitaldash.core.llm.client import GatewayClient, LLMResponse
from vitaldash.core.llm.provider import ChatMessage, GatewayError
from vitaldash.core.llm.system_prompt import AI_DISCLAIMER
from vitaldash.core.storage.models import User
from vitaldash.domains.health.prompts.templates import PromptTemplates

logger = logging.getLogger(__name__)

GATEWAY_ERROR_MESSAGES = {
    429: "Rate limit exceeded. Please try again later.",
    402: "AI credits exhausted. Please add credits to continue.",
}


@dataclass
class FunctionContext:
    """Collaborators shared by all function handlers."""

    backend: BackendClient
    gateway: GatewayClient
    templates: PromptTemplates
    max_text_chars: int = 50_000


@dataclass
class Invocation:
    """One authenticated call. Handlers record disclosure and the touched record."""

    user: User
    body: dict[str, Any]
    disclosed: bool = False
    record_id: str | None = None


FunctionHandler = Callable[[FunctionContext, Invocation], Awaitable[dict[str, Any]]]


async def ask_gateway(
    context: FunctionContext,
    invocation: Invocation,
    task_instructions: str,
    messages: list[ChatMessage],
) -> LLMResponse:
    """Send a conversation to the AI gateway on behalf of the caller."""
    invocation.disclosed = True
    return await context.gateway.complete(task_instructions, messages, disclaimer=AI_DISCLAIMER)


def gateway_failure(exc: GatewayError) -> HTTPFailure:
    """Map an upstream gateway status onto the function's response."""
    if exc.status_code in GATEWAY_ERROR_MESSAGES:
        return HTTPFailure(exc.status_code, GATEWAY_ERROR_MESSAGES[exc.status_code])
    return HTTPFailure(500, "AI analysis failed")


def require_text(body: dict[str, Any], key: str) -> str:
    value = body.get(key)
    if not isinstance(value, str) or not value.strip():
        raise HTTPFailure(400, "Missing required fields")
    return value


def build_function_endpoint(
    name: str,
    handler: FunctionHandler,
    context: FunctionContext,
) -> Callable[[Request], Awaitable[Response]]:
    """Wrap a handler into a Starlette endpoint."""

    async def endpoint(request: Request) -> Response:
        if request.method == "OPTIONS":
            return preflight_response()

        start = time.monotonic()
        invocation: Invocation | None = None
        status_code = 200
        error_type: str | None = None
        payload: dict[str, Any] = {}
        try:
            user = authenticate(request, context.backend.auth)
            invocation = Invocation(user=user, body=await read_json_object(request))
            try:
                payload = await handler(context, invocation)
            except GatewayError as exc:
                logger.error("AI gateway error in %s: %d %s", name, exc.status_code, exc)
                raise gateway_failure(exc) from exc
        except HTTPFailure as failure:
            status_code = failure.status_code
            error_type = type(failure.__cause__).__name__ if failure.__cause__ else "HTTPFailure"
            payload = {"error": failure.message}
        except Exception as exc:
            logger.exception("Unexpected error in function %s", name)
            status_code = 500
            error_type = type(exc).__name__
            payload = {"error": "Internal server error"}

        duration_ms = (time.monotonic() - start) * 1000
        context.backend.audit.log_function_call(
            name,
            invocation.body if invocation else None,
            user_id=invocation.user.id if invocation else None,
            llm_provider=context.gateway.provider_name if invocation and invocation.disclosed else None,
            llm_disclosed=bool(invocation and invocation.disclosed),
            record_id=invocation.record_id if invocation else None,
            duration_ms=duration_ms,
            status="success" if status_code < 400 else "error",
            error_type=error_type,
            metadata={"http_status": status_code},
        )

        if status_code >= 400:
            return error_response(payload["error"], status_code)
        return json_response(payload, status_code)

    endpoint.__name__ = name.replace("-", "_")
    return endpoint
