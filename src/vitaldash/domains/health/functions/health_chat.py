"""health-chat: general health conversation."""

from __future__ import annotations

from typing import Any

from vitaldash.core.backend.http import HTTPFailure
from vitaldash.core.llm.provider import ChatMessage
from vitaldash.domains.health.functions.base import FunctionContext, Invocation, ask_gateway

_CHAT_ROLES = ("user", "assistant")


def _conversation(body: dict[str, Any]) -> list[ChatMessage]:
    messages = body.get("messages")
    if messages is not None:
        if not isinstance(messages, list):
            raise HTTPFailure(400, "Missing required fields")
        conversation = [
            {"role": m["role"], "content": m["content"]}
            for m in messages
            if isinstance(m, dict)
            and m.get("role") in _CHAT_ROLES
            and isinstance(m.get("content"), str)
            and m["content"].strip()
        ]
    else:
        message = body.get("message")
        conversation = (
            [{"role": "user", "content": message}]
            if isinstance(message, str) and message.strip()
            else []
        )
    if not conversation or conversation[-1]["role"] != "user":
        raise HTTPFailure(400, "Missing required fields")
    return conversation


async def health_chat(context: FunctionContext, invocation: Invocation) -> dict[str, Any]:
    """Body: ``{"messages": [{role, content}, ...]}`` or ``{"message": str}``.

    Returns ``{"response": str}``.
    """
    conversation = _conversation(invocation.body)
    if sum(len(m["content"]) for m in conversation) > context.max_text_chars:
        raise HTTPFailure(400, "Message too long")

    template = context.templates.get("health_chat")
    response = await ask_gateway(context, invocation, template.render_system(), conversation)
    return {"response": response.content}
