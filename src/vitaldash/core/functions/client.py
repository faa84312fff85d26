"""HTTP client for invoking the serverless AI functions."""

from __future__ import annotations

import logging
from typing import Any, Callable

import httpx

logger = logging.getLogger(__name__)


class FunctionInvocationError(Exception):
    """A function returned a non-2xx status or could not be reached.

    ``status_code`` is 0 for transport failures.
    """

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class FunctionsClient:
    """POSTs JSON bodies to ``<base_url>/<name>`` with the caller's bearer token.

    Pass an ``httpx`` transport (``ASGITransport`` for in-process routes,
    ``MockTransport`` in tests) to avoid the network.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token_provider: Callable[[], str | None],
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 60.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._token_provider = token_provider
        self._transport = transport
        self._timeout = timeout

    async def invoke(self, name: str, body: dict[str, Any]) -> dict[str, Any]:
        headers = {"Content-Type": "application/json"}
        token = self._token_provider()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        url = f"{self.base_url}/{name}"
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
                response = await client.post(url, json=body, headers=headers)
        except httpx.HTTPError as exc:
            logger.error("Function %s unreachable: %s", name, exc)
            raise FunctionInvocationError(0, f"Function {name} unreachable") from exc

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.is_error:
            message = payload.get("error") if isinstance(payload, dict) else None
            logger.warning("Function %s failed: %d %s", name, response.status_code, message)
            raise FunctionInvocationError(response.status_code, message or f"Function {name} failed")
        if not isinstance(payload, dict):
            raise FunctionInvocationError(response.status_code, f"Function {name} returned a non-object body")
        return payload
