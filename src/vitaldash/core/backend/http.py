"""Shared HTTP plumbing for backend and function endpoints."""

from __future__ import annotations

import json
from typing import Any

from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from vitaldash.core.auth.service import AuthService
from vitaldash.core.storage.models import User

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


class HTTPFailure(Exception):
    """Short-circuits a handler with a JSON error response."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def json_response(payload: dict[str, Any], status_code: int = 200) -> JSONResponse:
    return JSONResponse(payload, status_code=status_code, headers=CORS_HEADERS)


def error_response(message: str, status_code: int) -> JSONResponse:
    return json_response({"error": message}, status_code)


def preflight_response() -> Response:
    return Response(status_code=200, headers=CORS_HEADERS)


def authenticate(request: Request, auth: AuthService) -> User:
    """Resolve the caller from ``Authorization: Bearer <token>``."""
    header = request.headers.get("authorization")
    if not header:
        raise HTTPFailure(401, "Missing authorization header")
    scheme, _, token = header.partition(" ")
    user = auth.get_user(token.strip()) if scheme.lower() == "bearer" else None
    if user is None:
        raise HTTPFailure(401, "Unauthorized")
    return user


async def read_json_object(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise HTTPFailure(400, "Invalid JSON body") from exc
    if not isinstance(body, dict):
        raise HTTPFailure(400, "Invalid JSON body")
    return body
