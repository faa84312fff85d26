"""Row-insert REST endpoint for telemetry writers (devices, gateways)."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any

from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Route

from vitaldash.core.backend.client import BackendClient
from vitaldash.core.backend.http import (
    HTTPFailure,
    authenticate,
    error_response,
    json_response,
    preflight_response,
    read_json_object,
)
from vitaldash.core.storage.models import TelemetrySample

logger = logging.getLogger(__name__)

_VITAL_FIELDS = ("hr", "spo2", "temp")


def _normalize_ts(raw: Any) -> str:
    if raw in (None, ""):
        return datetime.now(timezone.utc).isoformat()
    if not isinstance(raw, str):
        raise HTTPFailure(400, "ts must be an ISO 8601 string")
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError as exc:
        raise HTTPFailure(400, "ts must be an ISO 8601 string") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).isoformat()


def _parse_sample(body: dict[str, Any]) -> TelemetrySample:
    device_id = body.get("device_id")
    if not isinstance(device_id, str) or not device_id:
        raise HTTPFailure(400, "Missing required fields")

    vitals: dict[str, float | None] = {}
    for name in _VITAL_FIELDS:
        value = body.get(name)
        if value is not None and (
            isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value)
        ):
            raise HTTPFailure(400, f"{name} must be a number")
        vitals[name] = float(value) if value is not None else None
    if all(v is None for v in vitals.values()):
        raise HTTPFailure(400, "Missing required fields")

    return TelemetrySample(
        id="",
        device_id=device_id,
        ts=_normalize_ts(body.get("ts")),
        **vitals,
    )


def build_rest_routes(backend: BackendClient) -> list[Route]:
    """Routes under ``/rest/v1``."""

    async def insert_telemetry(request: Request) -> Response:
        if request.method == "OPTIONS":
            return preflight_response()
        try:
            user = authenticate(request, backend.auth)
            sample = _parse_sample(await read_json_object(request))
            if backend.repository.get_device(user.id, sample.device_id) is None:
                raise HTTPFailure(404, "Device not found")
            stored = backend.repository.insert_telemetry(sample)
        except HTTPFailure as failure:
            return error_response(failure.message, failure.status_code)
        except Exception:
            logger.exception("Telemetry insert failed")
            return error_response("Internal server error", 500)
        return json_response(stored.to_dict(), 201)

    return [Route("/rest/v1/telemetry", insert_telemetry, methods=["POST", "OPTIONS"])]
