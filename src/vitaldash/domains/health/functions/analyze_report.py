"""analyze-report: AI interpretation of a medical report, with abnormal-finding alerts."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from vitaldash.core.backend.http import HTTPFailure
from vitaldash.domains.health.domain_logic.findings import (
    ABNORMAL_ALERT_MESSAGE,
    ABNORMAL_ALERT_TYPE,
    detect_abnormal_findings,
)
from vitaldash.domains.health.functions.base import (
    FunctionContext,
    Invocation,
    ask_gateway,
    require_text,
)

logger = logging.getLogger(__name__)


async def analyze_report(context: FunctionContext, invocation: Invocation) -> dict[str, Any]:
    """Analyze ``reportText`` and, when ``reportId`` is given, store the result.

    Body: ``{"reportText": str, "reportType": str, "reportId"?: str}``.
    Returns ``{"analysis": str, "hasAbnormal": bool}``.
    """
    body = invocation.body
    report_text = require_text(body, "reportText")
    report_type = require_text(body, "reportType")
    report_id = body.get("reportId")
    if report_id is not None and not isinstance(report_id, str):
        raise HTTPFailure(400, "Missing required fields")
    if len(report_text) > context.max_text_chars:
        raise HTTPFailure(400, "Report text too long")

    template = context.templates.get("analyze_report")
    type_label = report_type.replace("_", " ")
    response = await ask_gateway(
        context,
        invocation,
        template.render_system(report_type=type_label),
        [{"role": "user", "content": template.render_user(report_type=type_label, report_text=report_text)}],
    )
    has_abnormal = detect_abnormal_findings(response.raw_content)

    if report_id:
        invocation.record_id = report_id
        user_id = invocation.user.id
        repository = context.backend.repository
        updated = repository.update_report_analysis(
            user_id,
            report_id,
            {"analysis": response.content, "analyzed_at": datetime.now(timezone.utc).isoformat()},
            has_abnormal,
        )
        if not updated:
            logger.warning("Report %s not found for caller; analysis not stored", report_id)
        elif has_abnormal:
            repository.create_alert(user_id, report_id, ABNORMAL_ALERT_TYPE, ABNORMAL_ALERT_MESSAGE)

    return {"analysis": response.content, "hasAbnormal": has_abnormal}
