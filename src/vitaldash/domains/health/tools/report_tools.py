"""MCP tools for medical reports: upload, browse, download, delete and AI analysis."""

from __future__ import annotations

import base64
import binascii
import logging
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from vitaldash.domains.health.domain_logic.dashboard import NotSignedInError
from vitaldash.domains.health.domain_logic.reports import ReportValidationError
from vitaldash.domains.health.tools.common import NOT_SIGNED_IN, error, last_error, respond

if TYPE_CHECKING:
    from vitaldash.core.storage.models import Report
    from vitaldash.domains.health.domain_logic.dashboard import DashboardSession

logger = logging.getLogger(__name__)


def _summary(report: Report) -> dict:
    return {
        "id": report.id,
        "title": report.title,
        "report_type": report.report_type,
        "type_label": report.type_label,
        "file_name": report.file_name,
        "file_size": report.file_size,
        "upload_date": report.upload_date,
        "report_date": report.report_date,
        "analyzed": report.ai_analysis is not None,
        "has_abnormal_findings": report.has_abnormal_findings,
    }


def register_report_tools(mcp: FastMCP, dashboard: DashboardSession) -> None:
    """Register report tools on the MCP server."""

    @mcp.tool
    async def upload_report(
        ctx: Context,
        title: str,
        report_type: str,
        file_name: str,
        content_base64: str,
        report_date: str = "",
        notes: str = "",
    ) -> str:
        """Upload a medical report file.

        Args:
            title: Report title, e.g. 'Annual blood panel'.
            report_type: One of blood_test, xray, ct_scan, mri, ultrasound, other.
            file_name: Original file name; the extension must be pdf, jpg, jpeg, png, webp, doc, docx or txt.
            content_base64: File content, base64-encoded (max 20 MB decoded).
            report_date: Date of the report (ISO 8601), optional.
            notes: Free-text notes, stored encrypted.
        """
        try:
            data = base64.b64decode(content_base64, validate=True) if content_base64 else None
        except (binascii.Error, ValueError):
            return error(dashboard, "content_base64 is not valid base64")
        try:
            report = dashboard.reports.upload(
                title, report_type, file_name, data, report_date=report_date or None, notes=notes
            )
        except NotSignedInError:
            return error(dashboard, NOT_SIGNED_IN)
        except ReportValidationError as exc:
            return error(dashboard, str(exc))
        if report is None:
            return last_error(dashboard, "Failed to upload report")
        return respond(dashboard, {"status": "saved", "report": _summary(report)})

    @mcp.tool
    async def list_reports(ctx: Context, search: str = "") -> str:
        """List your reports, newest upload first.

        Args:
            search: Case-insensitive text matched against title and report type. Empty lists all.
        """
        try:
            reports = dashboard.reports.list_reports(search)
        except NotSignedInError:
            return error(dashboard, NOT_SIGNED_IN)
        return respond(dashboard, {
            "status": "ok",
            "search": search,
            "count": len(reports),
            "reports": [_summary(r) for r in reports],
        })

    @mcp.tool
    async def get_report(ctx: Context, report_id: str) -> str:
        """Show one report with its notes, AI analysis and alerts."""
        try:
            report = dashboard.reports.get(report_id)
            user = dashboard.require_user()
        except NotSignedInError:
            return error(dashboard, NOT_SIGNED_IN)
        if report is None:
            return respond(dashboard, {"status": "not_found", "report_id": report_id})
        alerts = dashboard.backend.repository.list_alerts_for_report(user.id, report_id)
        return respond(dashboard, {
            "status": "ok",
            "report": {**_summary(report), "notes": report.notes, "ai_analysis": report.ai_analysis},
            "alerts": [a.to_dict() for a in alerts],
        }, indent=2)

    @mcp.tool
    async def download_report(ctx: Context, report_id: str) -> str:
        """Download a report file as base64."""
        try:
            result = dashboard.reports.download(report_id)
        except NotSignedInError:
            return error(dashboard, NOT_SIGNED_IN)
        if result is None:
            return respond(dashboard, {"status": "not_found", "report_id": report_id})
        file_name, data = result
        return respond(dashboard, {
            "status": "ok",
            "file_name": file_name,
            "size": len(data),
            "content_base64": base64.b64encode(data).decode("ascii"),
        })

    @mcp.tool
    async def delete_report(ctx: Context, report_id: str) -> str:
        """Permanently delete a report, its stored file and its alerts."""
        try:
            deleted = dashboard.reports.delete(report_id)
        except NotSignedInError:
            return error(dashboard, NOT_SIGNED_IN)
        if not deleted:
            return respond(dashboard, {"status": "not_found", "report_id": report_id})
        return respond(dashboard, {"status": "deleted", "report_id": report_id})

    @mcp.tool
    async def analyze_report(ctx: Context, report_id: str) -> str:
        """Run the AI analysis on a stored report.

        Abnormal findings set the report's flag and raise an alert.
        """
        try:
            result = await dashboard.reports.analyze(report_id)
        except NotSignedInError:
            return error(dashboard, NOT_SIGNED_IN)
        if result is None:
            return last_error(dashboard, "Failed to analyze report")
        return respond(dashboard, {
            "status": "ok",
            "report_id": report_id,
            "analysis": result.get("analysis"),
            "has_abnormal_findings": bool(result.get("hasAbnormal")),
        }, indent=2)

