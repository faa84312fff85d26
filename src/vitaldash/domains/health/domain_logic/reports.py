"""Medical report library: upload, browse, download, delete and analyze."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable

from vitaldash.core.backend.client import BACKEND_ERRORS, BackendClient
from vitaldash.core.functions.client import FunctionInvocationError, FunctionsClient
from vitaldash.core.storage.models import Report, ReportType, User
from vitaldash.domains.health.domain_logic.notifications import Notifier
from vitaldash.domains.health.domain_logic.report_text import build_report_text, file_extension

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = ("pdf", "jpg", "jpeg", "png", "webp", "doc", "docx", "txt")
MAX_UPLOAD_BYTES = 20 * 1024 * 1024


class ReportValidationError(ValueError):
    """Upload input rejected before any backend call."""


def filter_reports(reports: list[Report], search: str) -> list[Report]:
    """Case-insensitive substring match on title or report type."""
    needle = search.strip().lower()
    if not needle:
        return list(reports)
    return [
        r
        for r in reports
        if needle in r.title.lower()
        or needle in r.report_type.lower()
        or needle in r.type_label.lower()
    ]


def validate_upload(
    title: str,
    report_type: str,
    file_name: str,
    data: bytes | None,
    *,
    max_bytes: int = MAX_UPLOAD_BYTES,
) -> str:
    """Check upload input and return the normalized file extension."""
    if not title.strip() or not report_type or not file_name or data is None:
        raise ReportValidationError("Please fill in all required fields")
    if report_type not in ReportType.values():
        raise ReportValidationError(
            f"Unknown report type {report_type!r}; expected one of {', '.join(ReportType.values())}"
        )
    ext = file_extension(file_name)
    if ext not in ALLOWED_EXTENSIONS:
        raise ReportValidationError(
            f"Unsupported file type {ext or '(none)'!r}; allowed: {', '.join(ALLOWED_EXTENSIONS)}"
        )
    if len(data) > max_bytes:
        raise ReportValidationError(f"File size must be less than {max_bytes // (1024 * 1024)}MB")
    return ext


class ReportLibrary:
    def __init__(
        self,
        backend: BackendClient,
        notifier: Notifier,
        current_user: Callable[[], User],
        functions: FunctionsClient,
        *,
        max_upload_bytes: int = MAX_UPLOAD_BYTES,
        max_report_chars: int = 50_000,
    ) -> None:
        self._backend = backend
        self._notifier = notifier
        self._current_user = current_user
        self._functions = functions
        self.max_upload_bytes = max_upload_bytes
        self.max_report_chars = max_report_chars
        self.reports: list[Report] = []

    def _object_key(self, user_id: str, ext: str) -> str:
        stamp = int(time.time() * 1000)
        key = f"{user_id}/{stamp}.{ext}"
        while self._backend.storage.exists(key):
            stamp += 1
            key = f"{user_id}/{stamp}.{ext}"
        return key

    def upload(
        self,
        title: str,
        report_type: str,
        file_name: str,
        data: bytes | None,
        *,
        report_date: str | None = None,
        notes: str = "",
    ) -> Report | None:
        """Store the file, then its metadata row.

        Raises:
            ReportValidationError: on invalid input; nothing is sent to the backend.
        """
        ext = validate_upload(title, report_type, file_name, data, max_bytes=self.max_upload_bytes)
        user = self._current_user()
        storage = self._backend.storage

        try:
            path = storage.upload(self._object_key(user.id, ext), data)
        except BACKEND_ERRORS:
            logger.exception("Report file upload failed")
            self._notifier.error("Failed to upload report")
            return None

        try:
            report = self._backend.repository.create_report(Report(
                id="",
                user_id=user.id,
                title=title.strip(),
                report_type=report_type,
                file_name=file_name,
                file_path=path,
                file_size=len(data),
                upload_date=datetime.now(timezone.utc).isoformat(),
                report_date=report_date or None,
                notes=notes.strip(),
            ))
        except BACKEND_ERRORS:
            logger.exception("Report metadata insert failed; removing %s", path)
            storage.remove([path])
            self._notifier.error("Failed to upload report")
            return None

        self._notifier.success("Report uploaded successfully")
        self.refresh()
        return report

    def refresh(self) -> list[Report]:
        user = self._current_user()
        try:
            self.reports = self._backend.repository.list_reports(user.id)
        except BACKEND_ERRORS:
            logger.exception("Report fetch failed")
            self._notifier.error("Failed to load reports")
        return list(self.reports)

    def list_reports(self, search: str = "") -> list[Report]:
        return filter_reports(self.refresh(), search)

    def get(self, report_id: str) -> Report | None:
        user = self._current_user()
        try:
            return self._backend.repository.get_report(user.id, report_id)
        except BACKEND_ERRORS:
            logger.exception("Report lookup failed")
            self._notifier.error("Failed to load reports")
            return None

    def download(self, report_id: str) -> tuple[str, bytes] | None:
        report = self.get(report_id)
        if report is None:
            return None
        try:
            return report.file_name, self._backend.storage.download(report.file_path)
        except BACKEND_ERRORS:
            logger.exception("Report download failed for %s", report_id)
            self._notifier.error("Failed to download report")
            return None

    def delete(self, report_id: str) -> bool:
        """Delete the metadata row, its alerts and the stored file."""
        user = self._current_user()
        try:
            report = self._backend.repository.delete_report(user.id, report_id)
        except BACKEND_ERRORS:
            logger.exception("Report delete failed for %s", report_id)
            self._notifier.error("Failed to delete report")
            return False
        if report is None:
            self._notifier.error("Report not found")
            return False

        try:
            removed = self._backend.storage.remove([report.file_path])
        except BACKEND_ERRORS:
            logger.exception("Stored file %s could not be removed", report.file_path)
            removed = []
        self._backend.audit.log_data_delete(
            operation="delete_report",
            user_id=user.id,
            record_id=report_id,
            count=1,
            metadata={"files_removed": len(removed)},
        )
        self._notifier.success("Report deleted successfully")
        self.refresh()
        return True

    async def analyze(self, report_id: str) -> dict[str, Any] | None:
        """Run analyze-report on a stored report; returns ``{analysis, hasAbnormal}``."""
        report = self.get(report_id)
        if report is None:
            self._notifier.error("Report not found")
            return None

        try:
            data = self._backend.storage.download(report.file_path)
        except BACKEND_ERRORS:
            logger.warning("Stored file for report %s unavailable; using description", report_id)
            data = None

        body = {
            "reportText": build_report_text(report, data, self.max_report_chars),
            "reportType": report.report_type,
            "reportId": report.id,
        }
        try:
            result = await self._functions.invoke("analyze-report", body)
        except FunctionInvocationError as exc:
            self._notifier.error(exc.message, title="Failed to analyze report")
            return None

        self._notifier.success("AI has analyzed your report", title="Analysis Complete")
        self.refresh()
        return result
