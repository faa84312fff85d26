"""Text extraction from uploaded report files for AI analysis."""

from __future__ import annotations

import io
import logging
from pathlib import PurePosixPath

import pdfplumber

from vitaldash.core.storage.models import Report

logger = logging.getLogger(__name__)


def file_extension(file_name: str) -> str:
    return PurePosixPath(file_name).suffix.lower().lstrip(".")


def _extract_pdf_text(data: bytes) -> str:
    """Extract text from all pages of a PDF."""
    pages: list[str] = []
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        for page in pdf.pages:
            text = page.extract_text()
            if text:
                pages.append(text)
    return "\n".join(pages).strip()


def extract_text(file_name: str, data: bytes) -> str:
    """Best-effort text for a report file; "" when nothing can be read.

    PDFs go through pdfplumber and plain text is decoded as UTF-8. Images and
    Word documents yield "".
    """
    ext = file_extension(file_name)
    if ext == "txt":
        return data.decode("utf-8", errors="replace").strip()
    if ext == "pdf":
        try:
            return _extract_pdf_text(data)
        except Exception:
            logger.warning("Could not extract text from PDF %s", file_name, exc_info=True)
            return ""
    return ""


def describe_report(report: Report) -> str:
    """Descriptive stand-in used when a file has no extractable text."""
    text = f'This is a {report.type_label} report titled "{report.title}"'
    if report.report_date:
        text += f", dated {report.report_date}"
    text += "."
    if report.notes:
        text += f"\nNotes from the patient: {report.notes}"
    return text


def build_report_text(report: Report, data: bytes | None, max_chars: int = 50_000) -> str:
    """Text sent to analyze-report: extracted content, else the description, truncated."""
    text = extract_text(report.file_name, data) if data else ""
    if not text:
        text = describe_report(report)
    if len(text) > max_chars:
        logger.info("Report %s text truncated from %d to %d chars", report.id, len(text), max_chars)
        text = text[:max_chars]
    return text
