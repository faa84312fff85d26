"""Post-processing of AI gateway output."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def _norm(s: str) -> str:
    return " ".join(s.lower().split())


def enforce_disclaimer(content: str, disclaimer: str | None) -> tuple[str, list[str]]:
    """Ensure ``disclaimer`` appears in the returned text.

    Returns: (possibly modified content, flags)
    """
    if not disclaimer or not disclaimer.strip():
        return content, []
    if _norm(disclaimer) in _norm(content):
        return content, []

    footer = f"\n\n---\nDisclaimer: {disclaimer.strip()}"
    return content.rstrip() + footer, ["disclaimer_appended"]


def clean_content(content: str) -> str:
    """Strip surrounding whitespace; an empty completion becomes a short notice."""
    cleaned = content.strip()
    if not cleaned:
        logger.warning("AI gateway returned an empty completion")
        return "No response was generated. Please try again."
    return cleaned
