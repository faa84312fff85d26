"""Abnormal-finding detection on AI report analyses."""

from __future__ import annotations

import re

# Substring match: "low" also hits "follow" and "below".
ABNORMAL_PATTERN = re.compile(
    r"abnormal|critical|urgent|elevated|low|high|infection|tb|tuberculosis",
    re.IGNORECASE,
)

ABNORMAL_ALERT_TYPE = "abnormal"
ABNORMAL_ALERT_MESSAGE = (
    "Abnormal results detected in your report. Please consult a healthcare provider."
)


def detect_abnormal_findings(analysis: str) -> bool:
    """True when the analysis text mentions any abnormal-finding keyword."""
    return bool(ABNORMAL_PATTERN.search(analysis or ""))
