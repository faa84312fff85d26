"""Row models for the dashboard backend collections."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any


class ReportType(str, Enum):
    """Kinds of medical report a user can upload."""

    BLOOD_TEST = "blood_test"
    XRAY = "xray"
    CT_SCAN = "ct_scan"
    MRI = "mri"
    ULTRASOUND = "ultrasound"
    OTHER = "other"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


@dataclass
class User:
    id: str
    email: str
    created_at: str = ""


@dataclass
class Session:
    """A signed-in session. ``access_token`` is only known to the caller."""

    access_token: str
    user: User
    expires_at: str


@dataclass
class Device:
    id: str
    user_id: str
    name: str
    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class TelemetrySample:
    """One vital-sign reading from a device. Immutable once stored."""

    id: str
    device_id: str
    hr: float | None
    spo2: float | None
    temp: float | None
    ts: str  # ISO 8601

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Report:
    """Medical report metadata. The file itself lives in object storage.

    ``notes`` and ``ai_analysis`` are stored encrypted at rest.
    """

    id: str
    user_id: str
    title: str
    report_type: str
    file_name: str
    file_path: str
    file_size: int = 0
    upload_date: str = ""
    report_date: str | None = None
    notes: str = ""
    ai_analysis: dict[str, Any] | None = None
    has_abnormal_findings: bool = False

    @property
    def type_label(self) -> str:
        return self.report_type.replace("_", " ")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Alert:
    id: str
    user_id: str
    report_id: str | None
    alert_type: str
    message: str
    is_read: bool = False
    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

