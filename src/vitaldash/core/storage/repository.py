"""Backend repository: row-level CRUD on the dashboard collections.

The repository mediates between row models (Device, TelemetrySample, Report,
Alert) and SQLite. Report notes and AI analysis go through FieldEncryptor.
Every insert is published on the realtime hub as an INSERT change event.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from vitaldash.core.realtime.hub import RealtimeHub
from vitaldash.core.storage.database import BackendDatabase
from vitaldash.core.storage.encryption import FieldEncryptor
from vitaldash.core.storage.models import Alert, Device, Report, TelemetrySample

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Raised when repository operations fail."""


class BackendRepository:
    """CRUD repository for devices, telemetry, reports and alerts.

    Usage::

        db = BackendDatabase(":memory:")
        db.initialize()
        repo = BackendRepository(db, FieldEncryptor(key), RealtimeHub())

        device = repo.create_device(user_id, "Raspberry Pi 1")
        repo.insert_telemetry(TelemetrySample("", device.id, 72, 98, 36.6, ts))
        window = repo.recent_telemetry(device.id, limit=50)
    """

    def __init__(
        self,
        database: BackendDatabase,
        encryptor: FieldEncryptor,
        realtime: RealtimeHub | None = None,
    ) -> None:
        self._db = database
        self._enc = encryptor
        self._realtime = realtime

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())

    @staticmethod
    def _now_iso() -> str:
        return datetime.now(timezone.utc).isoformat()

    def _publish(self, table: str, row: dict[str, Any]) -> None:
        if self._realtime is not None:
            self._realtime.publish(table, "INSERT", row)

    # ------------------------------------------------------------------
    # Devices
    # ------------------------------------------------------------------

    def create_device(self, user_id: str, name: str) -> Device:
        name = name.strip()
        if not name:
            raise RepositoryError("Device name is required")

        device = Device(id=self._new_id(), user_id=user_id, name=name, created_at=self._now_iso())
        conn = self._db.connection
        conn.execute(
            "INSERT INTO devices (id, user_id, name, created_at) VALUES (?, ?, ?, ?)",
            (device.id, device.user_id, device.name, device.created_at),
        )
        conn.commit()
        logger.info("Created device %s for user %s", device.id, user_id)
        self._publish("devices", device.to_dict())
        return device

    def list_devices(self, user_id: str) -> list[Device]:
        """The user's devices, newest first."""
        rows = self._db.connection.execute(
            "SELECT * FROM devices WHERE user_id = ? ORDER BY created_at DESC",
            (user_id,),
        ).fetchall()
        return [Device(**dict(row)) for row in rows]

    def get_device(self, user_id: str, device_id: str) -> Device | None:
        row = self._db.connection.execute(
            "SELECT * FROM devices WHERE id = ? AND user_id = ?",
            (device_id, user_id),
        ).fetchone()
        return Device(**dict(row)) if row else None

    # ------------------------------------------------------------------
    # Telemetry (append-only)
    # ------------------------------------------------------------------

    def insert_telemetry(self, sample: TelemetrySample) -> TelemetrySample:
        """Append a sample. An empty ``sample.id`` gets a generated UUID."""
        if not sample.ts:
            raise RepositoryError("Telemetry sample needs a timestamp")
        stored = TelemetrySample(
            id=sample.id or self._new_id(),
            device_id=sample.device_id,
            hr=sample.hr,
            spo2=sample.spo2,
            temp=sample.temp,
            ts=sample.ts,
        )
        conn = self._db.connection
        conn.execute(
            "INSERT INTO telemetry (id, device_id, hr, spo2, temp, ts) VALUES (?, ?, ?, ?, ?, ?)",
            (stored.id, stored.device_id, stored.hr, stored.spo2, stored.temp, stored.ts),
        )
        conn.commit()
        self._publish("telemetry", stored.to_dict())
        return stored

    def latest_telemetry(self, device_id: str) -> TelemetrySample | None:
        """Most recent sample for a device (ts descending, limit 1)."""
        row = self._db.connection.execute(
            "SELECT * FROM telemetry WHERE device_id = ? ORDER BY ts DESC LIMIT 1",
            (device_id,),
        ).fetchone()
        return TelemetrySample(**dict(row)) if row else None

    def recent_telemetry(self, device_id: str, *, limit: int = 50) -> list[TelemetrySample]:
        """The last ``limit`` samples for a device, oldest first."""
        if limit < 1:
            raise RepositoryError("limit must be at least 1")
        rows = self._db.connection.execute(
            "SELECT * FROM telemetry WHERE device_id = ? ORDER BY ts DESC LIMIT ?",
            (device_id, limit),
        ).fetchall()
        return [TelemetrySample(**dict(row)) for row in reversed(rows)]

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def create_report(self, report: Report) -> Report:
        """Insert report metadata. The file must already be in object storage."""
        stored = Report(
            id=report.id or self._new_id(),
            user_id=report.user_id,
            title=report.title,
            report_type=report.report_type,
            file_name=report.file_name,
            file_path=report.file_path,
            file_size=report.file_size,
            upload_date=report.upload_date or self._now_iso(),
            report_date=report.report_date or None,
            notes=report.notes,
            ai_analysis=report.ai_analysis,
            has_abnormal_findings=report.has_abnormal_findings,
        )
        conn = self._db.connection
        conn.execute(
            """INSERT INTO reports (
                id, user_id, title, report_type, file_name, file_path, file_size,
                upload_date, report_date, notes_enc, ai_analysis_enc, has_abnormal_findings
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                stored.id,
                stored.user_id,
                stored.title,
                stored.report_type,
                stored.file_name,
                stored.file_path,
                stored.file_size,
                stored.upload_date,
                stored.report_date,
                self._enc.encrypt(stored.notes),
                self._enc.encrypt(stored.ai_analysis),
                int(stored.has_abnormal_findings),
            ),
        )
        conn.commit()
        logger.info("Saved report %s (type=%s)", stored.id, stored.report_type)
        self._publish("reports", self._public_report_row(stored))
        return stored

    def get_report(self, user_id: str, report_id: str) -> Report | None:
        row = self._db.connection.execute(
            "SELECT * FROM reports WHERE id = ? AND user_id = ?",
            (report_id, user_id),
        ).fetchone()
        return self._row_to_report(row) if row else None

    def list_reports(self, user_id: str) -> list[Report]:
        """The user's reports, most recently uploaded first."""
        rows = self._db.connection.execute(
            "SELECT * FROM reports WHERE user_id = ? ORDER BY upload_date DESC",
            (user_id,),
        ).fetchall()
        return [self._row_to_report(row) for row in rows]

    def update_report_analysis(
        self,
        user_id: str,
        report_id: str,
        analysis: dict[str, Any],
        has_abnormal: bool,
    ) -> bool:
        """Store an AI analysis on the user's report.

        Returns:
            True if the report exists for this user and was updated.
        """
        conn = self._db.connection
        cursor = conn.execute(
            """UPDATE reports SET ai_analysis_enc = ?, has_abnormal_findings = ?
               WHERE id = ? AND user_id = ?""",
            (self._enc.encrypt(analysis), int(has_abnormal), report_id, user_id),
        )
        conn.commit()
        return cursor.rowcount > 0

    def delete_report(self, user_id: str, report_id: str) -> Report | None:
        """Delete a report row and its alerts.

        Returns:
            The deleted report (so the caller can remove the stored file),
            or None if the user has no such report.
        """
        report = self.get_report(user_id, report_id)
        if report is None:
            return None

        conn = self._db.connection
        conn.execute("DELETE FROM alerts WHERE report_id = ?", (report_id,))
        conn.execute("DELETE FROM reports WHERE id = ?", (report_id,))
        conn.commit()
        logger.info("Deleted report %s", report_id)
        return report

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    def create_alert(
        self,
        user_id: str,
        report_id: str | None,
        alert_type: str,
        message: str,
    ) -> Alert:
        alert = Alert(
            id=self._new_id(),
            user_id=user_id,
            report_id=report_id,
            alert_type=alert_type,
            message=message,
            is_read=False,
            created_at=self._now_iso(),
        )
        conn = self._db.connection
        conn.execute(
            """INSERT INTO alerts (id, user_id, report_id, alert_type, message, is_read, created_at)
               VALUES (?, ?, ?, ?, ?, 0, ?)""",
            (alert.id, alert.user_id, alert.report_id, alert.alert_type, alert.message, alert.created_at),
        )
        conn.commit()
        logger.info("Created %s alert %s for report %s", alert_type, alert.id, report_id)
        self._publish("alerts", alert.to_dict())
        return alert

    def list_unread_alerts(self, user_id: str, *, limit: int = 5) -> list[Alert]:
        """Unread alerts, newest first."""
        rows = self._db.connection.execute(
            """SELECT * FROM alerts WHERE user_id = ? AND is_read = 0
               ORDER BY created_at DESC LIMIT ?""",
            (user_id, limit),
        ).fetchall()
        return [self._row_to_alert(row) for row in rows]

    def list_alerts_for_report(self, user_id: str, report_id: str) -> list[Alert]:
        rows = self._db.connection.execute(
            "SELECT * FROM alerts WHERE user_id = ? AND report_id = ? ORDER BY created_at DESC",
            (user_id, report_id),
        ).fetchall()
        return [self._row_to_alert(row) for row in rows]

    def count_unread_alerts(self, user_id: str) -> int:
        row = self._db.connection.execute(
            "SELECT COUNT(*) FROM alerts WHERE user_id = ? AND is_read = 0",
            (user_id,),
        ).fetchone()
        return row[0]

    def mark_alert_read(self, user_id: str, alert_id: str) -> bool:
        """Returns True if the user's alert exists (already-read alerts included)."""
        conn = self._db.connection
        cursor = conn.execute(
            "UPDATE alerts SET is_read = 1 WHERE id = ? AND user_id = ?",
            (alert_id, user_id),
        )
        conn.commit()
        return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _row_to_report(self, row: Any) -> Report:
        return Report(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            report_type=row["report_type"],
            file_name=row["file_name"],
            file_path=row["file_path"],
            file_size=row["file_size"],
            upload_date=row["upload_date"],
            report_date=row["report_date"],
            notes=self._enc.decrypt(row["notes_enc"]) or "",
            ai_analysis=self._enc.decrypt(row["ai_analysis_enc"]),
            has_abnormal_findings=bool(row["has_abnormal_findings"]),
        )

    @staticmethod
    def _row_to_alert(row: Any) -> Alert:
        return Alert(
            id=row["id"],
            user_id=row["user_id"],
            report_id=row["report_id"],
            alert_type=row["alert_type"],
            message=row["message"],
            is_read=bool(row["is_read"]),
            created_at=row["created_at"],
        )

    @staticmethod
    def _public_report_row(report: Report) -> dict[str, Any]:
        # Change events carry metadata only, never notes or analysis.
        row = report.to_dict()
        row.pop("notes", None)
        row.pop("ai_analysis", None)
        return row
