"""Tests for BackendRepository: CRUD with in-memory SQLite."""

from __future__ import annotations

import pytest

from vitaldash.core.realtime.hub import RealtimeHub
from vitaldash.core.storage.database import BackendDatabase
from vitaldash.core.storage.encryption import FieldEncryptor
from vitaldash.core.storage.models import Report, TelemetrySample
from vitaldash.core.storage.repository import BackendRepository, RepositoryError


@pytest.fixture
def db():
    database = BackendDatabase(":memory:")
    database.initialize()
    yield database
    database.close()


@pytest.fixture
def hub():
    return RealtimeHub()


@pytest.fixture
def repo(db, hub):
    return BackendRepository(db, FieldEncryptor(FieldEncryptor.generate_key()), hub)


def _ts(second: int) -> str:
    minutes, seconds = divmod(second, 60)
    return f"2026-01-01T10:{minutes:02d}:{seconds:02d}+00:00"


def _sample(device_id: str, second: int, hr: float = 70.0) -> TelemetrySample:
    return TelemetrySample(id="", device_id=device_id, hr=hr, spo2=98.0, temp=36.7, ts=_ts(second))


def _report(user_id: str, **overrides) -> Report:
    defaults = dict(
        id="",
        user_id=user_id,
        title="Blood panel",
        report_type="blood_test",
        file_name="panel.pdf",
        file_path=f"{user_id}/1.pdf",
        file_size=1024,
        notes="Fasting sample",
    )
    defaults.update(overrides)
    return Report(**defaults)


class TestDevices:
    def test_create_and_list(self, repo):
        first = repo.create_device("u1", "Wrist band")
        second = repo.create_device("u1", "  Chest strap  ")
        repo.create_device("u2", "Other user's device")

        devices = repo.list_devices("u1")
        assert [d.id for d in devices] == [second.id, first.id]
        assert devices[0].name == "Chest strap"

    def test_empty_name_rejected(self, repo):
        with pytest.raises(RepositoryError, match="required"):
            repo.create_device("u1", "   ")

    def test_get_device_is_user_scoped(self, repo):
        device = repo.create_device("u1", "Wrist band")
        assert repo.get_device("u1", device.id) == device
        assert repo.get_device("u2", device.id) is None


class TestTelemetry:
    def test_latest_is_highest_ts(self, repo):
        device = repo.create_device("u1", "Band")
        repo.insert_telemetry(_sample(device.id, 5, hr=80))
        repo.insert_telemetry(_sample(device.id, 10, hr=90))
        repo.insert_telemetry(_sample(device.id, 1, hr=60))

        latest = repo.latest_telemetry(device.id)
        assert latest.hr == 90
        assert latest.id

    def test_latest_for_empty_device(self, repo):
        device = repo.create_device("u1", "Band")
        assert repo.latest_telemetry(device.id) is None
        assert repo.recent_telemetry(device.id) == []

    def test_recent_returns_last_n_ascending(self, repo):
        device = repo.create_device("u1", "Band")
        for second in range(60):
            repo.insert_telemetry(_sample(device.id, second))

        recent = repo.recent_telemetry(device.id, limit=50)
        assert len(recent) == 50
        assert recent[0].ts == _ts(10)
        assert recent[-1].ts == _ts(59)
        assert [s.ts for s in recent] == sorted(s.ts for s in recent)

    def test_recent_is_device_scoped(self, repo):
        a = repo.create_device("u1", "A")
        b = repo.create_device("u1", "B")
        repo.insert_telemetry(_sample(a.id, 1))
        repo.insert_telemetry(_sample(b.id, 2))
        assert [s.device_id for s in repo.recent_telemetry(a.id)] == [a.id]

    def test_insert_requires_ts(self, repo):
        device = repo.create_device("u1", "Band")
        with pytest.raises(RepositoryError, match="timestamp"):
            repo.insert_telemetry(TelemetrySample("", device.id, 70, 98, 36.6, ""))

    def test_insert_publishes_change_event(self, repo, hub):
        device = repo.create_device("u1", "Band")
        received = []
        hub.channel("t").on("INSERT", "telemetry", received.append).subscribe()

        stored = repo.insert_telemetry(_sample(device.id, 1))
        assert len(received) == 1
        assert received[0].table == "telemetry"
        assert received[0].new["id"] == stored.id


class TestReports:
    def test_create_and_get_decrypts(self, repo, db):
        report = repo.create_report(_report("u1"))
        loaded = repo.get_report("u1", report.id)
        assert loaded.notes == "Fasting sample"
        assert loaded.ai_analysis is None
        assert loaded.has_abnormal_findings is False

        raw = db.connection.execute("SELECT notes_enc FROM reports WHERE id = ?", (report.id,)).fetchone()
        assert "Fasting" not in raw[0]

    def test_get_report_is_user_scoped(self, repo):
        report = repo.create_report(_report("u1"))
        assert repo.get_report("u2", report.id) is None

    def test_list_newest_upload_first(self, repo):
        old = repo.create_report(_report("u1", upload_date="2026-01-01T00:00:00+00:00"))
        new = repo.create_report(_report("u1", upload_date="2026-02-01T00:00:00+00:00", file_path="u1/2.pdf"))
        assert [r.id for r in repo.list_reports("u1")] == [new.id, old.id]

    def test_update_analysis(self, repo):
        report = repo.create_report(_report("u1"))
        analysis = {"analysis": "Glucose elevated.", "analyzed_at": "2026-01-02T00:00:00+00:00"}
        assert repo.update_report_analysis("u1", report.id, analysis, True) is True

        loaded = repo.get_report("u1", report.id)
        assert loaded.ai_analysis == analysis
        assert loaded.has_abnormal_findings is True

    def test_update_analysis_other_user_affects_nothing(self, repo):
        report = repo.create_report(_report("u1"))
        assert repo.update_report_analysis("u2", report.id, {"analysis": "x"}, True) is False
        assert repo.get_report("u1", report.id).ai_analysis is None

    def test_delete_removes_report_and_alerts(self, repo):
        report = repo.create_report(_report("u1"))
        repo.create_alert("u1", report.id, "abnormal", "Check this")

        deleted = repo.delete_report("u1", report.id)
        assert deleted.file_path == "u1/1.pdf"
        assert repo.get_report("u1", report.id) is None
        assert repo.count_unread_alerts("u1") == 0

    def test_delete_unknown_returns_none(self, repo):
        assert repo.delete_report("u1", "missing") is None

    def test_change_event_omits_encrypted_fields(self, repo, hub):
        received = []
        hub.channel("r").on("INSERT", "reports", received.append).subscribe()
        repo.create_report(_report("u1"))
        assert "notes" not in received[0].new
        assert "ai_analysis" not in received[0].new


class TestAlerts:
    def test_unread_newest_first_with_limit(self, repo):
        report = repo.create_report(_report("u1"))
        created = [repo.create_alert("u1", report.id, "abnormal", f"alert {i}") for i in range(7)]

        unread = repo.list_unread_alerts("u1", limit=5)
        assert len(unread) == 5
        assert unread[0].id == created[-1].id
        assert repo.count_unread_alerts("u1") == 7

    def test_mark_read_removes_from_unread(self, repo):
        report = repo.create_report(_report("u1"))
        alert = repo.create_alert("u1", report.id, "abnormal", "msg")

        assert repo.mark_alert_read("u1", alert.id) is True
        assert repo.list_unread_alerts("u1") == []
        assert repo.count_unread_alerts("u1") == 0

    def test_mark_read_other_user(self, repo):
        report = repo.create_report(_report("u1"))
        alert = repo.create_alert("u1", report.id, "abnormal", "msg")
        assert repo.mark_alert_read("u2", alert.id) is False
        assert repo.count_unread_alerts("u1") == 1

    def test_alerts_for_report(self, repo):
        report = repo.create_report(_report("u1"))
        repo.create_alert("u1", report.id, "abnormal", "msg")
        alerts = repo.list_alerts_for_report("u1", report.id)
        assert len(alerts) == 1
        assert alerts[0].alert_type == "abnormal"
