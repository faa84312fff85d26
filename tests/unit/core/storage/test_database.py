"""Tests for BackendDatabase: schema creation, versioning, lifecycle."""

from __future__ import annotations

import sqlite3

import pytest

from vitaldash.core.storage.database import SCHEMA_VERSION, BackendDatabase, DatabaseError


class TestInitialization:
    def test_in_memory_initialize(self):
        db = BackendDatabase(":memory:")
        db.initialize()
        assert db.connection is not None
        db.close()

    def test_double_initialize_is_idempotent(self):
        db = BackendDatabase(":memory:")
        db.initialize()
        conn1 = db.connection
        db.initialize()
        assert db.connection is conn1
        db.close()

    def test_connection_before_init_raises(self):
        db = BackendDatabase(":memory:")
        with pytest.raises(DatabaseError, match="not initialized"):
            _ = db.connection

    def test_context_manager(self):
        with BackendDatabase(":memory:") as db:
            assert db.connection is not None
        with pytest.raises(DatabaseError):
            _ = db.connection

    def test_file_database_creates_parent_dir(self, tmp_path):
        path = tmp_path / "nested" / "dash.db"
        with BackendDatabase(str(path)) as db:
            assert db.get_schema_version() == SCHEMA_VERSION
        assert path.exists()


class TestSchema:
    def test_schema_version_recorded(self):
        with BackendDatabase(":memory:") as db:
            assert db.get_schema_version() == SCHEMA_VERSION

    def test_all_tables_exist(self):
        with BackendDatabase(":memory:") as db:
            rows = db.connection.execute(
                "SELECT name FROM sqlite_master WHERE type='table'"
            ).fetchall()
            names = {r[0] for r in rows}
        for table in ("users", "sessions", "devices", "telemetry", "reports", "alerts", "audit_log"):
            assert table in names

    def test_foreign_keys_enforced(self):
        with BackendDatabase(":memory:") as db:
            with pytest.raises(sqlite3.IntegrityError):
                db.connection.execute(
                    "INSERT INTO telemetry (id, device_id, hr, spo2, temp, ts) "
                    "VALUES ('t1', 'no-such-device', 70, 98, 36.6, '2026-01-01T00:00:00+00:00')"
                )

    def test_reinitialize_file_db_keeps_version(self, tmp_path):
        path = str(tmp_path / "dash.db")
        with BackendDatabase(path):
            pass
        with BackendDatabase(path) as db:
            rows = db.connection.execute("SELECT COUNT(*) FROM schema_version").fetchone()
            assert rows[0] == 1
            assert db.get_schema_version() == SCHEMA_VERSION
