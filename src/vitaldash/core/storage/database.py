"""SQLite database management for the dashboard backend.

Handles connection lifecycle, schema creation, and migrations.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 2

# ---------------------------------------------------------------------------
# Schema DDL
# ---------------------------------------------------------------------------

_SCHEMA_V1 = """
CREATE TABLE IF NOT EXISTS users (
    id            TEXT PRIMARY KEY,
    email         TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    created_at    TEXT NOT NULL
);

-- Bearer tokens are stored hashed, never raw
CREATE TABLE IF NOT EXISTS sessions (
    token_hash TEXT PRIMARY KEY,
    user_id    TEXT NOT NULL REFERENCES users(id),
    expires_at TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS devices (
    id         TEXT PRIMARY KEY,
    user_id    TEXT NOT NULL,
    name       TEXT NOT NULL,
    created_at TEXT NOT NULL
);

-- Append-only vital-sign samples
CREATE TABLE IF NOT EXISTS telemetry (
    id        TEXT PRIMARY KEY,
    device_id TEXT NOT NULL REFERENCES devices(id),
    hr        REAL,
    spo2      REAL,
    temp      REAL,
    ts        TEXT NOT NULL
);

-- notes and AI analysis are health data: encrypted JSON blobs
CREATE TABLE IF NOT EXISTS reports (
    id                    TEXT PRIMARY KEY,
    user_id               TEXT NOT NULL,
    title                 TEXT NOT NULL,
    report_type           TEXT NOT NULL,
    file_name             TEXT NOT NULL,
    file_path             TEXT NOT NULL,
    file_size             INTEGER NOT NULL DEFAULT 0,
    upload_date           TEXT NOT NULL,
    report_date           TEXT,
    notes_enc             TEXT,
    ai_analysis_enc       TEXT,
    has_abnormal_findings INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS alerts (
    id         TEXT PRIMARY KEY,
    user_id    TEXT NOT NULL,
    report_id  TEXT REFERENCES reports(id),
    alert_type TEXT NOT NULL,
    message    TEXT NOT NULL,
    is_read    INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS schema_version (
    version    INTEGER NOT NULL,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_devices_user      ON devices(user_id);
CREATE INDEX IF NOT EXISTS idx_telemetry_device  ON telemetry(device_id, ts);
CREATE INDEX IF NOT EXISTS idx_reports_user      ON reports(user_id, upload_date);
CREATE INDEX IF NOT EXISTS idx_alerts_user_read  ON alerts(user_id, is_read);
CREATE INDEX IF NOT EXISTS idx_sessions_user     ON sessions(user_id);
"""

# ---------------------------------------------------------------------------
# V2: Audit log table (function invocations, AI disclosure, deletions)
# ---------------------------------------------------------------------------

_SCHEMA_V2 = """
CREATE TABLE IF NOT EXISTS audit_log (
    id            TEXT PRIMARY KEY,
    timestamp     TEXT NOT NULL DEFAULT (datetime('now')),
    action        TEXT NOT NULL,
    operation     TEXT,
    input_hash    TEXT,
    user_id       TEXT,
    llm_provider  TEXT,
    llm_disclosed INTEGER DEFAULT 0,
    record_id     TEXT,
    duration_ms   REAL,
    status        TEXT NOT NULL DEFAULT 'success',
    error_type    TEXT,
    metadata_json TEXT
);

CREATE INDEX IF NOT EXISTS idx_audit_timestamp ON audit_log(timestamp);
CREATE INDEX IF NOT EXISTS idx_audit_action    ON audit_log(action);
CREATE INDEX IF NOT EXISTS idx_audit_operation ON audit_log(operation);
"""


class DatabaseError(Exception):
    """Raised when database operations fail."""


class BackendDatabase:
    """SQLite database manager for the dashboard backend.

    Supports both file-based and in-memory (`:memory:`) databases.
    In-memory mode is used for testing.

    Usage::

        db = BackendDatabase(":memory:")
        db.initialize()
        conn = db.connection
        db.close()
    """

    def __init__(self, db_path: str = ":memory:") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        """Get the active database connection.

        Raises:
            DatabaseError: If the database has not been initialized.
        """
        if self._conn is None:
            raise DatabaseError("Database not initialized. Call initialize() first.")
        return self._conn

    @property
    def path(self) -> str:
        return self._db_path

    def initialize(self) -> None:
        """Open the connection and ensure the schema exists. Idempotent."""
        if self._conn is not None:
            return

        if self._db_path != ":memory:":
            db_file = Path(self._db_path).expanduser()
            db_file.parent.mkdir(parents=True, exist_ok=True)
            target = str(db_file)
        else:
            target = ":memory:"

        # Function routes and tools share one connection on the server's event loop.
        self._conn = sqlite3.connect(target, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")

        self._ensure_schema()
        logger.info("Backend database initialized: %s", self._db_path)

    def _ensure_schema(self) -> None:
        conn = self.connection
        conn.executescript(_SCHEMA_V1)

        row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
        current_version = row[0] if row[0] is not None else 0

        if current_version < 2:
            conn.executescript(_SCHEMA_V2)
            logger.info("Applied schema migration V2: audit_log table")

        if current_version < SCHEMA_VERSION:
            conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)",
                (SCHEMA_VERSION,),
            )
            conn.commit()
            logger.info(
                "Schema updated from version %d to %d", current_version, SCHEMA_VERSION
            )

    def get_schema_version(self) -> int:
        """Return the current schema version."""
        row = self.connection.execute("SELECT MAX(version) FROM schema_version").fetchone()
        return row[0] if row[0] is not None else 0

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.info("Backend database closed")

    def __enter__(self) -> BackendDatabase:
        self.initialize()
        return self

    def __exit__(self, *args) -> None:
        self.close()
