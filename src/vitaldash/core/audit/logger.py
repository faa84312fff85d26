"""Audit logger: PHI-free trail of function invocations and deletions.

* ``input_hash``    - SHA-256 of canonical JSON; the raw input is never stored.
* ``llm_disclosed`` - whether health data was sent to the external AI gateway.
"""

from __future__ import annotations

import hashlib
import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from vitaldash.core.storage.database import BackendDatabase

logger = logging.getLogger(__name__)


def _hash_input(data: Any) -> str:
    """SHA-256 of canonical JSON, or ``""`` if the data is not serializable."""
    try:
        canonical = json.dumps(data, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode()).hexdigest()
    except (TypeError, ValueError):
        return ""


@dataclass
class AuditEvent:
    """A single audit log entry."""

    action: str                          # 'function_invocation' | 'data_delete'
    operation: str = ""
    input_hash: str = ""
    user_id: str | None = None
    llm_provider: str | None = None
    llm_disclosed: bool = False
    record_id: str | None = None
    duration_ms: float | None = None
    status: str = "success"              # 'success' | 'failure'
    error_type: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class AuditLogger:
    """Records audit events to the ``audit_log`` table.

    Writes are committed immediately. A failed write is logged and never
    breaks the operation being audited.
    """

    def __init__(self, database: BackendDatabase) -> None:
        self._db = database

    def log_event(self, event: AuditEvent) -> str:
        """Insert an audit event and return its id (``""`` if the write failed)."""
        event_id = str(uuid.uuid4())
        metadata_json = (
            json.dumps(event.metadata, separators=(",", ":")) if event.metadata else None
        )

        try:
            conn = self._db.connection
            conn.execute(
                """INSERT INTO audit_log
                   (id, timestamp, action, operation, input_hash, user_id,
                    llm_provider, llm_disclosed, record_id, duration_ms,
                    status, error_type, metadata_json)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    event_id,
                    datetime.now(timezone.utc).isoformat(),
                    event.action,
                    event.operation or None,
                    event.input_hash or None,
                    event.user_id,
                    event.llm_provider,
                    1 if event.llm_disclosed else 0,
                    event.record_id,
                    event.duration_ms,
                    event.status,
                    event.error_type,
                    metadata_json,
                ),
            )
            conn.commit()
        except Exception:
            logger.exception("Failed to write audit event; event lost")
            return ""

        return event_id

    def log_function_call(
        self,
        function_name: str,
        function_input: Any = None,
        *,
        user_id: str | None = None,
        llm_provider: str | None = None,
        llm_disclosed: bool = False,
        record_id: str | None = None,
        duration_ms: float | None = None,
        status: str = "success",
        error_type: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> str:
        """Log one serverless function invocation (input is hashed, never stored)."""
        return self.log_event(AuditEvent(
            action="function_invocation",
            operation=function_name,
            input_hash=_hash_input(function_input) if function_input else "",
            user_id=user_id,
            llm_provider=llm_provider,
            llm_disclosed=llm_disclosed,
            record_id=record_id,
            duration_ms=duration_ms,
            status=status,
            error_type=error_type,
            metadata=metadata or {},
        ))

    def log_data_delete(
        self,
        *,
        operation: str = "",
        user_id: str | None = None,
        record_id: str | None = None,
        count: int = 0,
        metadata: dict[str, Any] | None = None,
    ) -> str:
        return self.log_event(AuditEvent(
            action="data_delete",
            operation=operation,
            user_id=user_id,
            record_id=record_id,
            metadata={**(metadata or {}), "records_deleted": count},
        ))

    @staticmethod
    def _where(**filters: str | None) -> tuple[str, list[Any]]:
        """Build a WHERE clause from equality filters; ``since`` is a lower time bound."""
        clauses: list[str] = []
        params: list[Any] = []
        for column, value in filters.items():
            if not value:
                continue
            clauses.append("timestamp >= ?" if column == "since" else f"{column} = ?")
            params.append(value)
        return (" WHERE " + " AND ".join(clauses)) if clauses else "", params

    def get_events(
        self,
        *,
        action: str | None = None,
        operation: str | None = None,
        user_id: str | None = None,
        since: str | None = None,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        """Newest-first audit rows matching every given filter."""
        where, params = self._where(action=action, operation=operation, user_id=user_id, since=since)
        rows = self._db.connection.execute(
            f"SELECT * FROM audit_log{where} ORDER BY timestamp DESC LIMIT ?", [*params, limit]
        ).fetchall()
        return [dict(row) for row in rows]

    def count_events(self, *, user_id: str | None = None, since: str | None = None) -> int:
        where, params = self._where(user_id=user_id, since=since)
        return self._db.connection.execute(
            f"SELECT COUNT(*) FROM audit_log{where}", params
        ).fetchone()[0]

    def count_disclosures(self, *, user_id: str | None = None, since: str | None = None) -> int:
        """How many function calls sent health data to the AI gateway."""
        where, params = self._where(user_id=user_id, since=since)
        disclosed = f"{where} AND llm_disclosed = 1" if where else " WHERE llm_disclosed = 1"
        return self._db.connection.execute(
            f"SELECT COUNT(*) FROM audit_log{disclosed}", params
        ).fetchone()[0]
