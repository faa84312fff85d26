"""Backend client facade: one configured handle to rows, objects, realtime and auth."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from vitaldash.core.audit.logger import AuditLogger
from vitaldash.core.auth.service import AuthService
from vitaldash.core.config.settings import Settings
from vitaldash.core.realtime.hub import RealtimeHub
from vitaldash.core.storage.database import BackendDatabase, DatabaseError
from vitaldash.core.storage.encryption import EncryptionError, FieldEncryptor
from vitaldash.core.storage.objects import ObjectStorage, StorageError
from vitaldash.core.storage.repository import BackendRepository, RepositoryError

logger = logging.getLogger(__name__)

# Failures a backend call can raise; callers turn these into notifications.
BACKEND_ERRORS = (DatabaseError, EncryptionError, RepositoryError, StorageError, sqlite3.Error)


class BackendClient:
    """Everything the dashboard and the functions need from the backend.

    Usage::

        backend = BackendClient.from_settings(get_settings())
        session = backend.auth.sign_in(email, password)
        devices = backend.repository.list_devices(session.user.id)
        backend.close()
    """

    def __init__(
        self,
        database: BackendDatabase,
        encryptor: FieldEncryptor,
        storage: ObjectStorage,
        *,
        session_ttl_seconds: int = 3600,
    ) -> None:
        database.initialize()
        self.database = database
        self.realtime = RealtimeHub()
        self.repository = BackendRepository(database, encryptor, self.realtime)
        self.storage = storage
        self.auth = AuthService(database, session_ttl_seconds=session_ttl_seconds)
        self.audit = AuditLogger(database)

    @classmethod
    def from_settings(cls, settings: Settings) -> BackendClient:
        if settings.encryption_key:
            encryptor = FieldEncryptor(settings.encryption_key)
        else:
            logger.warning(
                "No ENCRYPTION_KEY configured; using an ephemeral key. "
                "Encrypted report fields will be unreadable after a restart."
            )
            encryptor = FieldEncryptor(FieldEncryptor.generate_key())

        backend = cls(
            BackendDatabase(settings.db_path),
            encryptor,
            ObjectStorage(settings.storage_root, settings.storage_bucket),
            session_ttl_seconds=settings.session_ttl_seconds,
        )
        logger.info(
            "Backend ready: db=%s (schema v%d), bucket=%s",
            settings.db_path,
            backend.database.get_schema_version(),
            settings.storage_bucket,
        )
        return backend

    @classmethod
    def in_memory(cls, storage_root: str | Path, encryption_key: str | None = None) -> BackendClient:
        """In-memory SQLite with a filesystem bucket under ``storage_root``."""
        return cls(
            BackendDatabase(":memory:"),
            FieldEncryptor(encryption_key or FieldEncryptor.generate_key()),
            ObjectStorage(storage_root),
        )

    def close(self) -> None:
        self.database.close()
