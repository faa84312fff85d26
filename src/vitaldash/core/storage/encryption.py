"""Fernet-based field encryption for report data at rest.

Report notes and AI analysis payloads are encrypted before they are written
to SQLite. Searchable metadata (title, type, dates) stays in plain columns.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)


class EncryptionError(Exception):
    """Raised when encryption/decryption fails."""


class FieldEncryptor:
    """Encrypts JSON-serializable values into Fernet tokens and back.

    Usage::

        encryptor = FieldEncryptor(key="...")
        token = encryptor.encrypt({"analysis": "..."})
        encryptor.decrypt(token)  # {"analysis": "..."}
    """

    def __init__(self, key: str) -> None:
        """
        Args:
            key: A valid Fernet key, e.g. from :meth:`generate_key`.

        Raises:
            EncryptionError: If the key is empty or malformed.
        """
        if not key or not key.strip():
            raise EncryptionError("Encryption key must not be empty")
        try:
            self._fernet = Fernet(key.encode())
        except ValueError as exc:
            raise EncryptionError(f"Invalid encryption key: {exc}") from exc

    def encrypt(self, data: Any) -> str:
        """Encrypt a value; ``None`` and empty strings encrypt to ``""``."""
        if data is None or data == "":
            return ""
        try:
            plaintext = json.dumps(data, separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise EncryptionError(f"Value is not JSON-serializable: {exc}") from exc
        return self._fernet.encrypt(plaintext).decode("utf-8")

    def decrypt(self, token: str | None) -> Any:
        """Decrypt a token produced by :meth:`encrypt`; empty tokens give ``None``."""
        if not token:
            return None
        try:
            plaintext = self._fernet.decrypt(token.encode("utf-8"))
        except InvalidToken as exc:
            raise EncryptionError("Decryption failed: invalid token or wrong key") from exc
        return json.loads(plaintext)

    @staticmethod
    def generate_key() -> str:
        """Generate a new URL-safe base64 Fernet key."""
        return Fernet.generate_key().decode("utf-8")
