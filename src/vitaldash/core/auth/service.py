"""Email/password accounts and bearer-token sessions.

Passwords are hashed with bcrypt. Access tokens are random URL-safe strings;
only their SHA-256 digest is persisted, so a copy of the database cannot be
replayed as a session.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
import sqlite3
import uuid
from datetime import datetime, timedelta, timezone

import bcrypt

from vitaldash.core.storage.database import BackendDatabase
from vitaldash.core.storage.models import Session, User

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
# bcrypt only hashes the first 72 bytes and rejects longer input.
MAX_PASSWORD_BYTES = 72


class AuthError(Exception):
    """Raised when sign-up or sign-in is rejected."""


def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class AuthService:
    """Accounts and sessions stored in the backend database."""

    def __init__(self, database: BackendDatabase, *, session_ttl_seconds: int = 3600) -> None:
        self._db = database
        self._ttl = timedelta(seconds=session_ttl_seconds)

    def sign_up(self, email: str, password: str) -> User:
        email = email.strip().lower()
        if not email or "@" not in email:
            raise AuthError("A valid email address is required")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise AuthError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")

        user = User(
            id=str(uuid.uuid4()),
            email=email,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        password_hash = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")
        conn = self._db.connection
        try:
            conn.execute(
                "INSERT INTO users (id, email, password_hash, created_at) VALUES (?, ?, ?, ?)",
                (user.id, user.email, password_hash, user.created_at),
            )
            conn.commit()
        except sqlite3.IntegrityError as exc:
            raise AuthError("User already registered") from exc
        logger.info("Registered user %s", user.id)
        return user

    def sign_in(self, email: str, password: str) -> Session:
        row = self._db.connection.execute(
            "SELECT * FROM users WHERE email = ?", (email.strip().lower(),)
        ).fetchone()
        secret = password.encode("utf-8")
        if (
            row is None
            or len(secret) > MAX_PASSWORD_BYTES
            or not bcrypt.checkpw(secret, row["password_hash"].encode("utf-8"))
        ):
            raise AuthError("Invalid login credentials")

        token = secrets.token_urlsafe(32)
        now = datetime.now(timezone.utc)
        expires_at = (now + self._ttl).isoformat()
        conn = self._db.connection
        conn.execute(
            "INSERT INTO sessions (token_hash, user_id, expires_at, created_at) VALUES (?, ?, ?, ?)",
            (_hash_token(token), row["id"], expires_at, now.isoformat()),
        )
        conn.commit()
        logger.info("User %s signed in", row["id"])
        user = User(id=row["id"], email=row["email"], created_at=row["created_at"])
        return Session(access_token=token, user=user, expires_at=expires_at)

    def get_user(self, token: str | None) -> User | None:
        """Resolve a bearer token; None for unknown or expired tokens."""
        if not token:
            return None
        row = self._db.connection.execute(
            """SELECT users.id, users.email, users.created_at, sessions.expires_at
               FROM sessions JOIN users ON users.id = sessions.user_id
               WHERE sessions.token_hash = ?""",
            (_hash_token(token),),
        ).fetchone()
        if row is None:
            return None
        if datetime.fromisoformat(row["expires_at"]) <= datetime.now(timezone.utc):
            return None
        return User(id=row["id"], email=row["email"], created_at=row["created_at"])

    def sign_out(self, token: str) -> bool:
        conn = self._db.connection
        cursor = conn.execute("DELETE FROM sessions WHERE token_hash = ?", (_hash_token(token),))
        conn.commit()
        return cursor.rowcount > 0
