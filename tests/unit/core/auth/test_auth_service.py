"""Tests for AuthService: accounts and bearer sessions."""

from __future__ import annotations

import pytest

from vitaldash.core.auth.service import AuthError, AuthService
from vitaldash.core.storage.database import BackendDatabase


@pytest.fixture
def db():
    database = BackendDatabase(":memory:")
    database.initialize()
    yield database
    database.close()


@pytest.fixture
def auth(db):
    return AuthService(db)


def test_sign_up_normalizes_email(auth):
    user = auth.sign_up("  Patient@Example.COM ", "secret1")
    assert user.email == "patient@example.com"
    assert user.id


def test_duplicate_email_rejected(auth):
    auth.sign_up("a@example.com", "secret1")
    with pytest.raises(AuthError, match="already registered"):
        auth.sign_up("A@example.com", "secret2")


@pytest.mark.parametrize("email,password", [("no-at-sign", "secret1"), ("a@example.com", "short")])
def test_invalid_sign_up(auth, email, password):
    with pytest.raises(AuthError):
        auth.sign_up(email, password)


def test_over_long_password_rejected(auth, db):
    with pytest.raises(AuthError, match="at most 72 bytes"):
        auth.sign_up("a@example.com", "p" * 80)
    assert db.connection.execute("SELECT COUNT(*) FROM users").fetchone()[0] == 0


def test_multibyte_password_counted_in_bytes(auth):
    with pytest.raises(AuthError, match="at most 72 bytes"):
        auth.sign_up("a@example.com", "é" * 40)


def test_over_long_password_is_invalid_credentials(auth):
    auth.sign_up("a@example.com", "p" * 72)
    with pytest.raises(AuthError, match="Invalid login credentials"):
        auth.sign_in("a@example.com", "p" * 80)


def test_password_is_hashed(auth, db):
    auth.sign_up("a@example.com", "secret1")
    stored = db.connection.execute("SELECT password_hash FROM users").fetchone()[0]
    assert stored != "secret1"
    assert stored.startswith("$2")


def test_sign_in_and_resolve_token(auth):
    user = auth.sign_up("a@example.com", "secret1")
    session = auth.sign_in("a@example.com", "secret1")
    assert session.user.id == user.id
    assert auth.get_user(session.access_token).id == user.id


def test_token_stored_only_as_hash(auth, db):
    auth.sign_up("a@example.com", "secret1")
    session = auth.sign_in("a@example.com", "secret1")
    stored = db.connection.execute("SELECT token_hash FROM sessions").fetchone()[0]
    assert stored != session.access_token


def test_wrong_password(auth):
    auth.sign_up("a@example.com", "secret1")
    with pytest.raises(AuthError, match="Invalid login credentials"):
        auth.sign_in("a@example.com", "wrong-pass")


def test_unknown_user(auth):
    with pytest.raises(AuthError, match="Invalid login credentials"):
        auth.sign_in("nobody@example.com", "secret1")


def test_unknown_token(auth):
    assert auth.get_user("not-a-token") is None
    assert auth.get_user("") is None
    assert auth.get_user(None) is None


def test_expired_token(db):
    auth = AuthService(db, session_ttl_seconds=-1)
    auth.sign_up("a@example.com", "secret1")
    session = auth.sign_in("a@example.com", "secret1")
    assert auth.get_user(session.access_token) is None


def test_sign_out_revokes(auth):
    auth.sign_up("a@example.com", "secret1")
    session = auth.sign_in("a@example.com", "secret1")
    assert auth.sign_out(session.access_token) is True
    assert auth.get_user(session.access_token) is None
    assert auth.sign_out(session.access_token) is False
