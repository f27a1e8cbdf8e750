"""
Unit tests for adp_portal/auth.py -- password hashing, users and bearer tokens.
"""
import os
import sys
import pytest
from unittest.mock import patch

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))
os.environ.setdefault("DATABASE_URL", "")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import adp_portal.database as database_mod
from adp_portal.auth import (
    DEFAULT_USERS,
    authenticate,
    create_user,
    get_serializer,
    hash_password,
    issue_token,
    seed_default_users,
    username_exists,
    verify_password,
    verify_token,
)
from adp_portal.database import init_database
from adp_portal.exceptions import AuthError

pytestmark = pytest.mark.unit


@pytest.fixture
def user_db(tmp_path, monkeypatch):
    """A fresh SQLite file with the portal schema."""
    monkeypatch.setattr(database_mod, "DATABASE_PATH", tmp_path / "auth.db")
    init_database()
    return tmp_path / "auth.db"


# ── hash_password / verify_password ──────────────────────────────────

class TestPasswordHashing:
    def test_hash_not_plaintext(self):
        assert hash_password("secret123") != "secret123"

    def test_verify_correct_password(self):
        assert verify_password("mypassword", hash_password("mypassword")) is True

    def test_verify_wrong_password(self):
        assert verify_password("wrong", hash_password("mypassword")) is False

    def test_verify_against_garbage_hash(self):
        assert verify_password("x", "not-a-bcrypt-hash") is False


# ── users ────────────────────────────────────────────────────────────

class TestUsers:
    def test_seed_creates_one_per_role(self, user_db):
        assert seed_default_users() == len(DEFAULT_USERS)
        assert seed_default_users() == 0

    def test_authenticate(self, user_db):
        create_user("Ramesh", "pw-1", "Commissioner")
        user = authenticate("ramesh", "pw-1")
        assert user["username"] == "Ramesh"
        assert user["role"] == "Commissioner"

    def test_unknown_username(self, user_db):
        with pytest.raises(AuthError, match="Invalid username"):
            authenticate("nobody", "pw")

    def test_wrong_password(self, user_db):
        create_user("Priya", "right", "eeph")
        with pytest.raises(AuthError, match="Invalid password"):
            authenticate("Priya", "wrong")

    def test_create_user_resets_password(self, user_db):
        first = create_user("Priya", "one", "eeph")
        second = create_user("priya", "two", "eeph")
        assert first == second
        assert authenticate("Priya", "two")["id"] == first

    def test_invalid_role(self, user_db):
        with pytest.raises(ValueError):
            create_user("Mallory", "pw", "mayor")

    def test_username_exists(self, user_db):
        create_user("Karthik", "pw", "encph")
        assert username_exists("KARTHIK") is True
        assert username_exists("ghost") is False

    def test_password_override_from_env(self, user_db, monkeypatch):
        monkeypatch.setenv("SRINIVAS_PASSWORD", "from-env")
        seed_default_users()
        assert authenticate("Srinivas", "from-env")["role"] == "cdma"


# ── tokens ───────────────────────────────────────────────────────────

class TestTokens:
    def test_round_trip(self):
        token = issue_token({"id": 3, "username": "Priya", "role": "eeph"})
        assert verify_token(token) == {"id": 3, "username": "Priya", "role": "eeph"}

    def test_tampered(self):
        token = issue_token({"id": 3, "username": "Priya", "role": "eeph"})
        assert verify_token(token[:-2] + "xx") is None

    def test_empty(self):
        assert verify_token("") is None
        assert verify_token(None) is None

    def test_expired(self):
        token = issue_token({"id": 3, "username": "Priya", "role": "eeph"})
        with patch("adp_portal.auth.TOKEN_MAX_AGE", -1):
            assert verify_token(token) is None

    def test_unknown_role_rejected(self):
        token = get_serializer().dumps({"id": 9, "username": "x", "role": "mayor"})
        assert verify_token(token) is None
