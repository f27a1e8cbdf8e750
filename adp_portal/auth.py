"""
Authentication utilities: password hashing, portal users and bearer tokens.
"""
import logging
import os
from typing import Optional

import bcrypt
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from adp_portal.config import SECRET_KEY, TOKEN_MAX_AGE
from adp_portal.database import get_db
from adp_portal.exceptions import AuthError
from adp_portal.roles import (
    ROLE_ENGINEER, ROLE_COMMISSIONER, ROLE_EEPH, ROLE_SEPH, ROLE_ENCPH, ROLE_CDMA,
    is_valid_role,
)

logger = logging.getLogger(__name__)

# One login per role; passwords may be overridden through <USERNAME>_PASSWORD
DEFAULT_USERS = [
    ("Venkatesh", ROLE_ENGINEER, "engineer123"),
    ("Ramesh", ROLE_COMMISSIONER, "commissioner123"),
    ("Priya", ROLE_EEPH, "eeph123"),
    ("Suresh", ROLE_SEPH, "seph123"),
    ("Karthik", ROLE_ENCPH, "encph123"),
    ("Srinivas", ROLE_CDMA, "cdma123"),
]


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    password_bytes = password.encode('utf-8')
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password_bytes, salt).decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_user(username: str, password: str, role: str) -> int:
    """Insert or update a portal user. Returns the user id."""
    if not is_valid_role(role):
        raise ValueError(f"Unknown role: {role}")
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT id FROM users WHERE LOWER(username) = ?", (username.lower(),))
        row = cursor.fetchone()
        if row:
            cursor.execute(
                "UPDATE users SET password_hash = ?, role = ?, is_active = 1 WHERE id = ?",
                (hash_password(password), role, row['id'])
            )
            return row['id']
        cursor.execute("SELECT COALESCE(MAX(id), 0) + 1 AS next_id FROM users")
        user_id = cursor.fetchone()['next_id']
        cursor.execute(
            "INSERT INTO users (id, username, password_hash, role) VALUES (?, ?, ?, ?)",
            (user_id, username, hash_password(password), role)
        )
        return user_id


def seed_default_users() -> int:
    """Create the default login for every role that has none yet."""
    created = 0
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT role FROM users")
        existing = {row['role'] for row in cursor.fetchall()}
    for username, role, password in DEFAULT_USERS:
        if role in existing:
            continue
        create_user(username, os.getenv(f"{username.upper()}_PASSWORD", password), role)
        created += 1
    if created:
        logger.info("Seeded %d default portal users", created)
    return created


def _find_user(username: str):
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(
            "SELECT id, username, password_hash, role, is_active FROM users WHERE LOWER(username) = ?",
            ((username or "").strip().lower(),)
        )
        return cursor.fetchone()


def username_exists(username: str) -> bool:
    row = _find_user(username)
    return bool(row) and bool(row['is_active'])


def authenticate(username: str, password: str) -> dict:
    """
    Authenticate a user by username and password.
    Returns the session user; raises AuthError naming which part was wrong.
    """
    row = _find_user(username)
    if not row or not row['is_active']:
        logger.info("Login refused: unknown username %r", username)
        raise AuthError("Invalid username", field="username")
    if not verify_password(password or "", row['password_hash']):
        logger.info("Login refused: wrong password for %s", row['username'])
        raise AuthError("Invalid password", field="password")
    logger.info("%s logged in as %s", row['username'], row['role'])
    return {'id': row['id'], 'username': row['username'], 'role': row['role']}


def get_serializer():
    """Get the URL-safe serializer for bearer tokens."""
    return URLSafeTimedSerializer(SECRET_KEY, salt="adp-portal-token")


def issue_token(user: dict) -> str:
    payload = {'id': user['id'], 'username': user['username'], 'role': user['role']}
    return get_serializer().dumps(payload)


def verify_token(token: str) -> Optional[dict]:
    """Decode a bearer token; None when it is missing, tampered or expired."""
    if not token:
        return None
    try:
        payload = get_serializer().loads(token, max_age=TOKEN_MAX_AGE)
    except SignatureExpired:
        logger.info("Rejected expired token")
        return None
    except BadSignature:
        return None
    if not isinstance(payload, dict) or not is_valid_role(payload.get('role')):
        return None
    return payload
