"""
Password hashing (bcrypt) and password-reset tokens.
"""
from __future__ import annotations

import base64
import hashlib
import secrets
from datetime import datetime, timedelta

import bcrypt

BCRYPT_ROUNDS = 10
BCRYPT_MAX_BYTES = 72
RESET_TOKEN_LIFETIME = timedelta(hours=1)


def _pre_hash_password(password: str) -> bytes:
    """
    Pre-hash password with SHA256 to handle passwords longer than 72 bytes.
    Returns base64-encoded SHA256 hash (always 44 bytes, safe for bcrypt).
    """
    sha256_hash = hashlib.sha256(password.encode("utf-8")).digest()
    return base64.b64encode(sha256_hash)


def _bcrypt_input(password: str) -> bytes:
    password_bytes = password.encode("utf-8")
    if len(password_bytes) > BCRYPT_MAX_BYTES:
        return _pre_hash_password(password)
    return password_bytes


def hash_password(password: str) -> str:
    hashed = bcrypt.hashpw(_bcrypt_input(password), bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(_bcrypt_input(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        # Not a bcrypt hash.
        return False


def generate_reset_token() -> str:
    return secrets.token_hex(32)


def hash_reset_token(token: str) -> str:
    """Only this digest is stored; the plaintext token goes out by email."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def reset_token_expiry(now: datetime) -> datetime:
    return now + RESET_TOKEN_LIFETIME
