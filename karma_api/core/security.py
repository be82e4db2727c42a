"""
JWT token creation / verification and salted password hashing (PBKDF2).
"""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext
from passlib.hash import pbkdf2_sha512

from karma_api.core.config import settings

pwd_context = CryptContext(schemes=["pbkdf2_sha512"], deprecated="auto")

_ALGORITHM = settings.ALGORITHM
_SECRET = settings.SECRET_KEY
_SALT_BYTES = 16
# Tokens are backdated slightly so a verifier with a lagging clock accepts them
_IAT_LEEWAY = timedelta(seconds=30)


# ── Passwords ───────────────────────────────────────────────────────
def generate_salt() -> str:
    return secrets.token_hex(_SALT_BYTES)


def get_password_hash(plain: str, salt: str) -> str:
    hasher = pbkdf2_sha512.using(
        rounds=settings.PASSWORD_HASH_ROUNDS,
        salt=bytes.fromhex(salt),
    )
    return hasher.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        # malformed digest in the store
        return False


# Checked when the nickname is unknown so every failed login costs one PBKDF2 run
DUMMY_PASSWORD_HASH = get_password_hash("not-a-real-password", generate_salt())


# ── JWT tokens ──────────────────────────────────────────────────────
def create_access_token(
    user_id: str,
    nickname: str,
    role: str,
    expires_delta: timedelta | None = None,
) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    claims: dict[str, Any] = {
        "sub": user_id,
        "userId": user_id,
        "nickname": nickname,
        "role": role,
        "type": "access",
        "iat": int((now - _IAT_LEEWAY).timestamp()),
        "exp": expire,
    }
    return jwt.encode(claims, _SECRET, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    """Return payload dict if *access* token is valid, else ``None``."""
    try:
        payload = jwt.decode(token, _SECRET, algorithms=[_ALGORITHM])
        if payload.get("type") != "access":
            return None
        return payload
    except JWTError:
        return None
