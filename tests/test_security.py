"""Tests for password hashing and JWT helpers."""

from datetime import timedelta

from jose import jwt

from karma_api.core.config import settings
from karma_api.core.security import (
    create_access_token,
    decode_access_token,
    generate_salt,
    get_password_hash,
    verify_password,
)


def test_salt_is_random_hex():
    a, b = generate_salt(), generate_salt()
    assert a != b
    assert len(a) == 32
    int(a, 16)


def test_password_hash_roundtrip():
    salt = generate_salt()
    hashed = get_password_hash("s3cret", salt)
    assert hashed != "s3cret"
    assert verify_password("s3cret", hashed) is True
    assert verify_password("wrong", hashed) is False


def test_salt_changes_digest():
    assert get_password_hash("same", generate_salt()) != get_password_hash("same", generate_salt())

    salt = generate_salt()
    assert get_password_hash("same", salt) == get_password_hash("same", salt)


def test_verify_rejects_malformed_digest():
    assert verify_password("anything", "not-a-real-hash") is False


def test_access_token_claims():
    token = create_access_token("a" * 32, "alice", "admin")
    payload = decode_access_token(token)
    assert payload is not None
    assert payload["sub"] == "a" * 32
    assert payload["userId"] == "a" * 32
    assert payload["nickname"] == "alice"
    assert payload["role"] == "admin"
    assert payload["type"] == "access"
    lifetime = payload["exp"] - payload["iat"]
    # 24h plus the 30s iat backdating
    assert abs(lifetime - (settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60 + 30)) <= 2


def test_expired_token_rejected():
    token = create_access_token("b" * 32, "bob", "user", expires_delta=timedelta(seconds=-1))
    assert decode_access_token(token) is None


def test_token_signed_with_other_key_rejected():
    forged = jwt.encode(
        {"sub": "c" * 32, "userId": "c" * 32, "nickname": "eve", "role": "admin", "type": "access"},
        "some-other-key",
        algorithm=settings.ALGORITHM,
    )
    assert decode_access_token(forged) is None


def test_non_access_token_rejected():
    token = jwt.encode({"sub": "d" * 32, "type": "refresh"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    assert decode_access_token(token) is None


def test_garbage_token_rejected():
    assert decode_access_token("not.a.jwt") is None
