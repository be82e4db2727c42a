"""Pydantic schemas for JWT tokens."""

from __future__ import annotations

from pydantic import BaseModel


class Token(BaseModel):
    token: str
    token_type: str = "bearer"


class TokenPayload(BaseModel):
    sub: str
    userId: str
    nickname: str
    role: str
    type: str | None = None
