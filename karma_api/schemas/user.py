"""Pydantic schemas for User CRUD, login and voting."""

from __future__ import annotations

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from karma_api.core.clock import as_utc
from karma_api.models.user import UserRole

USER_ID_PATTERN = r"^[0-9a-f]{32}$"
_USER_ID_RE = re.compile(USER_ID_PATTERN)


def _strip_required(v: str, field: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError(f"{field} must not be empty")
    return v


class UserCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    nickname: str = Field(max_length=64)
    first_name: str = Field(alias="firstName", max_length=100)
    last_name: str = Field(alias="lastName", max_length=100)
    password: str = Field(min_length=1, max_length=256)
    role: UserRole = UserRole.USER

    @field_validator("nickname")
    @classmethod
    def _nickname(cls, v: str) -> str:
        return _strip_required(v, "Nickname")

    @field_validator("first_name", "last_name")
    @classmethod
    def _names(cls, v: str) -> str:
        return _strip_required(v, "Name")


class UserUpdate(BaseModel):
    """Editable profile fields. Nickname and rating are not editable."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    first_name: str | None = Field(default=None, alias="firstName", max_length=100)
    last_name: str | None = Field(default=None, alias="lastName", max_length=100)
    role: UserRole | None = None
    password: str | None = Field(default=None, min_length=1, max_length=256)

    @field_validator("first_name", "last_name")
    @classmethod
    def _names(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _strip_required(v, "Name")


class UserProfile(BaseModel):
    """Public view of a user."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    nickname: str
    first_name: str = Field(serialization_alias="firstName")
    last_name: str = Field(serialization_alias="lastName")
    role: str
    rating: int


class UserRecord(BaseModel):
    """Full user record as returned by mutating endpoints (no credentials)."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    nickname: str
    first_name: str = Field(serialization_alias="firstName")
    last_name: str = Field(serialization_alias="lastName")
    role: str
    rating: int
    last_voted_at: datetime | None = Field(default=None, serialization_alias="lastVotedAt")
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None

    @field_validator("last_voted_at", "created_at", "updated_at", "deleted_at")
    @classmethod
    def _utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v) if v is not None else None


class LoginRequest(BaseModel):
    nickname: str = Field(min_length=1)
    password: str = Field(min_length=1)


class VoteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")
    # bool kept distinct so JSON true is not coerced to 1
    vote: int | bool

    @field_validator("user_id")
    @classmethod
    def _user_id(cls, v: str) -> str:
        if not _USER_ID_RE.match(v):
            raise ValueError("userId must be a 32-character hex identifier")
        return v


class VoteResponse(BaseModel):
    message: str = "Vote recorded successfully."
