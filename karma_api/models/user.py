"""
User model — identity, credentials, role and peer rating.
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from karma_api.db.base import Base


class UserRole(str, enum.Enum):
    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"


def _new_id() -> str:
    return uuid.uuid4().hex


def _now() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: str = Column(String(32), primary_key=True, default=_new_id)  # type: ignore[assignment]
    nickname: str = Column(String(64), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    first_name: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    last_name: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    password: str = Column(String(256), nullable=False)  # type: ignore[assignment]
    salt: str = Column(String(64), nullable=False)  # type: ignore[assignment]
    role: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default=UserRole.USER.value,
        server_default=UserRole.USER.value,
    )  # user | moderator | admin
    rating: int = Column(Integer, nullable=False, default=0, server_default="0")  # type: ignore[assignment]
    last_voted_at: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(DateTime(timezone=True), nullable=False, default=_now)  # type: ignore[assignment]
    updated_at: datetime = Column(DateTime(timezone=True), nullable=False, default=_now)  # type: ignore[assignment]
    deleted_at: datetime | None = Column(DateTime(timezone=True), nullable=True, index=True)  # type: ignore[assignment]

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
