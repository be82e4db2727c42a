"""
User service — the façade the HTTP layer talks to.

Owns registration, lookups, listing, soft-delete, login, the profile update
precondition check, and delegates votes to ``VotingEngine``.  Failures are
raised as ``DomainError``; the HTTP layer maps them to responses.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Any

from karma_api.core.clock import as_utc, utcnow
from karma_api.core.errors import DomainError, ErrorKind
from karma_api.core.security import (
    DUMMY_PASSWORD_HASH,
    create_access_token,
    generate_salt,
    get_password_hash,
    verify_password,
)
from karma_api.models.user import User, UserRole
from karma_api.repositories.user import UserStore
from karma_api.schemas.user import UserCreate, UserUpdate
from karma_api.services.voting import VotingEngine

logger = logging.getLogger(__name__)


def parse_http_date(value: str) -> datetime | None:
    """Parse an HTTP-date (or ISO-8601) header value; ``None`` if invalid."""
    value = value.strip()
    if not value:
        return None
    try:
        return as_utc(parsedate_to_datetime(value))
    except (TypeError, ValueError, IndexError):
        pass
    try:
        return as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        return None


def check_precondition(updated_at: datetime, if_unmodified_since: datetime) -> bool:
    """
    True when the caller's view is current.

    HTTP dates carry whole seconds, so sub-second precision of the stored
    timestamp is dropped before comparing.
    """
    last_modified = as_utc(updated_at).replace(microsecond=0)
    return last_modified <= if_unmodified_since


class UserService:
    def __init__(
        self,
        repository: UserStore,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._repo = repository
        self._clock = clock
        self.voting = VotingEngine(repository, clock=clock)

    async def _get_active(self, user_id: str) -> User:
        user = await self._repo.get_by_id(user_id)
        if user is None or user.is_deleted:
            raise DomainError(ErrorKind.USER_NOT_FOUND)
        return user

    # ── Registration ────────────────────────────────────────────────
    async def register(self, data: UserCreate) -> User:
        # soft-deleted accounts keep their nickname
        if await self._repo.get_by_nickname(data.nickname) is not None:
            raise DomainError(ErrorKind.DUPLICATE_NICKNAME)

        salt = generate_salt()
        now = self._clock()
        user = await self._repo.create(
            {
                "nickname": data.nickname,
                "first_name": data.first_name,
                "last_name": data.last_name,
                "password": get_password_hash(data.password, salt),
                "salt": salt,
                "role": data.role.value,
                "rating": 0,
                "last_voted_at": None,
                "created_at": now,
                "updated_at": now,
                "deleted_at": None,
            }
        )
        logger.info("Registered user %s (%s)", user.nickname, user.id)
        return user

    # ── Lookups ─────────────────────────────────────────────────────
    async def get_user(self, user_id: str) -> User:
        return await self._get_active(user_id)

    async def get_user_by_nickname(self, nickname: str) -> User:
        user = await self._repo.get_by_nickname(nickname)
        if user is None or user.is_deleted:
            raise DomainError(ErrorKind.USER_NOT_FOUND)
        return user

    async def list_users(self, page: int, page_size: int) -> list[User]:
        return await self._repo.list_active(page, page_size)

    # ── Mutations ───────────────────────────────────────────────────
    async def update_user(
        self,
        user_id: str,
        changes: UserUpdate,
        if_unmodified_since: str | None = None,
    ) -> User:
        """Apply *changes* unless the record moved on since the caller read it."""
        user = await self._get_active(user_id)

        if if_unmodified_since:
            since = parse_http_date(if_unmodified_since)
            if since is None:
                logger.debug("Ignoring unparseable If-Unmodified-Since %r", if_unmodified_since)
            elif not check_precondition(user.updated_at, since):
                raise DomainError(ErrorKind.PRECONDITION_FAILED)

        fields: dict[str, Any] = changes.model_dump(exclude_unset=True, exclude_none=True)
        password = fields.pop("password", None)
        if password is not None:
            user.salt = generate_salt()
            user.password = get_password_hash(password, user.salt)
        for field, value in fields.items():
            if isinstance(value, UserRole):
                value = value.value
            setattr(user, field, value)
        user.updated_at = self._clock()

        user = await self._repo.save(user)
        logger.info("Updated user %s: %s", user_id, sorted(changes.model_fields_set))
        return user

    async def delete_user(self, user_id: str) -> User:
        user = await self._get_active(user_id)
        user.deleted_at = self._clock()
        user = await self._repo.save(user)
        logger.info("Soft-deleted user %s (%s)", user.nickname, user_id)
        return user

    # ── Credentials ─────────────────────────────────────────────────
    async def login(self, nickname: str, password: str) -> str:
        """Return a signed access token; any failure is the same AUTH_FAILURE."""
        user = await self._repo.get_by_nickname(nickname)
        digest = user.password if user is not None else DUMMY_PASSWORD_HASH
        password_ok = verify_password(password, digest)
        if user is None or user.is_deleted or not password_ok:
            raise DomainError(ErrorKind.AUTH_FAILURE)
        return create_access_token(user.id, user.nickname, user.role)

    # ── Voting ──────────────────────────────────────────────────────
    async def vote(self, voter_id: str, voted_user_id: str, vote_value: int) -> None:
        await self.voting.apply_vote(voter_id, voted_user_id, vote_value)
