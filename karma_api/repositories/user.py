"""
User persistence.

``UserStore`` is the capability the service layer depends on;
``SQLUserRepository`` implements it on an ``AsyncSession``.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Protocol, runtime_checkable

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from karma_api.models.user import User


@runtime_checkable
class UserStore(Protocol):
    async def create(self, data: dict[str, Any]) -> User: ...

    async def get_by_id(self, user_id: str) -> User | None: ...

    async def get_by_nickname(self, nickname: str) -> User | None: ...

    async def list_active(self, page: int, page_size: int) -> list[User]: ...

    async def save(self, user: User) -> User: ...

    async def record_vote(
        self,
        voter_id: str,
        votee_id: str,
        value: int,
        now: datetime,
        cooldown: timedelta,
    ) -> bool: ...


class SQLUserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, data: dict[str, Any]) -> User:
        """Insert a new user and return it with store-assigned fields."""
        user = User(**data)
        self.session.add(user)
        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def get_by_id(self, user_id: str) -> User | None:
        """Fetch by primary key, soft-deleted rows included."""
        return await self.session.get(User, user_id, populate_existing=True)

    async def get_by_nickname(self, nickname: str) -> User | None:
        """Fetch by nickname, soft-deleted rows included."""
        stmt = (
            select(User)
            .where(User.nickname == nickname)
            .execution_options(populate_existing=True)
        )
        return (await self.session.scalars(stmt)).one_or_none()

    async def list_active(self, page: int, page_size: int) -> list[User]:
        stmt = (
            select(User)
            .where(User.deleted_at.is_(None))
            .order_by(User.created_at, User.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return list((await self.session.scalars(stmt)).all())

    async def save(self, user: User) -> User:
        """Flush pending attribute changes on *user* and commit."""
        self.session.add(user)
        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def record_vote(
        self,
        voter_id: str,
        votee_id: str,
        value: int,
        now: datetime,
        cooldown: timedelta,
    ) -> bool:
        """
        Apply an accepted vote in one transaction.

        The votee's rating is incremented in place, then the voter's
        ``last_voted_at`` is stamped only if the cooldown still holds.
        Returns ``False`` (and writes nothing) when another vote by the same
        voter landed first.
        """
        await self.session.execute(
            update(User)
            .where(User.id == votee_id)
            .values(rating=User.rating + value, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(
            update(User)
            .where(
                User.id == voter_id,
                or_(User.last_voted_at.is_(None), User.last_voted_at <= now - cooldown),
            )
            .values(last_voted_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await self.session.rollback()
            return False
        await self.session.commit()
        return True
