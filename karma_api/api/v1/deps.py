"""
FastAPI dependencies — database session, service wiring and auth guards.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from karma_api.core.config import settings
from karma_api.core.errors import DomainError, ErrorKind
from karma_api.core.security import decode_access_token
from karma_api.db.session import async_session_factory
from karma_api.models.user import UserRole
from karma_api.repositories.user import SQLUserRepository
from karma_api.schemas.token import TokenPayload
from karma_api.services.user import UserService

# auto_error=False so a missing header surfaces as the same AUTH_FAILURE as a bad token
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_PREFIX}/users/login", auto_error=False
)


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── Service wiring ──────────────────────────────────────────────────
async def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(SQLUserRepository(db))


# ── Auth dependencies ───────────────────────────────────────────────
async def get_token_payload(
    token: Optional[str] = Depends(oauth2_scheme),
) -> TokenPayload:
    """Decode the bearer JWT. The voter is re-read from the store by the service."""
    if not token:
        raise DomainError(ErrorKind.AUTH_FAILURE)

    payload = decode_access_token(token)
    if payload is None:
        raise DomainError(ErrorKind.AUTH_FAILURE)

    try:
        return TokenPayload.model_validate(payload)
    except ValidationError:
        raise DomainError(ErrorKind.AUTH_FAILURE) from None


async def require_admin(
    current: TokenPayload = Depends(get_token_payload),
) -> TokenPayload:
    """Only allow admin role to proceed."""
    if current.role != UserRole.ADMIN.value:
        raise DomainError(ErrorKind.AUTH_FAILURE)
    return current
