"""
User endpoints — registration, profile lookup/listing, admin updates and
soft-delete, and peer voting.

- GET operations and registration are public.
- PUT / DELETE require an admin token.
- POST /users/vote requires any valid token; the voter is the token subject.
"""

from __future__ import annotations

from email.utils import format_datetime

from fastapi import APIRouter, Depends, Header, Path, Query, Response

from karma_api.api.v1.deps import get_token_payload, get_user_service, require_admin
from karma_api.core.clock import as_utc
from karma_api.core.config import settings
from karma_api.models.user import User
from karma_api.schemas.token import TokenPayload
from karma_api.schemas.user import (
    USER_ID_PATTERN,
    UserCreate,
    UserProfile,
    UserRecord,
    UserUpdate,
    VoteRequest,
    VoteResponse,
)
from karma_api.services.user import UserService

router = APIRouter(prefix="/users", tags=["users"])


def _set_last_modified(response: Response, user: User) -> None:
    response.headers["Last-Modified"] = format_datetime(as_utc(user.updated_at), usegmt=True)


# ── Voting ──────────────────────────────────────────────────────────
@router.post("/vote", response_model=VoteResponse)
async def vote(
    body: VoteRequest,
    current: TokenPayload = Depends(get_token_payload),
    service: UserService = Depends(get_user_service),
) -> VoteResponse:
    """Cast a +1 / -1 vote for another user (once per hour per voter)."""
    await service.vote(current.userId, body.user_id, body.vote)
    return VoteResponse()


# ── Registration & lookup ───────────────────────────────────────────
@router.post("", response_model=UserRecord, status_code=201)
async def register_user(
    body: UserCreate,
    service: UserService = Depends(get_user_service),
) -> User:
    """Create a new account. Nicknames are unique, including deleted accounts."""
    return await service.register(body)


@router.get("", response_model=list[UserProfile])
async def list_users(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(
        default=settings.DEFAULT_PAGE_SIZE,
        alias="pageSize",
        ge=1,
        le=settings.MAX_PAGE_SIZE,
    ),
    service: UserService = Depends(get_user_service),
) -> list[User]:
    return await service.list_users(page, page_size)


@router.get("/nickname/{nickname}", response_model=UserProfile)
async def get_user_by_nickname(
    nickname: str,
    service: UserService = Depends(get_user_service),
) -> User:
    return await service.get_user_by_nickname(nickname)


@router.get("/{user_id}", response_model=UserProfile)
async def get_user(
    user_id: str,
    response: Response,
    service: UserService = Depends(get_user_service),
) -> User:
    user = await service.get_user(user_id)
    _set_last_modified(response, user)
    return user


# ── Admin mutations ─────────────────────────────────────────────────
@router.put("/{user_id}", response_model=UserRecord)
async def update_user(
    body: UserUpdate,
    response: Response,
    user_id: str = Path(pattern=USER_ID_PATTERN),
    if_unmodified_since: str | None = Header(default=None),
    _admin: TokenPayload = Depends(require_admin),
    service: UserService = Depends(get_user_service),
) -> User:
    """Update profile fields; honours If-Unmodified-Since (412 when stale)."""
    user = await service.update_user(user_id, body, if_unmodified_since)
    _set_last_modified(response, user)
    return user


@router.delete("/{user_id}", response_model=UserRecord)
async def delete_user(
    user_id: str = Path(pattern=USER_ID_PATTERN),
    _admin: TokenPayload = Depends(require_admin),
    service: UserService = Depends(get_user_service),
) -> User:
    """Soft-delete: the record is kept with ``deleted_at`` set."""
    return await service.delete_user(user_id)
