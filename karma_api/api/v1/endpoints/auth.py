"""
Auth endpoints — nickname/password login returning a bearer JWT.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from karma_api.api.v1.deps import get_user_service
from karma_api.core.config import settings
from karma_api.schemas.token import Token
from karma_api.schemas.user import LoginRequest
from karma_api.services.user import UserService

# Rate limiter, keyed by client IP
limiter = Limiter(key_func=get_remote_address)

router = APIRouter(prefix="/users", tags=["auth"])


@router.post("/login", response_model=Token)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    body: LoginRequest,
    service: UserService = Depends(get_user_service),
) -> Token:
    """Authenticate with nickname/password. Wrong nickname and wrong password look the same."""
    token = await service.login(body.nickname, body.password)
    return Token(token=token)
