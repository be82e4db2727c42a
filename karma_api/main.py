"""
Karma API — application entry point.

This is the **only** file that assembles the app.  Business rules live in
`services/`, persistence in `repositories/` and `models/`, HTTP in `api/`.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import select

from karma_api.api.v1.api import api_router
from karma_api.api.v1.endpoints.auth import limiter
from karma_api.core.clock import utcnow
from karma_api.core.config import settings
from karma_api.core.exceptions import register_exception_handlers
from karma_api.core.security import generate_salt, get_password_hash
from karma_api.db.base import Base
from karma_api.db.session import async_session_factory, engine
from karma_api.models.user import User, UserRole

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


async def seed_first_admin() -> None:
    """Create the bootstrap admin account unless the nickname is taken."""
    async with async_session_factory() as session:
        result = await session.execute(
            select(User).where(User.nickname == settings.FIRST_ADMIN_NICKNAME)
        )
        if result.scalar_one_or_none() is not None:
            return
        salt = generate_salt()
        now = utcnow()
        session.add(
            User(
                nickname=settings.FIRST_ADMIN_NICKNAME,
                first_name="System",
                last_name="Administrator",
                password=get_password_hash(settings.FIRST_ADMIN_PASSWORD, salt),
                salt=salt,
                role=UserRole.ADMIN.value,
                created_at=now,
                updated_at=now,
            )
        )
        await session.commit()
        logger.info(
            "Default admin created: %s (password: <redacted>)",
            settings.FIRST_ADMIN_NICKNAME,
        )


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")

    await seed_first_admin()

    logger.info("%s v%s started", settings.PROJECT_NAME, settings.VERSION)
    yield
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="User accounts with peer rating",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Last-Modified"],
    )

    # Login throttling (slowapi reads the limiter from app state)
    application.state.limiter = limiter

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    # Mount API v1
    application.include_router(api_router, prefix=settings.API_V1_PREFIX)

    return application


app = create_app()
