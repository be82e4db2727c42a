"""
Shared test fixtures for the Karma API test suite.

Every test gets a fresh in-memory SQLite database (aiosqlite + StaticPool)
wired into the app through ``dependency_overrides``.
"""

import os
import sys
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["PASSWORD_HASH_ROUNDS"] = "1000"
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["LOG_LEVEL"] = "WARNING"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from karma_api.api.v1.deps import get_db
from karma_api.api.v1.endpoints.auth import limiter
from karma_api.core.security import create_access_token
from karma_api.db.base import Base
from karma_api.main import app
from karma_api.models.user import User, UserRole
from karma_api.repositories.user import SQLUserRepository
from karma_api.schemas.user import UserCreate
from karma_api.services.user import UserService

DEFAULT_PASSWORD = "correct horse battery"


class FakeClock:
    """Controllable replacement for ``utcnow``."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(autouse=True)
def _login_limiter():
    """Login throttling is exercised explicitly; keep it out of the way otherwise."""
    limiter.reset()
    limiter.enabled = False
    yield
    limiter.enabled = False
    limiter.reset()


@pytest.fixture
async def engine():
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repository(db_session) -> SQLUserRepository:
    return SQLUserRepository(db_session)


@pytest.fixture
def service(repository, clock) -> UserService:
    """Service on a fake clock, sharing the database the app sees."""
    return UserService(repository, clock=clock)


@pytest.fixture
async def async_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


# ── Helpers ─────────────────────────────────────────────────────────
@pytest.fixture
def make_user(service):
    async def _make(
        nickname: str,
        role: UserRole = UserRole.USER,
        password: str = DEFAULT_PASSWORD,
    ) -> User:
        return await service.register(
            UserCreate(
                nickname=nickname,
                firstName=nickname.capitalize(),
                lastName="Tester",
                password=password,
                role=role,
            )
        )

    return _make


def _auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(user.id, user.nickname, user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    """Bearer headers for a user, as issued by /users/login."""
    return _auth_headers


@pytest.fixture
async def admin_headers(make_user) -> dict[str, str]:
    admin = await make_user("root", role=UserRole.ADMIN)
    return _auth_headers(admin)
