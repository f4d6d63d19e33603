"""
Shared test fixtures for the Rotaledger test suite.

Every test gets its own app instance over a fresh in-memory aiosqlite
database, a frozen clock, and identity tokens signed with a test key.
"""

import os
import sys
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CORS_ORIGINS"] = '["*"]'

from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession

from rotaledger.core.config import Settings
from rotaledger.db.base import Base
from rotaledger.main import create_app
from rotaledger.models.enums import Role, UserStatus
from rotaledger.models.user import User

TEST_KEY = "test-identity-signing-key"
TEST_NOW = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Deterministic replacement for ``app.state.clock``."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


def make_token(uid: str, email: str, key: str = TEST_KEY, expires_in: int = 3600) -> str:
    payload = {
        "sub": uid,
        "email": email,
        "iat": datetime.now(timezone.utc),
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    }
    return jwt.encode(payload, key, algorithm="HS256")


def auth(uid: str, email: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(uid, email)}"}


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(TEST_NOW)


async def build_test_app(clock: FrozenClock, **overrides) -> FastAPI:
    """A fresh application over its own in-memory database, tables created."""
    application = create_app(
        Settings(
            DATABASE_URL="sqlite+aiosqlite:///:memory:",
            IDENTITY_JWT_KEY=TEST_KEY,
            IDENTITY_JWT_ALGORITHMS=["HS256"],
            **overrides,
        )
    )
    application.state.clock = clock

    async with application.state.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    return application


@pytest.fixture
async def app(clock: FrozenClock) -> AsyncGenerator[FastAPI, None]:
    application = await build_test_app(clock)

    yield application

    await application.state.engine.dispose()


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def db_session(app: FastAPI) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with app.state.session_factory() as session:
        yield session


async def _add_user(session: AsyncSession, **fields) -> User:
    user = User(**fields)
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await _add_user(
        db_session,
        uid="admin-uid",
        email="admin@example.com",
        role=Role.PRIMARY_ADMIN,
        status=UserStatus.ACTIVE,
        full_name="Alice Admin",
        pay_rate=Decimal("20.00"),
    )


@pytest.fixture
async def staff_user(db_session: AsyncSession) -> User:
    return await _add_user(
        db_session,
        uid="staff-uid",
        email="staff@example.com",
        role=Role.STAFF,
        status=UserStatus.ACTIVE,
        full_name="Sam Staff",
        job_role="Server",
        pay_rate=Decimal("10.00"),
    )


@pytest.fixture
async def other_staff(db_session: AsyncSession) -> User:
    return await _add_user(
        db_session,
        uid="other-uid",
        email="other@example.com",
        role=Role.STAFF,
        status=UserStatus.ACTIVE,
        full_name="Olive Other",
    )


@pytest.fixture
def admin_headers(admin_user: User) -> dict[str, str]:
    return auth(admin_user.uid, admin_user.email)


@pytest.fixture
def staff_headers(staff_user: User) -> dict[str, str]:
    return auth(staff_user.uid, staff_user.email)


@pytest.fixture
def other_headers(other_staff: User) -> dict[str, str]:
    return auth(other_staff.uid, other_staff.email)
