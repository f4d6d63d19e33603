"""
Async SQLAlchemy engine & session factory builders (asyncpg driver).

Nothing here is created at import time: ``create_app`` builds one engine
per application and keeps it on ``app.state`` so tests can run against
their own database.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import (AsyncEngine, AsyncSession,
                                    async_sessionmaker, create_async_engine)
from sqlalchemy.pool import StaticPool

from rotaledger.core.config import Settings


def build_engine(settings: Settings) -> AsyncEngine:
    url = settings.DATABASE_URL
    engine_args: dict[str, Any] = {
        "echo": False,
        "pool_pre_ping": True,
    }

    if "postgresql" in url:
        engine_args.update(
            {
                "pool_size": settings.DB_POOL_SIZE,
                "max_overflow": settings.DB_MAX_OVERFLOW,
                "pool_recycle": settings.DB_POOL_RECYCLE,
                "pool_timeout": settings.DB_POOL_TIMEOUT,
                "connect_args": {"timeout": settings.DB_CONNECT_TIMEOUT},
            }
        )
    elif url.startswith("sqlite") and (":memory:" in url or url.endswith("://")):
        # One shared connection, otherwise every session sees an empty database
        engine_args.update(
            {
                "connect_args": {"check_same_thread": False},
                "poolclass": StaticPool,
            }
        )

    return create_async_engine(url, **engine_args)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
