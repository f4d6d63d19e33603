"""
Rotaledger — application entry point.

This is the **only** file that assembles the app.  Business logic lives
in ``services/``; ``api/`` adapts it to HTTP.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter
from slowapi.util import get_remote_address

from rotaledger.api.v1.api import api_router
from rotaledger.api.v1.endpoints.reports import build_export_router
from rotaledger.core.clock import utcnow
from rotaledger.core.config import Settings, settings
from rotaledger.core.exceptions import register_exception_handlers
from rotaledger.core.identity import JWTIdentityVerifier
from rotaledger.db.base import Base
from rotaledger.db.session import build_engine, build_session_factory

# Ensure all models are imported so metadata.create_all can see them
from rotaledger.models.activity_log import ActivityLog  # noqa: F401
from rotaledger.models.availability import AvailabilityRequest  # noqa: F401
from rotaledger.models.rota import ScheduledShift, ShiftTemplate  # noqa: F401
from rotaledger.models.time_entry import TimeEntry  # noqa: F401
from rotaledger.models.transaction import Transaction  # noqa: F401
from rotaledger.models.user import User  # noqa: F401
from rotaledger.services.activity import ActivityRecorder
from rotaledger.services.users import seed_first_admin

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create all tables
    async with app.state.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")

    # Seed the first admin on first run
    async with app.state.session_factory() as session:
        await seed_first_admin(session, app.state.settings)

    logger.info("🚀 Rotaledger v%s started", app.state.settings.VERSION)
    yield
    await app.state.engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app(app_settings: Settings | None = None) -> FastAPI:
    app_settings = app_settings or settings
    application = FastAPI(
        title=app_settings.PROJECT_NAME,
        description="Restaurant ledger, rota and payroll back-office",
        version=app_settings.VERSION,
        openapi_url=f"{app_settings.API_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Shared resources; tests swap clock and identity on app.state
    engine = build_engine(app_settings)
    application.state.settings = app_settings
    application.state.engine = engine
    application.state.session_factory = build_session_factory(engine)
    application.state.identity = JWTIdentityVerifier.from_settings(app_settings)
    application.state.activity_recorder = ActivityRecorder(application.state.session_factory)
    application.state.clock = utcnow
    # Export rate limit, keyed by client IP; one counter store per app
    limiter = Limiter(key_func=get_remote_address)
    application.state.limiter = limiter

    # CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    # Mount API v1
    application.include_router(api_router, prefix=app_settings.API_PREFIX)
    application.include_router(
        build_export_router(limiter, app_settings.EXPORT_RATE_LIMIT),
        prefix=app_settings.API_PREFIX,
    )

    return application


app = create_app()
