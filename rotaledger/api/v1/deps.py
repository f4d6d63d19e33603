"""
FastAPI dependencies — database session, identity, role guards and the
per-request service context.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import AsyncGenerator
from typing import Optional

from fastapi import BackgroundTasks, Depends, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from rotaledger.core.exceptions import Forbidden, Unauthorized, ValidationFailed
from rotaledger.models.user import User
from rotaledger.schemas.common import DateRange, check_date_order
from rotaledger.services import users as user_service
from rotaledger.services.activity import ServiceContext

bearer_scheme = HTTPBearer(auto_error=False)


# ── Database session ────────────────────────────────────────────────
async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    async with request.app.state.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── Auth dependencies ───────────────────────────────────────────────
async def _user_for_token(request: Request, token: str, db: AsyncSession) -> User:
    identity = request.app.state.identity.verify(token)
    user = await user_service.resolve_identity(db, identity)
    if not user.is_active:
        raise Forbidden("Your account has been disabled")
    return user


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Verify the bearer token and return the active local profile."""
    if credentials is None or not credentials.credentials:
        raise Unauthorized("No token provided")
    return await _user_for_token(request, credentials.credentials, db)


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise Forbidden("Admins only")
    return current_user


async def require_admin_query_token(
    request: Request,
    token: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Admin guard for browser downloads, which cannot set an Authorization header."""
    if not token:
        raise Unauthorized("No token provided")
    user = await _user_for_token(request, token, db)
    if not user.is_admin:
        raise Forbidden("Admins only")
    return user


# ── Service context ─────────────────────────────────────────────────
def _context(request: Request, db: AsyncSession, actor: User, background: BackgroundTasks) -> ServiceContext:
    state = request.app.state
    return ServiceContext(
        db=db,
        actor=actor,
        recorder=state.activity_recorder,
        background=background,
        clock=state.clock,
        currency=state.settings.CURRENCY_SYMBOL,
    )


async def get_service_context(
    request: Request,
    background: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ServiceContext:
    return _context(request, db, current_user, background)


async def get_admin_context(
    request: Request,
    background: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
) -> ServiceContext:
    return _context(request, db, admin, background)


# ── Query windows ───────────────────────────────────────────────────
def get_date_range(start_date: dt.date, end_date: dt.date) -> DateRange:
    try:
        check_date_order(start_date, end_date)
    except ValueError as e:
        raise ValidationFailed(str(e)) from None
    return DateRange(start_date=start_date, end_date=end_date)
