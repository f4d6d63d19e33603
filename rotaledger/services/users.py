"""
Local user profiles — identity resolution, user management, employee data.

Accounts live at the identity provider; this module keeps the local row
that carries role, status and payroll profile for each provider uid.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rotaledger.core.config import Settings
from rotaledger.core.exceptions import Conflict, NotFound, ValidationFailed
from rotaledger.core.identity import VerifiedIdentity
from rotaledger.models.enums import ActionType, Role, UserStatus
from rotaledger.models.user import User
from rotaledger.schemas.user import EmployeeUpdate, UserCreate
from rotaledger.services.activity import ServiceContext, audited

logger = logging.getLogger(__name__)


async def _by_uid(db: AsyncSession, uid: str) -> User | None:
    result = await db.execute(select(User).where(User.uid == uid))
    return result.scalar_one_or_none()


async def resolve_identity(db: AsyncSession, identity: VerifiedIdentity) -> User:
    """Return the local profile for a verified identity, creating it on first sight."""
    user = await _by_uid(db, identity.uid)
    if user is not None:
        return user

    try:
        user = User(
            uid=identity.uid,
            email=identity.email,
            role=Role.STAFF,
            status=UserStatus.ACTIVE,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        logger.info("Auto-provisioned user %s (%s)", identity.email, identity.uid)
        return user
    except IntegrityError:
        await db.rollback()

    # Either a concurrent request provisioned the same uid, or the email
    # already belongs to a different uid
    user = await _by_uid(db, identity.uid)
    if user is None:
        raise Conflict("This email address is already linked to another account")
    logger.info("Race condition handled for uid %s", identity.uid)
    return user


async def seed_first_admin(db: AsyncSession, settings: Settings) -> None:
    if not settings.FIRST_ADMIN_UID or not settings.FIRST_ADMIN_EMAIL:
        return
    if await _by_uid(db, settings.FIRST_ADMIN_UID) is not None:
        return
    db.add(
        User(
            uid=settings.FIRST_ADMIN_UID,
            email=settings.FIRST_ADMIN_EMAIL.strip().lower(),
            role=Role.PRIMARY_ADMIN,
            status=UserStatus.ACTIVE,
            full_name="System Administrator",
        )
    )
    await db.commit()
    logger.info("First admin created: %s", settings.FIRST_ADMIN_EMAIL)


# ── User management ─────────────────────────────────────────────────
async def list_users(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).order_by(User.email.asc()))
    return list(result.scalars().all())


@audited(ActionType.CREATE_USER, lambda u: f"New user: {u.email}, Role: {u.role.value}")
async def create_user(ctx: ServiceContext, payload: UserCreate) -> User:
    existing = await ctx.db.execute(
        select(User.uid).where((User.uid == payload.uid) | (User.email == payload.email))
    )
    if existing.first() is not None:
        raise Conflict("A user with this uid or email already exists")

    user = User(**payload.model_dump(), status=UserStatus.ACTIVE)
    ctx.db.add(user)
    try:
        await ctx.db.commit()
    except IntegrityError:
        await ctx.db.rollback()
        raise Conflict("A user with this uid or email already exists") from None
    await ctx.db.refresh(user)
    logger.info("User %s created by %s", user.email, ctx.actor.email)
    return user


@audited(ActionType.DISABLE_USER, lambda u: f"Disabled user with UID: {u.uid}")
async def disable_user(ctx: ServiceContext, uid: str) -> User:
    """Mark a user inactive; their records are kept."""
    if uid == ctx.actor.uid:
        raise ValidationFailed("Admins cannot disable their own account")
    user = await _by_uid(ctx.db, uid)
    if user is None:
        raise NotFound("User not found")

    user.status = UserStatus.INACTIVE
    await ctx.db.commit()
    await ctx.db.refresh(user)
    logger.info("User %s disabled by %s", user.email, ctx.actor.email)
    return user


# ── Employee profiles ───────────────────────────────────────────────
async def list_employees(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).order_by(User.full_name.asc(), User.email.asc()))
    return list(result.scalars().all())


async def get_employee(db: AsyncSession, uid: str) -> User:
    user = await _by_uid(db, uid)
    if user is None:
        raise NotFound("Employee not found")
    return user


@audited(ActionType.UPDATE_EMPLOYEE, lambda u: f"Updated profile for user UID: {u.uid}")
async def update_employee(ctx: ServiceContext, uid: str, payload: EmployeeUpdate) -> User:
    user = await get_employee(ctx.db, uid)
    changes = payload.model_dump(exclude_unset=True)
    if uid == ctx.actor.uid and changes.get("status") == UserStatus.INACTIVE:
        raise ValidationFailed("Admins cannot disable their own account")

    for field, value in changes.items():
        setattr(user, field, value)
    await ctx.db.commit()
    await ctx.db.refresh(user)
    logger.info("Employee %s updated by %s", user.email, ctx.actor.email)
    return user
