"""
Availability requests — staff time-off windows and their admin review.

A request starts ``pending`` and is either approved (kept, and from then
on blocks the rota view) or rejected, which removes the row. The
rejection's window and reason survive in the activity log entry.
"""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rotaledger.core.clock import date_window
from rotaledger.core.exceptions import Conflict, Forbidden, NotFound
from rotaledger.models.availability import AvailabilityRequest
from rotaledger.models.enums import ActionType, AvailabilityStatus
from rotaledger.models.user import User
from rotaledger.schemas.availability import (AvailabilityCreate,
                                             AvailabilityRead,
                                             PendingAvailabilityRead)
from rotaledger.services.activity import ServiceContext, audited

logger = logging.getLogger(__name__)


def _window(entry: AvailabilityRequest) -> str:
    return f"From {entry.start_time.isoformat()} to {entry.end_time.isoformat()}"


async def _get(db: AsyncSession, entry_id: int) -> AvailabilityRequest | None:
    result = await db.execute(select(AvailabilityRequest).where(AvailabilityRequest.id == entry_id))
    return result.scalar_one_or_none()


async def _reload(db: AsyncSession, entry_id: int) -> AvailabilityRequest:
    result = await db.execute(select(AvailabilityRequest).where(AvailabilityRequest.id == entry_id))
    entry = result.scalar_one()
    await db.refresh(entry)
    return entry


async def list_for_user(db: AsyncSession, requester: User, user_uid: str) -> list[AvailabilityRequest]:
    if not requester.is_admin and requester.uid != user_uid:
        raise Forbidden("You are not authorized to view this user's availability")
    result = await db.execute(
        select(AvailabilityRequest)
        .where(AvailabilityRequest.user_uid == user_uid)
        .order_by(AvailabilityRequest.start_time.asc())
    )
    return list(result.scalars().all())


@audited(ActionType.ADD_UNAVAILABILITY, _window)
async def submit(ctx: ServiceContext, payload: AvailabilityCreate) -> AvailabilityRequest:
    entry = AvailabilityRequest(
        user_uid=ctx.actor.uid,
        start_time=payload.start_time,
        end_time=payload.end_time,
        reason=payload.reason,
        is_all_day=payload.is_all_day,
        status=AvailabilityStatus.PENDING,
    )
    ctx.db.add(entry)
    await ctx.db.commit()
    await ctx.db.refresh(entry)
    logger.info("Availability request %d submitted by %s", entry.id, ctx.actor.email)
    return entry


@audited(
    ActionType.DELETE_UNAVAILABILITY,
    lambda entry_id: f"Deleted availability entry ID: {entry_id}",
)
async def delete_entry(ctx: ServiceContext, entry_id: int) -> int:
    """Owners may withdraw their pending requests; admins may delete any."""
    entry = await _get(ctx.db, entry_id)
    if entry is None:
        raise NotFound("Availability entry not found")

    stmt = delete(AvailabilityRequest).where(AvailabilityRequest.id == entry_id)
    if not ctx.actor.is_admin:
        if entry.user_uid != ctx.actor.uid:
            raise Forbidden("You are not authorized to delete this entry")
        if entry.status != AvailabilityStatus.PENDING:
            raise Conflict("Approved requests can only be removed by an admin")
        stmt = stmt.where(AvailabilityRequest.status == AvailabilityStatus.PENDING)

    result = await ctx.db.execute(stmt)
    if result.rowcount == 0:
        await ctx.db.rollback()
        raise Conflict("Availability entry changed while it was being deleted")
    await ctx.db.commit()
    logger.info("Availability entry %d deleted by %s", entry_id, ctx.actor.email)
    return entry_id


@audited(ActionType.APPROVE_AVAILABILITY, lambda entry: f"Approved request ID: {entry.id}")
async def approve(ctx: ServiceContext, entry_id: int) -> AvailabilityRequest:
    result = await ctx.db.execute(
        update(AvailabilityRequest)
        .where(
            AvailabilityRequest.id == entry_id,
            AvailabilityRequest.status == AvailabilityStatus.PENDING,
        )
        .values(status=AvailabilityStatus.APPROVED)
    )
    if result.rowcount == 0:
        await ctx.db.rollback()
        if await _get(ctx.db, entry_id) is None:
            raise NotFound("Availability request not found")
        raise Conflict("Availability request is not pending")
    await ctx.db.commit()

    entry = await _reload(ctx.db, entry_id)
    logger.info("Availability request %d approved by %s", entry_id, ctx.actor.email)
    return entry


@audited(
    ActionType.REJECT_AVAILABILITY,
    lambda entry: (
        f"Rejected request ID: {entry.id} for {entry.user_uid}. "
        f"{_window(entry)}. Reason: {entry.reason or 'N/A'}"
    ),
)
async def reject(ctx: ServiceContext, entry_id: int) -> AvailabilityRead:
    entry = await _get(ctx.db, entry_id)
    if entry is None:
        raise NotFound("Availability request not found")
    if entry.status != AvailabilityStatus.PENDING:
        raise Conflict("Availability request is not pending")
    snapshot = AvailabilityRead.model_validate(entry)

    result = await ctx.db.execute(
        delete(AvailabilityRequest).where(
            AvailabilityRequest.id == entry_id,
            AvailabilityRequest.status == AvailabilityStatus.PENDING,
        )
    )
    if result.rowcount == 0:
        await ctx.db.rollback()
        raise Conflict("Availability request is not pending")
    await ctx.db.commit()
    logger.info("Availability request %d rejected by %s", entry_id, ctx.actor.email)
    return snapshot


async def list_pending(db: AsyncSession) -> list[PendingAvailabilityRead]:
    result = await db.execute(
        select(AvailabilityRequest, User.full_name, User.email)
        .join(User, User.uid == AvailabilityRequest.user_uid)
        .where(AvailabilityRequest.status == AvailabilityStatus.PENDING)
        .order_by(AvailabilityRequest.start_time.asc())
    )
    return [
        PendingAvailabilityRead(
            **AvailabilityRead.model_validate(entry).model_dump(),
            full_name=full_name,
            email=email,
        )
        for entry, full_name, email in result.all()
    ]


async def list_unavailability(
    db: AsyncSession, start_date: date, end_date: date, approved_only: bool = True
) -> list[AvailabilityRequest]:
    """Requests overlapping the dates: ``start < window_end AND end > window_start``."""
    window_start, window_end = date_window(start_date, end_date)
    stmt = select(AvailabilityRequest).where(
        AvailabilityRequest.start_time < window_end,
        AvailabilityRequest.end_time > window_start,
    )
    if approved_only:
        stmt = stmt.where(AvailabilityRequest.status == AvailabilityStatus.APPROVED)
    result = await db.execute(stmt.order_by(AvailabilityRequest.start_time.asc()))
    return list(result.scalars().all())
