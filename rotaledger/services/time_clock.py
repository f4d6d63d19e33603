"""
Time clock — clock-in / clock-out with a single open entry per user.

The partial unique index on open entries backs the application check,
so two concurrent clock-ins for one user cannot both commit. Clock-out
closes the entry with a conditional update; hours are fixed at that
moment and never recomputed.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rotaledger.core.clock import date_window, ensure_utc
from rotaledger.core.exceptions import Conflict, NotFound
from rotaledger.models.enums import ActionType
from rotaledger.models.time_entry import TimeEntry
from rotaledger.models.user import User
from rotaledger.schemas.time_clock import (ClockStatus, TimeEntryRead,
                                           TimeEntryWithEmployee)
from rotaledger.services.activity import ServiceContext, audited

logger = logging.getLogger(__name__)

_ALREADY_IN = "You have already clocked in. Please clock out before clocking in again."


def hours_between(start: datetime, end: datetime) -> Decimal:
    """Elapsed hours rounded half-up to two decimal places."""
    seconds = Decimal(str((ensure_utc(end) - ensure_utc(start)).total_seconds()))
    return (seconds / Decimal(3600)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


async def _open_entry(db: AsyncSession, user_uid: str) -> TimeEntry | None:
    result = await db.execute(
        select(TimeEntry)
        .where(TimeEntry.user_uid == user_uid, TimeEntry.clock_out_timestamp.is_(None))
        .order_by(TimeEntry.clock_in_timestamp.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


@audited(ActionType.CLOCK_IN, lambda _entry: "User clocked in.")
async def clock_in(ctx: ServiceContext) -> TimeEntry:
    if await _open_entry(ctx.db, ctx.actor.uid) is not None:
        raise Conflict(_ALREADY_IN)

    entry = TimeEntry(user_uid=ctx.actor.uid, clock_in_timestamp=ctx.now())
    ctx.db.add(entry)
    try:
        await ctx.db.commit()
    except IntegrityError:
        await ctx.db.rollback()
        raise Conflict(_ALREADY_IN) from None
    await ctx.db.refresh(entry)
    logger.info("%s clocked in (entry %d)", ctx.actor.email, entry.id)
    return entry


@audited(
    ActionType.CLOCK_OUT,
    lambda entry: f"User clocked out. Hours worked: {entry.actual_hours_worked:.2f}",
)
async def clock_out(ctx: ServiceContext) -> TimeEntry:
    entry = await _open_entry(ctx.db, ctx.actor.uid)
    if entry is None:
        raise NotFound("No open shift found to clock out from.")

    now = ctx.now()
    hours = hours_between(entry.clock_in_timestamp, now)
    result = await ctx.db.execute(
        update(TimeEntry)
        .where(TimeEntry.id == entry.id, TimeEntry.clock_out_timestamp.is_(None))
        .values(clock_out_timestamp=now, actual_hours_worked=hours)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        # A concurrent request closed the entry first
        await ctx.db.rollback()
        raise NotFound("No open shift found to clock out from.")
    await ctx.db.commit()
    await ctx.db.refresh(entry)
    logger.info("%s clocked out (entry %d, %s h)", ctx.actor.email, entry.id, hours)
    return entry


async def status(db: AsyncSession, user_uid: str) -> ClockStatus:
    entry = await _open_entry(db, user_uid)
    if entry is None:
        return ClockStatus(is_clocked_in=False, time_entry=None)
    return ClockStatus(is_clocked_in=True, time_entry=TimeEntryRead.model_validate(entry))


async def list_entries(
    db: AsyncSession, start_date: date, end_date: date
) -> list[TimeEntryWithEmployee]:
    """Entries whose clock-in falls in ``[start_date, end_date + 1 day)``."""
    window_start, window_end = date_window(start_date, end_date)
    result = await db.execute(
        select(TimeEntry, User.full_name, User.email)
        .join(User, User.uid == TimeEntry.user_uid)
        .where(
            TimeEntry.clock_in_timestamp >= window_start,
            TimeEntry.clock_in_timestamp < window_end,
        )
        .order_by(TimeEntry.clock_in_timestamp.desc())
    )
    return [
        TimeEntryWithEmployee(
            **TimeEntryRead.model_validate(entry).model_dump(),
            full_name=full_name,
            email=email,
        )
        for entry, full_name, email in result.all()
    ]


@audited(ActionType.APPROVE_TIME_ENTRY, lambda entry: f"Approved time entry ID: {entry.id}")
async def approve_entry(ctx: ServiceContext, entry_id: int) -> TimeEntry:
    result = await ctx.db.execute(select(TimeEntry).where(TimeEntry.id == entry_id))
    entry = result.scalar_one_or_none()
    if entry is None:
        raise NotFound("Time entry not found")
    if entry.clock_out_timestamp is None:
        raise Conflict("Cannot approve a time entry that is still open")
    if entry.is_approved:
        raise Conflict("Time entry is already approved")

    entry.is_approved = True
    await ctx.db.commit()
    await ctx.db.refresh(entry)
    logger.info("Time entry %d approved by %s", entry_id, ctx.actor.email)
    return entry
