"""
Rota — shift templates, scheduled shifts and publication.

An employee holds at most one scheduled shift per calendar day; the
unique constraint on ``(user_uid, shift_date)`` is the final arbiter and
a violation surfaces as ``Conflict``. Shifts are invisible to staff
until published.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rotaledger.core.exceptions import Conflict, NotFound, ValidationFailed
from rotaledger.models.enums import ActionType
from rotaledger.models.rota import ScheduledShift, ShiftTemplate
from rotaledger.models.user import User
from rotaledger.schemas.rota import (MyShift, PublishResult, RotaShift,
                                     ShiftAssign, ShiftTemplateWrite,
                                     WeeklyRota)
from rotaledger.services.activity import ServiceContext, audited
from rotaledger.services.labor import shift_cost, shift_hours, to_money

logger = logging.getLogger(__name__)

_DOUBLE_BOOKED = "This employee is already scheduled for a shift on that day"


# ── Shift templates ────────────────────────────────────────────────
async def list_templates(db: AsyncSession) -> list[ShiftTemplate]:
    result = await db.execute(
        select(ShiftTemplate).order_by(ShiftTemplate.start_time.asc(), ShiftTemplate.id.asc())
    )
    return list(result.scalars().all())


async def _get_template(db: AsyncSession, template_id: int) -> ShiftTemplate:
    result = await db.execute(select(ShiftTemplate).where(ShiftTemplate.id == template_id))
    template = result.scalar_one_or_none()
    if template is None:
        raise NotFound("Shift template not found")
    return template


@audited(ActionType.CREATE_SHIFT_TEMPLATE, lambda t: f"Created template: {t.name}")
async def create_template(ctx: ServiceContext, payload: ShiftTemplateWrite) -> ShiftTemplate:
    template = ShiftTemplate(**payload.model_dump())
    ctx.db.add(template)
    await ctx.db.commit()
    await ctx.db.refresh(template)
    logger.info("Shift template %d '%s' created by %s", template.id, template.name, ctx.actor.email)
    return template


@audited(ActionType.UPDATE_SHIFT_TEMPLATE, lambda t: f"Updated template ID: {t.id}")
async def update_template(
    ctx: ServiceContext, template_id: int, payload: ShiftTemplateWrite
) -> ShiftTemplate:
    template = await _get_template(ctx.db, template_id)
    for field, value in payload.model_dump().items():
        setattr(template, field, value)
    await ctx.db.commit()
    await ctx.db.refresh(template)
    logger.info("Shift template %d updated by %s", template_id, ctx.actor.email)
    return template


@audited(ActionType.DELETE_SHIFT_TEMPLATE, lambda template_id: f"Deleted template ID: {template_id}")
async def delete_template(ctx: ServiceContext, template_id: int) -> int:
    """Delete a template together with every shift scheduled from it."""
    await _get_template(ctx.db, template_id)
    await ctx.db.execute(
        delete(ScheduledShift).where(ScheduledShift.shift_template_id == template_id)
    )
    await ctx.db.execute(delete(ShiftTemplate).where(ShiftTemplate.id == template_id))
    await ctx.db.commit()
    logger.info("Shift template %d deleted by %s", template_id, ctx.actor.email)
    return template_id


# ── Scheduling ─────────────────────────────────────────────────────
@audited(
    ActionType.CREATE_SCHEDULE,
    lambda s: f"Scheduled user {s.user_uid} for shift {s.shift_template_id} on {s.shift_date.isoformat()}",
)
async def assign_shift(ctx: ServiceContext, payload: ShiftAssign) -> ScheduledShift:
    db = ctx.db
    employee = (
        await db.execute(select(User).where(User.uid == payload.user_uid))
    ).scalar_one_or_none()
    if employee is None:
        raise NotFound("Employee not found")
    if not employee.is_active:
        raise ValidationFailed("Cannot schedule an inactive employee")
    await _get_template(db, payload.shift_template_id)

    existing = await db.execute(
        select(ScheduledShift.id).where(
            ScheduledShift.user_uid == payload.user_uid,
            ScheduledShift.shift_date == payload.shift_date,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise Conflict(_DOUBLE_BOOKED)

    shift = ScheduledShift(
        user_uid=payload.user_uid,
        shift_template_id=payload.shift_template_id,
        shift_date=payload.shift_date,
        is_published=False,
    )
    db.add(shift)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent assignment for the same day
        await db.rollback()
        raise Conflict(_DOUBLE_BOOKED) from None
    await db.refresh(shift)
    logger.info(
        "Shift %d scheduled for %s on %s by %s",
        shift.id, shift.user_uid, shift.shift_date, ctx.actor.email,
    )
    return shift


@audited(ActionType.DELETE_SCHEDULE, lambda shift_id: f"Deleted scheduled shift ID: {shift_id}")
async def remove_shift(ctx: ServiceContext, shift_id: int) -> int:
    result = await ctx.db.execute(delete(ScheduledShift).where(ScheduledShift.id == shift_id))
    if result.rowcount == 0:
        await ctx.db.rollback()
        raise NotFound("Scheduled shift not found")
    await ctx.db.commit()
    logger.info("Scheduled shift %d removed by %s", shift_id, ctx.actor.email)
    return shift_id


@audited(
    ActionType.PUBLISH_ROTA,
    lambda r: f"Published rota from {r.start_date.isoformat()} to {r.end_date.isoformat()}",
)
async def publish_range(ctx: ServiceContext, start_date: date, end_date: date) -> PublishResult:
    """Mark every shift in the inclusive range published; repeat calls are no-ops."""
    result = await ctx.db.execute(
        update(ScheduledShift)
        .where(
            ScheduledShift.shift_date >= start_date,
            ScheduledShift.shift_date <= end_date,
            ScheduledShift.is_published.is_(False),
        )
        .values(is_published=True)
        .execution_options(synchronize_session=False)
    )
    await ctx.db.commit()
    logger.info(
        "Rota %s..%s published by %s (%d shifts)",
        start_date, end_date, ctx.actor.email, result.rowcount,
    )
    return PublishResult(start_date=start_date, end_date=end_date, newly_published=result.rowcount)


# ── Views ──────────────────────────────────────────────────────────
async def weekly_rota(db: AsyncSession, start_date: date, end_date: date) -> WeeklyRota:
    result = await db.execute(
        select(ScheduledShift, User, ShiftTemplate)
        .join(User, User.uid == ScheduledShift.user_uid)
        .join(ShiftTemplate, ShiftTemplate.id == ScheduledShift.shift_template_id)
        .where(ScheduledShift.shift_date >= start_date, ScheduledShift.shift_date <= end_date)
        .order_by(ScheduledShift.shift_date.asc(), ShiftTemplate.start_time.asc(), ScheduledShift.id.asc())
    )

    shifts: list[RotaShift] = []
    total_hours = Decimal("0")
    total_cost = Decimal("0")
    for shift, employee, template in result.all():
        hours = shift_hours(template.start_time, template.end_time)
        cost = shift_cost(template.start_time, template.end_time, employee.pay_rate)
        total_hours += hours
        total_cost += cost
        shifts.append(
            RotaShift(
                id=shift.id,
                shift_date=shift.shift_date,
                user_uid=employee.uid,
                full_name=employee.full_name,
                job_role=employee.job_role,
                shift_template_id=template.id,
                shift_name=template.name,
                start_time=template.start_time,
                end_time=template.end_time,
                color_code=template.color_code,
                is_published=shift.is_published,
                hours=float(to_money(hours)),
                labor_cost=float(to_money(cost)),
            )
        )

    return WeeklyRota(
        start_date=start_date,
        end_date=end_date,
        shifts=shifts,
        total_hours=float(to_money(total_hours)),
        total_labor_cost=float(to_money(total_cost)),
    )


async def projected_labor_cost(db: AsyncSession, day: date) -> Decimal:
    """Cost of every shift scheduled on ``day``, published or not."""
    result = await db.execute(
        select(ShiftTemplate.start_time, ShiftTemplate.end_time, User.pay_rate)
        .select_from(ScheduledShift)
        .join(ShiftTemplate, ShiftTemplate.id == ScheduledShift.shift_template_id)
        .join(User, User.uid == ScheduledShift.user_uid)
        .where(ScheduledShift.shift_date == day)
    )
    return sum(
        (shift_cost(start, end, rate) for start, end, rate in result.all()),
        Decimal("0"),
    )


async def my_schedule(
    db: AsyncSession, user_uid: str, start_date: date, end_date: date
) -> list[MyShift]:
    result = await db.execute(
        select(ScheduledShift, ShiftTemplate)
        .join(ShiftTemplate, ShiftTemplate.id == ScheduledShift.shift_template_id)
        .where(
            ScheduledShift.user_uid == user_uid,
            ScheduledShift.is_published.is_(True),
            ScheduledShift.shift_date >= start_date,
            ScheduledShift.shift_date <= end_date,
        )
        .order_by(ScheduledShift.shift_date.asc())
    )
    return [
        MyShift(
            id=shift.id,
            shift_date=shift.shift_date,
            shift_name=template.name,
            start_time=template.start_time,
            end_time=template.end_time,
        )
        for shift, template in result.all()
    ]
