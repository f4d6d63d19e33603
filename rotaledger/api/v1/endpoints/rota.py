"""
Rota endpoints — shift templates, scheduling, publication, schedules.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from rotaledger.api.v1.deps import (get_admin_context, get_current_user,
                                    get_date_range, get_db, require_admin)
from rotaledger.models.user import User
from rotaledger.schemas.common import (DataResponse, DateRange,
                                       MessageResponse)
from rotaledger.schemas.rota import (MyShift, PublishResult,
                                     ScheduledShiftRead, ShiftAssign,
                                     ShiftTemplateRead, ShiftTemplateWrite,
                                     WeeklyRota)
from rotaledger.services import rota as rota_service
from rotaledger.services.activity import ServiceContext

router = APIRouter(tags=["rota"])


# ── Shift templates ────────────────────────────────────────────────
@router.get("/shift-templates", response_model=DataResponse[list[ShiftTemplateRead]])
async def list_shift_templates(
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> DataResponse[list[ShiftTemplateRead]]:
    templates = await rota_service.list_templates(db)
    return DataResponse(data=[ShiftTemplateRead.model_validate(t) for t in templates])


@router.post("/shift-templates", response_model=DataResponse[ShiftTemplateRead], status_code=201)
async def create_shift_template(
    body: ShiftTemplateWrite,
    ctx: ServiceContext = Depends(get_admin_context),
) -> DataResponse[ShiftTemplateRead]:
    template = await rota_service.create_template(ctx, body)
    return DataResponse(data=ShiftTemplateRead.model_validate(template))


@router.put("/shift-templates/{template_id}", response_model=DataResponse[ShiftTemplateRead])
async def update_shift_template(
    template_id: int,
    body: ShiftTemplateWrite,
    ctx: ServiceContext = Depends(get_admin_context),
) -> DataResponse[ShiftTemplateRead]:
    template = await rota_service.update_template(ctx, template_id, body)
    return DataResponse(data=ShiftTemplateRead.model_validate(template))


@router.delete("/shift-templates/{template_id}", response_model=MessageResponse)
async def delete_shift_template(
    template_id: int,
    ctx: ServiceContext = Depends(get_admin_context),
) -> MessageResponse:
    await rota_service.delete_template(ctx, template_id)
    return MessageResponse(message="Shift template and its scheduled shifts deleted")


# ── Rota ───────────────────────────────────────────────────────────
@router.get("/rota", response_model=DataResponse[WeeklyRota])
async def get_rota(
    window: DateRange = Depends(get_date_range),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> DataResponse[WeeklyRota]:
    return DataResponse(data=await rota_service.weekly_rota(db, window.start_date, window.end_date))


@router.post("/rota", response_model=DataResponse[ScheduledShiftRead], status_code=201)
async def assign_shift(
    body: ShiftAssign,
    ctx: ServiceContext = Depends(get_admin_context),
) -> DataResponse[ScheduledShiftRead]:
    shift = await rota_service.assign_shift(ctx, body)
    return DataResponse(data=ScheduledShiftRead.model_validate(shift))


@router.post("/rota/publish", response_model=DataResponse[PublishResult])
async def publish_rota(
    body: DateRange,
    ctx: ServiceContext = Depends(get_admin_context),
) -> DataResponse[PublishResult]:
    result = await rota_service.publish_range(ctx, body.start_date, body.end_date)
    return DataResponse(
        data=result,
        message=f"Rota from {body.start_date} to {body.end_date} has been published",
    )


@router.delete("/rota/{shift_id}", response_model=MessageResponse)
async def remove_shift(
    shift_id: int,
    ctx: ServiceContext = Depends(get_admin_context),
) -> MessageResponse:
    await rota_service.remove_shift(ctx, shift_id)
    return MessageResponse(message="Scheduled shift deleted successfully")


# ── Personal schedule ──────────────────────────────────────────────
@router.get("/my-schedule", response_model=DataResponse[list[MyShift]])
async def my_schedule(
    window: DateRange = Depends(get_date_range),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> DataResponse[list[MyShift]]:
    """The caller's published shifts only."""
    shifts = await rota_service.my_schedule(db, current_user.uid, window.start_date, window.end_date)
    return DataResponse(data=shifts)
