"""
Time clock endpoints — self-service clock-in/out and the admin entry list.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from rotaledger.api.v1.deps import (get_admin_context, get_current_user,
                                    get_date_range, get_db,
                                    get_service_context, require_admin)
from rotaledger.models.user import User
from rotaledger.schemas.common import DataResponse, DateRange
from rotaledger.schemas.time_clock import (ClockStatus, TimeEntryRead,
                                           TimeEntryWithEmployee)
from rotaledger.services import time_clock
from rotaledger.services.activity import ServiceContext

router = APIRouter(tags=["time-clock"])


@router.post("/time-clock/clock-in", response_model=DataResponse[TimeEntryRead], status_code=201)
async def clock_in(
    ctx: ServiceContext = Depends(get_service_context),
) -> DataResponse[TimeEntryRead]:
    entry = await time_clock.clock_in(ctx)
    return DataResponse(data=TimeEntryRead.model_validate(entry), message="Successfully clocked in")


@router.post("/time-clock/clock-out", response_model=DataResponse[TimeEntryRead])
async def clock_out(
    ctx: ServiceContext = Depends(get_service_context),
) -> DataResponse[TimeEntryRead]:
    entry = await time_clock.clock_out(ctx)
    return DataResponse(data=TimeEntryRead.model_validate(entry), message="Successfully clocked out")


@router.get("/time-clock/status", response_model=DataResponse[ClockStatus])
async def clock_status(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> DataResponse[ClockStatus]:
    return DataResponse(data=await time_clock.status(db, current_user.uid))


@router.get("/time-entries", response_model=DataResponse[list[TimeEntryWithEmployee]])
async def list_time_entries(
    window: DateRange = Depends(get_date_range),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> DataResponse[list[TimeEntryWithEmployee]]:
    return DataResponse(data=await time_clock.list_entries(db, window.start_date, window.end_date))


@router.post("/time-entries/{entry_id}/approve", response_model=DataResponse[TimeEntryRead])
async def approve_time_entry(
    entry_id: int,
    ctx: ServiceContext = Depends(get_admin_context),
) -> DataResponse[TimeEntryRead]:
    entry = await time_clock.approve_entry(ctx, entry_id)
    return DataResponse(data=TimeEntryRead.model_validate(entry), message="Time entry approved")
