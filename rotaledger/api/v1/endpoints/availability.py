"""
Availability (time-off) endpoints.

Staff submit and withdraw their own requests; admins review the pending
queue and read the unavailability that overlaps a rota window.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from rotaledger.api.v1.deps import (get_admin_context, get_current_user,
                                    get_date_range, get_db,
                                    get_service_context, require_admin)
from rotaledger.models.user import User
from rotaledger.schemas.availability import (AvailabilityCreate,
                                             AvailabilityRead,
                                             PendingAvailabilityRead)
from rotaledger.schemas.common import (DataResponse, DateRange,
                                       MessageResponse)
from rotaledger.services import availability as availability_service
from rotaledger.services.activity import ServiceContext

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("", response_model=DataResponse[list[AvailabilityRead]])
async def list_availability(
    user_uid: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> DataResponse[list[AvailabilityRead]]:
    """Requests for ``user_uid`` (default: the caller), ordered by start."""
    entries = await availability_service.list_for_user(db, current_user, user_uid or current_user.uid)
    return DataResponse(data=[AvailabilityRead.model_validate(e) for e in entries])


@router.post("", response_model=DataResponse[AvailabilityRead], status_code=201)
async def submit_availability(
    body: AvailabilityCreate,
    ctx: ServiceContext = Depends(get_service_context),
) -> DataResponse[AvailabilityRead]:
    entry = await availability_service.submit(ctx, body)
    return DataResponse(data=AvailabilityRead.model_validate(entry), message="Request submitted")


@router.get("/pending", response_model=DataResponse[list[PendingAvailabilityRead]])
async def list_pending_availability(
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> DataResponse[list[PendingAvailabilityRead]]:
    return DataResponse(data=await availability_service.list_pending(db))


@router.get("/rota", response_model=DataResponse[list[AvailabilityRead]])
async def approved_unavailability(
    window: DateRange = Depends(get_date_range),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> DataResponse[list[AvailabilityRead]]:
    """Approved requests overlapping the dates, for blocking out the rota."""
    entries = await availability_service.list_unavailability(db, window.start_date, window.end_date)
    return DataResponse(data=[AvailabilityRead.model_validate(e) for e in entries])


@router.get("/rota/all", response_model=DataResponse[list[AvailabilityRead]])
async def all_unavailability(
    window: DateRange = Depends(get_date_range),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> DataResponse[list[AvailabilityRead]]:
    """Every request overlapping the dates, pending ones included."""
    entries = await availability_service.list_unavailability(
        db, window.start_date, window.end_date, approved_only=False
    )
    return DataResponse(data=[AvailabilityRead.model_validate(e) for e in entries])


@router.delete("/{entry_id}", response_model=MessageResponse)
async def delete_availability(
    entry_id: int,
    ctx: ServiceContext = Depends(get_service_context),
) -> MessageResponse:
    await availability_service.delete_entry(ctx, entry_id)
    return MessageResponse(message="Availability entry deleted successfully")


@router.post("/{entry_id}/approve", response_model=DataResponse[AvailabilityRead])
async def approve_availability(
    entry_id: int,
    ctx: ServiceContext = Depends(get_admin_context),
) -> DataResponse[AvailabilityRead]:
    entry = await availability_service.approve(ctx, entry_id)
    return DataResponse(data=AvailabilityRead.model_validate(entry), message="Request approved")


@router.post("/{entry_id}/reject", response_model=MessageResponse)
async def reject_availability(
    entry_id: int,
    ctx: ServiceContext = Depends(get_admin_context),
) -> MessageResponse:
    await availability_service.reject(ctx, entry_id)
    return MessageResponse(message="Request rejected and removed")
