"""
Payroll & labor reporting endpoints, plus the public health check.

The CSV export authenticates with a ``token`` query parameter because it
is opened as a plain browser download; it is rate limited per client.
"""

import datetime as dt
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from slowapi import Limiter
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rotaledger.api.v1.deps import (get_date_range, get_db, require_admin,
                                    require_admin_query_token)
from rotaledger.models.user import User
from rotaledger.schemas.common import DataResponse, DateRange
from rotaledger.schemas.report import HealthResponse, LaborVsSales, TimesheetRow
from rotaledger.services import reports as report_service

router = APIRouter(tags=["reports"])
logger = logging.getLogger(__name__)


@router.get("/reports/timesheet", response_model=DataResponse[list[TimesheetRow]])
async def timesheet(
    window: DateRange = Depends(get_date_range),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> DataResponse[list[TimesheetRow]]:
    """Approved hours and pay per employee; employees without hours show zeros."""
    return DataResponse(data=await report_service.timesheet(db, window.start_date, window.end_date))


async def export_timesheet(
    request: Request,
    window: DateRange = Depends(get_date_range),
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin_query_token),
) -> StreamingResponse:
    rows = await report_service.timesheet(db, window.start_date, window.end_date)
    logger.info("Timesheet %s..%s exported by %s", window.start_date, window.end_date, admin.email)

    filename = report_service.timesheet_filename(window.start_date, window.end_date)
    return StreamingResponse(
        report_service.timesheet_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def build_export_router(limiter: Limiter, rate_limit: str) -> APIRouter:
    """The CSV export route, throttled by the given app's own limiter."""
    export_router = APIRouter(tags=["reports"])
    export_router.add_api_route(
        "/reports/timesheet/export",
        limiter.limit(rate_limit)(export_timesheet),
        methods=["GET"],
    )
    return export_router


@router.get("/reports/labor-vs-sales", response_model=DataResponse[LaborVsSales])
async def labor_vs_sales(
    date: dt.date,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> DataResponse[LaborVsSales]:
    """Projected labor cost for the day against its sales; 0% when there are no sales."""
    return DataResponse(data=await report_service.labor_vs_sales(db, date))


@router.get("/health", response_model=HealthResponse)
async def health(db: AsyncSession = Depends(get_db)) -> HealthResponse:
    """Public health check — DB connectivity."""
    result = HealthResponse(db=False)
    try:
        await db.execute(select(1))
        result.db = True
    except SQLAlchemyError as e:
        logger.error("Health check DB failure: %s", e)
    return result
