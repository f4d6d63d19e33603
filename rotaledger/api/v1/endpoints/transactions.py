"""
Transaction ledger endpoints.

- Any active user records sales / expenses and sees their own rows.
- Owners ask for deletion; admins approve, reject, edit or delete outright.
- The dashboard summary and approval queue are admin-only.
"""

from __future__ import annotations

import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from rotaledger.api.v1.deps import (get_admin_context, get_current_user,
                                    get_db, get_service_context,
                                    require_admin)
from rotaledger.models.user import User
from rotaledger.schemas.common import DataResponse, MessageResponse
from rotaledger.schemas.transaction import (CategoryOptions, DashboardSummary,
                                            TransactionCreate, TransactionRead,
                                            TransactionUpdate,
                                            TransactionWithOwner)
from rotaledger.services import transactions as ledger
from rotaledger.services.activity import ServiceContext

router = APIRouter(tags=["transactions"])


# ── Own ledger ──────────────────────────────────────────────────────
@router.get("/transactions", response_model=DataResponse[list[TransactionRead]])
async def list_my_transactions(
    day: Optional[dt.date] = Query(default=None, alias="date"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> DataResponse[list[TransactionRead]]:
    rows = await ledger.list_own_transactions(db, current_user.uid, day)
    return DataResponse(data=[TransactionRead.model_validate(tx) for tx in rows])


@router.get("/transactions/categories", response_model=DataResponse[CategoryOptions])
async def list_categories(
    _user: User = Depends(get_current_user),
) -> DataResponse[CategoryOptions]:
    """Suggested categories per type; any other text is accepted too."""
    return DataResponse(
        data=CategoryOptions(sale=ledger.SALE_CATEGORIES, expense=ledger.EXPENSE_CATEGORIES)
    )


@router.post("/transactions", response_model=DataResponse[TransactionRead], status_code=201)
async def create_transaction(
    body: TransactionCreate,
    ctx: ServiceContext = Depends(get_service_context),
) -> DataResponse[TransactionRead]:
    tx = await ledger.create_transaction(ctx, body)
    return DataResponse(data=TransactionRead.model_validate(tx), message="Transaction recorded")


@router.post(
    "/transactions/{transaction_id}/request-delete",
    response_model=DataResponse[TransactionRead],
)
async def request_deletion(
    transaction_id: int,
    ctx: ServiceContext = Depends(get_service_context),
) -> DataResponse[TransactionRead]:
    tx = await ledger.request_deletion(ctx, transaction_id)
    return DataResponse(
        data=TransactionRead.model_validate(tx),
        message="Deletion request submitted for approval",
    )


# ── Admin ───────────────────────────────────────────────────────────
@router.get("/transactions/all", response_model=DataResponse[list[TransactionWithOwner]])
async def list_all_transactions(
    day: Optional[dt.date] = Query(default=None, alias="date"),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> DataResponse[list[TransactionWithOwner]]:
    return DataResponse(data=await ledger.list_all_transactions(db, day))


@router.get("/approval-requests", response_model=DataResponse[list[TransactionWithOwner]])
async def list_approval_requests(
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> DataResponse[list[TransactionWithOwner]]:
    return DataResponse(data=await ledger.list_pending_deletions(db))


@router.put("/transactions/{transaction_id}", response_model=DataResponse[TransactionRead])
async def update_transaction(
    transaction_id: int,
    body: TransactionUpdate,
    ctx: ServiceContext = Depends(get_admin_context),
) -> DataResponse[TransactionRead]:
    edit = await ledger.update_transaction(ctx, transaction_id, body)
    return DataResponse(
        data=TransactionRead.model_validate(edit.transaction),
        message="Transaction updated successfully",
    )


@router.delete("/transactions/{transaction_id}", response_model=MessageResponse)
async def delete_transaction(
    transaction_id: int,
    ctx: ServiceContext = Depends(get_admin_context),
) -> MessageResponse:
    await ledger.delete_transaction(ctx, transaction_id)
    return MessageResponse(message="Transaction permanently deleted")


@router.post("/transactions/{transaction_id}/approve-delete", response_model=MessageResponse)
async def approve_deletion(
    transaction_id: int,
    ctx: ServiceContext = Depends(get_admin_context),
) -> MessageResponse:
    await ledger.approve_deletion(ctx, transaction_id)
    return MessageResponse(message="Transaction deleted")


@router.post(
    "/transactions/{transaction_id}/reject-delete",
    response_model=DataResponse[TransactionRead],
)
async def reject_deletion(
    transaction_id: int,
    ctx: ServiceContext = Depends(get_admin_context),
) -> DataResponse[TransactionRead]:
    tx = await ledger.reject_deletion(ctx, transaction_id)
    return DataResponse(data=TransactionRead.model_validate(tx), message="Deletion request rejected")


@router.get("/dashboard/summary", response_model=DataResponse[DashboardSummary])
async def dashboard_summary(
    request: Request,
    day: Optional[dt.date] = Query(default=None, alias="date"),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> DataResponse[DashboardSummary]:
    target = day or request.app.state.clock().date()
    return DataResponse(data=await ledger.dashboard_summary(db, target))
