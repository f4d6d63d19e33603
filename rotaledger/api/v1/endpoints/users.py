"""
Identity, user management, employee profiles and the activity log.

- ``/me`` is open to any active user.
- Everything else requires an admin role.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from rotaledger.api.v1.deps import (get_admin_context, get_current_user,
                                    get_db, require_admin)
from rotaledger.models.user import User
from rotaledger.schemas.common import DataResponse, MessageResponse
from rotaledger.schemas.user import (ActivityLogRead, EmployeeUpdate,
                                     UserCreate, UserRead)
from rotaledger.services import activity
from rotaledger.services import users as user_service
from rotaledger.services.activity import ServiceContext

router = APIRouter(tags=["users"])


@router.get("/me", response_model=DataResponse[UserRead])
async def read_me(current_user: User = Depends(get_current_user)) -> DataResponse[UserRead]:
    return DataResponse(data=UserRead.model_validate(current_user))


# ── User management ─────────────────────────────────────────────────
@router.get("/users", response_model=DataResponse[list[UserRead]])
async def list_users(
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> DataResponse[list[UserRead]]:
    users = await user_service.list_users(db)
    return DataResponse(data=[UserRead.model_validate(u) for u in users])


@router.post("/users", response_model=DataResponse[UserRead], status_code=201)
async def create_user(
    body: UserCreate,
    ctx: ServiceContext = Depends(get_admin_context),
) -> DataResponse[UserRead]:
    """Register the local profile for an existing identity-provider account."""
    user = await user_service.create_user(ctx, body)
    return DataResponse(data=UserRead.model_validate(user), message="User created successfully")


@router.delete("/users/{uid}", response_model=MessageResponse)
async def disable_user(
    uid: str,
    ctx: ServiceContext = Depends(get_admin_context),
) -> MessageResponse:
    await user_service.disable_user(ctx, uid)
    return MessageResponse(message="Successfully disabled user. Their data has been preserved.")


# ── Employee profiles ───────────────────────────────────────────────
@router.get("/employees", response_model=DataResponse[list[UserRead]])
async def list_employees(
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> DataResponse[list[UserRead]]:
    employees = await user_service.list_employees(db)
    return DataResponse(data=[UserRead.model_validate(e) for e in employees])


@router.get("/employees/{uid}", response_model=DataResponse[UserRead])
async def get_employee(
    uid: str,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> DataResponse[UserRead]:
    return DataResponse(data=UserRead.model_validate(await user_service.get_employee(db, uid)))


@router.put("/employees/{uid}", response_model=DataResponse[UserRead])
async def update_employee(
    uid: str,
    body: EmployeeUpdate,
    ctx: ServiceContext = Depends(get_admin_context),
) -> DataResponse[UserRead]:
    employee = await user_service.update_employee(ctx, uid, body)
    return DataResponse(
        data=UserRead.model_validate(employee),
        message="Employee profile updated successfully",
    )


# ── Activity log ────────────────────────────────────────────────────
@router.get("/activity-logs", response_model=DataResponse[list[ActivityLogRead]])
async def list_activity_logs(
    limit: int = Query(default=500, ge=1, le=5000),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> DataResponse[list[ActivityLogRead]]:
    entries = await activity.list_activity(db, limit)
    return DataResponse(data=[ActivityLogRead.model_validate(e) for e in entries])
