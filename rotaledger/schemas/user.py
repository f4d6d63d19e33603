"""Pydantic schemas for users, employee profiles and the activity log."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from rotaledger.models.enums import ActionType, Role, UserStatus
from rotaledger.schemas.common import as_utc


def _normalise_email(v: str) -> str:
    v = v.strip().lower()
    if "@" not in v:
        raise ValueError("Invalid email address")
    return v


class UserRead(BaseModel):
    uid: str
    email: str
    role: Role
    status: UserStatus
    full_name: str | None = None
    phone_number: str | None = None
    job_role: str | None = None
    pay_rate: Decimal | None = None

    model_config = {"from_attributes": True}


class UserCreate(BaseModel):
    """Pre-provision a local profile for an identity-provider account."""

    uid: str
    email: str
    role: Role = Role.STAFF
    full_name: str | None = None
    phone_number: str | None = None
    job_role: str | None = None
    pay_rate: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)

    @field_validator("uid")
    @classmethod
    def _uid(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("uid must not be empty")
        return v

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _normalise_email(v)


class EmployeeUpdate(BaseModel):
    full_name: str | None = None
    phone_number: str | None = None
    job_role: str | None = None
    pay_rate: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    role: Role | None = None
    status: UserStatus | None = None

    @field_validator("role", "status")
    @classmethod
    def _not_null(cls, v: object) -> object:
        if v is None:
            raise ValueError("must not be null")
        return v


class ActivityLogRead(BaseModel):
    id: int
    user_uid: str
    user_email: str
    action_type: ActionType
    details: str | None
    timestamp: datetime

    model_config = {"from_attributes": True}

    normalise_utc = field_validator("timestamp")(as_utc)
