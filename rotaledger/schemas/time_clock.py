"""Pydantic schemas for the time clock and time entries."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, field_validator

from rotaledger.schemas.common import as_utc


class TimeEntryRead(BaseModel):
    id: int
    user_uid: str
    clock_in_timestamp: datetime
    clock_out_timestamp: datetime | None
    actual_hours_worked: Decimal | None
    is_approved: bool

    model_config = {"from_attributes": True}

    normalise_utc = field_validator("clock_in_timestamp", "clock_out_timestamp")(as_utc)


class TimeEntryWithEmployee(TimeEntryRead):
    full_name: str | None = None
    email: str


class ClockStatus(BaseModel):
    is_clocked_in: bool
    time_entry: TimeEntryRead | None = None
