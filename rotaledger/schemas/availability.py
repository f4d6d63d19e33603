"""Pydantic schemas for availability (time-off) requests."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, field_validator, model_validator

from rotaledger.models.enums import AvailabilityStatus
from rotaledger.schemas.common import as_utc, coerce_utc_datetime


class AvailabilityCreate(BaseModel):
    start_time: datetime
    end_time: datetime
    reason: str | None = None
    is_all_day: bool = False

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _utc(cls, v: object) -> object:
        return coerce_utc_datetime(v)

    @model_validator(mode="after")
    def _window(self) -> "AvailabilityCreate":
        if self.start_time >= self.end_time:
            raise ValueError("Start time must be before end time")
        return self


class AvailabilityRead(BaseModel):
    id: int
    user_uid: str
    start_time: datetime
    end_time: datetime
    reason: str | None
    status: AvailabilityStatus
    is_all_day: bool

    model_config = {"from_attributes": True}

    normalise_utc = field_validator("start_time", "end_time")(as_utc)


class PendingAvailabilityRead(AvailabilityRead):
    full_name: str | None = None
    email: str
