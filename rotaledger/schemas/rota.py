"""Pydantic schemas for shift templates, the rota and personal schedules."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, field_validator

from rotaledger.schemas.common import clean_required_text


# ── Shift templates ────────────────────────────────────────────────
class ShiftTemplateWrite(BaseModel):
    name: str
    start_time: dt.time
    end_time: dt.time
    color_code: str | None = None

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        v = clean_required_text(v, "Name")
        if len(v) > 100:
            raise ValueError("Name must not exceed 100 characters")
        return v


class ShiftTemplateRead(BaseModel):
    id: int
    name: str
    start_time: dt.time
    end_time: dt.time
    color_code: str | None

    model_config = {"from_attributes": True}


# ── Scheduling ─────────────────────────────────────────────────────
class ShiftAssign(BaseModel):
    user_uid: str
    shift_template_id: int
    shift_date: dt.date


class ScheduledShiftRead(BaseModel):
    id: int
    user_uid: str
    shift_template_id: int
    shift_date: dt.date
    is_published: bool

    model_config = {"from_attributes": True}


class PublishResult(BaseModel):
    start_date: dt.date
    end_date: dt.date
    newly_published: int


class RotaShift(BaseModel):
    id: int
    shift_date: dt.date
    user_uid: str
    full_name: str | None
    job_role: str | None
    shift_template_id: int
    shift_name: str
    start_time: dt.time
    end_time: dt.time
    color_code: str | None
    is_published: bool
    hours: float
    labor_cost: float


class WeeklyRota(BaseModel):
    start_date: dt.date
    end_date: dt.date
    shifts: list[RotaShift]
    total_hours: float
    total_labor_cost: float


class MyShift(BaseModel):
    id: int
    shift_date: dt.date
    shift_name: str
    start_time: dt.time
    end_time: dt.time
