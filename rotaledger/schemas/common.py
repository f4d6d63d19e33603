"""Response envelope and shared input coercions."""

from __future__ import annotations

import re
from datetime import date, datetime, time, timezone
from typing import Generic, TypeVar

from pydantic import BaseModel, model_validator

T = TypeVar("T")

_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class DataResponse(BaseModel, Generic[T]):
    """Every successful response carries its payload under ``data``."""

    data: T
    message: str | None = None


class MessageResponse(BaseModel):
    message: str


class DateRange(BaseModel):
    """Inclusive ``start_date``..``end_date`` window."""

    start_date: date
    end_date: date

    @model_validator(mode="after")
    def _ordered(self) -> "DateRange":
        check_date_order(self.start_date, self.end_date)
        return self


def check_date_order(start_date: date, end_date: date) -> None:
    if end_date < start_date:
        raise ValueError("end_date must not be before start_date")


def coerce_utc_datetime(v: object) -> object:
    """Accept ``YYYY-MM-DD`` as midnight UTC and treat naive times as UTC."""
    if isinstance(v, str) and _DATE_ONLY_RE.match(v.strip()):
        return datetime.combine(date.fromisoformat(v.strip()), time.min, tzinfo=timezone.utc)
    if isinstance(v, datetime):
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)
    return v


def clean_required_text(v: str, field: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError(f"{field} must not be empty")
    return v


def as_utc(v: datetime | None) -> datetime | None:
    """Stored timestamps are UTC; some drivers hand them back naive."""
    if v is None:
        return None
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v.astimezone(timezone.utc)
