"""Pydantic schemas for the transaction ledger and dashboard."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, Field, field_validator

from rotaledger.models.enums import TransactionStatus, TransactionType
from rotaledger.schemas.common import (as_utc, clean_required_text,
                                       coerce_utc_datetime)

PositiveAmount = Annotated[Decimal, Field(gt=0, max_digits=10, decimal_places=2)]


class TransactionCreate(BaseModel):
    description: str
    amount: PositiveAmount
    type: TransactionType
    category: str | None = None
    transaction_date: dt.datetime | None = None

    @field_validator("description")
    @classmethod
    def _description(cls, v: str) -> str:
        return clean_required_text(v, "Description")

    @field_validator("category")
    @classmethod
    def _category(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None

    @field_validator("transaction_date", mode="before")
    @classmethod
    def _date(cls, v: object) -> object:
        return coerce_utc_datetime(v)

    normalise_utc = field_validator("transaction_date")(as_utc)


class TransactionUpdate(BaseModel):
    description: str
    amount: PositiveAmount
    transaction_date: dt.datetime
    category: str | None = None
    reason: str

    @field_validator("description")
    @classmethod
    def _description(cls, v: str) -> str:
        return clean_required_text(v, "Description")

    @field_validator("reason")
    @classmethod
    def _reason(cls, v: str) -> str:
        return clean_required_text(v, "A reason for the edit")

    @field_validator("category")
    @classmethod
    def _category(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None

    @field_validator("transaction_date", mode="before")
    @classmethod
    def _date(cls, v: object) -> object:
        return coerce_utc_datetime(v)

    normalise_utc = field_validator("transaction_date")(as_utc)


class TransactionRead(BaseModel):
    id: int
    user_uid: str
    description: str
    amount: Decimal
    type: TransactionType
    category: str | None
    status: TransactionStatus
    transaction_date: dt.datetime

    model_config = {"from_attributes": True}

    normalise_utc = field_validator("transaction_date")(as_utc)


class TransactionWithOwner(TransactionRead):
    user_email: str


class CategoryOptions(BaseModel):
    sale: list[str]
    expense: list[str]


class DashboardSummary(BaseModel):
    date: dt.date
    todays_sales: float
    yesterdays_sales: float
    todays_expenses: float
    yesterdays_expenses: float
    todays_balance: float
    yesterdays_balance: float
