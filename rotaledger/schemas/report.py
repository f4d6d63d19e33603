"""Pydantic schemas for payroll and labor reports."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel


class TimesheetRow(BaseModel):
    uid: str
    full_name: str | None
    email: str
    pay_rate: float | None
    total_hours: float
    total_pay: float


class LaborVsSales(BaseModel):
    date: dt.date
    total_sales: float
    total_labor_cost: float
    labor_cost_percentage: float


class HealthResponse(BaseModel):
    db: bool
