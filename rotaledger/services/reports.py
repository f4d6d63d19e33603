"""
Payroll and labor reports.

The timesheet counts approved time entries only and lists every
employee, including those with no hours in the range. Pay is computed
per employee from the summed hours, not stored anywhere.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterator
from datetime import date
from decimal import Decimal

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from rotaledger.core.clock import date_window
from rotaledger.models.time_entry import TimeEntry
from rotaledger.models.user import User
from rotaledger.schemas.report import LaborVsSales, TimesheetRow
from rotaledger.services.labor import to_money
from rotaledger.services.rota import projected_labor_cost
from rotaledger.services.transactions import sales_total

CSV_HEADER = ["Employee", "Email", "Pay Rate", "Total Hours", "Total Pay"]


async def timesheet(db: AsyncSession, start_date: date, end_date: date) -> list[TimesheetRow]:
    window_start, window_end = date_window(start_date, end_date)
    result = await db.execute(
        select(
            User.uid,
            User.full_name,
            User.email,
            User.pay_rate,
            func.coalesce(func.sum(TimeEntry.actual_hours_worked), 0),
        )
        .outerjoin(
            TimeEntry,
            and_(
                TimeEntry.user_uid == User.uid,
                TimeEntry.clock_in_timestamp >= window_start,
                TimeEntry.clock_in_timestamp < window_end,
                TimeEntry.is_approved.is_(True),
            ),
        )
        .group_by(User.uid, User.full_name, User.email, User.pay_rate)
        .order_by(User.full_name.asc(), User.email.asc())
    )

    rows: list[TimesheetRow] = []
    for uid, full_name, email, pay_rate, hours in result.all():
        total_hours = Decimal(str(hours or 0))
        total_pay = total_hours * (pay_rate or Decimal("0"))
        rows.append(
            TimesheetRow(
                uid=uid,
                full_name=full_name,
                email=email,
                pay_rate=float(pay_rate) if pay_rate is not None else None,
                total_hours=float(to_money(total_hours)),
                total_pay=float(to_money(total_pay)),
            )
        )
    return rows


def timesheet_csv(rows: list[TimesheetRow]) -> Iterator[str]:
    """Render timesheet rows as CSV, one chunk per line."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")

    def flush() -> str:
        chunk = buffer.getvalue()
        buffer.seek(0)
        buffer.truncate(0)
        return chunk

    writer.writerow(CSV_HEADER)
    yield flush()
    for row in rows:
        writer.writerow(
            [
                row.full_name or "",
                row.email,
                "" if row.pay_rate is None else f"{row.pay_rate:.2f}",
                f"{row.total_hours:.2f}",
                f"{row.total_pay:.2f}",
            ]
        )
        yield flush()


def timesheet_filename(start_date: date, end_date: date) -> str:
    return f"payroll-summary-{start_date.isoformat()}-to-{end_date.isoformat()}.csv"


async def labor_vs_sales(db: AsyncSession, day: date) -> LaborVsSales:
    total_sales = await sales_total(db, day)
    labor_cost = float(to_money(await projected_labor_cost(db, day)))
    percentage = round(labor_cost / total_sales * 100, 2) if total_sales > 0 else 0.0
    return LaborVsSales(
        date=day,
        total_sales=total_sales,
        total_labor_cost=labor_cost,
        labor_cost_percentage=percentage,
    )
