"""
Labor costing for scheduled shifts.

Template times are time-of-day values on the shift's own date, so a
template whose end is not after its start (overnight or zero-length)
counts as zero hours. A missing pay rate counts as zero. Nothing here is
stored; rota and report views recompute on every read.
"""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal

_CENT = Decimal("0.01")


def shift_hours(start: time, end: time) -> Decimal:
    anchor = date(2000, 1, 1)
    seconds = (datetime.combine(anchor, end) - datetime.combine(anchor, start)).total_seconds()
    if seconds <= 0:
        return Decimal("0")
    return Decimal(str(seconds)) / Decimal(3600)


def shift_cost(start: time, end: time, pay_rate: Decimal | None) -> Decimal:
    return shift_hours(start, end) * (pay_rate or Decimal("0"))


def to_money(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)
