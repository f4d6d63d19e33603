"""
TimeEntry model — clock-in / clock-out records used for payroll.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (Boolean, Column, DateTime, ForeignKey, Index, Integer,
                        Numeric, String, false, text)

from rotaledger.db.base import Base


class TimeEntry(Base):
    __tablename__ = "time_entries"
    __table_args__ = (
        # At most one open entry per user
        Index(
            "uq_time_entries_open_per_user",
            "user_uid",
            unique=True,
            postgresql_where=text("clock_out_timestamp IS NULL"),
            sqlite_where=text("clock_out_timestamp IS NULL"),
        ),
        Index("ix_time_entries_user_clock_in", "user_uid", "clock_in_timestamp"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_uid: str = Column(String(128), ForeignKey("users.uid"), nullable=False)  # type: ignore[assignment]
    clock_in_timestamp: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    clock_out_timestamp: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    actual_hours_worked: Decimal | None = Column(Numeric(6, 2), nullable=True)  # type: ignore[assignment]
    is_approved: bool = Column(Boolean, nullable=False, default=False, server_default=false())  # type: ignore[assignment]
