"""
AvailabilityRequest model — staff time-off windows awaiting admin review.

Rejected requests are deleted, so only ``pending`` and ``approved`` exist.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (Boolean, CheckConstraint, Column, DateTime, ForeignKey,
                        Index, Integer, String, false)

from rotaledger.db.base import Base
from rotaledger.models.enums import AvailabilityStatus, string_enum


class AvailabilityRequest(Base):
    __tablename__ = "availability"
    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_availability_window"),
        Index("ix_availability_window", "start_time", "end_time"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_uid: str = Column(String(128), ForeignKey("users.uid"), nullable=False, index=True)  # type: ignore[assignment]
    start_time: datetime = Column(DateTime(timezone=True), nullable=False)  # type: ignore[assignment]
    end_time: datetime = Column(DateTime(timezone=True), nullable=False)  # type: ignore[assignment]
    reason: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    status: AvailabilityStatus = Column(  # type: ignore[assignment]
        string_enum(AvailabilityStatus, 10),
        nullable=False,
        default=AvailabilityStatus.PENDING,
        server_default=AvailabilityStatus.PENDING.value,
    )
    is_all_day: bool = Column(Boolean, nullable=False, default=False, server_default=false())  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
