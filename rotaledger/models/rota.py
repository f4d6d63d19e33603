"""
Shift template & scheduled shift models — the weekly rota.
"""

from __future__ import annotations

from datetime import date, time

from sqlalchemy import (Boolean, Column, Date, ForeignKey, Index, Integer,
                        String, Time, UniqueConstraint, false)

from rotaledger.db.base import Base


class ShiftTemplate(Base):
    __tablename__ = "shift_templates"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    start_time: time = Column(Time, nullable=False)  # type: ignore[assignment]
    end_time: time = Column(Time, nullable=False)  # type: ignore[assignment]
    color_code: str | None = Column(String(20), nullable=True)  # type: ignore[assignment]


class ScheduledShift(Base):
    __tablename__ = "scheduled_shifts"
    __table_args__ = (
        # One shift per employee per calendar day
        UniqueConstraint("user_uid", "shift_date", name="uq_scheduled_shift_user_date"),
        Index("ix_scheduled_shifts_date", "shift_date"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_uid: str = Column(String(128), ForeignKey("users.uid"), nullable=False)  # type: ignore[assignment]
    shift_template_id: int = Column(  # type: ignore[assignment]
        Integer,
        ForeignKey("shift_templates.id", ondelete="CASCADE"),
        nullable=False,
    )
    shift_date: date = Column(Date, nullable=False)  # type: ignore[assignment]
    is_published: bool = Column(Boolean, nullable=False, default=False, server_default=false())  # type: ignore[assignment]
