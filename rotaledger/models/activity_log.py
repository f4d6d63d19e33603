"""
ActivityLog model — append-only audit trail of state-changing actions.

The actor email is copied in so entries stay readable after a profile
changes. Rows are only ever inserted.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text

from rotaledger.db.base import Base
from rotaledger.models.enums import ActionType, string_enum


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_uid: str = Column(String(128), nullable=False, index=True)  # type: ignore[assignment]
    user_email: str = Column(String(320), nullable=False)  # type: ignore[assignment]
    action_type: ActionType = Column(string_enum(ActionType, 40), nullable=False)  # type: ignore[assignment]
    details: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    timestamp: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
