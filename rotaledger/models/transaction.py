"""
Transaction model — sales and expenses with a staged-deletion status.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (CheckConstraint, Column, DateTime, ForeignKey, Index,
                        Integer, Numeric, String, Text)

from rotaledger.db.base import Base
from rotaledger.models.enums import (TransactionStatus, TransactionType,
                                     string_enum)


class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
        Index("ix_transactions_type_date", "type", "transaction_date"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_uid: str = Column(String(128), ForeignKey("users.uid"), nullable=False, index=True)  # type: ignore[assignment]
    description: str = Column(Text, nullable=False)  # type: ignore[assignment]
    amount: Decimal = Column(Numeric(10, 2), nullable=False)  # type: ignore[assignment]
    type: TransactionType = Column(  # type: ignore[assignment]
        string_enum(TransactionType, 10),
        nullable=False,
        default=TransactionType.EXPENSE,
    )
    category: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]
    status: TransactionStatus = Column(  # type: ignore[assignment]
        string_enum(TransactionStatus, 20),
        nullable=False,
        default=TransactionStatus.APPROVED,
        server_default=TransactionStatus.APPROVED.value,
    )
    transaction_date: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
