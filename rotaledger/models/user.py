"""
User model — local profile for an identity-provider account.

The primary key is the provider's uid; rows are auto-provisioned on the
first verified request and carry the role used for authorisation.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import CheckConstraint, Column, DateTime, Numeric, String

from rotaledger.db.base import Base
from rotaledger.models.enums import Role, UserStatus, string_enum


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("pay_rate IS NULL OR pay_rate >= 0", name="ck_users_pay_rate"),
    )

    uid: str = Column(String(128), primary_key=True)  # type: ignore[assignment]
    email: str = Column(String(320), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    role: Role = Column(  # type: ignore[assignment]
        string_enum(Role, 20),
        nullable=False,
        default=Role.STAFF,
        server_default=Role.STAFF.value,
    )
    status: UserStatus = Column(  # type: ignore[assignment]
        string_enum(UserStatus, 10),
        nullable=False,
        default=UserStatus.ACTIVE,
        server_default=UserStatus.ACTIVE.value,
    )
    full_name: str | None = Column(String(200), nullable=True)  # type: ignore[assignment]
    phone_number: str | None = Column(String(30), nullable=True)  # type: ignore[assignment]
    job_role: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]
    pay_rate: Decimal | None = Column(Numeric(10, 2), nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    @property
    def is_admin(self) -> bool:
        return Role(self.role).is_admin

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE
