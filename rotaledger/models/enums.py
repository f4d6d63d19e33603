"""Closed value sets stored as short strings."""

from __future__ import annotations

import enum

from sqlalchemy import Enum as SAEnum


class Role(str, enum.Enum):
    STAFF = "staff"
    SECONDARY_ADMIN = "secondary_admin"
    PRIMARY_ADMIN = "primary_admin"

    @property
    def is_admin(self) -> bool:
        return self in (Role.SECONDARY_ADMIN, Role.PRIMARY_ADMIN)


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class TransactionType(str, enum.Enum):
    SALE = "sale"
    EXPENSE = "expense"


class TransactionStatus(str, enum.Enum):
    APPROVED = "approved"
    PENDING_DELETE = "pending_delete"


class AvailabilityStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"


class ActionType(str, enum.Enum):
    CREATE_SALE = "CREATE_SALE"
    CREATE_EXPENSE = "CREATE_EXPENSE"
    UPDATE_TRANSACTION = "UPDATE_TRANSACTION"
    REQUEST_DELETION = "REQUEST_DELETION"
    APPROVE_DELETION = "APPROVE_DELETION"
    REJECT_DELETION = "REJECT_DELETION"
    ADMIN_DELETE_TRANSACTION = "ADMIN_DELETE_TRANSACTION"
    ADD_UNAVAILABILITY = "ADD_UNAVAILABILITY"
    DELETE_UNAVAILABILITY = "DELETE_UNAVAILABILITY"
    APPROVE_AVAILABILITY = "APPROVE_AVAILABILITY"
    REJECT_AVAILABILITY = "REJECT_AVAILABILITY"
    CREATE_SHIFT_TEMPLATE = "CREATE_SHIFT_TEMPLATE"
    UPDATE_SHIFT_TEMPLATE = "UPDATE_SHIFT_TEMPLATE"
    DELETE_SHIFT_TEMPLATE = "DELETE_SHIFT_TEMPLATE"
    CREATE_SCHEDULE = "CREATE_SCHEDULE"
    DELETE_SCHEDULE = "DELETE_SCHEDULE"
    PUBLISH_ROTA = "PUBLISH_ROTA"
    CLOCK_IN = "CLOCK_IN"
    CLOCK_OUT = "CLOCK_OUT"
    APPROVE_TIME_ENTRY = "APPROVE_TIME_ENTRY"
    CREATE_USER = "CREATE_USER"
    DISABLE_USER = "DISABLE_USER"
    UPDATE_EMPLOYEE = "UPDATE_EMPLOYEE"


def string_enum(enum_cls: type[enum.Enum], length: int = 30) -> SAEnum:
    """Store an enum by value in a VARCHAR rather than a native DB enum."""
    return SAEnum(
        enum_cls,
        native_enum=False,
        create_constraint=False,
        length=length,
        values_callable=lambda members: [m.value for m in members],
    )
