"""
Transaction ledger — sales, expenses and the staged-deletion workflow.

Status moves ``approved -> pending_delete`` on an owner's request and
back to ``approved`` (reject) or out of existence (approve / direct
delete) on an admin's decision. Each transition is a single conditional
statement on the current status, so two admins racing on the same row
cannot both succeed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rotaledger.core.clock import day_bounds, ensure_utc
from rotaledger.core.exceptions import Conflict, NotFound
from rotaledger.models.enums import ActionType, TransactionStatus, TransactionType
from rotaledger.models.transaction import Transaction
from rotaledger.models.user import User
from rotaledger.schemas.transaction import (DashboardSummary, TransactionCreate,
                                            TransactionRead, TransactionUpdate,
                                            TransactionWithOwner)
from rotaledger.services.activity import ServiceContext, audited

logger = logging.getLogger(__name__)

SALE_CATEGORIES = ["Dine-In", "Takeout", "Delivery App", "Beverages", "Other"]
EXPENSE_CATEGORIES = ["Groceries", "Utilities", "Wages", "Marketing", "Rent", "Other"]


@dataclass
class TransactionEdit:
    transaction: Transaction
    reason: str
    changes: list[str]

    @property
    def details(self) -> str:
        summary = " ".join(self.changes) if self.changes else "No data fields were changed."
        return f"Reason: {self.reason}. Changes: {summary}"


def describe_changes(
    before: dict[str, object], after: dict[str, object], currency: str = "£"
) -> list[str]:
    """Human-readable diff of the editable fields of a transaction."""
    changes: list[str] = []
    if before["description"] != after["description"]:
        changes.append("Description updated.")
    if Decimal(str(before["amount"])) != Decimal(str(after["amount"])):
        changes.append(
            f"Amount changed from {currency}{Decimal(str(before['amount'])):.2f} "
            f"to {currency}{Decimal(str(after['amount'])):.2f}."
        )
    if ensure_utc(before["transaction_date"]) != ensure_utc(after["transaction_date"]):  # type: ignore[arg-type]
        changes.append("Date changed.")
    if (before["category"] or "") != (after["category"] or ""):
        changes.append(
            f'Category changed from "{before["category"] or "N/A"}" '
            f'to "{after["category"] or "N/A"}".'
        )
    return changes


def _snapshot(tx: Transaction) -> dict[str, object]:
    return {
        "description": tx.description,
        "amount": tx.amount,
        "transaction_date": tx.transaction_date,
        "category": tx.category,
    }


async def _get(db: AsyncSession, transaction_id: int) -> Transaction | None:
    result = await db.execute(select(Transaction).where(Transaction.id == transaction_id))
    return result.scalar_one_or_none()


async def _reload(db: AsyncSession, transaction_id: int) -> Transaction:
    result = await db.execute(select(Transaction).where(Transaction.id == transaction_id))
    tx = result.scalar_one()
    await db.refresh(tx)
    return tx


# ── Creation ────────────────────────────────────────────────────────
def _creation_action(tx: Transaction) -> ActionType:
    if tx.type == TransactionType.SALE:
        return ActionType.CREATE_SALE
    return ActionType.CREATE_EXPENSE


@audited(
    _creation_action,
    lambda tx: f"Desc: {tx.description}, Cat: {tx.category or 'N/A'}, Amt: {tx.amount:.2f}",
)
async def create_transaction(ctx: ServiceContext, payload: TransactionCreate) -> Transaction:
    tx = Transaction(
        user_uid=ctx.actor.uid,
        description=payload.description,
        amount=payload.amount,
        type=payload.type,
        category=payload.category,
        status=TransactionStatus.APPROVED,
        transaction_date=payload.transaction_date or ctx.now(),
    )
    ctx.db.add(tx)
    await ctx.db.commit()
    await ctx.db.refresh(tx)
    logger.info("Transaction %d (%s) created by %s", tx.id, tx.type.value, ctx.actor.email)
    return tx


# ── Listing ─────────────────────────────────────────────────────────
async def list_own_transactions(
    db: AsyncSession, owner_uid: str, day: date | None = None
) -> list[Transaction]:
    stmt = select(Transaction).where(Transaction.user_uid == owner_uid)
    if day is not None:
        start, end = day_bounds(day)
        stmt = stmt.where(Transaction.transaction_date >= start, Transaction.transaction_date < end)
    result = await db.execute(stmt.order_by(Transaction.transaction_date.desc(), Transaction.id.desc()))
    return list(result.scalars().all())


def _with_owner(tx: Transaction, email: str) -> TransactionWithOwner:
    return TransactionWithOwner(
        **TransactionRead.model_validate(tx).model_dump(),
        user_email=email,
    )


async def list_all_transactions(
    db: AsyncSession, day: date | None = None
) -> list[TransactionWithOwner]:
    stmt = select(Transaction, User.email).join(User, User.uid == Transaction.user_uid)
    if day is not None:
        start, end = day_bounds(day)
        stmt = stmt.where(Transaction.transaction_date >= start, Transaction.transaction_date < end)
    result = await db.execute(stmt.order_by(Transaction.transaction_date.desc(), Transaction.id.desc()))
    return [_with_owner(tx, email) for tx, email in result.all()]


async def list_pending_deletions(db: AsyncSession) -> list[TransactionWithOwner]:
    """The admin approval queue, oldest first."""
    result = await db.execute(
        select(Transaction, User.email)
        .join(User, User.uid == Transaction.user_uid)
        .where(Transaction.status == TransactionStatus.PENDING_DELETE)
        .order_by(Transaction.transaction_date.asc(), Transaction.id.asc())
    )
    return [_with_owner(tx, email) for tx, email in result.all()]


# ── Deletion workflow ───────────────────────────────────────────────
@audited(ActionType.REQUEST_DELETION, lambda tx: f"Transaction ID: {tx.id}")
async def request_deletion(ctx: ServiceContext, transaction_id: int) -> Transaction:
    # The rollback below expires ctx.actor
    actor_uid = ctx.actor.uid
    result = await ctx.db.execute(
        update(Transaction)
        .where(
            Transaction.id == transaction_id,
            Transaction.user_uid == actor_uid,
            Transaction.status == TransactionStatus.APPROVED,
        )
        .values(status=TransactionStatus.PENDING_DELETE)
    )
    if result.rowcount == 0:
        await ctx.db.rollback()
        tx = await _get(ctx.db, transaction_id)
        if tx is None or tx.user_uid != actor_uid:
            raise NotFound("Transaction not found or you do not have permission to delete it")
        raise Conflict("Deletion has already been requested for this transaction")
    await ctx.db.commit()

    tx = await _reload(ctx.db, transaction_id)
    logger.info("Deletion requested for transaction %d by %s", transaction_id, ctx.actor.email)
    return tx


async def _missing_or_not_pending(db: AsyncSession, transaction_id: int) -> Exception:
    tx = await _get(db, transaction_id)
    if tx is None:
        return NotFound("Transaction not found")
    return Conflict("Transaction is not awaiting deletion")


@audited(ActionType.APPROVE_DELETION, lambda transaction_id: f"Transaction ID: {transaction_id}")
async def approve_deletion(ctx: ServiceContext, transaction_id: int) -> int:
    result = await ctx.db.execute(
        delete(Transaction).where(
            Transaction.id == transaction_id,
            Transaction.status == TransactionStatus.PENDING_DELETE,
        )
    )
    if result.rowcount == 0:
        await ctx.db.rollback()
        raise await _missing_or_not_pending(ctx.db, transaction_id)
    await ctx.db.commit()
    logger.info("Deletion of transaction %d approved by %s", transaction_id, ctx.actor.email)
    return transaction_id


@audited(ActionType.REJECT_DELETION, lambda tx: f"Transaction ID: {tx.id}")
async def reject_deletion(ctx: ServiceContext, transaction_id: int) -> Transaction:
    result = await ctx.db.execute(
        update(Transaction)
        .where(
            Transaction.id == transaction_id,
            Transaction.status == TransactionStatus.PENDING_DELETE,
        )
        .values(status=TransactionStatus.APPROVED)
    )
    if result.rowcount == 0:
        await ctx.db.rollback()
        raise await _missing_or_not_pending(ctx.db, transaction_id)
    await ctx.db.commit()

    tx = await _reload(ctx.db, transaction_id)
    logger.info("Deletion of transaction %d rejected by %s", transaction_id, ctx.actor.email)
    return tx


# ── Admin edits ─────────────────────────────────────────────────────
@audited(ActionType.UPDATE_TRANSACTION, lambda edit: edit.details)
async def update_transaction(
    ctx: ServiceContext, transaction_id: int, payload: TransactionUpdate
) -> TransactionEdit:
    result = await ctx.db.execute(
        select(Transaction).where(Transaction.id == transaction_id).with_for_update()
    )
    tx = result.scalar_one_or_none()
    if tx is None:
        raise NotFound("Transaction not found")

    before = _snapshot(tx)
    tx.description = payload.description
    tx.amount = payload.amount
    tx.transaction_date = payload.transaction_date
    tx.category = payload.category
    after = _snapshot(tx)

    await ctx.db.commit()
    await ctx.db.refresh(tx)
    logger.info("Transaction %d updated by %s", transaction_id, ctx.actor.email)
    return TransactionEdit(
        transaction=tx,
        reason=payload.reason,
        changes=describe_changes(before, after, ctx.currency),
    )


@audited(
    ActionType.ADMIN_DELETE_TRANSACTION,
    lambda transaction_id: f"Admin directly deleted Transaction ID: {transaction_id}",
)
async def delete_transaction(ctx: ServiceContext, transaction_id: int) -> int:
    result = await ctx.db.execute(delete(Transaction).where(Transaction.id == transaction_id))
    if result.rowcount == 0:
        await ctx.db.rollback()
        raise NotFound("Transaction not found")
    await ctx.db.commit()
    logger.info("Transaction %d deleted by %s", transaction_id, ctx.actor.email)
    return transaction_id


# ── Dashboard ───────────────────────────────────────────────────────
async def _totals_between(
    db: AsyncSession, start: datetime, end: datetime
) -> dict[TransactionType, float]:
    result = await db.execute(
        select(Transaction.type, func.coalesce(func.sum(Transaction.amount), 0))
        .where(Transaction.transaction_date >= start, Transaction.transaction_date < end)
        .group_by(Transaction.type)
    )
    totals = {TransactionType.SALE: 0.0, TransactionType.EXPENSE: 0.0}
    for tx_type, total in result.all():
        totals[TransactionType(tx_type)] = round(float(total or 0), 2)
    return totals


async def sales_total(db: AsyncSession, day: date) -> float:
    start, end = day_bounds(day)
    return (await _totals_between(db, start, end))[TransactionType.SALE]


async def dashboard_summary(db: AsyncSession, day: date) -> DashboardSummary:
    today = await _totals_between(db, *day_bounds(day))
    yesterday = await _totals_between(db, *day_bounds(day - timedelta(days=1)))
    return DashboardSummary(
        date=day,
        todays_sales=today[TransactionType.SALE],
        yesterdays_sales=yesterday[TransactionType.SALE],
        todays_expenses=today[TransactionType.EXPENSE],
        yesterdays_expenses=yesterday[TransactionType.EXPENSE],
        todays_balance=round(today[TransactionType.SALE] - today[TransactionType.EXPENSE], 2),
        yesterdays_balance=round(
            yesterday[TransactionType.SALE] - yesterday[TransactionType.EXPENSE], 2
        ),
    )
