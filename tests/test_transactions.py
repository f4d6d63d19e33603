"""Tests for the transaction ledger and the deletion-approval workflow."""

from datetime import datetime
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from rotaledger.models.activity_log import ActivityLog
from rotaledger.models.enums import ActionType
from rotaledger.models.transaction import Transaction
from rotaledger.services.transactions import describe_changes


async def _create(client: AsyncClient, headers: dict, **overrides) -> dict:
    body = {
        "description": "Lunch service",
        "amount": "120.50",
        "type": "sale",
        "category": "Dine-In",
        "transaction_date": "2026-03-10T12:00:00Z",
    }
    body.update(overrides)
    resp = await client.post("/api/transactions", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


# ── Creation ────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_create_transaction_is_approved(async_client: AsyncClient, staff_headers):
    """A new transaction belongs to the caller and starts approved."""
    data = await _create(async_client, staff_headers)
    assert data["status"] == "approved"
    assert data["user_uid"] == "staff-uid"
    assert Decimal(data["amount"]) == Decimal("120.50")
    assert data["type"] == "sale"


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", ["0", "-5.00"])
async def test_create_rejects_non_positive_amount(async_client: AsyncClient, staff_headers, amount):
    resp = await async_client.post(
        "/api/transactions",
        json={"description": "Oops", "amount": amount, "type": "expense"},
        headers=staff_headers,
    )
    assert resp.status_code == 422
    body = resp.json()
    assert body["error"] == "validation"
    assert body["success"] is False


@pytest.mark.asyncio
async def test_create_rejects_blank_description(async_client: AsyncClient, staff_headers):
    resp = await async_client.post(
        "/api/transactions",
        json={"description": "   ", "amount": "5.00", "type": "expense"},
        headers=staff_headers,
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_create_defaults_date_to_now(async_client: AsyncClient, staff_headers):
    resp = await async_client.post(
        "/api/transactions",
        json={"description": "Milk", "amount": "3.20", "type": "expense", "category": "Groceries"},
        headers=staff_headers,
    )
    assert resp.status_code == 201
    assert resp.json()["data"]["transaction_date"].startswith("2026-03-10T09:00:00")


@pytest.mark.asyncio
async def test_create_requires_token(async_client: AsyncClient):
    resp = await async_client.post(
        "/api/transactions",
        json={"description": "Nope", "amount": "1.00", "type": "sale"},
    )
    assert resp.status_code == 401
    assert resp.json()["error"] == "unauthorized"


# ── Listing ─────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_list_own_only_and_date_filter(
    async_client: AsyncClient, staff_headers, other_headers
):
    await _create(async_client, staff_headers, transaction_date="2026-03-10T08:00:00Z")
    await _create(async_client, staff_headers, transaction_date="2026-03-09T23:30:00Z")
    await _create(async_client, other_headers, transaction_date="2026-03-10T10:00:00Z")

    resp = await async_client.get("/api/transactions", headers=staff_headers)
    assert resp.status_code == 200
    rows = resp.json()["data"]
    assert len(rows) == 2
    assert all(r["user_uid"] == "staff-uid" for r in rows)
    # Newest first
    assert rows[0]["transaction_date"] > rows[1]["transaction_date"]

    resp = await async_client.get("/api/transactions?date=2026-03-10", headers=staff_headers)
    assert len(resp.json()["data"]) == 1


@pytest.mark.asyncio
async def test_list_all_is_admin_only(
    async_client: AsyncClient, staff_headers, admin_headers
):
    await _create(async_client, staff_headers)

    resp = await async_client.get("/api/transactions/all", headers=staff_headers)
    assert resp.status_code == 403
    assert resp.json()["error"] == "forbidden"

    resp = await async_client.get("/api/transactions/all", headers=admin_headers)
    assert resp.status_code == 200
    rows = resp.json()["data"]
    assert len(rows) == 1
    assert rows[0]["user_email"] == "staff@example.com"


@pytest.mark.asyncio
async def test_categories(async_client: AsyncClient, staff_headers):
    resp = await async_client.get("/api/transactions/categories", headers=staff_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert "Dine-In" in data["sale"]
    assert "Rent" in data["expense"]


# ── Deletion workflow ───────────────────────────────────────────────
@pytest.mark.asyncio
async def test_request_then_approve_deletion(
    async_client: AsyncClient, staff_headers, admin_headers, db_session
):
    tx = await _create(async_client, staff_headers)

    resp = await async_client.post(f"/api/transactions/{tx['id']}/request-delete", headers=staff_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "pending_delete"

    queue = await async_client.get("/api/approval-requests", headers=admin_headers)
    assert [r["id"] for r in queue.json()["data"]] == [tx["id"]]

    resp = await async_client.post(f"/api/transactions/{tx['id']}/approve-delete", headers=admin_headers)
    assert resp.status_code == 200

    result = await db_session.execute(select(Transaction).where(Transaction.id == tx["id"]))
    assert result.scalar_one_or_none() is None


@pytest.mark.asyncio
async def test_reject_deletion_restores_unchanged(
    async_client: AsyncClient, staff_headers, admin_headers
):
    tx = await _create(async_client, staff_headers)
    await async_client.post(f"/api/transactions/{tx['id']}/request-delete", headers=staff_headers)

    resp = await async_client.post(f"/api/transactions/{tx['id']}/reject-delete", headers=admin_headers)
    assert resp.status_code == 200
    restored = resp.json()["data"]
    assert restored["status"] == "approved"
    for field in ("description", "amount", "type", "category", "transaction_date"):
        assert restored[field] == tx[field]


@pytest.mark.asyncio
async def test_request_deletion_by_non_owner_not_found(
    async_client: AsyncClient, staff_headers, other_headers
):
    tx = await _create(async_client, staff_headers)
    resp = await async_client.post(f"/api/transactions/{tx['id']}/request-delete", headers=other_headers)
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"


@pytest.mark.asyncio
async def test_repeat_deletion_request_conflicts(async_client: AsyncClient, staff_headers):
    tx = await _create(async_client, staff_headers)
    await async_client.post(f"/api/transactions/{tx['id']}/request-delete", headers=staff_headers)
    resp = await async_client.post(f"/api/transactions/{tx['id']}/request-delete", headers=staff_headers)
    assert resp.status_code == 409
    assert resp.json()["error"] == "conflict"


@pytest.mark.asyncio
async def test_foreign_request_leaves_transaction_untouched(
    async_client: AsyncClient, staff_headers, other_headers, admin_headers
):
    tx = await _create(async_client, staff_headers)

    resp = await async_client.post(f"/api/transactions/{tx['id']}/request-delete", headers=other_headers)
    assert resp.status_code == 404
    resp = await async_client.post("/api/transactions/9999/request-delete", headers=other_headers)
    assert resp.status_code == 404

    queue = await async_client.get("/api/approval-requests", headers=admin_headers)
    assert queue.json()["data"] == []

    # The owner can still ask
    resp = await async_client.post(f"/api/transactions/{tx['id']}/request-delete", headers=staff_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "pending_delete"


@pytest.mark.asyncio
async def test_approve_requires_pending_state(
    async_client: AsyncClient, staff_headers, admin_headers
):
    tx = await _create(async_client, staff_headers)
    resp = await async_client.post(f"/api/transactions/{tx['id']}/approve-delete", headers=admin_headers)
    assert resp.status_code == 409
    assert resp.json()["error"] == "conflict"

    resp = await async_client.post("/api/transactions/9999/reject-delete", headers=admin_headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_staff_cannot_approve(async_client: AsyncClient, staff_headers):
    tx = await _create(async_client, staff_headers)
    await async_client.post(f"/api/transactions/{tx['id']}/request-delete", headers=staff_headers)
    resp = await async_client.post(f"/api/transactions/{tx['id']}/approve-delete", headers=staff_headers)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_admin_direct_delete_from_either_state(
    async_client: AsyncClient, staff_headers, admin_headers
):
    first = await _create(async_client, staff_headers)
    second = await _create(async_client, staff_headers)
    await async_client.post(f"/api/transactions/{second['id']}/request-delete", headers=staff_headers)

    for tx in (first, second):
        resp = await async_client.delete(f"/api/transactions/{tx['id']}", headers=admin_headers)
        assert resp.status_code == 200

    resp = await async_client.delete(f"/api/transactions/{first['id']}", headers=admin_headers)
    assert resp.status_code == 404


# ── Admin edit ──────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_update_requires_reason(async_client: AsyncClient, staff_headers, admin_headers):
    tx = await _create(async_client, staff_headers)
    resp = await async_client.put(
        f"/api/transactions/{tx['id']}",
        json={
            "description": tx["description"],
            "amount": "99.00",
            "transaction_date": tx["transaction_date"],
            "reason": "",
        },
        headers=admin_headers,
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_update_logs_field_diff(
    async_client: AsyncClient, staff_headers, admin_headers, db_session
):
    tx = await _create(
        async_client, staff_headers, type="expense", amount="10.00", category="Groceries"
    )
    resp = await async_client.put(
        f"/api/transactions/{tx['id']}",
        json={
            "description": tx["description"],
            "amount": "12.50",
            "transaction_date": tx["transaction_date"],
            "category": "Rent",
            "reason": "Typo on receipt",
        },
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert Decimal(resp.json()["data"]["amount"]) == Decimal("12.50")

    result = await db_session.execute(
        select(ActivityLog).where(ActivityLog.action_type == ActionType.UPDATE_TRANSACTION)
    )
    entry = result.scalar_one()
    assert entry.user_email == "admin@example.com"
    assert entry.details.startswith("Reason: Typo on receipt. Changes: ")
    assert "Amount changed from £10.00 to £12.50." in entry.details
    assert 'Category changed from "Groceries" to "Rent".' in entry.details
    assert "Description updated." not in entry.details


@pytest.mark.asyncio
async def test_update_missing_transaction(async_client: AsyncClient, admin_headers):
    resp = await async_client.put(
        "/api/transactions/424242",
        json={
            "description": "x",
            "amount": "1.00",
            "transaction_date": "2026-03-10",
            "reason": "because",
        },
        headers=admin_headers,
    )
    assert resp.status_code == 404


def test_describe_changes_without_changes():
    snapshot = {
        "description": "Rent",
        "amount": Decimal("500.00"),
        "transaction_date": datetime(2026, 3, 1),
        "category": None,
    }
    assert describe_changes(snapshot, dict(snapshot)) == []


# ── Dashboard ───────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_dashboard_summary(async_client: AsyncClient, staff_headers, admin_headers):
    await _create(async_client, staff_headers, amount="100.00", transaction_date="2026-03-10T12:00:00Z")
    await _create(async_client, staff_headers, amount="50.25", transaction_date="2026-03-10T18:00:00Z")
    await _create(
        async_client, staff_headers, type="expense", amount="30.00",
        category="Utilities", transaction_date="2026-03-10T07:00:00Z",
    )
    await _create(async_client, staff_headers, amount="80.00", transaction_date="2026-03-09T20:00:00Z")

    resp = await async_client.get("/api/dashboard/summary?date=2026-03-10", headers=admin_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["todays_sales"] == pytest.approx(150.25)
    assert data["todays_expenses"] == pytest.approx(30.0)
    assert data["todays_balance"] == pytest.approx(120.25)
    assert data["yesterdays_sales"] == pytest.approx(80.0)
    assert data["yesterdays_expenses"] == 0
    assert data["yesterdays_balance"] == pytest.approx(80.0)


@pytest.mark.asyncio
async def test_dashboard_empty_day_is_zero(async_client: AsyncClient, admin_headers):
    resp = await async_client.get("/api/dashboard/summary", headers=admin_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["date"] == "2026-03-10"
    assert data["todays_sales"] == 0
    assert data["todays_balance"] == 0
