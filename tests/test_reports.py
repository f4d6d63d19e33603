"""Tests for payroll, labor-vs-sales reporting and the health check."""

from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient

from conftest import build_test_app, make_token
from rotaledger.models.enums import Role, UserStatus
from rotaledger.models.user import User


async def _worked_shift(client: AsyncClient, headers: dict, clock, hours: float) -> dict:
    """Helper: clock in at the current frozen time, work ``hours`` and clock out."""
    entry = (await client.post("/api/time-clock/clock-in", headers=headers)).json()["data"]
    clock.advance(hours=hours)
    await client.post("/api/time-clock/clock-out", headers=headers)
    return entry


@pytest.fixture
async def approved_week(async_client: AsyncClient, staff_headers, other_headers, admin_headers, clock):
    """Staff works 8.5 approved hours; other staff works 3 unapproved hours."""
    staff_entry = await _worked_shift(async_client, staff_headers, clock, 8.5)
    await _worked_shift(async_client, other_headers, clock, 3)
    resp = await async_client.post(f"/api/time-entries/{staff_entry['id']}/approve", headers=admin_headers)
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_timesheet_counts_only_approved_hours(
    async_client: AsyncClient, admin_headers, approved_week
):
    resp = await async_client.get(
        "/api/reports/timesheet?start_date=2026-03-09&end_date=2026-03-15", headers=admin_headers
    )
    assert resp.status_code == 200
    rows = {r["email"]: r for r in resp.json()["data"]}

    assert rows["staff@example.com"]["total_hours"] == 8.5
    assert rows["staff@example.com"]["total_pay"] == 85.0
    # Unapproved hours don't count, but the employee is still listed
    assert rows["other@example.com"]["total_hours"] == 0
    assert rows["other@example.com"]["pay_rate"] is None
    assert rows["admin@example.com"]["total_pay"] == 0


@pytest.mark.asyncio
async def test_timesheet_outside_range_is_zero(
    async_client: AsyncClient, admin_headers, approved_week
):
    resp = await async_client.get(
        "/api/reports/timesheet?start_date=2026-03-11&end_date=2026-03-15", headers=admin_headers
    )
    assert all(r["total_hours"] == 0 for r in resp.json()["data"])


@pytest.mark.asyncio
async def test_timesheet_is_admin_only(async_client: AsyncClient, staff_headers):
    resp = await async_client.get(
        "/api/reports/timesheet?start_date=2026-03-09&end_date=2026-03-15", headers=staff_headers
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_timesheet_rejects_inverted_range(async_client: AsyncClient, admin_headers):
    resp = await async_client.get(
        "/api/reports/timesheet?start_date=2026-03-15&end_date=2026-03-09", headers=admin_headers
    )
    assert resp.status_code == 422


# ── CSV export ─────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_export_csv_with_query_token(async_client: AsyncClient, admin_user, approved_week):
    token = make_token(admin_user.uid, admin_user.email)
    resp = await async_client.get(
        f"/api/reports/timesheet/export?start_date=2026-03-09&end_date=2026-03-15&token={token}"
    )
    assert resp.status_code == 200
    assert "text/csv" in resp.headers.get("content-type", "")
    assert resp.headers["content-disposition"] == (
        'attachment; filename="payroll-summary-2026-03-09-to-2026-03-15.csv"'
    )
    assert resp.text.splitlines() == [
        "Employee,Email,Pay Rate,Total Hours,Total Pay",
        "Alice Admin,admin@example.com,20.00,0.00,0.00",
        "Olive Other,other@example.com,,0.00,0.00",
        "Sam Staff,staff@example.com,10.00,8.50,85.00",
    ]


@pytest.mark.asyncio
async def test_export_requires_admin_token(async_client: AsyncClient, staff_user):
    url = "/api/reports/timesheet/export?start_date=2026-03-09&end_date=2026-03-15"

    resp = await async_client.get(url)
    assert resp.status_code == 401

    token = make_token(staff_user.uid, staff_user.email)
    resp = await async_client.get(f"{url}&token={token}")
    assert resp.status_code == 403

    resp = await async_client.get(f"{url}&token=not-a-jwt")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_export_rate_limit_comes_from_app_settings(
    async_client: AsyncClient, admin_user, clock
):
    throttled = await build_test_app(clock, EXPORT_RATE_LIMIT="2/minute")
    async with throttled.state.session_factory() as session:
        session.add(
            User(
                uid="admin-uid",
                email="admin@example.com",
                role=Role.PRIMARY_ADMIN,
                status=UserStatus.ACTIVE,
                full_name="Alice Admin",
                pay_rate=Decimal("20.00"),
            )
        )
        await session.commit()

    token = make_token(admin_user.uid, admin_user.email)
    url = f"/api/reports/timesheet/export?start_date=2026-03-09&end_date=2026-03-15&token={token}"
    try:
        async with AsyncClient(transport=ASGITransport(app=throttled), base_url="http://test") as client:
            codes = [(await client.get(url)).status_code for _ in range(3)]
            assert codes == [200, 200, 429]
            resp = await client.get(url)
            assert resp.json()["error"] == "rate_limited"
    finally:
        await throttled.state.engine.dispose()

    # Another app keeps its own count
    resp = await async_client.get(url)
    assert resp.status_code == 200


# ── Labor vs sales ─────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_labor_vs_sales(async_client: AsyncClient, admin_headers, staff_headers, staff_user):
    template = (
        await async_client.post(
            "/api/shift-templates",
            json={"name": "Morning", "start_time": "09:00", "end_time": "13:00"},
            headers=admin_headers,
        )
    ).json()["data"]
    await async_client.post(
        "/api/rota",
        json={"user_uid": staff_user.uid, "shift_template_id": template["id"], "shift_date": "2026-03-10"},
        headers=admin_headers,
    )

    resp = await async_client.get("/api/reports/labor-vs-sales?date=2026-03-10", headers=admin_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["total_labor_cost"] == 40.0
    assert data["total_sales"] == 0
    assert data["labor_cost_percentage"] == 0

    await async_client.post(
        "/api/transactions",
        json={
            "description": "Dinner",
            "amount": "300.00",
            "type": "sale",
            "transaction_date": "2026-03-10T19:00:00Z",
        },
        headers=staff_headers,
    )
    resp = await async_client.get("/api/reports/labor-vs-sales?date=2026-03-10", headers=admin_headers)
    data = resp.json()["data"]
    assert data["total_sales"] == 300.0
    assert data["labor_cost_percentage"] == 13.33


@pytest.mark.asyncio
async def test_health_endpoint(async_client: AsyncClient):
    """GET /health needs no token and reports DB connectivity."""
    resp = await async_client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"db": True}
