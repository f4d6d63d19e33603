"""
V1 API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from rotaledger.api.v1.endpoints import (availability, reports, rota,
                                         time_clock, transactions, users)

api_router = APIRouter()

# Identity, users, employees, activity log
api_router.include_router(users.router)

# Ledger, approval queue, dashboard
api_router.include_router(transactions.router)

# Time-off requests
api_router.include_router(availability.router)

# Shift templates, rota, personal schedule
api_router.include_router(rota.router)

# Clock-in/out, time entries
api_router.include_router(time_clock.router)

# Payroll, labor, health
api_router.include_router(reports.router)
