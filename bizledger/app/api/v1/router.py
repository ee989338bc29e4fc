"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from bizledger.app.api.v1.endpoints import (
    customers, orders, invoices,
    payments, ledgers, reports
)

router = APIRouter()

# Receivable documents
router.include_router(customers.router)
router.include_router(orders.router)
router.include_router(invoices.router)

# Payments, allocations and refunds
router.include_router(payments.router)

# Journal and reports
router.include_router(ledgers.router)
router.include_router(reports.router)
