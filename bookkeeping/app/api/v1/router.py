"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from bookkeeping.app.api.v1.endpoints import (
    accounts, ledgers, sales, purchases, payments, journals
)

router = APIRouter()

# Account store
router.include_router(accounts.router)

# Ledger query, manual postings, opening balance, consistency
router.include_router(ledgers.router)

# Trades
router.include_router(sales.router)
router.include_router(purchases.router)

# Ad-hoc payments and receipts
router.include_router(payments.router)
router.include_router(payments.receivings_router)

# Journal transfers
router.include_router(journals.router)
