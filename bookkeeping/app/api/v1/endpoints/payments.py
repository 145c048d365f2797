"""
Payment and Receiving API Endpoints.

Stand-alone payments to parties (`/payments`) and receipts from customers
(`/receivings`). Each one is a single self-referencing ledger row.
"""

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from bookkeeping.app.db.session import get_db
from bookkeeping.app.core.config import settings
from bookkeeping.app.models.account import Account
from bookkeeping.app.schemas.payment import (
    PaymentCreate, PaymentResponse, PaymentListResponse, PaymentDeleteResponse
)
from bookkeeping.app.domain.ledger.payment_service import (
    PAYMENT_TO_PARTY, PAYMENT_FROM_CUSTOMER, PaymentService, list_payments
)
from bookkeeping.app.domain.ledger.sign_convention import balance_label

router = APIRouter(prefix="/payments", tags=["Payments"])
receivings_router = APIRouter(prefix="/receivings", tags=["Receivings"])


def payment_response(entry, account, kind) -> PaymentResponse:
    return PaymentResponse(
        id=entry.id,
        account_id=account.id,
        account_name=account.name,
        amount=entry.dr_amount if kind.is_debit else entry.cr_amount,
        details=entry.details,
        opening_balance=entry.opening_balance,
        closing_balance=entry.closing_balance,
        balance_label=balance_label(account.type, entry.closing_balance),
        date=entry.created_at,
    )


async def _list(db, kind, account_id, start_date, end_date, page, page_size) -> PaymentListResponse:
    rows, total = await list_payments(db, kind, account_id, start_date, end_date, page, page_size)
    return PaymentListResponse(
        payments=[payment_response(entry, account, kind) for entry, account in rows],
        total=total,
        page=page,
        page_size=page_size
    )


# ==================== Payments to parties ====================

@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def create_payment(payment_data: PaymentCreate, db: AsyncSession = Depends(get_db)):
    """Pay a party account (debit, reduces what we owe)."""
    entry = await PaymentService.pay_party(
        db, payment_data.account_id, payment_data.amount, payment_data.description, payment_data.date
    )
    account = await db.get(Account, entry.account_id)
    return payment_response(entry, account, PAYMENT_TO_PARTY)


@router.get("", response_model=PaymentListResponse)
async def list_party_payments(
    account_id: Optional[int] = Query(None, description="Filter by party account"),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size, description="Items per page"),
    db: AsyncSession = Depends(get_db)
):
    return await _list(db, PAYMENT_TO_PARTY, account_id, start_date, end_date, page, page_size)


@router.delete("/{payment_id}", response_model=PaymentDeleteResponse)
async def delete_payment(payment_id: int, db: AsyncSession = Depends(get_db)):
    """Reverse a payment to a party."""
    account = await PaymentService.delete(db, PAYMENT_TO_PARTY, payment_id)
    return PaymentDeleteResponse(id=payment_id, account_id=account.id, balance=account.balance)


# ==================== Receipts from customers ====================

@receivings_router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def create_receiving(payment_data: PaymentCreate, db: AsyncSession = Depends(get_db)):
    """Receive from a customer account (credit, reduces what they owe us)."""
    entry = await PaymentService.receive_from_customer(
        db, payment_data.account_id, payment_data.amount, payment_data.description, payment_data.date
    )
    account = await db.get(Account, entry.account_id)
    return payment_response(entry, account, PAYMENT_FROM_CUSTOMER)


@receivings_router.get("", response_model=PaymentListResponse)
async def list_receivings(
    account_id: Optional[int] = Query(None, description="Filter by customer account"),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size, description="Items per page"),
    db: AsyncSession = Depends(get_db)
):
    return await _list(db, PAYMENT_FROM_CUSTOMER, account_id, start_date, end_date, page, page_size)


@receivings_router.delete("/{receiving_id}", response_model=PaymentDeleteResponse)
async def delete_receiving(receiving_id: int, db: AsyncSession = Depends(get_db)):
    """Reverse a receipt from a customer."""
    account = await PaymentService.delete(db, PAYMENT_FROM_CUSTOMER, receiving_id)
    return PaymentDeleteResponse(id=receiving_id, account_id=account.id, balance=account.balance)
