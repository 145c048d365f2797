"""
Purchase API Endpoints.

Purchases from party accounts. Every write posts or reverses ledger rows in the
same unit of work.
"""

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from bookkeeping.app.db.session import get_db
from bookkeeping.app.core.config import settings
from bookkeeping.app.schemas.trade import (
    PurchaseCreate, PurchaseUpdate, PurchaseResponse, PurchaseListResponse, TradeDeleteResponse
)
from bookkeeping.app.domain.ledger.trade_service import PURCHASE, PurchaseService, get_trade, list_trades

router = APIRouter(prefix="/purchases", tags=["Purchases"])


@router.post("", response_model=PurchaseResponse, status_code=status.HTTP_201_CREATED)
async def create_purchase(purchase_data: PurchaseCreate, db: AsyncSession = Depends(get_db)):
    """
    Record a purchase.

    Posts a PURCHASE row (credit) and, when a payment is included, a PAYMENT row
    (debit) on the party's account.
    """
    fields = purchase_data.model_dump()
    account_id = fields.pop("account_id")
    purchase = await PurchaseService.create(db, account_id, **fields)
    return PurchaseResponse.model_validate(purchase)


@router.get("", response_model=PurchaseListResponse)
async def list_purchases(
    account_id: Optional[int] = Query(None, description="Filter by party account"),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size, description="Items per page"),
    db: AsyncSession = Depends(get_db)
):
    purchases, total = await list_trades(db, PURCHASE, account_id, start_date, end_date, page, page_size)
    return PurchaseListResponse(
        purchases=[PurchaseResponse.model_validate(purchase) for purchase in purchases],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/{purchase_id}", response_model=PurchaseResponse)
async def get_purchase(purchase_id: int, db: AsyncSession = Depends(get_db)):
    purchase = await get_trade(db, PURCHASE, purchase_id)
    return PurchaseResponse.model_validate(purchase)


@router.put("/{purchase_id}", response_model=PurchaseResponse)
async def update_purchase(purchase_id: int, purchase_data: PurchaseUpdate, db: AsyncSession = Depends(get_db)):
    """
    Edit a purchase.

    The old ledger rows are reversed and the purchase is reposted from the
    balance the account had before it.
    """
    changes = purchase_data.model_dump(exclude_unset=True)
    purchase = await PurchaseService.update(db, purchase_id, **changes)
    return PurchaseResponse.model_validate(purchase)


@router.delete("/{purchase_id}", response_model=TradeDeleteResponse)
async def delete_purchase(purchase_id: int, db: AsyncSession = Depends(get_db)):
    """Delete a purchase and restore the party's pre-purchase balance."""
    purchase = await get_trade(db, PURCHASE, purchase_id)
    account_id = purchase.account_id
    restored = await PurchaseService.delete(db, purchase_id)
    return TradeDeleteResponse(id=purchase_id, account_id=account_id, restored_balance=restored)
