"""
Sale API Endpoints.

Sales to customer accounts. Every write posts or reverses ledger rows in the
same unit of work.
"""

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from bookkeeping.app.db.session import get_db
from bookkeeping.app.core.config import settings
from bookkeeping.app.schemas.trade import (
    SaleCreate, SaleUpdate, SaleResponse, SaleListResponse, TradeDeleteResponse
)
from bookkeeping.app.domain.ledger.trade_service import SALE, SaleService, get_trade, list_trades

router = APIRouter(prefix="/sales", tags=["Sales"])


@router.post("", response_model=SaleResponse, status_code=status.HTTP_201_CREATED)
async def create_sale(sale_data: SaleCreate, db: AsyncSession = Depends(get_db)):
    """
    Record a sale.

    Posts a SALE row (debit) and, when a payment is included, a PAYMENT row
    (credit) on the customer's account.
    """
    fields = sale_data.model_dump()
    account_id = fields.pop("account_id")
    sale = await SaleService.create(db, account_id, **fields)
    return SaleResponse.model_validate(sale)


@router.get("", response_model=SaleListResponse)
async def list_sales(
    account_id: Optional[int] = Query(None, description="Filter by customer account"),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size, description="Items per page"),
    db: AsyncSession = Depends(get_db)
):
    sales, total = await list_trades(db, SALE, account_id, start_date, end_date, page, page_size)
    return SaleListResponse(
        sales=[SaleResponse.model_validate(sale) for sale in sales],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/{sale_id}", response_model=SaleResponse)
async def get_sale(sale_id: int, db: AsyncSession = Depends(get_db)):
    sale = await get_trade(db, SALE, sale_id)
    return SaleResponse.model_validate(sale)


@router.put("/{sale_id}", response_model=SaleResponse)
async def update_sale(sale_id: int, sale_data: SaleUpdate, db: AsyncSession = Depends(get_db)):
    """
    Edit a sale.

    The old ledger rows are reversed and the sale is reposted from the
    balance the account had before it.
    """
    changes = sale_data.model_dump(exclude_unset=True)
    sale = await SaleService.update(db, sale_id, **changes)
    return SaleResponse.model_validate(sale)


@router.delete("/{sale_id}", response_model=TradeDeleteResponse)
async def delete_sale(sale_id: int, db: AsyncSession = Depends(get_db)):
    """Delete a sale and restore the customer's pre-sale balance."""
    sale = await get_trade(db, SALE, sale_id)
    account_id = sale.account_id
    restored = await SaleService.delete(db, sale_id)
    return TradeDeleteResponse(id=sale_id, account_id=account_id, restored_balance=restored)
