"""
Ledger API Endpoints.

Labeled ledger listing, manual postings, the opening-balance upsert and the
consistency check.
"""

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from bookkeeping.app.db.session import get_db
from bookkeeping.app.core.config import settings
from bookkeeping.app.models.ledger_enums import LedgerEntryType
from bookkeeping.app.schemas.ledger import (
    LedgerEntryResponse, LabeledLedgerEntry, LedgerListResponse,
    ManualLedgerCreate, OpeningBalanceRequest,
    ChainReportResponse, ConsistencyResponse
)
from bookkeeping.app.domain.ledger.ledger_query import query_ledger
from bookkeeping.app.domain.ledger.payment_service import ManualEntryService
from bookkeeping.app.domain.ledger.opening_balance import set_opening_balance
from bookkeeping.app.domain.ledger.reconciliation import verify_ledger

router = APIRouter(prefix="/ledgers", tags=["Ledger"])


def labeled_response(row) -> LabeledLedgerEntry:
    base = LedgerEntryResponse.model_validate(row.entry)
    return LabeledLedgerEntry(
        **base.model_dump(),
        account_name=row.account_name,
        account_type=row.account_type,
        pre_balance_label=row.pre_balance_label,
        post_balance_label=row.post_balance_label,
    )


@router.get("", response_model=LedgerListResponse)
async def list_ledger(
    account_id: Optional[int] = Query(None, description="Filter by account"),
    type: Optional[LedgerEntryType] = Query(None, description="Filter by entry type"),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size, description="Items per page"),
    db: AsyncSession = Depends(get_db)
):
    """
    List ledger rows newest first (business date, then id).

    Each row carries Dr/Cr labels for its opening and closing balance.
    """
    rows, total = await query_ledger(
        db,
        account_id=account_id,
        entry_type=type,
        start_date=start_date,
        end_date=end_date,
        page=page,
        page_size=page_size,
    )
    return LedgerListResponse(
        entries=[labeled_response(row) for row in rows],
        total=total,
        page=page,
        page_size=page_size
    )


@router.post("", response_model=LedgerEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_manual_entry(
    entry_data: ManualLedgerCreate,
    db: AsyncSession = Depends(get_db)
):
    """Post a MANUAL or OPENING_BALANCE row through the posting engine."""
    entry = await ManualEntryService.post(
        db,
        account_id=entry_data.account_id,
        details=entry_data.details,
        dr_amount=entry_data.dr_amount,
        cr_amount=entry_data.cr_amount,
        type=entry_data.type,
        date=entry_data.date,
    )
    return LedgerEntryResponse.model_validate(entry)


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_manual_entry(entry_id: int, db: AsyncSession = Depends(get_db)):
    """Reverse a manual row. Rows owned by other transactions are deleted through them."""
    await ManualEntryService.delete(db, entry_id)


@router.put("/opening-balance", response_model=LedgerEntryResponse)
async def upsert_opening_balance(
    request: OpeningBalanceRequest,
    db: AsyncSession = Depends(get_db)
):
    """Create the account's opening balance, or edit it in place."""
    entry = await set_opening_balance(
        db,
        request.account_id,
        request.amount,
        request.account_type,
        effective_date=request.date,
    )
    return LedgerEntryResponse.model_validate(entry)


@router.get("/consistency", response_model=ConsistencyResponse)
async def consistency_check(
    account_id: Optional[int] = Query(None, description="Check a single account"),
    db: AsyncSession = Depends(get_db)
):
    """Compare every cached balance with its ledger chain. Read-only."""
    reports = await verify_ledger(db, account_id=account_id)
    return ConsistencyResponse(
        ok=all(report.ok for report in reports),
        accounts=[ChainReportResponse.model_validate(report) for report in reports],
    )
