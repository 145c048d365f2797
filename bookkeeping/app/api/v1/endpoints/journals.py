"""
Journal API Endpoints.

Transfers between two accounts, posted as a pair of JOURNAL ledger rows.
"""

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from bookkeeping.app.db.session import get_db
from bookkeeping.app.core.config import settings
from bookkeeping.app.schemas.journal import (
    JournalCreate, JournalResponse, JournalCreateResponse,
    JournalListResponse, JournalDeleteResponse
)
from bookkeeping.app.domain.ledger.journal_service import JournalService, list_journals

router = APIRouter(prefix="/journals", tags=["Journals"])


@router.post("", response_model=JournalCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_journal(journal_data: JournalCreate, db: AsyncSession = Depends(get_db)):
    """
    Transfer an amount between two accounts.

    Debits `debit_account_id` and credits `credit_account_id`; the response
    carries both balances from before the transfer.
    """
    journal, pre_balances = await JournalService.post(
        db,
        journal_data.debit_account_id,
        journal_data.credit_account_id,
        journal_data.amount,
        journal_data.description,
        date=journal_data.date,
    )
    return JournalCreateResponse(
        **JournalResponse.model_validate(journal).model_dump(),
        pre_balances=pre_balances,
    )


@router.get("", response_model=JournalListResponse)
async def list_all_journals(
    account_id: Optional[int] = Query(None, description="Journals touching this account"),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size, description="Items per page"),
    db: AsyncSession = Depends(get_db)
):
    journals, total = await list_journals(db, account_id, start_date, end_date, page, page_size)
    return JournalListResponse(
        journals=[JournalResponse.model_validate(journal) for journal in journals],
        total=total,
        page=page,
        page_size=page_size
    )


@router.delete("/{journal_id}", response_model=JournalDeleteResponse)
async def delete_journal(journal_id: int, db: AsyncSession = Depends(get_db)):
    """Delete a journal and restore both accounts."""
    restored = await JournalService.delete(db, journal_id)
    return JournalDeleteResponse(id=journal_id, restored_balances=restored)
