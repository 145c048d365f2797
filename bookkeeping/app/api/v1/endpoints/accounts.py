"""
Account API Endpoints.

Account store CRUD plus an on-demand chain repair.
"""

from typing import Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from bookkeeping.app.db.session import get_db
from bookkeeping.app.models.enums import AccountType
from bookkeeping.app.schemas.account import (
    AccountCreate, AccountUpdate, AccountResponse,
    AccountListItem, AccountListResponse, ReconcileResponse
)
from bookkeeping.app.domain.ledger.account_service import AccountService, count_dependents
from bookkeeping.app.domain.ledger.reconciliation import reconcile_account, check_account
from bookkeeping.app.domain.ledger.sign_convention import balance_label
from bookkeeping.app.domain.ledger.money import D

router = APIRouter(prefix="/accounts", tags=["Accounts"])


def _account_response(account, schema=AccountResponse, **extra):
    response = schema.model_validate(account)
    response.balance_label = balance_label(account.type, account.balance)
    for field, value in extra.items():
        setattr(response, field, value)
    return response


@router.post("", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def create_account(
    account_data: AccountCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Create an account.

    A nonzero initial balance is posted as an INITIAL_BALANCE ledger row.
    """
    account = await AccountService.create(
        db,
        name=account_data.name,
        type=account_data.type,
        phone=account_data.phone,
        address=account_data.address,
        initial_balance=account_data.initial_balance,
    )
    return _account_response(account)


@router.get("", response_model=AccountListResponse)
async def list_accounts(
    type: Optional[AccountType] = Query(None, description="Filter by account type"),
    search: Optional[str] = Query(None, description="Search name, phone or address"),
    db: AsyncSession = Depends(get_db)
):
    """List accounts newest first, with the records each one owns."""
    accounts = await AccountService.list(db, type=type, search=search)
    items = [
        _account_response(account, AccountListItem, counts=await count_dependents(db, account.id))
        for account in accounts
    ]
    return AccountListResponse(accounts=items, total=len(items))


@router.get("/{account_id}", response_model=AccountResponse)
async def get_account(account_id: int, db: AsyncSession = Depends(get_db)):
    account = await AccountService.get(db, account_id)
    return _account_response(account)


@router.patch("/{account_id}", response_model=AccountResponse)
async def update_account(
    account_id: int,
    account_data: AccountUpdate,
    db: AsyncSession = Depends(get_db)
):
    """
    Update account details.

    The balance is not editable; the type only while the account has no ledger rows.
    """
    changes = account_data.model_dump(exclude_unset=True)
    account = await AccountService.update(db, account_id, **changes)
    return _account_response(account)


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_account(account_id: int, db: AsyncSession = Depends(get_db)):
    """Delete an account that owns no ledger rows, sales, purchases or journals."""
    await AccountService.delete(db, account_id)


@router.post("/{account_id}/reconcile", response_model=ReconcileResponse)
async def reconcile(account_id: int, db: AsyncSession = Depends(get_db)):
    """Rebuild the account's chain snapshots and cached balance."""
    report_before = await check_account(db, await AccountService.get(db, account_id))
    account = await reconcile_account(db, account_id)
    return ReconcileResponse(
        account_id=account.id,
        cached_balance_before=report_before.cached_balance,
        balance=D(account.balance),
        repaired=not report_before.ok,
    )
