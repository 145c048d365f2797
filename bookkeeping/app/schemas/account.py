"""
Account Pydantic schemas.

Request and response models for the account store. `balance` is never part of
a request: it only moves through ledger postings.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Dict
from bookkeeping.app.models.enums import AccountType


class AccountCreate(BaseModel):
    """Schema for creating an account."""
    name: str = Field(..., min_length=1, max_length=200, description="Account name")
    type: AccountType = Field(..., description="CASH, PARTY_ACCOUNT or CUSTOMER_ACCOUNT")
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=500)
    initial_balance: Decimal = Field(Decimal("0"), description="Signed starting balance")


class AccountUpdate(BaseModel):
    """Schema for updating an account."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    type: Optional[AccountType] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=500)


class AccountResponse(BaseModel):
    """Schema for account response."""
    id: int
    name: str
    type: AccountType
    phone: Optional[str]
    address: Optional[str]
    balance: Decimal
    balance_label: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class AccountListItem(AccountResponse):
    """Account with the number of records it owns."""
    counts: Dict[str, int] = {}


class AccountListResponse(BaseModel):
    """Schema for account list."""
    accounts: List[AccountListItem]
    total: int


class ReconcileResponse(BaseModel):
    """Result of a chain recompute."""
    account_id: int
    cached_balance_before: Decimal
    balance: Decimal
    repaired: bool
