"""
Ledger Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from bookkeeping.app.models.enums import AccountType
from bookkeeping.app.models.ledger_enums import LedgerEntryType, ReferenceType


class LedgerEntryResponse(BaseModel):
    """Ledger row with its opening/closing snapshots."""
    id: int
    account_id: int
    type: LedgerEntryType
    dr_amount: Decimal
    cr_amount: Decimal
    details: Optional[str]
    reference_type: Optional[ReferenceType]
    reference_id: Optional[int]
    opening_balance: Decimal
    closing_balance: Decimal
    created_at: datetime

    class Config:
        from_attributes = True


class LabeledLedgerEntry(LedgerEntryResponse):
    """Ledger row with account info and Dr/Cr labels."""
    account_name: str
    account_type: AccountType
    pre_balance_label: str
    post_balance_label: str


class LedgerListResponse(BaseModel):
    """Schema for paginated ledger list."""
    entries: List[LabeledLedgerEntry]
    total: int
    page: int
    page_size: int


class ManualLedgerCreate(BaseModel):
    """Manual ledger row (MANUAL or OPENING_BALANCE)."""
    account_id: int
    details: str = Field(..., min_length=1, max_length=500)
    dr_amount: Decimal = Decimal("0")
    cr_amount: Decimal = Decimal("0")
    type: LedgerEntryType = LedgerEntryType.MANUAL
    date: Optional[datetime] = None


class OpeningBalanceRequest(BaseModel):
    """Idempotent opening-balance upsert."""
    account_id: int
    amount: Decimal = Field(..., description="Signed opening balance")
    account_type: AccountType
    date: Optional[datetime] = None


class ChainReportResponse(BaseModel):
    """Consistency of one account's chain."""
    account_id: int
    cached_balance: Decimal
    chain_balance: Decimal
    entry_count: int
    broken_entry_ids: List[int]
    ok: bool

    class Config:
        from_attributes = True


class ConsistencyResponse(BaseModel):
    """Consistency of the checked accounts."""
    ok: bool
    accounts: List[ChainReportResponse]
