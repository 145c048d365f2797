"""
Journal Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Dict


class JournalCreate(BaseModel):
    """Schema for a transfer between two accounts."""
    debit_account_id: int
    credit_account_id: int
    amount: Decimal
    description: str = Field(..., min_length=1, max_length=500)
    date: Optional[datetime] = None


class JournalResponse(BaseModel):
    """Schema for journal response."""
    id: int
    debit_account_id: int
    credit_account_id: int
    amount: Decimal
    description: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class JournalCreateResponse(JournalResponse):
    """Journal with both accounts' balances before the transfer."""
    pre_balances: Dict[int, Decimal]


class JournalListResponse(BaseModel):
    journals: List[JournalResponse]
    total: int
    page: int
    page_size: int


class JournalDeleteResponse(BaseModel):
    id: int
    restored_balances: Dict[int, Decimal]
