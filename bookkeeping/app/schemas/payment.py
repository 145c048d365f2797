"""
Payment and receiving Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import List


class PaymentCreate(BaseModel):
    """Payment to a party or receipt from a customer."""
    account_id: int
    amount: Decimal
    description: str = Field(..., min_length=1, max_length=500)
    date: datetime


class PaymentResponse(BaseModel):
    """A payment is its own ledger row."""
    id: int
    account_id: int
    account_name: str
    amount: Decimal
    details: str
    opening_balance: Decimal
    closing_balance: Decimal
    balance_label: str
    date: datetime


class PaymentListResponse(BaseModel):
    payments: List[PaymentResponse]
    total: int
    page: int
    page_size: int


class PaymentDeleteResponse(BaseModel):
    id: int
    account_id: int
    balance: Decimal
