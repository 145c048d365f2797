"""
Sale and purchase Pydantic schemas.

`total_amount` is always derived (weight x rate) and not accepted as input.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List


class TradeCreate(BaseModel):
    """Shared fields of a sale or purchase."""
    account_id: int
    date: datetime
    weight: Decimal = Field(..., description="Weight in kg")
    rate: Decimal = Field(..., description="Rate per kg")
    payment: Decimal = Field(Decimal("0"), description="Amount settled with the trade")


class SaleCreate(TradeCreate):
    """Schema for creating a sale."""


class PurchaseCreate(TradeCreate):
    """Schema for creating a purchase."""
    vehicle_number: Optional[str] = Field(None, max_length=50)


class SaleUpdate(BaseModel):
    """Schema for editing a sale. Omitted fields keep their value."""
    account_id: Optional[int] = None
    date: Optional[datetime] = None
    weight: Optional[Decimal] = None
    rate: Optional[Decimal] = None
    payment: Optional[Decimal] = None


class PurchaseUpdate(SaleUpdate):
    """Schema for editing a purchase."""
    vehicle_number: Optional[str] = Field(None, max_length=50)


class SaleResponse(BaseModel):
    """Schema for sale response."""
    id: int
    account_id: int
    date: datetime
    weight: Decimal
    rate: Decimal
    total_amount: Decimal
    pre_balance: Decimal
    payment: Decimal
    balance: Decimal
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class PurchaseResponse(SaleResponse):
    """Schema for purchase response."""
    vehicle_number: Optional[str]


class SaleListResponse(BaseModel):
    sales: List[SaleResponse]
    total: int
    page: int
    page_size: int


class PurchaseListResponse(BaseModel):
    purchases: List[PurchaseResponse]
    total: int
    page: int
    page_size: int


class TradeDeleteResponse(BaseModel):
    """Result of deleting a sale or purchase."""
    id: int
    account_id: int
    restored_balance: Decimal
