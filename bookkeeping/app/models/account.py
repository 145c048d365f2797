"""
Account database model.

Customers, suppliers (parties) and cash accounts with a cached balance.
"""

from sqlalchemy import Column, Integer, String, DateTime, Enum, Numeric
from sqlalchemy.sql import func
from bookkeeping.app.db.session import Base
from bookkeeping.app.models.enums import AccountType


class Account(Base):
    """
    Account model.

    `balance` is a denormalized cache of the closing balance of the account's
    latest ledger entry. Only the posting and reversal engines write it.
    """
    __tablename__ = "accounts"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Identity
    name = Column(String(200), nullable=False, index=True)
    type = Column(Enum(AccountType), nullable=False, index=True)
    phone = Column(String(50), nullable=True)
    address = Column(String(500), nullable=True)

    # Cached balance (signed)
    balance = Column(Numeric(14, 2), nullable=False, default=0)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Account(id={self.id}, name='{self.name}', type='{self.type.value}', balance={self.balance})>"
