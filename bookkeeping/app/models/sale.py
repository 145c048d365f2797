"""
Sale database model.

A sale of goods (by weight) to a customer account.
"""

from sqlalchemy import Column, Integer, ForeignKey, DateTime, Numeric
from sqlalchemy.sql import func
from bookkeeping.app.db.session import Base


class Sale(Base):
    """
    Sale model.

    Posts a SALE row (and a PAYMENT row when paid on the spot) tagged
    with reference (SALE, id).
    """
    __tablename__ = "sales"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    account_id = Column(Integer, ForeignKey('accounts.id'), nullable=False, index=True)
    date = Column(DateTime(timezone=True), nullable=False, index=True)

    # Goods
    weight = Column(Numeric(14, 3), nullable=False)
    rate = Column(Numeric(14, 2), nullable=False)
    total_amount = Column(Numeric(14, 2), nullable=False)  # weight * rate

    # Balances
    pre_balance = Column(Numeric(14, 2), nullable=False, default=0)  # Account balance before this sale
    payment = Column(Numeric(14, 2), nullable=False, default=0)
    balance = Column(Numeric(14, 2), nullable=False, default=0)  # Closing balance after this sale

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Sale(id={self.id}, account_id={self.account_id}, total={self.total_amount})>"
