"""
Journal database model.

Direct transfer between two accounts.
"""

from sqlalchemy import Column, Integer, ForeignKey, DateTime, Numeric, String, CheckConstraint
from sqlalchemy.sql import func
from bookkeeping.app.db.session import Base


class Journal(Base):
    """
    Journal model.

    Paired posting: a JOURNAL row debits `debit_account_id` and a JOURNAL row
    credits `credit_account_id`, both tagged with reference (JOURNAL, id).
    """
    __tablename__ = "journals"
    __table_args__ = (
        CheckConstraint("debit_account_id <> credit_account_id", name="ck_journals_distinct_accounts"),
    )
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    debit_account_id = Column(Integer, ForeignKey('accounts.id'), nullable=False, index=True)
    credit_account_id = Column(Integer, ForeignKey('accounts.id'), nullable=False, index=True)
    amount = Column(Numeric(14, 2), nullable=False)
    description = Column(String(500), nullable=True)

    # Business date of the transfer
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return (
            f"<Journal(id={self.id}, dr={self.debit_account_id}, "
            f"cr={self.credit_account_id}, amount={self.amount})>"
        )
