"""
Ledger Entry database model.

Debit/credit rows per account, each carrying the balance snapshot before and after it.
"""

from sqlalchemy import Column, Integer, ForeignKey, DateTime, Enum, String, Numeric, Index
from sqlalchemy.sql import func
from bookkeeping.app.db.session import Base
from bookkeeping.app.models.ledger_enums import LedgerEntryType, ReferenceType


class LedgerEntry(Base):
    """
    Ledger Entry model.

    Append-mostly record of a balance movement on one account.
    Chain order is `id` ascending: entry[i].opening_balance == entry[i-1].closing_balance.
    Rows are only deleted in bulk by reference (reversal) and only updated in
    place by the opening-balance upsert and chain recompute.
    """
    __tablename__ = "ledger_entries"
    __table_args__ = (
        Index("ix_ledger_entries_reference", "reference_type", "reference_id"),
        Index("ix_ledger_entries_account_created", "account_id", "created_at"),
    )
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Ownership
    account_id = Column(Integer, ForeignKey('accounts.id'), nullable=False, index=True)

    # Entry details
    type = Column(Enum(LedgerEntryType), nullable=False, index=True)
    dr_amount = Column(Numeric(14, 2), nullable=False, default=0)
    cr_amount = Column(Numeric(14, 2), nullable=False, default=0)
    details = Column(String(500), nullable=True)

    # Linkage to the source transaction
    reference_type = Column(Enum(ReferenceType), nullable=True)
    reference_id = Column(Integer, nullable=True)

    # Balance snapshots (signed)
    opening_balance = Column(Numeric(14, 2), nullable=False, default=0)
    closing_balance = Column(Numeric(14, 2), nullable=False, default=0)

    # Business date of the underlying transaction, not insertion time
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return (
            f"<LedgerEntry(id={self.id}, account_id={self.account_id}, type='{self.type.value}', "
            f"dr={self.dr_amount}, cr={self.cr_amount}, close={self.closing_balance})>"
        )
