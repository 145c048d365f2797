"""
Ledger ordering and chain lookups.

Two orders exist and are never mixed:
- chain order (`id` ascending) drives every balance computation;
- display order (`created_at` descending, `id` descending as tiebreaker)
  drives listings, since created_at is the business date and may be backdated.
"""

from decimal import Decimal
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from bookkeeping.app.models.ledger_entry import LedgerEntry
from bookkeeping.app.domain.ledger.money import D, ZERO
from bookkeeping.app.domain.ledger.references import TransactionRef

CHAIN_ORDER = (LedgerEntry.id.asc(),)
DISPLAY_ORDER = (LedgerEntry.created_at.desc(), LedgerEntry.id.desc())


def reference_filter(ref: TransactionRef):
    return (
        LedgerEntry.reference_type == ref.reference_type,
        LedgerEntry.reference_id == ref.id,
    )


async def latest_entry(db: AsyncSession, account_id: int) -> Optional[LedgerEntry]:
    """Tail of the account's chain."""
    result = await db.execute(
        select(LedgerEntry)
        .where(LedgerEntry.account_id == account_id)
        .order_by(LedgerEntry.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def current_balance(db: AsyncSession, account_id: int) -> Decimal:
    """Closing balance of the chain tail, or 0 for an empty chain."""
    entry = await latest_entry(db, account_id)
    return D(entry.closing_balance) if entry else ZERO


async def chain_entries(db: AsyncSession, account_id: int) -> List[LedgerEntry]:
    result = await db.execute(
        select(LedgerEntry)
        .where(LedgerEntry.account_id == account_id)
        .order_by(*CHAIN_ORDER)
    )
    return list(result.scalars().all())


async def entries_for_reference(
    db: AsyncSession,
    ref: TransactionRef,
    account_id: Optional[int] = None
) -> List[LedgerEntry]:
    """All rows tagged with `ref`, in chain order."""
    query = select(LedgerEntry).where(*reference_filter(ref))
    if account_id is not None:
        query = query.where(LedgerEntry.account_id == account_id)
    result = await db.execute(query.order_by(*CHAIN_ORDER))
    return list(result.scalars().all())


async def has_entries_after(db: AsyncSession, account_id: int, entry_id: int) -> bool:
    """True if the account's chain continues past `entry_id`."""
    result = await db.execute(
        select(LedgerEntry.id)
        .where(LedgerEntry.account_id == account_id, LedgerEntry.id > entry_id)
        .limit(1)
    )
    return result.scalar_one_or_none() is not None
