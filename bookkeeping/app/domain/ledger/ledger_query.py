"""
Ledger listing with balance labels.

Rows come back in display order. Labels are read from each row's stored
snapshots, never recomputed here.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from bookkeeping.app.models.account import Account
from bookkeeping.app.models.enums import AccountType
from bookkeeping.app.models.ledger_entry import LedgerEntry
from bookkeeping.app.models.ledger_enums import LedgerEntryType
from bookkeeping.app.domain.ledger.ordering import DISPLAY_ORDER
from bookkeeping.app.domain.ledger.sign_convention import balance_label


@dataclass
class LabeledEntry:
    entry: LedgerEntry
    account_name: str
    account_type: AccountType
    pre_balance_label: str
    post_balance_label: str


def label_entry(entry: LedgerEntry, account: Account) -> LabeledEntry:
    return LabeledEntry(
        entry=entry,
        account_name=account.name,
        account_type=account.type,
        pre_balance_label=balance_label(account.type, entry.opening_balance),
        post_balance_label=balance_label(account.type, entry.closing_balance),
    )


async def query_ledger(
    db: AsyncSession,
    account_id: Optional[int] = None,
    entry_type: Optional[LedgerEntryType] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    page: int = 1,
    page_size: int = 50
) -> Tuple[List[LabeledEntry], int]:
    """
    Filtered, paginated ledger rows.

    Args:
        db: Database session
        account_id: Only rows of this account
        entry_type: Only rows of this type
        start_date: created_at lower bound (inclusive)
        end_date: created_at upper bound (inclusive)
        page: 1-based page number
        page_size: Rows per page

    Returns:
        (labeled rows, total matching rows)
    """
    filters = []
    if account_id:
        filters.append(LedgerEntry.account_id == account_id)
    if entry_type:
        filters.append(LedgerEntry.type == LedgerEntryType(entry_type))
    if start_date:
        filters.append(LedgerEntry.created_at >= start_date)
    if end_date:
        filters.append(LedgerEntry.created_at <= end_date)

    total = (await db.execute(select(func.count(LedgerEntry.id)).where(*filters))).scalar()

    offset = (page - 1) * page_size
    result = await db.execute(
        select(LedgerEntry, Account)
        .join(Account, Account.id == LedgerEntry.account_id)
        .where(*filters)
        .order_by(*DISPLAY_ORDER)
        .offset(offset).limit(page_size)
    )
    return [label_entry(entry, account) for entry, account in result.all()], total
