"""
Reversal/Recompute Engine (Domain Logic).

Removes the ledger rows of an edited or deleted transaction and restores the
owning accounts to the balance they had immediately before it.
Flushes only: the caller's unit of work commits.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, NamedTuple, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from bookkeeping.app.models.account import Account
from bookkeeping.app.models.ledger_entry import LedgerEntry
from bookkeeping.app.domain.ledger.money import D, ZERO
from bookkeeping.app.domain.ledger.references import TransactionRef
from bookkeeping.app.domain.ledger.reconciliation import recompute_chain
from bookkeeping.app.domain.ledger import ordering

logger = logging.getLogger(__name__)


class RemovedSpan(NamedTuple):
    first_id: int
    balance_before: Decimal


class ReversalEngine:

    @staticmethod
    async def balance_before(
        db: AsyncSession,
        ref: TransactionRef,
        account_id: int,
        transaction_date: Optional[datetime] = None
    ) -> Decimal:
        """
        Balance of `account_id` immediately before the transaction `ref`.

        1. Opening balance of the first row tagged with `ref` (chain order)
        2. Otherwise the closing balance of the last row dated before the
           transaction (business date, then id)
        3. Otherwise 0
        """
        rows = await ordering.entries_for_reference(db, ref, account_id=account_id)
        if rows:
            return D(rows[0].opening_balance)

        if transaction_date is None:
            return ZERO

        result = await db.execute(
            select(LedgerEntry)
            .where(
                LedgerEntry.account_id == account_id,
                LedgerEntry.created_at < transaction_date
            )
            .order_by(LedgerEntry.created_at.desc(), LedgerEntry.id.desc())
            .limit(1)
        )
        previous = result.scalar_one_or_none()
        logger.info("No ledger rows for %s, falling back to previous row %s", ref, previous.id if previous else None)
        return D(previous.closing_balance) if previous else ZERO

    @staticmethod
    async def remove_rows(db: AsyncSession, ref: TransactionRef) -> Dict[int, RemovedSpan]:
        """
        Delete every row tagged with `ref`.

        Returns:
            Per account id, the first removed row id and its opening balance
        """
        rows = await ordering.entries_for_reference(db, ref)
        removed: Dict[int, RemovedSpan] = {}
        for row in rows:
            if row.account_id not in removed:
                removed[row.account_id] = RemovedSpan(row.id, D(row.opening_balance))
            await db.delete(row)
        await db.flush()

        logger.info("Removed %s ledger rows for %s", len(rows), ref)
        return removed

    @staticmethod
    async def settle_account(
        db: AsyncSession,
        account: Account,
        balance_before: Decimal,
        removed_from_id: Optional[int] = None
    ) -> Decimal:
        """
        Put the account back on a consistent balance after its rows were removed.

        When the removed rows were the chain tail the balance is simply the
        pre-transaction balance. When later rows exist their snapshots still
        include the removed delta, so the whole chain is recomputed. With no
        removed rows (`removed_from_id` None) the chain is untouched and the
        balance is taken from it.
        """
        if removed_from_id is None or await ordering.has_entries_after(db, account.id, removed_from_id):
            return await recompute_chain(db, account)

        account.balance = D(balance_before)
        await db.flush()
        return account.balance

    @staticmethod
    async def reverse(
        db: AsyncSession,
        ref: TransactionRef,
        accounts: Dict[int, Account]
    ) -> Dict[int, Decimal]:
        """
        Remove all rows of `ref` and settle each account that owned them.

        Args:
            db: Database session
            ref: Transaction to reverse
            accounts: Locked accounts keyed by id (must cover every owner)

        Returns:
            Pre-transaction balance per affected account
        """
        removed = await ReversalEngine.remove_rows(db, ref)

        for account_id, span in removed.items():
            await ReversalEngine.settle_account(
                db, accounts[account_id], span.balance_before, removed_from_id=span.first_id
            )
        return {account_id: span.balance_before for account_id, span in removed.items()}
