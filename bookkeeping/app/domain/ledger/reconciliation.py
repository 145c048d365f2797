"""
Ledger reconciliation.

The ledger chain is the source of truth; `Account.balance` is a materialized
view of its tail. This module recomputes the view, checks it, and is the
post-operation guard every mutating service runs before committing.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from bookkeeping.app.models.account import Account
from bookkeeping.app.models.ledger_enums import LedgerEntryType
from bookkeeping.app.core.exceptions import InvariantViolationError
from bookkeeping.app.db.transaction import transactional
from bookkeeping.app.services.account_locking import lock_account
from bookkeeping.app.domain.ledger.money import D, ZERO
from bookkeeping.app.domain.ledger.sign_convention import signed_delta
from bookkeeping.app.domain.ledger import ordering

logger = logging.getLogger(__name__)


@dataclass
class ChainReport:
    """Result of checking one account's chain."""
    account_id: int
    cached_balance: Decimal
    chain_balance: Decimal
    entry_count: int = 0
    broken_entry_ids: List[int] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.broken_entry_ids and self.cached_balance == self.chain_balance


def _expected_opening(entry, running: Decimal) -> Decimal:
    # An opening-balance row always opens at zero
    if entry.type == LedgerEntryType.OPENING_BALANCE:
        return ZERO
    return running


async def recompute_chain(db: AsyncSession, account: Account) -> Decimal:
    """
    Rewrite every snapshot of the account's chain and its cached balance.

    Walks rows in chain order, deriving each opening balance from the previous
    closing balance. Only rows whose snapshots changed are touched.

    Args:
        db: Database session (account must already be locked)
        account: Account to rebuild

    Returns:
        New cached balance
    """
    running = ZERO
    rewritten = 0
    for entry in await ordering.chain_entries(db, account.id):
        opening = _expected_opening(entry, running)
        closing = opening + signed_delta(account.type, entry.dr_amount, entry.cr_amount)
        if D(entry.opening_balance) != opening or D(entry.closing_balance) != closing:
            entry.opening_balance = opening
            entry.closing_balance = closing
            rewritten += 1
        running = closing

    account.balance = running
    await db.flush()

    logger.info("Recomputed chain for account %s: %s rows rewritten, balance=%s", account.id, rewritten, running)
    return running


async def check_account(db: AsyncSession, account: Account) -> ChainReport:
    """
    Check the per-entry, chaining and tail invariants for one account.
    """
    entries = await ordering.chain_entries(db, account.id)
    report = ChainReport(
        account_id=account.id,
        cached_balance=D(account.balance),
        chain_balance=ZERO,
        entry_count=len(entries),
    )

    running = ZERO
    for entry in entries:
        opening = D(entry.opening_balance)
        closing = D(entry.closing_balance)
        delta = signed_delta(account.type, entry.dr_amount, entry.cr_amount)
        if opening != _expected_opening(entry, running) or closing != opening + delta:
            report.broken_entry_ids.append(entry.id)
        running = closing

    report.chain_balance = running
    return report


async def assert_consistent(db: AsyncSession, *accounts: Account) -> None:
    """
    Post-operation guard.

    Raises:
        InvariantViolationError: Cached balance and chain disagree; the
            surrounding unit of work rolls back
    """
    for account in accounts:
        report = await check_account(db, account)
        if not report.ok:
            logger.error(
                "Ledger invariant violated on account %s: cached=%s chain=%s broken=%s",
                account.id, report.cached_balance, report.chain_balance, report.broken_entry_ids
            )
            raise InvariantViolationError(
                f"Balance of account {account.id} does not reconcile with its ledger",
                details={
                    "account_id": account.id,
                    "cached_balance": str(report.cached_balance),
                    "chain_balance": str(report.chain_balance),
                    "broken_entry_ids": report.broken_entry_ids,
                }
            )


async def verify_ledger(db: AsyncSession, account_id: Optional[int] = None) -> List[ChainReport]:
    """
    Consistency check over all accounts (or one).

    Read-only; discrepancies are logged, never corrected here.
    """
    query = select(Account).order_by(Account.id.asc())
    if account_id is not None:
        query = query.where(Account.id == account_id)
    result = await db.execute(query)

    reports = []
    for account in result.scalars().all():
        report = await check_account(db, account)
        if not report.ok:
            logger.error(
                "Consistency check failed for account %s: cached=%s chain=%s broken=%s",
                account.id, report.cached_balance, report.chain_balance, report.broken_entry_ids
            )
        reports.append(report)
    return reports


@transactional("account.reconcile")
async def reconcile_account(db: AsyncSession, account_id: int) -> Account:
    """Repair: lock, rebuild the chain, verify, commit."""
    account = await lock_account(db, account_id)
    await recompute_chain(db, account)
    await assert_consistent(db, account)
    return account
