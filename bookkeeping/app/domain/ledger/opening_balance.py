"""
Opening-balance upsert.

Idempotent: edits the account's OPENING_BALANCE row in place when it exists,
otherwise posts it. An in-place edit is rippled through the whole chain so
later snapshots and the cached balance stay consistent.
"""

import logging
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from bookkeeping.app.models.enums import AccountType
from bookkeeping.app.models.ledger_entry import LedgerEntry
from bookkeeping.app.models.ledger_enums import LedgerEntryType
from bookkeeping.app.core.exceptions import ValidationError
from bookkeeping.app.db.transaction import transactional
from bookkeeping.app.services.account_locking import lock_account
from bookkeeping.app.domain.ledger.money import D, ZERO
from bookkeeping.app.domain.ledger.references import ManualRef
from bookkeeping.app.domain.ledger.posting_engine import PostingEngine
from bookkeeping.app.domain.ledger.sign_convention import amounts_for_delta
from bookkeeping.app.domain.ledger.reconciliation import recompute_chain, assert_consistent
from bookkeeping.app.domain.ledger.account_service import parse_account_type

logger = logging.getLogger(__name__)

_WHO_OWES = {
    AccountType.CUSTOMER_ACCOUNT: "Customer owes us",
    AccountType.PARTY_ACCOUNT: "We owe supplier",
    AccountType.CASH: "Cash in hand",
}


def opening_balance_details(account_type: AccountType, amount) -> str:
    return f"Opening Balance: {D(amount)} ({_WHO_OWES[account_type]})"


@transactional("ledger.opening_balance")
async def set_opening_balance(
    db: AsyncSession,
    account_id: int,
    amount,
    account_type,
    effective_date: Optional[datetime] = None
) -> LedgerEntry:
    """
    Create or update the account's opening balance.

    Args:
        db: Database session
        account_id: Target account
        amount: Signed opening balance
        account_type: Must match the stored account type
        effective_date: Business date for a newly created row

    Returns:
        The OPENING_BALANCE ledger row

    Raises:
        ValidationError: Zero amount, type mismatch, or the account already has other rows
            and no opening balance to edit
    """
    account = await lock_account(db, account_id)
    if parse_account_type(account_type) != account.type:
        raise ValidationError(
            "Account type does not match the account",
            details={"account_id": account.id, "account_type": account.type.value}
        )

    amount = D(amount)
    if amount == ZERO:
        raise ValidationError("Opening balance needs a debit or credit amount")
    dr, cr = amounts_for_delta(account.type, amount)
    details = opening_balance_details(account.type, amount)

    result = await db.execute(
        select(LedgerEntry).where(
            LedgerEntry.account_id == account.id,
            LedgerEntry.type == LedgerEntryType.OPENING_BALANCE
        )
    )
    entry = result.scalar_one_or_none()

    if entry:
        entry.dr_amount = dr
        entry.cr_amount = cr
        entry.details = details
        await db.flush()
        await recompute_chain(db, account)
        logger.info("Opening balance of account %s updated to %s", account.id, amount)
    else:
        entry = await PostingEngine.post(
            db,
            account,
            LedgerEntryType.OPENING_BALANCE,
            None,
            dr,
            cr,
            details,
            effective_date or datetime.now(timezone.utc),
        )
        entry.reference_type = ManualRef(entry.id).reference_type
        entry.reference_id = entry.id
        await db.flush()
        logger.info("Opening balance of account %s set to %s", account.id, amount)

    await assert_consistent(db, account)
    return entry
