"""
Account locking service.

Serializes writers per account: balance and ledger chain updates are
read-modify-write, so callers lock every touched account first.
"""

from typing import Dict
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from bookkeeping.app.models.account import Account
from bookkeeping.app.core.exceptions import ResourceNotFoundError


async def lock_accounts(
    db: AsyncSession,
    *account_ids: int
) -> Dict[int, Account]:
    """
    Lock accounts for update in ascending id order.

    Rows are re-read under the lock, replacing any stale copy in the session.

    The fixed acquisition order keeps two cross-account operations
    (journal transfer, sale moved between accounts) from deadlocking.

    Args:
        db: Database session (inside the caller's transaction)
        account_ids: Accounts to lock (duplicates allowed)

    Returns:
        Mapping of account id to locked Account

    Raises:
        ResourceNotFoundError: If any account does not exist
    """
    wanted = sorted(set(account_ids))
    result = await db.execute(
        select(Account)
        .where(Account.id.in_(wanted))
        .order_by(Account.id.asc())
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    accounts = {account.id: account for account in result.scalars().all()}

    for account_id in wanted:
        if account_id not in accounts:
            raise ResourceNotFoundError("Account", account_id)

    return accounts


async def lock_account(db: AsyncSession, account_id: int) -> Account:
    """Lock a single account for update."""
    accounts = await lock_accounts(db, account_id)
    return accounts[account_id]
