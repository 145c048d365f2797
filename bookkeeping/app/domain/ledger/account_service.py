"""
Account Service (Domain Logic).

Account store operations. The cached balance is never taken from callers:
it moves only through postings and reversals.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_

from bookkeeping.app.models.account import Account
from bookkeeping.app.models.enums import AccountType
from bookkeeping.app.models.ledger_entry import LedgerEntry
from bookkeeping.app.models.ledger_enums import LedgerEntryType
from bookkeeping.app.models.sale import Sale
from bookkeeping.app.models.purchase import Purchase
from bookkeeping.app.models.journal import Journal
from bookkeeping.app.core.exceptions import ValidationError, ResourceNotFoundError, HasDependentsError
from bookkeeping.app.db.transaction import transactional
from bookkeeping.app.services.account_locking import lock_account
from bookkeeping.app.domain.ledger.money import D, ZERO
from bookkeeping.app.domain.ledger.references import AccountCreationRef
from bookkeeping.app.domain.ledger.posting_engine import PostingEngine
from bookkeeping.app.domain.ledger.sign_convention import amounts_for_delta
from bookkeeping.app.domain.ledger.reconciliation import assert_consistent
from bookkeeping.app.domain.ledger import ordering

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "phone", "address", "type")


def parse_account_type(value) -> AccountType:
    try:
        return AccountType(value)
    except ValueError:
        raise ValidationError(
            f"Invalid account type. Must be one of: {', '.join(t.value for t in AccountType)}",
            details={"type": str(value)}
        )


async def count_dependents(db: AsyncSession, account_id: int) -> Dict[str, int]:
    """Ledger rows, sales, purchases and journals owned by the account."""
    async def _count(column, *conditions):
        result = await db.execute(select(func.count(column)).where(*conditions))
        return result.scalar()

    return {
        "ledgers": await _count(LedgerEntry.id, LedgerEntry.account_id == account_id),
        "sales": await _count(Sale.id, Sale.account_id == account_id),
        "purchases": await _count(Purchase.id, Purchase.account_id == account_id),
        "journals": await _count(
            Journal.id,
            or_(Journal.debit_account_id == account_id, Journal.credit_account_id == account_id)
        ),
    }


class AccountService:

    @staticmethod
    @transactional("account.create")
    async def create(
        db: AsyncSession,
        name: str,
        type,
        phone: Optional[str] = None,
        address: Optional[str] = None,
        initial_balance=0,
        effective_date: Optional[datetime] = None
    ) -> Account:
        """
        Create an account, seeding an INITIAL_BALANCE row for a nonzero balance.

        The seeded row opens at 0 and closes at `initial_balance`; dr/cr are
        chosen so the type-aware delta equals the initial balance.
        """
        if not name or not name.strip():
            raise ValidationError("Name is required")
        account_type = parse_account_type(type)
        initial = D(initial_balance)

        account = Account(
            name=name.strip(),
            type=account_type,
            phone=phone,
            address=address,
            balance=ZERO,
        )
        db.add(account)
        await db.flush()

        if initial != ZERO:
            dr, cr = amounts_for_delta(account_type, initial)
            await PostingEngine.post(
                db,
                account,
                LedgerEntryType.INITIAL_BALANCE,
                AccountCreationRef(account.id),
                dr,
                cr,
                f"Initial balance for account: {account.name}",
                effective_date or datetime.now(timezone.utc),
            )

        await assert_consistent(db, account)
        logger.info("Account %s created (%s), initial balance %s", account.id, account_type.value, initial)
        return account

    @staticmethod
    async def get(db: AsyncSession, account_id: int) -> Account:
        account = await db.get(Account, account_id)
        if not account:
            raise ResourceNotFoundError("Account", account_id)
        return account

    @staticmethod
    async def list(
        db: AsyncSession,
        type: Optional[AccountType] = None,
        search: Optional[str] = None
    ) -> List[Account]:
        """Accounts newest first, optionally filtered by type and free-text search."""
        query = select(Account)
        if type:
            query = query.where(Account.type == parse_account_type(type))
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(
                Account.name.ilike(pattern),
                Account.phone.ilike(pattern),
                Account.address.ilike(pattern),
            ))
        result = await db.execute(query.order_by(Account.created_at.desc(), Account.id.desc()))
        return list(result.scalars().all())

    @staticmethod
    @transactional("account.update")
    async def update(db: AsyncSession, account_id: int, **changes) -> Account:
        """
        Update contact details (and type while the account has no ledger history).

        A `balance` key is ignored: balances only move through postings.
        """
        changes.pop("balance", None)
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

        account = await lock_account(db, account_id)

        if "name" in changes and (not changes["name"] or not changes["name"].strip()):
            raise ValidationError("Name is required")

        if changes.get("type") is not None:
            new_type = parse_account_type(changes["type"])
            if new_type != account.type and await ordering.latest_entry(db, account.id) is not None:
                raise ValidationError(
                    "Account type cannot change once the account has ledger entries",
                    details={"account_id": account.id, "type": account.type.value}
                )
            changes["type"] = new_type

        for field, value in changes.items():
            if value is not None:
                setattr(account, field, value.strip() if field == "name" else value)
        await db.flush()
        return account

    @staticmethod
    @transactional("account.delete")
    async def delete(db: AsyncSession, account_id: int) -> None:
        """
        Delete an account that owns no transactions.

        Raises:
            HasDependentsError: Any ledger row, sale, purchase or journal exists
        """
        account = await lock_account(db, account_id)
        counts = await count_dependents(db, account.id)
        if any(counts.values()):
            raise HasDependentsError(account.id, counts)

        await db.delete(account)
        await db.flush()
        logger.info("Account %s deleted", account_id)
