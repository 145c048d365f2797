"""
Journal Service (Domain Logic).

A journal moves an amount between two accounts in one unit of work: a
JOURNAL row debits one account and another credits the other, both tagged
with the journal's reference.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_

from bookkeeping.app.models.journal import Journal
from bookkeeping.app.models.ledger_enums import LedgerEntryType
from bookkeeping.app.core.exceptions import ValidationError, ResourceNotFoundError
from bookkeeping.app.db.transaction import transactional
from bookkeeping.app.services.account_locking import lock_accounts
from bookkeeping.app.domain.ledger.money import D, ZERO
from bookkeeping.app.domain.ledger.references import JournalRef
from bookkeeping.app.domain.ledger.posting_engine import PostingEngine
from bookkeeping.app.domain.ledger.reversal_engine import ReversalEngine
from bookkeeping.app.domain.ledger.reconciliation import assert_consistent

logger = logging.getLogger(__name__)


async def get_journal(db: AsyncSession, journal_id: int) -> Journal:
    journal = await db.get(Journal, journal_id)
    if not journal:
        raise ResourceNotFoundError("Journal", journal_id)
    return journal


async def list_journals(
    db: AsyncSession,
    account_id: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    page: int = 1,
    page_size: int = 50
):
    """Journals touching `account_id` (either side), newest first. Returns (items, total)."""
    filters = []
    if account_id:
        filters.append(or_(Journal.debit_account_id == account_id, Journal.credit_account_id == account_id))
    if start_date:
        filters.append(Journal.created_at >= start_date)
    if end_date:
        filters.append(Journal.created_at <= end_date)

    total = (await db.execute(select(func.count(Journal.id)).where(*filters))).scalar()

    offset = (page - 1) * page_size
    result = await db.execute(
        select(Journal).where(*filters)
        .order_by(Journal.created_at.desc(), Journal.id.desc())
        .offset(offset).limit(page_size)
    )
    return list(result.scalars().all()), total


class JournalService:

    @staticmethod
    @transactional("journal.create")
    async def post(
        db: AsyncSession,
        debit_account_id: int,
        credit_account_id: int,
        amount,
        description: str,
        date: Optional[datetime] = None
    ) -> Tuple[Journal, Dict[int, Decimal]]:
        """
        Post a journal between two accounts.

        Returns:
            The journal and the pre-posting balance of each account
        """
        if not debit_account_id or not credit_account_id or not description:
            raise ValidationError("Debit account, credit account, amount and description are required")
        if debit_account_id == credit_account_id:
            raise ValidationError(
                "Debit and credit accounts must be different",
                details={"account_id": debit_account_id}
            )
        amount = D(amount)
        if amount <= ZERO:
            raise ValidationError("Amount must be greater than zero", details={"amount": str(amount)})

        accounts = await lock_accounts(db, debit_account_id, credit_account_id)
        debit_account = accounts[debit_account_id]
        credit_account = accounts[credit_account_id]
        pre_balances = {account_id: D(account.balance) for account_id, account in accounts.items()}

        journal = Journal(
            debit_account_id=debit_account.id,
            credit_account_id=credit_account.id,
            amount=amount,
            description=description,
        )
        if date is not None:
            journal.created_at = date
        db.add(journal)
        await db.flush()

        posted_at = date or journal.created_at or datetime.now(timezone.utc)
        ref = JournalRef(journal.id)
        await PostingEngine.post(
            db, debit_account, LedgerEntryType.JOURNAL, ref, amount, ZERO,
            f"Journal {journal.id} to {credit_account.name}: {description}", posted_at,
        )
        await PostingEngine.post(
            db, credit_account, LedgerEntryType.JOURNAL, ref, ZERO, amount,
            f"Journal {journal.id} from {debit_account.name}: {description}", posted_at,
        )

        await assert_consistent(db, debit_account, credit_account)
        logger.info("Journal %s posted: %s from account %s to account %s",
                    journal.id, amount, debit_account.id, credit_account.id)
        return journal, pre_balances

    @staticmethod
    @transactional("journal.delete")
    async def delete(db: AsyncSession, journal_id: int) -> Dict[int, Decimal]:
        """
        Delete a journal, restoring both accounts.

        Returns:
            Pre-journal balance per affected account
        """
        journal = await get_journal(db, journal_id)
        accounts = await lock_accounts(db, journal.debit_account_id, journal.credit_account_id)

        restored = await ReversalEngine.reverse(db, JournalRef(journal.id), accounts)
        await db.delete(journal)
        await db.flush()

        await assert_consistent(db, *accounts.values())
        logger.info("Journal %s deleted", journal_id)
        return restored
