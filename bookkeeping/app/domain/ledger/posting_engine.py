"""
Posting Engine (Domain Logic).

Turns an economic event into ledger rows with opening/closing balance
snapshots and keeps the account's cached balance on the chain tail.
Flushes only: the caller's unit of work commits.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from bookkeeping.app.models.account import Account
from bookkeeping.app.models.ledger_entry import LedgerEntry
from bookkeeping.app.models.ledger_enums import LedgerEntryType
from bookkeeping.app.core.exceptions import ValidationError, DuplicateOpeningBalanceError
from bookkeeping.app.domain.ledger.money import D, ZERO
from bookkeeping.app.domain.ledger.references import TransactionRef
from bookkeeping.app.domain.ledger.sign_convention import signed_delta
from bookkeeping.app.domain.ledger import ordering

logger = logging.getLogger(__name__)


@dataclass
class PostingLine:
    """One row of a chained posting."""
    entry_type: LedgerEntryType
    dr_amount: Decimal = ZERO
    cr_amount: Decimal = ZERO
    details: str = ""


class PostingEngine:

    @staticmethod
    async def post(
        db: AsyncSession,
        account: Account,
        entry_type: LedgerEntryType,
        ref: Optional[TransactionRef],
        dr_amount,
        cr_amount,
        details: str,
        effective_date: datetime,
        opening_balance: Optional[Decimal] = None
    ) -> LedgerEntry:
        """
        Post one ledger row.

        Flow:
        1. Opening balance = closing balance of the chain tail (or 0),
           unless the caller chains from a known balance
        2. Delta by account-type sign convention
        3. Closing = opening + delta
        4. Write the row dated at the business date
        5. Move the cached account balance to the closing balance

        Args:
            db: Database session (account must already be locked)
            account: Owning account
            entry_type: Kind of row
            ref: Source transaction tag (None for self-referencing rows)
            dr_amount: Debit amount (>= 0)
            cr_amount: Credit amount (>= 0)
            details: Free text
            effective_date: Business date stored as created_at
            opening_balance: Explicit opening balance for chained rows

        Returns:
            Created LedgerEntry

        Raises:
            ValidationError: Negative amounts or misplaced opening balance
            DuplicateOpeningBalanceError: Account already has an opening balance
        """
        dr = D(dr_amount)
        cr = D(cr_amount)
        if dr < ZERO or cr < ZERO:
            raise ValidationError(
                "Debit and credit amounts must not be negative",
                details={"dr_amount": str(dr), "cr_amount": str(cr)}
            )

        # 1. Opening balance
        if entry_type == LedgerEntryType.OPENING_BALANCE:
            await PostingEngine.guard_opening_balance(db, account)
            opening = ZERO
        elif opening_balance is None:
            opening = await ordering.current_balance(db, account.id)
        else:
            opening = D(opening_balance)

        # 2-3. Signed delta and closing balance
        closing = opening + signed_delta(account.type, dr, cr)

        # 4. Ledger row
        entry = LedgerEntry(
            account_id=account.id,
            type=entry_type,
            dr_amount=dr,
            cr_amount=cr,
            details=details,
            reference_type=ref.reference_type if ref else None,
            reference_id=ref.id if ref else None,
            opening_balance=opening,
            closing_balance=closing,
            created_at=effective_date,
        )
        db.add(entry)

        # 5. Cached balance
        account.balance = closing
        await db.flush()

        logger.info(
            "Posted %s on account %s (%s): dr=%s cr=%s open=%s close=%s",
            entry_type.value, account.id, ref, dr, cr, opening, closing
        )
        return entry

    @staticmethod
    async def post_chain(
        db: AsyncSession,
        account: Account,
        ref: TransactionRef,
        lines: List[PostingLine],
        effective_date: datetime,
        opening_balance: Optional[Decimal] = None
    ) -> List[LedgerEntry]:
        """
        Post several rows chained from each other (principal, then payment).

        Every row shares `ref`; row n opens at row n-1's closing balance.
        Atomicity comes from the caller's transaction.
        """
        entries = []
        opening = opening_balance
        for line in lines:
            entry = await PostingEngine.post(
                db,
                account,
                line.entry_type,
                ref,
                line.dr_amount,
                line.cr_amount,
                line.details,
                effective_date,
                opening_balance=opening,
            )
            entries.append(entry)
            opening = entry.closing_balance
        return entries

    @staticmethod
    async def guard_opening_balance(db: AsyncSession, account: Account) -> None:
        """
        An account has at most one OPENING_BALANCE row and it heads the chain.

        Raises:
            DuplicateOpeningBalanceError: One already exists
            ValidationError: Other rows already exist
        """
        result = await db.execute(
            select(LedgerEntry.id).where(
                LedgerEntry.account_id == account.id,
                LedgerEntry.type == LedgerEntryType.OPENING_BALANCE
            ).limit(1)
        )
        if result.scalar_one_or_none() is not None:
            raise DuplicateOpeningBalanceError(account.id)

        if await ordering.latest_entry(db, account.id) is not None:
            raise ValidationError(
                "Opening balance must be the first ledger entry of the account",
                details={"account_id": account.id}
            )
