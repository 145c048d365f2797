"""
Payment Service (Domain Logic).

Stand-alone payments to parties, receipts from customers and manual ledger
entries. None of them has a source table: each row tags itself with its own
id as reference, so it can be reversed like any other transaction.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from bookkeeping.app.models.account import Account
from bookkeeping.app.models.enums import AccountType
from bookkeeping.app.models.ledger_entry import LedgerEntry
from bookkeeping.app.models.ledger_enums import LedgerEntryType, ReferenceType
from bookkeeping.app.core.exceptions import ValidationError, ResourceNotFoundError
from bookkeeping.app.db.transaction import transactional
from bookkeeping.app.services.account_locking import lock_account
from bookkeeping.app.domain.ledger.money import D, ZERO
from bookkeeping.app.domain.ledger.references import AdHocPaymentRef, ManualRef, TransactionRef
from bookkeeping.app.domain.ledger.posting_engine import PostingEngine
from bookkeeping.app.domain.ledger.reversal_engine import ReversalEngine
from bookkeeping.app.domain.ledger.reconciliation import assert_consistent
from bookkeeping.app.domain.ledger.ordering import DISPLAY_ORDER

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentKind:
    entry_type: LedgerEntryType
    account_type: AccountType
    is_debit: bool
    details: str


PAYMENT_TO_PARTY = PaymentKind(
    entry_type=LedgerEntryType.PAYMENT_TO_PARTY,
    account_type=AccountType.PARTY_ACCOUNT,
    is_debit=True,  # Reduces what we owe
    details="Payment to party: {description}",
)

PAYMENT_FROM_CUSTOMER = PaymentKind(
    entry_type=LedgerEntryType.PAYMENT_FROM_CUSTOMER,
    account_type=AccountType.CUSTOMER_ACCOUNT,
    is_debit=False,  # Reduces what they owe us
    details="Payment received from customer: {description}",
)

MANUAL_ENTRY_TYPES = (LedgerEntryType.MANUAL, LedgerEntryType.OPENING_BALANCE)


async def _tag_self(db: AsyncSession, entry: LedgerEntry, ref_type: ReferenceType) -> LedgerEntry:
    entry.reference_type = ref_type
    entry.reference_id = entry.id
    await db.flush()
    return entry


async def _record_payment(
    db: AsyncSession,
    kind: PaymentKind,
    account_id: int,
    amount,
    description: str,
    date: datetime
) -> LedgerEntry:
    if not account_id or not description or date is None:
        raise ValidationError("Account, amount, description and date are required")
    amount = D(amount)
    if amount <= ZERO:
        raise ValidationError("Amount must be greater than zero", details={"amount": str(amount)})

    account = await lock_account(db, account_id)
    if account.type != kind.account_type:
        raise ValidationError(
            f"Only {kind.account_type.value} accounts can be used for {kind.entry_type.value}",
            details={"account_id": account.id, "account_type": account.type.value}
        )

    entry = await PostingEngine.post(
        db,
        account,
        kind.entry_type,
        None,
        amount if kind.is_debit else ZERO,
        ZERO if kind.is_debit else amount,
        kind.details.format(description=description),
        date,
    )
    await _tag_self(db, entry, ReferenceType(kind.entry_type.value))
    await assert_consistent(db, account)
    return entry


async def reverse_self_tagged(db: AsyncSession, ref: TransactionRef, entry_type: Optional[LedgerEntryType] = None) -> Account:
    """Reverse a row that references itself (payments, manual entries)."""
    entry = await db.get(LedgerEntry, ref.id)
    if (
        not entry
        or entry.reference_type != ref.reference_type
        or entry.reference_id != ref.id
        or (entry_type is not None and entry.type != entry_type)
    ):
        raise ResourceNotFoundError("Ledger entry", ref.id)

    account = await lock_account(db, entry.account_id)
    await ReversalEngine.reverse(db, ref, {account.id: account})
    await assert_consistent(db, account)
    logger.info("Reversed %s on account %s, balance now %s", ref, account.id, account.balance)
    return account


async def list_payments(
    db: AsyncSession,
    kind: PaymentKind,
    account_id: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    page: int = 1,
    page_size: int = 50
):
    """Payment rows of one kind with their account, newest first. Returns (rows, total)."""
    filters = [LedgerEntry.type == kind.entry_type]
    if account_id:
        filters.append(LedgerEntry.account_id == account_id)
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
    return list(result.all()), total


class PaymentService:

    @staticmethod
    @transactional("payment.to_party")
    async def pay_party(db: AsyncSession, account_id: int, amount, description: str, date: datetime) -> LedgerEntry:
        """Pay a supplier: debit reduces what we owe."""
        return await _record_payment(db, PAYMENT_TO_PARTY, account_id, amount, description, date)

    @staticmethod
    @transactional("payment.from_customer")
    async def receive_from_customer(db: AsyncSession, account_id: int, amount, description: str, date: datetime) -> LedgerEntry:
        """Receive from a customer: credit reduces what they owe us."""
        return await _record_payment(db, PAYMENT_FROM_CUSTOMER, account_id, amount, description, date)

    @staticmethod
    @transactional("payment.delete")
    async def delete(db: AsyncSession, kind: PaymentKind, entry_id: int) -> Account:
        ref = AdHocPaymentRef(entry_id, kind=ReferenceType(kind.entry_type.value))
        return await reverse_self_tagged(db, ref, kind.entry_type)


class ManualEntryService:

    @staticmethod
    @transactional("ledger.manual")
    async def post(
        db: AsyncSession,
        account_id: int,
        details: str,
        dr_amount=0,
        cr_amount=0,
        type: LedgerEntryType = LedgerEntryType.MANUAL,
        date: Optional[datetime] = None
    ) -> LedgerEntry:
        """
        Post a manual row (or the opening balance) through the posting engine.

        Both amounts may be zero only for a MANUAL row.
        """
        entry_type = LedgerEntryType(type)
        if entry_type not in MANUAL_ENTRY_TYPES:
            raise ValidationError(
                f"{entry_type.value} entries are posted by their own transactions",
                details={"type": entry_type.value}
            )
        if not account_id or not details:
            raise ValidationError("Account and details are required")
        if entry_type == LedgerEntryType.OPENING_BALANCE and D(dr_amount) == ZERO and D(cr_amount) == ZERO:
            raise ValidationError("Opening balance needs a debit or credit amount")

        account = await lock_account(db, account_id)
        entry = await PostingEngine.post(
            db,
            account,
            entry_type,
            None,
            dr_amount,
            cr_amount,
            details,
            date or datetime.now(timezone.utc),
        )
        await _tag_self(db, entry, ReferenceType.MANUAL)
        await assert_consistent(db, account)
        return entry

    @staticmethod
    @transactional("ledger.manual.delete")
    async def delete(db: AsyncSession, entry_id: int) -> Account:
        return await reverse_self_tagged(db, ManualRef(entry_id))
