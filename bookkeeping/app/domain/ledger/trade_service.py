"""
Trade Service (Domain Logic).

Sales to customers and purchases from parties. Each trade posts a principal
row plus an optional payment row, chained and tagged with the trade's
reference. Edits are delete + repost from the pre-trade balance; deletes
restore the pre-trade balance.
"""

import logging
from dataclasses import dataclass
from datetime import date as date_type, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from bookkeeping.app.models.account import Account
from bookkeeping.app.models.enums import AccountType
from bookkeeping.app.models.ledger_enums import LedgerEntryType
from bookkeeping.app.models.sale import Sale
from bookkeeping.app.models.purchase import Purchase
from bookkeeping.app.core.exceptions import ValidationError, ResourceNotFoundError
from bookkeeping.app.db.transaction import transactional
from bookkeeping.app.services.account_locking import lock_account, lock_accounts
from bookkeeping.app.domain.ledger.money import D, ZERO
from bookkeeping.app.domain.ledger.references import SaleRef, PurchaseRef
from bookkeeping.app.domain.ledger.posting_engine import PostingEngine, PostingLine
from bookkeeping.app.domain.ledger.reversal_engine import ReversalEngine
from bookkeeping.app.domain.ledger.reconciliation import assert_consistent, recompute_chain
from bookkeeping.app.domain.ledger import ordering

logger = logging.getLogger(__name__)

WEIGHT_STEP = Decimal("0.001")


@dataclass(frozen=True)
class TradeKind:
    """Everything that differs between a sale and a purchase."""
    name: str
    model: type
    ref_class: type
    principal_type: LedgerEntryType
    account_type: AccountType
    principal_is_debit: bool
    payment_details: str
    editable_fields: Tuple[str, ...]


SALE = TradeKind(
    name="Sale",
    model=Sale,
    ref_class=SaleRef,
    principal_type=LedgerEntryType.SALE,
    account_type=AccountType.CUSTOMER_ACCOUNT,
    principal_is_debit=True,  # Customer owes us
    payment_details="Payment received from customer: {amount}",
    editable_fields=("account_id", "date", "weight", "rate", "payment"),
)

PURCHASE = TradeKind(
    name="Purchase",
    model=Purchase,
    ref_class=PurchaseRef,
    principal_type=LedgerEntryType.PURCHASE,
    account_type=AccountType.PARTY_ACCOUNT,
    principal_is_debit=False,  # We owe the supplier
    payment_details="Payment to supplier: {amount}",
    editable_fields=("account_id", "date", "weight", "rate", "payment", "vehicle_number"),
)


def _as_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date_type):
        return datetime.combine(value, time())
    raise ValidationError("A valid transaction date is required", details={"date": str(value)})


def _as_decimal(name: str, value) -> Decimal:
    if value is None:
        raise ValidationError(f"{name} is required", details={"field": name})
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{name} must be a number", details={"field": name, "value": str(value)})


def normalize_trade_fields(kind: TradeKind, fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate raw trade fields and derive the total.

    Raises:
        ValidationError: Missing date, non-positive weight/rate, negative payment
    """
    weight = _as_decimal("weight", fields.get("weight")).quantize(WEIGHT_STEP)
    rate = D(_as_decimal("rate", fields.get("rate")))
    payment = D(fields.get("payment") or 0)

    if weight <= 0 or rate <= ZERO:
        raise ValidationError(
            "Weight and rate must be greater than zero",
            details={"weight": str(weight), "rate": str(rate)}
        )
    if payment < ZERO:
        raise ValidationError("Payment must not be negative", details={"payment": str(payment)})

    values = {
        "date": _as_datetime(fields.get("date")),
        "weight": weight,
        "rate": rate,
        "total_amount": D(weight * rate),
        "payment": payment,
    }
    if "vehicle_number" in kind.editable_fields:
        values["vehicle_number"] = fields.get("vehicle_number")
    return values


def posting_lines(kind: TradeKind, trade) -> List[PostingLine]:
    """Principal row, then the payment row when something was paid."""
    total = D(trade.total_amount)
    paid = D(trade.payment)
    details = f"{kind.name}: {trade.weight}kg @ {D(trade.rate)} = {total}"

    if kind.principal_is_debit:
        lines = [PostingLine(kind.principal_type, dr_amount=total, details=details)]
    else:
        lines = [PostingLine(kind.principal_type, cr_amount=total, details=details)]

    if paid > ZERO:
        payment_details = kind.payment_details.format(amount=paid)
        if kind.principal_is_debit:
            lines.append(PostingLine(LedgerEntryType.PAYMENT, cr_amount=paid, details=payment_details))
        else:
            lines.append(PostingLine(LedgerEntryType.PAYMENT, dr_amount=paid, details=payment_details))
    return lines


def _require_account_type(kind: TradeKind, account: Account) -> None:
    if account.type != kind.account_type:
        raise ValidationError(
            f"Only {kind.account_type.value} accounts can be used for {kind.name.lower()}s",
            details={"account_id": account.id, "account_type": account.type.value}
        )


async def get_trade(db: AsyncSession, kind: TradeKind, trade_id: int):
    trade = await db.get(kind.model, trade_id)
    if not trade:
        raise ResourceNotFoundError(kind.name, trade_id)
    return trade


async def lock_trade(db: AsyncSession, kind: TradeKind, trade_id: int):
    """
    Lock a trade row for update, re-reading it under the lock.

    Taken before any account lock, so a concurrent edit that moves the trade
    to another account is seen before its accounts are chosen.
    """
    result = await db.execute(
        select(kind.model)
        .where(kind.model.id == trade_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    trade = result.scalar_one_or_none()
    if not trade:
        raise ResourceNotFoundError(kind.name, trade_id)
    return trade


async def _row_owner_ids(db: AsyncSession, ref) -> List[int]:
    """Accounts currently holding rows tagged with `ref`."""
    return sorted({row.account_id for row in await ordering.entries_for_reference(db, ref)})


async def _settle_other_owners(db: AsyncSession, accounts: Dict[int, Account], removed, skip: int) -> None:
    for account_id, span in removed.items():
        if account_id != skip:
            await ReversalEngine.settle_account(
                db, accounts[account_id], span.balance_before, removed_from_id=span.first_id
            )


async def list_trades(
    db: AsyncSession,
    kind: TradeKind,
    account_id: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    page: int = 1,
    page_size: int = 50
):
    """Trades newest first (business date, then id). Returns (items, total)."""
    model = kind.model
    filters = []
    if account_id:
        filters.append(model.account_id == account_id)
    if start_date:
        filters.append(model.date >= start_date)
    if end_date:
        filters.append(model.date <= end_date)

    total = (await db.execute(select(func.count(model.id)).where(*filters))).scalar()

    offset = (page - 1) * page_size
    result = await db.execute(
        select(model).where(*filters)
        .order_by(model.date.desc(), model.id.desc())
        .offset(offset).limit(page_size)
    )
    return list(result.scalars().all()), total


async def create_trade(db: AsyncSession, kind: TradeKind, account_id: int, **fields):
    """
    Record a trade and post its chained rows.

    Flow:
    1. Lock the account and check its type
    2. Validate fields, compute total = weight * rate
    3. Insert the trade (id needed for the reference tag)
    4. Post principal + payment rows from the current chain tail
    5. Store pre-balance and final balance on the trade
    """
    if not account_id:
        raise ValidationError("account_id is required")

    account = await lock_account(db, account_id)
    _require_account_type(kind, account)

    values = normalize_trade_fields(kind, fields)
    trade = kind.model(account_id=account.id, **values)
    db.add(trade)
    await db.flush()

    entries = await PostingEngine.post_chain(
        db, account, kind.ref_class(trade.id), posting_lines(kind, trade), trade.date
    )
    trade.pre_balance = entries[0].opening_balance
    trade.balance = entries[-1].closing_balance
    await db.flush()

    await assert_consistent(db, account)
    logger.info("%s %s created on account %s: balance %s -> %s",
                kind.name, trade.id, account.id, trade.pre_balance, trade.balance)
    return trade


async def update_trade(db: AsyncSession, kind: TradeKind, trade_id: int, changes: Dict[str, Any]):
    """
    Edit a trade: delete its rows, update it, repost from the pre-trade balance.

    Flow:
    1. Balance before the original trade (from its OLD rows)
    2. Delete the old rows
    3. Update the trade (the account may change)
    4. Repost tagged with the same reference at the new date
    5. New account balance = closing of the reposted chain
    6. Old account (if changed) settled to its remaining chain
    """
    unknown = set(changes) - set(kind.editable_fields)
    if unknown:
        raise ValidationError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

    trade = await lock_trade(db, kind, trade_id)
    old_account_id = trade.account_id
    new_account_id = changes.get("account_id") or old_account_id
    ref = kind.ref_class(trade.id)

    accounts = await lock_accounts(db, old_account_id, new_account_id, *await _row_owner_ids(db, ref))
    old_account = accounts[old_account_id]
    new_account = accounts[new_account_id]
    _require_account_type(kind, new_account)

    merged = {field: changes.get(field, getattr(trade, field)) for field in kind.editable_fields}
    values = normalize_trade_fields(kind, merged)

    # 1. Balance before the original trade
    balance_before = await ReversalEngine.balance_before(db, ref, old_account_id, trade.date)

    # 2. Remove old rows
    removed = await ReversalEngine.remove_rows(db, ref)
    await _settle_other_owners(db, accounts, removed, skip=old_account_id)
    span = removed.get(old_account_id)
    removed_from_id = span.first_id if span else None
    old_chain_continues = (
        removed_from_id is not None
        and await ordering.has_entries_after(db, old_account_id, removed_from_id)
    )

    # 3. Update the trade
    trade.account_id = new_account_id
    for field, value in values.items():
        setattr(trade, field, value)
    await db.flush()

    # 4-5. Repost
    same_account = new_account_id == old_account_id
    entries = await PostingEngine.post_chain(
        db,
        new_account,
        ref,
        posting_lines(kind, trade),
        trade.date,
        opening_balance=balance_before if same_account and span else None,
    )

    # 6. Ripple or settle
    if same_account:
        if old_chain_continues:
            await recompute_chain(db, new_account)
    else:
        await ReversalEngine.settle_account(db, old_account, balance_before, removed_from_id=removed_from_id)

    trade.pre_balance = entries[0].opening_balance
    trade.balance = entries[-1].closing_balance
    await db.flush()

    await assert_consistent(db, *accounts.values())
    logger.info("%s %s updated: account %s -> %s, balance %s -> %s",
                kind.name, trade.id, old_account_id, new_account_id, trade.pre_balance, trade.balance)
    return trade


async def delete_trade(db: AsyncSession, kind: TradeKind, trade_id: int) -> Decimal:
    """
    Delete a trade and restore the account to its pre-trade balance.

    Returns:
        The restored pre-trade balance
    """
    trade = await lock_trade(db, kind, trade_id)
    ref = kind.ref_class(trade.id)
    accounts = await lock_accounts(db, trade.account_id, *await _row_owner_ids(db, ref))
    account = accounts[trade.account_id]

    balance_before = await ReversalEngine.balance_before(db, ref, account.id, trade.date)
    removed = await ReversalEngine.remove_rows(db, ref)
    await db.delete(trade)

    await _settle_other_owners(db, accounts, removed, skip=account.id)
    span = removed.get(account.id)
    await ReversalEngine.settle_account(
        db, account, balance_before, removed_from_id=span.first_id if span else None
    )

    await assert_consistent(db, *accounts.values())
    logger.info("%s %s deleted, account %s restored to %s", kind.name, trade_id, account.id, account.balance)
    return balance_before


class SaleService:

    @staticmethod
    @transactional("sale.create")
    async def create(db: AsyncSession, account_id: int, **fields) -> Sale:
        return await create_trade(db, SALE, account_id, **fields)

    @staticmethod
    @transactional("sale.update")
    async def update(db: AsyncSession, sale_id: int, **changes) -> Sale:
        return await update_trade(db, SALE, sale_id, changes)

    @staticmethod
    @transactional("sale.delete")
    async def delete(db: AsyncSession, sale_id: int) -> Decimal:
        return await delete_trade(db, SALE, sale_id)


class PurchaseService:

    @staticmethod
    @transactional("purchase.create")
    async def create(db: AsyncSession, account_id: int, **fields) -> Purchase:
        return await create_trade(db, PURCHASE, account_id, **fields)

    @staticmethod
    @transactional("purchase.update")
    async def update(db: AsyncSession, purchase_id: int, **changes) -> Purchase:
        return await update_trade(db, PURCHASE, purchase_id, changes)

    @staticmethod
    @transactional("purchase.delete")
    async def delete(db: AsyncSession, purchase_id: int) -> Decimal:
        return await delete_trade(db, PURCHASE, purchase_id)
