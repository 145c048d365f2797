"""
Sales and purchases: posting, edit (delete + repost) and delete.
"""

import pytest
from decimal import Decimal
from sqlalchemy import select, delete, update
from bookkeeping.app.models.ledger_entry import LedgerEntry
from bookkeeping.app.models.ledger_enums import LedgerEntryType, ReferenceType
from bookkeeping.app.models.sale import Sale
from bookkeeping.app.core.exceptions import ValidationError, ResourceNotFoundError
from bookkeeping.app.domain.ledger.account_service import AccountService
from bookkeeping.app.domain.ledger.trade_service import SaleService, PurchaseService
from bookkeeping.app.domain.ledger.payment_service import ManualEntryService
from bookkeeping.app.domain.ledger.reconciliation import check_account, recompute_chain
from bookkeeping.app.domain.ledger.references import SaleRef
from bookkeeping.app.domain.ledger import ordering


async def _snapshots(db, account_id):
    rows = await ordering.chain_entries(db, account_id)
    return [(row.type, row.opening_balance, row.closing_balance) for row in rows]


@pytest.mark.asyncio
async def test_ali_sale_create_edit_delete(db_session, customer, day):
    sale = await SaleService.create(db_session, customer.id, date=day(5), weight=10, rate=50, payment=200)

    assert sale.total_amount == Decimal("500.00")
    assert sale.pre_balance == Decimal("0.00")
    assert sale.balance == Decimal("300.00")
    assert customer.balance == Decimal("300.00")
    assert await _snapshots(db_session, customer.id) == [
        (LedgerEntryType.SALE, Decimal("0.00"), Decimal("500.00")),
        (LedgerEntryType.PAYMENT, Decimal("500.00"), Decimal("300.00")),
    ]

    # Edit weight: rows are reversed and reposted from the pre-sale balance
    sale = await SaleService.update(db_session, sale.id, weight=20)
    assert sale.total_amount == Decimal("1000.00")
    assert sale.balance == Decimal("800.00")
    assert customer.balance == Decimal("800.00")
    assert await _snapshots(db_session, customer.id) == [
        (LedgerEntryType.SALE, Decimal("0.00"), Decimal("1000.00")),
        (LedgerEntryType.PAYMENT, Decimal("1000.00"), Decimal("800.00")),
    ]

    # Delete restores the pre-sale balance and removes every tagged row
    restored = await SaleService.delete(db_session, sale.id)
    assert restored == Decimal("0.00")
    assert customer.balance == Decimal("0.00")
    assert await _snapshots(db_session, customer.id) == []
    assert await db_session.get(Sale, sale.id) is None


@pytest.mark.asyncio
async def test_sale_rows_share_reference(db_session, customer, day):
    sale = await SaleService.create(db_session, customer.id, date=day(1), weight="2.5", rate="40", payment=0)
    result = await db_session.execute(select(LedgerEntry).where(LedgerEntry.account_id == customer.id))
    rows = result.scalars().all()

    # No payment row when nothing was paid
    assert len(rows) == 1
    assert rows[0].reference_type == ReferenceType.SALE
    assert rows[0].reference_id == sale.id
    assert rows[0].dr_amount == Decimal("100.00")


@pytest.mark.asyncio
async def test_purchase_credits_party(db_session, party, day):
    purchase = await PurchaseService.create(
        db_session, party.id, date=day(3), weight=100, rate="12.50", payment=250, vehicle_number="LES-1234"
    )

    assert purchase.total_amount == Decimal("1250.00")
    assert purchase.vehicle_number == "LES-1234"
    assert party.balance == Decimal("1000.00")
    assert await _snapshots(db_session, party.id) == [
        (LedgerEntryType.PURCHASE, Decimal("0.00"), Decimal("1250.00")),
        (LedgerEntryType.PAYMENT, Decimal("1250.00"), Decimal("1000.00")),
    ]


@pytest.mark.asyncio
async def test_sale_on_party_account_rejected(db_session, party, day):
    with pytest.raises(ValidationError):
        await SaleService.create(db_session, party.id, date=day(1), weight=10, rate=50)

    await db_session.refresh(party)
    assert party.balance == Decimal("0.00")
    assert (await db_session.execute(select(Sale))).scalars().all() == []


@pytest.mark.asyncio
@pytest.mark.parametrize("fields", [
    {"weight": 0, "rate": 50},
    {"weight": 10, "rate": -1},
    {"weight": 10, "rate": 50, "payment": -5},
    {"weight": None, "rate": 50},
])
async def test_invalid_trade_fields(db_session, customer, day, fields):
    with pytest.raises(ValidationError):
        await SaleService.create(db_session, customer.id, date=day(1), **fields)


@pytest.mark.asyncio
async def test_update_equals_delete_then_create(db_session, day):
    # Path A: create then edit
    first = await AccountService.create(db_session, name="A", type="CUSTOMER_ACCOUNT", initial_balance=100)
    sale = await SaleService.create(db_session, first.id, date=day(1), weight=10, rate=10, payment=20)
    await SaleService.update(db_session, sale.id, rate=30, payment=50)

    # Path B: create the edited version directly
    second = await AccountService.create(db_session, name="B", type="CUSTOMER_ACCOUNT", initial_balance=100)
    await SaleService.create(db_session, second.id, date=day(1), weight=10, rate=30, payment=50)

    assert first.balance == second.balance == Decimal("350.00")
    assert await _snapshots(db_session, first.id) == await _snapshots(db_session, second.id)


@pytest.mark.asyncio
async def test_edit_in_middle_of_chain_ripples(db_session, customer, day):
    sale = await SaleService.create(db_session, customer.id, date=day(1), weight=10, rate=10)
    await ManualEntryService.post(db_session, customer.id, "discount", cr_amount=30, date=day(2))
    assert customer.balance == Decimal("70.00")

    await SaleService.update(db_session, sale.id, weight=20)

    # Later rows keep chaining and the balance reflects the edited sale
    assert customer.balance == Decimal("170.00")
    report = await check_account(db_session, customer)
    assert report.ok
    assert report.chain_balance == Decimal("170.00")


@pytest.mark.asyncio
async def test_delete_in_middle_of_chain_ripples(db_session, customer, day):
    sale = await SaleService.create(db_session, customer.id, date=day(1), weight=10, rate=10)
    await SaleService.create(db_session, customer.id, date=day(2), weight=1, rate=5)
    assert customer.balance == Decimal("105.00")

    await SaleService.delete(db_session, sale.id)

    assert customer.balance == Decimal("5.00")
    assert await _snapshots(db_session, customer.id) == [
        (LedgerEntryType.SALE, Decimal("0.00"), Decimal("5.00")),
    ]


@pytest.mark.asyncio
async def test_move_sale_to_other_account(db_session, customer, day):
    other = await AccountService.create(db_session, name="Zara", type="CUSTOMER_ACCOUNT", initial_balance=40)
    sale = await SaleService.create(db_session, customer.id, date=day(1), weight=10, rate=10, payment=10)

    moved = await SaleService.update(db_session, sale.id, account_id=other.id)

    assert moved.account_id == other.id
    assert moved.pre_balance == Decimal("40.00")
    assert moved.balance == Decimal("130.00")
    assert customer.balance == Decimal("0.00")
    assert other.balance == Decimal("130.00")
    assert await _snapshots(db_session, customer.id) == []
    assert (await check_account(db_session, other)).ok


@pytest.mark.asyncio
async def test_update_rejects_unknown_fields(db_session, customer, day):
    sale = await SaleService.create(db_session, customer.id, date=day(1), weight=1, rate=1)

    with pytest.raises(ValidationError):
        await SaleService.update(db_session, sale.id, total_amount=999)


@pytest.mark.asyncio
async def test_delete_missing_sale(db_session):
    with pytest.raises(ResourceNotFoundError):
        await SaleService.delete(db_session, 404)


@pytest.mark.asyncio
async def test_delete_sale_whose_rows_are_missing(db_session, customer, day):
    early = await SaleService.create(db_session, customer.id, date=day(1), weight=10, rate=10)
    await SaleService.create(db_session, customer.id, date=day(20), weight=5, rate=10)

    # Rows lost out of band, store repaired to a consistent state
    await db_session.execute(delete(LedgerEntry).where(*ordering.reference_filter(SaleRef(early.id))))
    await recompute_chain(db_session, customer)
    await db_session.commit()
    assert customer.balance == Decimal("50.00")

    # Falls back to the last row dated before the sale: none, so 0
    restored = await SaleService.delete(db_session, early.id)

    assert restored == Decimal("0.00")
    assert customer.balance == Decimal("50.00")
    assert (await check_account(db_session, customer)).ok
    assert await _snapshots(db_session, customer.id) == [
        (LedgerEntryType.SALE, Decimal("0.00"), Decimal("50.00")),
    ]


@pytest.mark.asyncio
async def test_update_sale_whose_rows_are_missing(db_session, customer, day):
    early = await SaleService.create(db_session, customer.id, date=day(1), weight=10, rate=10)
    await SaleService.create(db_session, customer.id, date=day(20), weight=5, rate=10)
    await db_session.execute(delete(LedgerEntry).where(*ordering.reference_filter(SaleRef(early.id))))
    await recompute_chain(db_session, customer)
    await db_session.commit()

    edited = await SaleService.update(db_session, early.id, weight=20)

    assert customer.balance == Decimal("250.00")
    assert edited.balance == Decimal("250.00")
    assert (await check_account(db_session, customer)).ok


@pytest.mark.asyncio
async def test_delete_settles_every_account_holding_rows(db_session, customer, day):
    customer_id = customer.id
    zara = await AccountService.create(db_session, name="Zara", type="CUSTOMER_ACCOUNT")
    sale = await SaleService.create(db_session, zara.id, date=day(1), weight=10, rate=10)
    assert zara.balance == Decimal("100.00")

    # The sale record points at another account than its rows
    await db_session.execute(update(Sale).where(Sale.id == sale.id).values(account_id=customer_id))
    await db_session.commit()

    await SaleService.delete(db_session, sale.id)

    assert zara.balance == Decimal("0.00")
    assert await _snapshots(db_session, zara.id) == []
    assert (await check_account(db_session, zara)).ok
    assert (await check_account(db_session, customer)).ok
