"""
Database seeding script for sample accounts.

Creates a cash account, a supplier (party) and a customer with opening
positions, plus one purchase and one sale, for local development.
Run this script after the database is set up but before first use.
"""

import asyncio
import sys
from datetime import datetime
from decimal import Decimal
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from bookkeeping.app.db.session import AsyncSessionLocal, engine, Base
from bookkeeping.app.models.account import Account
from bookkeeping.app.models.enums import AccountType
from bookkeeping.app.domain.ledger.account_service import AccountService
from bookkeeping.app.domain.ledger.trade_service import SaleService, PurchaseService
from sqlalchemy import select
import bookkeeping.app.main  # noqa: F401  registers every model with Base


async def seed_accounts():
    """
    Seed sample accounts and trades.

    Creates:
    - 1 CASH account (10,000 in hand)
    - 1 PARTY_ACCOUNT with a purchase
    - 1 CUSTOMER_ACCOUNT with a sale
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting account seeding...")

        result = await db.execute(select(Account).where(Account.name == "Cash in Hand"))
        if result.scalar_one_or_none():
            print("ℹ️  Sample accounts already exist, skipping seeding")
            return

        cash = await AccountService.create(
            db, name="Cash in Hand", type=AccountType.CASH, initial_balance=Decimal("10000")
        )
        print(f"✅ Created CASH account (id: {cash.id}, balance: {cash.balance})")

        party = await AccountService.create(
            db, name="Bashir Traders", type=AccountType.PARTY_ACCOUNT,
            phone="0300-1111111", address="Grain Market"
        )
        purchase = await PurchaseService.create(
            db, party.id, date=datetime(2024, 1, 2), weight=Decimal("500"), rate=Decimal("80"),
            payment=Decimal("15000"), vehicle_number="LES-1234"
        )
        print(f"✅ Created PARTY_ACCOUNT {party.name} with purchase {purchase.id} (we owe: {party.balance})")

        customer = await AccountService.create(
            db, name="Ali", type=AccountType.CUSTOMER_ACCOUNT, phone="0300-2222222"
        )
        sale = await SaleService.create(
            db, customer.id, date=datetime(2024, 1, 5), weight=Decimal("10"), rate=Decimal("50"),
            payment=Decimal("200")
        )
        print(f"✅ Created CUSTOMER_ACCOUNT {customer.name} with sale {sale.id} (owes us: {customer.balance})")

        print("\n🎉 Account seeding completed successfully!")


if __name__ == "__main__":
    asyncio.run(seed_accounts())
