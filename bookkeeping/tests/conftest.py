"""
Centralized Test Configuration.
"""

import pytest
from datetime import datetime
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from bookkeeping.app.main import app
from bookkeeping.app.db.session import get_db, Base
from bookkeeping.app.models.enums import AccountType
from bookkeeping.app.domain.ledger.account_service import AccountService

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def _enable_foreign_keys(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture
async def engine():
    """Fresh in-memory database per test."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(test_engine.sync_engine, "connect", _enable_foreign_keys)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(autouse=True)
def apply_overrides(session_factory):
    """Route the app's get_db dependency to the test database."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield
    app.dependency_overrides = {}


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def day():
    """Business dates in a fixed month, so display order is deterministic."""
    def _day(n: int) -> datetime:
        return datetime(2024, 1, n, 10, 0, 0)
    return _day


@pytest.fixture
async def customer(db_session):
    return await AccountService.create(db_session, name="Ali", type=AccountType.CUSTOMER_ACCOUNT, phone="0300-1234567")


@pytest.fixture
async def party(db_session):
    return await AccountService.create(db_session, name="Bashir Traders", type=AccountType.PARTY_ACCOUNT)


@pytest.fixture
async def cash(db_session):
    return await AccountService.create(db_session, name="Cash in Hand", type=AccountType.CASH)
