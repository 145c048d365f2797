"""
Account API tests.
"""

import logging
import pytest
from decimal import Decimal
from bookkeeping.app.models.account import Account
from bookkeeping.app.core.observability import CorrelationIdFilter


async def _create(client, **overrides):
    payload = {"name": "Ali", "type": "CUSTOMER_ACCOUNT", "phone": "0300-1234567"}
    payload.update(overrides)
    response = await client.post("/v1/accounts", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_create_account_with_initial_balance(client):
    data = await _create(client, name="Bashir", type="PARTY_ACCOUNT", initial_balance="100")

    assert Decimal(data["balance"]) == Decimal("100")
    assert data["balance_label"] == "100.00 Cr (we owe them)"

    response = await client.get("/v1/ledgers", params={"account_id": data["id"]})
    entries = response.json()["entries"]
    assert len(entries) == 1
    assert entries[0]["type"] == "INITIAL_BALANCE"
    assert entries[0]["reference_type"] == "ACCOUNT_CREATION"


@pytest.mark.asyncio
async def test_create_account_validation(client):
    response = await client.post("/v1/accounts", json={"name": "X", "type": "BANK"})
    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"

    response = await client.post("/v1/accounts", json={"name": "", "type": "CASH"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_get_missing_account(client):
    response = await client.get("/v1/accounts/999")
    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"


@pytest.mark.asyncio
async def test_list_accounts_filters_and_counts(client):
    ali = await _create(client)
    await _create(client, name="Bashir Traders", type="PARTY_ACCOUNT", address="Grain Market")
    await client.post("/v1/sales", json={
        "account_id": ali["id"], "date": "2024-01-05T10:00:00", "weight": 1, "rate": 10
    })

    response = await client.get("/v1/accounts", params={"type": "CUSTOMER_ACCOUNT"})
    data = response.json()
    assert data["total"] == 1
    assert data["accounts"][0]["counts"] == {"ledgers": 1, "sales": 1, "purchases": 0, "journals": 0}

    response = await client.get("/v1/accounts", params={"search": "grain"})
    assert [account["name"] for account in response.json()["accounts"]] == ["Bashir Traders"]


@pytest.mark.asyncio
async def test_update_ignores_balance(client):
    ali = await _create(client)

    response = await client.patch(f"/v1/accounts/{ali['id']}", json={"name": "Ali Raza", "balance": "5000"})
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Ali Raza"
    assert Decimal(data["balance"]) == Decimal("0")


@pytest.mark.asyncio
async def test_type_change_blocked_once_history_exists(client):
    ali = await _create(client)

    # No history yet: allowed
    response = await client.patch(f"/v1/accounts/{ali['id']}", json={"type": "CASH"})
    assert response.status_code == 200
    assert response.json()["type"] == "CASH"

    await client.post("/v1/ledgers", json={"account_id": ali["id"], "details": "float", "dr_amount": "10"})
    response = await client.patch(f"/v1/accounts/{ali['id']}", json={"type": "PARTY_ACCOUNT"})
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_VALIDATION_001"


@pytest.mark.asyncio
async def test_delete_account(client):
    ali = await _create(client)

    response = await client.delete(f"/v1/accounts/{ali['id']}")
    assert response.status_code == 204

    response = await client.get(f"/v1/accounts/{ali['id']}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_account_with_dependents(client):
    ali = await _create(client)
    await client.post("/v1/sales", json={
        "account_id": ali["id"], "date": "2024-01-05T10:00:00", "weight": 1, "rate": 10
    })

    response = await client.delete(f"/v1/accounts/{ali['id']}")
    assert response.status_code == 409
    data = response.json()
    assert data["error_code"] == "ERR_ACCOUNT_001"
    assert data["details"]["dependents"]["sales"] == 1


@pytest.mark.asyncio
async def test_reconcile_endpoint_reports_repair(client, session_factory):
    ali = await _create(client, initial_balance="40")

    async with session_factory() as session:
        account = await session.get(Account, ali["id"])
        account.balance = Decimal("1.00")
        await session.commit()

    response = await client.post(f"/v1/accounts/{ali['id']}/reconcile")
    assert response.status_code == 200
    data = response.json()
    assert data["repaired"] is True
    assert Decimal(data["cached_balance_before"]) == Decimal("1")
    assert Decimal(data["balance"]) == Decimal("40")


@pytest.mark.asyncio
async def test_health_and_root(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "X-Correlation-ID" in response.headers

    response = await client.get("/")
    assert response.json()["docs"] == "/docs"


@pytest.mark.asyncio
async def test_service_logs_carry_correlation_id(client, caplog):
    caplog.handler.addFilter(CorrelationIdFilter())
    caplog.set_level(logging.INFO, logger="bookkeeping")

    response = await client.post(
        "/v1/accounts",
        json={"name": "Ali", "type": "CUSTOMER_ACCOUNT"},
        headers={"X-Correlation-ID": "req-42"},
    )

    assert response.status_code == 201
    assert response.headers["X-Correlation-ID"] == "req-42"
    created = [r for r in caplog.records if r.name.endswith("account_service") and "created" in r.getMessage()]
    assert created and all(r.correlation_id == "req-42" for r in created)

    # Outside a request the placeholder is used
    caplog.clear()
    logging.getLogger("bookkeeping.tests").info("no request")
    assert caplog.records[-1].correlation_id == "-"
