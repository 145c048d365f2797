"""
Ledger, trade, payment and journal API tests.
"""

import pytest
from decimal import Decimal


async def _account(client, name, type, **extra):
    response = await client.post("/v1/accounts", json={"name": name, "type": type, **extra})
    assert response.status_code == 201, response.text
    return response.json()["id"]


async def _balance(client, account_id) -> Decimal:
    response = await client.get(f"/v1/accounts/{account_id}")
    return Decimal(response.json()["balance"])


async def _ledger(client, account_id):
    response = await client.get("/v1/ledgers", params={"account_id": account_id})
    assert response.status_code == 200
    return response.json()


@pytest.mark.asyncio
async def test_ali_scenario_over_http(client):
    ali = await _account(client, "Ali", "CUSTOMER_ACCOUNT")

    response = await client.post("/v1/sales", json={
        "account_id": ali, "date": "2024-01-05T10:00:00", "weight": 10, "rate": 50, "payment": 200
    })
    assert response.status_code == 201, response.text
    sale = response.json()
    assert Decimal(sale["total_amount"]) == Decimal("500")
    assert Decimal(sale["pre_balance"]) == Decimal("0")
    assert Decimal(sale["balance"]) == Decimal("300")
    assert await _balance(client, ali) == Decimal("300")

    # Display order: newest first, id as tiebreaker
    entries = (await _ledger(client, ali))["entries"]
    assert [entry["type"] for entry in entries] == ["PAYMENT", "SALE"]
    assert entries[0]["pre_balance_label"] == "500.00 Dr (they owe us)"
    assert entries[0]["post_balance_label"] == "300.00 Dr (they owe us)"
    assert entries[1]["pre_balance_label"] == "0.00 (settled)"
    assert entries[0]["account_name"] == "Ali"

    response = await client.put(f"/v1/sales/{sale['id']}", json={"weight": 20})
    assert response.status_code == 200, response.text
    assert Decimal(response.json()["balance"]) == Decimal("800")
    assert await _balance(client, ali) == Decimal("800")
    entries = (await _ledger(client, ali))["entries"]
    assert [(Decimal(e["opening_balance"]), Decimal(e["closing_balance"])) for e in entries] == [
        (Decimal("1000"), Decimal("800")),
        (Decimal("0"), Decimal("1000")),
    ]

    response = await client.delete(f"/v1/sales/{sale['id']}")
    assert response.status_code == 200
    assert Decimal(response.json()["restored_balance"]) == Decimal("0")
    assert await _balance(client, ali) == Decimal("0")
    assert (await _ledger(client, ali))["total"] == 0

    response = await client.get(f"/v1/sales/{sale['id']}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_sale_to_party_account_rejected(client):
    party = await _account(client, "Bashir", "PARTY_ACCOUNT")

    response = await client.post("/v1/sales", json={
        "account_id": party, "date": "2024-01-05T10:00:00", "weight": 10, "rate": 50
    })
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_VALIDATION_001"
    assert await _balance(client, party) == Decimal("0")
    assert (await client.get("/v1/sales")).json()["total"] == 0


@pytest.mark.asyncio
async def test_purchase_crud(client):
    party = await _account(client, "Bashir", "PARTY_ACCOUNT")

    response = await client.post("/v1/purchases", json={
        "account_id": party, "date": "2024-02-01T09:00:00",
        "weight": "100", "rate": "12.5", "payment": "250", "vehicle_number": "LES-1234"
    })
    assert response.status_code == 201, response.text
    purchase = response.json()
    assert purchase["vehicle_number"] == "LES-1234"
    assert Decimal(purchase["balance"]) == Decimal("1000")

    response = await client.put(f"/v1/purchases/{purchase['id']}", json={"payment": "0"})
    assert Decimal(response.json()["balance"]) == Decimal("1250")
    labels = [entry["post_balance_label"] for entry in (await _ledger(client, party))["entries"]]
    assert labels == ["1250.00 Cr (we owe them)"]

    response = await client.get("/v1/purchases", params={"account_id": party})
    assert response.json()["total"] == 1

    response = await client.delete(f"/v1/purchases/{purchase['id']}")
    assert response.status_code == 200
    assert await _balance(client, party) == Decimal("0")


@pytest.mark.asyncio
async def test_list_sales_paginates_newest_first(client):
    ali = await _account(client, "Ali", "CUSTOMER_ACCOUNT")
    for day in (3, 1, 2):
        await client.post("/v1/sales", json={
            "account_id": ali, "date": f"2024-01-0{day}T10:00:00", "weight": day, "rate": 1
        })

    response = await client.get("/v1/sales", params={"page": 1, "page_size": 2})
    data = response.json()
    assert data["total"] == 3
    assert [Decimal(sale["weight"]) for sale in data["sales"]] == [Decimal("3"), Decimal("2")]

    response = await client.get("/v1/sales", params={"start_date": "2024-01-02T00:00:00"})
    assert response.json()["total"] == 2


@pytest.mark.asyncio
async def test_payments_and_receivings(client):
    party = await _account(client, "Bashir", "PARTY_ACCOUNT", initial_balance="500")
    ali = await _account(client, "Ali", "CUSTOMER_ACCOUNT", initial_balance="60")

    response = await client.post("/v1/payments", json={
        "account_id": party, "amount": "520", "description": "cheque", "date": "2024-03-01T10:00:00"
    })
    assert response.status_code == 201, response.text
    payment = response.json()
    assert payment["balance_label"] == "20.00 Dr (advance)"
    assert payment["account_name"] == "Bashir"

    response = await client.post("/v1/receivings", json={
        "account_id": ali, "amount": "65", "description": "cash", "date": "2024-03-02T10:00:00"
    })
    assert response.status_code == 201
    assert response.json()["balance_label"] == "5.00 Cr (we owe them)"

    # Wrong account type for the route
    response = await client.post("/v1/payments", json={
        "account_id": ali, "amount": "1", "description": "x", "date": "2024-03-02T10:00:00"
    })
    assert response.status_code == 400

    assert (await client.get("/v1/payments")).json()["total"] == 1
    assert (await client.get("/v1/receivings", params={"account_id": ali})).json()["total"] == 1

    response = await client.delete(f"/v1/payments/{payment['id']}")
    assert response.status_code == 200
    assert Decimal(response.json()["balance"]) == Decimal("500")

    response = await client.delete(f"/v1/payments/{payment['id']}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_journal_over_http(client):
    cash = await _account(client, "Cash", "CASH", initial_balance="1000")
    party = await _account(client, "Bashir", "PARTY_ACCOUNT", initial_balance="300")

    response = await client.post("/v1/journals", json={
        "debit_account_id": party, "credit_account_id": cash, "amount": "300", "description": "settle"
    })
    assert response.status_code == 201, response.text
    journal = response.json()
    assert {int(k): Decimal(v) for k, v in journal["pre_balances"].items()} == {
        cash: Decimal("1000"), party: Decimal("300")
    }
    assert await _balance(client, party) == Decimal("0")
    assert await _balance(client, cash) == Decimal("700")

    response = await client.get("/v1/ledgers", params={"type": "JOURNAL"})
    assert response.json()["total"] == 2

    response = await client.get("/v1/journals", params={"account_id": cash})
    assert response.json()["total"] == 1

    response = await client.post("/v1/journals", json={
        "debit_account_id": cash, "credit_account_id": cash, "amount": "1", "description": "self"
    })
    assert response.status_code == 400

    response = await client.delete(f"/v1/journals/{journal['id']}")
    assert response.status_code == 200
    assert await _balance(client, party) == Decimal("300")
    assert await _balance(client, cash) == Decimal("1000")


@pytest.mark.asyncio
async def test_opening_balance_upsert(client):
    party = await _account(client, "Bashir", "PARTY_ACCOUNT")
    payload = {"account_id": party, "amount": "150", "account_type": "PARTY_ACCOUNT", "date": "2024-01-01T00:00:00"}

    response = await client.put("/v1/ledgers/opening-balance", json=payload)
    assert response.status_code == 200, response.text
    first = response.json()
    assert first["type"] == "OPENING_BALANCE"

    response = await client.put("/v1/ledgers/opening-balance", json={**payload, "amount": "-40"})
    assert response.status_code == 200
    assert response.json()["id"] == first["id"]
    assert await _balance(client, party) == Decimal("-40")

    response = await client.put("/v1/ledgers/opening-balance", json={**payload, "account_type": "CASH"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_manual_opening_balance_duplicate(client):
    cash = await _account(client, "Cash", "CASH")
    payload = {"account_id": cash, "details": "Opening", "dr_amount": "10", "type": "OPENING_BALANCE"}

    assert (await client.post("/v1/ledgers", json=payload)).status_code == 201
    response = await client.post("/v1/ledgers", json=payload)
    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_LEDGER_001"


@pytest.mark.asyncio
async def test_manual_entry_delete_only_for_manual_rows(client):
    ali = await _account(client, "Ali", "CUSTOMER_ACCOUNT", initial_balance="10")
    entries = (await _ledger(client, ali))["entries"]

    # The initial-balance row belongs to account creation
    response = await client.delete(f"/v1/ledgers/{entries[0]['id']}")
    assert response.status_code == 404

    response = await client.post("/v1/ledgers", json={"account_id": ali, "details": "fee", "dr_amount": "5"})
    manual = response.json()
    response = await client.delete(f"/v1/ledgers/{manual['id']}")
    assert response.status_code == 204
    assert await _balance(client, ali) == Decimal("10")


@pytest.mark.asyncio
async def test_consistency_endpoint(client):
    ali = await _account(client, "Ali", "CUSTOMER_ACCOUNT", initial_balance="10")
    await client.post("/v1/sales", json={
        "account_id": ali, "date": "2024-01-05T10:00:00", "weight": 1, "rate": 10
    })

    response = await client.get("/v1/ledgers/consistency")
    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True
    assert data["accounts"][0]["entry_count"] == 2
