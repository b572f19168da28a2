"""HTTP surface: routing, auth guard and error payloads."""

from datetime import date

import pytest
from fastapi.testclient import TestClient

from minibank.main import create_app
from minibank.models import FixedIncomeType


@pytest.fixture
def app(engine):
    app = create_app(engine)
    app.state.pricing.upsert_stock("AAPL", "Apple Inc.", "Technology", 150.25)
    app.state.pricing.upsert_fixed_income("CDB001", "CDB Banco XPTO", FixedIncomeType.CDB, 12.0,
                                          "pre", date(2027, 1, 1), 1000.0)
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


def signup(client, email, cpf):
    r = client.post("/auth/register", json={
        "name": email.split("@")[0], "email": email, "password": "pw123456",
        "cpf": cpf, "birthDate": "1991-02-03",
    })
    assert r.status_code == 201, r.text
    token = client.post("/auth/login", json={"email": email, "password": "pw123456"}).json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


def accounts_of(client, headers):
    return {a["type"]: a for a in client.get("/account/mine", headers=headers).json()}


def test_requires_token(client):
    r = client.post("/transactions/deposit", json={"amount": 10})
    assert r.status_code == 401
    assert client.get("/market/stocks", headers={"Authorization": "Bearer junk"}).status_code == 401


def test_banking_flow(client):
    ana = signup(client, "ana@bank.test", "111.222.333-44")
    bob = signup(client, "bob@bank.test", "555.666.777-88")
    bob_current = accounts_of(client, bob)["current_account"]

    r = client.post("/transactions/deposit", json={"amount": 1000}, headers=ana)
    assert r.status_code == 201
    assert r.json()["category"] == "deposit"

    r = client.post("/transactions/transfer", headers=ana, json={
        "amount": 100, "toAccountId": bob_current["id"], "fromAccountType": "current_account",
    })
    assert r.status_code == 201
    assert r.json()["type"] == "external"

    assert accounts_of(client, ana)["current_account"]["balance"] == pytest.approx(899.5)
    assert accounts_of(client, bob)["current_account"]["balance"] == 100

    body = client.get("/transactions/history", params={"limit": 500}, headers=ana).json()
    assert body["limit"] == 50
    latest = body["transactions"][0]
    assert latest["to_account"]["user"]["cpf"] == "******77788"


def test_ledger_error_payload(client):
    ana = signup(client, "ana@bank.test", "11122233344")
    r = client.post("/transactions/withdraw", json={"amount": 2000}, headers=ana)
    assert r.status_code == 400
    body = r.json()
    assert body["error"] == "INSUFFICIENT_FUNDS"
    assert body["path"] == "/transactions/withdraw"
    assert body["method"] == "POST"
    assert body["details"]["type"] == "INSUFFICIENT_FUNDS"


def test_not_found_kinds_are_404(client):
    ana = signup(client, "ana@bank.test", "11122233344")
    r = client.post("/transactions/transfer", headers=ana, json={
        "amount": 10, "toAccountId": "missing", "fromAccountType": "current_account",
    })
    assert r.status_code == 404
    assert r.json()["message"] == "Destination account not found"

    r = client.post("/market/buy/stock", json={"assetSymbol": "ZZZZ", "quantity": 1}, headers=ana)
    assert r.status_code == 404
    assert r.json()["error"] == "ASSET_NOT_FOUND"


def test_boundary_validation(client):
    ana = signup(client, "ana@bank.test", "11122233344")
    assert client.post("/transactions/deposit", json={"amount": 0}, headers=ana).status_code == 422
    assert client.post("/market/buy/stock", json={"assetSymbol": "AAPL", "quantity": -1},
                       headers=ana).status_code == 422


def test_market_flow(client):
    ana = signup(client, "ana@bank.test", "11122233344")
    accounts = accounts_of(client, ana)
    client.post("/transactions/deposit", json={"amount": 5000}, headers=ana)
    client.post("/transactions/transfer", headers=ana, json={
        "amount": 3000, "toAccountId": accounts["investment_account"]["id"],
        "fromAccountType": "current_account",
    })

    assert [s["id"] for s in client.get("/market/stocks", headers=ana).json()] == ["AAPL"]

    r = client.post("/market/buy/fixed-income", json={"assetSymbol": "CDB001", "quantity": 500},
                    headers=ana)
    assert r.status_code == 400
    assert r.json()["error"] == "BELOW_MINIMUM_INVESTMENT"

    r = client.post("/market/buy/fixed-income", json={"assetSymbol": "CDB001", "quantity": 1000},
                    headers=ana)
    assert r.status_code == 201
    assert accounts_of(client, ana)["investment_account"]["balance"] == 2000

    r = client.post("/market/sell/stock", json={"assetSymbol": "AAPL", "quantity": 5}, headers=ana)
    assert r.status_code == 201
    assert r.json()["amount"] == pytest.approx(739.98125)


def test_accounts_of_other_users_are_hidden(client):
    ana = signup(client, "ana@bank.test", "11122233344")
    bob = signup(client, "bob@bank.test", "55566677788")
    bob_current = accounts_of(client, bob)["current_account"]
    assert client.get(f"/account/get/{bob_current['id']}", headers=ana).status_code == 404
    assert client.delete(f"/account/deactivate/{bob_current['id']}", headers=ana).status_code == 404


def test_deactivate_and_reactivate(client):
    ana = signup(client, "ana@bank.test", "11122233344")
    acc = accounts_of(client, ana)["current_account"]
    r = client.delete(f"/account/deactivate/{acc['id']}", headers=ana)
    assert r.json()["active"] is False
    r = client.patch(f"/account/activate/{acc['id']}", headers=ana)
    r = client.patch(f"/account/activate/{acc['id']}", headers=ana)
    assert r.status_code == 200
    assert r.json()["active"] is True


def test_unexpected_errors_are_generic(app, monkeypatch):
    ana_client = TestClient(app, raise_server_exceptions=False)
    ana = signup(ana_client, "ana@bank.test", "11122233344")

    def explode(*args, **kwargs):
        raise RuntimeError("database password is hunter2")

    monkeypatch.setattr(app.state.ledger, "deposit", explode)
    r = ana_client.post("/transactions/deposit", json={"amount": 10}, headers=ana)
    assert r.status_code == 500
    assert r.json()["message"] == "Operation failed"
    assert "hunter2" not in r.text


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.text == "OK"
