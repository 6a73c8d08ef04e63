"""Integration tests for API endpoints"""

from unittest.mock import AsyncMock, patch
from fastapi import FastAPI
from fastapi.testclient import TestClient
from swissone_gateway.domain.exceptions import PersistenceFailure


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert "X-Request-ID" in response.headers


def test_metrics_endpoint(client: TestClient, auth_headers):
    """Test Prometheus metrics endpoint"""
    client.post(
        "/v1/transfers",
        json={"from_account_id": "acc-a", "to_account_id": "acc-b", "amount": 1, "description": "x"},
        headers=auth_headers("user-max"),
    )

    response = client.get("/metrics")
    assert response.status_code == 200
    assert "swissone_settlement_total" in response.text
    assert "document_store_latency_seconds" in response.text


def test_missing_token_rejected(client: TestClient):
    assert client.get("/v1/accounts").status_code == 401


def test_invalid_token_rejected(client: TestClient):
    response = client.get("/v1/accounts", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401


def test_first_sign_in_creates_basic_customer(client: TestClient, auth_headers, store_app: FastAPI):
    response = client.get("/v1/accounts", headers=auth_headers("newcomer"))

    assert response.status_code == 200
    assert response.json()["accounts"] == []
    user = store_app.state.store.get("users", "newcomer")
    assert user["role"] == "customer"
    assert user["email"] == "newcomer@example.com"


def test_accounts_overview(client: TestClient, auth_headers):
    response = client.get("/v1/accounts", headers=auth_headers("user-max"))

    assert response.status_code == 200
    data = response.json()
    assert {a["id"] for a in data["accounts"]} == {"acc-a", "acc-b", "acc-usd"}
    assert data["categories"]["checking"] == ["acc-a", "acc-usd"]
    assert data["categories"]["savings"] == ["acc-b"]
    assert data["totals"]["checking"] == 1085.0
    assert data["totals"]["grand_total"] == 1085.0
    assert data["forecast"]["account_id"] == "acc-a"


def test_transfer_endpoint_success(client: TestClient, auth_headers, store_app: FastAPI):
    response = client.post(
        "/v1/transfers",
        json={"from_account_id": "acc-a", "to_account_id": "acc-b", "amount": 300, "description": "rent"},
        headers=auth_headers("user-max"),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["transaction"]["amount"] == 300
    assert data["transaction"]["type"] == "transfer"
    assert data["balances"] == {"acc-a": 700.0, "acc-b": 300.0}
    assert store_app.state.store.get("accounts", "acc-a")["balance"] == 700.0


def test_transfer_endpoint_insufficient_funds(client: TestClient, auth_headers):
    response = client.post(
        "/v1/transfers",
        json={"from_account_id": "acc-a", "to_account_id": "acc-b", "amount": 5000, "description": "x"},
        headers=auth_headers("user-max"),
    )

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "insufficient_funds"


def test_transfer_endpoint_invalid_amount(client: TestClient, auth_headers):
    response = client.post(
        "/v1/transfers",
        json={"from_account_id": "acc-a", "to_account_id": "acc-b", "amount": "abc", "description": "x"},
        headers=auth_headers("user-max"),
    )

    assert response.status_code == 422
    assert response.json()["detail"]["message"] == "Please enter a valid amount"


def test_transfer_to_invisible_account(client: TestClient, auth_headers):
    """Customers only load their own accounts, so another user's account does not resolve"""
    response = client.post(
        "/v1/transfers",
        json={"from_account_id": "acc-a", "to_account_id": "acc-tina", "amount": 10, "description": "x"},
        headers=auth_headers("user-max"),
    )

    assert response.status_code == 404


def test_transfer_store_outage(client: TestClient, auth_headers):
    with patch(
        "swissone_gateway.infrastructure.persistence.gateway.PersistenceGateway.settle",
        new=AsyncMock(side_effect=PersistenceFailure("store down")),
    ):
        response = client.post(
            "/v1/transfers",
            json={"from_account_id": "acc-a", "to_account_id": "acc-b", "amount": 10, "description": "x"},
            headers=auth_headers("user-max"),
        )

    assert response.status_code == 503


def test_settlement_history_records_attempts(client: TestClient, auth_headers):
    headers = auth_headers("user-max")
    client.post(
        "/v1/transfers",
        json={"from_account_id": "acc-a", "to_account_id": "acc-b", "amount": 300, "description": "rent"},
        headers=headers,
    )
    client.post(
        "/v1/transfers",
        json={"from_account_id": "acc-a", "to_account_id": "acc-b", "amount": 800, "description": "x"},
        headers=headers,
    )

    response = client.get("/v1/settlements/history", headers=headers)

    assert response.status_code == 200
    entries = response.json()["entries"]
    assert len(entries) == 2
    assert sorted(e["outcome"] for e in entries) == ["completed", "failed"]
    failed = next(e for e in entries if e["outcome"] == "failed")
    assert failed["error_code"] == "insufficient_funds"
    assert failed["amount"] == 800


def test_history_of_other_user_requires_admin(client: TestClient, auth_headers):
    response = client.get("/v1/settlements/history?user_id=user-tina", headers=auth_headers("user-max"))
    assert response.status_code == 403

    response = client.get("/v1/settlements/history?user_id=user-tina", headers=auth_headers("admin-1"))
    assert response.status_code == 200
    assert response.json()["user_id"] == "user-tina"


def test_admin_deposit(client: TestClient, auth_headers, store_app: FastAPI):
    store_app.state.store.update("accounts", "acc-tina", {"balance": 10.0})

    response = client.post(
        "/v1/admin/deposits",
        json={"to_account_id": "acc-tina", "amount": "90", "description": "correction"},
        headers=auth_headers("admin-1"),
    )

    assert response.status_code == 200
    assert response.json()["transaction"]["from_account_id"] == "admin-deposit"
    assert store_app.state.store.get("accounts", "acc-tina")["balance"] == 100.0


def test_admin_endpoints_forbidden_for_customers(client: TestClient, auth_headers):
    headers = auth_headers("user-max")

    deposit = client.post(
        "/v1/admin/deposits",
        json={"to_account_id": "acc-a", "amount": 10, "description": "x"},
        headers=headers,
    )
    overview = client.get("/v1/admin/overview", headers=headers)

    assert deposit.status_code == 403
    assert overview.status_code == 403


def test_admin_creates_user_and_account(client: TestClient, auth_headers, store_app: FastAPI):
    headers = auth_headers("admin-1")

    user = client.post(
        "/v1/admin/users",
        json={"email": "lena@example.com", "first_name": "Lena", "last_name": "Neu"},
        headers=headers,
    )
    assert user.status_code == 201
    user_id = user.json()["id"]

    account = client.post(
        "/v1/admin/accounts",
        json={"owner_id": user_id, "account_type": "Girokonto", "account_name": "Main", "initial_balance": 500},
        headers=headers,
    )
    assert account.status_code == 201
    data = account.json()
    assert data["owner_name"] == "Lena Neu"
    assert data["balance"] == 500.0
    assert data["iban"].startswith("DE")
    assert store_app.state.store.get("accounts", data["id"])["ownerId"] == user_id


def test_create_account_unknown_owner(client: TestClient, auth_headers):
    response = client.post(
        "/v1/admin/accounts",
        json={"owner_id": "ghost", "account_type": "Girokonto", "account_name": "Main"},
        headers=auth_headers("admin-1"),
    )

    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "user_not_found"


def test_create_account_negative_balance_rejected(client: TestClient, auth_headers):
    response = client.post(
        "/v1/admin/accounts",
        json={"owner_id": "user-max", "account_type": "Girokonto", "account_name": "Main", "initial_balance": -1},
        headers=auth_headers("admin-1"),
    )

    assert response.status_code == 422


def test_admin_overview(client: TestClient, auth_headers):
    headers = auth_headers("admin-1")
    client.post(
        "/v1/admin/deposits",
        json={"to_account_id": "acc-b", "amount": 50, "description": "x"},
        headers=headers,
    )

    response = client.get("/v1/admin/overview", headers=headers)

    assert response.status_code == 200
    data = response.json()
    assert data["total_users"] == 3
    assert data["total_accounts"] == 4
    assert data["total_transactions"] == 1
    assert data["total_balance"] == 1000 + 50 + 100 - 50
    assert data["recent_users"][0]["id"] == "user-tina"


def test_analytics_endpoint(client: TestClient, auth_headers):
    headers = auth_headers("user-max")
    client.post(
        "/v1/transfers",
        json={"from_account_id": "acc-a", "to_account_id": "acc-b", "amount": 300, "description": "Savings transfer"},
        headers=headers,
    )

    response = client.get("/v1/analytics", headers=headers)

    assert response.status_code == 200
    data = response.json()
    assert data["income"] == 0
    assert data["expenditure"] == 0
    assert "#savings" in data["keywords"]
    assert data["budget"]["budget"] == 1800.0


def test_account_transactions_endpoint(client: TestClient, auth_headers):
    headers = auth_headers("user-max")
    client.post(
        "/v1/transfers",
        json={"from_account_id": "acc-a", "to_account_id": "acc-b", "amount": 5, "description": "coffee"},
        headers=headers,
    )

    own = client.get("/v1/accounts/acc-b/transactions", headers=headers)
    foreign = client.get("/v1/accounts/acc-tina/transactions", headers=headers)

    assert own.status_code == 200
    assert own.json()["transactions"][0]["description"] == "coffee"
    assert foreign.status_code == 404


def test_boolean_amount_rejected(client: TestClient, auth_headers, store_app: FastAPI):
    """JSON true is not a number and must not move money"""
    transfer = client.post(
        "/v1/transfers",
        json={"from_account_id": "acc-a", "to_account_id": "acc-b", "amount": True, "description": "x"},
        headers=auth_headers("user-max"),
    )
    deposit = client.post(
        "/v1/admin/deposits",
        json={"to_account_id": "acc-a", "amount": True, "description": "x"},
        headers=auth_headers("admin-1"),
    )

    assert transfer.status_code == 422
    assert transfer.json()["detail"]["code"] == "invalid_amount"
    assert deposit.status_code == 422
    assert deposit.json()["detail"]["code"] == "invalid_amount"
    assert store_app.state.store.get("accounts", "acc-a")["balance"] == 1000
    assert store_app.state.store.get("accounts", "acc-b")["balance"] == 0


def test_external_transfer_endpoint(client: TestClient, auth_headers, store_app: FastAPI):
    headers = auth_headers("user-max")

    omitted = client.post(
        "/v1/transfers",
        json={"from_account_id": "acc-a", "amount": 100, "description": "Rent", "recipient": "Landlord"},
        headers=headers,
    )
    explicit = client.post(
        "/v1/transfers",
        json={"from_account_id": "acc-a", "to_account_id": "external", "amount": 50, "description": "Gym"},
        headers=headers,
    )

    assert omitted.status_code == 200
    assert omitted.json()["transaction"]["to_account_id"] == "external"
    assert omitted.json()["transaction"]["description"] == "Rent (to Landlord)"
    assert explicit.status_code == 200
    assert explicit.json()["balances"] == {"acc-a": 850.0}
    assert store_app.state.store.get("accounts", "acc-a")["balance"] == 850.0
    assert store_app.state.store.get("accounts", "acc-b")["balance"] == 0

    entries = client.get("/v1/settlements/history", headers=headers).json()["entries"]
    assert {e["operation"] for e in entries} == {"external_transfer"}
    assert {e["to_account_id"] for e in entries} == {"external"}


def test_external_transfer_insufficient_funds(client: TestClient, auth_headers, store_app: FastAPI):
    response = client.post(
        "/v1/transfers",
        json={"from_account_id": "acc-a", "amount": 1000.01, "description": "x"},
        headers=auth_headers("user-max"),
    )

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "insufficient_funds"
    assert store_app.state.store.get("accounts", "acc-a")["balance"] == 1000
