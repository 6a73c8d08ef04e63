"""Pytest fixtures for testing"""

import copy
import httpx
import pytest
from typing import Any, Dict, Generator
from fastapi import FastAPI, Header, HTTPException
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from mock_store.app import create_app as create_store_app
from swissone_gateway.api.main import create_app
from swissone_gateway.api.dependencies import get_document_store_client, get_identity_client
from swissone_gateway.domain.models import Account, SessionContext
from swissone_gateway.infrastructure.clients.document_store import DocumentStoreClient
from swissone_gateway.infrastructure.clients.identity import IdentityClient
from swissone_gateway.infrastructure.database.models import Base
from swissone_gateway.infrastructure.database.session import get_db
from swissone_gateway.infrastructure.persistence.gateway import PersistenceGateway


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def account_fields(owner_id: str, account_type: str, balance: Any, currency: str = "EUR", name: str = "Account") -> Dict[str, Any]:
    return {
        "accountNumber": "123456",
        "iban": "DE97 6605 0101 0000 1234 56",
        "accountType": account_type,
        "accountName": name,
        "balance": balance,
        "currency": currency,
        "ownerId": owner_id,
        "ownerName": "Max Mustermann",
        "isActive": True,
        "createdAt": "2024-09-02T08:00:00+00:00",
        "updatedAt": "2024-09-02T08:00:00+00:00",
    }


SEED: Dict[str, Dict[str, Dict[str, Any]]] = {
    "users": {
        "admin-1": {"email": "admin@swissone.com", "firstName": "Admin", "lastName": "User", "role": "admin",
                    "isActive": True, "createdAt": "2024-09-01T08:00:00+00:00"},
        "user-max": {"email": "max@example.com", "firstName": "Max", "lastName": "Mustermann", "role": "customer",
                     "isActive": True, "createdAt": "2024-09-02T08:00:00+00:00"},
        "user-tina": {"email": "tina@example.com", "firstName": "Tina", "lastName": "Test", "role": "customer",
                      "isActive": True, "createdAt": "2024-09-03T08:00:00+00:00"},
    },
    "accounts": {
        "acc-a": account_fields("user-max", "Girokonto", 1000.0, name="Account A"),
        "acc-b": account_fields("user-max", "Tagesgeld", 0.0, name="Account B"),
        "acc-usd": account_fields("user-max", "Girokonto (USD)", "100.00", currency="USD"),
        "acc-tina": account_fields("user-tina", "Firmenkonto", -50.0, name="Business"),
    },
    "transactions": {},
}


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def store_app() -> FastAPI:
    """In-process document store seeded with users max/tina/admin and four accounts"""
    return create_store_app(copy.deepcopy(SEED))


@pytest.fixture
def store_client(store_app: FastAPI) -> DocumentStoreClient:
    return DocumentStoreClient(base_url="http://store", transport=httpx.ASGITransport(app=store_app))


@pytest.fixture
def gateway(store_client: DocumentStoreClient) -> PersistenceGateway:
    return PersistenceGateway(store_client)


@pytest.fixture
def identity_app() -> FastAPI:
    """Identity provider accepting tokens of the form "token-<uid>" """
    app = FastAPI()

    @app.get("/v1/session")
    def session(authorization: str = Header(default="")):
        token = authorization.removeprefix("Bearer ")
        if not token.startswith("token-"):
            raise HTTPException(status_code=401, detail="invalid session")
        uid = token.removeprefix("token-")
        return {"uid": uid, "email": f"{uid}@example.com"}

    return app


@pytest.fixture
def identity_client(identity_app: FastAPI) -> IdentityClient:
    return IdentityClient(base_url="http://identity", transport=httpx.ASGITransport(app=identity_app))


@pytest.fixture
def client(db: Session, store_client: DocumentStoreClient, identity_client: IdentityClient) -> TestClient:
    """Create FastAPI test client with test database, in-process store and identity provider"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_document_store_client] = lambda: store_client
    app.dependency_overrides[get_identity_client] = lambda: identity_client
    return TestClient(app)


def auth(uid: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer token-{uid}"}


@pytest.fixture
def customer() -> SessionContext:
    return SessionContext(user_id="user-max", role="customer", request_id="req-test")


@pytest.fixture
def admin() -> SessionContext:
    return SessionContext(user_id="admin-1", role="admin", request_id="req-admin")


def make_account(account_id: str, account_type: str = "Girokonto", balance: Any = 0.0,
                 currency: str = "EUR", owner_id: str = "user-max") -> Account:
    return Account(
        id=account_id,
        account_number="123456",
        iban="DE97 6605 0101 0000 1234 56",
        account_type=account_type,
        account_name=account_type,
        balance=balance,
        currency=currency,
        owner_id=owner_id,
        owner_name="Max Mustermann",
    )


@pytest.fixture
def account_factory():
    return make_account


@pytest.fixture
def auth_headers():
    return auth
