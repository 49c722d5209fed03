# backend/tests/routers/test_overview_api.py
"""
Integration tests for the overview and balance endpoints.

These tests verify full HTTP request/response cycles for:
- GET /overview/ (net worth, currency split, chart series)
- /accounts/, /other-assets/, /goals/ (CRUD)
"""

import os

import pytest

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from decimal import Decimal

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from wealth.database import get_db
from wealth.main import app
from wealth.models import Base, Market
from tests.conftest import create_fixed_deposit, create_position, create_sip


# =============================================================================
# TEST DATABASE SETUP
# =============================================================================

@pytest.fixture(scope="function")
def test_engine():
    """Create an in-memory SQLite database engine."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def test_db(test_engine) -> Session:
    """Create a database session for tests."""
    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=test_engine
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def client(test_db: Session) -> TestClient:
    """Create TestClient with database dependency override."""

    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


# =============================================================================
# TEST: OVERVIEW
# =============================================================================

class TestOverviewApi:

    def test_net_worth(self, client: TestClient, test_db: Session):
        create_fixed_deposit(test_db)
        create_sip(test_db, current_nav=Decimal("45"))
        create_position(test_db, market=Market.US)
        client.post("/accounts/", json={"name": "Savings", "balance": "20000"})
        client.post("/other-assets/", json={"name": "Gold", "value": "50000"})
        client.post("/other-assets/", json={"name": "Villa", "value": "900000", "kind": "plan"})
        client.post("/goals/", json={"name": "Trip", "saved_amount": "5000"})

        response = client.get("/overview/")

        assert response.status_code == 200
        data = response.json()
        # 100000 FD at cost + 10125 SIP + 1800 US (unconverted)
        assert Decimal(data["total_current_value"]) == Decimal("111925.00")
        assert Decimal(data["net_worth"]) == Decimal("186925.00")
        assert Decimal(data["by_currency"]["INR"]) == Decimal("110000.00")
        assert Decimal(data["by_currency"]["USD"]) == Decimal("1500.00")
        assert [s["label"] for s in data["wealth_breakdown"]] == ["Cash", "Assets", "Investments", "Goal Savings"]
        assert len(data["summaries"]) == 6

    def test_empty(self, client: TestClient):
        data = client.get("/overview/").json()

        assert Decimal(data["net_worth"]) == Decimal("0")
        assert data["by_class"] == []


# =============================================================================
# TEST: BALANCES
# =============================================================================

class TestBalancesApi:

    def test_account_crud(self, client: TestClient):
        account = client.post("/accounts/", json={"name": "Wallet"}).json()
        assert Decimal(account["balance"]) == Decimal("0")

        patched = client.patch(f"/accounts/{account['id']}", json={"balance": "42.50"}).json()
        assert Decimal(patched["balance"]) == Decimal("42.50")

        assert client.delete(f"/accounts/{account['id']}").status_code == 204
        assert client.get("/accounts/").json() == []

    def test_filter_assets_by_kind(self, client: TestClient):
        client.post("/other-assets/", json={"name": "Car", "value": "300000"})
        client.post("/other-assets/", json={"name": "Retire", "kind": "plan"})

        response = client.get("/other-assets/", params={"kind": "plan"})

        assert [a["name"] for a in response.json()] == ["Retire"]

    def test_goal_status_change(self, client: TestClient):
        goal = client.post("/goals/", json={"name": "Bike", "saved_amount": "1000"}).json()
        assert goal["status"] == "active"

        achieved = client.patch(f"/goals/{goal['id']}", json={"status": "achieved"}).json()
        overview = client.get("/overview/").json()

        assert achieved["status"] == "achieved"
        assert Decimal(overview["net_worth"]) == Decimal("0")

    def test_missing_goal(self, client: TestClient):
        response = client.delete("/goals/5")

        assert response.status_code == 404
        assert response.json()["details"]["resource_type"] == "GoalBucket"
