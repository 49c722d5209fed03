# backend/tests/routers/test_refresh_api.py
"""
Integration tests for the bulk refresh and search endpoints.

These tests verify:
- POST /refresh/sips and /refresh/positions/{market} summaries
- Failures reported per instrument, never as an HTTP error
- Scheme search through the NAV resolver

The refresh service is overridden with one built on MockResolver; no test
touches the network.
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
from wealth.dependencies import get_refresh_service
from wealth.main import app
from wealth.models import Base, Market
from wealth.services.exceptions import ProviderUnavailableError
from wealth.services.market_data import RefreshService
from tests.conftest import MockResolver, create_position, create_sip


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


@pytest.fixture
def nav_resolver() -> MockResolver:
    return MockResolver(
        prices={"100": Decimal("52.5")},
        errors={"200": ProviderUnavailableError(provider="mock", reason="HTTP 503")},
    )


@pytest.fixture
def us_resolver() -> MockResolver:
    return MockResolver(prices={"AAPL": Decimal("190")})


@pytest.fixture(scope="function")
def client(test_db: Session, nav_resolver: MockResolver, us_resolver: MockResolver) -> TestClient:
    """Create TestClient with database and refresh service overrides."""

    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    refresh_service = RefreshService(
        nav_resolver=nav_resolver,
        price_resolvers={Market.US: us_resolver},
    )

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_refresh_service] = lambda: refresh_service

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


# =============================================================================
# TEST: SIP NAV REFRESH
# =============================================================================

class TestRefreshSipsApi:

    def test_partial_success(self, client: TestClient, test_db: Session):
        ok = create_sip(test_db, name="A", scheme_code="100")
        create_sip(test_db, name="B", scheme_code="200")

        response = client.post("/refresh/sips")

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Updated 1/2"
        assert data["failed"] == 1
        assert data["failures"][0]["identifier"] == "200"
        assert Decimal(client.get(f"/sips/{ok.id}").json()["current_nav"]) == Decimal("52.5")

    def test_nothing_to_refresh(self, client: TestClient):
        assert client.post("/refresh/sips").json()["message"] == "Updated 0/0"


# =============================================================================
# TEST: POSITION PRICE REFRESH
# =============================================================================

class TestRefreshPositionsApi:

    def test_us_prices(self, client: TestClient, test_db: Session):
        held = create_position(test_db, symbol="AAPL")
        create_position(test_db, symbol="GOOG")

        data = client.post("/refresh/positions/us").json()

        assert data["message"] == "Updated 1/2"
        assert data["skipped"] == 1
        assert Decimal(client.get(f"/positions/{held.id}").json()["current_price"]) == Decimal("190")

    def test_unknown_market(self, client: TestClient):
        assert client.post("/refresh/positions/mars").status_code == 422


# =============================================================================
# TEST: SEARCH
# =============================================================================

class TestSearchApi:

    def test_fund_search(self, client: TestClient):
        response = client.get("/sips/search", params={"q": "10"})

        assert response.status_code == 200
        assert response.json() == [{"scheme_code": "100", "scheme_name": "Fund 100"}]

    def test_query_too_short(self, client: TestClient):
        assert client.get("/sips/search", params={"q": "x"}).status_code == 422
