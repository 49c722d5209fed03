# backend/tests/routers/test_error_handling.py
"""
Integration tests for error handling across all API endpoints.

These tests verify:
- Consistent error response format (ErrorDetail schema)
- Correct HTTP status codes for each service error
  (400 ValidationError, 404 NotFoundError, 409 InvalidStateTransition,
  422 request validation, 429/502 upstream failures)
- Health check endpoints
"""

import os

import pytest

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from unittest.mock import MagicMock

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from wealth.database import get_db
from wealth.dependencies import get_refresh_service
from wealth.main import app
from wealth.models import Base, PositionStatus
from wealth.services.exceptions import ProviderUnavailableError, RateLimitError
from tests.conftest import create_position


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


def override_search_error(error: Exception) -> None:
    """Make every resolver search raise `error`."""
    refresh_service = MagicMock()
    refresh_service.nav_resolver.search.side_effect = error
    refresh_service.price_resolver.return_value.search.side_effect = error
    app.dependency_overrides[get_refresh_service] = lambda: refresh_service


# =============================================================================
# TEST: 404 NOT FOUND ERRORS
# =============================================================================

class TestNotFoundErrors:
    """Tests for 404 Not Found error responses."""

    @pytest.mark.parametrize("path", [
        "/fixed-deposits/99999",
        "/sips/99999",
        "/recurring-deposits/99999",
        "/positions/99999",
        "/instruments/sip/99999",
    ])
    def test_instrument_not_found_format(self, client: TestClient, path: str):
        response = client.get(path)

        assert response.status_code == 404
        data = response.json()
        assert data["error"] == "InstrumentNotFoundError"
        assert data["details"]["instrument_id"] == 99999
        assert "not found" in data["message"].lower()

    def test_expense_not_found_format(self, client: TestClient):
        response = client.get("/expenses/99999")

        assert response.status_code == 404
        assert response.json()["error"] == "NotFoundError"
        assert response.json()["details"] == {"resource_type": "Expense", "resource_id": 99999}


# =============================================================================
# TEST: 409 INVALID STATE TRANSITIONS
# =============================================================================

class TestStateTransitionErrors:
    """Tests for 409 responses when the lifecycle refuses an action."""

    def test_sell_sold_position(self, client: TestClient, test_db: Session):
        position = create_position(test_db, status=PositionStatus.SOLD)

        response = client.post(
            f"/positions/{position.id}/sell",
            json={"sell_price": "200", "sell_date": "2024-06-01"},
        )

        assert response.status_code == 409
        details = response.json()["details"]
        assert details["state"] == "sold"
        assert details["action"] == "sell"
        assert details["instrument_id"] == position.id


# =============================================================================
# TEST: 422 VALIDATION ERRORS
# =============================================================================

class TestValidationErrors:
    """Tests for 422 Validation error responses."""

    def test_validation_error_format(self, client: TestClient):
        """Validation errors should include field details."""
        response = client.post("/tags/", json={"name": ""})

        assert response.status_code == 422
        data = response.json()

        assert data["error"] == "ValidationError"
        assert isinstance(data["details"], list)
        field_errors = [e for e in data["details"] if "name" in e.get("field", "")]
        assert len(field_errors) > 0

    def test_validation_error_multiple_fields(self, client: TestClient):
        """Should report multiple validation errors."""
        response = client.post("/sips/", json={
            "name": "",
            "sip_amount": "-1",
            "current_nav": "0",
            "start_date": "not-a-date",
        })

        assert response.status_code == 422
        assert len(response.json()["details"]) >= 3

    def test_unknown_enum_value(self, client: TestClient):
        response = client.get("/positions/", params={"market": "moon"})

        assert response.status_code == 422


# =============================================================================
# TEST: UPSTREAM FAILURES
# =============================================================================

class TestUpstreamErrors:
    """Search calls hit the price sources directly and surface their errors."""

    def test_source_unavailable_is_502(self, client: TestClient):
        override_search_error(ProviderUnavailableError(provider="mfapi", reason="HTTP 503"))

        response = client.get("/sips/search", params={"q": "flexi"})

        assert response.status_code == 502
        assert response.json()["details"] == {"provider": "mfapi"}

    def test_source_rate_limit_is_429(self, client: TestClient):
        override_search_error(RateLimitError(provider="coingecko", retry_after=60))

        response = client.get("/positions/crypto/search", params={"q": "sol"})

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "60"


# =============================================================================
# TEST: HEALTH CHECK
# =============================================================================

class TestHealthCheck:
    """Tests for health check endpoints."""

    def test_health_check_success(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["checks"]["database"]["status"] == "healthy"

    def test_ready(self, client: TestClient):
        assert client.get("/health/ready").json() == {"status": "ready"}

    def test_root_endpoint(self, client: TestClient):
        data = client.get("/").json()

        assert "message" in data
        assert data["docs"] == "/docs"


# =============================================================================
# TEST: HTTP METHOD NOT ALLOWED
# =============================================================================

class TestMethodNotAllowed:
    """Tests for 405 Method Not Allowed errors."""

    def test_post_to_get_only_endpoint(self, client: TestClient):
        response = client.post("/health")

        assert response.status_code == 405
