# backend/tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Database session fixtures (in-memory SQLite)
- A mock price resolver
- Sample data factories for every instrument class and expenses
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from datetime import date
from decimal import Decimal
from typing import Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from wealth.models import (
    Base,
    DepositFrequency,
    ExclusionTag,
    Expense,
    FixedDeposit,
    FixedDepositStatus,
    Market,
    PositionStatus,
    RecurringDeposit,
    RecurringDepositStatus,
    SipPosition,
    SipStatus,
    Tag,
    TradablePosition,
)
from wealth.services.exceptions import IdentifierNotFoundError
from wealth.services.market_data.base import PriceResolver


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def db(db_engine) -> Iterator[Session]:
    """Create a database session for testing."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# =============================================================================
# MOCK PRICE RESOLVER
# =============================================================================

class MockResolver(PriceResolver):
    """
    In-memory PriceResolver for testing.

    Prices and errors are configured per identifier; anything unknown
    resolves to None (no usable price).
    """

    def __init__(
            self,
            prices: dict[str, Decimal] | None = None,
            errors: dict[str, Exception] | None = None,
    ):
        super().__init__(timeout=1.0)
        self._prices = dict(prices or {})
        self._errors = dict(errors or {})
        self.calls: list[str] = []

    @property
    def name(self) -> str:
        return "mock"

    def add_price(self, identifier: str, price: Decimal) -> None:
        self._prices[identifier] = price

    def add_error(self, identifier: str, error: Exception) -> None:
        self._errors[identifier] = error

    def _fetch(self, identifier: str) -> Decimal | None:
        self.calls.append(identifier)
        if identifier in self._errors:
            raise self._errors[identifier]
        return self._prices.get(identifier)

    def search(self, query: str) -> list[dict[str, str]]:
        return [
            {"scheme_code": code, "scheme_name": f"Fund {code}"}
            for code in self._prices
            if query.lower() in code.lower()
        ]


@pytest.fixture
def mock_resolver() -> MockResolver:
    """Create a fresh mock resolver for each test."""
    return MockResolver()


def not_found(identifier: str) -> IdentifierNotFoundError:
    return IdentifierNotFoundError(identifier=identifier, provider="mock")


# =============================================================================
# SAMPLE DATA FACTORIES
# =============================================================================

def create_fixed_deposit(
        db: Session,
        name: str = "SBI 1Y",
        invested_amount: Decimal = Decimal("100000"),
        interest_rate: Decimal = Decimal("7.5"),
        start_date: date = date(2024, 1, 1),
        maturity_date: date = date(2025, 1, 1),
        status: FixedDepositStatus = FixedDepositStatus.ONGOING,
        actual_withdrawal: Decimal | None = None,
) -> FixedDeposit:
    """Factory function for creating FixedDeposit rows (expected withdrawal precomputed)."""
    deposit = FixedDeposit(
        name=name,
        invested_amount=invested_amount,
        interest_rate=interest_rate,
        start_date=start_date,
        maturity_date=maturity_date,
        expected_withdrawal=Decimal("107520.55"),
        actual_withdrawal=actual_withdrawal,
        status=status,
        closed_date=maturity_date if status == FixedDepositStatus.CLOSED else None,
    )
    db.add(deposit)
    db.commit()
    db.refresh(deposit)
    return deposit


def create_sip(
        db: Session,
        name: str = "Flexi Cap",
        scheme_code: str | None = "120503",
        sip_amount: Decimal = Decimal("5000"),
        total_units: Decimal = Decimal("225"),
        current_nav: Decimal = Decimal("44.4444"),
        total_invested: Decimal = Decimal("10000"),
        status: SipStatus = SipStatus.ONGOING,
) -> SipPosition:
    """Factory function for creating SipPosition rows without a ledger."""
    position = SipPosition(
        name=name,
        scheme_code=scheme_code,
        sip_amount=sip_amount,
        start_date=date(2024, 1, 5),
        total_units=total_units,
        current_nav=current_nav,
        total_invested=total_invested,
        status=status,
    )
    db.add(position)
    db.commit()
    db.refresh(position)
    return position


def create_recurring_deposit(
        db: Session,
        name: str = "Post Office RD",
        installment_amount: Decimal = Decimal("1000"),
        interest_rate: Decimal = Decimal("6.5"),
        total_installments: int = 12,
        installments_paid: int = 0,
        status: RecurringDepositStatus = RecurringDepositStatus.ONGOING,
) -> RecurringDeposit:
    """Factory function for creating RecurringDeposit rows."""
    deposit = RecurringDeposit(
        name=name,
        installment_amount=installment_amount,
        frequency=DepositFrequency.MONTHLY,
        interest_rate=interest_rate,
        start_date=date(2024, 1, 10),
        total_installments=total_installments,
        installments_paid=installments_paid,
        next_due_date=date(2024, 1, 10),
        maturity_value=Decimal("12428.00"),
        status=status,
    )
    db.add(deposit)
    db.commit()
    db.refresh(deposit)
    return deposit


def create_position(
        db: Session,
        market: Market = Market.US,
        symbol: str = "AAPL",
        quantity: Decimal = Decimal("10"),
        buy_price: Decimal = Decimal("150"),
        current_price: Decimal = Decimal("180"),
        tile_id: str | None = None,
        status: PositionStatus = PositionStatus.HOLDING,
) -> TradablePosition:
    """Factory function for creating TradablePosition rows."""
    position = TradablePosition(
        market=market,
        tile_id=tile_id,
        symbol=symbol,
        name=symbol,
        quantity=quantity,
        buy_price=buy_price,
        buy_date=date(2024, 2, 1),
        current_price=current_price,
        status=status,
    )
    db.add(position)
    db.commit()
    db.refresh(position)
    return position


def create_tag(db: Session, name: str = "Food", exclusion: bool = False) -> Tag | ExclusionTag:
    """Factory function for category (or exclusion) tags."""
    tag = ExclusionTag(name=name) if exclusion else Tag(name=name)
    db.add(tag)
    db.commit()
    db.refresh(tag)
    return tag


def create_expense(
        db: Session,
        amount: Decimal = Decimal("100"),
        on_date: date = date(2024, 3, 3),
        statement: str = "Groceries",
        tag_id: int | None = None,
        exclusion_tags: list[ExclusionTag] | None = None,
) -> Expense:
    """Factory function for creating Expense rows."""
    expense = Expense(
        date=on_date,
        amount=amount,
        statement=statement,
        tag_id=tag_id,
    )
    expense.exclusion_tags = list(exclusion_tags or [])
    db.add(expense)
    db.commit()
    db.refresh(expense)
    return expense
