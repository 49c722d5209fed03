# backend/tests/services/test_rollup.py
"""
Tests for the portfolio rollup.

Test Coverage:
- Deposits carried at invested, SIPs and positions at current value
- INR and USD invested totals kept apart
- Net worth = cash + other assets + investments + goal savings
- Zero slices dropped from chart series
- Same input, same output
"""

from decimal import Decimal

import pytest

from wealth.services.rollup import PortfolioRollup, RollupInput
from wealth.services.valuation import ClassSummary, Currency, InstrumentClass


def summary(instrument_class: InstrumentClass, invested: str, current: str) -> ClassSummary:
    return ClassSummary(
        instrument_class=instrument_class,
        count=1,
        total_invested=Decimal(invested),
        current_value=Decimal(current),
    )


@pytest.fixture
def snapshot() -> RollupInput:
    return RollupInput(
        summaries=(
            # FD and RD current values are ignored: carried at cost
            summary(InstrumentClass.FIXED_DEPOSIT, "100000", "107520.55"),
            summary(InstrumentClass.SIP, "10000", "10125"),
            summary(InstrumentClass.RECURRING_DEPOSIT, "3000", "3100"),
            summary(InstrumentClass.INDIAN_STOCK, "5000", "6000"),
            summary(InstrumentClass.US_STOCK, "1500", "1800"),
            summary(InstrumentClass.CRYPTO, "500", "400"),
        ),
        cash=Decimal("20000"),
        other_assets=Decimal("50000"),
        goal_savings=Decimal("5000"),
    )


class TestPortfolioRollup:

    def test_current_value(self, snapshot):
        result = PortfolioRollup().rollup(snapshot)
        assert result.total_current_value == Decimal("121325.00")

    def test_currency_totals_not_converted(self, snapshot):
        result = PortfolioRollup().rollup(snapshot)

        assert result.by_currency[Currency.INR] == Decimal("118000.00")
        assert result.by_currency[Currency.USD] == Decimal("2000.00")

    def test_net_worth(self, snapshot):
        result = PortfolioRollup().rollup(snapshot)
        assert result.net_worth == Decimal("196325.00")

    def test_by_class_uses_invested(self, snapshot):
        result = PortfolioRollup().rollup(snapshot)

        slices = {s.label: s.value for s in result.by_class}
        assert slices["Fixed Deposits"] == Decimal("100000.00")
        assert slices["Crypto"] == Decimal("500.00")
        assert len(slices) == 6

    def test_breakdown(self, snapshot):
        result = PortfolioRollup().rollup(snapshot)

        assert [(s.label, s.value) for s in result.wealth_breakdown] == [
            ("Cash", Decimal("20000.00")),
            ("Assets", Decimal("50000.00")),
            ("Investments", Decimal("121325.00")),
            ("Goal Savings", Decimal("5000.00")),
        ]

    def test_empty_portfolio(self):
        result = PortfolioRollup().rollup(RollupInput())

        assert result.net_worth == Decimal("0")
        assert result.by_currency == {Currency.INR: Decimal("0"), Currency.USD: Decimal("0")}
        assert result.by_class == []
        assert result.wealth_breakdown == []

    def test_zero_slices_dropped(self):
        result = PortfolioRollup().rollup(RollupInput(
            summaries=(summary(InstrumentClass.SIP, "0", "0"),),
            cash=Decimal("100"),
        ))

        assert result.by_class == []
        assert [s.label for s in result.wealth_breakdown] == ["Cash"]

    def test_deterministic(self, snapshot):
        rollup = PortfolioRollup()
        assert rollup.rollup(snapshot) == rollup.rollup(snapshot)
