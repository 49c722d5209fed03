# backend/wealth/services/rollup.py
"""
Portfolio rollup: combines per-class summaries with the non-instrument
balances into net worth and chart series.

Rules:
- INR invested  = fixed deposits + SIPs + recurring deposits + Indian stocks
- USD invested  = US stocks + crypto (never converted to INR)
- Current value = FD invested + SIP current + RD invested + stocks current
- Net worth     = cash + other assets + current value + goal savings

Deposits are carried at cost in the current value; only unit-based and
mark-to-market classes contribute market value.

Pure: the overview service gathers a snapshot and hands it over, so the
same RollupInput always yields the same RollupResult.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from wealth.services.valuation.calculators import money
from wealth.services.valuation.types import (
    ClassSummary,
    Currency,
    InstrumentClass,
)

ZERO = Decimal("0")

# Classes carried at invested amount rather than current value
_AT_COST = frozenset({InstrumentClass.FIXED_DEPOSIT, InstrumentClass.RECURRING_DEPOSIT})

CLASS_LABELS: dict[InstrumentClass, str] = {
    InstrumentClass.FIXED_DEPOSIT: "Fixed Deposits",
    InstrumentClass.SIP: "SIPs",
    InstrumentClass.RECURRING_DEPOSIT: "Recurring Deposits",
    InstrumentClass.INDIAN_STOCK: "Indian Stocks",
    InstrumentClass.US_STOCK: "US Stocks",
    InstrumentClass.CRYPTO: "Crypto",
}


@dataclass(frozen=True)
class ChartSlice:
    label: str
    value: Decimal


@dataclass(frozen=True)
class RollupInput:
    """
    Snapshot the rollup works from.

    Attributes:
        summaries: One ClassSummary per instrument class (missing = empty)
        cash: Sum of account balances
        other_assets: Sum of other assets of kind "asset"
        goal_savings: Saved amount across active goal buckets
    """
    summaries: tuple[ClassSummary, ...] = ()
    cash: Decimal = ZERO
    other_assets: Decimal = ZERO
    goal_savings: Decimal = ZERO


@dataclass(frozen=True)
class RollupResult:
    net_worth: Decimal
    total_current_value: Decimal
    by_currency: dict[Currency, Decimal]
    by_class: list[ChartSlice] = field(default_factory=list)
    wealth_breakdown: list[ChartSlice] = field(default_factory=list)


class PortfolioRollup:
    """Stateless; see module docstring for the formulas."""

    def rollup(self, snapshot: RollupInput) -> RollupResult:
        summaries = {s.instrument_class: s for s in snapshot.summaries}

        by_currency = {currency: ZERO for currency in Currency}
        total_current = ZERO
        by_class: list[ChartSlice] = []

        for instrument_class in InstrumentClass:
            summary = summaries.get(instrument_class)
            if summary is None:
                continue

            by_currency[summary.currency] += summary.total_invested
            if instrument_class in _AT_COST:
                total_current += summary.total_invested
            else:
                total_current += summary.current_value

            by_class.append(ChartSlice(CLASS_LABELS[instrument_class], money(summary.total_invested)))

        net_worth = snapshot.cash + snapshot.other_assets + total_current + snapshot.goal_savings

        breakdown = [
            ChartSlice("Cash", money(snapshot.cash)),
            ChartSlice("Assets", money(snapshot.other_assets)),
            ChartSlice("Investments", money(total_current)),
            ChartSlice("Goal Savings", money(snapshot.goal_savings)),
        ]

        return RollupResult(
            net_worth=money(net_worth),
            total_current_value=money(total_current),
            by_currency={currency: money(amount) for currency, amount in by_currency.items()},
            by_class=_drop_empty(by_class),
            wealth_breakdown=_drop_empty(breakdown),
        )


def _drop_empty(slices: list[ChartSlice]) -> list[ChartSlice]:
    """Pie charts cannot draw zero or negative slices."""
    return [s for s in slices if s.value > ZERO]
