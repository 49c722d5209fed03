# backend/wealth/services/valuation/types.py
"""
Internal data types for the valuation calculators.

These dataclasses are NOT Pydantic schemas - the API shapes live in
wealth/schemas/instruments.py.

Design Principles:
- Immutable value objects (frozen=True)
- Decimal for ALL financial values (never float)
- Optional fields use None, not sentinel values

Type Hierarchy:
    ValuationResult             - invested / current / returns (every class)
    ├── FixedDepositValuation   - + expected withdrawal, days to maturity
    ├── UnitPositionValuation   - + units, NAV
    ├── RecurringDepositValuation - + maturity, installments remaining, next due
    └── PositionValuation       - + profit/loss
    UnitsUpdate                 - running totals after one installment
    ClassSummary                - per-class tile totals
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date
from decimal import Decimal


# =============================================================================
# CLASSIFIERS
# =============================================================================

class InstrumentClass(str, enum.Enum):
    """Top-level tiles; stocks are split by market."""
    FIXED_DEPOSIT = "fixed_deposit"
    SIP = "sip"
    RECURRING_DEPOSIT = "recurring_deposit"
    INDIAN_STOCK = "indian_stock"
    US_STOCK = "us_stock"
    CRYPTO = "crypto"


class Currency(str, enum.Enum):
    INR = "INR"
    USD = "USD"


CLASS_CURRENCY: dict[InstrumentClass, Currency] = {
    InstrumentClass.FIXED_DEPOSIT: Currency.INR,
    InstrumentClass.SIP: Currency.INR,
    InstrumentClass.RECURRING_DEPOSIT: Currency.INR,
    InstrumentClass.INDIAN_STOCK: Currency.INR,
    InstrumentClass.US_STOCK: Currency.USD,
    InstrumentClass.CRYPTO: Currency.USD,
}


# =============================================================================
# VALUATION RESULTS
# =============================================================================

@dataclass(frozen=True)
class ValuationResult:
    """
    Point-in-time valuation of one instrument.

    Attributes:
        invested: Money put in so far
        current_value: What the instrument is worth now
        returns_percent: (current - invested) / invested * 100, 0 when invested is 0
        projected_maturity: Contracted payout, for instruments that have one
    """
    invested: Decimal
    current_value: Decimal
    returns_percent: Decimal
    projected_maturity: Decimal | None = None


@dataclass(frozen=True)
class FixedDepositValuation(ValuationResult):
    """
    Attributes:
        days_to_maturity: Days from the as-of date to maturity (0 once matured)
        realized_rate: Annual % implied by the actual withdrawal (closed only)
    """
    days_to_maturity: int = 0
    realized_rate: Decimal | None = None


@dataclass(frozen=True)
class UnitPositionValuation(ValuationResult):
    total_units: Decimal = Decimal("0")
    current_nav: Decimal = Decimal("0")


@dataclass(frozen=True)
class RecurringDepositValuation(ValuationResult):
    installments_paid: int = 0
    installments_remaining: int = 0
    next_due_date: date | None = None


@dataclass(frozen=True)
class PositionValuation(ValuationResult):
    """
    Attributes:
        profit_loss: current_value - invested
        frozen: True once sold (prices no longer refresh)
    """
    profit_loss: Decimal = Decimal("0")
    frozen: bool = False


# =============================================================================
# LEDGER UPDATES
# =============================================================================

@dataclass(frozen=True)
class UnitsUpdate:
    """
    Running totals of a unit-based position after applying one installment.

    Attributes:
        units_added: amount / nav for this installment
        total_units: Previous units + units_added
        total_invested: Previous invested + amount
        current_nav: The installment's NAV (latest known)
    """
    units_added: Decimal
    total_units: Decimal
    total_invested: Decimal
    current_nav: Decimal


# =============================================================================
# SUMMARIES
# =============================================================================

@dataclass(frozen=True)
class ClassSummary:
    """
    Totals for one instrument class tile.

    Attributes:
        instrument_class: Which tile
        count: Instruments included (non-terminal ones, per class rules)
        total_invested: Sum of invested
        current_value: Sum of current values
        projected_maturity: Sum of contracted maturities (deposits only)
    """
    instrument_class: InstrumentClass
    count: int
    total_invested: Decimal
    current_value: Decimal
    projected_maturity: Decimal | None = None

    @property
    def currency(self) -> Currency:
        return CLASS_CURRENCY[self.instrument_class]
