# backend/wealth/services/valuation/__init__.py
"""
Valuation package.

Pure calculators that turn an instrument's terms and ledger totals into
current value, invested amount, returns and projected maturity.

Architecture:
    valuation/
    ├── __init__.py      # This file - public exports
    ├── types.py         # Result dataclasses and class/currency enums
    └── calculators.py   # One calculator per instrument class

Usage:
    from wealth.services.valuation import UnitBasedCalculator

    result = UnitBasedCalculator().value(position)
"""

from wealth.services.valuation.calculators import (
    FixedTermCalculator,
    InstallmentCalculator,
    MarkToMarketCalculator,
    UnitBasedCalculator,
    money,
    returns_percent,
)
from wealth.services.valuation.types import (
    CLASS_CURRENCY,
    ClassSummary,
    Currency,
    FixedDepositValuation,
    InstrumentClass,
    PositionValuation,
    RecurringDepositValuation,
    UnitPositionValuation,
    UnitsUpdate,
    ValuationResult,
)

__all__ = [
    # Calculators
    "FixedTermCalculator",
    "UnitBasedCalculator",
    "InstallmentCalculator",
    "MarkToMarketCalculator",
    "money",
    "returns_percent",
    # Types
    "InstrumentClass",
    "Currency",
    "CLASS_CURRENCY",
    "ValuationResult",
    "FixedDepositValuation",
    "UnitPositionValuation",
    "RecurringDepositValuation",
    "PositionValuation",
    "UnitsUpdate",
    "ClassSummary",
]
