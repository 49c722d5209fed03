# backend/wealth/services/valuation/calculators.py
"""
Point-in-time valuation calculators, one per instrument class.

- FixedTermCalculator: simple-interest deposits
- UnitBasedCalculator: NAV x units positions and their installment ledger
- InstallmentCalculator: recurring deposits (contracted maturity, due dates)
- MarkToMarketCalculator: equities and crypto

Design Principles:
- Stateless (no instance state, pure functions)
- Inputs are any objects exposing the ORM attribute names, so tests can
  pass plain dataclasses
- Uses Decimal for ALL financial calculations
- Division by zero resolves to 0, never NaN or an exception

Usage:
    calc = FixedTermCalculator()
    result = calc.value(deposit, as_of=date.today())
    print(result.current_value, result.projected_maturity)
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any

from wealth.models import (
    DepositFrequency,
    FixedDepositStatus,
    PositionStatus,
    RecurringDepositStatus,
)
from wealth.services.exceptions import ValidationError
from wealth.services.valuation.types import (
    FixedDepositValuation,
    PositionValuation,
    RecurringDepositValuation,
    UnitPositionValuation,
    UnitsUpdate,
)
from wealth.utils.date_utils import add_months, add_years, year_fraction

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
UNIT_PRECISION = Decimal("0.0001")
PRICE_PRECISION = Decimal("0.00000001")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


# =============================================================================
# SHARED HELPERS
# =============================================================================

def to_decimal(value: Any) -> Decimal:
    """Coerce ints, strings and Decimals; floats go through str()."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def money(value: Decimal) -> Decimal:
    return value.quantize(CENT)


def returns_percent(current: Decimal, invested: Decimal) -> Decimal:
    """
    (current - invested) / invested * 100, rounded to 2 dp.

    Returns 0 when invested is 0 (or negative) instead of dividing.
    """
    if invested <= ZERO:
        return money(ZERO)
    return money((current - invested) / invested * HUNDRED)


def _require_positive(value: Decimal, field: str) -> None:
    if value <= ZERO:
        raise ValidationError(f"{field} must be greater than 0, got {value}", field=field)


# =============================================================================
# FIXED TERM CALCULATOR
# =============================================================================

class FixedTermCalculator:
    """
    Simple-interest fixed deposit over a 365-day year.

    Before closure the deposit is carried at its principal (no market value
    exists while the money is locked in). After closure it is carried at the
    actual withdrawal.
    """

    def expected_withdrawal(
            self,
            principal: Decimal,
            rate_percent: Decimal,
            start_date: date,
            maturity_date: date,
    ) -> Decimal:
        """
        principal * (1 + rate/100 * days/365), rounded to 0.01.

        Example:
            100000 at 7.5% from 2024-01-01 to 2025-01-01 (366 days)
            -> 107520.55
        """
        years = year_fraction(start_date, maturity_date)
        return money(principal * (1 + rate_percent / HUNDRED * years))

    def implied_rate(
            self,
            principal: Decimal,
            withdrawal: Decimal,
            start_date: date,
            end_date: date,
    ) -> Decimal:
        """
        Annual simple-interest rate realised by a withdrawal.

        ((withdrawal / principal) - 1) / years * 100. Returns 0 when the term
        is not positive or the principal is not positive.
        """
        years = year_fraction(start_date, end_date)
        if years <= ZERO or principal <= ZERO:
            return money(ZERO)
        return money(((withdrawal / principal) - 1) / years * HUNDRED)

    def value(self, deposit: Any, as_of: date) -> FixedDepositValuation:
        principal = to_decimal(deposit.invested_amount)
        expected = self.expected_withdrawal(
            principal,
            to_decimal(deposit.interest_rate),
            deposit.start_date,
            deposit.maturity_date,
        )

        closed = deposit.status == FixedDepositStatus.CLOSED and deposit.actual_withdrawal is not None
        if closed:
            current = to_decimal(deposit.actual_withdrawal)
            realized_rate = self.implied_rate(
                principal, current, deposit.start_date, deposit.closed_date or deposit.maturity_date
            )
        else:
            current = principal
            realized_rate = None

        return FixedDepositValuation(
            invested=money(principal),
            current_value=money(current),
            returns_percent=returns_percent(current, principal),
            projected_maturity=expected,
            days_to_maturity=max((deposit.maturity_date - as_of).days, 0),
            realized_rate=realized_rate,
        )


# =============================================================================
# UNIT BASED CALCULATOR
# =============================================================================

class UnitBasedCalculator:
    """
    Mutual fund style positions: value = units x NAV.

    The installment ledger is applied one entry at a time; each entry adds
    amount / nav units and amount to the invested total.
    """

    def units_for(self, amount: Decimal, nav: Decimal) -> Decimal:
        """Units bought by `amount` at `nav` (4 dp)."""
        _require_positive(amount, "amount")
        _require_positive(nav, "nav")
        return (amount / nav).quantize(UNIT_PRECISION)

    def apply_installment(
            self,
            total_units: Decimal,
            total_invested: Decimal,
            amount: Decimal,
            nav: Decimal,
    ) -> UnitsUpdate:
        """
        Compute the new running totals after one installment.

        Raises:
            ValidationError: amount or nav not positive
        """
        amount = to_decimal(amount)
        nav = to_decimal(nav)
        units = self.units_for(amount, nav)

        logger.debug(f"Installment {amount} @ NAV {nav} -> {units} units")

        return UnitsUpdate(
            units_added=units,
            total_units=to_decimal(total_units) + units,
            total_invested=to_decimal(total_invested) + amount,
            current_nav=nav,
        )

    def replay(self, installments: list[tuple[Decimal, Decimal]]) -> UnitsUpdate | None:
        """
        Fold a whole (amount, nav) installment ledger from zero.

        Returns None for an empty ledger.
        """
        update = None
        units, invested = ZERO, ZERO
        for amount, nav in installments:
            update = self.apply_installment(units, invested, amount, nav)
            units, invested = update.total_units, update.total_invested
        return update

    def value(self, position: Any) -> UnitPositionValuation:
        units = to_decimal(position.total_units)
        nav = to_decimal(position.current_nav)
        invested = to_decimal(position.total_invested)
        current = units * nav

        return UnitPositionValuation(
            invested=money(invested),
            current_value=money(current),
            returns_percent=returns_percent(current, invested),
            total_units=units,
            current_nav=nav,
        )


# =============================================================================
# INSTALLMENT CALCULATOR (RECURRING DEPOSITS)
# =============================================================================

class InstallmentCalculator:
    """
    Recurring deposits: fixed installments compounding once per period.

    The maturity value is the contracted one, computed from the schedule and
    independent of how many installments have been paid so far.
    """

    def periods_per_year(
            self,
            frequency: DepositFrequency,
            custom_days: int | None = None,
    ) -> Decimal:
        if frequency == DepositFrequency.MONTHLY:
            return Decimal("12")
        if frequency == DepositFrequency.YEARLY:
            return Decimal("1")
        if frequency == DepositFrequency.CUSTOM and custom_days:
            return Decimal("365") / Decimal(custom_days)
        return Decimal("12")

    def maturity_value(
            self,
            installment_amount: Decimal,
            rate_percent: Decimal,
            total_installments: int,
            frequency: DepositFrequency,
            custom_days: int | None = None,
    ) -> Decimal:
        """
        A * ((1 + i)^n - 1) / i * (1 + i) with i = rate / 100 / periods_per_year.

        Falls back to A * n for a zero rate.
        """
        amount = to_decimal(installment_amount)
        periodic_rate = to_decimal(rate_percent) / HUNDRED / self.periods_per_year(frequency, custom_days)

        if periodic_rate == ZERO:
            return money(amount * total_installments)

        growth = (1 + periodic_rate) ** total_installments
        return money(amount * ((growth - 1) / periodic_rate) * (1 + periodic_rate))

    def due_date(
            self,
            start_date: date,
            frequency: DepositFrequency,
            periods: int,
            custom_days: int | None = None,
    ) -> date:
        """Start date advanced by `periods` schedule periods."""
        if frequency == DepositFrequency.MONTHLY:
            return add_months(start_date, periods)
        if frequency == DepositFrequency.YEARLY:
            return add_years(start_date, periods)
        if frequency == DepositFrequency.CUSTOM and custom_days:
            return date.fromordinal(start_date.toordinal() + periods * custom_days)
        return start_date

    def next_due_date(
            self,
            start_date: date,
            frequency: DepositFrequency,
            installments_paid: int,
            total_installments: int,
            custom_days: int | None = None,
    ) -> date | None:
        """
        Due date of the next unpaid installment, None once all are paid.

        The first installment is due on the start date.
        """
        if installments_paid >= total_installments:
            return None
        return self.due_date(start_date, frequency, installments_paid, custom_days)

    def value(self, deposit: Any) -> RecurringDepositValuation:
        amount = to_decimal(deposit.installment_amount)
        paid = deposit.installments_paid
        invested = amount * paid

        closed = deposit.status == RecurringDepositStatus.CLOSED and deposit.actual_withdrawal is not None
        current = to_decimal(deposit.actual_withdrawal) if closed else invested

        maturity = self.maturity_value(
            amount,
            to_decimal(deposit.interest_rate),
            deposit.total_installments,
            deposit.frequency,
            deposit.custom_frequency_days,
        )

        if deposit.status == RecurringDepositStatus.ONGOING:
            next_due = self.next_due_date(
                deposit.start_date,
                deposit.frequency,
                paid,
                deposit.total_installments,
                deposit.custom_frequency_days,
            )
        else:
            next_due = None

        return RecurringDepositValuation(
            invested=money(invested),
            current_value=money(current),
            returns_percent=returns_percent(current, invested),
            projected_maturity=maturity,
            installments_paid=paid,
            installments_remaining=max(deposit.total_installments - paid, 0),
            next_due_date=next_due,
        )


# =============================================================================
# MARK TO MARKET CALCULATOR
# =============================================================================

class MarkToMarketCalculator:
    """Tradable positions valued at the last known price."""

    def buy_price_from_outlay(self, invested_value: Decimal, quantity: Decimal) -> Decimal:
        """Per-unit price from a total outlay (8 dp)."""
        _require_positive(quantity, "quantity")
        return (to_decimal(invested_value) / to_decimal(quantity)).quantize(PRICE_PRECISION)

    def value(self, position: Any) -> PositionValuation:
        quantity = to_decimal(position.quantity)
        invested = quantity * to_decimal(position.buy_price)
        current = quantity * to_decimal(position.current_price)

        return PositionValuation(
            invested=money(invested),
            current_value=money(current),
            returns_percent=returns_percent(current, invested),
            profit_loss=money(current - invested),
            frozen=position.status == PositionStatus.SOLD,
        )

