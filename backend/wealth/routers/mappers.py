# backend/wealth/routers/mappers.py
"""
Internal dataclass / ORM row -> response schema mapping shared by routers.

Services return ORM rows and frozen valuation dataclasses; the API shapes
live in wealth/schemas. Keeping the conversion here means services never
import response schemas.
"""

from typing import Any

from wealth.models import FixedDeposit, RecurringDeposit, SipPosition, TradablePosition
from wealth.schemas.instruments import (
    ClassSummaryResponse,
    FixedDepositResponse,
    InstrumentDetailResponse,
    PositionResponse,
    RecurringDepositResponse,
    SipResponse,
    ValuationResponse,
)
from wealth.services.instruments import InstrumentDetail
from wealth.services.valuation import (
    CLASS_CURRENCY,
    ClassSummary,
    FixedDepositValuation,
    PositionValuation,
    RecurringDepositValuation,
    ValuationResult,
)


def columns(row: Any) -> dict[str, Any]:
    """Column values of an ORM row, keyed by attribute name."""
    return {column.key: getattr(row, column.key) for column in row.__table__.columns}


def map_valuation(valuation: ValuationResult) -> ValuationResponse:
    return ValuationResponse(
        invested=valuation.invested,
        current_value=valuation.current_value,
        returns_percent=valuation.returns_percent,
        projected_maturity=valuation.projected_maturity,
    )


def map_summary(summary: ClassSummary) -> ClassSummaryResponse:
    return ClassSummaryResponse(
        instrument_class=summary.instrument_class,
        currency=summary.currency,
        count=summary.count,
        total_invested=summary.total_invested,
        current_value=summary.current_value,
        projected_maturity=summary.projected_maturity,
    )


def map_detail(detail: InstrumentDetail) -> InstrumentDetailResponse:
    return InstrumentDetailResponse(
        instrument_class=detail.instrument_class,
        id=detail.instrument.id,
        name=detail.name,
        status=detail.status,
        currency=CLASS_CURRENCY[detail.instrument_class],
        valuation=map_valuation(detail.valuation),
        allowed_actions=[action.value for action in detail.allowed_actions],
    )


# =============================================================================
# PER-CLASS RESPONSES
# =============================================================================

def map_fixed_deposit(deposit: FixedDeposit, valuation: FixedDepositValuation) -> FixedDepositResponse:
    return FixedDepositResponse(
        **columns(deposit),
        days_to_maturity=valuation.days_to_maturity,
        valuation=map_valuation(valuation),
    )


def map_sip(position: SipPosition, valuation: ValuationResult) -> SipResponse:
    return SipResponse(**columns(position), valuation=map_valuation(valuation))


def map_recurring_deposit(
        deposit: RecurringDeposit,
        valuation: RecurringDepositValuation,
) -> RecurringDepositResponse:
    return RecurringDepositResponse(
        **columns(deposit),
        installments_remaining=valuation.installments_remaining,
        valuation=map_valuation(valuation),
    )


def map_position(position: TradablePosition, valuation: PositionValuation) -> PositionResponse:
    return PositionResponse(
        **columns(position),
        profit_loss=valuation.profit_loss,
        valuation=map_valuation(valuation),
    )
