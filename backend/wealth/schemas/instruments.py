# backend/wealth/schemas/instruments.py
"""
Pydantic schemas for the four instrument classes.

Per class:
- Create: what a client sends to open an instrument
- Update: editable fields (all optional, only sent fields change)
- action bodies: close, installment, redeem, sell, ...
- Response: stored fields plus a computed `valuation` block

Field constraints catch malformed input (422). Domain rules that involve
more than one field (maturity after start, custom frequency days) are
checked by the services and surface as 400.
"""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from wealth.models import (
    DepositFrequency,
    FixedDepositStatus,
    Market,
    PositionStatus,
    RecurringDepositStatus,
    SipStatus,
    SipTransactionKind,
)
from wealth.services.valuation.types import Currency, InstrumentClass


# =============================================================================
# SHARED
# =============================================================================

class ValuationResponse(BaseModel):
    """Point-in-time valuation shared by every instrument class."""

    invested: Decimal = Field(..., description="Money put in so far")
    current_value: Decimal = Field(..., description="What the instrument is worth now")
    returns_percent: Decimal = Field(
        ...,
        description="(current - invested) / invested * 100; 0 when nothing is invested"
    )
    projected_maturity: Decimal | None = Field(
        default=None,
        description="Contracted payout (deposits only)"
    )


class ClassSummaryResponse(BaseModel):
    instrument_class: InstrumentClass
    currency: Currency
    count: int
    total_invested: Decimal
    current_value: Decimal
    projected_maturity: Decimal | None = None


class InstrumentDetailResponse(BaseModel):
    """Class-generic view of one instrument."""

    instrument_class: InstrumentClass
    id: int
    name: str
    status: str
    currency: Currency
    valuation: ValuationResponse
    allowed_actions: list[str] = Field(
        default_factory=list,
        description="Lifecycle actions legal from the current state"
    )


# =============================================================================
# FIXED DEPOSITS
# =============================================================================

class FixedDepositCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, examples=["SBI 1Y FD"])
    invested_amount: Decimal = Field(..., gt=0, examples=[Decimal("100000")])
    interest_rate: Decimal = Field(..., ge=0, description="Annual simple interest, in %")
    start_date: dt.date
    maturity_date: dt.date
    notes: str | None = None


class FixedDepositUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    invested_amount: Decimal | None = Field(default=None, gt=0)
    interest_rate: Decimal | None = Field(default=None, ge=0)
    start_date: dt.date | None = None
    maturity_date: dt.date | None = None
    notes: str | None = None


class FixedDepositClose(BaseModel):
    actual_withdrawal: Decimal = Field(..., gt=0)
    closed_date: dt.date


class FixedDepositAmend(BaseModel):
    """Correction of an already closed deposit."""

    actual_withdrawal: Decimal | None = Field(default=None, gt=0)
    closed_date: dt.date | None = None
    notes: str | None = None


class FixedDepositResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    invested_amount: Decimal
    interest_rate: Decimal
    start_date: dt.date
    maturity_date: dt.date
    expected_withdrawal: Decimal
    actual_withdrawal: Decimal | None
    status: FixedDepositStatus
    closed_date: dt.date | None
    notes: str | None
    days_to_maturity: int
    valuation: ValuationResponse


# =============================================================================
# SIPS (UNIT-BASED POSITIONS)
# =============================================================================

class SipCreate(BaseModel):
    """
    Opens a position and records its first purchase.

    invested_amount defaults to sip_amount; total_units defaults to
    invested_amount / current_nav.
    """

    name: str = Field(..., min_length=1, max_length=255)
    scheme_code: str | None = Field(default=None, max_length=20, description="mfapi.in scheme code")
    sip_amount: Decimal = Field(..., gt=0)
    start_date: dt.date
    current_nav: Decimal = Field(..., gt=0)
    invested_amount: Decimal | None = Field(default=None, gt=0)
    total_units: Decimal | None = Field(default=None, gt=0)
    investment_kind: SipTransactionKind = SipTransactionKind.RECURRING
    notes: str | None = None


class SipUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    scheme_code: str | None = Field(default=None, max_length=20)
    sip_amount: Decimal | None = Field(default=None, gt=0)
    start_date: dt.date | None = None
    notes: str | None = None


class SipInstallmentCreate(BaseModel):
    amount: Decimal = Field(..., gt=0)
    nav: Decimal = Field(..., gt=0)
    date: dt.date
    kind: SipTransactionKind = SipTransactionKind.RECURRING
    notes: str | None = None


class SipNavUpdate(BaseModel):
    nav: Decimal = Field(..., gt=0)
    date: dt.date | None = None


class SipUnitsUpdate(BaseModel):
    total_units: Decimal = Field(..., ge=0)


class SipPause(BaseModel):
    date: dt.date | None = None


class SipRedeem(BaseModel):
    amount: Decimal = Field(..., gt=0)
    date: dt.date


class SipTransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    sip_id: int
    date: dt.date
    kind: SipTransactionKind
    amount: Decimal | None
    nav: Decimal
    units: Decimal | None
    notes: str | None


class SipResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    scheme_code: str | None
    sip_amount: Decimal
    start_date: dt.date
    total_units: Decimal
    current_nav: Decimal
    total_invested: Decimal
    status: SipStatus
    paused_date: dt.date | None
    redeemed_date: dt.date | None
    redeemed_amount: Decimal | None
    notes: str | None
    valuation: ValuationResponse


class FundSearchResult(BaseModel):
    scheme_code: str
    scheme_name: str


class CoinSearchResult(BaseModel):
    id: str = Field(..., description="CoinGecko coin id")
    symbol: str
    name: str


# =============================================================================
# RECURRING DEPOSITS
# =============================================================================

class RecurringDepositCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    installment_amount: Decimal = Field(..., gt=0)
    frequency: DepositFrequency = DepositFrequency.MONTHLY
    custom_frequency_days: int | None = Field(default=None, gt=0)
    interest_rate: Decimal = Field(..., ge=0)
    start_date: dt.date
    total_installments: int = Field(..., ge=1)
    installments_paid: int = Field(default=0, ge=0)
    notes: str | None = None


class RecurringDepositUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    installment_amount: Decimal | None = Field(default=None, gt=0)
    frequency: DepositFrequency | None = None
    custom_frequency_days: int | None = Field(default=None, gt=0)
    interest_rate: Decimal | None = Field(default=None, ge=0)
    start_date: dt.date | None = None
    total_installments: int | None = Field(default=None, ge=1)
    notes: str | None = None


class RecurringDepositClose(BaseModel):
    actual_withdrawal: Decimal = Field(..., gt=0)
    closed_date: dt.date


class RecurringDepositResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    installment_amount: Decimal
    frequency: DepositFrequency
    custom_frequency_days: int | None
    interest_rate: Decimal
    start_date: dt.date
    total_installments: int
    installments_paid: int
    installments_remaining: int
    next_due_date: dt.date | None
    maturity_value: Decimal
    status: RecurringDepositStatus
    closed_date: dt.date | None
    actual_withdrawal: Decimal | None
    notes: str | None
    valuation: ValuationResponse


# =============================================================================
# TRADABLE POSITIONS (STOCKS, CRYPTO)
# =============================================================================

class PositionCreate(BaseModel):
    """
    Either buy_price or invested_value must be given; buy_price is derived
    as invested_value / quantity otherwise. current_price defaults to buy_price.
    """

    market: Market
    tile_id: str | None = Field(default=None, max_length=64)
    symbol: str = Field(..., min_length=1, max_length=32, examples=["RELIANCE", "AAPL", "BTC"])
    name: str | None = Field(default=None, max_length=255)
    quantity: Decimal = Field(..., gt=0)
    buy_price: Decimal | None = Field(default=None, gt=0)
    invested_value: Decimal | None = Field(default=None, gt=0)
    buy_date: dt.date
    current_price: Decimal | None = Field(default=None, gt=0)
    notes: str | None = None


class PositionUpdate(BaseModel):
    symbol: str | None = Field(default=None, min_length=1, max_length=32)
    name: str | None = Field(default=None, max_length=255)
    quantity: Decimal | None = Field(default=None, gt=0)
    buy_price: Decimal | None = Field(default=None, gt=0)
    buy_date: dt.date | None = None
    current_price: Decimal | None = Field(default=None, gt=0)
    notes: str | None = None


class PositionSell(BaseModel):
    sell_price: Decimal = Field(..., gt=0)
    sell_date: dt.date


class PositionPriceUpdate(BaseModel):
    current_price: Decimal = Field(..., gt=0)


class PositionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    market: Market
    tile_id: str | None
    symbol: str
    name: str
    quantity: Decimal
    buy_price: Decimal
    buy_date: dt.date
    current_price: Decimal
    price_updated_at: dt.datetime | None
    status: PositionStatus
    sell_price: Decimal | None
    sell_date: dt.date | None
    notes: str | None
    profit_loss: Decimal
    valuation: ValuationResponse


# =============================================================================
# CLASS-GENERIC ACTIONS
# =============================================================================

class InstallmentRequest(BaseModel):
    """
    Installment on any class that takes one.

    SIPs need amount, nav and date; recurring deposits ignore the body.
    """

    amount: Decimal | None = Field(default=None, gt=0)
    nav: Decimal | None = Field(default=None, gt=0)
    date: dt.date | None = None
    kind: SipTransactionKind = SipTransactionKind.RECURRING


class PauseResumeRequest(BaseModel):
    pause: bool = Field(..., description="True to pause, False to resume")
    date: dt.date | None = None


class RedeemOrCloseRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, description="Redeemed amount or actual withdrawal")
    date: dt.date


class SellRequest(BaseModel):
    price: Decimal = Field(..., gt=0)
    date: dt.date
