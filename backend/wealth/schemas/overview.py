# backend/wealth/schemas/overview.py
"""
Pydantic schemas for the portfolio overview and the non-instrument
balances (accounts, other assets, goal buckets) that feed it.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from wealth.models import GoalStatus, OtherAssetKind
from wealth.schemas.instruments import ClassSummaryResponse
from wealth.services.valuation.types import Currency


# =============================================================================
# ACCOUNTS
# =============================================================================

class AccountCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, examples=["HDFC Savings"])
    balance: Decimal = Field(default=Decimal("0"))
    notes: str | None = None


class AccountUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    balance: Decimal | None = None
    notes: str | None = None


class AccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    balance: Decimal
    notes: str | None


# =============================================================================
# OTHER ASSETS
# =============================================================================

class OtherAssetCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, examples=["Gold"])
    value: Decimal = Field(default=Decimal("0"), ge=0)
    kind: OtherAssetKind = OtherAssetKind.ASSET
    notes: str | None = None


class OtherAssetUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    value: Decimal | None = Field(default=None, ge=0)
    kind: OtherAssetKind | None = None
    notes: str | None = None


class OtherAssetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    value: Decimal
    kind: OtherAssetKind
    notes: str | None


# =============================================================================
# GOAL BUCKETS
# =============================================================================

class GoalBucketCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, examples=["Emergency fund"])
    target_amount: Decimal = Field(default=Decimal("0"), ge=0)
    saved_amount: Decimal = Field(default=Decimal("0"), ge=0)
    notes: str | None = None


class GoalBucketUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    target_amount: Decimal | None = Field(default=None, ge=0)
    saved_amount: Decimal | None = Field(default=None, ge=0)
    status: GoalStatus | None = None
    notes: str | None = None


class GoalBucketResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    target_amount: Decimal
    saved_amount: Decimal
    status: GoalStatus
    notes: str | None


# =============================================================================
# OVERVIEW
# =============================================================================

class ChartSliceResponse(BaseModel):
    label: str
    value: Decimal


class OverviewResponse(BaseModel):
    """
    Portfolio rollup.

    `by_currency` holds invested totals per currency; USD is never
    converted to INR.
    """

    net_worth: Decimal
    total_current_value: Decimal
    by_currency: dict[Currency, Decimal]
    by_class: list[ChartSliceResponse] = Field(
        default_factory=list,
        description="Invested per instrument class, empty classes dropped"
    )
    wealth_breakdown: list[ChartSliceResponse] = Field(
        default_factory=list,
        description="Cash, Assets, Investments, Goal Savings; empty slices dropped"
    )
    summaries: list[ClassSummaryResponse] = Field(default_factory=list)
