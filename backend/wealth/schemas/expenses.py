# backend/wealth/schemas/expenses.py
"""
Pydantic schemas for expenses, tags, budgets and the bucketed views.
"""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from wealth.services.bucketing import Granularity


# =============================================================================
# TAGS
# =============================================================================

class TagCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, examples=["Groceries"])
    color: str | None = Field(default=None, max_length=20, examples=["#22c55e"])


class TagUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    color: str | None = Field(default=None, max_length=20)


class TagResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    color: str | None


# =============================================================================
# EXPENSES
# =============================================================================

class ExpenseCreate(BaseModel):
    date: dt.date
    amount: Decimal = Field(..., gt=0)
    statement: str = Field(..., min_length=1, max_length=500, examples=["Swiggy order"])
    tag_id: int | None = Field(default=None, description="Category tag")
    exclusion_tag_ids: list[int] = Field(default_factory=list)
    notes: str | None = None


class ExpenseUpdate(BaseModel):
    date: dt.date | None = None
    amount: Decimal | None = Field(default=None, gt=0)
    statement: str | None = Field(default=None, min_length=1, max_length=500)
    tag_id: int | None = None
    exclusion_tag_ids: list[int] | None = Field(
        default=None,
        description="Replaces the whole set when sent"
    )
    notes: str | None = None


class ExpenseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    date: dt.date
    amount: Decimal
    statement: str
    tag_id: int | None
    notes: str | None
    exclusion_tag_ids: list[int] = Field(default_factory=list)


class ExpenseDeleteByMonths(BaseModel):
    year: int = Field(..., ge=1900, le=9999)
    months: list[int] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_months(self) -> "ExpenseDeleteByMonths":
        bad = [m for m in self.months if not 1 <= m <= 12]
        if bad:
            raise ValueError(f"months must be between 1 and 12, got {bad}")
        return self


class DeletedCount(BaseModel):
    deleted: int


# =============================================================================
# BUDGETS
# =============================================================================

class BudgetSet(BaseModel):
    amount: Decimal = Field(..., ge=0)


class BudgetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    year: int
    month: int
    amount: Decimal


class YearlyAggregateResponse(BaseModel):
    year: int
    month: int
    spent: Decimal
    budget: Decimal
    over_budget: bool


# =============================================================================
# BUCKETED VIEWS
# =============================================================================

class BucketResponse(BaseModel):
    """One bucket of a bucketed view; keys are strings on the wire."""

    key: str
    label: str | None = None
    total: Decimal


class BucketViewResponse(BaseModel):
    granularity: Granularity
    total: Decimal
    buckets: list[BucketResponse]


class HeatmapCellResponse(BaseModel):
    key: str
    value: Decimal
    intensity: Decimal | None = Field(
        default=None,
        description="value / max across the view; null when there is no data"
    )
    band: int | None = Field(default=None, ge=0, le=5)
    color: str


class HeatmapResponse(BaseModel):
    granularity: Granularity
    max_value: Decimal
    cells: list[HeatmapCellResponse]
