# backend/wealth/routers/expenses.py
"""
Expense endpoints: CRUD, bulk delete by month, bucketed views, heatmaps
and the yearly spent-vs-budget summary.

Bucketed views share the same filters:
- **exclude**: exclusion tag ids; an expense carrying ANY of them is dropped
- **months**: keep only these calendar months (1-12)
"""

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from wealth.database import get_db
from wealth.dependencies import get_expense_service
from wealth.middleware.rate_limit import RATE_LIMIT_WRITE, limiter
from wealth.models import Expense
from wealth.routers.mappers import columns
from wealth.schemas.expenses import (
    BucketResponse,
    BucketViewResponse,
    DeletedCount,
    ExpenseCreate,
    ExpenseDeleteByMonths,
    ExpenseResponse,
    ExpenseUpdate,
    HeatmapCellResponse,
    HeatmapResponse,
    YearlyAggregateResponse,
)
from wealth.services.bucketing import Granularity
from wealth.services.constants import DEFAULT_EXPENSE_PAGE_SIZE, MAX_EXPENSE_PAGE_SIZE
from wealth.services.expenses import ExpenseService

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(
    prefix="/expenses",
    tags=["Expenses"],
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _map_expense(expense: Expense) -> ExpenseResponse:
    return ExpenseResponse(
        **columns(expense),
        exclusion_tag_ids=sorted(tag.id for tag in expense.exclusion_tags),
    )


# =============================================================================
# CRUD
# =============================================================================

@router.post(
    "/",
    response_model=ExpenseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record an expense",
)
def create_expense(
        data: ExpenseCreate,
        db: Session = Depends(get_db),
        service: ExpenseService = Depends(get_expense_service),
) -> ExpenseResponse:
    """Returns **404** if the category tag or an exclusion tag does not exist."""
    return _map_expense(service.create_expense(db, data))


@router.get("/", response_model=list[ExpenseResponse], summary="List expenses")
def list_expenses(
        db: Session = Depends(get_db),
        service: ExpenseService = Depends(get_expense_service),
        year: int | None = Query(default=None, ge=1900, le=9999),
        month: int | None = Query(default=None, ge=1, le=12, description="Requires year"),
        limit: int = Query(default=DEFAULT_EXPENSE_PAGE_SIZE, ge=1, le=MAX_EXPENSE_PAGE_SIZE),
        offset: int = Query(default=0, ge=0),
) -> list[ExpenseResponse]:
    """Newest first."""
    expenses = service.list_expenses(db, year=year, month=month, limit=limit, offset=offset)
    return [_map_expense(e) for e in expenses]


@router.post("/delete-by-months", response_model=DeletedCount, summary="Delete whole months")
@limiter.limit(RATE_LIMIT_WRITE)
def delete_expenses_by_months(
        request: Request,  # Required for rate limiting
        data: ExpenseDeleteByMonths,
        db: Session = Depends(get_db),
        service: ExpenseService = Depends(get_expense_service),
) -> DeletedCount:
    """An empty `months` list deletes nothing."""
    return DeletedCount(deleted=service.delete_by_months(db, data.year, data.months))


# =============================================================================
# VIEWS
# =============================================================================

@router.get("/buckets/{granularity}", response_model=BucketViewResponse, summary="Bucketed totals")
def bucket_expenses(
        granularity: Granularity,
        db: Session = Depends(get_db),
        service: ExpenseService = Depends(get_expense_service),
        year: int | None = Query(default=None, ge=1900, le=9999),
        month: int | None = Query(default=None, ge=1, le=12, description="Required for day buckets"),
        exclude: list[int] = Query(default=[], description="Exclusion tag ids"),
        months: list[int] = Query(default=[], description="Calendar months to keep"),
) -> BucketViewResponse:
    """
    - **month**: "YYYY-MM" keys
    - **week**: Thursday-anchored week numbers, labelled with a month
    - **weekday**: 0 = Sunday .. 6 = Saturday, always seven buckets
    - **day**: every day of the selected month, zero-filled
    - **category**: category tag names ("Unknown" when untagged)
    """
    buckets = service.bucket_expenses(db, granularity, year, month, exclude, months)
    return BucketViewResponse(
        granularity=granularity,
        total=buckets.total,
        buckets=[
            BucketResponse(key=str(key), label=buckets.labels.get(key), total=buckets[key])
            for key in buckets
        ],
    )


@router.get("/heatmap/{granularity}", response_model=HeatmapResponse, summary="Intensity map")
def expense_heatmap(
        granularity: Granularity,
        db: Session = Depends(get_db),
        service: ExpenseService = Depends(get_expense_service),
        year: int | None = Query(default=None, ge=1900, le=9999),
        month: int | None = Query(default=None, ge=1, le=12),
        exclude: list[int] = Query(default=[]),
        months: list[int] = Query(default=[]),
) -> HeatmapResponse:
    """
    Each bucket scaled against the largest one and quantized into bands
    0-5. When every bucket is zero, cells carry the no-data color.
    """
    cells = service.heatmap(db, granularity, year, month, exclude, months)
    return HeatmapResponse(
        granularity=granularity,
        max_value=max((c.value for c in cells), default=0),
        cells=[
            HeatmapCellResponse(
                key=str(c.key),
                value=c.value,
                intensity=c.intensity,
                band=c.band,
                color=c.color,
            )
            for c in cells
        ],
    )


@router.get("/yearly/{year}", response_model=list[YearlyAggregateResponse], summary="Spent vs budget per month")
def yearly_summary(
        year: int,
        db: Session = Depends(get_db),
        service: ExpenseService = Depends(get_expense_service),
) -> list[YearlyAggregateResponse]:
    return [
        YearlyAggregateResponse(
            year=row.year,
            month=row.month,
            spent=row.spent,
            budget=row.budget,
            over_budget=row.over_budget,
        )
        for row in service.yearly_aggregates(db, year)
    ]


# =============================================================================
# SINGLE EXPENSE
# =============================================================================

@router.get("/{expense_id}", response_model=ExpenseResponse, summary="Get an expense")
def get_expense(
        expense_id: int,
        db: Session = Depends(get_db),
        service: ExpenseService = Depends(get_expense_service),
) -> ExpenseResponse:
    return _map_expense(service.get_expense(db, expense_id))


@router.patch("/{expense_id}", response_model=ExpenseResponse, summary="Edit an expense")
def update_expense(
        expense_id: int,
        data: ExpenseUpdate,
        db: Session = Depends(get_db),
        service: ExpenseService = Depends(get_expense_service),
) -> ExpenseResponse:
    """Sending `exclusion_tag_ids` replaces the whole set."""
    return _map_expense(service.update_expense(db, expense_id, data))


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete an expense")
def delete_expense(
        expense_id: int,
        db: Session = Depends(get_db),
        service: ExpenseService = Depends(get_expense_service),
) -> Response:
    service.delete_expense(db, expense_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
