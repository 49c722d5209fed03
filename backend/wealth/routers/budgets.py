# backend/wealth/routers/budgets.py
"""
Monthly budget endpoints. A month without a stored budget reads as 0.
"""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from wealth.database import get_db
from wealth.dependencies import get_expense_service
from wealth.schemas.expenses import BudgetResponse, BudgetSet
from wealth.services.expenses import ExpenseService

router = APIRouter(
    prefix="/budgets",
    tags=["Budgets"],
)


@router.get("/{year}/{month}", response_model=BudgetResponse, summary="Get a month's budget")
def get_budget(
        year: int = Path(..., ge=1900, le=9999),
        month: int = Path(..., ge=1, le=12),
        db: Session = Depends(get_db),
        service: ExpenseService = Depends(get_expense_service),
) -> BudgetResponse:
    return BudgetResponse.model_validate(service.get_budget(db, year, month))


@router.put("/{year}/{month}", response_model=BudgetResponse, summary="Set a month's budget")
def set_budget(
        data: BudgetSet,
        year: int = Path(..., ge=1900, le=9999),
        month: int = Path(..., ge=1, le=12),
        db: Session = Depends(get_db),
        service: ExpenseService = Depends(get_expense_service),
) -> BudgetResponse:
    """Creates the budget or replaces its amount."""
    return BudgetResponse.model_validate(service.set_budget(db, year, month, data.amount))
