# backend/wealth/routers/recurring_deposits.py
"""
Recurring deposit endpoints.

Paying the last installment moves the deposit to COMPLETED automatically;
closing is allowed from ONGOING or COMPLETED and is terminal.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from wealth.database import get_db
from wealth.dependencies import get_recurring_deposit_service
from wealth.models import RecurringDeposit
from wealth.routers.mappers import map_recurring_deposit, map_summary
from wealth.schemas.instruments import (
    ClassSummaryResponse,
    RecurringDepositClose,
    RecurringDepositCreate,
    RecurringDepositResponse,
    RecurringDepositUpdate,
)
from wealth.services.instruments import RecurringDepositService

router = APIRouter(
    prefix="/recurring-deposits",
    tags=["Recurring Deposits"],
)


def _respond(service: RecurringDepositService, deposit: RecurringDeposit) -> RecurringDepositResponse:
    return map_recurring_deposit(deposit, service.value(deposit))


@router.post(
    "/",
    response_model=RecurringDepositResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open a recurring deposit",
)
def create_recurring_deposit(
        data: RecurringDepositCreate,
        db: Session = Depends(get_db),
        service: RecurringDepositService = Depends(get_recurring_deposit_service),
) -> RecurringDepositResponse:
    """
    `custom_frequency_days` is required when `frequency` is custom.
    Maturity value and next due date are computed on save.
    """
    return _respond(service, service.create(db, data))


@router.get("/", response_model=list[RecurringDepositResponse], summary="List recurring deposits")
def list_recurring_deposits(
        db: Session = Depends(get_db),
        service: RecurringDepositService = Depends(get_recurring_deposit_service),
) -> list[RecurringDepositResponse]:
    return [_respond(service, rd) for rd in service.list(db)]


@router.get("/summary", response_model=ClassSummaryResponse, summary="Recurring deposit tile totals")
def recurring_deposit_summary(
        db: Session = Depends(get_db),
        service: RecurringDepositService = Depends(get_recurring_deposit_service),
) -> ClassSummaryResponse:
    return map_summary(service.summary(db))


@router.get("/{deposit_id}", response_model=RecurringDepositResponse, summary="Get a recurring deposit")
def get_recurring_deposit(
        deposit_id: int,
        db: Session = Depends(get_db),
        service: RecurringDepositService = Depends(get_recurring_deposit_service),
) -> RecurringDepositResponse:
    return _respond(service, service.get(db, deposit_id))


@router.patch("/{deposit_id}", response_model=RecurringDepositResponse, summary="Edit a recurring deposit")
def update_recurring_deposit(
        deposit_id: int,
        data: RecurringDepositUpdate,
        db: Session = Depends(get_db),
        service: RecurringDepositService = Depends(get_recurring_deposit_service),
) -> RecurringDepositResponse:
    return _respond(service, service.update(db, deposit_id, data))


@router.delete("/{deposit_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a recurring deposit")
def delete_recurring_deposit(
        deposit_id: int,
        db: Session = Depends(get_db),
        service: RecurringDepositService = Depends(get_recurring_deposit_service),
) -> Response:
    service.delete(db, deposit_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{deposit_id}/installments",
    response_model=RecurringDepositResponse,
    summary="Mark the next installment paid",
)
def pay_recurring_installment(
        deposit_id: int,
        db: Session = Depends(get_db),
        service: RecurringDepositService = Depends(get_recurring_deposit_service),
) -> RecurringDepositResponse:
    """Returns **409** once the deposit is completed or closed."""
    return _respond(service, service.mark_installment_paid(db, deposit_id))


@router.post("/{deposit_id}/close", response_model=RecurringDepositResponse, summary="Close a recurring deposit")
def close_recurring_deposit(
        deposit_id: int,
        data: RecurringDepositClose,
        db: Session = Depends(get_db),
        service: RecurringDepositService = Depends(get_recurring_deposit_service),
) -> RecurringDepositResponse:
    deposit = service.close(db, deposit_id, data.actual_withdrawal, data.closed_date)
    return _respond(service, deposit)
