# backend/wealth/routers/fixed_deposits.py
"""
Fixed deposit endpoints.

Lifecycle: ONGOING --close--> CLOSED. A closed deposit only accepts the
`/amend` correction; every other mutation on it returns 409.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from wealth.database import get_db
from wealth.dependencies import get_fixed_deposit_service
from wealth.models import FixedDeposit
from wealth.routers.mappers import map_fixed_deposit, map_summary
from wealth.schemas.instruments import (
    ClassSummaryResponse,
    FixedDepositAmend,
    FixedDepositClose,
    FixedDepositCreate,
    FixedDepositResponse,
    FixedDepositUpdate,
)
from wealth.services.instruments import FixedDepositService

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(
    prefix="/fixed-deposits",
    tags=["Fixed Deposits"],
)


def _respond(service: FixedDepositService, deposit: FixedDeposit) -> FixedDepositResponse:
    return map_fixed_deposit(deposit, service.value(deposit))


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post(
    "/",
    response_model=FixedDepositResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open a fixed deposit",
)
def create_fixed_deposit(
        data: FixedDepositCreate,
        db: Session = Depends(get_db),
        service: FixedDepositService = Depends(get_fixed_deposit_service),
) -> FixedDepositResponse:
    """
    The expected withdrawal is computed with simple interest over a
    365-day year and stored alongside the deposit.
    """
    return _respond(service, service.create(db, data))


@router.get("/", response_model=list[FixedDepositResponse], summary="List fixed deposits")
def list_fixed_deposits(
        db: Session = Depends(get_db),
        service: FixedDepositService = Depends(get_fixed_deposit_service),
) -> list[FixedDepositResponse]:
    return [_respond(service, fd) for fd in service.list(db)]


@router.get("/summary", response_model=ClassSummaryResponse, summary="Fixed deposit tile totals")
def fixed_deposit_summary(
        db: Session = Depends(get_db),
        service: FixedDepositService = Depends(get_fixed_deposit_service),
) -> ClassSummaryResponse:
    """Ongoing deposits only; current value is carried at principal."""
    return map_summary(service.summary(db))


@router.get("/{deposit_id}", response_model=FixedDepositResponse, summary="Get a fixed deposit")
def get_fixed_deposit(
        deposit_id: int,
        db: Session = Depends(get_db),
        service: FixedDepositService = Depends(get_fixed_deposit_service),
) -> FixedDepositResponse:
    return _respond(service, service.get(db, deposit_id))


@router.patch("/{deposit_id}", response_model=FixedDepositResponse, summary="Edit an ongoing fixed deposit")
def update_fixed_deposit(
        deposit_id: int,
        data: FixedDepositUpdate,
        db: Session = Depends(get_db),
        service: FixedDepositService = Depends(get_fixed_deposit_service),
) -> FixedDepositResponse:
    return _respond(service, service.update(db, deposit_id, data))


@router.delete("/{deposit_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a fixed deposit")
def delete_fixed_deposit(
        deposit_id: int,
        db: Session = Depends(get_db),
        service: FixedDepositService = Depends(get_fixed_deposit_service),
) -> Response:
    service.delete(db, deposit_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{deposit_id}/close", response_model=FixedDepositResponse, summary="Close a fixed deposit")
def close_fixed_deposit(
        deposit_id: int,
        data: FixedDepositClose,
        db: Session = Depends(get_db),
        service: FixedDepositService = Depends(get_fixed_deposit_service),
) -> FixedDepositResponse:
    """
    Record the amount actually withdrawn. The realised annual rate replaces
    `interest_rate`; the maturity date is kept.

    Returns **409** if the deposit is already closed.
    """
    deposit = service.close(db, deposit_id, data.actual_withdrawal, data.closed_date)
    return _respond(service, deposit)


@router.post("/{deposit_id}/amend", response_model=FixedDepositResponse, summary="Correct a closed fixed deposit")
def amend_closed_fixed_deposit(
        deposit_id: int,
        data: FixedDepositAmend,
        db: Session = Depends(get_db),
        service: FixedDepositService = Depends(get_fixed_deposit_service),
) -> FixedDepositResponse:
    """Returns **409** unless the deposit is closed."""
    return _respond(service, service.amend_closed(db, deposit_id, data))
