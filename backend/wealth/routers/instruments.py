# backend/wealth/routers/instruments.py
"""
Class-generic instrument endpoints.

`class_id` is one of: fixed_deposit, sip, recurring_deposit, indian_stock,
us_stock, crypto. Actions a class does not support return 409, the same
as actions its current state does not allow.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from wealth.database import get_db
from wealth.dependencies import get_instrument_service
from wealth.routers.mappers import map_detail, map_summary
from wealth.schemas.instruments import (
    ClassSummaryResponse,
    InstallmentRequest,
    InstrumentDetailResponse,
    PauseResumeRequest,
    RedeemOrCloseRequest,
    SellRequest,
)
from wealth.services.instruments import InstrumentService

router = APIRouter(
    prefix="/instruments",
    tags=["Instruments"],
)


@router.get("/summary", response_model=list[ClassSummaryResponse], summary="Totals for every class")
def all_summaries(
        db: Session = Depends(get_db),
        service: InstrumentService = Depends(get_instrument_service),
) -> list[ClassSummaryResponse]:
    return [map_summary(s) for s in service.get_all_summaries(db)]


@router.get("/{class_id}/summary", response_model=ClassSummaryResponse, summary="Totals for one class")
def instrument_summary(
        class_id: str,
        db: Session = Depends(get_db),
        service: InstrumentService = Depends(get_instrument_service),
) -> ClassSummaryResponse:
    """Returns **400** for an unknown class id."""
    return map_summary(service.get_instrument_summary(db, class_id))


@router.get("/{class_id}/{instrument_id}", response_model=InstrumentDetailResponse, summary="One instrument")
def instrument_detail(
        class_id: str,
        instrument_id: int,
        db: Session = Depends(get_db),
        service: InstrumentService = Depends(get_instrument_service),
) -> InstrumentDetailResponse:
    return map_detail(service.get_instrument_detail(db, class_id, instrument_id))


@router.post(
    "/{class_id}/{instrument_id}/installment",
    response_model=InstrumentDetailResponse,
    summary="Apply an installment",
)
def apply_installment(
        class_id: str,
        instrument_id: int,
        data: InstallmentRequest,
        db: Session = Depends(get_db),
        service: InstrumentService = Depends(get_instrument_service),
) -> InstrumentDetailResponse:
    """SIPs buy units (amount and nav required); recurring deposits mark the next installment paid."""
    detail = service.apply_installment(
        db, class_id, instrument_id,
        amount=data.amount,
        nav=data.nav,
        on_date=data.date,
        kind=data.kind,
    )
    return map_detail(detail)


@router.post(
    "/{class_id}/{instrument_id}/pause-resume",
    response_model=InstrumentDetailResponse,
    summary="Pause or resume",
)
def pause_resume(
        class_id: str,
        instrument_id: int,
        data: PauseResumeRequest,
        db: Session = Depends(get_db),
        service: InstrumentService = Depends(get_instrument_service),
) -> InstrumentDetailResponse:
    detail = service.pause_resume(db, class_id, instrument_id, data.pause, data.date)
    return map_detail(detail)


@router.post(
    "/{class_id}/{instrument_id}/redeem-or-close",
    response_model=InstrumentDetailResponse,
    summary="Redeem, close or sell out",
)
def redeem_or_close(
        class_id: str,
        instrument_id: int,
        data: RedeemOrCloseRequest,
        db: Session = Depends(get_db),
        service: InstrumentService = Depends(get_instrument_service),
) -> InstrumentDetailResponse:
    """
    Terminal exit with the amount received:
    - deposits close with it as the actual withdrawal
    - SIPs redeem
    - positions sell at amount / quantity

    Returns **409** when called a second time.
    """
    detail = service.redeem_or_close(db, class_id, instrument_id, data.amount, data.date)
    return map_detail(detail)


@router.post(
    "/{class_id}/{instrument_id}/sell",
    response_model=InstrumentDetailResponse,
    summary="Sell a position",
)
def sell(
        class_id: str,
        instrument_id: int,
        data: SellRequest,
        db: Session = Depends(get_db),
        service: InstrumentService = Depends(get_instrument_service),
) -> InstrumentDetailResponse:
    detail = service.sell(db, class_id, instrument_id, data.price, data.date)
    return map_detail(detail)
