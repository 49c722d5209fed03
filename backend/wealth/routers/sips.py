# backend/wealth/routers/sips.py
"""
SIP (unit-based mutual fund position) endpoints.

Key features:
- CRUD with the first purchase recorded on create
- Installment ledger (recurring / lumpsum purchases, NAV updates)
- Pause / resume / redeem lifecycle
- Scheme search against mfapi.in for autocomplete
"""

import logging

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from wealth.database import get_db
from wealth.dependencies import get_refresh_service, get_sip_service
from wealth.middleware.rate_limit import RATE_LIMIT_SEARCH, limiter
from wealth.models import SipPosition
from wealth.routers.mappers import map_sip, map_summary
from wealth.schemas.instruments import (
    ClassSummaryResponse,
    FundSearchResult,
    SipCreate,
    SipInstallmentCreate,
    SipNavUpdate,
    SipPause,
    SipRedeem,
    SipResponse,
    SipTransactionResponse,
    SipUnitsUpdate,
    SipUpdate,
)
from wealth.services.instruments import SipService
from wealth.services.market_data import RefreshService

logger = logging.getLogger(__name__)

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(
    prefix="/sips",
    tags=["SIPs"],
)


def _respond(service: SipService, position: SipPosition) -> SipResponse:
    return map_sip(position, service.value(position))


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post(
    "/",
    response_model=SipResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open a SIP position",
)
def create_sip(
        data: SipCreate,
        db: Session = Depends(get_db),
        service: SipService = Depends(get_sip_service),
) -> SipResponse:
    """
    The first purchase is written to the ledger as an initial installment
    (or lumpsum, per `investment_kind`).
    """
    return _respond(service, service.create(db, data))


@router.get("/", response_model=list[SipResponse], summary="List SIP positions")
def list_sips(
        db: Session = Depends(get_db),
        service: SipService = Depends(get_sip_service),
) -> list[SipResponse]:
    return [_respond(service, p) for p in service.list(db)]


@router.get("/summary", response_model=ClassSummaryResponse, summary="SIP tile totals")
def sip_summary(
        db: Session = Depends(get_db),
        service: SipService = Depends(get_sip_service),
) -> ClassSummaryResponse:
    """Ongoing and paused positions."""
    return map_summary(service.summary(db))


@router.get("/search", response_model=list[FundSearchResult], summary="Search mutual fund schemes")
@limiter.limit(RATE_LIMIT_SEARCH)
def search_funds(
        request: Request,  # Required for rate limiting
        q: str = Query(..., min_length=2, description="Scheme name words"),
        refresh_service: RefreshService = Depends(get_refresh_service),
) -> list[FundSearchResult]:
    """
    Every word of `q` must appear in the scheme name.

    Returns **502** if mfapi.in cannot be reached after retries.
    """
    return [FundSearchResult(**match) for match in refresh_service.nav_resolver.search(q)]


@router.get("/{sip_id}", response_model=SipResponse, summary="Get a SIP position")
def get_sip(
        sip_id: int,
        db: Session = Depends(get_db),
        service: SipService = Depends(get_sip_service),
) -> SipResponse:
    return _respond(service, service.get(db, sip_id))


@router.patch("/{sip_id}", response_model=SipResponse, summary="Edit a SIP position")
def update_sip(
        sip_id: int,
        data: SipUpdate,
        db: Session = Depends(get_db),
        service: SipService = Depends(get_sip_service),
) -> SipResponse:
    return _respond(service, service.update(db, sip_id, data))


@router.delete("/{sip_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a SIP position")
def delete_sip(
        sip_id: int,
        db: Session = Depends(get_db),
        service: SipService = Depends(get_sip_service),
) -> Response:
    service.delete(db, sip_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# LEDGER
# =============================================================================

@router.get(
    "/{sip_id}/transactions",
    response_model=list[SipTransactionResponse],
    summary="Installment ledger, newest first",
)
def list_sip_transactions(
        sip_id: int,
        db: Session = Depends(get_db),
        service: SipService = Depends(get_sip_service),
) -> list[SipTransactionResponse]:
    return [SipTransactionResponse.model_validate(t) for t in service.list_transactions(db, sip_id)]


@router.post("/{sip_id}/installments", response_model=SipResponse, summary="Record a purchase")
def add_sip_installment(
        sip_id: int,
        data: SipInstallmentCreate,
        db: Session = Depends(get_db),
        service: SipService = Depends(get_sip_service),
) -> SipResponse:
    """
    Adds `amount / nav` units (4 dp) and moves the current NAV to `nav`.

    Returns **409** if the position is redeemed.
    """
    position = service.apply_installment(
        db, sip_id, data.amount, data.nav, data.date, data.kind, data.notes
    )
    return _respond(service, position)


@router.post("/{sip_id}/nav", response_model=SipResponse, summary="Record a new NAV")
def update_sip_nav(
        sip_id: int,
        data: SipNavUpdate,
        db: Session = Depends(get_db),
        service: SipService = Depends(get_sip_service),
) -> SipResponse:
    return _respond(service, service.update_nav(db, sip_id, data.nav, data.date))


@router.put("/{sip_id}/units", response_model=SipResponse, summary="Correct total units")
def set_sip_units(
        sip_id: int,
        data: SipUnitsUpdate,
        db: Session = Depends(get_db),
        service: SipService = Depends(get_sip_service),
) -> SipResponse:
    return _respond(service, service.set_total_units(db, sip_id, data.total_units))


# =============================================================================
# LIFECYCLE
# =============================================================================

@router.post("/{sip_id}/pause", response_model=SipResponse, summary="Pause a SIP")
def pause_sip(
        sip_id: int,
        data: SipPause = SipPause(),
        db: Session = Depends(get_db),
        service: SipService = Depends(get_sip_service),
) -> SipResponse:
    return _respond(service, service.pause(db, sip_id, data.date))


@router.post("/{sip_id}/resume", response_model=SipResponse, summary="Resume a paused SIP")
def resume_sip(
        sip_id: int,
        db: Session = Depends(get_db),
        service: SipService = Depends(get_sip_service),
) -> SipResponse:
    return _respond(service, service.resume(db, sip_id))


@router.post("/{sip_id}/redeem", response_model=SipResponse, summary="Redeem a SIP")
def redeem_sip(
        sip_id: int,
        data: SipRedeem,
        db: Session = Depends(get_db),
        service: SipService = Depends(get_sip_service),
) -> SipResponse:
    """Terminal. Returns **409** if already redeemed."""
    return _respond(service, service.redeem(db, sip_id, data.amount, data.date))
