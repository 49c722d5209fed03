# backend/wealth/routers/refresh.py
"""
Bulk price / NAV refresh endpoints.

Each run looks instruments up one at a time against the external source
for their class (mfapi.in, Yahoo Finance, CoinGecko). A failed or empty
lookup leaves that instrument at its last known value and is reported in
the response; the run itself always completes.
"""

import logging

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from wealth.database import get_db
from wealth.dependencies import get_refresh_service
from wealth.middleware.rate_limit import RATE_LIMIT_REFRESH, limiter
from wealth.models import Market
from wealth.services.market_data import RefreshService, RefreshSummary

logger = logging.getLogger(__name__)

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(
    prefix="/refresh",
    tags=["Refresh"],
)


# =============================================================================
# SCHEMAS
# =============================================================================

class RefreshFailureResponse(BaseModel):
    instrument_id: int
    identifier: str
    reason: str


class RefreshResponse(BaseModel):
    """Response from a bulk refresh."""
    message: str = Field(description='"Updated N/M"')
    total: int = 0
    attempted: int = 0
    updated: int = 0
    skipped: int = Field(default=0, description="Lookups that returned no usable price")
    failed: int = 0
    cancelled: bool = False
    failures: list[RefreshFailureResponse] = []


def _map_summary(summary: RefreshSummary) -> RefreshResponse:
    return RefreshResponse(
        message=summary.message,
        total=summary.total,
        attempted=summary.attempted,
        updated=summary.updated,
        skipped=summary.skipped,
        failed=summary.failed,
        cancelled=summary.cancelled,
        failures=[
            RefreshFailureResponse(
                instrument_id=f.instrument_id,
                identifier=f.identifier,
                reason=f.reason,
            )
            for f in summary.failures
        ],
    )


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post("/sips", response_model=RefreshResponse, summary="Refresh SIP NAVs")
@limiter.limit(RATE_LIMIT_REFRESH)
def refresh_sip_navs(
        request: Request,  # Required for rate limiting
        db: Session = Depends(get_db),
        service: RefreshService = Depends(get_refresh_service),
) -> RefreshResponse:
    """
    Fetch the latest NAV for every SIP that has a scheme code and is not
    redeemed. Each update is also written to the SIP's ledger.
    """
    return _map_summary(service.refresh_sip_navs(db))


@router.post("/positions/{market}", response_model=RefreshResponse, summary="Refresh position prices")
@limiter.limit(RATE_LIMIT_REFRESH)
def refresh_position_prices(
        request: Request,  # Required for rate limiting
        market: Market,
        tile_id: str | None = Query(default=None, description="Only this custom tile"),
        db: Session = Depends(get_db),
        service: RefreshService = Depends(get_refresh_service),
) -> RefreshResponse:
    """
    Fetch the latest price for every held position in `market`.
    Sold positions are never touched.

    **Note:** lookups are sequential, so a large tile may take a while.
    """
    return _map_summary(service.refresh_position_prices(db, market, tile_id))
