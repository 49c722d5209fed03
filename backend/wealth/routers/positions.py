# backend/wealth/routers/positions.py
"""
Tradable position endpoints (Indian stocks, US stocks, crypto).

Positions are grouped by `market` and, optionally, a custom `tile_id`.
A sold position keeps its sell price as current price; price updates on
it are accepted and ignored.
"""

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from wealth.database import get_db
from wealth.dependencies import get_position_service, get_refresh_service
from wealth.middleware.rate_limit import RATE_LIMIT_SEARCH, limiter
from wealth.models import Market, TradablePosition
from wealth.routers.mappers import map_position, map_summary
from wealth.schemas.instruments import (
    ClassSummaryResponse,
    CoinSearchResult,
    PositionCreate,
    PositionPriceUpdate,
    PositionResponse,
    PositionSell,
    PositionUpdate,
)
from wealth.services.instruments import PositionService
from wealth.services.market_data import RefreshService

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(
    prefix="/positions",
    tags=["Positions"],
)


def _respond(service: PositionService, position: TradablePosition) -> PositionResponse:
    return map_position(position, service.value(position))


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post(
    "/",
    response_model=PositionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open a position",
)
def create_position(
        data: PositionCreate,
        db: Session = Depends(get_db),
        service: PositionService = Depends(get_position_service),
) -> PositionResponse:
    """
    Give exactly one of:
    - **buy_price**: per-unit price
    - **invested_value**: total outlay (buy price = invested_value / quantity)
    """
    return _respond(service, service.create(db, data))


@router.get("/", response_model=list[PositionResponse], summary="List positions")
def list_positions(
        db: Session = Depends(get_db),
        service: PositionService = Depends(get_position_service),
        market: Market | None = Query(default=None, description="Filter by market"),
        tile_id: str | None = Query(default=None, description="Filter by custom tile"),
) -> list[PositionResponse]:
    """Holdings first, then sold positions; alphabetical within each."""
    return [_respond(service, p) for p in service.list(db, market, tile_id)]


@router.get("/summary", response_model=ClassSummaryResponse, summary="Tile totals for one market")
def position_summary(
        market: Market = Query(...),
        tile_id: str | None = Query(default=None),
        db: Session = Depends(get_db),
        service: PositionService = Depends(get_position_service),
) -> ClassSummaryResponse:
    return map_summary(service.summary(db, market, tile_id))


@router.get("/crypto/search", response_model=list[CoinSearchResult], summary="Search CoinGecko coins")
@limiter.limit(RATE_LIMIT_SEARCH)
def search_coins(
        request: Request,  # Required for rate limiting
        q: str = Query(..., min_length=1),
        refresh_service: RefreshService = Depends(get_refresh_service),
) -> list[CoinSearchResult]:
    resolver = refresh_service.price_resolver(Market.CRYPTO)
    return [CoinSearchResult(**coin) for coin in resolver.search(q)]


@router.get("/{position_id}", response_model=PositionResponse, summary="Get a position")
def get_position(
        position_id: int,
        db: Session = Depends(get_db),
        service: PositionService = Depends(get_position_service),
) -> PositionResponse:
    return _respond(service, service.get(db, position_id))


@router.patch("/{position_id}", response_model=PositionResponse, summary="Edit a held position")
def update_position(
        position_id: int,
        data: PositionUpdate,
        db: Session = Depends(get_db),
        service: PositionService = Depends(get_position_service),
) -> PositionResponse:
    return _respond(service, service.update(db, position_id, data))


@router.delete("/{position_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a position")
def delete_position(
        position_id: int,
        db: Session = Depends(get_db),
        service: PositionService = Depends(get_position_service),
) -> Response:
    service.delete(db, position_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{position_id}/price", response_model=PositionResponse, summary="Set the current price")
def update_position_price(
        position_id: int,
        data: PositionPriceUpdate,
        db: Session = Depends(get_db),
        service: PositionService = Depends(get_position_service),
) -> PositionResponse:
    """No-op on a sold position (the sell price stays)."""
    return _respond(service, service.update_price(db, position_id, data.current_price))


@router.post("/{position_id}/sell", response_model=PositionResponse, summary="Sell a position")
def sell_position(
        position_id: int,
        data: PositionSell,
        db: Session = Depends(get_db),
        service: PositionService = Depends(get_position_service),
) -> PositionResponse:
    """Terminal. Returns **409** if already sold."""
    return _respond(service, service.sell(db, position_id, data.sell_price, data.sell_date))
