# backend/wealth/routers/overview.py
"""
Portfolio overview and the balances that feed it.

- /overview: net worth, per-currency invested totals, chart series
- /accounts, /other-assets, /goals: CRUD for non-instrument balances
"""

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from wealth.database import get_db
from wealth.dependencies import get_overview_service
from wealth.models import OtherAssetKind
from wealth.routers.mappers import map_summary
from wealth.schemas.overview import (
    AccountCreate,
    AccountResponse,
    AccountUpdate,
    ChartSliceResponse,
    GoalBucketCreate,
    GoalBucketResponse,
    GoalBucketUpdate,
    OtherAssetCreate,
    OtherAssetResponse,
    OtherAssetUpdate,
    OverviewResponse,
)
from wealth.services.overview import OverviewService

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(prefix="/overview", tags=["Overview"])
accounts_router = APIRouter(prefix="/accounts", tags=["Balances"])
assets_router = APIRouter(prefix="/other-assets", tags=["Balances"])
goals_router = APIRouter(prefix="/goals", tags=["Balances"])


# =============================================================================
# OVERVIEW
# =============================================================================

@router.get("/", response_model=OverviewResponse, summary="Portfolio rollup")
def get_overview(
        db: Session = Depends(get_db),
        service: OverviewService = Depends(get_overview_service),
) -> OverviewResponse:
    """
    Net worth = cash + other assets + investments + active goal savings.

    Deposits count at invested amount, SIPs and positions at current value.
    USD classes are reported separately and never converted.
    """
    overview = service.rollup_portfolio(db)
    rollup = overview.rollup
    return OverviewResponse(
        net_worth=rollup.net_worth,
        total_current_value=rollup.total_current_value,
        by_currency=rollup.by_currency,
        by_class=[ChartSliceResponse(label=s.label, value=s.value) for s in rollup.by_class],
        wealth_breakdown=[ChartSliceResponse(label=s.label, value=s.value) for s in rollup.wealth_breakdown],
        summaries=[map_summary(s) for s in overview.summaries],
    )


# =============================================================================
# ACCOUNTS
# =============================================================================

@accounts_router.get("/", response_model=list[AccountResponse])
def list_accounts(
        db: Session = Depends(get_db),
        service: OverviewService = Depends(get_overview_service),
) -> list[AccountResponse]:
    return [AccountResponse.model_validate(a) for a in service.list_accounts(db)]


@accounts_router.post("/", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
def create_account(
        data: AccountCreate,
        db: Session = Depends(get_db),
        service: OverviewService = Depends(get_overview_service),
) -> AccountResponse:
    return AccountResponse.model_validate(service.create_account(db, data))


@accounts_router.patch("/{account_id}", response_model=AccountResponse)
def update_account(
        account_id: int,
        data: AccountUpdate,
        db: Session = Depends(get_db),
        service: OverviewService = Depends(get_overview_service),
) -> AccountResponse:
    return AccountResponse.model_validate(service.update_account(db, account_id, data))


@accounts_router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_account(
        account_id: int,
        db: Session = Depends(get_db),
        service: OverviewService = Depends(get_overview_service),
) -> Response:
    service.delete_account(db, account_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# OTHER ASSETS
# =============================================================================

@assets_router.get("/", response_model=list[OtherAssetResponse])
def list_other_assets(
        db: Session = Depends(get_db),
        service: OverviewService = Depends(get_overview_service),
        kind: OtherAssetKind | None = Query(default=None),
) -> list[OtherAssetResponse]:
    return [OtherAssetResponse.model_validate(a) for a in service.list_other_assets(db, kind)]


@assets_router.post("/", response_model=OtherAssetResponse, status_code=status.HTTP_201_CREATED)
def create_other_asset(
        data: OtherAssetCreate,
        db: Session = Depends(get_db),
        service: OverviewService = Depends(get_overview_service),
) -> OtherAssetResponse:
    """Only kind=asset counts towards net worth."""
    return OtherAssetResponse.model_validate(service.create_other_asset(db, data))


@assets_router.patch("/{asset_id}", response_model=OtherAssetResponse)
def update_other_asset(
        asset_id: int,
        data: OtherAssetUpdate,
        db: Session = Depends(get_db),
        service: OverviewService = Depends(get_overview_service),
) -> OtherAssetResponse:
    return OtherAssetResponse.model_validate(service.update_other_asset(db, asset_id, data))


@assets_router.delete("/{asset_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_other_asset(
        asset_id: int,
        db: Session = Depends(get_db),
        service: OverviewService = Depends(get_overview_service),
) -> Response:
    service.delete_other_asset(db, asset_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# GOAL BUCKETS
# =============================================================================

@goals_router.get("/", response_model=list[GoalBucketResponse])
def list_goals(
        db: Session = Depends(get_db),
        service: OverviewService = Depends(get_overview_service),
) -> list[GoalBucketResponse]:
    return [GoalBucketResponse.model_validate(g) for g in service.list_goals(db)]


@goals_router.post("/", response_model=GoalBucketResponse, status_code=status.HTTP_201_CREATED)
def create_goal(
        data: GoalBucketCreate,
        db: Session = Depends(get_db),
        service: OverviewService = Depends(get_overview_service),
) -> GoalBucketResponse:
    return GoalBucketResponse.model_validate(service.create_goal(db, data))


@goals_router.patch("/{goal_id}", response_model=GoalBucketResponse)
def update_goal(
        goal_id: int,
        data: GoalBucketUpdate,
        db: Session = Depends(get_db),
        service: OverviewService = Depends(get_overview_service),
) -> GoalBucketResponse:
    """Only active goals count towards net worth."""
    return GoalBucketResponse.model_validate(service.update_goal(db, goal_id, data))


@goals_router.delete("/{goal_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_goal(
        goal_id: int,
        db: Session = Depends(get_db),
        service: OverviewService = Depends(get_overview_service),
) -> Response:
    service.delete_goal(db, goal_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
