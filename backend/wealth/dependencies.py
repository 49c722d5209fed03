# backend/wealth/dependencies.py
"""
Dependency injection module for FastAPI services.

Services are stateless apart from their collaborators, so one instance of
each is shared across all requests. They are lazily initialized on first
use to avoid import-time side effects (no resolver is built until a
route needs it).

Usage in routers:
    from wealth.dependencies import get_sip_service

    @router.post("/{sip_id}/installments")
    def add_installment(
        sip_id: int,
        service: SipService = Depends(get_sip_service),
        db: Session = Depends(get_db),
    ):
        ...
"""

import logging
from functools import lru_cache

from wealth.services.expenses import ExpenseService
from wealth.services.instruments import (
    FixedDepositService,
    InstrumentService,
    PositionService,
    RecurringDepositService,
    SipService,
)
from wealth.services.market_data import RefreshService
from wealth.services.overview import OverviewService

logger = logging.getLogger(__name__)


# =============================================================================
# SINGLETON SERVICE INSTANCES
# =============================================================================
# Order matters: define dependencies before dependents
# 1. per-class instrument services (no deps)
# 2. get_instrument_service (depends on the four class services)
# 3. get_overview_service (depends on instrument service)
# 4. get_refresh_service (depends on sip + position services)


@lru_cache(maxsize=1)
def get_fixed_deposit_service() -> FixedDepositService:
    logger.debug("Initializing singleton FixedDepositService")
    return FixedDepositService()


@lru_cache(maxsize=1)
def get_sip_service() -> SipService:
    logger.debug("Initializing singleton SipService")
    return SipService()


@lru_cache(maxsize=1)
def get_recurring_deposit_service() -> RecurringDepositService:
    logger.debug("Initializing singleton RecurringDepositService")
    return RecurringDepositService()


@lru_cache(maxsize=1)
def get_position_service() -> PositionService:
    logger.debug("Initializing singleton PositionService")
    return PositionService()


@lru_cache(maxsize=1)
def get_instrument_service() -> InstrumentService:
    """
    Get the singleton class-generic facade.

    Shares the per-class services so every route sees the same calculators.
    """
    logger.debug("Initializing singleton InstrumentService")
    return InstrumentService(
        fixed_deposits=get_fixed_deposit_service(),
        sips=get_sip_service(),
        recurring_deposits=get_recurring_deposit_service(),
        positions=get_position_service(),
    )


@lru_cache(maxsize=1)
def get_overview_service() -> OverviewService:
    logger.debug("Initializing singleton OverviewService")
    return OverviewService(instruments=get_instrument_service())


@lru_cache(maxsize=1)
def get_expense_service() -> ExpenseService:
    logger.debug("Initializing singleton ExpenseService")
    return ExpenseService()


@lru_cache(maxsize=1)
def get_refresh_service() -> RefreshService:
    """
    Get the singleton RefreshService.

    Resolvers are built from settings (base URLs, timeout, exchange suffix)
    and shared by the bulk refresh and search endpoints.
    """
    logger.debug("Initializing singleton RefreshService")
    return RefreshService(
        sip_service=get_sip_service(),
        position_service=get_position_service(),
    )


# =============================================================================
# CACHE MANAGEMENT
# =============================================================================

def clear_service_caches() -> None:
    """
    Clear all service caches.

    Useful for testing or when you need to reset state.
    """
    get_fixed_deposit_service.cache_clear()
    get_sip_service.cache_clear()
    get_recurring_deposit_service.cache_clear()
    get_position_service.cache_clear()
    get_instrument_service.cache_clear()
    get_overview_service.cache_clear()
    get_expense_service.cache_clear()
    get_refresh_service.cache_clear()
    logger.info("Cleared all service singleton caches")
