# backend/wealth/services/market_data/refresh_service.py
"""
Bulk price/NAV refresh.

This service handles:
- Refreshing NAVs of every SIP linked to a scheme code (not redeemed)
- Refreshing prices of every holding position in a market (or one tile)

Design Principles:
- Sequential: one lookup at a time, because the upstream sources are
  rate limited and the "Updated N/M" count must be exact
- Partial Success: a failed or empty lookup leaves that instrument at its
  last known price and the run moves on
- Cancellable: `should_continue` is checked between instruments; updates
  already applied stay applied
- Each instrument update commits on its own; no transaction spans lookups

Usage:
    service = RefreshService()
    summary = service.refresh_position_prices(db, Market.US)
    print(summary.message)  # "Updated 4/5"
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Callable

from sqlalchemy.orm import Session

from wealth.config import settings
from wealth.models import Market
from wealth.services.exceptions import ExternalLookupFailure, ServiceError
from wealth.services.instruments import PositionService, SipService
from wealth.services.market_data.base import PriceResolver
from wealth.services.market_data.coingecko import CoinGeckoResolver
from wealth.services.market_data.mfapi import MfapiNavResolver
from wealth.services.market_data.yahoo import YahooQuoteResolver

logger = logging.getLogger(__name__)


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass
class RefreshFailure:
    """One instrument the refresh could not update."""

    instrument_id: int
    identifier: str
    reason: str


@dataclass
class RefreshSummary:
    """
    Outcome of one bulk refresh.

    Attributes:
        total: Instruments eligible for refresh
        attempted: Instruments actually looked up (less than total if cancelled)
        updated: Instruments whose price changed hands successfully
        skipped: Lookups that returned no usable price
        failed: Lookups or updates that raised
        cancelled: True when should_continue stopped the run early
    """

    total: int = 0
    attempted: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    cancelled: bool = False
    failures: list[RefreshFailure] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"Updated {self.updated}/{self.total}"


# =============================================================================
# REFRESH SERVICE
# =============================================================================

class RefreshService:
    """
    Orchestrates sequential refreshes against the configured resolvers.

    Example:
        service = RefreshService(nav_resolver=MockResolver({"120503": Decimal("45")}))
        summary = service.refresh_sip_navs(db)
    """

    def __init__(
            self,
            nav_resolver: PriceResolver | None = None,
            price_resolvers: dict[Market, PriceResolver] | None = None,
            sip_service: SipService | None = None,
            position_service: PositionService | None = None,
    ) -> None:
        timeout = settings.price_lookup_timeout
        self._nav_resolver = nav_resolver or MfapiNavResolver(settings.mfapi_base_url, timeout)
        self._price_resolvers = price_resolvers or {
            Market.INDIAN: YahooQuoteResolver(suffix=settings.indian_exchange_suffix, timeout=timeout),
            Market.US: YahooQuoteResolver(timeout=timeout),
            Market.CRYPTO: CoinGeckoResolver(settings.coingecko_base_url, timeout),
        }
        self._sip_service = sip_service or SipService()
        self._position_service = position_service or PositionService()

        price_sources = ", ".join(f"{m.value}={r.name}" for m, r in self._price_resolvers.items())
        logger.info(f"RefreshService initialized (nav={self._nav_resolver.name}, {price_sources})")

    @property
    def nav_resolver(self) -> PriceResolver:
        return self._nav_resolver

    def price_resolver(self, market: Market) -> PriceResolver:
        return self._price_resolvers[market]

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def refresh_sip_navs(
            self,
            db: Session,
            should_continue: Callable[[], bool] | None = None,
    ) -> RefreshSummary:
        positions = self._sip_service.list_refreshable(db)
        today = date.today()

        summary = self._run(
            [(p.id, p.scheme_code) for p in positions],
            self._nav_resolver,
            lambda sip_id, nav: self._sip_service.update_nav(db, sip_id, nav, today),
            should_continue,
        )
        logger.info(f"SIP NAV refresh: {summary.message} (skipped={summary.skipped}, failed={summary.failed})")
        return summary

    def refresh_position_prices(
            self,
            db: Session,
            market: Market,
            tile_id: str | None = None,
            should_continue: Callable[[], bool] | None = None,
    ) -> RefreshSummary:
        positions = self._position_service.list_refreshable(db, market, tile_id)

        summary = self._run(
            [(p.id, p.symbol) for p in positions],
            self._price_resolvers[market],
            lambda position_id, price: self._position_service.update_price(db, position_id, price),
            should_continue,
        )
        logger.info(
            f"{market.value} price refresh: {summary.message} "
            f"(skipped={summary.skipped}, failed={summary.failed})"
        )
        return summary

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _run(
            self,
            targets: list[tuple[int, str]],
            resolver: PriceResolver,
            apply: Callable[[int, Decimal], object],
            should_continue: Callable[[], bool] | None,
    ) -> RefreshSummary:
        summary = RefreshSummary(total=len(targets))

        for instrument_id, identifier in targets:
            if should_continue is not None and not should_continue():
                summary.cancelled = True
                logger.info(f"Refresh cancelled after {summary.attempted}/{summary.total}")
                break

            summary.attempted += 1
            try:
                price = resolver.lookup(identifier)
            except ExternalLookupFailure as e:
                logger.warning(f"Lookup failed for {identifier} ({resolver.name}): {e}")
                summary.failed += 1
                summary.failures.append(RefreshFailure(instrument_id, identifier, str(e)))
                continue

            if price is None:
                logger.info(f"No price for {identifier} from {resolver.name}; keeping last known value")
                summary.skipped += 1
                continue

            try:
                apply(instrument_id, price)
            except ServiceError as e:
                logger.warning(f"Could not apply price {price} to {identifier}: {e}")
                summary.failed += 1
                summary.failures.append(RefreshFailure(instrument_id, identifier, str(e)))
                continue

            summary.updated += 1

        return summary
