# backend/tests/services/test_refresh.py
"""
Tests for the bulk price / NAV refresh.

Test Coverage:
- "Updated N/M" counts over partial success
- Empty lookups and failures leave the instrument at its last price
- Redeemed SIPs, SIPs without a scheme code and sold positions are skipped
- Tile filtering
- Cancellation between instruments keeps earlier updates
- Errors while applying a price are counted, not raised
"""

from decimal import Decimal

import pytest
from sqlalchemy import select

from wealth.models import Market, PositionStatus, SipStatus, SipTransaction, SipTransactionKind
from wealth.services.exceptions import ProviderUnavailableError
from wealth.services.market_data import RefreshService
from tests.conftest import MockResolver, create_position, create_sip, not_found


# =============================================================================
# SIP NAV REFRESH
# =============================================================================

class TestRefreshSipNavs:

    @pytest.fixture
    def sips(self, db):
        return {
            "updated": create_sip(db, name="A", scheme_code="100"),
            "empty": create_sip(db, name="B", scheme_code="200"),
            "failed": create_sip(db, name="C", scheme_code="300"),
            "redeemed": create_sip(db, name="D", scheme_code="400", status=SipStatus.REDEEMED),
            "unlinked": create_sip(db, name="E", scheme_code=None),
        }

    def test_partial_success(self, db, sips):
        resolver = MockResolver(
            prices={"100": Decimal("50"), "400": Decimal("99")},
            errors={"300": ProviderUnavailableError(provider="mock", reason="timeout")},
        )
        service = RefreshService(nav_resolver=resolver)

        summary = service.refresh_sip_navs(db)

        assert summary.total == 3
        assert summary.attempted == 3
        assert summary.updated == 1
        assert summary.skipped == 1
        assert summary.failed == 1
        assert summary.message == "Updated 1/3"
        assert summary.failures[0].identifier == "300"
        assert "400" not in resolver.calls

    def test_updated_nav_written_to_ledger(self, db, sips):
        service = RefreshService(nav_resolver=MockResolver(prices={"100": Decimal("50")}))

        service.refresh_sip_navs(db)

        position = sips["updated"]
        db.refresh(position)
        assert position.current_nav == Decimal("50")
        assert position.total_units == Decimal("225")
        kinds = db.scalars(select(SipTransaction.kind).where(SipTransaction.sip_id == position.id)).all()
        assert kinds == [SipTransactionKind.NAV_UPDATE]

    def test_failed_lookup_keeps_last_nav(self, db, sips):
        before = sips["failed"].current_nav
        service = RefreshService(nav_resolver=MockResolver(errors={"300": not_found("300")}))

        summary = service.refresh_sip_navs(db)

        db.refresh(sips["failed"])
        assert sips["failed"].current_nav == before
        assert summary.failed == 1

    def test_unusable_price_counted_as_failure(self, db, sips):
        """A zero NAV is rejected by the SIP service; the run carries on."""
        service = RefreshService(nav_resolver=MockResolver(prices={
            "100": Decimal("0"),
            "200": Decimal("30"),
        }))

        summary = service.refresh_sip_navs(db)

        assert summary.failed == 1
        assert summary.updated == 1

    def test_cancel_between_instruments(self, db, sips):
        resolver = MockResolver(prices={"100": Decimal("50"), "200": Decimal("60"), "300": Decimal("70")})
        service = RefreshService(nav_resolver=resolver)
        answers = iter([True, False])

        summary = service.refresh_sip_navs(db, should_continue=lambda: next(answers))

        assert summary.cancelled is True
        assert summary.attempted == 1
        assert summary.updated == 1
        assert resolver.calls == ["100"]
        db.refresh(sips["updated"])
        assert sips["updated"].current_nav == Decimal("50")


# =============================================================================
# POSITION PRICE REFRESH
# =============================================================================

class TestRefreshPositionPrices:

    def test_sold_positions_never_looked_up(self, db):
        held = create_position(db, symbol="AAPL")
        sold = create_position(db, symbol="MSFT", status=PositionStatus.SOLD, current_price=Decimal("300"))
        resolver = MockResolver(prices={"AAPL": Decimal("190"), "MSFT": Decimal("999")})
        service = RefreshService(price_resolvers={Market.US: resolver})

        summary = service.refresh_position_prices(db, Market.US)

        assert summary.message == "Updated 1/1"
        assert resolver.calls == ["AAPL"]
        db.refresh(held)
        db.refresh(sold)
        assert held.current_price == Decimal("190")
        assert sold.current_price == Decimal("300")

    def test_only_requested_market(self, db):
        create_position(db, market=Market.INDIAN, symbol="TCS")
        create_position(db, market=Market.US, symbol="AAPL")
        resolver = MockResolver(prices={"TCS": Decimal("4000")})
        service = RefreshService(price_resolvers={Market.INDIAN: resolver})

        summary = service.refresh_position_prices(db, Market.INDIAN)

        assert summary.total == 1
        assert resolver.calls == ["TCS"]

    def test_tile_filter(self, db):
        create_position(db, market=Market.CRYPTO, symbol="BTC", tile_id="cold")
        create_position(db, market=Market.CRYPTO, symbol="ETH", tile_id="hot")
        resolver = MockResolver(prices={"BTC": Decimal("65000"), "ETH": Decimal("3000")})
        service = RefreshService(price_resolvers={Market.CRYPTO: resolver})

        summary = service.refresh_position_prices(db, Market.CRYPTO, tile_id="cold")

        assert summary.message == "Updated 1/1"
        assert resolver.calls == ["BTC"]

    def test_nothing_to_refresh(self, db):
        service = RefreshService(price_resolvers={Market.US: MockResolver()})

        summary = service.refresh_position_prices(db, Market.US)

        assert summary.message == "Updated 0/0"
        assert summary.cancelled is False
