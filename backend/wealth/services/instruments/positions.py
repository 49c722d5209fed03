# backend/wealth/services/instruments/positions.py
"""
Tradable position service (Indian stocks, US stocks, crypto).

Positions are grouped by market, and optionally by a user-defined tile
within a market. Selling freezes the position at the sell price; later
price refreshes are accepted and ignored.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from wealth.models import Market, PositionStatus, TradablePosition
from wealth.schemas.instruments import PositionCreate, PositionUpdate
from wealth.services.exceptions import ValidationError
from wealth.services.instruments.base import InstrumentServiceBase
from wealth.services.lifecycle import POSITION_LIFECYCLE, LifecycleAction
from wealth.services.valuation import (
    ClassSummary,
    InstrumentClass,
    MarkToMarketCalculator,
    PositionValuation,
    money,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

MARKET_CLASS: dict[Market, InstrumentClass] = {
    Market.INDIAN: InstrumentClass.INDIAN_STOCK,
    Market.US: InstrumentClass.US_STOCK,
    Market.CRYPTO: InstrumentClass.CRYPTO,
}
CLASS_MARKET: dict[InstrumentClass, Market] = {v: k for k, v in MARKET_CLASS.items()}


class PositionService(InstrumentServiceBase[TradablePosition]):
    """
    CRUD, pricing and selling of tradable positions.

    Example:
        service = PositionService()
        pos = service.create(db, PositionCreate(market="us", symbol="aapl", quantity=10,
                                                invested_value=1500, buy_date=date.today()))
        pos.buy_price  # Decimal("150.00000000")
    """

    model = TradablePosition
    lifecycle = POSITION_LIFECYCLE

    def __init__(self, calculator: MarkToMarketCalculator | None = None) -> None:
        self._calculator = calculator or MarkToMarketCalculator()

    # =========================================================================
    # QUERIES
    # =========================================================================

    def list(
            self,
            db: Session,
            market: Market | None = None,
            tile_id: str | None = None,
    ) -> list[TradablePosition]:
        """Holdings first, then by name. No tile_id means every tile."""
        query = select(TradablePosition)
        if market is not None:
            query = query.where(TradablePosition.market == market)
        if tile_id is not None:
            query = query.where(TradablePosition.tile_id == tile_id)
        positions = db.scalars(query.order_by(TradablePosition.name, TradablePosition.id))
        return sorted(positions, key=lambda p: p.status != PositionStatus.HOLDING)

    def list_refreshable(
            self,
            db: Session,
            market: Market,
            tile_id: str | None = None,
    ) -> list[TradablePosition]:
        query = (
            select(TradablePosition)
            .where(TradablePosition.market == market)
            .where(TradablePosition.status == PositionStatus.HOLDING)
        )
        if tile_id is not None:
            query = query.where(TradablePosition.tile_id == tile_id)
        return list(db.scalars(query.order_by(TradablePosition.id)))

    def value(self, position: TradablePosition) -> PositionValuation:
        return self._calculator.value(position)

    def summary(self, db: Session, market: Market, tile_id: str | None = None) -> ClassSummary:
        """Holding positions of one market (optionally one tile)."""
        invested = ZERO
        current = ZERO
        holdings = self.list_refreshable(db, market, tile_id)
        for position in holdings:
            valuation = self.value(position)
            invested += valuation.invested
            current += valuation.current_value
        return ClassSummary(
            instrument_class=MARKET_CLASS[market],
            count=len(holdings),
            total_invested=money(invested),
            current_value=money(current),
        )

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def create(self, db: Session, data: PositionCreate) -> TradablePosition:
        """
        Raises:
            ValidationError: Neither or both of buy_price / invested_value given
        """
        if (data.buy_price is None) == (data.invested_value is None):
            raise ValidationError("Give exactly one of buy_price or invested_value", field="buy_price")

        buy_price = data.buy_price
        if buy_price is None:
            buy_price = self._calculator.buy_price_from_outlay(data.invested_value, data.quantity)

        symbol = data.symbol.strip().upper()
        position = TradablePosition(
            market=data.market,
            tile_id=data.tile_id,
            symbol=symbol,
            name=data.name or symbol,
            quantity=data.quantity,
            buy_price=buy_price,
            buy_date=data.buy_date,
            current_price=data.current_price if data.current_price is not None else buy_price,
            price_updated_at=datetime.now(timezone.utc),
            status=self.lifecycle.initial,
            notes=data.notes,
        )
        position = self._save(db, position)
        logger.info(f"Created position {position.id}: {position.quantity} {symbol} ({data.market.value})")
        return position

    def update(self, db: Session, position_id: int, data: PositionUpdate) -> TradablePosition:
        position = self.get(db, position_id)
        self._require(position, LifecycleAction.EDIT)

        changes = self._changes(data)
        if "symbol" in changes:
            changes["symbol"] = changes["symbol"].strip().upper()
        if "current_price" in changes:
            position.price_updated_at = datetime.now(timezone.utc)

        for field_name, value in changes.items():
            setattr(position, field_name, value)
        return self._save(db, position)

    def update_price(self, db: Session, position_id: int, price: Decimal) -> TradablePosition:
        """
        Set the current price.

        On a sold position this is a no-op: the position is returned as is.
        """
        if price <= ZERO:
            raise ValidationError(f"price must be greater than 0, got {price}", field="current_price")

        position = self.get(db, position_id)
        outcome = self.lifecycle.transition(position.status, LifecycleAction.PRICE_REFRESH, position.id)
        if not outcome.applied:
            return position

        position.current_price = price
        position.price_updated_at = datetime.now(timezone.utc)
        return self._save(db, position)

    def sell(
            self,
            db: Session,
            position_id: int,
            sell_price: Decimal,
            sell_date: date,
    ) -> TradablePosition:
        """
        Terminal: freezes the current price at the sell price.

        Raises:
            InvalidStateTransition: Already sold
            ValidationError: Non-positive price or sold before bought
        """
        position = self.get(db, position_id)
        target = self._require(position, LifecycleAction.SELL)
        if sell_price <= ZERO:
            raise ValidationError("sell_price must be greater than 0", field="sell_price")
        if sell_date < position.buy_date:
            raise ValidationError(
                f"sell_date {sell_date} cannot be before buy_date {position.buy_date}",
                field="sell_date",
            )

        position.status = target
        position.sell_price = sell_price
        position.sell_date = sell_date
        position.current_price = sell_price
        position = self._save(db, position)
        logger.info(f"Sold position {position_id} ({position.symbol}) @ {sell_price}")
        return position

    def sell_for_proceeds(
            self,
            db: Session,
            position_id: int,
            proceeds: Decimal,
            sell_date: date,
    ) -> TradablePosition:
        """Sell the whole position for a total amount received."""
        position = self.get(db, position_id)
        self._require(position, LifecycleAction.SELL)
        price = self._calculator.buy_price_from_outlay(proceeds, position.quantity)
        return self.sell(db, position_id, price, sell_date)
