# backend/wealth/services/market_data/yahoo.py
"""
Equity quotes from Yahoo Finance via the yfinance library.

US tickers are used as-is; Indian tickers get the exchange suffix
(".NS" for NSE by default, configurable for BSE's ".BO").

Limitations:
- Rate limits exist but are not documented
- Quotes may be delayed 15-20 minutes
"""

import logging
from decimal import Decimal

import yfinance as yf

from wealth.services.exceptions import (
    ProviderUnavailableError,
    RateLimitError,
)
from wealth.services.market_data.base import DEFAULT_TIMEOUT, PriceResolver

logger = logging.getLogger(__name__)


class YahooQuoteResolver(PriceResolver):
    """
    Last close for a ticker.

    Example:
        indian = YahooQuoteResolver(suffix=".NS")
        indian.lookup("RELIANCE")   # queries RELIANCE.NS

        us = YahooQuoteResolver()
        us.lookup("AAPL")
    """

    def __init__(self, suffix: str = "", timeout: float = DEFAULT_TIMEOUT) -> None:
        super().__init__(timeout=timeout)
        self._suffix = suffix
        logger.info(f"YahooQuoteResolver initialized (suffix='{suffix}', timeout={timeout}s)")

    @property
    def name(self) -> str:
        return "yahoo"

    def build_symbol(self, ticker: str) -> str:
        ticker = ticker.strip().upper()
        if self._suffix and not ticker.endswith(self._suffix.upper()):
            return f"{ticker}{self._suffix.upper()}"
        return ticker

    def _fetch(self, identifier: str) -> Decimal | None:
        yahoo_symbol = self.build_symbol(identifier)
        logger.debug(f"Fetching quote for {yahoo_symbol}")

        try:
            history = yf.Ticker(yahoo_symbol).history(period="5d", interval="1d", timeout=self._timeout)
        except Exception as e:
            error_str = str(e).lower()
            if "not found" in error_str or "no data" in error_str or "delisted" in error_str:
                logger.info(f"Yahoo has no quote for {yahoo_symbol}")
                return None
            if "rate limit" in error_str or "too many requests" in error_str:
                raise RateLimitError(provider=self.name)

            logger.error(f"Yahoo Finance error for {yahoo_symbol}: {e}")
            raise ProviderUnavailableError(provider=self.name, reason=str(e))

        if history is None or history.empty or "Close" not in history:
            logger.info(f"Yahoo returned no rows for {yahoo_symbol}")
            return None

        closes = history["Close"].dropna()
        if closes.empty:
            return None
        return self._to_price(closes.iloc[-1])
