# backend/wealth/services/market_data/__init__.py
"""
Price and NAV resolvers.

Architecture:
    market_data/
    ├── base.py       # PriceResolver ABC, retry and HTTP helpers
    ├── mfapi.py      # Mutual fund NAVs (mfapi.in)
    ├── coingecko.py  # Crypto prices (CoinGecko)
    ├── yahoo.py      # Indian and US equities (yfinance)
    └── refresh_service.py  # Sequential bulk refresh (RefreshService)
"""

from wealth.services.market_data.base import PriceResolver
from wealth.services.market_data.coingecko import CoinGeckoResolver
from wealth.services.market_data.mfapi import MfapiNavResolver
from wealth.services.market_data.refresh_service import RefreshFailure, RefreshService, RefreshSummary
from wealth.services.market_data.yahoo import YahooQuoteResolver

__all__ = [
    "PriceResolver",
    "CoinGeckoResolver",
    "MfapiNavResolver",
    "YahooQuoteResolver",
    "RefreshService",
    "RefreshSummary",
    "RefreshFailure",
]
