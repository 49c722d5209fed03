# backend/wealth/services/market_data/coingecko.py
"""
Crypto prices (USD) from CoinGecko's public API.

CoinGecko keys coins by id, not ticker; common tickers are mapped and
anything else falls back to the lower-cased symbol.
"""

import logging
from decimal import Decimal

from wealth.services.market_data.base import DEFAULT_TIMEOUT, PriceResolver

logger = logging.getLogger(__name__)

DEFAULT_COINGECKO_BASE_URL = "https://api.coingecko.com/api/v3"

SEARCH_RESULT_LIMIT = 10


class CoinGeckoResolver(PriceResolver):
    """Latest USD price by coin symbol (BTC, ETH, ...)."""

    SYMBOL_TO_ID: dict[str, str] = {
        "BTC": "bitcoin",
        "ETH": "ethereum",
        "SOL": "solana",
        "XRP": "ripple",
        "ADA": "cardano",
        "DOGE": "dogecoin",
        "DOT": "polkadot",
        "MATIC": "matic-network",
        "LINK": "chainlink",
        "AVAX": "avalanche-2",
        "UNI": "uniswap",
        "ATOM": "cosmos",
        "LTC": "litecoin",
        "BCH": "bitcoin-cash",
        "NEAR": "near",
        "APT": "aptos",
        "OP": "optimism",
        "ARB": "arbitrum",
    }

    def __init__(
            self,
            base_url: str = DEFAULT_COINGECKO_BASE_URL,
            timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        super().__init__(timeout=timeout)
        self._base_url = base_url.rstrip("/")

    @property
    def name(self) -> str:
        return "coingecko"

    def coin_id(self, symbol: str) -> str:
        symbol = symbol.strip()
        return self.SYMBOL_TO_ID.get(symbol.upper(), symbol.lower())

    def _fetch(self, identifier: str) -> Decimal | None:
        coin_id = self.coin_id(identifier)
        logger.debug(f"Fetching price for {identifier} ({coin_id})")

        payload = self._get_json(
            f"{self._base_url}/simple/price",
            {"ids": coin_id, "vs_currencies": "usd"},
        )
        if not isinstance(payload, dict):
            return None
        return self._to_price((payload.get(coin_id) or {}).get("usd"))

    def search(self, query: str) -> list[dict[str, str]]:
        """Up to ten coins matching `query`, as {id, symbol, name}."""
        query = query.strip()
        if not query:
            return []

        payload = self._execute_with_retry(
            self._get_json,
            f"{self._base_url}/search",
            {"query": query},
        )
        if not isinstance(payload, dict):
            return []

        return [
            {
                "id": str(coin.get("id", "")),
                "symbol": str(coin.get("symbol", "")).upper(),
                "name": str(coin.get("name", "")),
            }
            for coin in (payload.get("coins") or [])[:SEARCH_RESULT_LIMIT]
        ]
