# backend/tests/services/test_resolvers.py
"""
Tests for the price / NAV resolvers.

Test Coverage:
- HTTP status classification (404 -> None, 429 -> RateLimitError,
  5xx -> ProviderUnavailableError, other 4xx -> ExternalLookupFailure)
- One request per lookup by default; opt-in retries stay within the timeout
- mfapi.in NAV parsing and multi-word scheme search
- CoinGecko symbol -> coin id mapping and price parsing
- Yahoo symbol building and yfinance error classification

Note: httpx.Client and yfinance are mocked; no test touches the network.
"""

from decimal import Decimal
from unittest.mock import MagicMock, patch

import httpx
import pytest

from wealth.services.exceptions import (
    ExternalLookupFailure,
    ProviderUnavailableError,
    RateLimitError,
)
from wealth.services.market_data import (
    CoinGeckoResolver,
    MfapiNavResolver,
    YahooQuoteResolver,
)


# =============================================================================
# HELPERS
# =============================================================================

def make_response(status_code: int = 200, payload=None, headers: dict | None = None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.headers = headers or {}
    response.json.return_value = payload
    return response


def mock_http(mock_client_cls: MagicMock, *responses) -> MagicMock:
    """Wire httpx.Client(...) as a context manager returning `responses` in order."""
    client = mock_client_cls.return_value.__enter__.return_value
    client.get.side_effect = list(responses)
    return client


@pytest.fixture
def mfapi() -> MfapiNavResolver:
    resolver = MfapiNavResolver(base_url="https://mf.test")
    return resolver


@pytest.fixture
def coingecko() -> CoinGeckoResolver:
    resolver = CoinGeckoResolver(base_url="https://cg.test")
    return resolver


# =============================================================================
# HTTP CLASSIFICATION (base resolver)
# =============================================================================

class TestHttpClassification:

    @patch("wealth.services.market_data.base.httpx.Client")
    def test_not_found_is_none(self, mock_client_cls, mfapi):
        mock_http(mock_client_cls, make_response(404))
        assert mfapi.lookup("999999") is None

    @patch("wealth.services.market_data.base.httpx.Client")
    def test_rate_limited(self, mock_client_cls, mfapi):
        mock_http(mock_client_cls, make_response(429, headers={"Retry-After": "30"}))

        with pytest.raises(RateLimitError) as exc_info:
            mfapi.lookup("120503")

        assert exc_info.value.retry_after == 30

    @patch("wealth.services.market_data.base.httpx.Client")
    def test_server_error(self, mock_client_cls, mfapi):
        mock_http(mock_client_cls, make_response(503))

        with pytest.raises(ProviderUnavailableError):
            mfapi.lookup("120503")

    @patch("wealth.services.market_data.base.httpx.Client")
    def test_client_error(self, mock_client_cls, mfapi):
        mock_http(mock_client_cls, make_response(400))

        with pytest.raises(ExternalLookupFailure):
            mfapi.lookup("120503")

    @patch("wealth.services.market_data.base.httpx.Client")
    def test_network_error(self, mock_client_cls, mfapi):
        client = mock_client_cls.return_value.__enter__.return_value
        client.get.side_effect = httpx.ConnectError("connection refused")

        with pytest.raises(ProviderUnavailableError):
            mfapi.lookup("120503")

    def test_unavailable_is_a_single_attempt(self, mfapi):
        with patch.object(
                mfapi, "_fetch",
                side_effect=ProviderUnavailableError(provider="mfapi", reason="HTTP 503"),
        ) as fetch:
            with pytest.raises(ProviderUnavailableError):
                mfapi.lookup("120503")

        assert fetch.call_count == 1

    def test_rate_limit_never_retried(self):
        resolver = MfapiNavResolver(base_url="https://mf.test")
        resolver.MAX_RETRY_ATTEMPTS = 3
        resolver.RETRY_MIN_WAIT = 0
        resolver.RETRY_MAX_WAIT = 0

        with patch.object(resolver, "_fetch", side_effect=RateLimitError(provider="mfapi")) as fetch:
            with pytest.raises(RateLimitError):
                resolver.lookup("120503")

        assert fetch.call_count == 1

    def test_retries_stop_once_timeout_spent(self):
        resolver = MfapiNavResolver(base_url="https://mf.test", timeout=0)
        resolver.MAX_RETRY_ATTEMPTS = 3
        resolver.RETRY_MIN_WAIT = 0
        resolver.RETRY_MAX_WAIT = 0

        with patch.object(
                resolver, "_fetch",
                side_effect=ProviderUnavailableError(provider="mfapi", reason="timeout"),
        ) as fetch:
            with pytest.raises(ProviderUnavailableError):
                resolver.lookup("120503")

        assert fetch.call_count == 1

    @patch("wealth.services.market_data.base.httpx.Client")
    def test_opt_in_retry_of_transient_failure(self, mock_client_cls):
        resolver = MfapiNavResolver(base_url="https://mf.test")
        resolver.MAX_RETRY_ATTEMPTS = 2
        resolver.RETRY_MIN_WAIT = 0
        resolver.RETRY_MAX_WAIT = 0
        client = mock_http(
            mock_client_cls,
            make_response(502),
            make_response(200, {"data": [{"nav": "45.10"}]}),
        )

        assert resolver.lookup("120503") == Decimal("45.10")
        assert client.get.call_count == 2

    @patch("wealth.services.market_data.base.httpx.Client")
    def test_timeout_passed_to_client(self, mock_client_cls):
        resolver = MfapiNavResolver(base_url="https://mf.test", timeout=3.5)
        mock_http(mock_client_cls, make_response(200, {"data": [{"nav": "10"}]}))

        resolver.lookup("1")

        mock_client_cls.assert_called_once_with(timeout=3.5)

    def test_blank_identifier_skips_lookup(self, mfapi):
        assert mfapi.lookup("   ") is None


# =============================================================================
# MFAPI
# =============================================================================

class TestMfapiNavResolver:

    def test_name(self, mfapi):
        assert mfapi.name == "mfapi"

    @patch("wealth.services.market_data.base.httpx.Client")
    def test_latest_nav(self, mock_client_cls, mfapi):
        client = mock_http(mock_client_cls, make_response(200, {
            "meta": {"scheme_name": "Parag Parikh Flexi Cap"},
            "data": [{"date": "14-03-2024", "nav": "71.2345"}],
        }))

        assert mfapi.lookup("120503") == Decimal("71.2345")
        assert client.get.call_args.args[0] == "https://mf.test/mf/120503/latest"

    @patch("wealth.services.market_data.base.httpx.Client")
    def test_empty_data(self, mock_client_cls, mfapi):
        mock_http(mock_client_cls, make_response(200, {"data": []}))
        assert mfapi.lookup("120503") is None

    @pytest.mark.parametrize("nav", ["0", "-1", "N.A.", None])
    @patch("wealth.services.market_data.base.httpx.Client")
    def test_unusable_nav(self, mock_client_cls, nav, mfapi):
        mock_http(mock_client_cls, make_response(200, {"data": [{"nav": nav}]}))
        assert mfapi.lookup("120503") is None

    @patch("wealth.services.market_data.base.httpx.Client")
    def test_search_requires_every_word(self, mock_client_cls, mfapi):
        client = mock_http(mock_client_cls, make_response(200, [
            {"schemeCode": 122639, "schemeName": "Parag Parikh Flexi Cap Fund - Direct Plan - Growth"},
            {"schemeCode": 143269, "schemeName": "Parag Parikh Liquid Fund - Direct Plan - Growth"},
        ]))

        results = mfapi.search("parag flexi")

        assert results == [{
            "scheme_code": "122639",
            "scheme_name": "Parag Parikh Flexi Cap Fund - Direct Plan - Growth",
        }]
        assert client.get.call_args.kwargs["params"] == {"q": "parag"}

    def test_search_short_query(self, mfapi):
        assert mfapi.search("a") == []


# =============================================================================
# COINGECKO
# =============================================================================

class TestCoinGeckoResolver:

    @pytest.mark.parametrize("symbol,coin_id", [
        ("BTC", "bitcoin"),
        ("eth", "ethereum"),
        ("MATIC", "matic-network"),
        ("PEPE", "pepe"),
    ])
    def test_coin_id(self, coingecko, symbol, coin_id):
        assert coingecko.coin_id(symbol) == coin_id

    @patch("wealth.services.market_data.base.httpx.Client")
    def test_price(self, mock_client_cls, coingecko):
        client = mock_http(mock_client_cls, make_response(200, {"bitcoin": {"usd": 65000.5}}))

        assert coingecko.lookup("BTC") == Decimal("65000.5")
        assert client.get.call_args.kwargs["params"] == {"ids": "bitcoin", "vs_currencies": "usd"}

    @patch("wealth.services.market_data.base.httpx.Client")
    def test_unknown_coin(self, mock_client_cls, coingecko):
        mock_http(mock_client_cls, make_response(200, {}))
        assert coingecko.lookup("NOPE") is None

    @patch("wealth.services.market_data.base.httpx.Client")
    def test_search(self, mock_client_cls, coingecko):
        mock_http(mock_client_cls, make_response(200, {"coins": [
            {"id": "solana", "symbol": "sol", "name": "Solana"},
        ]}))

        assert coingecko.search("sol") == [{"id": "solana", "symbol": "SOL", "name": "Solana"}]


# =============================================================================
# YAHOO
# =============================================================================

def make_history(close: float | None) -> MagicMock:
    """Stand-in for the DataFrame returned by yf.Ticker(...).history()."""
    history = MagicMock()
    history.empty = close is None
    history.__contains__.return_value = True
    closes = MagicMock()
    closes.empty = close is None
    closes.iloc.__getitem__.return_value = close
    history.__getitem__.return_value.dropna.return_value = closes
    return history


class TestYahooQuoteResolver:

    @pytest.fixture
    def indian(self) -> YahooQuoteResolver:
        resolver = YahooQuoteResolver(suffix=".NS")
        return resolver

    def test_build_symbol_appends_suffix(self, indian):
        assert indian.build_symbol("reliance") == "RELIANCE.NS"

    def test_build_symbol_keeps_existing_suffix(self, indian):
        assert indian.build_symbol("TCS.NS") == "TCS.NS"

    def test_us_symbol_unchanged(self):
        assert YahooQuoteResolver().build_symbol("aapl") == "AAPL"

    @patch("wealth.services.market_data.yahoo.yf")
    def test_last_close(self, mock_yf, indian):
        mock_yf.Ticker.return_value.history.return_value = make_history(2950.5)

        assert indian.lookup("RELIANCE") == Decimal("2950.5")
        mock_yf.Ticker.assert_called_once_with("RELIANCE.NS")

    @patch("wealth.services.market_data.yahoo.yf")
    def test_empty_history(self, mock_yf, indian):
        mock_yf.Ticker.return_value.history.return_value = make_history(None)
        assert indian.lookup("RELIANCE") is None

    @patch("wealth.services.market_data.yahoo.yf")
    def test_delisted_is_none(self, mock_yf, indian):
        mock_yf.Ticker.return_value.history.side_effect = Exception("No data found, symbol may be delisted")
        assert indian.lookup("GONE") is None

    @patch("wealth.services.market_data.yahoo.yf")
    def test_rate_limit(self, mock_yf, indian):
        mock_yf.Ticker.return_value.history.side_effect = Exception("Too Many Requests. Rate limited.")

        with pytest.raises(RateLimitError):
            indian.lookup("RELIANCE")

    @patch("wealth.services.market_data.yahoo.yf")
    def test_other_errors_unavailable(self, mock_yf, indian):
        mock_yf.Ticker.return_value.history.side_effect = Exception("connection reset")

        with pytest.raises(ProviderUnavailableError):
            indian.lookup("RELIANCE")
