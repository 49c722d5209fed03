# backend/wealth/services/market_data/base.py
"""
Abstract interface for price and NAV resolvers.

A resolver turns an identifier (mutual fund scheme code, ticker, coin
symbol) into the latest known price. Bulk refreshes depend only on this
interface, so tests can swap in a mock resolver.

Design Principles:
- One method: lookup(identifier) -> Decimal | None
- None means "no usable price" (unknown identifier, empty payload,
  non-positive price); the caller leaves the instrument unchanged
- One request per lookup by default, so a caller never waits longer than
  the configured timeout; failures surface to the caller (bulk refreshes
  tally them)
- Every HTTP request carries the configured timeout

Retry Behavior:
    `_execute_with_retry` may retry ProviderUnavailableError with exponential
    backoff, but the whole call stops once the configured timeout has
    elapsed. RateLimitError is never retried. Subclasses can override:

    - MAX_RETRY_ATTEMPTS: Total attempts (default: 1, no retry)
    - RETRY_MIN_WAIT: Minimum wait in seconds (default: 1)
    - RETRY_MAX_WAIT: Maximum wait in seconds (default: 10)
    - RETRY_MULTIPLIER: Exponential multiplier (default: 1)
"""

import logging
import math
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, TypeVar

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    stop_after_delay,
    wait_exponential,
)

from wealth.services.exceptions import (
    ExternalLookupFailure,
    ProviderUnavailableError,
    RateLimitError,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')

DEFAULT_TIMEOUT = 10.0
PRICE_PRECISION = Decimal("0.00000001")


class PriceResolver(ABC):
    """
    Base class for every price/NAV source.

    Subclasses implement `name` and `_fetch`; `lookup` wraps them in the
    bounded retry policy.
    """

    MAX_RETRY_ATTEMPTS: int = 1
    RETRY_MIN_WAIT: int = 1
    RETRY_MAX_WAIT: int = 10
    RETRY_MULTIPLIER: int = 1

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._timeout = timeout

    @property
    @abstractmethod
    def name(self) -> str:
        """Resolver name used in logs and error messages."""
        pass

    @abstractmethod
    def _fetch(self, identifier: str) -> Decimal | None:
        """Single attempt at resolving `identifier` (called by the retry wrapper)."""
        pass

    def lookup(self, identifier: str) -> Decimal | None:
        """
        Latest price for `identifier`.

        Returns:
            Positive price, or None when the source has no usable price

        Raises:
            ProviderUnavailableError: Source unreachable
            RateLimitError: Source is rate limiting us
            ExternalLookupFailure: Any other non-retryable source error
        """
        identifier = (identifier or "").strip()
        if not identifier:
            return None
        return self._execute_with_retry(self._fetch, identifier)

    # =========================================================================
    # RETRY HELPER METHOD
    # =========================================================================

    def _execute_with_retry(
            self,
            func: Callable[..., T],
            *args: Any,
            **kwargs: Any,
    ) -> T:
        """
        Execute a function with retry logic for transient failures.

        Retries ProviderUnavailableError while attempts remain and the
        timeout budget is not spent; anything else propagates on the first
        attempt.
        """

        @retry(
            stop=stop_after_attempt(self.MAX_RETRY_ATTEMPTS) | stop_after_delay(self._timeout),
            wait=wait_exponential(
                multiplier=self.RETRY_MULTIPLIER,
                min=self.RETRY_MIN_WAIT,
                max=self.RETRY_MAX_WAIT,
            ),
            retry=retry_if_exception_type(ProviderUnavailableError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        def _inner() -> T:
            return func(*args, **kwargs)

        return _inner()

    # =========================================================================
    # HTTP HELPERS
    # =========================================================================

    def _get_json(self, url: str, params: dict[str, Any] | None = None) -> Any | None:
        """
        GET a JSON document.

        Returns:
            Decoded body, or None for 404 and undecodable bodies

        Raises:
            RateLimitError: HTTP 429
            ProviderUnavailableError: Network error, timeout or HTTP 5xx
            ExternalLookupFailure: Any other non-success status
        """
        try:
            with httpx.Client(timeout=self._timeout) as client:
                response = client.get(url, params=params)
        except httpx.RequestError as e:
            logger.error(f"{self.name} request to {url} failed: {e}")
            raise ProviderUnavailableError(provider=self.name, reason=str(e))

        if response.status_code == 429:
            raise RateLimitError(provider=self.name, retry_after=_retry_after(response))
        if response.status_code >= 500:
            raise ProviderUnavailableError(
                provider=self.name,
                reason=f"HTTP {response.status_code}",
            )
        if response.status_code == 404:
            return None
        if response.status_code >= 400:
            raise ExternalLookupFailure(
                f"{self.name} rejected the request with HTTP {response.status_code}",
                provider=self.name,
            )

        try:
            return response.json()
        except ValueError:
            logger.warning(f"{self.name} returned a non-JSON body for {url}")
            return None

    @staticmethod
    def _to_price(value: Any) -> Decimal | None:
        """Positive Decimal price, or None for missing, NaN or non-positive values."""
        if value is None:
            return None
        try:
            if math.isnan(float(value)):
                return None
            price = Decimal(str(value)).quantize(PRICE_PRECISION)
        except (TypeError, ValueError, InvalidOperation):
            return None
        return price if price > 0 else None


def _retry_after(response: httpx.Response) -> int | None:
    header = response.headers.get("Retry-After")
    if header and header.isdigit():
        return int(header)
    return None
