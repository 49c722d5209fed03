# backend/wealth/services/market_data/mfapi.py
"""
Mutual fund NAVs from mfapi.in.

Endpoints:
    GET {base}/mf/{scheme_code}/latest   -> {"data": [{"date": ..., "nav": "45.1234"}], ...}
    GET {base}/mf/search?q=...           -> [{"schemeCode": 120503, "schemeName": "..."}]
"""

import logging
from decimal import Decimal

from wealth.services.market_data.base import DEFAULT_TIMEOUT, PriceResolver

logger = logging.getLogger(__name__)

DEFAULT_MFAPI_BASE_URL = "https://api.mfapi.in"


class MfapiNavResolver(PriceResolver):
    """
    Latest NAV by scheme code.

    Example:
        resolver = MfapiNavResolver()
        nav = resolver.lookup("120503")
        funds = resolver.search("parag parikh flexi")
    """

    def __init__(
            self,
            base_url: str = DEFAULT_MFAPI_BASE_URL,
            timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        super().__init__(timeout=timeout)
        self._base_url = base_url.rstrip("/")

    @property
    def name(self) -> str:
        return "mfapi"

    def _fetch(self, identifier: str) -> Decimal | None:
        logger.debug(f"Fetching NAV for scheme {identifier}")
        payload = self._get_json(f"{self._base_url}/mf/{identifier}/latest")
        if not isinstance(payload, dict):
            return None

        data = payload.get("data") or []
        if not data or not isinstance(data[0], dict):
            logger.info(f"No NAV data for scheme {identifier}")
            return None
        return self._to_price(data[0].get("nav"))

    def search(self, query: str) -> list[dict[str, str]]:
        """
        Scheme search for autocomplete.

        Every word of a multi-word query must appear in the scheme name;
        mfapi itself is only queried with the first word.

        Returns:
            [{"scheme_code": "...", "scheme_name": "..."}]
        """
        words = [w for w in query.split() if len(w) >= 2]
        if not words:
            return []

        results = self._execute_with_retry(
            self._get_json,
            f"{self._base_url}/mf/search",
            {"q": words[0]},
        )
        if not isinstance(results, list):
            return []

        matches = []
        for fund in results:
            scheme_name = str(fund.get("schemeName", ""))
            lowered = scheme_name.lower()
            if all(w.lower() in lowered for w in words[1:]):
                matches.append({
                    "scheme_code": str(fund.get("schemeCode", "")),
                    "scheme_name": scheme_name,
                })
        return matches
