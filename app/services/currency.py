"""
Live exchange rates with a TTL cache and per-currency fallback to the defaults.
"""

from typing import Dict, Optional
import asyncio
import logging
import time

import httpx

from app.utils.currency import BASE_CURRENCY, CurrencyRate, DEFAULT_CURRENCY_RATES

logger = logging.getLogger(__name__)


class CurrencyRateProvider:
    """
    Fetch GHS-based exchange rates and cache them.

    The provider never raises for an unreachable or malformed source: every
    currency the source does not supply keeps its default rate.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        ttl_seconds: int = 3600,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.url = url
        self.ttl_seconds = ttl_seconds
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None
        self._rates: Optional[Dict[str, CurrencyRate]] = None
        self._fetched_at: float = 0.0
        self._refresh_lock = asyncio.Lock()
        self.source = "default"

    @property
    def is_fresh(self) -> bool:
        return self._rates is not None and (time.monotonic() - self._fetched_at) < self.ttl_seconds

    async def get_rates(self, force_refresh: bool = False) -> Dict[str, CurrencyRate]:
        """Cached rates, refreshed once per expiry however many callers are waiting."""
        if self.is_fresh and not force_refresh:
            return self._rates

        requested_at = self._fetched_at
        async with self._refresh_lock:
            # Another caller refreshed while this one waited
            if self.is_fresh and (not force_refresh or self._fetched_at > requested_at):
                return self._rates
            self._rates = await self._fetch()
            self._fetched_at = time.monotonic()
            return self._rates

    async def _fetch(self) -> Dict[str, CurrencyRate]:
        try:
            response = await self._client.get(self.url)
            response.raise_for_status()
            payload = response.json()
            live_rates = payload.get("rates") if isinstance(payload, dict) else None
            if not isinstance(live_rates, dict):
                raise ValueError("Response has no rates table")
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Failed to fetch currency rates, using defaults: {e}")
            self.source = "default"
            return dict(DEFAULT_CURRENCY_RATES)

        rates = {}
        for code, default in DEFAULT_CURRENCY_RATES.items():
            live_rate = live_rates.get(code)
            if code == BASE_CURRENCY:
                rates[code] = default
            elif isinstance(live_rate, (int, float)) and live_rate > 0:
                rates[code] = default.model_copy(update={"rate": float(live_rate)})
            else:
                logger.debug(f"No live rate for {code}, keeping default {default.rate}")
                rates[code] = default

        self.source = "live"
        logger.info(
            "Fetched live currency rates: "
            + ", ".join(f"1 GHS = {rate.rate} {code}" for code, rate in rates.items() if code != BASE_CURRENCY)
        )
        return rates

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
