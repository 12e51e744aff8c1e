"""CoinGecko REST API client for spot prices."""

import asyncio
import logging
import math
from datetime import datetime, timezone
from typing import Any, Iterable

import httpx

from trademind.config import Settings
from trademind.models import PriceQuote

logger = logging.getLogger(__name__)


class RateLimiter:
    """Spaces requests evenly within a per-minute call budget.

    Each caller reserves the next free slot, then sleeps outside the lock.
    """

    def __init__(self, calls_per_minute: int = 30):
        if calls_per_minute <= 0:
            raise ValueError(f"calls_per_minute must be positive, got {calls_per_minute}")
        self.min_interval = 60.0 / calls_per_minute
        self._next_slot = 0.0
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Wait for this caller's slot."""
        loop = asyncio.get_running_loop()
        async with self._lock:
            now = loop.time()
            slot = max(now, self._next_slot)
            self._next_slot = slot + self.min_interval
        delay = slot - now
        if delay > 0:
            await asyncio.sleep(delay)


def _as_price(value: Any) -> float | None:
    """Coerce a payload value to a finite float, or None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    value = float(value)
    return value if math.isfinite(value) else None


class CoinGeckoRestClient:
    """CoinGecko public API client (``/api/v3/simple/price``)."""

    BASE_URL = "https://api.coingecko.com"

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str = "",
        calls_per_minute: int = 30,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Args:
            base_url: API root (defaults to the public endpoint)
            api_key: Optional demo API key
            calls_per_minute: Request budget
            timeout: Per-request timeout in seconds
            transport: Custom httpx transport (for testing)
        """
        self.base_url = base_url or self.BASE_URL
        self.api_key = api_key
        self.timeout = timeout
        self.rate_limiter = RateLimiter(calls_per_minute)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "CoinGeckoRestClient":
        """Client configured from application settings."""
        return cls(
            base_url=settings.coingecko_base_url,
            api_key=settings.coingecko_api_key,
            calls_per_minute=settings.coingecko_calls_per_minute,
            timeout=settings.coingecko_timeout,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            headers = {"Accept": "application/json"}
            if self.api_key:
                headers["x-cg-demo-api-key"] = self.api_key
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(
        self, method: str, endpoint: str, params: dict[str, Any] | None = None
    ) -> Any:
        """Make an API request with rate limiting."""
        await self.rate_limiter.acquire()
        client = await self._get_client()
        response = await client.request(method, endpoint, params=params)
        response.raise_for_status()
        return response.json()

    async def get_simple_prices(
        self,
        ids: Iterable[str],
        vs_currency: str = "usd",
        include_24h_change: bool = True,
    ) -> dict[str, PriceQuote]:
        """
        Fetch spot prices for several coins.

        Args:
            ids: CoinGecko coin ids (e.g., "binancecoin")
            vs_currency: Quote currency
            include_24h_change: Also request the 24h change

        Returns:
            Quotes by coin id; coins missing from the payload or carrying
            a malformed price are omitted

        Raises:
            httpx.HTTPError: On transport errors or non-2xx responses
        """
        ids = list(ids)
        if not ids:
            return {}

        params: dict[str, Any] = {
            "ids": ",".join(ids),
            "vs_currencies": vs_currency,
        }
        if include_24h_change:
            params["include_24hr_change"] = "true"

        data = await self._request("GET", "/api/v3/simple/price", params)
        if not isinstance(data, dict):
            logger.warning(f"Unexpected price payload type: {type(data).__name__}")
            return {}

        fetched_at = datetime.now(timezone.utc)
        change_key = f"{vs_currency}_24h_change"

        quotes = {}
        for coin_id, entry in data.items():
            if not isinstance(entry, dict):
                continue
            price = _as_price(entry.get(vs_currency))
            if price is None:
                logger.warning(f"Malformed price for {coin_id}: {entry!r}")
                continue
            quotes[coin_id] = PriceQuote(
                token=coin_id,
                usd=price,
                usd_24h_change=_as_price(entry.get(change_key)),
                fetched_at=fetched_at,
            )

        return quotes

    async def get_price(self, token: str, vs_currency: str = "usd") -> float | None:
        """Get the current price of one coin, or None if unavailable."""
        quotes = await self.get_simple_prices(
            [token], vs_currency=vs_currency, include_24h_change=False
        )
        quote = quotes.get(token)
        return quote.usd if quote else None
