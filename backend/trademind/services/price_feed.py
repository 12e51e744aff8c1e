"""Price feed polling CoinGecko into the price history store.

Every ``interval`` seconds the feed:
1. Fetches spot quotes for all tracked tokens
2. Appends each price to its token's bounded history
3. Keeps the latest quote per token for the prices endpoint
4. Notifies registered callbacks with the fresh quotes

A failed poll is logged and retried on the next tick; it never stops the
loop.
"""

import asyncio
import logging
from typing import Awaitable, Callable

import httpx

from trademind.clients import CoinGeckoRestClient
from trademind.models import PriceQuote
from trademind.storage import PriceHistoryStore

logger = logging.getLogger(__name__)

# Type alias for price update callback
PriceCallback = Callable[[dict[str, PriceQuote]], Awaitable[None]]


class PriceFeed:
    """Single writer of the price history store."""

    def __init__(
        self,
        client: CoinGeckoRestClient,
        store: PriceHistoryStore,
        tokens: list[str],
        vs_currency: str = "usd",
        interval: float = 30.0,
    ):
        """
        Args:
            client: Market data client
            store: Price history store to append to
            tokens: CoinGecko ids to poll
            vs_currency: Quote currency
            interval: Seconds between polls
        """
        self.client = client
        self.store = store
        self.tokens = list(tokens)
        self.vs_currency = vs_currency
        self.interval = interval

        self._latest: dict[str, PriceQuote] = {}
        self._callbacks: list[PriceCallback] = []
        self._task: asyncio.Task | None = None

        self.poll_count = 0
        self.failure_count = 0

    def on_update(self, callback: PriceCallback) -> None:
        """Register callback for fresh quotes.

        Note: Duplicate callbacks are ignored.
        """
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    @property
    def latest_quotes(self) -> dict[str, PriceQuote]:
        """Latest quote per token (copy)."""
        return dict(self._latest)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def poll_once(self) -> int:
        """Fetch quotes once and append them to the store.

        Returns:
            Number of prices stored (0 on failure)
        """
        self.poll_count += 1
        try:
            quotes = await self.client.get_simple_prices(
                self.tokens, vs_currency=self.vs_currency
            )
        except (httpx.HTTPError, ValueError) as e:
            self.failure_count += 1
            logger.warning(f"Price poll failed: {e}")
            return 0

        stored = 0
        for token, quote in quotes.items():
            if self.store.append(token, quote.usd, quote.fetched_at):
                self._latest[token] = quote
                stored += 1

        missing = set(self.tokens) - set(quotes)
        if missing:
            logger.warning(f"No price returned for: {', '.join(sorted(missing))}")

        logger.debug(f"Stored {stored} prices")

        if stored:
            for callback in self._callbacks:
                try:
                    await callback(self.latest_quotes)
                except Exception as e:
                    logger.error(f"Price callback error: {e}")

        return stored

    async def _run(self) -> None:
        while True:
            await self.poll_once()
            await asyncio.sleep(self.interval)

    async def start(self) -> None:
        """Start polling in the background."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run())
        logger.info(
            "Price feed started: %d tokens every %.0fs",
            len(self.tokens),
            self.interval,
        )

    async def stop(self) -> None:
        """Stop polling."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Price feed stopped")
