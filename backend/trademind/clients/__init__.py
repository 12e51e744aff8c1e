"""Market data clients."""

from trademind.clients.coingecko_rest import CoinGeckoRestClient, RateLimiter

__all__ = [
    "CoinGeckoRestClient",
    "RateLimiter",
]
