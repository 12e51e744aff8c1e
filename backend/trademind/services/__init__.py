"""Business services."""

from trademind.services.price_feed import PriceFeed
from trademind.services.signal_service import SignalService, UnknownStrategyError
from trademind.services.trade_simulator import PriceUnavailableError, TradeSimulator

__all__ = [
    "PriceFeed",
    "SignalService",
    "UnknownStrategyError",
    "PriceUnavailableError",
    "TradeSimulator",
]
