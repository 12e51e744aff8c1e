"""Data storage layer."""

from trademind.storage.price_history import PriceHistoryStore, DEFAULT_CAPACITY
from trademind.storage.ledger import AlertRepository, SignalRepository, TradeRepository

__all__ = [
    "PriceHistoryStore",
    "DEFAULT_CAPACITY",
    "AlertRepository",
    "SignalRepository",
    "TradeRepository",
]
