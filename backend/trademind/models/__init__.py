"""Data models."""

from trademind.models.signal import Signal, SignalType
from trademind.models.price import PriceQuote, PriceSample
from trademind.models.trade import (
    Alert,
    AlertType,
    LEDGER_QUANTUM,
    MAX_LEDGER_VALUE,
    TradeAction,
    TradeRecord,
    to_ledger,
)

__all__ = [
    # Hot path (dataclass)
    "Signal",
    "SignalType",
    "PriceQuote",
    "PriceSample",
    # Cold path (Pydantic)
    "Alert",
    "AlertType",
    "TradeAction",
    "TradeRecord",
    "LEDGER_QUANTUM",
    "MAX_LEDGER_VALUE",
    "to_ledger",
]
