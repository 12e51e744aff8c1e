"""Core modules."""

from trademind.core.indicators import mean_of_last, sma
from trademind.core.signal_engine import SignalEngine, SignalEngineConfig, evaluate

__all__ = [
    "mean_of_last",
    "sma",
    "SignalEngine",
    "SignalEngineConfig",
    "evaluate",
]
