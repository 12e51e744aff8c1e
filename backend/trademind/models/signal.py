"""Signal model produced by the SMA crossover engine."""

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class SignalType(str, Enum):
    """Signal classification."""

    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


@dataclass(frozen=True, slots=True)
class Signal:
    """Result of one evaluation of a price history.

    ``confidence`` keeps full precision; ``display_confidence`` is the
    rounded integer served to clients.
    """

    token: str
    type: SignalType
    confidence: float
    price: float
    short_avg: float
    long_avg: float
    short_period: int
    long_period: int
    triggered_at: datetime

    @property
    def display_confidence(self) -> int:
        """Confidence rounded half up."""
        return int(math.floor(self.confidence + 0.5))

    @property
    def is_actionable(self) -> bool:
        return self.type is not SignalType.HOLD

    def to_dict(self) -> dict:
        """Serialize to the dashboard's signal shape.

        ``sma5``/``sma20`` always carry the short/long averages, whatever
        the configured periods; ``shortPeriod``/``longPeriod`` name them.
        """
        return {
            "token": self.token,
            "type": self.type.value,
            "confidence": self.display_confidence,
            "price": self.price,
            "sma5": self.short_avg,
            "sma20": self.long_avg,
            "shortPeriod": self.short_period,
            "longPeriod": self.long_period,
            "triggeredAt": self.triggered_at,
        }
