"""Price records."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class PriceSample:
    """One entry of an instrument's price history."""

    price: float
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class PriceQuote:
    """Latest market quote for an instrument."""

    token: str
    usd: float
    usd_24h_change: float | None
    fetched_at: datetime

    def to_dict(self) -> dict:
        return {"usd": self.usd, "usd_24h_change": self.usd_24h_change}
