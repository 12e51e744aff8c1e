"""Simulated trade and alert records."""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# Ledger amounts are stored with 8 decimal places (numeric(18, 8))
LEDGER_QUANTUM = Decimal("0.00000001")
# numeric(18, 8) leaves 10 integer digits
MAX_LEDGER_VALUE = Decimal("1e10")


def to_ledger(value: float | Decimal | str) -> Decimal:
    """Convert a value to a ledger-grade Decimal.

    Raises:
        ValueError: If the value is not a finite number below MAX_LEDGER_VALUE
    """
    try:
        amount = Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"not a number: {value!r}") from e
    if not amount.is_finite() or abs(amount) >= MAX_LEDGER_VALUE:
        raise ValueError(f"ledger value out of range: {value!r}")
    return amount.quantize(LEDGER_QUANTUM)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TradeAction(str, Enum):
    """Trade side."""

    BUY = "BUY"
    SELL = "SELL"

    @property
    def past_tense(self) -> str:
        return "bought" if self is TradeAction.BUY else "sold"


class AlertType(str, Enum):
    """Alert severity shown in the dashboard."""

    INFO = "info"
    WARNING = "warning"
    SUCCESS = "success"


class TradeRecord(BaseModel):
    """A simulated trade with fabricated P&L."""

    model_config = ConfigDict(frozen=True)

    id: int = 0
    strategy_id: int
    token: str
    action: TradeAction
    price: Decimal
    amount: Decimal
    pnl: Decimal | None = None
    timestamp: datetime = Field(default_factory=_utcnow)

    @property
    def is_win(self) -> bool:
        return self.pnl is not None and self.pnl > 0

    @property
    def notional(self) -> Decimal:
        return self.price * self.amount


class Alert(BaseModel):
    """A dashboard notification."""

    model_config = ConfigDict(frozen=False)

    id: int = 0
    title: str
    message: str
    type: AlertType = AlertType.INFO
    signal_token: str | None = None
    read: bool = False
    sent_at: datetime = Field(default_factory=_utcnow)
