"""In-memory trade, signal and alert repositories.

Records live for the lifetime of the process. Ids are assigned
sequentially and listings are newest first.
"""

import asyncio
from collections import deque
from datetime import datetime, timezone
from decimal import Decimal

from trademind.models import Alert, Signal, TradeRecord


class TradeRepository:
    """Repository for simulated trades."""

    def __init__(self):
        self._trades: dict[int, TradeRecord] = {}
        self._next_id = 1
        self._lock = asyncio.Lock()

    async def save(self, trade: TradeRecord) -> TradeRecord:
        """Store a trade and return it with its assigned id."""
        async with self._lock:
            stored = trade.model_copy(update={"id": self._next_id})
            self._trades[stored.id] = stored
            self._next_id += 1
            return stored

    async def get_by_id(self, trade_id: int) -> TradeRecord | None:
        return self._trades.get(trade_id)

    async def get_recent(
        self,
        limit: int = 100,
        token: str | None = None,
        strategy_id: int | None = None,
    ) -> list[TradeRecord]:
        """Get recent trades, optionally filtered by token or strategy."""
        trades = list(self._trades.values())
        if token:
            trades = [t for t in trades if t.token == token]
        if strategy_id is not None:
            trades = [t for t in trades if t.strategy_id == strategy_id]
        trades.sort(key=lambda t: (t.timestamp, t.id), reverse=True)
        return trades[:limit]

    async def get_stats(self, now: datetime | None = None) -> dict:
        """Get trade statistics.

        Returns:
            Dict with total_trades, wins, losses, win_rate (%),
            total_pnl and daily_pnl (UTC calendar day)
        """
        now = now or datetime.now(timezone.utc)
        trades = list(self._trades.values())

        wins = sum(1 for t in trades if t.pnl is not None and t.pnl > 0)
        losses = sum(1 for t in trades if t.pnl is not None and t.pnl < 0)
        total_pnl = sum((t.pnl for t in trades if t.pnl is not None), Decimal("0"))
        daily_pnl = sum(
            (
                t.pnl
                for t in trades
                if t.pnl is not None and t.timestamp.date() == now.date()
            ),
            Decimal("0"),
        )
        win_rate = wins / (wins + losses) * 100 if (wins + losses) > 0 else 0.0

        return {
            "total_trades": len(trades),
            "wins": wins,
            "losses": losses,
            "win_rate": round(win_rate, 2),
            "total_pnl": total_pnl,
            "daily_pnl": daily_pnl,
        }


class SignalRepository:
    """Bounded log of evaluated signals (oldest dropped first)."""

    def __init__(self, max_size: int = 500):
        self._signals: deque[Signal] = deque(maxlen=max_size)

    async def save_many(self, signals: list[Signal]) -> None:
        self._signals.extend(signals)

    async def get_latest(self, limit: int = 10, token: str | None = None) -> list[Signal]:
        """Get the most recently recorded signals, newest first."""
        result = []
        for signal in reversed(self._signals):
            if token and signal.token != token:
                continue
            result.append(signal)
            if len(result) >= limit:
                break
        return result

    def __len__(self) -> int:
        return len(self._signals)


class AlertRepository:
    """Repository for dashboard alerts."""

    def __init__(self):
        self._alerts: dict[int, Alert] = {}
        self._next_id = 1
        self._lock = asyncio.Lock()

    async def create(self, alert: Alert) -> Alert:
        async with self._lock:
            alert.id = self._next_id
            self._alerts[alert.id] = alert
            self._next_id += 1
            return alert

    async def get_all(self, limit: int | None = None, unread_only: bool = False) -> list[Alert]:
        """Get alerts, newest first."""
        alerts = list(self._alerts.values())
        if unread_only:
            alerts = [a for a in alerts if not a.read]
        alerts.sort(key=lambda a: (a.sent_at, a.id), reverse=True)
        return alerts[:limit] if limit is not None else alerts

    async def mark_read(self, alert_id: int) -> Alert | None:
        """Mark an alert as read. Returns None if it does not exist."""
        alert = self._alerts.get(alert_id)
        if alert is None:
            return None
        alert.read = True
        return alert
