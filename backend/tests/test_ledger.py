"""Tests for the in-memory trade, signal and alert repositories."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from trademind.models import (
    Alert,
    Signal,
    SignalType,
    TradeAction,
    TradeRecord,
    to_ledger,
)
from trademind.storage import AlertRepository, SignalRepository, TradeRepository

NOW = datetime(2024, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


def _trade(token="binancecoin", pnl="1", strategy_id=1, timestamp=NOW) -> TradeRecord:
    return TradeRecord(
        strategy_id=strategy_id,
        token=token,
        action=TradeAction.BUY,
        price=Decimal("600"),
        amount=Decimal("1"),
        pnl=Decimal(pnl) if pnl is not None else None,
        timestamp=timestamp,
    )


def _signal(token: str, confidence: float = 50.0) -> Signal:
    return Signal(
        token=token,
        type=SignalType.HOLD,
        confidence=confidence,
        price=100.0,
        short_avg=100.0,
        long_avg=100.0,
        short_period=5,
        long_period=20,
        triggered_at=NOW,
    )


class TestTradeRepository:
    """Tests for TradeRepository."""

    @pytest.mark.asyncio
    async def test_save_assigns_sequential_ids(self):
        repo = TradeRepository()
        first = await repo.save(_trade())
        second = await repo.save(_trade())

        assert (first.id, second.id) == (1, 2)
        assert await repo.get_by_id(2) == second
        assert await repo.get_by_id(99) is None

    @pytest.mark.asyncio
    async def test_get_recent_newest_first(self):
        repo = TradeRepository()
        await repo.save(_trade(timestamp=NOW - timedelta(minutes=5)))
        await repo.save(_trade(timestamp=NOW))
        await repo.save(_trade(timestamp=NOW - timedelta(minutes=1)))

        trades = await repo.get_recent()
        assert [t.id for t in trades] == [2, 3, 1]

    @pytest.mark.asyncio
    async def test_get_recent_filters_and_limit(self):
        repo = TradeRepository()
        await repo.save(_trade(token="binancecoin", strategy_id=1))
        await repo.save(_trade(token="ethereum", strategy_id=1))
        await repo.save(_trade(token="ethereum", strategy_id=2))

        assert len(await repo.get_recent(token="ethereum")) == 2
        assert len(await repo.get_recent(strategy_id=2)) == 1
        assert len(await repo.get_recent(token="ethereum", strategy_id=1)) == 1
        assert len(await repo.get_recent(limit=1)) == 1

    @pytest.mark.asyncio
    async def test_stats(self):
        repo = TradeRepository()
        await repo.save(_trade(pnl="10.5"))
        await repo.save(_trade(pnl="-4"))
        await repo.save(_trade(pnl="3", timestamp=NOW - timedelta(days=1)))
        await repo.save(_trade(pnl=None))

        stats = await repo.get_stats(now=NOW)

        assert stats["total_trades"] == 4
        assert stats["wins"] == 2
        assert stats["losses"] == 1
        assert stats["win_rate"] == 66.67
        assert stats["total_pnl"] == Decimal("9.5")
        assert stats["daily_pnl"] == Decimal("6.5")

    @pytest.mark.asyncio
    async def test_stats_empty(self):
        stats = await TradeRepository().get_stats(now=NOW)

        assert stats["total_trades"] == 0
        assert stats["win_rate"] == 0.0
        assert stats["total_pnl"] == Decimal("0")


class TestSignalRepository:
    """Tests for the bounded signal log."""

    @pytest.mark.asyncio
    async def test_latest_newest_first(self):
        repo = SignalRepository()
        await repo.save_many([_signal("binancecoin"), _signal("ethereum")])

        latest = await repo.get_latest()
        assert [s.token for s in latest] == ["ethereum", "binancecoin"]

    @pytest.mark.asyncio
    async def test_filter_by_token(self):
        repo = SignalRepository()
        await repo.save_many([_signal("binancecoin", 51), _signal("ethereum")])
        await repo.save_many([_signal("binancecoin", 52)])

        latest = await repo.get_latest(token="binancecoin")
        assert [s.confidence for s in latest] == [52, 51]

    @pytest.mark.asyncio
    async def test_bounded(self):
        repo = SignalRepository(max_size=3)
        await repo.save_many([_signal(f"token-{i}") for i in range(5)])

        assert len(repo) == 3
        latest = await repo.get_latest(limit=10)
        assert [s.token for s in latest] == ["token-4", "token-3", "token-2"]


class TestAlertRepository:
    """Tests for AlertRepository."""

    @pytest.mark.asyncio
    async def test_create_and_list(self):
        repo = AlertRepository()
        first = await repo.create(Alert(title="a", message="m", sent_at=NOW))
        second = await repo.create(
            Alert(title="b", message="m", sent_at=NOW + timedelta(seconds=1))
        )

        assert (first.id, second.id) == (1, 2)
        alerts = await repo.get_all()
        assert [a.title for a in alerts] == ["b", "a"]
        assert len(await repo.get_all(limit=1)) == 1

    @pytest.mark.asyncio
    async def test_mark_read(self):
        repo = AlertRepository()
        alert = await repo.create(Alert(title="a", message="m"))

        updated = await repo.mark_read(alert.id)

        assert updated.read
        assert await repo.get_all(unread_only=True) == []

    @pytest.mark.asyncio
    async def test_mark_read_missing(self):
        assert await AlertRepository().mark_read(42) is None


class TestToLedger:
    """Tests for ledger-grade Decimal conversion."""

    def test_quantizes_to_eight_places(self):
        assert to_ledger(1.5) == Decimal("1.50000000")
        assert to_ledger("0.123456789") == Decimal("0.12345679")

    @pytest.mark.parametrize("value", [1e25, "1e10", float("inf"), "nan", "abc"])
    def test_out_of_range_is_value_error(self, value):
        with pytest.raises(ValueError):
            to_ledger(value)
