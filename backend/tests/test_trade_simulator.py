"""Tests for the trade simulator."""

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from trademind.models import AlertType, Signal, SignalType, TradeAction
from trademind.services import PriceUnavailableError, TradeSimulator
from trademind.storage import AlertRepository, TradeRepository


@pytest.fixture
def client():
    client = MagicMock()
    client.get_price = AsyncMock(return_value=600.0)
    return client


@pytest.fixture
def rng():
    rng = MagicMock()
    rng.random.return_value = 0.75
    return rng


@pytest.fixture
def simulator(client, rng):
    return TradeSimulator(
        client=client,
        trade_repo=TradeRepository(),
        alert_repo=AlertRepository(),
        rng=rng,
    )


def _signal(signal_type: SignalType, confidence: float) -> Signal:
    return Signal(
        token="binancecoin",
        type=signal_type,
        confidence=confidence,
        price=612.5,
        short_avg=610.0,
        long_avg=600.0,
        short_period=5,
        long_period=20,
        triggered_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


class TestSimulate:
    """Tests for recording a simulated trade."""

    @pytest.mark.asyncio
    async def test_records_trade_at_market_price(self, simulator, client):
        trade = await simulator.simulate("binancecoin", "BUY", 2, strategy_id=1)

        assert trade.id == 1
        assert trade.action == TradeAction.BUY
        assert trade.price == Decimal("600.00000000")
        assert trade.amount == Decimal("2.00000000")
        # (0.75 - 0.5) * 600 * 2 * 0.1
        assert trade.pnl == Decimal("30.00000000")
        assert trade.is_win
        client.get_price.assert_awaited_once_with("binancecoin", vs_currency="usd")

        stored = await simulator.trade_repo.get_by_id(1)
        assert stored == trade

    @pytest.mark.asyncio
    async def test_losing_trade(self, simulator, rng):
        rng.random.return_value = 0.25
        trade = await simulator.simulate("binancecoin", TradeAction.SELL, 2, strategy_id=1)

        assert trade.pnl == Decimal("-30.00000000")
        assert not trade.is_win

    @pytest.mark.asyncio
    async def test_pnl_bounded_by_factor(self, client):
        """Outcome stays within half the factor of notional."""
        simulator = TradeSimulator(client, TradeRepository(), AlertRepository())
        for _ in range(50):
            trade = await simulator.simulate("binancecoin", "BUY", 1, strategy_id=1)
            assert abs(trade.pnl) <= Decimal("30")

    @pytest.mark.asyncio
    async def test_raises_success_alert(self, simulator):
        await simulator.simulate("binancecoin", "SELL", "0.5", strategy_id=1)

        alerts = await simulator.alert_repo.get_all()
        assert len(alerts) == 1
        assert alerts[0].type == AlertType.SUCCESS
        assert alerts[0].title == "Trade Executed: SELL binancecoin"
        assert alerts[0].message == "Successfully sold 0.5 binancecoin at $600.0"

    @pytest.mark.asyncio
    async def test_whole_amount_message(self, simulator):
        await simulator.simulate("ethereum", "BUY", 10, strategy_id=1)

        alerts = await simulator.alert_repo.get_all()
        assert alerts[0].message == "Successfully bought 10 ethereum at $600.0"

    @pytest.mark.asyncio
    async def test_price_unavailable(self, simulator, client):
        client.get_price.return_value = None

        with pytest.raises(PriceUnavailableError):
            await simulator.simulate("unknown-coin", "BUY", 1, strategy_id=1)
        assert await simulator.trade_repo.get_recent() == []

    @pytest.mark.asyncio
    async def test_price_fetch_http_error(self, simulator, client):
        client.get_price.side_effect = httpx.ConnectError("down")

        with pytest.raises(PriceUnavailableError):
            await simulator.simulate("binancecoin", "BUY", 1, strategy_id=1)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -1, "0.000000001", 1e25, "inf", "nan", "abc"])
    async def test_invalid_amount_rejected(self, simulator, amount):
        with pytest.raises(ValueError):
            await simulator.simulate("binancecoin", "BUY", amount, strategy_id=1)

    @pytest.mark.asyncio
    async def test_unknown_action_rejected(self, simulator):
        with pytest.raises(ValueError):
            await simulator.simulate("binancecoin", "HOLD", 1, strategy_id=1)


class TestTradeOnSignal:
    """Tests for auto-trading from signals."""

    @pytest.mark.asyncio
    async def test_hold_skipped(self, simulator):
        assert await simulator.trade_on_signal(_signal(SignalType.HOLD, 95.0), 1, 1) is None

    @pytest.mark.asyncio
    async def test_confidence_at_threshold_skipped(self, simulator):
        """Displayed confidence must exceed the threshold."""
        assert await simulator.trade_on_signal(_signal(SignalType.BUY, 70.4), 1, 1) is None

    @pytest.mark.asyncio
    async def test_confident_signal_trades_at_signal_price(self, simulator, client):
        trade = await simulator.trade_on_signal(_signal(SignalType.SELL, 95.0), 1, 2)

        assert trade is not None
        assert trade.action == TradeAction.SELL
        assert trade.price == Decimal("612.50000000")
        assert trade.strategy_id == 2
        client.get_price.assert_not_awaited()
