"""REST API routes."""

import logging
import math
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, ConfigDict, Field

from trademind import __version__
from trademind.config import Settings
from trademind.core import sma
from trademind.models import (
    MAX_LEDGER_VALUE,
    Signal,
    SignalType,
    TradeAction,
    TradeRecord,
    to_ledger,
)
from trademind.services import (
    PriceFeed,
    PriceUnavailableError,
    SignalService,
    TradeSimulator,
    UnknownStrategyError,
)
from trademind.storage import AlertRepository, PriceHistoryStore, TradeRepository
from trademind.strategy_config import StrategyEntry

logger = logging.getLogger(__name__)

router = APIRouter()


# Response models
class SignalResponse(BaseModel):
    """Signal response model.

    ``sma5``/``sma20`` hold the short/long averages for whatever windows
    ``shortPeriod``/``longPeriod`` report.
    """

    model_config = ConfigDict(populate_by_name=True)

    token: str
    type: str
    confidence: int
    price: float
    sma5: float
    sma20: float
    short_period: int = Field(alias="shortPeriod")
    long_period: int = Field(alias="longPeriod")
    triggered_at: datetime = Field(alias="triggeredAt")

    @classmethod
    def from_signal(cls, signal: Signal) -> "SignalResponse":
        return cls(**signal.to_dict())


class TradeResponse(BaseModel):
    """Trade response model."""

    id: int
    strategy_id: int
    token: str
    action: str
    price: float
    amount: float
    pnl: Optional[float] = None
    timestamp: datetime

    @classmethod
    def from_trade(cls, trade: TradeRecord) -> "TradeResponse":
        return cls(
            id=trade.id,
            strategy_id=trade.strategy_id,
            token=trade.token,
            action=trade.action.value,
            price=float(trade.price),
            amount=float(trade.amount),
            pnl=float(trade.pnl) if trade.pnl is not None else None,
            timestamp=trade.timestamp,
        )


class AlertResponse(BaseModel):
    """Alert response model."""

    id: int
    title: str
    message: str
    type: str
    read: bool
    sent_at: datetime


class StrategyResponse(BaseModel):
    """Strategy response model."""

    id: int
    name: str
    type: str
    short_period: int
    long_period: int
    tokens: list[str]
    active: bool


_LEDGER_LIMIT = float(MAX_LEDGER_VALUE)


class SimulateTradeRequest(BaseModel):
    """Simulated trade request model."""

    model_config = ConfigDict(populate_by_name=True)

    token: str = Field(min_length=1)
    action: TradeAction
    amount: float = Field(gt=0, lt=_LEDGER_LIMIT, allow_inf_nan=False)
    strategy_id: int = Field(1, alias="strategyId")


class TradeCreateRequest(BaseModel):
    """Recorded trade request model (price and P&L supplied by the caller)."""

    model_config = ConfigDict(populate_by_name=True)

    token: str = Field(min_length=1)
    action: TradeAction
    price: float = Field(gt=0, lt=_LEDGER_LIMIT, allow_inf_nan=False)
    amount: float = Field(gt=0, lt=_LEDGER_LIMIT, allow_inf_nan=False)
    pnl: Optional[float] = Field(
        None, gt=-_LEDGER_LIMIT, lt=_LEDGER_LIMIT, allow_inf_nan=False
    )
    strategy_id: int = Field(1, alias="strategyId")


class StrategyCreateRequest(BaseModel):
    """New strategy request model."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    short_period: int = Field(5, gt=0, alias="shortPeriod")
    long_period: int = Field(20, gt=0, alias="longPeriod")
    tokens: list[str] = []
    active: bool = True


class SystemStatus(BaseModel):
    """System status response."""

    status: str
    version: str
    tokens: list[str]
    feed_running: bool
    polls: int
    poll_failures: int
    history_lengths: dict[str, int]


# Dependencies: services are created by the app lifespan and kept on app.state
def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> PriceHistoryStore:
    return request.app.state.price_store


def get_feed(request: Request) -> PriceFeed:
    return request.app.state.price_feed


def get_signal_service(request: Request) -> SignalService:
    return request.app.state.signal_service


def get_simulator(request: Request) -> TradeSimulator:
    return request.app.state.trade_simulator


def get_trade_repo(request: Request) -> TradeRepository:
    return request.app.state.trade_repo


def get_alert_repo(request: Request) -> AlertRepository:
    return request.app.state.alert_repo


def _nan_to_none(values) -> list[float | None]:
    return [None if math.isnan(v) else float(v) for v in values]


@router.get("/status", response_model=SystemStatus)
async def get_status(
    settings: Settings = Depends(get_settings_dep),
    feed: PriceFeed = Depends(get_feed),
    store: PriceHistoryStore = Depends(get_store),
):
    """Get system status."""
    return SystemStatus(
        status="running",
        version=__version__,
        tokens=settings.tokens,
        feed_running=feed.is_running,
        polls=feed.poll_count,
        poll_failures=feed.failure_count,
        history_lengths={t: len(store.prices(t)) for t in store.tokens()},
    )


@router.get("/prices")
async def get_prices(feed: PriceFeed = Depends(get_feed)):
    """Get the latest quotes ({token: {usd, usd_24h_change}})."""
    return {token: quote.to_dict() for token, quote in feed.latest_quotes.items()}


@router.get("/prices/{token}/history")
async def get_price_history(
    token: str,
    strategy_id: Optional[int] = Query(None, description="Strategy for SMA windows (default: settings)"),
    store: PriceHistoryStore = Depends(get_store),
    service: SignalService = Depends(get_signal_service),
):
    """Get a token's price history with short/long SMA overlays."""
    if token not in store:
        raise HTTPException(status_code=404, detail="Token not tracked")

    try:
        strategy = service.get_strategy(strategy_id)
    except UnknownStrategyError:
        raise HTTPException(status_code=404, detail="Strategy not found")

    samples = store.samples(token)
    prices = [s.price for s in samples]

    return {
        "token": token,
        "shortPeriod": strategy.short_period,
        "longPeriod": strategy.long_period,
        "prices": [{"price": s.price, "timestamp": s.timestamp} for s in samples],
        "shortSma": _nan_to_none(sma(prices, strategy.short_period)),
        "longSma": _nan_to_none(sma(prices, strategy.long_period)),
    }


@router.get("/sma-signals", response_model=list[SignalResponse])
async def get_sma_signals(
    strategy_id: Optional[int] = Query(None, description="Strategy (default: every tracked token)"),
    service: SignalService = Depends(get_signal_service),
):
    """Compute the current signal set from the latest price histories."""
    try:
        signals = service.current_signals(strategy_id)
    except UnknownStrategyError:
        raise HTTPException(status_code=404, detail="Strategy not found")

    return [SignalResponse.from_signal(s) for s in signals]


@router.get("/signals/latest", response_model=list[SignalResponse])
async def get_latest_signals(
    limit: int = Query(10, ge=1, le=500, description="Maximum signals to return"),
    token: Optional[str] = Query(None, description="Filter by token"),
    service: SignalService = Depends(get_signal_service),
):
    """Get recently recorded signals."""
    signals = await service.get_latest(limit=limit, token=token)
    return [SignalResponse.from_signal(s) for s in signals]


@router.get("/strategies", response_model=list[StrategyResponse])
async def get_strategies(service: SignalService = Depends(get_signal_service)):
    """Get configured strategies."""
    return [
        StrategyResponse(**s.model_dump(mode="json", include=set(StrategyResponse.model_fields)))
        for s in service.strategies.strategies
    ]


@router.get("/strategies/{strategy_id}", response_model=StrategyResponse)
async def get_strategy(
    strategy_id: int,
    service: SignalService = Depends(get_signal_service),
):
    """Get a specific strategy by ID."""
    strategy = service.strategies.get(strategy_id)
    if strategy is None:
        raise HTTPException(status_code=404, detail="Strategy not found")
    return StrategyResponse(**strategy.model_dump(mode="json", include=set(StrategyResponse.model_fields)))


@router.post("/strategies", response_model=StrategyResponse)
async def create_strategy(
    request: StrategyCreateRequest,
    service: SignalService = Depends(get_signal_service),
):
    """Add an SMA crossover strategy (evaluated from the next request on)."""
    try:
        strategy = service.add_strategy(StrategyEntry(**request.model_dump()))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return StrategyResponse(**strategy.model_dump(mode="json", include=set(StrategyResponse.model_fields)))


@router.get("/trades", response_model=list[TradeResponse])
async def get_trades(
    token: Optional[str] = Query(None, description="Filter by token"),
    strategy_id: Optional[int] = Query(None, description="Filter by strategy"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum trades to return"),
    repo: TradeRepository = Depends(get_trade_repo),
):
    """Get recent simulated trades."""
    trades = await repo.get_recent(limit=limit, token=token, strategy_id=strategy_id)
    return [TradeResponse.from_trade(t) for t in trades]


@router.post("/trades", response_model=TradeResponse)
async def record_trade(
    request: TradeCreateRequest,
    repo: TradeRepository = Depends(get_trade_repo),
    service: SignalService = Depends(get_signal_service),
):
    """Record a trade with caller-supplied price and P&L."""
    if service.strategies.get(request.strategy_id) is None:
        raise HTTPException(status_code=404, detail="Strategy not found")

    try:
        price = to_ledger(request.price)
        amount = to_ledger(request.amount)
        pnl = to_ledger(request.pnl) if request.pnl is not None else None
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if price <= 0 or amount <= 0:
        raise HTTPException(status_code=400, detail="price and amount must be at least 0.00000001")

    trade = TradeRecord(
        strategy_id=request.strategy_id,
        token=request.token,
        action=request.action,
        price=price,
        amount=amount,
        pnl=pnl,
    )
    return TradeResponse.from_trade(await repo.save(trade))


@router.post("/simulate-trade", response_model=TradeResponse)
async def simulate_trade(
    request: SimulateTradeRequest,
    simulator: TradeSimulator = Depends(get_simulator),
    service: SignalService = Depends(get_signal_service),
):
    """
    Record a simulated trade at the current market price.

    P&L is random; nothing is sent to an exchange.
    """
    if service.strategies.get(request.strategy_id) is None:
        raise HTTPException(status_code=404, detail="Strategy not found")

    try:
        trade = await simulator.simulate(
            token=request.token,
            action=request.action,
            amount=request.amount,
            strategy_id=request.strategy_id,
        )
    except PriceUnavailableError as e:
        logger.warning(f"Trade simulation failed: {e}")
        raise HTTPException(status_code=400, detail="Unable to get current price")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return TradeResponse.from_trade(trade)


@router.get("/alerts", response_model=list[AlertResponse])
async def get_alerts(
    unread_only: bool = Query(False, description="Only unread alerts"),
    limit: Optional[int] = Query(None, ge=1, le=1000, description="Maximum alerts"),
    repo: AlertRepository = Depends(get_alert_repo),
):
    """Get alerts, newest first."""
    alerts = await repo.get_all(limit=limit, unread_only=unread_only)
    return [AlertResponse(**a.model_dump(mode="json", include=set(AlertResponse.model_fields))) for a in alerts]


@router.post("/alerts/{alert_id}/read", response_model=AlertResponse)
async def mark_alert_read(
    alert_id: int,
    repo: AlertRepository = Depends(get_alert_repo),
):
    """Mark an alert as read."""
    alert = await repo.mark_read(alert_id)
    if alert is None:
        raise HTTPException(status_code=404, detail="Alert not found")
    return AlertResponse(**alert.model_dump(mode="json", include=set(AlertResponse.model_fields)))


@router.get("/stats")
async def get_stats(
    repo: TradeRepository = Depends(get_trade_repo),
    service: SignalService = Depends(get_signal_service),
):
    """Get trading statistics."""
    stats = await repo.get_stats()
    signals = service.current_signals()

    return {
        "total_trades": stats["total_trades"],
        "wins": stats["wins"],
        "losses": stats["losses"],
        "win_rate": stats["win_rate"],
        "total_pnl": float(stats["total_pnl"]),
        "daily_pnl": float(stats["daily_pnl"]),
        "active_signals": sum(1 for s in signals if s.type is not SignalType.HOLD),
        "active_strategies": len(service.strategies.get_active()),
    }
