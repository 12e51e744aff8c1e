"""Main application entry point."""

import asyncio
import logging
from contextlib import asynccontextmanager

# Configure logging FIRST, before any other imports
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)

# Reduce noise from third-party libraries (must be set before importing them)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("asyncio").setLevel(logging.WARNING)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

# Try to use uvloop for better performance (Unix only)
try:
    import uvloop  # noqa: F401
    _UVLOOP_AVAILABLE = True
except ImportError:
    _UVLOOP_AVAILABLE = False

from trademind import __version__
from trademind.api import router
from trademind.clients import CoinGeckoRestClient
from trademind.config import Settings, get_settings
from trademind.models import Alert, AlertType, PriceQuote
from trademind.services import PriceFeed, SignalService, TradeSimulator
from trademind.storage import (
    AlertRepository,
    PriceHistoryStore,
    SignalRepository,
    TradeRepository,
)
from trademind.strategy_config import StrategyConfig, load_strategy_config

logger = logging.getLogger(__name__)

VERSION = __version__


def build_services(
    app: FastAPI,
    settings: Settings,
    client: CoinGeckoRestClient,
    strategies: StrategyConfig,
) -> None:
    """Create the stores and services and attach them to ``app.state``.

    Raises:
        ValueError: If a strategy's windows or scaling are malformed
    """
    store = PriceHistoryStore(capacity=settings.price_history_size, tokens=settings.tokens)
    trade_repo = TradeRepository()
    alert_repo = AlertRepository()
    signal_repo = SignalRepository(max_size=settings.signal_log_size)

    app.state.settings = settings
    app.state.client = client
    app.state.price_store = store
    app.state.trade_repo = trade_repo
    app.state.alert_repo = alert_repo
    app.state.price_feed = PriceFeed(
        client=client,
        store=store,
        tokens=settings.tokens,
        vs_currency=settings.vs_currency,
        interval=settings.price_poll_interval,
    )
    app.state.signal_service = SignalService(
        store=store,
        strategies=strategies,
        tracked_tokens=settings.tokens,
        signal_repo=signal_repo,
        settings=settings,
    )
    app.state.trade_simulator = TradeSimulator(
        client=client,
        trade_repo=trade_repo,
        alert_repo=alert_repo,
        pnl_factor=settings.simulated_pnl_factor,
        vs_currency=settings.vs_currency,
    )


def make_price_handler(app: FastAPI):
    """Build the feed callback: record signals, then auto-trade if enabled."""

    async def on_prices_updated(quotes: dict[str, PriceQuote]) -> None:
        settings: Settings = app.state.settings
        results = await app.state.signal_service.record_all()

        if not settings.auto_trade_enabled:
            return

        simulator: TradeSimulator = app.state.trade_simulator
        for strategy_id, signals in results.items():
            for signal in signals:
                await simulator.trade_on_signal(
                    signal,
                    amount=settings.auto_trade_amount,
                    strategy_id=strategy_id,
                    min_confidence=settings.auto_trade_min_confidence,
                )

    return on_prices_updated


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    client: CoinGeckoRestClient = app.state.client

    logger.info("Starting TradeMind signal desk...")
    logger.info(f"Event loop: {type(asyncio.get_running_loop()).__module__}")

    try:
        strategies = app.state.strategies
        if strategies is None:
            strategies = load_strategy_config(settings=settings)
        build_services(app, settings, client, strategies)

        await app.state.alert_repo.create(
            Alert(
                title="Welcome to TradeMindAI!",
                message="Signals appear once each token has enough price history.",
                type=AlertType.INFO,
            )
        )

        feed: PriceFeed = app.state.price_feed
        feed.on_update(make_price_handler(app))
        if settings.price_feed_enabled:
            await feed.start()
        else:
            logger.info("Price feed disabled")

    except Exception as e:
        logger.error(f"Startup failed: {e}")
        try:
            await client.close()
        except Exception as cleanup_err:
            logger.warning(f"Error closing market data client: {cleanup_err}")
        raise  # Re-raise to prevent app from starting in broken state

    yield

    # Shutdown
    logger.info("Shutting down...")
    await app.state.price_feed.stop()
    await client.close()
    logger.info("Shutdown complete")


def create_app(
    settings: Settings | None = None,
    client: CoinGeckoRestClient | None = None,
    strategies: StrategyConfig | None = None,
) -> FastAPI:
    """Create the FastAPI app.

    Args:
        settings: Settings (defaults to environment)
        client: Market data client (defaults to CoinGecko from settings)
        strategies: Strategy config (defaults to strategies.yaml)
    """
    settings = settings or get_settings()

    # Create FastAPI app with orjson for faster JSON serialization
    app = FastAPI(
        title="TradeMind Signal Desk",
        description="SMA crossover signals for a demo trading dashboard",
        version=VERSION,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
    )
    app.state.settings = settings
    app.state.client = client or CoinGeckoRestClient.from_settings(settings)
    app.state.strategies = strategies

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, restrict this
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include REST routes
    app.include_router(router, prefix="/api")

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": "TradeMind Signal Desk",
            "version": VERSION,
            "docs": "/docs",
        }

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()


def main():
    """Run the application."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "trademind.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        loop="uvloop" if _UVLOOP_AVAILABLE else "asyncio",
    )


if __name__ == "__main__":
    main()
