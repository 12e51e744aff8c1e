"""Signal service: runs each strategy's engine over the price history store."""

import logging
from datetime import datetime, timezone

from trademind.config import Settings, get_settings
from trademind.core import SignalEngine
from trademind.models import Signal
from trademind.storage import PriceHistoryStore, SignalRepository
from trademind.strategy_config import StrategyConfig, StrategyEntry

logger = logging.getLogger(__name__)

DEFAULT_STRATEGY_ID = 0


class UnknownStrategyError(LookupError):
    """Raised when a strategy id is not configured."""


class SignalService:
    """
    Produce signal sets from the latest price histories.

    Signals are recomputed on every call; nothing is cached between
    requests. Tokens without enough history are simply absent from the
    result.
    """

    def __init__(
        self,
        store: PriceHistoryStore,
        strategies: StrategyConfig,
        tracked_tokens: list[str],
        signal_repo: SignalRepository | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.store = store
        self.strategies = strategies
        self.tracked_tokens = list(tracked_tokens)
        self.signal_repo = signal_repo or SignalRepository(self.settings.signal_log_size)

        # Requests without a strategy id cover every tracked token
        self.default_strategy = StrategyEntry(
            id=DEFAULT_STRATEGY_ID,
            name="Default",
            short_period=self.settings.short_period,
            long_period=self.settings.long_period,
        )

        # Engine configs are validated here, at startup
        self._engines: dict[int, SignalEngine] = {
            s.id: SignalEngine(s.to_engine_config(self.settings))
            for s in [self.default_strategy, *strategies.strategies]
        }

    def get_strategy(self, strategy_id: int | None = None) -> StrategyEntry:
        """Resolve a strategy id (None = default windows over all tokens)."""
        if strategy_id is None:
            return self.default_strategy
        strategy = self.strategies.get(strategy_id)
        if strategy is None:
            raise UnknownStrategyError(f"Strategy not found: {strategy_id}")
        return strategy

    def add_strategy(self, entry: StrategyEntry) -> StrategyEntry:
        """Register a new strategy and build its engine.

        Raises:
            ValueError: If the scaling is malformed or the name is taken
        """
        engine = SignalEngine(entry.to_engine_config(self.settings))
        strategy = self.strategies.add(entry)
        self._engines[strategy.id] = engine
        logger.info(f"Added strategy {strategy.id}: {strategy.name}")
        return strategy

    def current_signals(
        self,
        strategy_id: int | None = None,
        now: datetime | None = None,
    ) -> list[Signal]:
        """Evaluate one strategy over a fresh snapshot of the store."""
        strategy = self.get_strategy(strategy_id)
        snapshot = self.store.snapshot()
        histories = {
            token: snapshot.get(token, ())
            for token in strategy.resolve_tokens(self.tracked_tokens)
        }
        return self._engines[strategy.id].evaluate_all(histories, now=now)

    async def record_all(self) -> dict[int, list[Signal]]:
        """Evaluate every active strategy and append results to the signal log.

        Returns:
            Signals by strategy id
        """
        now = datetime.now(timezone.utc)
        results = {}
        for strategy in self.strategies.get_active():
            signals = self.current_signals(strategy.id, now=now)
            if signals:
                await self.signal_repo.save_many(signals)
            results[strategy.id] = signals

        total = sum(len(s) for s in results.values())
        logger.debug(f"Recorded {total} signals across {len(results)} strategies")
        return results

    async def get_latest(self, limit: int = 10, token: str | None = None) -> list[Signal]:
        return await self.signal_repo.get_latest(limit=limit, token=token)
