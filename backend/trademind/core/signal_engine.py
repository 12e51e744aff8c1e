"""SMA crossover signal engine.

Classifies an instrument from a fast/slow simple moving average comparison:

- short SMA > long SMA → BUY
- short SMA < long SMA → SELL
- equal → HOLD

Confidence scales with the relative gap between the averages:

    BUY:  min(ceiling, baseline + (short - long) / long * multiplier)
    SELL: min(ceiling, baseline + (long - short) / short * multiplier)
    HOLD: baseline

Evaluation is a pure function of the price snapshot it receives. Instruments
that cannot be evaluated (short history, zero or non-finite averages) yield
``None`` and are left out of the signal set.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Mapping, Sequence

from trademind.core.indicators import mean_of_last
from trademind.models import Signal, SignalType


def _is_period(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


@dataclass(frozen=True)
class SignalEngineConfig:
    """Windows and confidence scaling for the SMA crossover engine."""

    short_period: int = 5
    long_period: int = 20
    baseline: float = 50.0
    multiplier: float = 1000.0
    ceiling: float = 95.0
    # Relative difference under which two averages count as equal
    tie_tolerance: float = 0.0

    def __post_init__(self):
        if not _is_period(self.short_period):
            raise ValueError(
                f"short_period must be a positive integer, got {self.short_period!r}"
            )
        if not _is_period(self.long_period):
            raise ValueError(
                f"long_period must be a positive integer, got {self.long_period!r}"
            )
        if self.short_period >= self.long_period:
            raise ValueError(
                f"short_period ({self.short_period}) must be less than "
                f"long_period ({self.long_period})"
            )
        if not 0 < self.ceiling <= 100:
            raise ValueError(f"ceiling must be in (0, 100], got {self.ceiling}")
        if not 0 <= self.baseline <= self.ceiling:
            raise ValueError(
                f"baseline must be in [0, {self.ceiling}], got {self.baseline}"
            )
        if self.multiplier <= 0:
            raise ValueError(f"multiplier must be positive, got {self.multiplier}")
        if self.tie_tolerance < 0:
            raise ValueError(
                f"tie_tolerance must not be negative, got {self.tie_tolerance}"
            )


class SignalEngine:
    """Evaluate price histories into BUY/SELL/HOLD signals."""

    def __init__(self, config: SignalEngineConfig | None = None):
        self.config = config or SignalEngineConfig()

    def is_evaluable(self, prices: Sequence[float]) -> bool:
        """Check whether a history is long enough to evaluate."""
        return len(prices) >= self.config.long_period

    def classify(self, short_avg: float, long_avg: float) -> SignalType:
        """Classify from the two averages, HOLD on a tie."""
        scale = max(abs(short_avg), abs(long_avg))
        if abs(short_avg - long_avg) <= self.config.tie_tolerance * scale:
            return SignalType.HOLD
        if short_avg > long_avg:
            return SignalType.BUY
        return SignalType.SELL

    def confidence(
        self, signal_type: SignalType, short_avg: float, long_avg: float
    ) -> float:
        """Confidence score for a classification, clamped to [0, ceiling]."""
        cfg = self.config
        if signal_type is SignalType.BUY:
            gap = (short_avg - long_avg) / long_avg
        elif signal_type is SignalType.SELL:
            gap = (long_avg - short_avg) / short_avg
        else:
            return cfg.baseline

        score = cfg.baseline + gap * cfg.multiplier
        return max(0.0, min(cfg.ceiling, score))

    def evaluate(
        self,
        token: str,
        prices: Sequence[float],
        now: datetime | None = None,
    ) -> Signal | None:
        """Evaluate one instrument.

        Args:
            token: Instrument identifier
            prices: Price history, oldest first (not modified)
            now: Evaluation timestamp (defaults to current UTC time)

        Returns:
            Signal, or None if the instrument is not evaluable
        """
        cfg = self.config
        if not self.is_evaluable(prices):
            return None

        # Malformed feed data: skip rather than fail or divide by zero
        window = prices[len(prices) - cfg.long_period:]
        if not all(math.isfinite(p) for p in window):
            return None

        short_avg = mean_of_last(window, cfg.short_period)
        long_avg = mean_of_last(window, cfg.long_period)
        if short_avg <= 0 or long_avg <= 0:
            return None

        signal_type = self.classify(short_avg, long_avg)

        return Signal(
            token=token,
            type=signal_type,
            confidence=self.confidence(signal_type, short_avg, long_avg),
            price=float(prices[-1]),
            short_avg=short_avg,
            long_avg=long_avg,
            short_period=cfg.short_period,
            long_period=cfg.long_period,
            triggered_at=now or datetime.now(timezone.utc),
        )

    def evaluate_all(
        self,
        histories: Mapping[str, Sequence[float]],
        now: datetime | None = None,
    ) -> list[Signal]:
        """Evaluate every instrument, omitting the ones that are not evaluable."""
        now = now or datetime.now(timezone.utc)
        signals = []
        for token, prices in histories.items():
            signal = self.evaluate(token, prices, now=now)
            if signal is not None:
                signals.append(signal)
        return signals


def evaluate(
    token: str,
    prices: Sequence[float],
    short_period: int,
    long_period: int,
    now: datetime | None = None,
    **scaling,
) -> Signal | None:
    """Evaluate a single history with the given windows.

    Extra keyword arguments (``baseline``, ``multiplier``, ``ceiling``,
    ``tie_tolerance``) override the default confidence scaling.

    Raises:
        ValueError: If the windows or scaling constants are malformed
    """
    config = SignalEngineConfig(
        short_period=short_period, long_period=long_period, **scaling
    )
    return SignalEngine(config).evaluate(token, prices, now=now)
