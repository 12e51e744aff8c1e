"""Strategy configuration loaded from strategies.yaml.

Supports:
- Several SMA crossover strategies, each with its own windows and tokens
- Optional per-strategy confidence scaling overrides
- No YAML file = one default strategy built from settings
"""

import logging
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, model_validator

from trademind.config import Settings, get_settings
from trademind.core.signal_engine import SignalEngineConfig

logger = logging.getLogger(__name__)

_VALID_TYPES = ("sma_crossover",)


class StrategyEntry(BaseModel):
    """A single SMA crossover strategy."""

    id: int = 0
    name: str
    type: str = "sma_crossover"
    short_period: int = 5
    long_period: int = 20
    tokens: list[str] = []  # empty = every tracked token
    active: bool = True
    confidence_baseline: float | None = None
    confidence_multiplier: float | None = None
    confidence_ceiling: float | None = None

    @model_validator(mode="after")
    def _validate(self):
        if self.type not in _VALID_TYPES:
            raise ValueError(f"type must be one of {_VALID_TYPES}, got '{self.type}'")
        if self.short_period <= 0 or self.long_period <= 0:
            raise ValueError(
                f"periods must be positive, got short={self.short_period} "
                f"long={self.long_period}"
            )
        if self.short_period >= self.long_period:
            raise ValueError(
                f"short_period ({self.short_period}) must be less than "
                f"long_period ({self.long_period})"
            )
        return self

    def to_engine_config(self, settings: Settings | None = None) -> SignalEngineConfig:
        """Build the engine config, filling scaling gaps from settings."""
        settings = settings or get_settings()
        return SignalEngineConfig(
            short_period=self.short_period,
            long_period=self.long_period,
            baseline=_pick(self.confidence_baseline, settings.confidence_baseline),
            multiplier=_pick(self.confidence_multiplier, settings.confidence_multiplier),
            ceiling=_pick(self.confidence_ceiling, settings.confidence_ceiling),
            tie_tolerance=settings.tie_tolerance,
        )

    def resolve_tokens(self, tracked: list[str]) -> list[str]:
        """Tokens this strategy evaluates, restricted to tracked ones."""
        if not self.tokens:
            return list(tracked)
        return [t for t in self.tokens if t in tracked]


def _pick(value: float | None, default: float) -> float:
    return default if value is None else value


class StrategyConfig(BaseModel):
    """Top-level strategies.yaml configuration."""

    strategies: list[StrategyEntry] = []

    @model_validator(mode="after")
    def _assign_ids(self):
        names = [s.name for s in self.strategies]
        if len(names) != len(set(names)):
            raise ValueError(f"strategy names must be unique, got {names}")
        for index, strategy in enumerate(self.strategies, start=1):
            strategy.id = index
        return self

    def get(self, strategy_id: int) -> StrategyEntry | None:
        for strategy in self.strategies:
            if strategy.id == strategy_id:
                return strategy
        return None

    def get_active(self) -> list[StrategyEntry]:
        return [s for s in self.strategies if s.active]

    def add(self, entry: StrategyEntry) -> StrategyEntry:
        """Append a strategy with the next free id.

        Raises:
            ValueError: If the name is already taken
        """
        if any(s.name == entry.name for s in self.strategies):
            raise ValueError(f"strategy name already exists: '{entry.name}'")
        entry.id = max((s.id for s in self.strategies), default=0) + 1
        self.strategies.append(entry)
        return entry


def default_strategy_config(settings: Settings | None = None) -> StrategyConfig:
    """Single strategy mirroring the settings' SMA windows."""
    settings = settings or get_settings()
    return StrategyConfig(
        strategies=[
            StrategyEntry(
                name="SMA Crossover",
                short_period=settings.short_period,
                long_period=settings.long_period,
            )
        ]
    )


_DEFAULT_PATH = Path(__file__).parent.parent / "strategies.yaml"


def load_strategy_config(
    path: Path | None = None, settings: Settings | None = None
) -> StrategyConfig:
    """Load strategy config from YAML file.

    Falls back to the default strategy if the file doesn't exist or
    defines no strategies.

    Raises:
        ValueError: If a strategy is malformed
    """
    config_path = path or _DEFAULT_PATH

    env_path = config_path.parent / ".env"
    load_dotenv(env_path, override=False)

    if not config_path.exists():
        logger.info(
            "No strategies.yaml found at %s, using default SMA strategy",
            config_path,
        )
        return default_strategy_config(settings)

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    config = StrategyConfig(**raw)
    if not config.strategies:
        logger.info("strategies.yaml defines no strategies, using default")
        return default_strategy_config(settings)

    logger.info(
        "Loaded strategy config: %d strategies (%d active)",
        len(config.strategies),
        len(config.get_active()),
    )
    return config
