"""Application configuration."""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # CoinGecko API
    coingecko_base_url: str = "https://api.coingecko.com"
    coingecko_api_key: str = ""
    coingecko_calls_per_minute: int = 30  # public tier budget
    coingecko_timeout: float = 15.0
    vs_currency: str = "usd"

    # Tracked instruments (CoinGecko ids)
    tokens: list[str] = ["binancecoin", "pancakeswap-token", "ethereum"]

    # Price feed
    price_feed_enabled: bool = True
    price_poll_interval: float = 30.0
    price_history_size: int = 50

    # SMA crossover parameters (match the dashboard's SMA5 / SMA20)
    short_period: int = 5
    long_period: int = 20
    confidence_baseline: float = 50.0
    confidence_multiplier: float = 1000.0
    confidence_ceiling: float = 95.0
    tie_tolerance: float = 0.0

    # Recorded signal log
    signal_log_size: int = 500

    # Trade simulation
    simulated_pnl_factor: float = 0.1
    auto_trade_enabled: bool = False
    auto_trade_min_confidence: int = 70
    auto_trade_amount: float = 1.0

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
