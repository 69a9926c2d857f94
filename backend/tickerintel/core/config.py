"""
Application configuration using Pydantic Settings.

Supports hierarchical environment configuration:
- .env.base: Common non-secret defaults (committed to git)
- .env.{ENVIRONMENT}: Environment-specific overrides (gitignored)
- Environment variables: Highest priority
"""

import os
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

# Get environment from env var, default to development
ENV = os.getenv("ENVIRONMENT", "development")


class Settings(BaseSettings):
    """Application settings with hierarchical env file support."""

    model_config = SettingsConfigDict(
        env_file=[
            ".env.base",
            f".env.{ENV}",
        ],
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "test", "production"] = "development"

    # Database connections
    mongodb_url: str = "mongodb://localhost:27017/ticker_intel"
    redis_url: str = "redis://localhost:6379"

    # Security
    admin_secret: str = "dev-admin-secret-change-in-production"
    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # External APIs - market data providers
    polygon_api_key: str = ""
    polygon_base_url: str = "https://api.polygon.io"
    coingecko_api_key: str = ""  # Optional demo/pro key
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"
    news_api_url: str = "https://min-api.cryptocompare.com/data/v2/news/"
    news_api_key: str = ""

    # Cache TTLs in seconds
    cache_ttl_symbol_resolution: int = 150  # Resolve responses (2.5 min)
    cache_ttl_asset_details: int = 86400  # Company / coin profiles (24 hours)
    cache_ttl_news: int = 1800  # News aggregation (30 min)
    # Physical retention past logical expiry (None = keep until overwritten)
    cache_stale_retention_seconds: int | None = 604800  # 7 days

    # Refresh coordination
    swr_lock_ttl_seconds: int = 25  # Must stay below every cache TTL
    refresh_timeout_seconds: float = 8.0  # Per upstream refresh

    # Symbol resolution thresholds
    resolver_min_confidence: float = 0.5
    reference_promote_threshold: float = 0.85
    corpus_promote_threshold: float = 0.9
    corpus_scan_limit: int = 1000
    confidence_partial_reference: float = 0.6  # Suffix, unwrap or substring catalog hits
    confidence_alias_bonus: float = 0.05
    confidence_verification_bonus: float = 0.05
    confidence_max_bonus: float = 0.1

    # Symbol overrides applied after normalization (e.g. legacy exchange codes)
    symbol_overrides: dict[str, str] = {
        "XBT": "BTC",
        "BCC": "BCH",
        "XDG": "DOGE",
    }

    # News aggregation
    news_max_items: int = 50

    # Rate limiting
    rate_limit_storage_uri: str = "memory://"

    @property
    def database_name(self) -> str:
        """Extract database name from MongoDB URL."""
        db_with_params = self.mongodb_url.split("/")[-1]
        return db_with_params.split("?")[0] if "?" in db_with_params else db_with_params

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
