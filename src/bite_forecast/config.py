"""Application configuration via pydantic-settings."""

from __future__ import annotations

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BITE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Open-Meteo forecast base URL
    openmeteo_api_url: str = "https://api.open-meteo.com/v1"

    # Environment-slice endpoint; only used when environment_source == "http"
    environment_api_url: str = ""

    # Where prediction slices come from: "forecast" (local adapter) or "http"
    environment_source: str = "forecast"

    # User agent sent to upstream providers
    user_agent: str = "bite-forecast/1.0"

    # HTTP request timeout seconds
    http_timeout: float = 10.0

    # Timeout for a single persisted-store call
    store_timeout: float = 5.0

    # SQLite database path for catches, profiles and bite signals
    db_path: Path = Path.home() / ".bite-forecast" / "bite.db"

    # Forecast bundle cache
    forecast_cache_ttl_seconds: float = 300.0
    forecast_cache_max_entries: int = 64

    # Per-user trust weight memo
    trust_cache_ttl_seconds: float = 3600.0
    trust_cache_max_entries: int = 2048

    # Bite signal lifetime before the read path recomputes it
    signal_ttl_seconds: float = 3600.0

    # Catch samples older than this are ignored
    catch_lookback_days: int = 30

    # Upper bound on catch samples read per recompute
    max_catch_samples: int = 250

    # Forward hours requested from the environment-slice provider
    prediction_forward_hours: int = 3

    @field_validator(
        "http_timeout",
        "store_timeout",
        "forecast_cache_ttl_seconds",
        "trust_cache_ttl_seconds",
        "signal_ttl_seconds",
    )
    @classmethod
    def _positive_seconds(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"must be > 0, got {v}")
        return v

    @field_validator(
        "forecast_cache_max_entries",
        "trust_cache_max_entries",
        "catch_lookback_days",
        "max_catch_samples",
    )
    @classmethod
    def _positive_count(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"must be > 0, got {v}")
        return v

    @field_validator("prediction_forward_hours")
    @classmethod
    def _forward_hours_in_range(cls, v: int) -> int:
        if not 0 <= v <= 6:
            raise ValueError(f"prediction_forward_hours must be in [0, 6], got {v}")
        return v

    @field_validator("environment_source")
    @classmethod
    def _known_environment_source(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("forecast", "http"):
            raise ValueError(f"environment_source must be 'forecast' or 'http', got {v!r}")
        return v


def get_settings() -> Settings:
    """Load settings from the environment and .env file."""
    return Settings()
