"""Configuration management for club payments."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment."""

    database_url: str
    host: str
    port: int
    debug: bool
    status_function: str
    trial_days: int
    poll_interval_ms: int
    debounce_ms: int
    min_refresh_interval_ms: int
    history_years: int

    @property
    def HOST(self) -> str:
        """Alias for host."""
        return self.host

    @property
    def PORT(self) -> int:
        """Alias for port."""
        return self.port

    @property
    def DEBUG(self) -> bool:
        """Alias for debug."""
        return self.debug

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables."""
        load_dotenv()

        return cls(
            database_url=os.getenv(
                "DATABASE_URL",
                "sqlite+aiosqlite:///./club_payments.db",
            ),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            debug=os.getenv("DEBUG", "false").lower() == "true",
            status_function=os.getenv("PAYMENT_STATUS_FUNCTION", ""),
            trial_days=int(os.getenv("TRIAL_DAYS", "30")),
            poll_interval_ms=int(os.getenv("REFRESH_POLL_INTERVAL_MS", "1000")),
            debounce_ms=int(os.getenv("REFRESH_DEBOUNCE_MS", "300")),
            min_refresh_interval_ms=int(
                os.getenv("REFRESH_MIN_INTERVAL_MS", "1000")
            ),
            history_years=int(os.getenv("PAYMENT_HISTORY_YEARS", "2")),
        )


@dataclass(frozen=True)
class RefreshConfig:
    """
    Timing of debounced refresh subscribers, in seconds.

    Attributes:
        poll_interval: How often a subscriber polls the invalidation tracker.
            Default 1.0.
        debounce: Quiet period between detecting a change and refreshing.
            Default 0.3.
        min_refresh_interval: Minimum time since the last completed refresh
            before a new change is acted upon. Default 1.0.
    """

    poll_interval: float = 1.0
    debounce: float = 0.3
    min_refresh_interval: float = 1.0

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        if self.debounce < 0:
            raise ValueError("debounce cannot be negative")
        if self.min_refresh_interval < 0:
            raise ValueError("min_refresh_interval cannot be negative")

    @classmethod
    def from_settings(cls, settings: Settings) -> RefreshConfig:
        """Build refresh timings from millisecond settings."""
        return cls(
            poll_interval=settings.poll_interval_ms / 1000,
            debounce=settings.debounce_ms / 1000,
            min_refresh_interval=settings.min_refresh_interval_ms / 1000,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()
