"""
Service configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
All values come from environment variables or a local .env file; invalid
values are rejected at startup.

CHANGELOG:
- 2026-10-18: Initial creation

TODO:
- None
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Pumpwatch service configuration.

    Attributes:
        database_url: Async SQLAlchemy URL (asyncpg or aiosqlite driver).
        redis_url: Redis URL for the event-history cache. Empty disables
            caching.
        session_timeout_s: Longest silence, in seconds, that still belongs
            to the same session. A larger gap closes the session.
        discharge_coefficient: Litres pumped per second of runtime.
        discard_zero_duration: Drop closing sessions whose duration is
            zero or negative instead of compiling them.
        dedup_samples: Ignore a ping whose timestamp is already present in
            the device's open session.
        sweep_interval_s: Seconds between overdue-session sweeps. 0 turns
            the sweep off, leaving expiry to the next ping or dashboard view.
        devices_file: Optional JSON list of device ids seeded at startup.
        event_page_size: Default number of events per dashboard page.
        cache_ttl_s: TTL of cached event-history pages.
        log_level: Root log level.
    """

    database_url: str
    redis_url: str = ""
    session_timeout_s: int = 60
    discharge_coefficient: float = 1.0
    discard_zero_duration: bool = False
    dedup_samples: bool = True
    sweep_interval_s: int = 0
    devices_file: str = ""
    event_page_size: int = 50
    cache_ttl_s: int = 30
    log_level: str = "INFO"

    @field_validator("session_timeout_s")
    @classmethod
    def session_timeout_must_be_positive(cls, v: int) -> int:
        """Validate the session timeout is at least one second."""
        if v < 1:
            raise ValueError("SESSION_TIMEOUT_S must be >= 1")
        return v

    @field_validator("discharge_coefficient")
    @classmethod
    def discharge_coefficient_must_be_non_negative(cls, v: float) -> float:
        """Validate the discharge coefficient is non-negative."""
        if v < 0:
            raise ValueError("DISCHARGE_COEFFICIENT must be >= 0")
        return v

    @field_validator("sweep_interval_s")
    @classmethod
    def sweep_interval_must_be_non_negative(cls, v: int) -> int:
        """Validate the sweep interval is non-negative (0 disables it)."""
        if v < 0:
            raise ValueError("SWEEP_INTERVAL_S must be >= 0")
        return v

    @field_validator("event_page_size")
    @classmethod
    def event_page_size_must_be_valid(cls, v: int) -> int:
        """Validate page size is between 1 and 1000."""
        if v < 1 or v > 1000:
            raise ValueError("EVENT_PAGE_SIZE must be >= 1 and <= 1000")
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        """Normalise and validate the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"LOG_LEVEL must be a standard level name (got {v!r})")
        return level

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}
