import json
import re
from typing import Annotated, Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _parse_list(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        items = [str(v).strip() for v in raw]
        return [v for v in items if v]

    raw = str(raw).strip()
    if not raw or raw == "[]":
        return []

    # JSON list, else comma or whitespace separated
    if raw.startswith("["):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            items = [str(v).strip() for v in parsed]
            return [v for v in items if v]

    return [p for p in re.split(r"[,\s]+", raw) if p]


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be configured via environment variables or .env file.
    """

    # Debug mode - enables detailed error responses
    debug: bool = False
    app_version: str = "1.0.0"

    # Shared-secret credential accepted via x-api-key or Authorization: Bearer
    api_key: str = "demo-api-key"

    # Rate limiting settings (fixed window)
    rate_limit_requests_per_minute: int = 60
    rate_limit_requests_per_hour: int = 1000  # advisory
    rate_limit_requests_per_day: int = 10000  # advisory
    rate_limit_burst_limit: int = 10  # advisory
    rate_limit_window_ms: int = 60_000
    rate_limit_exempt_paths: Annotated[list[str], NoDecode] = ["/api/health"]

    # Response cache settings
    cache_enabled: bool = True
    cache_ttl_ms: int = 300_000  # 5 minutes
    cache_max_entries: int = 1000

    # Number of latency samples kept for average response time
    stats_latency_samples: int = 1000

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    # CORS settings
    cors_origins: Annotated[list[str], NoDecode] = ["*"]

    @field_validator("cors_origins", "rate_limit_exempt_paths", mode="before")
    @classmethod
    def decode_list(cls, v: Any) -> list[str]:
        return _parse_list(v)

    @field_validator(
        "rate_limit_requests_per_minute",
        "rate_limit_requests_per_hour",
        "rate_limit_requests_per_day",
        "rate_limit_burst_limit",
    )
    @classmethod
    def validate_rate_limit_positive(cls, v: int) -> int:
        """Validate rate limit values are positive."""
        if v < 1:
            raise ValueError("Rate limit values must be at least 1")
        return v

    @field_validator("rate_limit_window_ms", "cache_ttl_ms")
    @classmethod
    def validate_duration_positive(cls, v: int) -> int:
        """Validate window and TTL durations are positive."""
        if v <= 0:
            raise ValueError("Durations must be positive milliseconds")
        return v

    @field_validator("cache_max_entries", "stats_latency_samples")
    @classmethod
    def validate_capacity_positive(cls, v: int) -> int:
        """Validate capacity values are positive."""
        if v < 1:
            raise ValueError("Capacity values must be at least 1")
        return v

    @field_validator("api_key")
    @classmethod
    def strip_api_key(cls, v: str) -> str:
        # Normalize accidental whitespace/newline from env/secret stores.
        return v.strip()

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Global settings instance
settings = Settings()
