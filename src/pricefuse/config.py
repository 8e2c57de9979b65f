"""Configuration management for PRICEFUSE.

Loads provider credentials and tunables from environment variables using
Pydantic. Secrets belong in .env (never hardcoded).

Usage:
    from pricefuse.config import settings

    print(settings.ebay_rate_limit)
    print(settings.log_level)
"""

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """PRICEFUSE configuration from environment variables.

    Loads from .env file automatically. Validates on instantiation.
    Provider credentials are optional: a provider without credentials is
    simply not registered, and the orchestrator runs on the rest.

    Attributes:
        ebay_app_id: eBay Finding API application id
        tcgplayer_public_key: TCGPlayer client-credentials public key
        tcgplayer_private_key: TCGPlayer client-credentials private key
        pricecharting_api_key: PriceCharting API token
        log_level: Logging verbosity (DEBUG, INFO, WARNING, ERROR)
        cache_backend: 'memory' or 'parquet'
        cache_dir: Directory for Parquet valuation snapshots
        cache_ttl_seconds: Lifetime of a cached valuation
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unknown env vars
    )

    # Provider credentials (optional; unconfigured providers are skipped)
    ebay_app_id: str | None = Field(default=None, description="eBay Finding API app id")
    tcgplayer_public_key: str | None = Field(default=None, description="TCGPlayer public key")
    tcgplayer_private_key: str | None = Field(default=None, description="TCGPlayer private key")
    pricecharting_api_key: str | None = Field(default=None, description="PriceCharting API token")

    # System Settings
    log_level: str = Field(default="INFO", description="Logging level")
    http_timeout: float = Field(default=30.0, gt=0, description="HTTP timeout (seconds)")

    # Cache
    cache_backend: str = Field(default="memory", description="Valuation cache: 'memory' or 'parquet'")
    cache_dir: str = Field(default="data", description="Parquet snapshot directory")
    cache_ttl_seconds: int = Field(default=300, ge=1, description="Valuation cache TTL (seconds)")

    # Rate Limiting (requests per sliding window)
    ebay_rate_limit: int = Field(default=20, ge=1, description="eBay requests/window")
    tcgplayer_rate_limit: int = Field(default=30, ge=1, description="TCGPlayer requests/window")
    pricecharting_rate_limit: int = Field(default=10, ge=1, description="PriceCharting requests/window")
    rate_limit_window_seconds: float = Field(default=60.0, gt=0, description="Sliding window length")

    # Circuit breaker + retry
    breaker_failure_threshold: int = Field(default=5, ge=1, description="Consecutive failures before opening")
    breaker_cooldown_seconds: float = Field(default=60.0, ge=0, description="Open → half-open cooldown")
    retry_max_attempts: int = Field(default=3, ge=1, le=10, description="Total attempts per fetch")
    retry_base_backoff: float = Field(default=1.0, ge=0, description="First backoff delay (seconds)")

    # Providers
    historical_threshold_days: int = Field(
        default=7,
        ge=0,
        description="Window above which history-capable providers merge time-series points",
    )

    # Fusion tunables
    confidence_sample_weight: float = Field(default=0.6, ge=0, le=1)
    confidence_dispersion_weight: float = Field(default=0.4, ge=0, le=1)
    confidence_sample_size: int = Field(
        default=50,
        ge=1,
        description="Observation count at which the sample-size factor saturates",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid:
            raise ValueError(f"log_level must be one of {valid}, got {v}")
        return v_upper

    @field_validator("cache_backend")
    @classmethod
    def validate_cache_backend(cls, v: str) -> str:
        """Ensure cache backend is known."""
        v_lower = v.lower()
        if v_lower not in {"memory", "parquet"}:
            raise ValueError(f"cache_backend must be 'memory' or 'parquet', got '{v}'")
        return v_lower

    @model_validator(mode="after")
    def validate_confidence_weights(self) -> "Settings":
        """Confidence weights must not sum past 1 or the score leaves [0, 1]."""
        total = self.confidence_sample_weight + self.confidence_dispersion_weight
        if total > 1.0 + 1e-9:
            raise ValueError(
                f"confidence weights must sum to at most 1.0, got {total:.3f}"
            )
        return self

    @property
    def tcgplayer_configured(self) -> bool:
        return bool(self.tcgplayer_public_key and self.tcgplayer_private_key)


# Global settings instance, loaded once at import
settings = Settings()
