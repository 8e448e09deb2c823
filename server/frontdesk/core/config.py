"""Configuration settings for the front desk API."""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with Pydantic validation."""

    # Environment settings
    environment: str = Field(
        default="development",
        description="Application environment"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Application log level"
    )

    # CORS settings
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins"
    )

    # Server settings
    host: str = Field(
        default="0.0.0.0",
        description="Server host"
    )

    port: int = Field(
        default=8000,
        description="Server port"
    )

    # Pricing settings
    booking_tax_rate: float = Field(
        default=0.10,
        ge=0,
        le=1,
        description="Tax rate (fraction) applied in the room booking flow"
    )

    invoice_tax_percent: float = Field(
        default=12.0,
        ge=0,
        le=100,
        description="Default tax rate (percent) for standalone invoices"
    )

    # Idempotency settings
    idempotency_ttl_seconds: int = Field(
        default=3600,
        gt=0,
        description="Time-to-live for idempotency keys in seconds"
    )

    idempotency_cache_size: int = Field(
        default=10000,
        gt=0,
        description="Maximum number of idempotency keys to cache"
    )

    # Data settings
    seed_demo_data: bool = Field(
        default=True,
        description="Load the demo property (rooms, room types, meal plans) at startup"
    )

    # Tracing settings
    otlp_endpoint: Optional[str] = Field(
        default=None,
        description="OTLP gRPC endpoint for traces; tracing export is off when unset"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        valid_environments = ["development", "staging", "production"]
        if v.lower() not in valid_environments:
            raise ValueError(f"Environment must be one of: {valid_environments}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level value."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @property
    def debug(self) -> bool:
        """Return True if in development mode."""
        return self.environment == "development"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "FRONTDESK_",
        "case_sensitive": False,
    }


# Global settings instance
settings = Settings()
