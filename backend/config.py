"""Application configuration using pydantic-settings."""

from decimal import Decimal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Lot accounting
    # Open lots at or below this quantity are treated as fully consumed
    # (absorbs floating-point residue carried in from upstream records).
    LOT_QTY_EPSILON: Decimal = Decimal("1e-12")

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize LOG_LEVEL to an uppercase Python logging level."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {valid}, got {v!r}")
        return v.upper()

    @field_validator("LOT_QTY_EPSILON")
    @classmethod
    def validate_epsilon(cls, v: Decimal) -> Decimal:
        """Reject negative thresholds; a lot can never hold negative quantity."""
        if v < 0:
            raise ValueError(f"LOT_QTY_EPSILON must be >= 0, got {v}")
        return v

    # App settings
    LOG_LEVEL: str = "INFO"


settings = Settings()
