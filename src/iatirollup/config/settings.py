# src/iatirollup/config/settings.py
"""
Settings - Pydantic-based Configuration Management

Provides centralized configuration management using Pydantic Settings.
Values come from environment variables or a ``.env`` file and are validated
on load. The parser and aggregation engine never read settings themselves;
the entry point passes the relevant values in.

Files that USE this module:
- iatirollup.app (logging, parse policy, FX and HTTP options)

Files that this module USES:
- iatirollup.shared.validators (validation functions for settings)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations

from pathlib import Path  # Object-oriented filesystem paths
from typing import Optional  # Type hints for optional values

from pydantic import Field, field_validator  # Data validation and field configuration
from pydantic_settings import BaseSettings, SettingsConfigDict  # Settings management with Pydantic

from iatirollup.shared.validators import (
    validate_currency_code,  # Validate ISO 4217 style currency codes
    validate_log_level,  # Validate logging level names
    validate_parse_policy,  # Validate collect / fail_fast
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # --- Parsing ---
    parse_policy: str = Field(default="collect", alias="IATI_PARSE_POLICY")

    # --- Reporting ---
    by_year: bool = Field(default=False, alias="IATI_BY_YEAR")

    # --- HTTP Settings (URL sources) ---
    http_timeout_seconds: int = Field(default=60, alias="HTTP_TIMEOUT_SECONDS", ge=1, le=600)

    # --- FX conversion (both needed to convert) ---
    fx_rates_file: Optional[Path] = Field(default=None, alias="IATI_FX_RATES_FILE")
    fx_target: Optional[str] = Field(default=None, alias="IATI_FX_TARGET")

    # --- Logging ---
    log_level: str = Field(default="INFO", alias="IATI_LOG_LEVEL")
    log_file: Optional[str] = Field(default=None, alias="LOG_FILE")
    log_dir: Optional[str] = Field(default=None, alias="LOG_DIR")
    log_stdout: bool = Field(default=True, alias="IATI_LOG_STDOUT")
    log_max_bytes: int = Field(default=10 * 1024 * 1024, alias="LOG_MAX_BYTES")  # 10MB
    log_backup_count: int = Field(default=5, alias="LOG_BACKUP_COUNT")

    @property
    def fx_enabled(self) -> bool:
        """Conversion runs only when both a rate table and a target are configured."""
        return self.fx_rates_file is not None and self.fx_target is not None

    @field_validator("parse_policy")
    @classmethod
    def validate_parse_policy(cls, v: str) -> str:
        """Validate parse policy name."""
        if not validate_parse_policy(v):
            raise ValueError("IATI_PARSE_POLICY must be 'collect' or 'fail_fast'")
        return v.strip().lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level name."""
        if not validate_log_level(v):
            raise ValueError(f"Unknown log level: {v!r}")
        return v.strip().upper()

    @field_validator("fx_target")
    @classmethod
    def validate_fx_target(cls, v: Optional[str]) -> Optional[str]:
        """Validate target currency code; empty means unset."""
        if v is None or not v.strip():
            return None
        if not validate_currency_code(v):
            raise ValueError(f"IATI_FX_TARGET is not a currency code: {v!r}")
        return v.strip().upper()


# Global settings instance
settings = Settings()
