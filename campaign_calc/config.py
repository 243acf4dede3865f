"""
Campaign Calc — Application Configuration
All settings loaded from environment variables via pydantic-settings.
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_SEMVER_RE = re.compile(r"^\d+\.\d+\.\d+$")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Calculation Engine ────────────────────────────────────────────────────
    CALCULATION_VERSION: str = "1.0.0"
    DECIMAL_PRECISION: int = 28

    # ── Logging ───────────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"

    # ── Application Settings ──────────────────────────────────────────────────
    ENVIRONMENT: str = "development"  # development | staging | production
    APP_TITLE: str = "Campaign Calc"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"ENVIRONMENT must be one of {allowed}")
        return v

    @field_validator("CALCULATION_VERSION")
    @classmethod
    def validate_calculation_version(cls, v: str) -> str:
        if not _SEMVER_RE.match(v):
            raise ValueError("CALCULATION_VERSION must look like MAJOR.MINOR.PATCH")
        return v

    @field_validator("DECIMAL_PRECISION")
    @classmethod
    def validate_decimal_precision(cls, v: int) -> int:
        # 999999999.999999 needs 15 digits; leave headroom for ratios
        if v < 16:
            raise ValueError("DECIMAL_PRECISION must be at least 16")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown LOG_LEVEL: {v!r}")
        return level

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def log_level_number(self) -> int:
        return logging.getLevelNamesMapping()[self.LOG_LEVEL]


@lru_cache()
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
