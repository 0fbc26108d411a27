# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for all deployment-specific settings.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Lease protocol ===
    stale_lease_window_seconds: float = 600.0
    batch_skip_generating: bool = True

    # === Generation ===
    generation_timeout_seconds: float = 120.0
    generation_max_tokens: int = 8192
    generation_temperature: float = 0.2

    # === LLM provider ===
    llm_provider: str = "anthropic"
    llm_model: str = "claude-sonnet-4-20250514"
    anthropic_api_key: str = ""
    openai_api_key: str = ""
    openai_base_url: str = ""

    # === Entry store ===
    store_backend: Literal["memory", "sqlite", "redis"] = "sqlite"
    store_sqlite_path: Path = Path("~/.techknowledge/knowledge.db")
    store_redis_url: str = ""
    store_redis_prefix: str = "techknowledge:entry:"
    seed_on_startup: bool = False

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("stale_lease_window_seconds", "generation_timeout_seconds")
    @classmethod
    def validate_positive_duration(cls, v: float) -> float:  # noqa: N805
        if v <= 0:
            raise ValueError("durations must be > 0")
        return v

    @field_validator("generation_max_tokens")
    @classmethod
    def validate_max_tokens(cls, v: int) -> int:  # noqa: N805
        if v <= 0:
            raise ValueError("generation_max_tokens must be > 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        # A normal generator call must finish before its lease can be reclaimed.
        if self.generation_timeout_seconds >= self.stale_lease_window_seconds:
            errors.append(
                "GENERATION_TIMEOUT_SECONDS must be < STALE_LEASE_WINDOW_SECONDS"
            )

        if self.store_backend == "redis" and not self.store_redis_url:
            errors.append("STORE_REDIS_URL must be set when STORE_BACKEND=redis")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or embedding).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
