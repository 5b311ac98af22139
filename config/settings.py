"""Centralised configuration handling for TrendLine."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"


class Settings(BaseSettings):
    """Engine settings sourced from ``TRENDLINE_*`` environment variables."""

    openai_api_key: str | None = None
    openai_base_url: str | None = None
    openai_model: str = DEFAULT_OPENAI_MODEL

    ai_timeout_seconds: float = 30.0
    cache_ttl_hours: float = 12.0

    # Roughly 150 characters per forecast row at ~3.5 characters per token.
    tokens_per_day: int = 50
    token_buffer: int = 1000
    min_output_tokens: int = 4096
    max_output_tokens: int = 32000

    default_history_days: int = 30
    max_history_days: int = 365
    max_forecast_days: int = 365
    stats_window_days: int = 90

    model_config = SettingsConfigDict(env_prefix="TRENDLINE_", extra="ignore")

    @property
    def cache_ttl_seconds(self) -> float:
        return self.cache_ttl_hours * 60 * 60

    @property
    def openai_client_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {}
        if self.openai_api_key:
            kwargs["api_key"] = self.openai_api_key
        if self.openai_base_url:
            kwargs["base_url"] = self.openai_base_url
        return kwargs


@lru_cache
def get_settings() -> Settings:
    """Load and cache engine settings."""

    return Settings()
