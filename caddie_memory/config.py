"""Configuration helpers for the miss-pattern memory engine."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DATA_DIR = Path("data/miss_patterns")


class _Settings(BaseSettings):
    window_days: int = Field(default=30, ge=1, alias="MISS_PATTERN_WINDOW_DAYS")
    max_shots: int = Field(default=50, ge=1, alias="MISS_PATTERN_MAX_SHOTS")
    retention_days: int = Field(default=90, ge=1, alias="MISS_PATTERN_RETENTION_DAYS")
    store_backend: Literal["memory", "file"] = Field(
        default="memory", alias="MISS_PATTERN_STORE_BACKEND"
    )
    data_dir: Path = Field(default=DEFAULT_DATA_DIR, alias="MISS_PATTERN_DATA_DIR")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache(maxsize=1)
def get_settings() -> _Settings:
    """Return cached engine settings."""

    return _Settings()  # type: ignore[call-arg]


def reset_settings_cache() -> None:
    """Clear cached settings (primarily for tests)."""

    get_settings.cache_clear()


__all__ = ["DEFAULT_DATA_DIR", "get_settings", "reset_settings_cache"]
