"""
Configuration and settings for the backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")

    # Which backing store to use: the durable database or the local key/value store
    storage_backend: Literal["remote", "local"] = Field(default="remote")

    # Database (Postgres expected)
    database_url: Optional[str] = Field(default=None)

    # Local store (Redis if configured, otherwise in-process memory)
    redis_url: Optional[str] = Field(default=None)
    local_store_prefix: str = Field(default="teacherconnect")

    # LLM / Gemini
    gemini_api_key: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("GEMINI_API_KEY", "API_KEY")
    )
    gemini_model: str = Field(default="gemini-2.5-flash")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
