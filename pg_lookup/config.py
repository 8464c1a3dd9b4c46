"""Environment-based configuration for the people group lookup app."""

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Reads from .env file and PG_LOOKUP_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PG_LOOKUP_",
        env_file=".env",
        extra="ignore",
    )

    #joshua project
    jp_api_base: str = "https://api.joshuaproject.net/v1"

    #anthropic
    anthropic_api_url: str = "https://api.anthropic.com/v1/messages"
    anthropic_model: str = "claude-haiku-4-5-20251001"
    anthropic_version: str = "2023-06-01"
    max_tokens: int = 512

    request_timeout_seconds: float = 30.0

    #empty = keys only live for the lifetime of the process
    credential_db_path: Optional[Path] = None

    log_level: str = "INFO"
    cors_origins: List[str] = [
        "http://127.0.0.1:3333",
        "http://localhost:3333",
    ]


@lru_cache
def get_settings() -> Settings:
    return Settings()
