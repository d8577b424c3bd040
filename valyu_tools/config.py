"""
Load settings from .env. Never log or expose secret values.
The Valyu API key read here is only a fallback; callers may pass their own key per tool.
"""
import logging
from functools import lru_cache
from typing import Callable, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Zero-argument callable returning the fallback API key (or None).
ApiKeyProvider = Callable[[], Optional[str]]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Valyu
    valyu_api_key: Optional[str] = Field(default=None, description="Valyu API key")
    valyu_base_url: str = Field(default="https://api.valyu.ai", description="Valyu API base URL")
    valyu_timeout_sec: float = Field(default=60.0, description="Deadline for a single Valyu request")

    # App
    log_level: str = Field(default="INFO", description="Log level")


@lru_cache
def get_settings() -> Settings:
    return Settings()


def settings_api_key() -> Optional[str]:
    """Default API key provider: VALYU_API_KEY from the environment or .env."""
    return get_settings().valyu_api_key


def configure_logging(level: Optional[str] = None) -> None:
    """Apply the configured log level and keep HTTP client chatter down."""
    level = level or get_settings().log_level
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO))
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
