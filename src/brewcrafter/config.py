"""Configuration management with pydantic-settings."""

import logging
import re
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from brewcrafter.errors import ConfigError

logger = logging.getLogger(__name__)

# Default recipe directory, relative to the working directory
DEFAULT_RECIPES_DIR = Path("public") / "Recipes"

SUPPORTED_LANGUAGES = ("fr", "en")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_BASE32_RE = re.compile(r"^[A-Z2-7]+=*$")


class Settings(BaseSettings):
    """Application settings loaded from environment variables or a .env file."""

    model_config = SettingsConfigDict(
        env_prefix="BREWCRAFTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    recipes_dir: Path = DEFAULT_RECIPES_DIR
    language: str = "fr"
    log_level: str = "INFO"

    # Web server
    host: str = "127.0.0.1"
    port: int = 8000

    # Admin gate (time-based one-time codes)
    totp_secret: str | None = None
    totp_issuer: str = "BrewCrafter App"
    totp_account: str = "admin"

    # RAPT Pill cloud credentials (optional)
    rapt_email: str | None = None
    rapt_password: str | None = None

    @field_validator("language")
    @classmethod
    def check_language(cls, v: str) -> str:
        v = v.lower()
        if v not in SUPPORTED_LANGUAGES:
            raise ValueError(f"language must be one of {', '.join(SUPPORTED_LANGUAGES)}")
        return v

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {v}")
        return v

    @field_validator("totp_secret", "rapt_email", "rapt_password", mode="before")
    @classmethod
    def empty_to_none(cls, v):
        """Treat empty strings from .env files as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def admin_gate_enabled(self) -> bool:
        return self.totp_secret is not None


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process."""
    try:
        settings = Settings()
    except ValueError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    if settings.totp_secret and not _BASE32_RE.match(settings.totp_secret):
        logger.warning(
            "BREWCRAFTER_TOTP_SECRET does not look like Base32 "
            "(expected A-Z and 2-7, optionally padded with '=')"
        )
    return settings


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the command-line entry points."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
