"""
Environment configuration — single source of truth for all settings.

Uses pydantic-settings for type-safe config with .env file support.
All values have sensible defaults for local development. Complex values
(SMS_SENDERS, SMS_ROUTING) are read from the environment as JSON.

Usage:
    from smsroute.core.config import settings
    print(settings.SMS_DEFAULT_SENDER)

Example .env:
    SMS_DEFAULT_SENDER=twilio
    SMS_SENDERS={"twilio": {"class": "myapp.sms:TwilioSender", "config": {"from": "+15550001"}}}
    SMS_ROUTING={"default": "twilio", "by_country": {"EG": ["vonage", "twilio"]}, "by_prefix": {"+1": "twilio"}}
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_senders() -> Dict[str, Any]:
    return {
        "log": {
            "class": "smsroute.senders.log_sender:LogSender",
            "config": {},
        },
    }


def _default_routing() -> Dict[str, Any]:
    return {
        "default": "log",
        "by_country": {},
        "by_prefix": {},
    }


class Settings(BaseSettings):
    """
    Application-wide settings loaded from environment variables or .env file.

    Precedence: env var > .env file > default value
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ── Application ──
    APP_NAME: str = "SMS Router"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development | staging | production
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"  # DEBUG | INFO | WARNING | ERROR | CRITICAL

    # ── Server ──
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # ── CORS ──
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
    ]
    CORS_ALLOW_ALL: bool = True  # False in production

    # ── SMS ──
    # Sender used for manual sends when no explicit name is given
    SMS_DEFAULT_SENDER: str = "log"
    # name → {"class": "pkg.module:Class", "config": {...}}
    SMS_SENDERS: Dict[str, Any] = Field(default_factory=_default_senders)
    # {"default": name, "by_country": {ISO2: [names]}, "by_prefix": {digits: [names]}}
    SMS_ROUTING: Dict[str, Any] = Field(default_factory=_default_routing)
    # Resolve destination region via phonenumbers for by_country rules
    SMS_COUNTRY_LOOKUP: bool = True
    # Register the built-in log sender when the config does not provide one
    SMS_REGISTER_LOG_SENDER: bool = True

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"


@lru_cache()
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()


settings = get_settings()
