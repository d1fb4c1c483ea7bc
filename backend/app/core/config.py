"""
Environment configuration — single source of truth for all settings.

Uses pydantic-settings for type-safe config with .env file support.
All values have sensible defaults for local development.

Usage:
    from backend.app.core.config import settings
    print(settings.TWILIO_WHATSAPP_NUMBER)
"""

from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application-wide settings loaded from environment variables or .env file.

    Precedence: init kwargs > env var > .env file > default value
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ── Application ──
    APP_NAME: str = "Accident Alert Relay"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development | staging | production
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"  # DEBUG | INFO | WARNING | ERROR | CRITICAL

    # ── Server ──
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # ── CORS ──
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]
    CORS_ALLOW_ALL: bool = True

    # ── Messaging provider ──
    MESSAGING_PROVIDER: str = "twilio"  # twilio | simulation
    MESSAGING_CHANNEL: str = "whatsapp"  # whatsapp | sms
    TWILIO_ACCOUNT_SID: Optional[str] = None
    TWILIO_AUTH_TOKEN: Optional[str] = None
    TWILIO_WHATSAPP_NUMBER: str = "whatsapp:+14155238886"
    DEFAULT_COUNTRY_CODE: str = "1"  # prepended to bare 10-digit numbers

    # ── Alert relay ──
    DEDUP_WINDOW_SECONDS: int = 300  # debounce window (5 min)
    DEDUP_MAX_ENTRIES: int = 10_000
    DISPATCH_DELAY_SECONDS: float = 0.5  # pacing between provider calls
    ALERT_TIMEZONE: str = "UTC"  # timezone used to render alert times

    # ── Rate limiting (per client IP, /api/ only) ──
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_MAX_REQUESTS: int = 10
    RATE_LIMIT_WINDOW_SECONDS: int = 300
    TRUST_PROXY_HEADERS: bool = False  # key on X-Forwarded-For (only behind a proxy)

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def provider_configured(self) -> bool:
        """True when Twilio credentials are present."""
        return bool(self.TWILIO_ACCOUNT_SID and self.TWILIO_AUTH_TOKEN)


@lru_cache()
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()


settings = get_settings()
