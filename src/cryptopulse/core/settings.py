"""
Centralized settings for crypto-pulse.

One validated, cached settings object holds every credential and endpoint
the collaborators need.  Collaborators never read the environment
themselves: they receive values through their ``from_settings`` factories.

Field names map to the conventional environment variables
(``TWITTER_BEARER_TOKEN``, ``TELEGRAM_BOT_TOKEN``, ``TELEGRAM_CHAT_ID``,
``OPENAI_API_KEY``); matching is case-insensitive and ``.env`` is honoured.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CryptoPulseSettings(BaseSettings):
    """Crypto-pulse configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Credentials ──────────────────────────────────────────────
    twitter_bearer_token: str | None = Field(default=None)
    telegram_bot_token: str | None = Field(default=None)
    telegram_chat_id: str | None = Field(default=None)
    openai_api_key: str | None = Field(default=None)

    # ── Endpoints ────────────────────────────────────────────────
    coingecko_base_url: str = Field(default="https://api.coingecko.com/api/v3")
    twitter_base_url: str = Field(default="https://api.x.com")
    telegram_base_url: str = Field(default="https://api.telegram.org")
    openai_base_url: str = Field(default="https://api.openai.com/v1")

    # ── Collaborator behaviour ───────────────────────────────────
    summarizer_model: str = Field(default="gpt-4o-mini")
    tweet_max_results: int = Field(default=10, ge=10, le=100)
    http_timeout_seconds: float = Field(default=30.0, gt=0)

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console", description="json or console")


_settings_cache: dict[str, CryptoPulseSettings] = {}


def get_settings(*, _force_reload: bool = False) -> CryptoPulseSettings:
    """Load, validate, and cache a :class:`CryptoPulseSettings` instance."""
    if _force_reload or "default" not in _settings_cache:
        _settings_cache["default"] = CryptoPulseSettings()
    return _settings_cache["default"]


def clear_settings_cache() -> None:
    """Drop the cached settings (used by tests)."""
    _settings_cache.clear()
