"""
Shared pytest fixtures for crypto-pulse tests.

Every test starts with unconfigured structlog, an empty settings cache and
no credentials from the developer's environment.
"""

import sys
from pathlib import Path

import pytest
import structlog

# Ensure cryptopulse package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from cryptopulse.core.logging import clear_context  # noqa: E402
from cryptopulse.core.settings import clear_settings_cache  # noqa: E402

CREDENTIAL_ENV_VARS = (
    "TWITTER_BEARER_TOKEN",
    "TELEGRAM_BOT_TOKEN",
    "TELEGRAM_CHAT_ID",
    "OPENAI_API_KEY",
    "LOG_LEVEL",
    "LOG_FORMAT",
)


@pytest.fixture(autouse=True)
def _isolate(monkeypatch):
    """Reset global logging/settings state around each test."""
    for name in CREDENTIAL_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    structlog.reset_defaults()
    clear_context()
    clear_settings_cache()
    yield
    structlog.reset_defaults()
    clear_context()
    clear_settings_cache()

