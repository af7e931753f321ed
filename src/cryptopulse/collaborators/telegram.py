"""Telegram Bot API notifier.

Delivery problems come back as ``DeliveryResult(ok=False, error=...)`` so the
workflow can report ``sent: false`` instead of failing.  Missing bot token or
chat id is a configuration error and is raised before any request is made.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import httpx

from cryptopulse.collaborators.protocols import DeliveryResult
from cryptopulse.core.errors import MissingConfigError
from cryptopulse.core.logging import get_logger

if TYPE_CHECKING:
    from cryptopulse.core.settings import CryptoPulseSettings

logger = get_logger(__name__)


class TelegramNotifier:
    """Send a text message to one chat via ``sendMessage``."""

    def __init__(
        self,
        bot_token: str | None,
        chat_id: str | None,
        *,
        base_url: str = "https://api.telegram.org",
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(
        cls,
        settings: CryptoPulseSettings,
        client: httpx.Client | None = None,
    ) -> TelegramNotifier:
        return cls(
            settings.telegram_bot_token,
            settings.telegram_chat_id,
            base_url=settings.telegram_base_url,
            timeout=settings.http_timeout_seconds,
            client=client,
        )

    def send(self, text: str) -> DeliveryResult:
        if not self.bot_token:
            raise MissingConfigError("telegram_bot_token", "Missing TELEGRAM_BOT_TOKEN")
        if not self.chat_id:
            raise MissingConfigError("telegram_chat_id", "Missing TELEGRAM_CHAT_ID")

        url = f"{self.base_url}/bot{self.bot_token}/sendMessage"
        try:
            response = self._client.post(url, json={"chat_id": self.chat_id, "text": text})
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("notifier.delivery_failed", error=str(exc))
            return DeliveryResult(ok=False, error=str(exc))

        if not response.is_success or not (isinstance(data, dict) and data.get("ok")):
            error = f"Telegram API error: {json.dumps(data)}"
            logger.warning("notifier.delivery_failed", status=response.status_code, error=error)
            return DeliveryResult(ok=False, error=error)

        return DeliveryResult(ok=True, result=data.get("result"))
