"""X (Twitter) recent-search source.

A 429 response is classified as ``RateLimitError`` from the status code,
never from message text, so the consuming step can degrade gracefully while
every other failure stays fatal.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import httpx

from cryptopulse.core.errors import (
    MissingConfigError,
    NetworkError,
    RateLimitError,
    SourceError,
    ValidationError,
)
from cryptopulse.core.logging import get_logger

if TYPE_CHECKING:
    from cryptopulse.core.settings import CryptoPulseSettings

logger = get_logger(__name__)

SOURCE_NAME = "twitter"


def _retry_after(response: httpx.Response, now: float | None = None) -> int | None:
    """Seconds to wait: ``retry-after`` as given, ``x-rate-limit-reset`` is an epoch time."""
    delay = response.headers.get("retry-after", "")
    if delay.isdigit():
        return int(delay)
    reset = response.headers.get("x-rate-limit-reset", "")
    if reset.isdigit():
        return max(0, int(reset) - int(time.time() if now is None else now))
    return None


class TwitterSearchSource:
    """Fetch recent post texts for a keyword."""

    def __init__(
        self,
        bearer_token: str | None,
        *,
        base_url: str = "https://api.x.com",
        max_results: int = 10,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.bearer_token = bearer_token
        self.base_url = base_url.rstrip("/")
        self.max_results = max_results
        self._client = client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(
        cls,
        settings: CryptoPulseSettings,
        client: httpx.Client | None = None,
    ) -> TwitterSearchSource:
        return cls(
            settings.twitter_bearer_token,
            base_url=settings.twitter_base_url,
            max_results=settings.tweet_max_results,
            timeout=settings.http_timeout_seconds,
            client=client,
        )

    def search(self, query: str) -> list[str]:
        if not self.bearer_token:
            raise MissingConfigError("twitter_bearer_token", "Missing TWITTER_BEARER_TOKEN")
        if not query:
            raise ValidationError("Missing query parameter", field="query")

        url = f"{self.base_url}/2/tweets/search/recent"
        params = {"query": query, "max_results": self.max_results, "tweet.fields": "text"}
        logger.debug("posts.request", url=url, query=query)

        try:
            response = self._client.get(
                url,
                params=params,
                headers={
                    "Authorization": f"Bearer {self.bearer_token}",
                    "Accept": "application/json",
                },
            )
        except httpx.HTTPError as exc:
            raise NetworkError(f"Twitter request failed: {exc}", cause=exc).with_context(
                source_name=SOURCE_NAME, url=url
            ) from exc

        if response.status_code == 429:
            raise RateLimitError(
                f"Twitter API error 429 {response.reason_phrase}",
                retry_after=_retry_after(response),
            ).with_context(source_name=SOURCE_NAME, url=url, http_status=429)

        if not response.is_success:
            raise SourceError(
                f"Twitter API error {response.status_code} {response.reason_phrase}: {response.text}"
            ).with_context(source_name=SOURCE_NAME, url=url, http_status=response.status_code)

        try:
            body = response.json()
        except ValueError as exc:
            raise SourceError(
                f"Twitter API returned a non-JSON body: {response.text[:200]}", cause=exc
            ).with_context(source_name=SOURCE_NAME, url=url, http_status=response.status_code) from exc
        if not isinstance(body, dict):
            raise SourceError("Twitter API returned an unexpected payload").with_context(
                source_name=SOURCE_NAME, url=url, http_status=response.status_code
            )
        return [item.get("text") or "" for item in body.get("data") or []]
