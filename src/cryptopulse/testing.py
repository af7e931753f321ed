"""Test Harness — fake collaborators for the crypto workflow.

ARCHITECTURE
────────────
::

    Price sources:
      StaticPriceSource(prices)        → returns a fixed table, records calls
      FailingPriceSource(error)        → always raises

    Social sources:
      StaticSocialSource(posts)        → returns fixed posts, records queries
      RateLimitedSocialSource()        → always raises RateLimitError

    Summarizer / notifier:
      RecordingSummarizer(reason)      → returns a fixed reason, records calls
      RecordingNotifier(ok=True)       → records sent texts, reports ok/failed

    Factory:
      make_crypto_workflow(**overrides) → workflow wired with the fakes above

Example::

    from cryptopulse.testing import StaticPriceSource, make_crypto_workflow

    wf = make_crypto_workflow(prices=StaticPriceSource({"bitcoin": {"usd": 50000.0}}))
    result = WorkflowRunner().run(wf, {"ids": "bitcoin", "vs_currencies": "usd"})
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from cryptopulse.collaborators.protocols import DeliveryResult, PriceTable
from cryptopulse.core.errors import RateLimitError, SourceError


@dataclass
class StaticPriceSource:
    prices: PriceTable
    calls: list[tuple[list[str], list[str]]] = field(default_factory=list)

    def get_prices(self, ids: Sequence[str], vs_currencies: Sequence[str]) -> PriceTable:
        self.calls.append((list(ids), list(vs_currencies)))
        return self.prices


@dataclass
class FailingPriceSource:
    error: Exception = field(
        default_factory=lambda: SourceError("Failed to fetch crypto prices: 500 Internal Server Error")
    )
    calls: int = 0

    def get_prices(self, ids: Sequence[str], vs_currencies: Sequence[str]) -> PriceTable:
        self.calls += 1
        raise self.error


@dataclass
class StaticSocialSource:
    posts: list[str]
    queries: list[str] = field(default_factory=list)

    def search(self, query: str) -> list[str]:
        self.queries.append(query)
        return list(self.posts)


@dataclass
class RateLimitedSocialSource:
    retry_after: int | None = 900
    queries: list[str] = field(default_factory=list)

    def search(self, query: str) -> list[str]:
        self.queries.append(query)
        raise RateLimitError(retry_after=self.retry_after)


@dataclass
class RecordingSummarizer:
    reason: str = "People are optimistic after strong inflows."
    calls: list[tuple[list[str], str]] = field(default_factory=list)

    def summarize(self, posts: Sequence[str], topic: str) -> str:
        self.calls.append((list(posts), topic))
        return self.reason


@dataclass
class RecordingNotifier:
    ok: bool = True
    error: str | None = None
    sent: list[str] = field(default_factory=list)

    def send(self, text: str) -> DeliveryResult:
        self.sent.append(text)
        if self.ok:
            return DeliveryResult(ok=True, result={"message_id": len(self.sent)})
        return DeliveryResult(ok=False, error=self.error or "Telegram API error: {'ok': False}")


def make_crypto_workflow(**overrides: Any):
    """Build the crypto workflow with fakes; keyword overrides replace any of
    ``prices``, ``posts``, ``summarizer``, ``notifier``."""
    from cryptopulse.workflows.crypto import build_crypto_workflow

    collaborators: dict[str, Any] = {
        "prices": StaticPriceSource({"bitcoin": {"usd": 50000.0}}),
        "posts": StaticSocialSource(["BTC to the moon", "ETF inflows look strong"]),
        "summarizer": RecordingSummarizer(),
        "notifier": RecordingNotifier(),
    }
    collaborators.update(overrides)
    return build_crypto_workflow(**collaborators)
