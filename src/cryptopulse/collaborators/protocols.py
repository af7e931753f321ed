"""Capability interfaces for the services the crypto steps call.

Each collaborator has one operation and a defined failure contract:

================ ============================== =====================================
Collaborator     Operation                      Failure contract
================ ============================== =====================================
PriceSource      get_prices(ids, currencies)    raises (fatal)
SocialSource     search(query)                  RateLimitError (recoverable) or
                                                any other error (fatal)
Summarizer       summarize(posts, topic)        raises (fatal)
Notifier         send(text)                     returns DeliveryResult(ok=False)
                                                except missing configuration
================ ============================== =====================================
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

# asset id -> currency code -> price
PriceTable = dict[str, dict[str, float]]


@runtime_checkable
class PriceSource(Protocol):
    def get_prices(self, ids: Sequence[str], vs_currencies: Sequence[str]) -> PriceTable:
        """Current prices for every asset in every currency."""
        ...


@runtime_checkable
class SocialSource(Protocol):
    def search(self, query: str) -> list[str]:
        """Recent post texts matching *query*.

        Raises:
            RateLimitError: The source is rate limiting this client.
        """
        ...


@runtime_checkable
class Summarizer(Protocol):
    def summarize(self, posts: Sequence[str], topic: str) -> str:
        """Explain the sentiment of *posts* about *topic* in a short paragraph."""
        ...


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of a notification attempt."""

    ok: bool
    result: Any = None
    error: str | None = None


@runtime_checkable
class Notifier(Protocol):
    def send(self, text: str) -> DeliveryResult:
        """Attempt delivery; failures are reported, not raised."""
        ...
