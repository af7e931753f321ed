"""External collaborators invoked by the crypto workflow steps."""

from cryptopulse.collaborators.coingecko import CoinGeckoPriceSource
from cryptopulse.collaborators.protocols import (
    DeliveryResult,
    Notifier,
    PriceSource,
    PriceTable,
    SocialSource,
    Summarizer,
)
from cryptopulse.collaborators.summarizer import AgentSummarizer
from cryptopulse.collaborators.telegram import TelegramNotifier
from cryptopulse.collaborators.twitter import TwitterSearchSource

__all__ = [
    "AgentSummarizer",
    "CoinGeckoPriceSource",
    "DeliveryResult",
    "Notifier",
    "PriceSource",
    "PriceTable",
    "SocialSource",
    "Summarizer",
    "TelegramNotifier",
    "TwitterSearchSource",
]
