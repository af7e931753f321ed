"""Crypto price + sentiment workflow (``crypto-twitter-workflow``).

Steps, in order::

    fetch-crypto-prices    {ids, vs_currencies}                 → {prices}
    fetch-tweets           {ids}                                → {tweets, twitterRateLimited}
    analyze-or-skip        {ids, tweets, twitterRateLimited?}   → {reason}
    summarize-prices       {prices, reason}                     → {summary}
    send-telegram-message  {summary}                            → {ok}
    map-result             {summary, ok}                        → {sent}

Two failures are recoverable and travel as data instead of exceptions:
rate limiting on the social source sets ``twitterRateLimited`` so
``analyze-or-skip`` takes its degraded path, and a failed notification
becomes ``ok: false`` and finally ``sent: false``.
"""

from __future__ import annotations

import math
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from cryptopulse.collaborators import (
    AgentSummarizer,
    CoinGeckoPriceSource,
    Notifier,
    PriceSource,
    SocialSource,
    Summarizer,
    TelegramNotifier,
    TwitterSearchSource,
)
from cryptopulse.core.errors import RateLimitError, ValidationError
from cryptopulse.core.logging import get_logger
from cryptopulse.orchestration import Shape, Step, Workflow, WorkflowBuilder, WorkflowContext, step

if TYPE_CHECKING:
    import httpx

    from cryptopulse.core.settings import CryptoPulseSettings

logger = get_logger(__name__)

WORKFLOW_NAME = "crypto-twitter-workflow"
DEGRADED_REASON = "Twitter rate limit reached — showing only price update."
NOTIFICATION_HEADER = "📊 Crypto Update:\n\n"


# =============================================================================
# Shapes
# =============================================================================


class RunInput(Shape):
    ids: str
    vs_currencies: str


class RunOutput(Shape):
    summary: str
    sent: bool


class PricesOutput(Shape):
    prices: dict[str, dict[str, float]]


class PostsInput(Shape):
    ids: str


class PostsOutput(Shape):
    tweets: list[str]
    twitterRateLimited: bool | None = None


class AnalyzeInput(Shape):
    ids: str
    tweets: list[str]
    twitterRateLimited: bool | None = None


class AnalyzeOutput(Shape):
    reason: str


class SummaryInput(Shape):
    prices: dict[str, dict[str, float]]
    reason: str


class SummaryOutput(Shape):
    summary: str


class NotifyInput(Shape):
    summary: str


class NotifyOutput(Shape):
    ok: bool


class MapInput(Shape):
    summary: str
    ok: bool


class MapOutput(Shape):
    sent: bool


# =============================================================================
# Formatting
# =============================================================================


def split_csv(value: str) -> list[str]:
    """``"bitcoin, ethereum"`` → ``["bitcoin", "ethereum"]``."""
    return [part.strip() for part in value.split(",") if part.strip()]


def format_price(value: float) -> str:
    """Shortest round-trip digits of a price.

    Plain decimals between 1e-6 and 1e21 (``0.000012``, ``50000``), exponent
    notation outside that range (``1e-7``), never a trailing ``.0``.
    """
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"
    if 1e-6 <= abs(value) < 1e21:
        return format(Decimal(repr(value)), "f").removesuffix(".0")
    mantissa, _, exponent = repr(value).partition("e")
    return f"{mantissa.removesuffix('.0')}e{int(exponent):+d}"


def format_summary(prices: dict[str, dict[str, float]], reason: str) -> str:
    """One line per asset, then the reason.

    >>> format_summary({"bitcoin": {"usd": 50000.0}}, "Calm market.")
    'BITCOIN: USD: 50000\\n\\n🧠 Reason: Calm market.'
    """
    lines = []
    for coin, quotes in prices.items():
        price_list = " | ".join(f"{cur.upper()}: {format_price(val)}" for cur, val in quotes.items())
        lines.append(f"{coin.upper()}: {price_list}")
    body = "\n".join(lines)
    return f"{body}\n\n🧠 Reason: {reason}"


# =============================================================================
# Steps
# =============================================================================


def make_fetch_prices_step(source: PriceSource) -> Step:
    @step(
        "fetch-crypto-prices",
        "Fetches cryptocurrency prices for given coins and currencies",
        input=RunInput,
        output=PricesOutput,
    )
    def fetch_prices(data: RunInput, ctx: WorkflowContext) -> dict[str, Any]:
        ids = split_csv(data.ids)
        currencies = split_csv(data.vs_currencies)
        if not ids:
            raise ValidationError("ids must name at least one asset", field="ids", value=data.ids)
        if not currencies:
            raise ValidationError(
                "vs_currencies must name at least one currency",
                field="vs_currencies",
                value=data.vs_currencies,
            )
        return {"prices": source.get_prices(ids, currencies)}

    return fetch_prices


def make_fetch_posts_step(source: SocialSource) -> Step:
    @step(
        "fetch-tweets",
        "Fetches recent tweets about the requested crypto",
        input=PostsInput,
        output=PostsOutput,
    )
    def fetch_posts(data: PostsInput, ctx: WorkflowContext) -> dict[str, Any]:
        query = " OR ".join(split_csv(data.ids))
        try:
            tweets = source.search(query)
        except RateLimitError as exc:
            logger.warning("posts.rate_limited", query=query, retry_after=exc.retry_after)
            return {"tweets": [], "twitterRateLimited": True}
        return {"tweets": tweets, "twitterRateLimited": False}

    return fetch_posts


def make_analyze_step(summarizer: Summarizer) -> Step:
    @step(
        "analyze-or-skip",
        "Analyzes tweets or skips if Twitter rate limited",
        input=AnalyzeInput,
        output=AnalyzeOutput,
    )
    def analyze_or_skip(data: AnalyzeInput, ctx: WorkflowContext) -> dict[str, Any]:
        if data.twitterRateLimited:
            return {"reason": DEGRADED_REASON}
        return {"reason": summarizer.summarize(data.tweets, data.ids).strip()}

    return analyze_or_skip


@step(
    "summarize-prices",
    "Formats crypto prices and adds reasoning",
    input=SummaryInput,
    output=SummaryOutput,
)
def summarize_prices(data: SummaryInput, ctx: WorkflowContext) -> dict[str, Any]:
    return {"summary": format_summary(data.prices, data.reason)}


def make_notify_step(notifier: Notifier) -> Step:
    @step(
        "send-telegram-message",
        "Sends the crypto summary to Telegram",
        input=NotifyInput,
        output=NotifyOutput,
    )
    def send_message(data: NotifyInput, ctx: WorkflowContext) -> dict[str, Any]:
        result = notifier.send(f"{NOTIFICATION_HEADER}{data.summary}")
        if not result.ok:
            logger.warning("workflow.notification_not_sent", error=result.error)
        return {"ok": result.ok}

    return send_message


@step("map-result", "Maps workflow output", input=MapInput, output=MapOutput)
def map_result(data: MapInput, ctx: WorkflowContext) -> dict[str, Any]:
    return {"sent": data.ok}


# =============================================================================
# Assembly
# =============================================================================


def build_crypto_workflow(
    prices: PriceSource,
    posts: SocialSource,
    summarizer: Summarizer,
    notifier: Notifier,
) -> Workflow:
    """Assemble the workflow around the given collaborators."""
    return (
        WorkflowBuilder(
            WORKFLOW_NAME,
            input=RunInput,
            output=RunOutput,
            description="Crypto prices with tweet sentiment, delivered to Telegram",
        )
        .then(make_fetch_prices_step(prices))
        .then(make_fetch_posts_step(posts))
        .then(make_analyze_step(summarizer))
        .then(summarize_prices)
        .then(make_notify_step(notifier))
        .then(map_result)
        .commit()
    )


def build_from_settings(
    settings: CryptoPulseSettings,
    client: httpx.Client | None = None,
) -> Workflow:
    """Wire the production collaborators from settings."""
    return build_crypto_workflow(
        prices=CoinGeckoPriceSource.from_settings(settings, client=client),
        posts=TwitterSearchSource.from_settings(settings, client=client),
        summarizer=AgentSummarizer.from_settings(settings, client=client),
        notifier=TelegramNotifier.from_settings(settings, client=client),
    )
