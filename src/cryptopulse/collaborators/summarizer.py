"""Sentiment summarizer backed by an LLM provider.

The agent is told to act as an analyst; the user prompt lists the first ten
posts and asks why people think the asset's price is high or low.  The
provider's streamed output is joined into one string.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from cryptopulse.core.logging import get_logger
from cryptopulse.orchestration.llm import LLMProvider, Message, OpenAIChatProvider

if TYPE_CHECKING:
    import httpx

    from cryptopulse.core.settings import CryptoPulseSettings

logger = get_logger(__name__)

ANALYST_INSTRUCTIONS = (
    "You are an analyst assistant. Given a short list of recent tweets about a "
    "cryptocurrency, summarize the prevailing sentiment and provide a concise "
    "explanation (1-3 sentences) why the community thinks the price is high or low "
    "right now.\n\n"
    "Output should be a short, focused paragraph. If the tweets are mixed or "
    "uncertain, state that uncertainty clearly."
)

MAX_POSTS = 10


def build_prompt(posts: Sequence[str], topic: str) -> str:
    joined = "\n- ".join(posts[:MAX_POSTS])
    return (
        f"These are recent tweets about {topic}:\n- {joined}\n\n"
        f"Summarize the main sentiment and explain in one short paragraph why people "
        f"believe {topic} is high or low right now."
    )


class AgentSummarizer:
    """Summarizer that streams a completion from an :class:`LLMProvider`."""

    def __init__(
        self,
        provider: LLMProvider,
        *,
        model: str | None = None,
        instructions: str = ANALYST_INSTRUCTIONS,
    ) -> None:
        self.provider = provider
        self.model = model
        self.instructions = instructions

    @classmethod
    def from_settings(
        cls,
        settings: CryptoPulseSettings,
        client: httpx.Client | None = None,
    ) -> AgentSummarizer:
        provider = OpenAIChatProvider.from_settings(settings, client=client)
        return cls(provider, model=settings.summarizer_model)

    def summarize(self, posts: Sequence[str], topic: str) -> str:
        messages = [
            Message.system(self.instructions),
            Message.user(build_prompt(list(posts), topic)),
        ]
        text = "".join(self.provider.stream(messages, self.model))
        logger.debug("summarizer.complete", topic=topic, posts=len(posts), chars=len(text))
        return text.strip()
