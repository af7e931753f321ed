"""Chat-model providers for the summarizer."""

from cryptopulse.orchestration.llm.mock import MockLLMProvider
from cryptopulse.orchestration.llm.openai_compat import OpenAIChatProvider
from cryptopulse.orchestration.llm.protocol import Completion, LLMProvider, Message, Role

__all__ = [
    "Completion",
    "LLMProvider",
    "Message",
    "MockLLMProvider",
    "OpenAIChatProvider",
    "Role",
]
