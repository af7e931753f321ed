"""In-memory provider for tests.

Replies are chosen by keyword: the first key of ``keyword_replies`` found in
the last user message wins, otherwise ``reply`` is used.  Streaming splits
the reply into ``chunk_size`` pieces so callers exercise their joining
logic.  Setting ``error`` makes every call raise it.

Example::

    provider = MockLLMProvider(reply="Sentiment is positive.")
    "".join(provider.stream([Message.user("tweets about bitcoin")]))
    provider.calls[0]["prompt"]   # "tweets about bitcoin"
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

from cryptopulse.orchestration.llm.protocol import Completion, Message, Role


@dataclass
class MockLLMProvider:
    reply: str = "Sentiment is mixed."
    keyword_replies: dict[str, str] = field(default_factory=dict)
    chunk_size: int = 4
    model_name: str = "mock-model"
    error: Exception | None = None
    calls: list[dict[str, Any]] = field(default_factory=list)

    def complete(self, messages: Sequence[Message], model: str | None = None, **options: Any) -> Completion:
        text = self._answer(messages, model, options)
        return Completion(
            content=text,
            model=model or self.model_name,
            prompt_tokens=sum(len(m.content.split()) for m in messages),
            completion_tokens=len(text.split()),
        )

    def stream(self, messages: Sequence[Message], model: str | None = None, **options: Any) -> Iterator[str]:
        text = self._answer(messages, model, options)
        step = max(1, self.chunk_size)
        for start in range(0, len(text), step):
            yield text[start : start + step]

    def _answer(self, messages: Sequence[Message], model: str | None, options: dict[str, Any]) -> str:
        prompt = next((m.content for m in reversed(messages) if m.role is Role.USER), "")
        self.calls.append(
            {
                "model": model or self.model_name,
                "messages": [m.to_dict() for m in messages],
                "prompt": prompt,
                "options": options,
            }
        )
        if self.error is not None:
            raise self.error
        for keyword, text in self.keyword_replies.items():
            if keyword in prompt:
                return text
        return self.reply
