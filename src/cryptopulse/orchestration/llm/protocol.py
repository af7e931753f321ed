"""Chat-model interface used by the summarizer.

A provider takes a short conversation (system instructions plus one user
prompt) and answers either in one piece (``complete``) or as a stream of
text chunks (``stream``).  The summarizer only needs the streamed form; the
single-shot form exists for callers that want token counts.

::

    LLMProvider (Protocol)
      ├── .complete(messages, model=None, **options) → Completion
      └── .stream(messages, model=None, **options)   → Iterator[str]

    Message(role, content)   Role = system | user | assistant
    Completion(content, model, prompt_tokens, completion_tokens, finish_reason)
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    role: Role
    content: str

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(Role.SYSTEM, content)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(Role.USER, content)

    def to_dict(self) -> dict[str, str]:
        """Wire form used by chat-completions APIs."""
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class Completion:
    """A finished, non-streamed answer."""

    content: str
    model: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    finish_reason: str = "stop"

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


@runtime_checkable
class LLMProvider(Protocol):
    def complete(self, messages: Sequence[Message], model: str | None = None, **options: Any) -> Completion:
        """Answer in one piece."""
        ...

    def stream(self, messages: Sequence[Message], model: str | None = None, **options: Any) -> Iterator[str]:
        """Answer as text chunks; joining them gives the full answer."""
        ...
