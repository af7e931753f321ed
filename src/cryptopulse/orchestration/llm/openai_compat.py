"""OpenAI-compatible chat completions provider over httpx.

Talks to ``POST {base_url}/chat/completions``.  ``stream()`` sets
``"stream": true`` and parses the server-sent event lines
(``data: {...}`` … ``data: [DONE]``), yielding each ``delta.content``.

Errors are fatal for a workflow run: a missing API key raises
``MissingConfigError`` before any request, non-2xx responses raise
``SourceError`` and transport failures raise ``NetworkError``.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Sequence
from typing import TYPE_CHECKING, Any

import httpx

from cryptopulse.core.errors import MissingConfigError, NetworkError, SourceError
from cryptopulse.core.logging import get_logger
from cryptopulse.orchestration.llm.protocol import Completion, Message

if TYPE_CHECKING:
    from cryptopulse.core.settings import CryptoPulseSettings

logger = get_logger(__name__)

SOURCE_NAME = "openai"


class OpenAIChatProvider:
    """LLMProvider backed by an OpenAI-compatible HTTP API."""

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = "https://api.openai.com/v1",
        default_model: str = "gpt-4o-mini",
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.default_model = default_model
        self._client = client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(
        cls,
        settings: CryptoPulseSettings,
        client: httpx.Client | None = None,
    ) -> OpenAIChatProvider:
        return cls(
            settings.openai_api_key,
            base_url=settings.openai_base_url,
            default_model=settings.summarizer_model,
            timeout=settings.http_timeout_seconds,
            client=client,
        )

    @property
    def url(self) -> str:
        return f"{self.base_url}/chat/completions"

    def complete(self, messages: Sequence[Message], model: str | None = None, **options: Any) -> Completion:
        """Single request, full response."""
        payload = self._payload(messages, model, stream=False, **options)
        try:
            response = self._client.post(self.url, headers=self._headers(), json=payload)
        except httpx.HTTPError as exc:
            raise NetworkError(f"LLM request failed: {exc}", cause=exc).with_context(
                source_name=SOURCE_NAME, url=self.url
            ) from exc
        self._raise_for_status(response)

        try:
            body = response.json()
        except ValueError as exc:
            raise SourceError(
                f"LLM API returned a non-JSON body: {response.text[:200]}", cause=exc
            ).with_context(source_name=SOURCE_NAME, url=self.url, http_status=response.status_code) from exc
        if not isinstance(body, dict):
            raise SourceError("LLM API returned an unexpected payload").with_context(
                source_name=SOURCE_NAME, url=self.url, http_status=response.status_code
            )
        choice = (body.get("choices") or [{}])[0]
        usage = body.get("usage") or {}
        return Completion(
            content=(choice.get("message") or {}).get("content") or "",
            model=body.get("model", payload["model"]),
            prompt_tokens=usage.get("prompt_tokens", 0),
            completion_tokens=usage.get("completion_tokens", 0),
            finish_reason=choice.get("finish_reason") or "stop",
        )

    def stream(self, messages: Sequence[Message], model: str | None = None, **options: Any) -> Iterator[str]:
        """Yield text chunks as the server produces them."""
        payload = self._payload(messages, model, stream=True, **options)
        logger.debug("llm.stream_start", model=payload["model"], messages=len(messages))
        try:
            with self._client.stream("POST", self.url, headers=self._headers(), json=payload) as response:
                if response.is_error:
                    response.read()
                    self._raise_for_status(response)
                for line in response.iter_lines():
                    chunk = _parse_sse_line(line)
                    if chunk is None:
                        break
                    if chunk:
                        yield chunk
        except httpx.HTTPError as exc:
            raise NetworkError(f"LLM stream failed: {exc}", cause=exc).with_context(
                source_name=SOURCE_NAME, url=self.url
            ) from exc

    def _headers(self) -> dict[str, str]:
        if not self.api_key:
            raise MissingConfigError("openai_api_key", "Missing OPENAI_API_KEY for the summarizer")
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _payload(
        self, messages: Sequence[Message], model: str | None, *, stream: bool, **options: Any
    ) -> dict[str, Any]:
        # options (temperature, max_tokens, ...) pass straight through to the API
        return {
            "model": model or self.default_model,
            "messages": [m.to_dict() for m in messages],
            "stream": stream,
            **options,
        }

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.is_success:
            return
        raise SourceError(
            f"LLM API error {response.status_code} {response.reason_phrase}: {response.text}"
        ).with_context(source_name=SOURCE_NAME, url=self.url, http_status=response.status_code)


def _parse_sse_line(line: str) -> str | None:
    """Return the content delta of one SSE line, '' for no content, None at ``[DONE]``."""
    if not line.startswith("data:"):
        return ""
    data = line[len("data:"):].strip()
    if data == "[DONE]":
        return None
    try:
        event = json.loads(data)
    except json.JSONDecodeError:
        return ""
    if not isinstance(event, dict):
        return ""
    choices = event.get("choices") or [{}]
    return (choices[0].get("delta") or {}).get("content") or ""
