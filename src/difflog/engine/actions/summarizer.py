"""Chat-backend client that turns an aggregate diff into changelog prose."""

from __future__ import annotations

import logging
import time
from typing import Callable, Literal, Optional, Protocol

import httpx
from pydantic import BaseModel, ValidationError

from difflog.core.config import SummarizerConfig
from difflog.exceptions import SummarizerError

logger = logging.getLogger("difflog.actions.summarizer")


class Summarizer(Protocol):
    """Anything that can turn diff text into a summary or raise SummarizerError."""

    def summarize(self, diff_text: str) -> str: ...


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    model: str
    messages: list[ChatMessage]
    stream: bool = False


class ChatResponse(BaseModel):
    message: ChatMessage


def build_user_prompt(diff_text: str) -> str:
    return f"Analyze this diff and write a summary entry:\n\n```diff\n{diff_text}\n```"


class OllamaSummarizer:
    """Posts a non-streaming chat request to an Ollama-compatible endpoint.

    Every failure mode (transport error, timeout, non-2xx status, malformed
    or empty body) surfaces as ``SummarizerError``.

    ``timeout_s`` is a total deadline for the whole exchange. httpx applies it
    to each connect, write and read wait; the body is then streamed and the
    deadline re-checked after every chunk, so a backend that trickles bytes
    cannot hold a cycle open past it.
    """

    def __init__(
        self,
        config: SummarizerConfig,
        client: Optional[httpx.Client] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._clock = clock
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=config.timeout_s)
        logger.info("Summarizer configured: %s (model=%s)", config.url, config.model)

    def build_request(self, diff_text: str) -> ChatRequest:
        return ChatRequest(
            model=self._config.model,
            messages=[
                ChatMessage(role="system", content=self._config.system_prompt),
                ChatMessage(role="user", content=build_user_prompt(diff_text)),
            ],
        )

    def summarize(self, diff_text: str) -> str:
        request = self.build_request(diff_text)
        logger.info("Sending diff (%d bytes) to %s", len(diff_text.encode("utf-8")), self._config.url)

        start = self._clock()
        deadline = start + self._config.timeout_s
        try:
            with self._client.stream(
                "POST",
                self._config.url,
                json=request.model_dump(),
                timeout=self._config.timeout_s,
            ) as response:
                body = self._read_body(response, deadline)
        except httpx.TimeoutException as exc:
            raise SummarizerError(f"Summarizer timed out after {self._config.timeout_s}s") from exc
        except httpx.HTTPError as exc:
            raise SummarizerError(f"Failed to reach summarizer: {exc}") from exc

        if not response.is_success:
            text = body.decode("utf-8", errors="replace").strip()
            raise SummarizerError(f"Summarizer returned HTTP {response.status_code}: {text}")

        try:
            parsed = ChatResponse.model_validate_json(body)
        except (ValueError, ValidationError) as exc:
            raise SummarizerError(f"Failed to parse summarizer response: {exc}") from exc

        summary = parsed.message.content.strip()
        if not summary:
            raise SummarizerError("Summarizer returned an empty summary")

        elapsed_ms = (self._clock() - start) * 1000
        logger.info("Summary received (%d chars) in %.0fms", len(summary), elapsed_ms)
        return summary

    def _read_body(self, response: httpx.Response, deadline: float) -> bytes:
        chunks: list[bytes] = []
        for chunk in response.iter_bytes():
            chunks.append(chunk)
            if self._clock() > deadline:
                raise SummarizerError(f"Summarizer timed out after {self._config.timeout_s}s")
        return b"".join(chunks)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
