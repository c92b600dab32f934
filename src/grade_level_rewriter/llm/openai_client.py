from __future__ import annotations

import asyncio
import importlib
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, cast

from ..config import OpenAISettings

logger = logging.getLogger(__name__)

AsyncOpenAI: Callable[..., Any] | None = None


@dataclass(slots=True)
class RewriteMetadata:
    """Metadata about the passage being rewritten, used for logging."""

    target_level: str
    iteration: int = 1
    token_count: int | None = None


@dataclass(slots=True)
class CompletionOutput:
    """Text plus token usage reported by the API."""

    text: str
    total_tokens: int = 0


class OpenAIRewriteClient:
    """Thin async wrapper around OpenAI chat completions with retries and throttling."""

    def __init__(self, settings: OpenAISettings, api_key: str) -> None:
        if not api_key:
            raise ValueError("OpenAI API key is required when rewriting is enabled.")
        self._settings = settings
        self._api_key = api_key
        self._client_factory: Callable[..., Any] = _load_openai_factory()
        self._client: Any | None = None
        self._semaphore: asyncio.Semaphore | None = None
        self._max_attempts = max(1, settings.max_attempts)

    @property
    def settings(self) -> OpenAISettings:
        return self._settings

    async def complete(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
        metadata: RewriteMetadata,
    ) -> CompletionOutput:
        """Send the rewrite request and return the LLM output."""
        attempt = 0
        last_error: Exception | None = None
        while attempt < self._max_attempts:
            attempt += 1
            try:
                async with self._acquire_slot():
                    client = self._ensure_client()
                    response: Any = await client.chat.completions.create(
                        model=self._settings.model,
                        messages=[
                            {"role": "system", "content": system_prompt},
                            {"role": "user", "content": user_prompt},
                        ],
                        temperature=temperature,
                        max_tokens=max_tokens,
                        top_p=self._settings.top_p,
                        frequency_penalty=self._settings.frequency_penalty,
                        presence_penalty=self._settings.presence_penalty,
                        timeout=self._settings.request_timeout,
                    )
                output = CompletionOutput(
                    text=self._extract_text(response),
                    total_tokens=self._extract_total_tokens(response),
                )
                logger.debug(
                    "OpenAI rewrite succeeded for level=%s iteration=%s words=%s tokens=%s",
                    metadata.target_level,
                    metadata.iteration,
                    metadata.token_count,
                    output.total_tokens,
                )
                return output
            except Exception as exc:  # pragma: no cover - network-related
                last_error = exc
                logger.warning(
                    "OpenAI rewrite failed for level=%s iteration=%s (attempt %s/%s): %s",
                    metadata.target_level,
                    metadata.iteration,
                    attempt,
                    self._max_attempts,
                    exc,
                )
                if attempt >= self._max_attempts:
                    break
                await asyncio.sleep(min(2 ** (attempt - 1), 5))
        raise RuntimeError("OpenAI rewrite failed after retries.") from last_error

    def _ensure_client(self) -> Any:
        if self._client is None:
            self._client = self._client_factory(
                api_key=self._api_key,
                base_url=self._settings.base_url,
                organization=self._settings.organization,
            )
        return self._client

    @asynccontextmanager
    async def _acquire_slot(self) -> AsyncIterator[None]:
        if self._settings.parallel_requests <= 0:
            yield
            return
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self._settings.parallel_requests)
        async with self._semaphore:
            yield

    @staticmethod
    def _extract_text(response: Any) -> str:
        choices = getattr(response, "choices", None)
        if not choices:
            raise RuntimeError("OpenAI response is missing choices.")
        first = OpenAIRewriteClient._materialize_item(choices[0])
        message = first.get("message")
        if message is None:
            raise RuntimeError("OpenAI response choice has no message.")
        content = OpenAIRewriteClient._materialize_item(message).get("content")
        # An empty completion is a valid answer; the caller decides what it means.
        return (content or "").strip()

    @staticmethod
    def _extract_total_tokens(response: Any) -> int:
        usage = getattr(response, "usage", None)
        if usage is None:
            return 0
        total = OpenAIRewriteClient._materialize_item(usage).get("total_tokens")
        return int(total or 0)

    @staticmethod
    def _materialize_item(item: Any) -> dict[str, Any]:
        if isinstance(item, dict):
            return cast(dict[str, Any], item)
        if hasattr(item, "model_dump"):
            dumpable: Any = item
            raw_dump: dict[str, Any] = dumpable.model_dump()
            return raw_dump
        if hasattr(item, "__dict__"):
            dumpable: Any = item
            raw_dict: dict[str, Any] = dict(dumpable.__dict__)
            return raw_dict
        raise RuntimeError("Unexpected OpenAI response format.")


def _load_openai_factory() -> Callable[..., Any]:
    """Dynamically import the async OpenAI client factory to avoid hard dependency at import."""
    global AsyncOpenAI
    if AsyncOpenAI is not None:
        return AsyncOpenAI
    try:  # pragma: no cover - import guard
        module = importlib.import_module("openai")
    except Exception as exc:  # pragma: no cover - handled at runtime
        raise RuntimeError(
            "openai package is not installed. Install extras via 'pip install .[llm-openai]'."
        ) from exc
    openai_cls = getattr(module, "AsyncOpenAI", None)
    if openai_cls is None:  # pragma: no cover
        raise RuntimeError(
            "openai.AsyncOpenAI client class is unavailable in this environment."
        )
    AsyncOpenAI = cast(Callable[..., Any], openai_cls)
    return AsyncOpenAI
