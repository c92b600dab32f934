from __future__ import annotations

import asyncio
import logging
from typing import List

from .config import EngineConfig
from .debounce import DEFAULT_SESSION, DebouncedRequest, DebounceScheduler
from .models import Priority, RetryOutcome, RewriteResult
from .pipeline import EngineContext, process_retry_queue, rewrite_for_grade_level
from .rewriting import Rewriter

logger = logging.getLogger(__name__)


class RewriteService:
    """Binds an engine context to a rewriter, a debouncer and a retry worker."""

    def __init__(
        self,
        rewriter: Rewriter,
        context: EngineContext | None = None,
        config: EngineConfig | None = None,
    ) -> None:
        self.rewriter = rewriter
        self.context = context or EngineContext.from_config(config)
        self.debouncer = DebounceScheduler(
            self._dispatch_preview, default_delay=self.context.config.debounce_seconds
        )
        self.last_preview: RewriteResult | None = None
        self._retry_task: asyncio.Task[None] | None = None
        self._retry_stop: asyncio.Event | None = None

    async def rewrite(
        self,
        text: str,
        target_level: str,
        priority: Priority = Priority.NORMAL,
    ) -> RewriteResult:
        return await rewrite_for_grade_level(
            self.context, self.rewriter, text, target_level, priority=priority
        )

    def schedule_preview(
        self,
        text: str,
        target_level: str,
        *,
        delay: float | None = None,
        session_id: str = DEFAULT_SESSION,
    ) -> None:
        """Debounce a live-preview rewrite for ``session_id``."""
        self.debouncer.schedule(
            DebouncedRequest(text=text, target_level=target_level),
            delay=delay,
            session_id=session_id,
        )

    async def process_retries(self) -> List[RetryOutcome]:
        return await process_retry_queue(self.context, self.rewriter)

    def accept(self, result: RewriteResult) -> None:
        """Record a rewrite the user applied, making it undoable."""
        self.context.history.record(result)

    def start_retry_worker(self) -> None:
        if self._retry_task is not None and not self._retry_task.done():
            return
        self._retry_stop = asyncio.Event()

        async def dispatch(text: str, target_level: str) -> RewriteResult:
            return await self.rewrite(text, target_level, priority=Priority.HIGH)

        self._retry_task = asyncio.get_running_loop().create_task(
            self.context.retry_queue.run(
                dispatch,
                self.context.config.retry_poll_interval_seconds,
                self._retry_stop,
            )
        )
        logger.debug("Retry worker started")

    async def close(self) -> None:
        """Cancel pending previews and stop the retry worker."""
        self.debouncer.cancel_all()
        if self._retry_stop is not None:
            self._retry_stop.set()
        if self._retry_task is not None:
            await self._retry_task
            self._retry_task = None
        await self.debouncer.join()

    async def _dispatch_preview(self, request: DebouncedRequest) -> RewriteResult:
        result = await self.rewrite(
            request.text, request.target_level, priority=Priority.LOW
        )
        self.last_preview = result
        return result
