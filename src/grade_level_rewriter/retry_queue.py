from __future__ import annotations

import asyncio
import logging
import time
import uuid
from typing import Awaitable, Callable, List, Set

from .errors import RetryExhausted, RewriteEngineError
from .metrics import PerformanceMetrics
from .models import RetryItem, RetryOutcome, RetryStatus, RewriteResult
from .textutils import preview

logger = logging.getLogger(__name__)

RetryDispatch = Callable[[str, str], Awaitable[RewriteResult]]


class RetryQueue:
    """
    Holds rate-limited or failed requests and re-dispatches them with
    exponential back-off.

    Each ``(text, target_level)`` pair has at most one pending item. An item
    that fails ``max_retries`` times is dropped; the drop is only visible in
    the metrics and logs, since the original caller was already answered.
    """

    def __init__(
        self,
        *,
        base_delay: float = 1.0,
        max_delay: float = 300.0,
        max_retries: int = 3,
        metrics: PerformanceMetrics | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._base_delay = base_delay
        self._max_delay = max_delay
        self._max_retries = max_retries
        self._metrics = metrics
        self._clock = clock
        self._items: List[RetryItem] = []
        self._in_flight: Set[str] = set()

    def __len__(self) -> int:
        return len(self._items)

    def pending(self) -> List[RetryItem]:
        return list(self._items)

    def find(self, text: str, target_level: str) -> RetryItem | None:
        for item in self._items:
            if item.text == text and item.target_level == target_level:
                return item
        return None

    def backoff_delay(self, retry_count: int) -> float:
        return min(self._base_delay * (2**retry_count), self._max_delay)

    def enqueue(self, text: str, target_level: str) -> RetryItem:
        """Queue a request for retry; returns the existing item for duplicates."""
        existing = self.find(text, target_level)
        if existing is not None:
            return existing
        now = self._clock()
        item = RetryItem(
            id=f"retry-{uuid.uuid4().hex[:12]}",
            text=text,
            target_level=target_level,
            retry_count=0,
            next_retry_at=now + self.backoff_delay(0),
            enqueued_at=now,
        )
        self._items.append(item)
        logger.info(
            "Queued %s rewrite for retry at +%.1fs: %s",
            target_level,
            item.next_retry_at - now,
            preview(text),
        )
        return item

    def remove(self, item_id: str) -> None:
        self._items = [item for item in self._items if item.id != item_id]

    def clear(self) -> None:
        self._items.clear()

    async def drain_ready(self, dispatch: RetryDispatch) -> List[RetryOutcome]:
        """Re-attempt every item whose retry time has come."""
        now = self._clock()
        ready = [
            item
            for item in self._items
            if item.next_retry_at <= now and item.id not in self._in_flight
        ]
        if not ready:
            return []
        # Claimed up front so an overlapping drain skips them.
        self._in_flight.update(item.id for item in ready)
        logger.info("Processing %d retry requests", len(ready))
        outcomes: List[RetryOutcome] = []
        try:
            for item in ready:
                try:
                    result = await dispatch(item.text, item.target_level)
                except RewriteEngineError as exc:
                    outcomes.append(self._record_failure(item, exc))
                    continue
                self.remove(item.id)
                outcomes.append(
                    RetryOutcome(item=item, status=RetryStatus.SUCCEEDED, result=result)
                )
        finally:
            self._in_flight.difference_update(item.id for item in ready)
        return outcomes

    async def run(
        self,
        dispatch: RetryDispatch,
        poll_interval: float,
        stop_event: asyncio.Event,
    ) -> None:
        """Drain ready items every ``poll_interval`` seconds until ``stop_event`` is set."""
        while not stop_event.is_set():
            await self.drain_ready(dispatch)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=poll_interval)
            except asyncio.TimeoutError:
                continue

    def _record_failure(self, item: RetryItem, error: Exception) -> RetryOutcome:
        now = self._clock()
        item.retry_count += 1
        if item.retry_count >= self._max_retries:
            self.remove(item.id)
            exhausted = RetryExhausted(item.text, item.target_level, item.retry_count)
            if self._metrics is not None:
                self._metrics.record_retry_exhausted()
            logger.warning("%s Last error: %s", exhausted, error)
            return RetryOutcome(item=item, status=RetryStatus.EXHAUSTED, error=exhausted)
        item.next_retry_at = now + self.backoff_delay(item.retry_count)
        logger.info(
            "Retry %d/%d for %s failed (%s); next attempt in %.1fs",
            item.retry_count,
            self._max_retries,
            item.target_level,
            error,
            item.next_retry_at - now,
        )
        return RetryOutcome(item=item, status=RetryStatus.RESCHEDULED, error=error)
