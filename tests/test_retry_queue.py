from __future__ import annotations

import asyncio
from typing import List, Tuple

import pytest

from grade_level_rewriter.errors import RetryExhausted, RewriteFailed
from grade_level_rewriter.metrics import PerformanceMetrics
from grade_level_rewriter.models import RetryStatus, RewriteResult
from grade_level_rewriter.retry_queue import RetryQueue
from tests.utils import FakeClock, make_result


def test_enqueue_deduplicates_by_text_and_level():
    queue = RetryQueue(clock=FakeClock())
    first = queue.enqueue("Some text.", "college")
    second = queue.enqueue("Some text.", "college")
    other_level = queue.enqueue("Some text.", "graduate")

    assert first is second
    assert other_level is not first
    assert len(queue) == 2


def test_backoff_delay_doubles_and_caps():
    queue = RetryQueue(base_delay=1.0, max_delay=300.0)
    assert [queue.backoff_delay(n) for n in range(4)] == [1.0, 2.0, 4.0, 8.0]
    assert queue.backoff_delay(20) == 300.0


def test_failing_item_backs_off_then_is_dropped():
    clock = FakeClock()
    metrics = PerformanceMetrics()
    queue = RetryQueue(max_retries=3, metrics=metrics, clock=clock)
    attempts: List[Tuple[str, str]] = []

    async def dispatch(text: str, target_level: str) -> RewriteResult:
        attempts.append((text, target_level))
        raise RewriteFailed("still failing", target_level=target_level)

    item = queue.enqueue("Hard text.", "elementary")
    assert item.next_retry_at == pytest.approx(1.0)

    # Nothing is due yet.
    assert asyncio.run(queue.drain_ready(dispatch)) == []

    clock.now = 1.0
    outcomes = asyncio.run(queue.drain_ready(dispatch))
    assert [outcome.status for outcome in outcomes] == [RetryStatus.RESCHEDULED]
    assert item.retry_count == 1
    assert item.next_retry_at == pytest.approx(3.0)

    clock.now = 3.0
    asyncio.run(queue.drain_ready(dispatch))
    assert item.retry_count == 2
    assert item.next_retry_at == pytest.approx(7.0)

    clock.now = 7.0
    outcomes = asyncio.run(queue.drain_ready(dispatch))
    assert outcomes[0].status is RetryStatus.EXHAUSTED
    assert isinstance(outcomes[0].error, RetryExhausted)
    assert len(queue) == 0
    assert metrics.retries_exhausted == 1
    assert len(attempts) == 3


def test_successful_retry_removes_item():
    clock = FakeClock()
    queue = RetryQueue(clock=clock)
    result = make_result("Queued text.")

    async def dispatch(text: str, target_level: str) -> RewriteResult:
        return result

    queue.enqueue("Queued text.", "elementary")
    clock.advance(1)
    outcomes = asyncio.run(queue.drain_ready(dispatch))

    assert outcomes[0].status is RetryStatus.SUCCEEDED
    assert outcomes[0].result is result
    assert len(queue) == 0


def test_run_drains_until_stopped():
    queue = RetryQueue(base_delay=0.0)
    handled: List[str] = []

    async def dispatch(text: str, target_level: str) -> RewriteResult:
        handled.append(text)
        return make_result(text)

    async def scenario() -> None:
        stop = asyncio.Event()
        queue.enqueue("Background text.", "college")
        worker = asyncio.create_task(queue.run(dispatch, 0.01, stop))
        for _ in range(100):
            if handled:
                break
            await asyncio.sleep(0.01)
        stop.set()
        await worker

    asyncio.run(scenario())
    assert handled == ["Background text."]
    assert len(queue) == 0


def test_overlapping_drains_dispatch_each_due_item_once():
    """A drain already retrying an item keeps a concurrent drain off it."""
    clock = FakeClock()
    queue = RetryQueue(max_retries=3, clock=clock)
    attempts: List[str] = []

    async def dispatch(text: str, target_level: str) -> RewriteResult:
        attempts.append(text)
        await asyncio.sleep(0)
        raise RewriteFailed("still failing", target_level=target_level)

    async def scenario() -> None:
        await asyncio.gather(queue.drain_ready(dispatch), queue.drain_ready(dispatch))

    item = queue.enqueue("Hard text.", "elementary")
    clock.now = 1.0
    asyncio.run(scenario())

    assert attempts == ["Hard text."]
    assert item.retry_count == 1
    assert item.next_retry_at == pytest.approx(3.0)

    # The claim is released, so the next due slot retries normally.
    clock.now = 3.0
    asyncio.run(queue.drain_ready(dispatch))
    assert len(attempts) == 2
    assert item.retry_count == 2
