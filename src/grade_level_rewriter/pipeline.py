from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List

from .cache import AdaptiveCache, make_cache_key
from .config import EngineConfig
from .convergence import converge
from .errors import RateLimited, RewriteFailed
from .history import RewriteHistory
from .metrics import PerformanceMetrics
from .models import Priority, RetryOutcome, RewriteResult
from .profiles import resolve_profile
from .rate_limiter import SlidingWindowRateLimiter
from .retry_queue import RetryQueue
from .rewriting import Rewriter
from .textutils import preview

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EngineContext:
    """Shared engine state owned by the application's composition root."""

    config: EngineConfig
    cache: AdaptiveCache
    rate_limiter: SlidingWindowRateLimiter
    retry_queue: RetryQueue
    metrics: PerformanceMetrics
    history: RewriteHistory
    clock: Callable[[], float] = field(default=time.monotonic)

    @classmethod
    def from_config(
        cls,
        config: EngineConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> "EngineContext":
        cfg = config or EngineConfig()
        metrics = PerformanceMetrics()
        return cls(
            config=cfg,
            cache=AdaptiveCache(
                capacity=cfg.cache_capacity,
                ttl_seconds=cfg.cache_ttl_seconds,
                clock=clock,
            ),
            rate_limiter=SlidingWindowRateLimiter(
                max_requests=cfg.max_requests_per_minute,
                window_seconds=cfg.rate_limit_window_seconds,
                clock=clock,
            ),
            retry_queue=RetryQueue(
                base_delay=cfg.retry_base_delay_seconds,
                max_delay=cfg.retry_max_delay_seconds,
                max_retries=cfg.max_retries,
                metrics=metrics,
                clock=clock,
            ),
            metrics=metrics,
            history=RewriteHistory(max_items=cfg.history_max_items),
            clock=clock,
        )


async def rewrite_for_grade_level(
    context: EngineContext,
    rewriter: Rewriter,
    text: str,
    target_level: str,
    priority: Priority = Priority.NORMAL,
) -> RewriteResult:
    """
    Rewrite ``text`` for ``target_level`` through cache, rate limiter and
    convergence loop.

    Raises RateLimited when the window is full and no cached result exists;
    the request is queued for retry at the same time. Raises RewriteFailed when
    the first rewrite attempt yields nothing usable; that request is queued too.
    """
    profile = resolve_profile(target_level)
    key = make_cache_key(text, profile.label)

    cached = context.cache.get(key)
    if cached is not None:
        context.metrics.record_cache_hit()
        logger.debug("Cache hit for %s rewrite (%s)", profile.label, cached.id)
        return cached
    context.metrics.record_cache_miss()

    if not context.rate_limiter.try_acquire():
        context.metrics.record_rate_limit_hit()
        context.retry_queue.enqueue(text, profile.label)
        retry_after = context.rate_limiter.retry_after()
        logger.info(
            "Rate limited %s rewrite; queued for retry (window frees in %.1fs)",
            profile.label,
            retry_after,
        )
        raise RateLimited(retry_after)

    logger.info(
        "Starting %s rewrite (priority=%s): %s",
        profile.label,
        priority.value,
        preview(text),
    )
    started = context.clock()
    try:
        result = await converge(
            text,
            profile.label,
            rewriter,
            max_iterations=context.config.max_iterations,
        )
    except RewriteFailed:
        context.metrics.record_failed(context.clock())
        context.retry_queue.enqueue(text, profile.label)
        raise

    finished = context.clock()
    context.cache.put(key, result)
    context.metrics.record_completed(finished - started, result.tokens_used, finished)
    logger.info(
        "Completed %s rewrite %s in %.2fs (grade %.1f -> %.1f)",
        profile.label,
        result.id,
        finished - started,
        result.metrics_before.grade_level,
        result.metrics_after.grade_level,
    )
    return result


async def process_retry_queue(
    context: EngineContext, rewriter: Rewriter
) -> List[RetryOutcome]:
    """Re-dispatch every retry item that is due, at high priority."""

    async def dispatch(text: str, target_level: str) -> RewriteResult:
        return await rewrite_for_grade_level(
            context, rewriter, text, target_level, priority=Priority.HIGH
        )

    return await context.retry_queue.drain_ready(dispatch)
