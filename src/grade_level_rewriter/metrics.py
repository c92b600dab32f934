from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PerformanceMetrics:
    """
    Process-lifetime counters for the rewrite engine.

    ``request_count`` covers every dispatched convergence run, successful or not;
    the running average only includes completed runs.
    """

    request_count: int = 0
    completed_requests: int = 0
    failed_requests: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    rate_limit_hits: int = 0
    retries_exhausted: int = 0
    average_response_time: float = 0.0
    total_tokens_consumed: int = 0
    last_request_at: float | None = None

    def record_cache_hit(self) -> None:
        self.cache_hits += 1

    def record_cache_miss(self) -> None:
        self.cache_misses += 1

    def record_rate_limit_hit(self) -> None:
        self.rate_limit_hits += 1

    def record_completed(self, response_time: float, tokens_used: int, now: float) -> None:
        self.request_count += 1
        self.completed_requests += 1
        self.total_tokens_consumed += tokens_used
        self.average_response_time += (
            response_time - self.average_response_time
        ) / self.completed_requests
        self.last_request_at = now

    def record_failed(self, now: float) -> None:
        self.request_count += 1
        self.failed_requests += 1
        self.last_request_at = now

    def record_retry_exhausted(self) -> None:
        self.retries_exhausted += 1

    @property
    def cache_hit_rate(self) -> float:
        lookups = self.cache_hits + self.cache_misses
        return self.cache_hits / lookups if lookups else 0.0

    def reset(self) -> None:
        """Zero every counter; intended for explicit operator action only."""
        logger.info("Resetting performance metrics")
        for name, value in asdict(PerformanceMetrics()).items():
            setattr(self, name, value)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["cache_hit_rate"] = self.cache_hit_rate
        return payload
