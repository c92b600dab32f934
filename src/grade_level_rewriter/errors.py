from __future__ import annotations


class RewriteEngineError(Exception):
    """Base class for errors raised by the rewrite engine."""

    kind = "engine_error"


class InvalidGradeLevel(RewriteEngineError):
    """Raised when a grade level cannot be resolved, even via fallback."""

    kind = "invalid_grade_level"

    def __init__(self, level: str) -> None:
        super().__init__(f"Unknown grade level '{level}' and no fallback profile.")
        self.level = level


class RewriteFailed(RewriteEngineError):
    """The rewrite capability produced no usable output on the first attempt."""

    kind = "rewrite_failed"

    def __init__(self, message: str, *, target_level: str | None = None) -> None:
        super().__init__(message)
        self.target_level = target_level


class RateLimited(RewriteEngineError):
    """The request was refused by the rate limiter and queued for retry."""

    kind = "rate_limited"

    def __init__(self, retry_after: float, *, queued: bool = True) -> None:
        super().__init__(
            f"Rate limited. Request queued for retry (window frees in {retry_after:.1f}s)."
            if queued
            else f"Rate limited (window frees in {retry_after:.1f}s)."
        )
        self.retry_after = retry_after
        self.queued = queued


class RetryExhausted(RewriteEngineError):
    """A queued request ran out of retries; recorded internally only."""

    kind = "retry_exhausted"

    def __init__(self, text: str, target_level: str, attempts: int) -> None:
        super().__init__(
            f"Gave up rewriting for '{target_level}' after {attempts} retries."
        )
        self.text = text
        self.target_level = target_level
        self.attempts = attempts
