from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Tuple


class Priority(str, Enum):
    """Dispatch priority attached to a rewrite request."""

    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"


class RetryStatus(str, Enum):
    """What happened to a retry item during a drain pass."""

    SUCCEEDED = "succeeded"
    RESCHEDULED = "rescheduled"
    EXHAUSTED = "exhausted"


def grade_level_label(grade_level: float) -> str:
    """Map a Flesch-Kincaid grade to a school band."""
    if grade_level <= 5:
        return "Elementary School"
    if grade_level <= 8:
        return "Middle School"
    if grade_level <= 12:
        return "High School"
    if grade_level <= 16:
        return "College Level"
    return "Graduate Level"


def reading_ease_label(reading_ease: float) -> str:
    """Map a Flesch reading-ease score to its conventional description."""
    if reading_ease >= 90:
        return "Very Easy"
    if reading_ease >= 80:
        return "Easy"
    if reading_ease >= 70:
        return "Fairly Easy"
    if reading_ease >= 60:
        return "Standard"
    if reading_ease >= 50:
        return "Fairly Difficult"
    if reading_ease >= 30:
        return "Difficult"
    return "Very Difficult"


@dataclass(frozen=True, slots=True)
class ReadabilityMetrics:
    """Readability scores computed for a block of text."""

    grade_level: float
    reading_ease: float
    average_words_per_sentence: float
    average_syllables_per_word: float
    sentence_count: int
    word_count: int = 0
    long_sentence_count: int = 0
    passive_voice_percentage: float = 0.0

    @property
    def grade_label(self) -> str:
        return grade_level_label(self.grade_level)

    @property
    def ease_label(self) -> str:
        return reading_ease_label(self.reading_ease)

    def to_dict(self) -> dict[str, float | int | str]:
        return {
            "grade_level": self.grade_level,
            "reading_ease": self.reading_ease,
            "average_words_per_sentence": self.average_words_per_sentence,
            "average_syllables_per_word": self.average_syllables_per_word,
            "sentence_count": self.sentence_count,
            "word_count": self.word_count,
            "long_sentence_count": self.long_sentence_count,
            "passive_voice_percentage": self.passive_voice_percentage,
            "grade_label": self.grade_label,
            "ease_label": self.ease_label,
        }


@dataclass(frozen=True, slots=True)
class TargetProfile:
    """Target score ranges and writing guidance for one grade-level label."""

    label: str
    audience: str
    grade_level_range: Tuple[float, float]
    reading_ease_range: Tuple[float, float]
    guidance_text: str
    sampling_temperature: float
    target_sentence_words: int

    @property
    def grade_level_midpoint(self) -> float:
        low, high = self.grade_level_range
        return (low + high) / 2

    @property
    def reading_ease_midpoint(self) -> float:
        low, high = self.reading_ease_range
        return (low + high) / 2

    def grade_level_in_range(self, metrics: ReadabilityMetrics) -> bool:
        low, high = self.grade_level_range
        return low <= metrics.grade_level <= high

    def reading_ease_in_range(self, metrics: ReadabilityMetrics) -> bool:
        low, high = self.reading_ease_range
        return low <= metrics.reading_ease <= high

    def contains(self, metrics: ReadabilityMetrics) -> bool:
        """Return True when both scores fall inside this profile's ranges."""
        return self.grade_level_in_range(metrics) and self.reading_ease_in_range(
            metrics
        )

    def describe_ranges(self) -> Tuple[str, str]:
        grade_low, grade_high = self.grade_level_range
        ease_low, ease_high = self.reading_ease_range
        return (
            f"{grade_low:g}-{grade_high:g}",
            f"{ease_low:g}-{ease_high:g}",
        )


@dataclass(frozen=True, slots=True)
class RewriteResult:
    """Outcome of a completed convergence run."""

    id: str
    original_text: str
    rewritten_text: str
    target_level: str
    created_at: datetime
    metrics_before: ReadabilityMetrics
    metrics_after: ReadabilityMetrics
    changed: bool
    method: str
    iterations_used: int = 1
    tokens_used: int = 0
    target_met: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "original_text": self.original_text,
            "rewritten_text": self.rewritten_text,
            "target_level": self.target_level,
            "created_at": self.created_at.isoformat(),
            "metrics_before": self.metrics_before.to_dict(),
            "metrics_after": self.metrics_after.to_dict(),
            "changed": self.changed,
            "method": self.method,
            "iterations_used": self.iterations_used,
            "tokens_used": self.tokens_used,
            "target_met": self.target_met,
        }


@dataclass(slots=True)
class CacheEntry:
    """A cached rewrite plus its bookkeeping timestamps."""

    key: str
    result: RewriteResult
    created_at: float
    access_count: int = 1
    last_accessed_at: float = 0.0


@dataclass(slots=True)
class RetryItem:
    """A request waiting to be re-dispatched."""

    id: str
    text: str
    target_level: str
    retry_count: int
    next_retry_at: float
    enqueued_at: float = 0.0


@dataclass(slots=True)
class RetryOutcome:
    """Result of re-attempting a single retry item."""

    item: RetryItem
    status: RetryStatus
    result: RewriteResult | None = None
    error: Exception | None = None

