from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Sequence, Union

from grade_level_rewriter.models import RewriteResult
from grade_level_rewriter.readability import score
from grade_level_rewriter.rewriting import RewriteCompletion, Rewriter, RewriteRequest

# Scores inside the elementary ranges (grade ~3.6, ease ~86.7).
EASY_TEXT = "Every family will go to the big park with me."
# Grade ~1.6: closer to the elementary midpoint than COMPLEX_TEXT, but below range.
SIMPLE_TEXT = "The people said that they would go to the big park."
COMPLEX_TEXT = (
    "The implementation of this methodology requires significant consideration "
    "of various interdependent organizational factors."
)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


Step = Union[str, RewriteCompletion, Exception]


class ScriptedRewriter(Rewriter):
    """Replays a fixed sequence of outputs; the last step repeats once exhausted."""

    method = "scripted"

    def __init__(self, steps: Sequence[Step]) -> None:
        self._steps = list(steps)
        self.requests: List[RewriteRequest] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def rewrite(self, request: RewriteRequest) -> RewriteCompletion:
        self.requests.append(request)
        index = min(len(self.requests), len(self._steps)) - 1
        step = self._steps[index]
        if isinstance(step, Exception):
            raise step
        if isinstance(step, RewriteCompletion):
            return step
        return RewriteCompletion(text=step, tokens_used=10)


def make_result(text: str = "Original text.", target_level: str = "elementary") -> RewriteResult:
    metrics = score(text)
    return RewriteResult(
        id=f"result-{abs(hash(text)) % 10_000}",
        original_text=text,
        rewritten_text=text,
        target_level=target_level,
        created_at=datetime.now(timezone.utc),
        metrics_before=metrics,
        metrics_after=metrics,
        changed=False,
        method="test",
    )
