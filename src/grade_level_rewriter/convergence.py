"""
Iterative rewrite toward a target grade level.

Each iteration asks the rewriter for a candidate, scores it, and keeps the
candidate whose grade level is closest to the profile midpoint. The loop
stops early once a candidate lands inside both target ranges.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import List

from .errors import RewriteFailed
from .models import ReadabilityMetrics, RewriteResult, TargetProfile
from .profiles import resolve_profile
from .readability import score
from .rewriting import RewriteCompletion, Rewriter, RewriteRequest
from .textutils import strip_wrapping_quotes

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 3
GRADE_LEVEL_THRESHOLD = 2.0
READING_EASE_THRESHOLD = 10.0
TEMPERATURE_STEP = 0.1
MIN_TEMPERATURE = 0.1


def refinement_temperature(profile: TargetProfile, iteration: int) -> float:
    """Sampling temperature for ``iteration``, cooling by 0.1 after the first."""
    if iteration <= 1:
        return profile.sampling_temperature
    cooled = profile.sampling_temperature - TEMPERATURE_STEP * (iteration - 1)
    return round(max(MIN_TEMPERATURE, cooled), 2)


def build_guidance(
    profile: TargetProfile,
    iteration: int,
    previous: ReadabilityMetrics | None = None,
) -> str:
    """Static profile guidance on the first pass, corrective guidance afterwards."""
    if iteration <= 1 or previous is None:
        return profile.guidance_text

    grade_delta = previous.grade_level - profile.grade_level_midpoint
    ease_delta = previous.reading_ease - profile.reading_ease_midpoint
    grade_range, ease_range = profile.describe_ranges()

    adjustments: List[str] = []
    if grade_delta > GRADE_LEVEL_THRESHOLD:
        adjustments.append(
            "The text is currently too complex. Simplify vocabulary and shorten sentences."
        )
    elif grade_delta < -GRADE_LEVEL_THRESHOLD:
        adjustments.append(
            "The text is currently too simple. Use more sophisticated vocabulary "
            "and longer sentences."
        )
    if ease_delta < -READING_EASE_THRESHOLD:
        adjustments.append(
            "The text is harder to read than intended. Prefer shorter words and "
            "shorter sentences."
        )
    elif ease_delta > READING_EASE_THRESHOLD:
        adjustments.append(
            "The text reads more easily than intended. Use richer vocabulary and "
            "combine related sentences."
        )
    if not adjustments:
        adjustments.append(
            "The text is close to the target. Make minor adjustments to fine-tune "
            "the reading level."
        )

    actions: List[str] = []
    if previous.average_words_per_sentence > 25:
        actions.append("Break up long sentences into shorter ones.")
    if previous.average_words_per_sentence < 8:
        actions.append("Combine short sentences for better flow.")
    if previous.average_syllables_per_word > 2.0:
        actions.append("Replace complex words with simpler alternatives.")
    if previous.average_syllables_per_word < 1.3:
        actions.append("Use slightly more sophisticated vocabulary.")
    actions.append("Maintain all original meaning.")

    lines = [
        f"You are refining text to precisely match {profile.label} reading level.",
        f"Current status (iteration {iteration}):",
        f"- Grade level: {previous.grade_level:.1f} (target {grade_range})",
        f"- Reading ease: {previous.reading_ease:.1f} (target {ease_range})",
        "Adjustment needed:",
        *(f"- {adjustment}" for adjustment in adjustments),
        "Specific actions:",
        *(f"- {action}" for action in actions),
        f"Aim for sentences around {profile.target_sentence_words} words.",
    ]
    return "\n".join(lines)


def _grade_distance(metrics: ReadabilityMetrics, profile: TargetProfile) -> float:
    return abs(metrics.grade_level - profile.grade_level_midpoint)


async def converge(
    text: str,
    target_level: str,
    rewriter: Rewriter,
    *,
    max_iterations: int = MAX_ITERATIONS,
) -> RewriteResult:
    """Rewrite ``text`` toward ``target_level``, returning the best candidate found."""
    profile = resolve_profile(target_level)
    metrics_before = score(text)
    current_text = text
    previous_metrics: ReadabilityMetrics | None = None
    best_text: str | None = None
    best_metrics: ReadabilityMetrics | None = None
    tokens_used = 0
    iteration = 0
    scored = 0

    while iteration < max(1, max_iterations):
        iteration += 1
        request = RewriteRequest(
            text=current_text,
            guidance=build_guidance(profile, iteration, previous_metrics),
            temperature=refinement_temperature(profile, iteration),
            target_level=profile.label,
            iteration=iteration,
            profile=profile,
        )
        try:
            completion: RewriteCompletion = await rewriter.rewrite(request)
        except Exception as exc:
            if iteration == 1:
                raise RewriteFailed(
                    f"Rewrite for {profile.label} failed: {exc}",
                    target_level=profile.label,
                ) from exc
            logger.warning(
                "Iteration %d for %s failed (%s); keeping best candidate so far.",
                iteration,
                profile.label,
                exc,
            )
            break
        tokens_used += completion.tokens_used

        candidate = strip_wrapping_quotes((completion.text or "").strip())
        if not candidate.strip():
            if iteration == 1:
                raise RewriteFailed(
                    f"Rewriter returned an empty response for {profile.label}.",
                    target_level=profile.label,
                )
            logger.warning(
                "Iteration %d for %s returned empty text; keeping best candidate so far.",
                iteration,
                profile.label,
            )
            break

        metrics = score(candidate)
        scored += 1
        in_range = profile.contains(metrics)
        logger.debug(
            "Iteration %d for %s: grade=%.1f (target %s) ease=%.1f (target %s) in_range=%s",
            iteration,
            profile.label,
            metrics.grade_level,
            profile.describe_ranges()[0],
            metrics.reading_ease,
            profile.describe_ranges()[1],
            in_range,
        )

        # Only grade-level distance decides the best candidate.
        if best_metrics is None or _grade_distance(metrics, profile) < _grade_distance(
            best_metrics, profile
        ):
            best_text, best_metrics = candidate, metrics

        if in_range:
            best_text, best_metrics = candidate, metrics
            logger.info("Target metrics for %s reached in iteration %d", profile.label, iteration)
            break

        current_text = candidate
        previous_metrics = metrics

    if best_text is None or best_metrics is None:
        raise RewriteFailed(
            f"No rewrite candidate was produced for {profile.label}.",
            target_level=profile.label,
        )

    logger.info(
        "Convergence for %s finished after %d iteration(s): grade %.1f -> %.1f",
        profile.label,
        scored,
        metrics_before.grade_level,
        best_metrics.grade_level,
    )
    return RewriteResult(
        id=f"grade-rewrite-{uuid.uuid4().hex[:12]}",
        original_text=text,
        rewritten_text=best_text,
        target_level=profile.label,
        created_at=datetime.now(timezone.utc),
        metrics_before=metrics_before,
        metrics_after=best_metrics,
        changed=best_text.strip() != text.strip(),
        method=rewriter.method,
        iterations_used=scored,
        tokens_used=tokens_used,
        target_met=profile.contains(best_metrics),
    )
