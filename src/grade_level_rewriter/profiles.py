from __future__ import annotations

import logging
from typing import Mapping

from .errors import InvalidGradeLevel
from .models import TargetProfile

logger = logging.getLogger(__name__)

DEFAULT_LEVEL = "high-school"

ELEMENTARY_GUIDANCE = (
    "Rewrite this text for elementary school students (grades 1-5). Use very simple "
    "words, short sentences, and basic concepts that young children can understand.\n"
    "Sentence structure:\n"
    "- Keep sentences between 5-12 words, around 8 on average.\n"
    "- Use simple subject-verb-object order. Avoid compound sentences and passive voice.\n"
    "Vocabulary:\n"
    "- Use only common everyday words. Avoid words with more than 2-3 syllables.\n"
    "- Aim for 1.2-1.4 syllables per word.\n"
    "Techniques:\n"
    "- Break long sentences into 2-3 shorter ones.\n"
    "- Replace complex terms with simple explanations.\n"
    "- Use concrete nouns and familiar comparisons.\n"
    "- Connect ideas with: and, but, so, then, first, next, last.\n"
    'Example: "The implementation of this methodology requires significant '
    'consideration of various factors." becomes "This way of doing things needs '
    'us to think about many things first. We must look at each part carefully."'
)

MIDDLE_SCHOOL_GUIDANCE = (
    "Rewrite this text for middle school students (grades 6-8). Use clear language "
    "and moderate complexity that pre-teens can understand.\n"
    "Sentence structure:\n"
    "- Keep sentences between 10-18 words, around 14 on average.\n"
    "- Mix simple and compound sentences; keep subordinate clauses clear.\n"
    "Vocabulary:\n"
    "- Use common words and introduce academic terms with context clues.\n"
    "- Aim for 1.4-1.6 syllables per word.\n"
    "Techniques:\n"
    "- Combine related short sentences.\n"
    "- Define new vocabulary in context.\n"
    "- Use transitions such as however, therefore, for example, as a result.\n"
    'Example: "The implementation of this methodology requires significant '
    'consideration of various factors." becomes "Using this method means we need '
    'to think carefully about several important things."'
)

HIGH_SCHOOL_GUIDANCE = (
    "Rewrite this text for high school students (grades 9-12). Use standard "
    "academic language that teenagers can understand.\n"
    "Sentence structure:\n"
    "- Keep sentences between 15-25 words, around 18-20 on average.\n"
    "- Balance simple, compound, and complex structures.\n"
    "Vocabulary:\n"
    "- Use academic vocabulary and define domain terms when first introduced.\n"
    "- Aim for 1.6-1.8 syllables per word.\n"
    "Techniques:\n"
    "- Combine ideas with subordinate clauses.\n"
    "- Include analytical and evaluative language.\n"
    "- Use transitions such as furthermore, consequently, nevertheless, in contrast.\n"
    'Example: "The implementation of this methodology requires significant '
    'consideration of various factors." becomes "Implementing this approach '
    'requires careful consideration of several important factors."'
)

COLLEGE_GUIDANCE = (
    "Rewrite this text for college students and adults. Use sophisticated language "
    "and complex concepts appropriate for higher education.\n"
    "Sentence structure:\n"
    "- Use sentences between 20-35 words, around 22-25 on average.\n"
    "- Use multiple clauses and embedded structures.\n"
    "Vocabulary:\n"
    "- Use advanced academic vocabulary and precise technical terms.\n"
    "- Aim for 1.8-2.0 syllables per word.\n"
    "Techniques:\n"
    "- Employ abstract and theoretical language.\n"
    "- Use hedging language, qualifiers, and nominalizations.\n"
    "- Use transitions such as notwithstanding, whereas, insofar as, given that.\n"
    'Example: "This way of doing things needs us to think about many things first." '
    'becomes "The implementation of this methodology requires comprehensive '
    'analysis of multiple contributing factors."'
)

GRADUATE_GUIDANCE = (
    "Rewrite this text for graduate-level readers and professionals. Use highly "
    "sophisticated language, technical terminology, and complex analytical concepts.\n"
    "Sentence structure:\n"
    "- Use sentences between 25-45 words, around 28-32 on average.\n"
    "- Use embedded clauses and parenthetical expressions.\n"
    "Vocabulary:\n"
    "- Use specialized terminology and abstract nominalizations.\n"
    "- Aim for 2.0 or more syllables per word.\n"
    "Techniques:\n"
    "- Employ theoretical frameworks and meta-analytical commentary.\n"
    "- Use specialized disciplinary discourse patterns.\n"
    "- Use transitions such as concomitantly, mutatis mutandis, vis-a-vis.\n"
    'Example: "This way of doing things needs us to think about many things first." '
    'becomes "The operationalization of this theoretical framework necessitates a '
    'comprehensive, multifaceted evaluation of interdependent variables."'
)

PROFILES: Mapping[str, TargetProfile] = {
    profile.label: profile
    for profile in (
        TargetProfile(
            label="elementary",
            audience="elementary school students",
            grade_level_range=(3.0, 5.0),
            reading_ease_range=(80.0, 90.0),
            guidance_text=ELEMENTARY_GUIDANCE,
            sampling_temperature=0.3,
            target_sentence_words=8,
        ),
        TargetProfile(
            label="middle-school",
            audience="middle school students",
            grade_level_range=(6.0, 8.0),
            reading_ease_range=(70.0, 80.0),
            guidance_text=MIDDLE_SCHOOL_GUIDANCE,
            sampling_temperature=0.4,
            target_sentence_words=14,
        ),
        TargetProfile(
            label="high-school",
            audience="high school students",
            grade_level_range=(9.0, 12.0),
            reading_ease_range=(60.0, 70.0),
            guidance_text=HIGH_SCHOOL_GUIDANCE,
            sampling_temperature=0.4,
            target_sentence_words=20,
        ),
        TargetProfile(
            label="college",
            audience="college students and adults",
            grade_level_range=(13.0, 16.0),
            reading_ease_range=(50.0, 60.0),
            guidance_text=COLLEGE_GUIDANCE,
            sampling_temperature=0.5,
            target_sentence_words=25,
        ),
        TargetProfile(
            label="graduate",
            audience="graduate-level readers and professionals",
            grade_level_range=(17.0, 22.0),
            reading_ease_range=(30.0, 50.0),
            guidance_text=GRADUATE_GUIDANCE,
            sampling_temperature=0.6,
            target_sentence_words=25,
        ),
    )
}


def normalize_level(level: str) -> str:
    return level.strip().lower().replace("_", "-").replace(" ", "-")


def resolve_profile(
    level: str, profiles: Mapping[str, TargetProfile] | None = None
) -> TargetProfile:
    """Return the profile for ``level``, falling back to high school when unknown."""
    table = PROFILES if profiles is None else profiles
    normalized = normalize_level(level)
    profile = table.get(normalized)
    if profile is not None:
        return profile
    fallback = table.get(DEFAULT_LEVEL)
    if fallback is None:
        fallback = next(iter(table.values()), None)
    if fallback is None:
        raise InvalidGradeLevel(level)
    logger.warning(
        "Unknown grade level %r; falling back to %s profile.", level, fallback.label
    )
    return fallback


def available_levels() -> list[str]:
    return list(PROFILES)
