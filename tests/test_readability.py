from __future__ import annotations

import pytest

from grade_level_rewriter.models import grade_level_label, reading_ease_label
from grade_level_rewriter.readability import count_syllables, score
from tests.utils import COMPLEX_TEXT, EASY_TEXT


def test_score_matches_closed_form_for_single_syllable_sentence():
    """Six one-syllable words in one sentence follow the Flesch formulas."""
    metrics = score("The cat sat on the mat.")

    assert metrics.sentence_count == 1
    assert metrics.word_count == 6
    assert metrics.average_words_per_sentence == pytest.approx(6.0)
    assert metrics.average_syllables_per_word == pytest.approx(1.0)
    assert metrics.grade_level == pytest.approx(0.39 * 6 + 11.8 - 15.59, abs=0.051)
    assert metrics.reading_ease == pytest.approx(
        206.835 - 1.015 * 6 - 84.6, abs=0.051
    )


def test_score_blank_text_is_all_zero():
    for text in ("", "   \n\t "):
        metrics = score(text)
        assert metrics.grade_level == 0.0
        assert metrics.reading_ease == 0.0
        assert metrics.sentence_count == 0
        assert metrics.average_words_per_sentence == 0.0


def test_score_text_without_terminal_punctuation_counts_one_sentence():
    metrics = score("no punctuation at all here")
    assert metrics.sentence_count == 1
    assert metrics.average_words_per_sentence == pytest.approx(5.0)


def test_score_reports_long_sentences_and_passive_voice():
    long_sentence = " ".join(["word"] * 21) + "."
    metrics = score(f"The ball was kicked by the boy. {long_sentence}")

    assert metrics.sentence_count == 2
    assert metrics.long_sentence_count == 1
    assert metrics.passive_voice_percentage == pytest.approx(50.0)


def test_complex_text_scores_harder_than_easy_text():
    easy = score(EASY_TEXT)
    hard = score(COMPLEX_TEXT)
    assert hard.grade_level > easy.grade_level
    assert hard.reading_ease < easy.reading_ease


@pytest.mark.parametrize(
    ("word", "expected"),
    [
        ("a", 1),
        ("it", 1),
        ("beautiful", 3),  # dictionary
        ("Family,", 3),  # punctuation and case are ignored
        ("cake", 1),  # silent e
        ("table", 2),  # -le keeps its syllable
        ("jumped", 1),  # -ed is silent
        ("wanted", 2),  # -ted is voiced
        ("boxes", 2),  # -xes is voiced
        ("antiwar", 4),  # doubling prefix
        ("station", 3),  # -tion suffix
        ("rhythm", 1),  # y counts as a vowel
        ("brr", 1),  # clamped to one
    ],
)
def test_count_syllables(word: str, expected: int):
    assert count_syllables(word) == expected


def test_grade_and_ease_labels():
    assert grade_level_label(4.2) == "Elementary School"
    assert grade_level_label(10) == "High School"
    assert grade_level_label(18.5) == "Graduate Level"
    assert reading_ease_label(95) == "Very Easy"
    assert reading_ease_label(65) == "Standard"
    assert reading_ease_label(10) == "Very Difficult"
