from __future__ import annotations

import re
from typing import List

SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
WHITESPACE_RE = re.compile(r"\s+")
PASSIVE_VOICE_RE = re.compile(r"\b(?:was|were|is|are|been|being)\s+\w+(?:ed|en)\b", re.I)

WRAPPING_QUOTES = (('"', '"'), ("“", "”"))


def split_sentences(text: str) -> List[str]:
    """Split text on runs of terminal punctuation, dropping blank segments."""
    return [segment for segment in SENTENCE_SPLIT_RE.split(text) if segment.strip()]


def split_words(text: str) -> List[str]:
    """Split text on whitespace, dropping empty tokens."""
    return [token for token in WHITESPACE_RE.split(text) if token]


def strip_wrapping_quotes(text: str) -> str:
    """Remove one layer of quotation marks wrapping the whole text."""
    for opening, closing in WRAPPING_QUOTES:
        if len(text) >= 2 and text.startswith(opening) and text.endswith(closing):
            return text[1:-1]
    return text


def preview(text: str, limit: int = 50) -> str:
    """Shorten text for log lines."""
    flattened = WHITESPACE_RE.sub(" ", text).strip()
    if len(flattened) <= limit:
        return flattened
    return flattened[:limit] + "..."
