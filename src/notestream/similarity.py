"""Text similarity scoring for matching differently worded topics."""

from __future__ import annotations

import re
from typing import Callable, Iterable, TypeVar

from notestream.config import NOTESTREAM_SIMILARITY_THRESHOLD

T = TypeVar("T")

_NON_ALNUM_RE = re.compile(r"[^\w\s]|_")
_WHITESPACE_RE = re.compile(r"\s+")

EXACT_SCORE = 1.0
CONTAINMENT_SCORE = 0.8


def normalize_text(text: str) -> str:
    """Lowercase, drop non-alphanumeric characters and collapse whitespace."""
    text = _NON_ALNUM_RE.sub("", text.lower())
    return _WHITESPACE_RE.sub(" ", text).strip()


def similarity(text_a: str, text_b: str) -> float:
    """Score how alike two strings are, from 0.0 to 1.0.

    Exact match after normalization scores 1.0, containment of one string in
    the other scores 0.8, anything else is the Jaccard overlap of the word
    sets. Empty input scores 0.0.
    """
    norm_a = normalize_text(text_a)
    norm_b = normalize_text(text_b)
    if not norm_a or not norm_b:
        return 0.0
    if norm_a == norm_b:
        return EXACT_SCORE
    if norm_a in norm_b or norm_b in norm_a:
        return CONTAINMENT_SCORE

    words_a = set(norm_a.split())
    words_b = set(norm_b.split())
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


def best_match(
    text: str,
    candidates: Iterable[T],
    *,
    key: Callable[[T], str] = str,
    threshold: float = NOTESTREAM_SIMILARITY_THRESHOLD,
) -> T | None:
    """Return the candidate scoring highest against ``text``.

    Only scores strictly above ``threshold`` count; ties keep the earlier
    candidate. Returns None when nothing qualifies.
    """
    best: T | None = None
    highest = threshold
    for candidate in candidates:
        score = similarity(text, key(candidate))
        if score > highest:
            highest = score
            best = candidate
    return best
